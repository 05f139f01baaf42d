#!/usr/bin/env python3
import sys

import boto3
from botocore.exceptions import ProfileNotFound


def create_ec2_client(profile=None, region=None):
    """
    Cria o client EC2 a partir do perfil e região informados, validando
    se existem credenciais configuradas
    """
    try:
        session = boto3.Session(profile_name=profile, region_name=region)
        credentials = session.get_credentials()
        region_name = session.region_name
    except ProfileNotFound:
        print(f"❌ ERRO: Perfil AWS '{profile}' não encontrado. Configure com: aws configure --profile {profile}")
        sys.exit(1)

    # Sem credenciais não adianta seguir, a primeira chamada ia falhar
    if credentials is None:
        print("❌ ERRO: AWS não está configurada. Execute 'aws configure' e tente novamente.")
        sys.exit(1)

    if not region_name:
        print("❌ ERRO: Nenhuma região AWS configurada. Use --region ou configure uma região padrão.")
        sys.exit(1)

    print(f"🌎 Usando região: {region_name}" + (f" | perfil: {profile}" if profile else ""))
    return session.client('ec2')
