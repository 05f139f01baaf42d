#!/usr/bin/env python3
import re
import sys


def get_instance_data(ec2_client, instance_id):
    """
    Pega os dados da instância de origem
    """
    response = ec2_client.describe_instances(InstanceIds=[instance_id])

    # Se der erro aqui é pq ele não encontrou a instância nessa região
    if not response['Reservations'] or not response['Reservations'][0]['Instances']:
        print(f"❌ ERRO: Instância {instance_id} não encontrada")
        sys.exit(1)

    return response['Reservations'][0]['Instances'][0]


def extract_instance_features(instance):
    """
    Lê da descrição da instância tudo que é necessário para gerar a AMI e
    subir o clone. Campos opcionais ficam como None quando não existem.
    """
    devices = []
    volumes = []
    for bdm in instance.get('BlockDeviceMappings', []):
        # Volumes de instance store não tem snapshot
        if 'Ebs' not in bdm:
            continue
        devices.append(bdm['DeviceName'])
        volumes.append(bdm['Ebs']['VolumeId'])

    availability_zone = instance.get('Placement', {}).get('AvailabilityZone')

    return {
        'instance_id': instance['InstanceId'],
        'devices': devices,
        'volumes': volumes,
        'instance_type': instance['InstanceType'],
        'availability_zone': availability_zone,
        # us-east-1a -> us-east-1
        'region': re.sub(r'[a-z]$', '', availability_zone) if availability_zone else None,
        'kernel_id': instance.get('KernelId'),
        'ramdisk_id': instance.get('RamdiskId'),
        'security_group_ids': [sg['GroupId'] for sg in instance.get('SecurityGroups', [])],
        'key_name': instance.get('KeyName'),
        'subnet_id': instance.get('SubnetId'),
        'architecture': instance.get('Architecture', 'x86_64'),
        'root_device_name': instance.get('RootDeviceName', '/dev/sda1'),
        'virtualization_type': instance.get('VirtualizationType', 'hvm'),
        'ena_support': instance.get('EnaSupport', False),
        'sriov_net_support': instance.get('SriovNetSupport'),
        # Modo com que a instância realmente subiu, BootMode pode ser só a preferência
        'boot_mode': instance.get('CurrentInstanceBootMode') or instance.get('BootMode'),
    }


def print_instance_features(features):
    print("**********************************************")
    print("📋 Características da instância:\n")
    print(f"Block devices: {' '.join(features['devices']) or 'nenhum'}")
    print(f"Volumes: {' '.join(features['volumes']) or 'nenhum'}")
    print(f"Tipo de instância: {features['instance_type']}")
    print(f"Região: {features['region']}")
    print(f"Kernel ID: {features['kernel_id'] or 'N/A'}")
    print(f"Grupos de segurança: {', '.join(features['security_group_ids']) or 'N/A'}")
    print(f"Key pair: {features['key_name'] or 'N/A'}")
    print(f"Subnet: {features['subnet_id'] or 'N/A'}")
    print(f"Arquitetura: {features['architecture']}")
    print(f"Boot mode: {features['boot_mode'] or 'padrão da AMI'}")
    print("**********************************************")


def get_instance_name(ec2_client, instance_id):
    """
    Busca o valor da tag Name da instância
    """
    tags_response = ec2_client.describe_tags(
        Filters=[
            {'Name': 'resource-id', 'Values': [instance_id]},
            {'Name': 'key', 'Values': ['Name']}
        ]
    )

    if tags_response['Tags']:
        return tags_response['Tags'][0]['Value']
    return None
