#!/usr/bin/env python3
import re
import sys
from datetime import datetime

from botocore.exceptions import ClientError

from ec2clone.ec2_volume_utils import build_snapshot_block_device_mappings, describe_instance_volumes
from ec2clone.instance_info import (extract_instance_features, get_instance_data, get_instance_name,
                                    print_instance_features)
from ec2clone.polling import (DEFAULT_MAX_ATTEMPTS, DEFAULT_POLL_INTERVAL, call_with_not_found_retry, is_not_found,
                             wait_for_state)
from ec2clone.snapshots import create_volume_snapshots, wait_for_snapshots

AMI_NAME_TIMESTAMP_FORMAT = "%y%m%d_%H%M%S"
REPORT_TIME_FORMAT = "%d/%m/%Y %H:%M"

# Nome da AMI tem no máximo 128 caracteres, 14 vão para o sufixo _AAMMDD_HHMMSS
MAX_CLONE_NAME_LENGTH = 114
CLONE_NAME_PATTERN = re.compile(r"^[A-Za-z0-9()\[\] ./'@_-]+$")


def clone_instance(ec2_client, instance_id, clone_name, stop_source=False, copy_tags=False,
                   poll_interval=DEFAULT_POLL_INTERVAL, max_attempts=DEFAULT_MAX_ATTEMPTS):
    """
    Função principal que coordena todo o processo de clonagem da instância:
    snapshots dos volumes -> AMI -> nova instância
    """
    # Captura o horário de início
    start_time = datetime.now().strftime(REPORT_TIME_FORMAT)

    print(f"\n🔄 Iniciando clonagem da instância {instance_id} como '{clone_name}'...\n")

    # Pega os dados da instância de origem
    print("📋 Obtendo informações da instância de origem...")
    instance = get_instance_data(ec2_client, instance_id)
    features = extract_instance_features(instance)
    print_instance_features(features)

    if not features['volumes']:
        print(f"❌ ERRO: A instância {instance_id} não tem volumes EBS. Nada para clonar.")
        sys.exit(1)

    if stop_source:
        print(f"⏸️  Parando a instância {instance_id} antes da clonagem...")
        stop_source_instance(ec2_client, instance_id)

    volumes = describe_instance_volumes(ec2_client, features)

    print(f"\n📸 Criando snapshots dos volumes com o nome '{clone_name}'...")
    snapshot_ids = create_volume_snapshots(ec2_client, volumes, clone_name, instance_id)
    wait_for_snapshots(ec2_client, snapshot_ids, interval=poll_interval, max_attempts=max_attempts)

    ami_name = build_ami_name(clone_name)
    print(f"\n💿 Registrando a AMI: {ami_name}")
    mappings = build_snapshot_block_device_mappings(volumes, snapshot_ids)
    image_id = register_clone_ami(ec2_client, ami_name, features, mappings, interval=poll_interval)
    wait_for_image(ec2_client, image_id, interval=poll_interval, max_attempts=max_attempts)

    extra_tags = collect_source_tags(ec2_client, instance_id) if copy_tags else []

    print("\n🚀 Criando a nova instância...")
    new_instance_id = launch_clone_instance(ec2_client, image_id, features, ami_name, extra_tags)
    print(f"✅ Nova instância criada com ID: {new_instance_id}")

    print("\n⏳ Aguardando a nova instância inicializar...")
    wait_for_instance_running(ec2_client, new_instance_id, interval=poll_interval,
                              max_attempts=max_attempts)
    print("✅ Nova instância está em execução!")

    public_ip = get_public_ip(ec2_client, new_instance_id)
    print(f"\n🌐 Endereço IP da instância: {public_ip or 'sem IP público'}")

    # Captura o horário de fim
    end_time = datetime.now().strftime(REPORT_TIME_FORMAT)

    result = {
        'source_instance_id': instance_id,
        'new_instance_id': new_instance_id,
        'image_id': image_id,
        'ami_name': ami_name,
        'snapshot_ids': snapshot_ids,
        'public_ip': public_ip,
    }

    generate_final_report(ec2_client, instance, result, start_time, end_time)

    return result


def validate_clone_name(clone_name):
    """
    Confere se o nome pode virar nome de AMI depois de receber o sufixo de data
    """
    if not clone_name or len(clone_name) > MAX_CLONE_NAME_LENGTH:
        raise ValueError(f"o nome deve ter entre 1 e {MAX_CLONE_NAME_LENGTH} caracteres")
    if not CLONE_NAME_PATTERN.match(clone_name):
        raise ValueError("use apenas letras, números, espaços e ( ) [ ] . / - ' @ _")
    return clone_name


def build_ami_name(clone_name, now=None):
    if now is None:
        now = datetime.now()
    return f"{clone_name}_{now.strftime(AMI_NAME_TIMESTAMP_FORMAT)}"


def register_clone_ami(ec2_client, ami_name, features, block_device_mappings, interval=DEFAULT_POLL_INTERVAL):
    """
    Registra a AMI a partir dos snapshots, mantendo o dispositivo raiz e a
    arquitetura da instância original
    """
    register_params = {
        'Name': ami_name,
        'Description': f"Clone da instância {features['instance_id']}",
        'Architecture': features['architecture'],
        'RootDeviceName': features['root_device_name'],
        'BlockDeviceMappings': block_device_mappings,
        'VirtualizationType': features['virtualization_type'],
    }

    if features['ena_support']:
        register_params['EnaSupport'] = True

    if features['sriov_net_support']:
        register_params['SriovNetSupport'] = features['sriov_net_support']

    # Sem BootMode a AMI x86_64 vira legacy-bios e um clone UEFI não sobe
    if features['boot_mode']:
        register_params['BootMode'] = features['boot_mode']

    # Kernel e ramdisk só existem para AMIs paravirtual
    if features['virtualization_type'] == 'paravirtual':
        if features['kernel_id']:
            register_params['KernelId'] = features['kernel_id']
        if features['ramdisk_id']:
            register_params['RamdiskId'] = features['ramdisk_id']

    image_id = ec2_client.register_image(**register_params)['ImageId']

    tags = [
        {'Key': 'Name', 'Value': ami_name},
        {'Key': 'SourceInstanceId', 'Value': features['instance_id']}
    ]
    call_with_not_found_retry(
        lambda: ec2_client.create_tags(Resources=[image_id], Tags=tags),
        f"AMI {image_id}",
        interval=interval
    )
    print(f"✅ AMI registrada: {image_id}")
    return image_id


def get_image_state(ec2_client, image_id):
    try:
        images = ec2_client.describe_images(ImageIds=[image_id])['Images']
    except ClientError as e:
        if is_not_found(e):
            return 'pending'
        raise
    # AMI recém registrada pode ainda não aparecer na listagem
    if not images:
        return 'pending'
    return images[0]['State']


def wait_for_image(ec2_client, image_id, interval=DEFAULT_POLL_INTERVAL, max_attempts=DEFAULT_MAX_ATTEMPTS):
    print(f"⏳ Aguardando a AMI {image_id} ficar disponível...")
    wait_for_state(
        lambda: get_image_state(ec2_client, image_id),
        f"AMI: {image_id}",
        'available',
        interval=interval,
        max_attempts=max_attempts,
        failure_states=('failed', 'error', 'invalid', 'deregistered')
    )


def launch_clone_instance(ec2_client, image_id, features, ami_name, extra_tags=None):
    """
    Sobe a nova instância com as mesmas configurações básicas da original
    """
    run_params = {
        'ImageId': image_id,
        'InstanceType': features['instance_type'],
        'MaxCount': 1,
        'MinCount': 1
    }

    # Adiciona key pair se existir
    if features['key_name']:
        run_params['KeyName'] = features['key_name']
        print(f"🔑 Usando key pair: {features['key_name']}")

    if features['subnet_id']:
        run_params['SubnetId'] = features['subnet_id']
        print(f"🌐 Usando a subnet original: {features['subnet_id']}")

    if features['security_group_ids']:
        run_params['SecurityGroupIds'] = features['security_group_ids']
        print(f"🛡️  Usando grupos de segurança: {', '.join(features['security_group_ids'])}")

    tags = [
        {'Key': 'Name', 'Value': ami_name},
        {'Key': 'SourceInstanceId', 'Value': features['instance_id']}
    ]
    tags.extend(extra_tags or [])
    run_params['TagSpecifications'] = [{'ResourceType': 'instance', 'Tags': tags}]

    response = ec2_client.run_instances(**run_params)
    return response['Instances'][0]['InstanceId']


def get_instance_state(ec2_client, instance_id):
    try:
        response = ec2_client.describe_instances(InstanceIds=[instance_id])
    except ClientError as e:
        # Logo após o RunInstances a instância pode ainda não ser visível
        if is_not_found(e):
            return 'pending'
        raise
    return response['Reservations'][0]['Instances'][0]['State']['Name']


def wait_for_instance_running(ec2_client, instance_id, interval=DEFAULT_POLL_INTERVAL,
                              max_attempts=DEFAULT_MAX_ATTEMPTS):
    wait_for_state(
        lambda: get_instance_state(ec2_client, instance_id),
        f"Instância: {instance_id}",
        'running',
        interval=interval,
        max_attempts=max_attempts,
        failure_states=('shutting-down', 'terminated', 'stopping', 'stopped')
    )


def get_public_ip(ec2_client, instance_id):
    response = ec2_client.describe_instances(InstanceIds=[instance_id])
    return response['Reservations'][0]['Instances'][0].get('PublicIpAddress')


def stop_source_instance(ec2_client, instance_id):
    """
    Para a instância de origem antes de fazer os snapshots
    """
    # Verifica o estado atual da instância
    state = get_instance_state(ec2_client, instance_id)

    if state == 'stopped':
        print(f"ℹ️  A instância {instance_id} já está parada.")
        return

    if state != 'stopping':
        ec2_client.stop_instances(InstanceIds=[instance_id])

    print(f"⏳ Aguardando a instância {instance_id} parar completamente...")

    # Usa waiter para garantir que a instância parou completamente
    waiter = ec2_client.get_waiter('instance_stopped')
    waiter.wait(InstanceIds=[instance_id])
    print(f"✅ A instância {instance_id} está parada.")


def collect_source_tags(ec2_client, instance_id):
    """
    Copia as tags de usuário da instância original (sem Name e sem aws:*)
    """
    print("🏷️  Copiando tags da instância original...")
    tags_response = ec2_client.describe_tags(
        Filters=[{'Name': 'resource-id', 'Values': [instance_id]}]
    )

    tags_to_apply = []
    for tag in tags_response['Tags']:
        if tag['Key'].startswith('aws:'):
            continue
        # Name e SourceInstanceId são definidos pelo clone
        if tag['Key'] in ('Name', 'SourceInstanceId'):
            continue
        tags_to_apply.append({'Key': tag['Key'], 'Value': tag['Value']})

    return tags_to_apply


def generate_final_report(ec2_client, source_instance, result, start_time, end_time):
    """
    Gera um relatório final da clonagem e salva em arquivo
    """
    source_instance_id = result['source_instance_id']
    target_instance_id = result['new_instance_id']

    target_response = ec2_client.describe_instances(InstanceIds=[target_instance_id])
    target_instance = target_response['Reservations'][0]['Instances'][0]

    source_name = get_instance_name(ec2_client, source_instance_id) or "Sem nome"
    target_name = get_instance_name(ec2_client, target_instance_id) or "Sem nome"

    source_az = source_instance.get('Placement', {}).get('AvailabilityZone', 'N/A')
    target_az = target_instance.get('Placement', {}).get('AvailabilityZone', 'N/A')

    source_subnet_id = source_instance.get('SubnetId', 'N/A')
    target_subnet_id = target_instance.get('SubnetId', 'N/A')

    source_private_ip = source_instance.get('PrivateIpAddress', 'N/A')
    target_private_ip = target_instance.get('PrivateIpAddress', 'N/A')

    lines = [
        f"Região: {ec2_client.meta.region_name}",
        "",
        f"EC2: {target_name} - {target_instance_id}",
        f"(A original era {source_name} - {source_instance_id})",
        f"AMI: {result['image_id']} ({result['ami_name']})",
        f"Snapshots: {', '.join(result['snapshot_ids'])}",
        f"AZ: {target_az} (original era {source_az})",
        f"Sub: {target_subnet_id} (original era {source_subnet_id})",
        "",
        f"Inicio: {start_time}",
        f"Fim: {end_time}",
        "",
        f"Novo IP privado: {target_private_ip} (original era {source_private_ip})",
        f"Novo IP público: {result['public_ip'] or 'N/A'}",
    ]

    print("\n\n" + "=" * 50)
    print("\n".join(lines))
    print("\n" + "=" * 50)

    # Salva o relatório em um arquivo
    current_date = datetime.now().strftime("%d-%m-%Y")
    report_filename = f"clone_report_{target_instance_id}_{current_date}.txt"
    try:
        with open(report_filename, 'w') as f:
            f.write("\n".join(lines) + "\n")

        print(f"\nRelatório salvo em: {report_filename}")
    except OSError as e:
        print(f"Não foi possível salvar o relatório em arquivo: {e}")
        print("Copie as informações acima manualmente.")

    return report_filename
