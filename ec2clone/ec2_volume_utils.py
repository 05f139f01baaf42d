#!/usr/bin/env python3
import sys


def describe_instance_volumes(ec2_client, features):
    """
    Lê as características de cada volume EBS da instância (tamanho, tipo,
    deleção na terminação, IOPS e throughput), na mesma ordem dos devices
    """
    volumes = []

    print("\n💾 Volumes encontrados:")
    for device_name, volume_id in zip(features['devices'], features['volumes']):
        volume = ec2_client.describe_volumes(VolumeIds=[volume_id])['Volumes'][0]

        # O flag de deleção fica no attachment, não no volume
        delete_on_termination = False
        for attachment in volume.get('Attachments', []):
            if attachment.get('InstanceId') in (None, features['instance_id']):
                delete_on_termination = attachment.get('DeleteOnTermination', False)
                break

        volume_info = {
            'DeviceName': device_name,
            'VolumeId': volume_id,
            'Size': volume['Size'],
            'VolumeType': volume['VolumeType'],
            'DeleteOnTermination': delete_on_termination,
        }
        if 'Iops' in volume:
            volume_info['Iops'] = volume['Iops']
        if 'Throughput' in volume:
            volume_info['Throughput'] = volume['Throughput']
        volumes.append(volume_info)

        print(f"\nVolume id: {volume_id}")
        print(f"Device: {device_name}")
        print(f"Tamanho: {volume['Size']}GB")
        print(f"Tipo: {volume['VolumeType']}")
        print(f"Deletar na terminação da instância: {delete_on_termination}")

    return volumes


def build_snapshot_block_device_mappings(volumes, snapshot_ids):
    """
    Monta os block device mappings da AMI, um por volume, apontando para o
    snapshot correspondente
    """
    if len(volumes) != len(snapshot_ids):
        print(f"❌ ERRO: {len(volumes)} volumes para {len(snapshot_ids)} snapshots")
        sys.exit(1)

    block_device_mappings = []
    for volume, snapshot_id in zip(volumes, snapshot_ids):
        volume_type = volume['VolumeType']

        new_bdm = {
            'DeviceName': volume['DeviceName'],
            'Ebs': {
                'SnapshotId': snapshot_id,
                'VolumeSize': volume['Size'],
                'VolumeType': volume_type,
                'DeleteOnTermination': volume['DeleteOnTermination']
            }
        }

        # Adiciona parâmetros compatíveis com cada tipo de volume
        if volume_type == 'gp3':
            # gp3 suporta IOPS e Throughput
            new_bdm['Ebs']['Iops'] = volume.get('Iops', 3000)
            if 'Throughput' in volume:
                new_bdm['Ebs']['Throughput'] = volume['Throughput']

        elif volume_type in ['io1', 'io2']:
            # io1 e io2 suportam IOPS
            if 'Iops' in volume:
                new_bdm['Ebs']['Iops'] = volume['Iops']

        block_device_mappings.append(new_bdm)

    return block_device_mappings
