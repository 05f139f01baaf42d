#!/usr/bin/env python3
from botocore.exceptions import ClientError

from ec2clone.polling import DEFAULT_MAX_ATTEMPTS, DEFAULT_POLL_INTERVAL, is_not_found, wait_for_state


def create_volume_snapshots(ec2_client, volumes, snapshot_name, source_instance_id):
    """
    Cria um snapshot para cada volume, com a tag Name igual ao nome do clone
    """
    snapshot_ids = []
    for volume in volumes:
        response = ec2_client.create_snapshot(
            VolumeId=volume['VolumeId'],
            Description=f"Clone de {source_instance_id} ({volume['DeviceName']})",
            TagSpecifications=[
                {
                    'ResourceType': 'snapshot',
                    'Tags': [
                        {'Key': 'Name', 'Value': snapshot_name},
                        {'Key': 'SourceInstanceId', 'Value': source_instance_id}
                    ]
                }
            ]
        )
        snapshot_ids.append(response['SnapshotId'])
        print(f"📸 Snapshot {response['SnapshotId']} criado para o volume {volume['VolumeId']}")

    return snapshot_ids


def get_snapshot_state(ec2_client, snapshot_id):
    try:
        response = ec2_client.describe_snapshots(SnapshotIds=[snapshot_id])
    except ClientError as e:
        # Snapshot recém criado ainda não aparece na API
        if is_not_found(e):
            return 'pending'
        raise
    return response['Snapshots'][0]['State']


def wait_for_snapshots(ec2_client, snapshot_ids, interval=DEFAULT_POLL_INTERVAL,
                       max_attempts=DEFAULT_MAX_ATTEMPTS):
    """
    Aguarda todos os snapshots ficarem completos, um de cada vez
    """
    print("\n⏳ Verificando o status dos snapshots...")
    for snapshot_id in snapshot_ids:
        wait_for_state(
            lambda: get_snapshot_state(ec2_client, snapshot_id),
            f"Snapshot: {snapshot_id}",
            'completed',
            interval=interval,
            max_attempts=max_attempts,
            failure_states=('error',)
        )
    print("✅ Todos os snapshots estão completos.")
