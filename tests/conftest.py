import boto3
import pytest
from moto import mock_aws

TEST_REGION = 'us-east-1'


class TestValues(object):
    __test__ = False

    key_name = 'clone-key'
    source_name = 'web-server'
    clone_name = 'web-clone'
    root_device = '/dev/sda1'
    data_device = '/dev/sdf'


@pytest.fixture
def aws_credentials(monkeypatch):
    monkeypatch.setenv('AWS_ACCESS_KEY_ID', 'testing')
    monkeypatch.setenv('AWS_SECRET_ACCESS_KEY', 'testing')
    monkeypatch.setenv('AWS_SECURITY_TOKEN', 'testing')
    monkeypatch.setenv('AWS_SESSION_TOKEN', 'testing')
    monkeypatch.setenv('AWS_DEFAULT_REGION', TEST_REGION)
    monkeypatch.delenv('AWS_PROFILE', raising=False)


@pytest.fixture
def ec2_client(aws_credentials):
    with mock_aws():
        yield boto3.client('ec2', region_name=TEST_REGION)


@pytest.fixture
def source_instance(ec2_client):
    """ Instância de origem com volume raiz gp2 e um volume de dados gp3
    """
    image_id = ec2_client.register_image(Name='base-image', RootDeviceName=TestValues.root_device)['ImageId']
    subnet_id = ec2_client.describe_subnets()['Subnets'][0]['SubnetId']
    ec2_client.create_key_pair(KeyName=TestValues.key_name)

    response = ec2_client.run_instances(
        ImageId=image_id,
        MinCount=1,
        MaxCount=1,
        InstanceType='t3.micro',
        KeyName=TestValues.key_name,
        SubnetId=subnet_id,
        BlockDeviceMappings=[
            {
                'DeviceName': TestValues.root_device,
                'Ebs': {'VolumeSize': 8, 'VolumeType': 'gp2', 'DeleteOnTermination': True}
            },
            {
                'DeviceName': TestValues.data_device,
                'Ebs': {'VolumeSize': 20, 'VolumeType': 'gp3', 'DeleteOnTermination': False}
            }
        ],
        TagSpecifications=[
            {
                'ResourceType': 'instance',
                'Tags': [
                    {'Key': 'Name', 'Value': TestValues.source_name},
                    {'Key': 'Team', 'Value': 'infra'}
                ]
            }
        ]
    )
    instance = response['Instances'][0]
    return ec2_client.describe_instances(InstanceIds=[instance['InstanceId']])['Reservations'][0]['Instances'][0]


@pytest.fixture
def no_sleep(monkeypatch):
    from ec2clone import polling
    sleeps = []
    monkeypatch.setattr(polling.time, 'sleep', sleeps.append)
    return sleeps


def get_tags(ec2_client, resource_id):
    response = ec2_client.describe_tags(Filters=[{'Name': 'resource-id', 'Values': [resource_id]}])
    return {tag['Key']: tag['Value'] for tag in response['Tags']}
