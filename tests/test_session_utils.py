import pytest

from conftest import TEST_REGION
from ec2clone.session_utils import create_ec2_client


def test_create_ec2_client_uses_given_region(aws_credentials):
    ec2_client = create_ec2_client(region='sa-east-1')

    assert ec2_client.meta.region_name == 'sa-east-1'


def test_create_ec2_client_uses_environment_region(aws_credentials):
    ec2_client = create_ec2_client()

    assert ec2_client.meta.region_name == TEST_REGION


def test_create_ec2_client_without_region_exits(aws_credentials, monkeypatch, tmp_path, capsys):
    monkeypatch.delenv('AWS_DEFAULT_REGION')
    monkeypatch.delenv('AWS_REGION', raising=False)
    monkeypatch.setenv('AWS_CONFIG_FILE', str(tmp_path / 'config'))

    with pytest.raises(SystemExit) as excinfo:
        create_ec2_client()

    assert excinfo.value.code == 1
    assert 'Nenhuma região AWS configurada' in capsys.readouterr().out
