#!/usr/bin/env python3

import argparse
import sys
try:
    from botocore.exceptions import ClientError
    from ec2clone.ec2_clone_functions import clone_instance, validate_clone_name
    from ec2clone.polling import DEFAULT_MAX_ATTEMPTS, DEFAULT_POLL_INTERVAL
    from ec2clone.session_utils import create_ec2_client
except ImportError as e:
    if "boto" in str(e):
        print("ERRO: Lib boto3 é necessária para a execução. Instale com: pip install boto3")
    else:
        print(f"ERRO: {e}")
    sys.exit(1)


def clone_name_type(value):
    try:
        return validate_clone_name(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"nome inválido '{value}': {e}")


def positive_int(value):
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError(f"deve ser maior que zero: {value}")
    return number


def non_negative_float(value):
    number = float(value)
    if number < 0:
        raise argparse.ArgumentTypeError(f"não pode ser negativo: {value}")
    return number


def build_parser():
    parser = argparse.ArgumentParser(
        description='Clona uma instância EC2: snapshots dos volumes, nova AMI e nova instância',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Exemplos:
  # Clona a instância usando as credenciais e região padrão
  %(prog)s i-0123456789abcdef0 WebServer

  # Clona a instância usando um perfil e região específicos
  %(prog)s i-0123456789abcdef0 WebServer --profile dev --region us-east-1

  # Para a instância antes dos snapshots e copia as tags dela para o clone
  %(prog)s i-0123456789abcdef0 WebServer --stop-source --copy-tags
        """
    )

    parser.add_argument('instance_id',
                        help='ID da instância a ser clonada (ex: i-0123456789abcdef0)')
    parser.add_argument('clone_name', type=clone_name_type,
                        help='Nome dos snapshots e base do nome da AMI/instância (<nome>_AAMMDD_HHMMSS)')
    parser.add_argument('--profile',
                        help='Nome do perfil AWS (padrão: credenciais padrão do ambiente)')
    parser.add_argument('--region',
                        help='Região AWS da instância (padrão: região do perfil/ambiente)')
    parser.add_argument('--poll-interval', type=non_negative_float, default=DEFAULT_POLL_INTERVAL,
                        help=f'Segundos entre as consultas de status (padrão: {DEFAULT_POLL_INTERVAL})')
    parser.add_argument('--max-attempts', type=positive_int, default=DEFAULT_MAX_ATTEMPTS,
                        help=f'Consultas de status antes de desistir (padrão: {DEFAULT_MAX_ATTEMPTS})')
    parser.add_argument('--stop-source', action='store_true',
                        help='Para a instância original antes dos snapshots')
    parser.add_argument('--copy-tags', action='store_true',
                        help='Copia as tags da instância original para o clone')
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)

    try:
        # Configurar sessão AWS
        ec2_client = create_ec2_client(args.profile, args.region)

        # Clonar a instância
        result = clone_instance(
            ec2_client,
            args.instance_id,
            args.clone_name,
            stop_source=args.stop_source,
            copy_tags=args.copy_tags,
            poll_interval=args.poll_interval,
            max_attempts=args.max_attempts
        )
    except ClientError as e:
        error = e.response.get('Error', {})
        print(f"ERRO: Falha ao clonar instância: {error.get('Code')} - {error.get('Message')}")
        sys.exit(1)
    except Exception as e:
        print(f"ERRO: Falha ao clonar instância: {e}")
        sys.exit(1)

    print(f"\n✨ Clonagem concluída com sucesso! Nova instância: {result['new_instance_id']} ✨")
    return result


if __name__ == "__main__":
    main()
