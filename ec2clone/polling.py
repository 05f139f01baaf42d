#!/usr/bin/env python3
import sys
import time

from botocore.exceptions import ClientError

DEFAULT_POLL_INTERVAL = 5
DEFAULT_MAX_ATTEMPTS = 720

# Leituras do EC2 são eventualmente consistentes: um recurso recém criado pode
# responder NotFound por alguns segundos
NOT_FOUND_RETRIES = 10


def is_not_found(error):
    return error.response.get('Error', {}).get('Code', '').endswith('.NotFound')


def call_with_not_found_retry(call, label, interval=DEFAULT_POLL_INTERVAL, max_attempts=NOT_FOUND_RETRIES):
    """
    Executa call() repetindo enquanto o EC2 ainda não enxerga o recurso
    """
    for attempt in range(1, max_attempts + 1):
        try:
            return call()
        except ClientError as e:
            if not is_not_found(e) or attempt == max_attempts:
                raise
            print(f"⏳ {label} ainda não visível na API, tentando novamente...")
            time.sleep(interval)


def wait_for_state(get_state, label, target_state, interval=DEFAULT_POLL_INTERVAL,
                   max_attempts=DEFAULT_MAX_ATTEMPTS, failure_states=()):
    """
    Consulta o estado de um recurso até ele chegar em target_state.

    get_state é chamado sem argumentos e deve devolver o estado atual (string).
    Encerra o script se o recurso cair em um dos failure_states ou se as
    tentativas acabarem.
    """
    state = None
    for attempt in range(1, max_attempts + 1):
        state = get_state()
        print(f"{label} Status: {state}")

        if state == target_state:
            return state

        if state in failure_states:
            print(f"❌ ERRO: {label} entrou no estado '{state}'")
            sys.exit(1)

        # Não dorme depois da última tentativa
        if attempt < max_attempts:
            time.sleep(interval)

    print(f"❌ ERRO: Tempo esgotado aguardando {label} ficar '{target_state}' "
          f"(último estado: {state}, {max_attempts} tentativas)")
    sys.exit(1)
