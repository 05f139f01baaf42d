import pytest
from botocore.exceptions import ClientError

from ec2clone.polling import call_with_not_found_retry, wait_for_state


def make_state_source(states):
    remaining = list(states)

    def get_state():
        return remaining.pop(0)
    return get_state


def test_wait_for_state_returns_when_target_reached(no_sleep, capsys):
    state = wait_for_state(make_state_source(['pending', 'pending', 'completed']),
                           'Snapshot: snap-1', 'completed', interval=5, max_attempts=10)

    assert state == 'completed'
    assert no_sleep == [5, 5]
    out = capsys.readouterr().out
    assert 'Snapshot: snap-1 Status: pending' in out
    assert 'Snapshot: snap-1 Status: completed' in out


def test_wait_for_state_does_not_sleep_when_already_done(no_sleep):
    wait_for_state(make_state_source(['running']), 'Instância: i-1', 'running')
    assert no_sleep == []


def test_wait_for_state_exits_on_failure_state(no_sleep, capsys):
    with pytest.raises(SystemExit) as excinfo:
        wait_for_state(make_state_source(['pending', 'error']), 'Snapshot: snap-1', 'completed',
                       failure_states=('error',))

    assert excinfo.value.code == 1
    assert "entrou no estado 'error'" in capsys.readouterr().out


def test_wait_for_state_times_out(no_sleep, capsys):
    with pytest.raises(SystemExit) as excinfo:
        wait_for_state(make_state_source(['pending'] * 3), 'AMI: ami-1', 'available',
                       interval=1, max_attempts=3)

    assert excinfo.value.code == 1
    # Sem sleep depois da última tentativa
    assert no_sleep == [1, 1]
    assert 'Tempo esgotado' in capsys.readouterr().out


def make_call(outcomes):
    remaining = list(outcomes)

    def call():
        outcome = remaining.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome
    return call


def client_error(code):
    return ClientError({'Error': {'Code': code, 'Message': code}}, 'CreateTags')


def test_call_with_not_found_retry_retries_until_visible(no_sleep):
    call = make_call([client_error('InvalidAMIID.NotFound'), client_error('InvalidAMIID.NotFound'), 'ok'])

    assert call_with_not_found_retry(call, 'AMI ami-1', interval=3) == 'ok'
    assert no_sleep == [3, 3]


def test_call_with_not_found_retry_raises_other_errors(no_sleep):
    call = make_call([client_error('UnauthorizedOperation'), 'ok'])

    with pytest.raises(ClientError):
        call_with_not_found_retry(call, 'AMI ami-1')
    assert no_sleep == []


def test_call_with_not_found_retry_gives_up(no_sleep):
    call = make_call([client_error('InvalidAMIID.NotFound')] * 2)

    with pytest.raises(ClientError):
        call_with_not_found_retry(call, 'AMI ami-1', interval=1, max_attempts=2)
    assert no_sleep == [1]
