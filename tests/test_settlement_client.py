"""
Tests for the Escrow Settlement Service HTTP client.
"""
import uuid
from decimal import Decimal
from unittest.mock import Mock

import pytest
import requests

from core.exceptions import EscrowServiceError
from payments.services.settlement_client import EscrowSettlementClient


def _response(status_code=200, body=None, reason='OK'):
    response = Mock()
    response.status_code = status_code
    response.reason = reason
    response.text = str(body)
    if isinstance(body, Exception):
        response.json.side_effect = body
    else:
        response.json.return_value = body
    return response


@pytest.fixture
def session():
    return Mock()


@pytest.fixture
def client(session):
    return EscrowSettlementClient(
        base_url='https://escrow.test/api/',
        api_key='secret',
        timeout=3,
        session=session,
    )


class TestLock:

    def test_success(self, client, session):
        session.post.return_value = _response(body={'escrowReference': 'esc-123'})

        assert client.lock(Decimal('25.5'), 'ref-1') == 'esc-123'

        session.post.assert_called_once_with(
            'https://escrow.test/api/escrow/lock',
            json={'amount': '25.5', 'reference': 'ref-1'},
            headers={'Authorization': 'Bearer secret', 'Content-Type': 'application/json'},
            timeout=3,
        )

    def test_missing_reference(self, client, session):
        session.post.return_value = _response(body={'status': 'ok'})

        with pytest.raises(EscrowServiceError, match='escrow reference'):
            client.lock(Decimal('1'), 'ref-2')


class TestRelease:

    def test_success(self, client, session):
        session.post.return_value = _response(body={'tx_hash': 'abc'})

        assert client.release('esc-123', 1) == 'abc'
        _, kwargs = session.post.call_args
        assert kwargs['json'] == {'escrowReference': 'esc-123', 'milestoneIndex': 1}

    def test_missing_hash(self, client, session):
        session.post.return_value = _response(body={})

        with pytest.raises(EscrowServiceError):
            client.release('esc-123', 0)


class TestFailures:

    def test_timeout_is_retryable(self, client, session):
        session.post.side_effect = requests.exceptions.Timeout()

        with pytest.raises(EscrowServiceError) as excinfo:
            client.lock(Decimal('1'), 'ref')

        assert excinfo.value.retryable
        assert excinfo.value.status_code == 502

    def test_connection_error(self, client, session):
        session.post.side_effect = requests.exceptions.ConnectionError('refused')

        with pytest.raises(EscrowServiceError, match='Unable to reach'):
            client.release('esc', 0)

    def test_server_error_is_retryable(self, client, session):
        session.post.return_value = _response(503, {'message': 'maintenance'}, reason='Service Unavailable')

        with pytest.raises(EscrowServiceError, match='maintenance') as excinfo:
            client.lock(Decimal('1'), 'ref')

        assert excinfo.value.retryable

    def test_client_error_is_not_retryable(self, client, session):
        session.post.return_value = _response(400, ValueError('no json'), reason='Bad Request')

        with pytest.raises(EscrowServiceError, match='Bad Request') as excinfo:
            client.lock(Decimal('1'), 'ref')

        assert not excinfo.value.retryable

    def test_non_json_success_body(self, client, session):
        session.post.return_value = _response(200, ValueError('html'))

        with pytest.raises(EscrowServiceError, match='invalid response'):
            client.release('esc', 0)

    @pytest.mark.parametrize('body', [['escrow-1'], 'escrow-1', None])
    def test_success_body_that_is_not_an_object(self, client, session, body):
        session.post.return_value = _response(200, body)

        with pytest.raises(EscrowServiceError, match='invalid response'):
            client.lock(Decimal('1'), 'ref')

    def test_error_body_that_is_not_an_object(self, client, session):
        session.post.return_value = _response(422, ['amount must be positive'], reason='Unprocessable Entity')

        with pytest.raises(EscrowServiceError, match='Unprocessable Entity') as excinfo:
            client.release('esc', 0)

        assert not excinfo.value.retryable


class TestDefaults:

    def test_settings_are_used(self, settings):
        settings.ESCROW_SERVICE_URL = 'https://settings.test/'
        settings.ESCROW_SERVICE_API_KEY = 'from-settings'
        settings.ESCROW_SERVICE_TIMEOUT = 7.5

        client = EscrowSettlementClient(session=Mock())

        assert client.base_url == 'https://settings.test'
        assert client.api_key == 'from-settings'
        assert client.timeout == 7.5

    def test_provision_contract_is_deterministic(self, settings):
        settings.ESCROW_CONTRACT_PREFIX = 'contract-'
        campaign = Mock(pk=uuid.UUID(int=1))

        ref = EscrowSettlementClient(session=Mock()).provision_contract(campaign)

        assert ref == f'contract-{uuid.UUID(int=1).hex}'
