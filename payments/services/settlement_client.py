import logging
from decimal import Decimal

import requests
from django.conf import settings

from core.exceptions import EscrowServiceError

logger = logging.getLogger(__name__)


class EscrowSettlementClient:
    """
    HTTP client for the external Escrow Settlement Service.

    Every call carries a bounded timeout. Any transport failure, non-2xx
    response or malformed body is raised as EscrowServiceError so callers
    can leave local state untouched.
    """

    def __init__(self, base_url=None, api_key=None, timeout=None, session=None):
        self.base_url = (base_url or settings.ESCROW_SERVICE_URL).rstrip('/')
        self.api_key = api_key if api_key is not None else settings.ESCROW_SERVICE_API_KEY
        self.timeout = timeout or settings.ESCROW_SERVICE_TIMEOUT
        self.session = session or requests.Session()

    def _post(self, endpoint, data):
        url = f"{self.base_url}{endpoint}"
        headers = {
            'Authorization': f'Bearer {self.api_key}',
            'Content-Type': 'application/json',
        }
        try:
            response = self.session.post(url, json=data, headers=headers, timeout=self.timeout)
        except requests.exceptions.Timeout:
            logger.error(f"Escrow service timed out: POST {endpoint}")
            raise EscrowServiceError("The escrow settlement service timed out. Please retry.")
        except requests.exceptions.RequestException as e:
            logger.error(f"Escrow service request failed: POST {endpoint}: {e}")
            raise EscrowServiceError("Unable to reach the escrow settlement service. Please retry.")

        if response.status_code >= 400:
            try:
                body = response.json()
            except ValueError:
                body = None
            message = body.get('message', response.reason) if isinstance(body, dict) else response.reason
            logger.error(f"Escrow service error {response.status_code} on {endpoint}: {response.text}")
            raise EscrowServiceError(
                f"Escrow settlement rejected the request: {message}",
                retryable=response.status_code >= 500,
            )

        try:
            data = response.json()
        except ValueError:
            data = None
        if not isinstance(data, dict):
            logger.error(f"Escrow service returned a malformed body on {endpoint}: {response.text}")
            raise EscrowServiceError("The escrow settlement service returned an invalid response.")
        return data

    def lock(self, amount, reference):
        """Fund the escrow; returns the settlement-side escrow reference."""
        data = self._post('/escrow/lock', {'amount': str(Decimal(amount)), 'reference': reference})
        escrow_ref = data.get('escrowReference') or data.get('escrow_reference')
        if not escrow_ref:
            raise EscrowServiceError("The escrow settlement service did not return an escrow reference.")
        return escrow_ref

    def release(self, escrow_ref, milestone_index):
        """Release one milestone; returns the settlement transaction hash."""
        data = self._post('/escrow/release', {'escrowReference': escrow_ref, 'milestoneIndex': milestone_index})
        tx_hash = data.get('txHash') or data.get('tx_hash')
        if not tx_hash:
            raise EscrowServiceError("The escrow settlement service did not return a transaction hash.")
        return tx_hash

    def provision_contract(self, campaign):
        # Placeholder until on-chain deployment is wired in; no network call.
        return f"{settings.ESCROW_CONTRACT_PREFIX}{campaign.pk.hex}"
