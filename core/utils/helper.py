import base64
import binascii
import re
from urllib.parse import urlparse


STELLAR_ACCOUNT_VERSION_BYTE = 6 << 3  # 'G' prefix
SETTLEMENT_TX_PATTERN = re.compile(r'^[0-9a-fA-F]{64}$')


def is_valid_url(url):
    try:
        result = urlparse(url)
        return all([result.scheme, result.netloc])
    except (ValueError, AttributeError):
        return False


def is_valid_stellar_address(address):
    """
    Validates a Stellar ed25519 public key (StrKey, 'G...').

    The key is base32 and carries a version byte, a 32-byte payload
    and a little-endian CRC16-XModem checksum over the first two parts.
    """
    if not isinstance(address, str) or len(address) != 56 or not address.startswith('G'):
        return False
    try:
        raw = base64.b32decode(address)
    except (binascii.Error, ValueError):
        return False
    if len(raw) != 35 or raw[0] != STELLAR_ACCOUNT_VERSION_BYTE:
        return False
    payload, checksum = raw[:-2], raw[-2:]
    return binascii.crc_hqx(payload, 0).to_bytes(2, 'little') == checksum


def is_valid_settlement_tx_id(tx_id):
    """Settlement transaction hashes are 64 hex characters."""
    return isinstance(tx_id, str) and bool(SETTLEMENT_TX_PATTERN.match(tx_id))


def is_reference_list(value):
    return isinstance(value, list) and all(isinstance(item, str) and item.strip() for item in value)


def get_object_or_not_found(queryset, message, **lookup):
    """Fetch one row or raise NotFound; malformed ids count as missing."""
    from django.core.exceptions import ObjectDoesNotExist, ValidationError
    from core.exceptions import NotFound

    try:
        return queryset.get(**lookup)
    except (ObjectDoesNotExist, ValidationError, ValueError):
        raise NotFound(message)
