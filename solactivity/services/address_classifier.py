# services/address_classifier.py
"""
Wallet vs token classification for Solana addresses.

The authoritative answer comes from the account itself (owner program and
parsed account type). When the lookup fails we fall back to ``wallet`` and say
so with ``confidence="low"``; we never guess from the address text.
"""
from __future__ import annotations

import re

from core.errors import DataSourceError, InvalidAddress
from core.logger import get_logger
from models.activity import AddressClassification
from services.activity_provider import ActivityDataProvider
from services.kind_cache import AccountKindCache

logger = get_logger("address_classifier")

BASE58_ALPHABET = "123456789ABCDEFGHJKLMNPQRSTUVWXYZabcdefghijkmnopqrstuvwxyz"
_BASE58_RE = re.compile(f"^[{BASE58_ALPHABET}]+$")
_BASE58_INDEX = {char: index for index, char in enumerate(BASE58_ALPHABET)}

ADDRESS_MIN_LENGTH = 32
ADDRESS_MAX_LENGTH = 44
ADDRESS_BYTES = 32


def base58_decoded_length(value: str) -> int | None:
    """Number of bytes ``value`` decodes to, or None if it is not base58."""
    if not value or not _BASE58_RE.match(value):
        return None
    number = 0
    for char in value:
        number = number * 58 + _BASE58_INDEX[char]
    leading_zeros = len(value) - len(value.lstrip("1"))
    return leading_zeros + (number.bit_length() + 7) // 8


def validate_address(address: str) -> str:
    address = (address or "").strip()
    if not ADDRESS_MIN_LENGTH <= len(address) <= ADDRESS_MAX_LENGTH:
        raise InvalidAddress(
            f"Address must be {ADDRESS_MIN_LENGTH}-{ADDRESS_MAX_LENGTH} base58 characters, "
            f"got {len(address)}"
        )
    if base58_decoded_length(address) != ADDRESS_BYTES:
        raise InvalidAddress(f"Address {address!r} is not a base58-encoded 32-byte public key")
    return address


async def classify_address(
    address: str,
    provider: ActivityDataProvider,
    cache: AccountKindCache | None = None,
) -> AddressClassification:
    address = validate_address(address)

    if cache is not None:
        cached = cache.get(address)
        if cached is not None:
            return AddressClassification(kind=cached, confidence="high", source="cache")

    try:
        kind = await provider.get_account_kind(address)
    except DataSourceError as exc:
        logger.warning(
            "Account lookup failed, defaulting to wallet",
            address=address,
            error=str(exc),
        )
        return AddressClassification(kind="wallet", confidence="low", source="heuristic")

    if kind is None:
        # Unknown account: nothing on chain to classify against
        return AddressClassification(kind="wallet", confidence="low", source="heuristic")

    if cache is not None:
        cache.put(address, kind)
    return AddressClassification(kind=kind, confidence="high", source="rpc")
