from __future__ import annotations

import base58

from .errors import InvalidAddress

PUBKEY_LENGTH = 32


def decode_address(address: str) -> bytes:
    """Base58 account id -> 32 raw bytes. Raises InvalidAddress otherwise."""
    if not isinstance(address, str) or not address:
        raise InvalidAddress(f"Invalid wallet address: {address!r}")
    try:
        raw = base58.b58decode(address)
    except ValueError:
        raise InvalidAddress(f"Invalid wallet address: {address!r}")
    if len(raw) != PUBKEY_LENGTH:
        raise InvalidAddress(f"Invalid wallet address: {address!r}")
    return raw


def validate_address(address: str) -> bool:
    try:
        decode_address(address)
    except InvalidAddress:
        return False
    return True
