from __future__ import annotations

import base64
import logging
from typing import Any, Dict

import base58

from .errors import InvalidInput, LedgerUnavailable
from .project_constants import DEFAULT_SIGNATURE_FEE, LAMPORTS_PER_SOL
from .rpc import RpcClient
from .transaction import message_from_wire

log = logging.getLogger(__name__)


def estimate_fee(rpc: RpcClient, serialized_tx: str) -> float:
    """
    Network fee in SOL for a base58 serialized transaction.
    Falls back to one signature fee when the node can't quote the message.
    """
    try:
        raw = base58.b58decode(serialized_tx)
        message = message_from_wire(raw)
    except ValueError as e:
        raise InvalidInput(f"Not a serialized transaction: {e}")

    fee = rpc.get_fee_for_message(base64.b64encode(message).decode("ascii"))
    if fee is None:
        log.warning("Node returned no fee quote; assuming %d lamports", DEFAULT_SIGNATURE_FEE)
        fee = DEFAULT_SIGNATURE_FEE
    return fee / LAMPORTS_PER_SOL


def confirm_transaction(rpc: RpcClient, signature: str) -> bool:
    """True once `signature` is confirmed (or finalized) without error."""
    try:
        status = rpc.get_signature_status(signature)
    except LedgerUnavailable:
        log.exception("Error confirming transaction %s", signature)
        return False
    if not status:
        return False
    if status.get("err") is not None:
        return False
    return status.get("confirmationStatus") in ("confirmed", "finalized")


def network_stats(rpc: RpcClient) -> Dict[str, Any]:
    slot = rpc.get_slot()
    supply = rpc.get_supply()
    samples = rpc.get_recent_performance_samples(1)

    tps = 0.0
    if samples:
        s = samples[0]
        period = s.get("samplePeriodSecs") or 0
        if period:
            tps = s.get("numTransactions", 0) / period

    return {
        "slot": slot,
        "totalSupply": supply["total"] / LAMPORTS_PER_SOL,
        "circulatingSupply": supply["circulating"] / LAMPORTS_PER_SOL,
        "tps": tps,
    }
