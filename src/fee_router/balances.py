from __future__ import annotations

import logging
from typing import Any, Dict

from .addresses import decode_address
from .errors import LedgerUnavailable
from .project_constants import LAMPORTS_PER_SOL
from .rpc import RpcClient

log = logging.getLogger(__name__)


def ui_amount(info: Dict[str, Any]) -> float:
    """Human-readable amount of one parsed token account (0 when absent)."""
    token_amount = info.get("tokenAmount") or {}
    try:
        ui_str = token_amount.get("uiAmountString")
        if ui_str:
            return float(ui_str)
        ui = token_amount.get("uiAmount")
        if ui:
            return float(ui)
        raw = token_amount.get("amount")
        decimals = token_amount.get("decimals")
        if raw is not None and decimals is not None:
            return int(raw) / (10 ** int(decimals))
    except (AttributeError, TypeError, ValueError, OverflowError) as e:
        raise LedgerUnavailable(f"Malformed token amount {token_amount!r}: {e}") from e
    return 0.0


class BalanceReader:
    def __init__(self, rpc: RpcClient) -> None:
        self.rpc = rpc

    def get_native_balance(self, address: str) -> float:
        """SOL held by `address`."""
        decode_address(address)
        lamports = self.rpc.get_balance(address)
        return lamports / LAMPORTS_PER_SOL

    def get_token_balance(self, address: str, token_mint: str) -> float:
        """
        Total `token_mint` held by `address` across all of its token accounts.
        A wallet with no token account for the mint holds 0.
        """
        decode_address(address)
        decode_address(token_mint)

        accounts = self.rpc.get_token_accounts_by_owner(address, token_mint)
        if not accounts:
            log.debug("No %s token accounts for %s", token_mint, address)
            return 0.0

        total = 0.0
        for info in accounts:
            total += ui_amount(info)
        log.debug("Token balance %s of %s: %s (%d accounts)", address, token_mint, total, len(accounts))
        return total
