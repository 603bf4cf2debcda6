from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional

import httpx

from .balances import BalanceReader
from .config import GateConfig, Settings
from .price import PriceOracle
from .rpc import RpcClient

log = logging.getLogger(__name__)

WHITELISTED_REASON = "Whitelisted address"
SUFFICIENT_REASON = "Sufficient token holdings"
FAILED_REASON = "Failed to verify token holdings. Please try again."


@dataclass(frozen=True)
class TokenGateResult:
    allowed: bool
    reason: str
    token_balance: float
    token_price_usd: float
    value_usd: float
    min_required: float
    is_whitelisted: bool

    def to_dict(self) -> Dict[str, Any]:
        """Wire form used by the web layer (camelCase keys)."""
        d = asdict(self)
        return {
            "allowed": d["allowed"],
            "reason": d["reason"],
            "tokenBalance": d["token_balance"],
            "tokenPriceUsd": d["token_price_usd"],
            "valueUsd": d["value_usd"],
            "minRequired": d["min_required"],
            "isWhitelisted": d["is_whitelisted"],
        }


class TokenGate:
    """
    Decides whether a wallet may use gated features.

    Access requires holdings of the configured token worth at least
    `config.min_usd_value` USD. Whitelisted wallets pass without any
    network call. Every lookup failure results in a denial; `check`
    never raises.
    """

    def __init__(
        self,
        balances: BalanceReader,
        oracle: PriceOracle,
        config: GateConfig | None = None,
    ) -> None:
        self.balances = balances
        self.oracle = oracle
        self.config = config or GateConfig()

    @property
    def token_mint(self) -> str:
        return self.config.token_mint

    @property
    def min_required(self) -> float:
        return self.config.min_usd_value

    def is_whitelisted(self, wallet_address: str) -> bool:
        return wallet_address in self.config.whitelist

    def denial_reason(self) -> str:
        return (
            f"Need at least ${self.min_required:g} worth of "
            f"${self.config.token_symbol} tokens"
        )

    def check(self, wallet_address: str) -> TokenGateResult:
        if self.is_whitelisted(wallet_address):
            return TokenGateResult(
                allowed=True,
                reason=WHITELISTED_REASON,
                token_balance=0.0,
                token_price_usd=0.0,
                value_usd=0.0,
                min_required=self.min_required,
                is_whitelisted=True,
            )

        mint = self.config.token_mint
        # Both lookups must finish before the verdict.
        with ThreadPoolExecutor(max_workers=2) as pool:
            balance_f = pool.submit(self.balances.get_token_balance, wallet_address, mint)
            price_f = pool.submit(self.oracle.get_usd_price, mint)
            try:
                token_balance = float(balance_f.result())
                token_price_usd = float(price_f.result())
            except Exception:
                log.exception("Token gate check failed for %s", wallet_address)
                return self._failed()

        value_usd = token_balance * token_price_usd
        allowed = value_usd >= self.min_required
        log.info(
            "Token gate %s: balance=%s price=%s value=%s allowed=%s",
            wallet_address,
            token_balance,
            token_price_usd,
            value_usd,
            allowed,
        )
        return TokenGateResult(
            allowed=allowed,
            reason=SUFFICIENT_REASON if allowed else self.denial_reason(),
            token_balance=token_balance,
            token_price_usd=token_price_usd,
            value_usd=value_usd,
            min_required=self.min_required,
            is_whitelisted=False,
        )

    def _failed(self) -> TokenGateResult:
        return TokenGateResult(
            allowed=False,
            reason=FAILED_REASON,
            token_balance=0.0,
            token_price_usd=0.0,
            value_usd=0.0,
            min_required=self.min_required,
            is_whitelisted=False,
        )


def check_token_gate(
    wallet_address: str,
    settings: Settings | None = None,
    config: GateConfig | None = None,
    timeout_s: float = 60.0,
    transport: Optional[httpx.BaseTransport] = None,
) -> TokenGateResult:
    """One-shot gate check with its own RPC and price clients."""
    settings = settings or Settings.from_env()
    rpc = RpcClient(settings.rpc_url, timeout_s=timeout_s, transport=transport)
    oracle = PriceOracle(settings.price_api_url, timeout_s=timeout_s, transport=transport)
    try:
        return TokenGate(BalanceReader(rpc), oracle, config).check(wallet_address)
    finally:
        oracle.close()
        rpc.close()
