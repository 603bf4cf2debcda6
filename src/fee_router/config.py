from __future__ import annotations

import os
from dataclasses import dataclass
from typing import FrozenSet

from dotenv import load_dotenv

from .project_constants import (
    DEFAULT_PRICE_API_URL,
    DEFAULT_RPC_URL,
    MIN_USD_VALUE,
    TOKEN_MINT,
    TOKEN_SYMBOL,
    WHITELISTED_ADDRESSES,
)


@dataclass(frozen=True)
class Settings:
    rpc_url: str
    price_api_url: str = DEFAULT_PRICE_API_URL

    @staticmethod
    def from_env(rpc_url_override: str | None = None) -> "Settings":
        load_dotenv()

        price_api_url = os.getenv("PRICE_API_URL", "").strip() or DEFAULT_PRICE_API_URL

        # If user provides --rpc-url, trust it.
        if rpc_url_override:
            return Settings(rpc_url=rpc_url_override, price_api_url=price_api_url)

        for name in ("SOLANA_RPC_URL", "RPC_URL"):
            env_rpc = os.getenv(name, "").strip()
            if env_rpc:
                return Settings(rpc_url=env_rpc, price_api_url=price_api_url)

        helius_key = os.getenv("HELIUS_API_KEY", "").strip()
        if helius_key:
            return Settings(
                rpc_url=f"https://mainnet.helius-rpc.com/?api-key={helius_key}",
                price_api_url=price_api_url,
            )

        return Settings(rpc_url=DEFAULT_RPC_URL, price_api_url=price_api_url)


@dataclass(frozen=True)
class GateConfig:
    """Token-gate parameters, fixed for the lifetime of a TokenGate."""

    token_mint: str = TOKEN_MINT
    min_usd_value: float = MIN_USD_VALUE
    whitelist: FrozenSet[str] = WHITELISTED_ADDRESSES
    token_symbol: str = TOKEN_SYMBOL

    def __post_init__(self) -> None:
        # Accept any iterable of addresses but always store a frozenset.
        object.__setattr__(self, "whitelist", frozenset(self.whitelist))
        if self.min_usd_value < 0:
            raise ValueError(f"min_usd_value must be >= 0, got {self.min_usd_value}")

    @staticmethod
    def from_env() -> "GateConfig":
        load_dotenv()

        mint = os.getenv("GATE_TOKEN_MINT", "").strip() or TOKEN_MINT
        min_raw = os.getenv("GATE_MIN_USD", "").strip()
        try:
            min_usd = float(min_raw) if min_raw else MIN_USD_VALUE
        except ValueError:
            raise RuntimeError(f"GATE_MIN_USD is not a number: {min_raw!r}")

        wl_raw = os.getenv("GATE_WHITELIST", "").strip()
        if wl_raw:
            whitelist = frozenset(w.strip() for w in wl_raw.split(",") if w.strip())
        else:
            whitelist = WHITELISTED_ADDRESSES

        return GateConfig(token_mint=mint, min_usd_value=min_usd, whitelist=whitelist)
