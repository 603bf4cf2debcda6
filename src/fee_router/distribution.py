from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from decimal import ROUND_FLOOR, Decimal, InvalidOperation, localcontext
from typing import Any, Dict, Optional

import httpx

from .addresses import decode_address, validate_address
from .config import Settings
from .errors import InvalidAddress, InvalidDestination, InvalidInput
from .project_constants import CHANNELS, LAMPORTS_PER_SOL
from .rpc import RpcClient
from .transaction import UnsignedTransaction, transfer_instruction

log = logging.getLogger(__name__)

HUNDRED = Decimal(100)

# Weight sums up to 100 + WEIGHT_TOLERANCE are treated as rounding of 100.
WEIGHT_TOLERANCE = Decimal("0.1")

MAX_LAMPORTS = 0xFFFFFFFFFFFFFFFF

_WIRE_NAMES = {
    "market_making": "marketMaking",
    "buyback": "buyback",
    "liquidity": "liquidity",
    "revenue": "revenue",
}


@dataclass(frozen=True)
class AllocationSet:
    """Percentage weight per channel. Not normalised."""

    market_making: float = 0.0
    buyback: float = 0.0
    liquidity: float = 0.0
    revenue: float = 0.0

    @staticmethod
    def default() -> "AllocationSet":
        return AllocationSet(25.0, 25.0, 25.0, 25.0)

    @staticmethod
    def from_dict(d: Dict[str, Any]) -> "AllocationSet":
        return AllocationSet(
            **{ch: d.get(ch, d.get(_WIRE_NAMES[ch], 0.0)) or 0.0 for ch in CHANNELS}
        )


@dataclass(frozen=True)
class DestinationSet:
    """Destination wallet per channel; "" means not configured."""

    market_making: str = ""
    buyback: str = ""
    liquidity: str = ""
    revenue: str = ""

    @staticmethod
    def from_dict(d: Dict[str, Any]) -> "DestinationSet":
        return DestinationSet(
            **{ch: d.get(ch, d.get(_WIRE_NAMES[ch], "")) or "" for ch in CHANNELS}
        )


@dataclass(frozen=True)
class DistributionBreakdown:
    """Per-channel amounts in SOL that the transaction actually moves."""

    market_making: float = 0.0
    buyback: float = 0.0
    liquidity: float = 0.0
    revenue: float = 0.0

    def to_dict(self) -> Dict[str, float]:
        return {_WIRE_NAMES[ch]: getattr(self, ch) for ch in CHANNELS}


@dataclass(frozen=True)
class DistributionResult:
    breakdown: DistributionBreakdown
    lamports: Dict[str, int]
    transaction: UnsignedTransaction

    @property
    def unsigned_transaction(self) -> str:
        return self.transaction.to_base58()

    def total(self) -> float:
        """SOL moved by the transaction, summed in whole lamports."""
        return sum(self.lamports.values()) / LAMPORTS_PER_SOL

    def to_dict(self, encoding: str = "base58") -> Dict[str, Any]:
        if encoding == "base58":
            encoded = self.transaction.to_base58()
        elif encoding == "base64":
            encoded = self.transaction.to_base64()
        else:
            raise InvalidInput(f"Unknown transaction encoding: {encoding!r}")
        return {
            "transaction": encoded,
            "breakdown": self.breakdown.to_dict(),
        }


def _to_decimal(value: Any, name: str) -> Decimal:
    if isinstance(value, bool):
        raise InvalidInput(f"{name} must be a number, got {value!r}")
    try:
        # str() first so 0.1 stays 0.1 rather than its binary expansion.
        d = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise InvalidInput(f"{name} must be a number, got {value!r}")
    if not d.is_finite():
        raise InvalidInput(f"{name} must be finite, got {value!r}")
    if d < 0:
        raise InvalidInput(f"{name} must not be negative, got {value!r}")
    return d


def split_lamports(total_amount: Any, allocations: AllocationSet) -> Dict[str, int]:
    """
    Floors each channel's share of `total_amount` SOL to whole lamports.
    The shares never add up to more than the total.

    Weights may sum to less than 100; the rest is left unallocated. Sums up
    to WEIGHT_TOLERANCE over 100 are accepted as percentage-entry rounding,
    and the lamports above the total are taken back from the last funded
    channels.
    """
    amount = _to_decimal(total_amount, "total_amount")
    weights = {ch: _to_decimal(getattr(allocations, ch), ch) for ch in CHANNELS}

    with localcontext() as ctx:
        ctx.prec = 60
        weight_sum = sum(weights.values())
        if weight_sum > HUNDRED + WEIGHT_TOLERANCE:
            raise InvalidInput(
                f"Allocation weights sum to {weight_sum}%, more than 100%"
            )
        base_units = amount * LAMPORTS_PER_SOL
        available = int(base_units.to_integral_value(rounding=ROUND_FLOOR))
        lamports = {
            ch: int((base_units * w / HUNDRED).to_integral_value(rounding=ROUND_FLOOR))
            for ch, w in weights.items()
        }

    excess = sum(lamports.values()) - available
    for ch in reversed(CHANNELS):
        if excess <= 0:
            break
        take = min(excess, lamports[ch])
        lamports[ch] -= take
        excess -= take

    for ch, value in lamports.items():
        if value > MAX_LAMPORTS:
            raise InvalidInput(
                f"{ch} share of {total_amount} SOL exceeds the lamport range"
            )
    return lamports


def effective_allocations(allocations: AllocationSet, destinations: DestinationSet) -> AllocationSet:
    """Zeroes the weight of every channel with no destination configured."""
    return replace(
        allocations,
        **{ch: 0.0 for ch in CHANNELS if not getattr(destinations, ch)},
    )


def has_funded_channel(allocations: AllocationSet, destinations: DestinationSet) -> bool:
    return any(
        (getattr(allocations, ch) or 0) > 0 and getattr(destinations, ch)
        for ch in CHANNELS
    )


def plan_distribution(allocations: AllocationSet, destinations: DestinationSet) -> AllocationSet:
    if not has_funded_channel(allocations, destinations):
        raise InvalidInput(
            "Configure at least one destination wallet for a channel with allocation > 0%"
        )
    return effective_allocations(allocations, destinations)


class DistributionBuilder:
    """Turns an amount and a fee split into an unsigned transfer transaction."""

    def __init__(self, rpc: RpcClient) -> None:
        self.rpc = rpc

    def build(
        self,
        from_wallet: str,
        allocations: AllocationSet,
        total_amount: float,
        destinations: DestinationSet,
        recent_blockhash: Optional[str] = None,
    ) -> DistributionResult:
        decode_address(from_wallet)
        lamports = split_lamports(total_amount, allocations)

        instructions = []
        for ch in CHANNELS:
            if lamports[ch] <= 0:
                continue
            dest = getattr(destinations, ch)
            try:
                decode_address(dest)
            except InvalidAddress:
                raise InvalidDestination(ch, dest)
            instructions.append(transfer_instruction(from_wallet, dest, lamports[ch]))

        if recent_blockhash is None:
            recent_blockhash = self.rpc.get_latest_blockhash()
        elif not validate_address(recent_blockhash):
            raise InvalidInput(f"Invalid recent blockhash: {recent_blockhash!r}")

        tx = UnsignedTransaction(
            fee_payer=from_wallet,
            recent_blockhash=recent_blockhash,
            instructions=tuple(instructions),
        )
        breakdown = DistributionBreakdown(
            **{ch: lamports[ch] / LAMPORTS_PER_SOL for ch in CHANNELS}
        )
        log.info(
            "Built distribution from %s: %d transfers, %d lamports",
            from_wallet,
            len(instructions),
            sum(lamports.values()),
        )
        return DistributionResult(breakdown=breakdown, lamports=lamports, transaction=tx)


def build_distribution(
    from_wallet: str,
    allocations: AllocationSet,
    total_amount: float,
    destinations: DestinationSet,
    settings: Settings | None = None,
    transport: Optional[httpx.BaseTransport] = None,
) -> DistributionResult:
    """
    One-shot build with its own RPC client. Channels without a configured
    destination are skipped; at least one funded channel must remain.
    """
    allocations = plan_distribution(allocations, destinations)
    settings = settings or Settings.from_env()
    with RpcClient(settings.rpc_url, transport=transport) as rpc:
        return DistributionBuilder(rpc).build(
            from_wallet, allocations, total_amount, destinations
        )
