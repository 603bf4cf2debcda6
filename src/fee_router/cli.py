from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Any

from .addresses import validate_address
from .balances import BalanceReader
from .config import GateConfig, Settings
from .distribution import (
    AllocationSet,
    DestinationSet,
    DistributionBuilder,
    plan_distribution,
)
from .errors import FeeRouterError
from .gate import check_token_gate
from .ledger import confirm_transaction, estimate_fee, network_stats
from .price import PriceOracle
from .rpc import RpcClient


def setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="%(levelname)s: %(message)s")


def _emit(obj: Any) -> None:
    print(json.dumps(obj, indent=2))


def _rpc(args: argparse.Namespace) -> RpcClient:
    settings = Settings.from_env(rpc_url_override=args.rpc_url)
    return RpcClient(settings.rpc_url, timeout_s=args.timeout)


def cmd_gate(args: argparse.Namespace) -> int:
    settings = Settings.from_env(rpc_url_override=args.rpc_url)
    result = check_token_gate(
        args.wallet, settings, GateConfig.from_env(), timeout_s=args.timeout
    )
    _emit(result.to_dict())
    return 0 if result.allowed else 2


def cmd_balance(args: argparse.Namespace) -> int:
    with _rpc(args) as rpc:
        balance = BalanceReader(rpc).get_native_balance(args.wallet)
    _emit({"balance": balance, "walletAddress": args.wallet})
    return 0


def cmd_token_balance(args: argparse.Namespace) -> int:
    mint = args.mint or GateConfig.from_env().token_mint
    with _rpc(args) as rpc:
        balance = BalanceReader(rpc).get_token_balance(args.wallet, mint)
    _emit({"balance": balance, "walletAddress": args.wallet, "mint": mint})
    return 0


def cmd_price(args: argparse.Namespace) -> int:
    settings = Settings.from_env(rpc_url_override=args.rpc_url)
    mint = args.mint or GateConfig.from_env().token_mint
    oracle = PriceOracle(settings.price_api_url, timeout_s=args.timeout)
    try:
        price = oracle.get_usd_price(mint)
    finally:
        oracle.close()
    _emit({"mint": mint, "priceUsd": price})
    return 0


def cmd_distribute(args: argparse.Namespace) -> int:
    allocations = AllocationSet(
        market_making=args.market_making,
        buyback=args.buyback,
        liquidity=args.liquidity,
        revenue=args.revenue,
    )
    destinations = DestinationSet(
        market_making=args.market_making_wallet or "",
        buyback=args.buyback_wallet or "",
        liquidity=args.liquidity_wallet or "",
        revenue=args.revenue_wallet or "",
    )
    if args.skip_unconfigured:
        allocations = plan_distribution(allocations, destinations)

    with _rpc(args) as rpc:
        result = DistributionBuilder(rpc).build(
            args.from_wallet,
            allocations,
            args.amount,
            destinations,
            recent_blockhash=args.blockhash,
        )
    _emit(result.to_dict(encoding=args.encoding))
    return 0


def cmd_estimate_fee(args: argparse.Namespace) -> int:
    with _rpc(args) as rpc:
        fee = estimate_fee(rpc, args.transaction)
    _emit({"fee": fee})
    return 0


def cmd_confirm(args: argparse.Namespace) -> int:
    with _rpc(args) as rpc:
        confirmed = confirm_transaction(rpc, args.signature)
    _emit({"signature": args.signature, "confirmed": confirmed})
    return 0 if confirmed else 2


def cmd_network_stats(args: argparse.Namespace) -> int:
    with _rpc(args) as rpc:
        stats = network_stats(rpc)
    _emit(stats)
    return 0


def cmd_validate(args: argparse.Namespace) -> int:
    valid = validate_address(args.address)
    _emit({"address": args.address, "valid": valid})
    return 0 if valid else 2


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="fee-router",
        description="Solana fee distribution and token-gate tool.",
    )
    p.add_argument("--verbose", action="store_true", help="Enable debug logging.")
    p.add_argument("--rpc-url", default=None, help="Override RPC URL (else use env).")
    p.add_argument("--timeout", type=float, default=60.0, help="Network timeout seconds.")

    sub = p.add_subparsers(dest="cmd", required=True)

    g = sub.add_parser("gate", help="Check whether a wallet passes the token gate.")
    g.add_argument("wallet")
    g.set_defaults(func=cmd_gate)

    b = sub.add_parser("balance", help="SOL balance of a wallet.")
    b.add_argument("wallet")
    b.set_defaults(func=cmd_balance)

    tb = sub.add_parser("token-balance", help="Token balance of a wallet.")
    tb.add_argument("wallet")
    tb.add_argument("--mint", default=None, help="Token mint (default: gate token).")
    tb.set_defaults(func=cmd_token_balance)

    pr = sub.add_parser("price", help="USD price of a token.")
    pr.add_argument("--mint", default=None, help="Token mint (default: gate token).")
    pr.set_defaults(func=cmd_price)

    d = sub.add_parser(
        "distribute", help="Build an unsigned fee distribution transaction."
    )
    d.add_argument("--from-wallet", required=True, help="Source wallet and fee payer.")
    d.add_argument("--amount", required=True, type=float, help="Total SOL to split.")
    for flag, label in (
        ("market-making", "market making"),
        ("buyback", "buyback"),
        ("liquidity", "liquidity"),
        ("revenue", "revenue"),
    ):
        d.add_argument(f"--{flag}", type=float, default=25.0, help=f"{label} percent.")
        d.add_argument(f"--{flag}-wallet", default=None, help=f"{label} wallet.")
    d.add_argument(
        "--skip-unconfigured",
        action="store_true",
        help="Zero the weight of channels with no wallet instead of failing.",
    )
    d.add_argument(
        "--blockhash",
        default=None,
        help="Use this recent blockhash instead of fetching one.",
    )
    d.add_argument(
        "--encoding",
        choices=("base58", "base64"),
        default="base58",
        help="Encoding of the unsigned transaction.",
    )
    d.set_defaults(func=cmd_distribute)

    ef = sub.add_parser("estimate-fee", help="Fee of a base58 serialized transaction.")
    ef.add_argument("transaction")
    ef.set_defaults(func=cmd_estimate_fee)

    c = sub.add_parser("confirm", help="Check whether a signature is confirmed.")
    c.add_argument("signature")
    c.set_defaults(func=cmd_confirm)

    ns = sub.add_parser("network-stats", help="Slot, supply and TPS.")
    ns.set_defaults(func=cmd_network_stats)

    v = sub.add_parser("validate", help="Check a wallet address.")
    v.add_argument("address")
    v.set_defaults(func=cmd_validate)

    return p


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.verbose)
    try:
        code = args.func(args)
    except FeeRouterError as e:
        print(f"error: {e}", file=sys.stderr)
        code = 1
    raise SystemExit(code)
