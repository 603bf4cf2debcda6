from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import httpx

from .errors import LedgerUnavailable

log = logging.getLogger(__name__)


class RpcClient:
    """Minimal read-only Solana JSON-RPC client."""

    def __init__(
        self,
        rpc_url: str,
        timeout_s: float = 60.0,
        commitment: str = "confirmed",
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.rpc_url = rpc_url
        self.commitment = commitment
        self.client = httpx.Client(timeout=timeout_s, transport=transport)

    def close(self) -> None:
        self.client.close()

    def __enter__(self) -> "RpcClient":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    def _post(self, method: str, params: List[Any]) -> Dict[str, Any]:
        payload = {
            "jsonrpc": "2.0",
            "id": 1,
            "method": method,
            "params": params,
        }
        log.debug("RPC %s %s", method, params)
        try:
            resp = self.client.post(self.rpc_url, json=payload)
            resp.raise_for_status()
            data = resp.json()
        except (httpx.HTTPError, ValueError) as e:
            raise LedgerUnavailable(f"RPC {method} failed: {e}") from e
        if not isinstance(data, dict):
            raise LedgerUnavailable(f"RPC {method} returned a non-object reply")
        if "error" in data:
            raise LedgerUnavailable(f"RPC error: {data['error']}")
        return data

    def get_balance(self, address: str) -> int:
        """Returns the balance of `address` in lamports."""
        data = self._post("getBalance", [address, {"commitment": self.commitment}])
        try:
            return int(data["result"]["value"])
        except (KeyError, TypeError, ValueError) as e:
            raise LedgerUnavailable(f"getBalance returned malformed result: {e}") from e

    def get_token_accounts_by_owner(self, owner: str, mint: str) -> List[Dict[str, Any]]:
        """
        Returns the parsed token accounts of `owner` for `mint`.
        Each item is the `account.data.parsed.info` object of the RPC reply.
        """
        data = self._post(
            "getTokenAccountsByOwner",
            [
                owner,
                {"mint": mint},
                {"encoding": "jsonParsed", "commitment": self.commitment},
            ],
        )
        result = data.get("result") or {}
        out: List[Dict[str, Any]] = []
        for item in result.get("value", []):
            info = (
                item.get("account", {})
                .get("data", {})
                .get("parsed", {})
                .get("info")
            )
            if isinstance(info, dict):
                out.append(info)
        return out

    def get_latest_blockhash(self) -> str:
        data = self._post("getLatestBlockhash", [{"commitment": self.commitment}])
        value = (data.get("result") or {}).get("value") or {}
        blockhash = value.get("blockhash")
        if not isinstance(blockhash, str) or not blockhash:
            raise LedgerUnavailable("getLatestBlockhash returned no blockhash.")
        return blockhash

    def get_fee_for_message(self, message_b64: str) -> Optional[int]:
        """Fee in lamports for a base64 message, or None if the node can't price it."""
        data = self._post(
            "getFeeForMessage", [message_b64, {"commitment": self.commitment}]
        )
        value = (data.get("result") or {}).get("value")
        return None if value is None else int(value)

    def get_signature_status(self, signature: str) -> Optional[Dict[str, Any]]:
        data = self._post(
            "getSignatureStatuses",
            [[signature], {"searchTransactionHistory": True}],
        )
        statuses = (data.get("result") or {}).get("value") or [None]
        return statuses[0]

    def get_slot(self, commitment: str = "finalized") -> int:
        """Returns the current slot."""
        data = self._post("getSlot", [{"commitment": commitment}])
        return int(data["result"])

    def get_supply(self) -> Dict[str, int]:
        data = self._post(
            "getSupply",
            [{"commitment": self.commitment, "excludeNonCirculatingAccountsList": True}],
        )
        value = data["result"]["value"]
        return {"total": int(value["total"]), "circulating": int(value["circulating"])}

    def get_recent_performance_samples(self, limit: int = 1) -> List[Dict[str, Any]]:
        data = self._post("getRecentPerformanceSamples", [limit])
        return list(data.get("result") or [])
