"""Shared fixtures for fee router tests."""

import json

import base58
import httpx
import pytest

from fee_router.rpc import RpcClient


def make_address(seed: int) -> str:
    return base58.b58encode(bytes([seed]) * 32).decode("ascii")


PAYER = make_address(1)
MM_WALLET = make_address(2)
BUYBACK_WALLET = make_address(3)
LIQUIDITY_WALLET = make_address(4)
REVENUE_WALLET = make_address(5)
BLOCKHASH = make_address(9)
MINT = make_address(7)


class FakeLedger:
    """Stands in for RpcClient where only the blockhash is needed."""

    def __init__(self, blockhash=BLOCKHASH, error=None):
        self.blockhash = blockhash
        self.error = error
        self.calls = 0

    def get_latest_blockhash(self):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.blockhash


@pytest.fixture()
def fake_ledger():
    return FakeLedger()


@pytest.fixture()
def rpc_factory():
    """
    Builds an RpcClient backed by httpx.MockTransport.

    `results` maps RPC method -> result object, or -> callable(params)
    returning a full JSON-RPC reply dict or an httpx.Response.
    Every request is appended to `client.requests`.
    """
    clients = []

    def make(results):
        requests = []

        def handler(request):
            body = json.loads(request.content)
            requests.append(body)
            method = body["method"]
            if method not in results:
                return httpx.Response(200, json={"jsonrpc": "2.0", "id": 1, "error": {"code": -32601, "message": "Method not found"}})
            r = results[method]
            if callable(r):
                out = r(body["params"])
                if isinstance(out, httpx.Response):
                    return out
                return httpx.Response(200, json=out)
            return httpx.Response(200, json={"jsonrpc": "2.0", "id": 1, "result": r})

        client = RpcClient("http://rpc.test", transport=httpx.MockTransport(handler))
        client.requests = requests
        clients.append(client)
        return client

    yield make
    for c in clients:
        c.close()
