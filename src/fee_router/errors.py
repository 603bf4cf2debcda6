from __future__ import annotations


class FeeRouterError(RuntimeError):
    """Base class for every error raised by the fee router."""


class InvalidAddress(FeeRouterError):
    pass


class InvalidDestination(InvalidAddress):
    def __init__(self, channel: str, address: str) -> None:
        super().__init__(f"Invalid destination for {channel}: {address!r}")
        self.channel = channel
        self.address = address


class InvalidInput(FeeRouterError, ValueError):
    pass


class LedgerUnavailable(FeeRouterError):
    pass


class PriceUnavailable(FeeRouterError):
    pass
