from __future__ import annotations

import logging
import math
from typing import Any, Optional

import httpx

from .errors import PriceUnavailable
from .project_constants import DEFAULT_PRICE_API_URL

log = logging.getLogger(__name__)


def _to_price(raw: Any) -> float:
    if isinstance(raw, bool) or raw is None:
        return 0.0
    try:
        if isinstance(raw, (int, float)):
            return float(raw)
        return float(str(raw).strip())
    except (ValueError, OverflowError):
        return 0.0


class PriceOracle:
    """USD quotes from a Jupiter-style price feed."""

    def __init__(
        self,
        price_api_url: str = DEFAULT_PRICE_API_URL,
        timeout_s: float = 15.0,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.price_api_url = price_api_url
        self.client = httpx.Client(timeout=timeout_s, transport=transport)

    def close(self) -> None:
        self.client.close()

    def get_usd_price(self, token_mint: str) -> float:
        """
        Returns the USD price of `token_mint`, or 0.0 when the feed has no
        quote for it or answers with a non-success status.
        Raises PriceUnavailable when the feed can't be reached or its body
        isn't JSON.
        """
        try:
            resp = self.client.get(self.price_api_url, params={"ids": token_mint})
        except httpx.HTTPError as e:
            raise PriceUnavailable(f"Price feed request failed: {e}") from e

        if not resp.is_success:
            log.warning("Price feed error: HTTP %d", resp.status_code)
            return 0.0

        try:
            data = resp.json()
        except ValueError as e:
            raise PriceUnavailable(f"Price feed returned invalid JSON: {e}") from e

        if not isinstance(data, dict):
            raise PriceUnavailable("Price feed returned a non-object body")

        # Jupiter v2 nests quotes under "data"; plain feeds map mint -> quote.
        quotes = data.get("data") if isinstance(data.get("data"), dict) else data
        quote = quotes.get(token_mint)
        if not isinstance(quote, dict):
            log.info("No price quote for %s", token_mint)
            return 0.0

        price = _to_price(quote.get("price"))
        if not math.isfinite(price) or price < 0:
            return 0.0
        return price
