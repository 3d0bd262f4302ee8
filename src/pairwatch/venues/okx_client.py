"""OKX DEX market data client: signed candle and batched price requests.

OKX returns candle rows NEWEST FIRST as string tuples
``[ts, open, high, low, close, volume, volumeUsd, confirm]``. This client
always hands back ascending Candle lists; callers never reverse.
"""

import json
from urllib.parse import urlencode

import httpx
from pydantic import ValidationError

from pairwatch.config import OkxSettings, is_configured
from pairwatch.exceptions import ConfigurationError, DataShapeError, UpstreamApiError
from pairwatch.logging import get_logger
from pairwatch.models import Candle, MarketData
from pairwatch.venues.base import HttpVenueClient
from pairwatch.venues.signing import signed_headers

logger = get_logger(__name__)

CANDLES_PATH = "/api/v5/dex/market/candles"
PRICE_PATH = "/api/v5/dex/market/price"


class OkxMarketClient(HttpVenueClient):
    """Market Data Client for the OKX DEX API."""

    service_name = "okx"

    def __init__(
        self, settings: OkxSettings, client: httpx.AsyncClient | None = None
    ) -> None:
        super().__init__(settings.base_url, settings.request_timeout, client)
        self._settings = settings

    def _credentials(self) -> tuple[str, str, str]:
        """Return (api_key, secret_key, passphrase) or fail before any I/O."""
        api_key = self._settings.api_key
        secret_key = self._settings.secret_key
        passphrase = self._settings.passphrase
        missing = [
            name
            for name, value in (
                ("OKX_API_KEY", api_key),
                ("OKX_SECRET_KEY", secret_key),
                ("OKX_PASSPHRASE", passphrase),
            )
            if not is_configured(value)
        ]
        if missing:
            raise ConfigurationError(
                f"Missing OKX API credentials: {', '.join(missing)}"
            )
        return (
            api_key.get_secret_value(),
            secret_key.get_secret_value(),
            passphrase.get_secret_value(),
        )

    async def _signed_call(
        self, method: str, request_path: str, body: str = ""
    ) -> list | None:
        """Issue a signed call and unwrap the ``{code, msg, data}`` envelope.

        Returns the ``data`` member, or None when it is missing or not a list.
        """
        api_key, secret_key, passphrase = self._credentials()
        headers = signed_headers(
            api_key, secret_key, passphrase, method, request_path, body
        )
        response = await self._request(
            method, request_path, headers=headers, content=body or None
        )
        payload = self._decode_json(response)
        if not isinstance(payload, dict):
            raise DataShapeError(f"okx returned a non-object envelope: {payload!r:.200}")

        code = str(payload.get("code", ""))
        if code != "0":
            raise UpstreamApiError(self.service_name, code, str(payload.get("msg", "")))

        data = payload.get("data")
        if not isinstance(data, list):
            return None
        return data

    async def fetch_candles(
        self, token_address: str, bar: str, limit: int
    ) -> list[Candle]:
        """Fetch OHLCV candles for a token, returned in ascending time order.

        Args:
            token_address: Token contract (mint) address.
            bar: OKX bar size, e.g. "5m" or "1H".
            limit: Number of candles requested (OKX caps this at 299).
        """
        query = urlencode(
            {
                "chainIndex": self._settings.chain_index,
                "tokenContractAddress": token_address,
                "bar": bar,
                "limit": limit,
            }
        )
        rows = await self._signed_call("GET", f"{CANDLES_PATH}?{query}")
        if not rows:
            return []

        candles = [_parse_candle_row(row) for row in rows]
        candles.sort(key=lambda c: c.timestamp)
        logger.debug(
            "okx_candles_fetched", token=token_address, bar=bar, count=len(candles)
        )
        return candles

    async def fetch_market_snapshot(
        self, token_addresses: list[str]
    ) -> list[MarketData]:
        """Fetch price and market cap for a batch of tokens.

        Batch sizing is the caller's job; OKX accepts roughly 10 per call.
        Returns an empty list when the payload omits the data array.
        """
        if not token_addresses:
            return []

        body = json.dumps(
            [
                {
                    "chainIndex": self._settings.chain_index,
                    "tokenContractAddress": address,
                }
                for address in token_addresses
            ],
            separators=(",", ":"),
        )
        rows = await self._signed_call("POST", PRICE_PATH, body)
        if not rows:
            return []

        try:
            snapshots = [MarketData.model_validate(row) for row in rows]
        except ValidationError as e:
            raise DataShapeError(f"okx price payload has unexpected shape: {e}") from e

        logger.debug(
            "okx_market_snapshot_fetched",
            requested=len(token_addresses),
            received=len(snapshots),
        )
        return snapshots


def _parse_candle_row(row: object) -> Candle:
    """Convert one ``[ts, o, h, l, c, vol, ...]`` string row into a Candle."""
    if not isinstance(row, (list, tuple)) or len(row) < 6:
        raise DataShapeError(f"okx candle row has unexpected shape: {row!r:.200}")
    try:
        return Candle(
            timestamp=int(row[0]),
            open=float(row[1]),
            high=float(row[2]),
            low=float(row[3]),
            close=float(row[4]),
            volume=float(row[5]),
        )
    except (TypeError, ValueError) as e:
        raise DataShapeError(f"okx candle row is not numeric: {row!r:.200}") from e
