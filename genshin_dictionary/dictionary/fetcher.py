import logging
import re
from typing import Any, Dict, Optional

import httpx

from genshin_dictionary.config import settings
from genshin_dictionary.dictionary.exceptions import FetchError

logger = logging.getLogger(__name__)

INT64_MIN = -(2 ** 63)
INT64_MAX = 2 ** 63 - 1
DECIMAL_KEY_RE = re.compile(r"-?[0-9]+")


def decode_snapshot(payload: Any, url: str = "") -> Dict[int, str]:
    """
    Turn a decoded TextMap body into {vocabulary_id: translation}.

    Keys must be decimal strings fitting a signed 64-bit integer and values
    must be strings. The payload order is kept.
    """
    if not isinstance(payload, dict):
        raise FetchError(url, f"Expected a JSON object, got {type(payload).__name__}")

    records: Dict[int, str] = {}
    for key, value in payload.items():
        if not isinstance(key, str) or not DECIMAL_KEY_RE.fullmatch(key):
            raise FetchError(url, f"Key {key!r} is not a decimal integer id")
        vocabulary_id = int(key)
        if not INT64_MIN <= vocabulary_id <= INT64_MAX:
            raise FetchError(url, f"Key {key!r} does not fit in 64 bits")
        if not isinstance(value, str):
            raise FetchError(url, f"Value of {key!r} is not a string")
        records[vocabulary_id] = value
    return records


class TextMapFetcher:
    """Downloads one TextMap JSON per call"""

    def __init__(self, client: Optional[httpx.AsyncClient] = None, timeout: Optional[float] = None):
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(
            timeout=timeout or settings.FETCH_TIMEOUT_SECONDS,
            follow_redirects=True,
        )

    async def __aenter__(self) -> "TextMapFetcher":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self.client.aclose()

    async def fetch(self, url: str) -> Dict[int, str]:
        logger.debug("Downloading %s", url)
        try:
            response = await self.client.get(url)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise FetchError(url, f"Source answered HTTP {e.response.status_code}") from e
        except httpx.HTTPError as e:
            raise FetchError(url, f"Transport error: {e!r}") from e

        try:
            payload = response.json()
        except ValueError as e:
            raise FetchError(url, f"Body is not valid JSON: {e}") from e

        records = decode_snapshot(payload, url)
        logger.debug("Decoded %d records from %s", len(records), url)
        return records
