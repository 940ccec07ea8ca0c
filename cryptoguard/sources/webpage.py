import asyncio
import os
from typing import Callable, List, Optional
from urllib.parse import quote

import httpx

from ..errors import FetchError
from ..logging_utils import get_logger

logger = get_logger(__name__)

# tope por intento completo (conexión + cuerpo), no por paso de lectura
FETCH_TIMEOUT_SECONDS = float(os.getenv("FETCH_TIMEOUT_SECONDS", "5"))

# se prueban en este orden; luego un fetch directo
PROXIES: List[Callable[[str], str]] = [
    lambda url: f"https://api.allorigins.win/raw?url={quote(url, safe='')}",
    lambda url: f"https://corsproxy.io/?{quote(url, safe='')}",
    lambda url: f"https://api.codetabs.com/v1/proxy?quest={quote(url, safe='')}",
]


def _client() -> httpx.AsyncClient:
    return httpx.AsyncClient(timeout=FETCH_TIMEOUT_SECONDS, follow_redirects=True)


async def _get_text(client: httpx.AsyncClient, url: str) -> str:
    r = await client.get(url)
    if r.is_error:
        raise FetchError(f"HTTP error! status: {r.status_code}", source="webpage", status_code=r.status_code)
    return r.text


async def _attempt(client: httpx.AsyncClient, url: str) -> str:
    try:
        return await asyncio.wait_for(_get_text(client, url), FETCH_TIMEOUT_SECONDS)
    except asyncio.TimeoutError as e:
        raise FetchError(f"Timeout after {FETCH_TIMEOUT_SECONDS:g}s", source="webpage") from e
    except httpx.HTTPError as e:
        raise FetchError(f"{type(e).__name__}: {e}", source="webpage") from e


async def fetch_page(url: str) -> str:
    """Raw text of ``url``, via the proxy chain first and a direct GET last.

    Every attempt is cut off after FETCH_TIMEOUT_SECONDS. Raises FetchError
    carrying the last proxy failure when nothing worked.
    """
    last_error: Optional[FetchError] = None
    async with _client() as client:
        for proxy in PROXIES:
            try:
                content = await _attempt(client, proxy(url))
            except FetchError as e:
                last_error = e
            else:
                if content:
                    return content
                last_error = FetchError("Empty response body", source="webpage")
            logger.info("Proxy attempt failed for %s: %s", url, last_error)

        try:
            return await _attempt(client, url)
        except FetchError as e:
            # se conserva el último error de proxy
            logger.info("Direct fetch of %s failed: %s", url, e)

    if last_error is None:
        raise FetchError("Failed to fetch website content", source="webpage")
    raise last_error
