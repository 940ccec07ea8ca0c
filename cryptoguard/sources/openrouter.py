import os

import httpx

from ..errors import UpstreamTransportError
from ..logging_utils import get_logger

logger = get_logger(__name__)

OPENROUTER_URL = "https://openrouter.ai/api/v1/chat/completions"
OPENROUTER_API_KEY = os.getenv("OPENROUTER_API_KEY", "")
OPENROUTER_MODEL = os.getenv("OPENROUTER_MODEL", "nvidia/llama-3.1-nemotron-70b-instruct:free")
OPENROUTER_TIMEOUT = float(os.getenv("OPENROUTER_TIMEOUT", "60"))

SYSTEM_PROMPT = (
    "You are a crypto security expert. Analyze the given input for potential risks and scams. "
    "Keep responses factual and specific. Always use the same criteria for scoring and be consistent."
)

# respuesta fija cuando no hay red; el parser la entiende igual que una real
OFFLINE_RESPONSE = (
    "Safety Score: 50\n\n"
    "Identified Issues:\n"
    "- Unable to perform AI analysis at the moment\n"
    "- Using fallback risk assessment based on available data\n"
    "- Please try again later for full AI analysis"
)


def _client() -> httpx.AsyncClient:
    return httpx.AsyncClient(timeout=OPENROUTER_TIMEOUT)


def _headers() -> dict:
    return {
        "Authorization": f"Bearer {OPENROUTER_API_KEY}",
        "X-Title": "CryptoGuard AI",
        "Content-Type": "application/json",
    }


async def complete(prompt: str) -> str:
    """Send ``prompt`` to the model and return its raw text answer.

    Unreachable service -> OFFLINE_RESPONSE. An HTTP error status or a reply
    without message content raises UpstreamTransportError.
    """
    body = {
        "model": OPENROUTER_MODEL,
        "messages": [
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": prompt},
        ],
        "temperature": 0,
    }
    try:
        async with _client() as client:
            r = await client.post(OPENROUTER_URL, json=body, headers=_headers())
    except httpx.TransportError as e:
        logger.warning("AI service unreachable, using offline response: %s", e)
        return OFFLINE_RESPONSE

    if r.is_error:
        raise UpstreamTransportError(
            f"AI service error ({r.status_code}): {r.text or 'Unknown error'}",
            source="openrouter", status_code=r.status_code,
        )
    try:
        content = r.json()["choices"][0]["message"]["content"]
    except (ValueError, KeyError, IndexError, TypeError) as e:
        raise UpstreamTransportError("Invalid response format from AI service", source="openrouter") from e
    if not content:
        raise UpstreamTransportError("Invalid response format from AI service", source="openrouter")
    return content
