from __future__ import annotations

import json

import aiohttp
from typing import Any, Dict

from .config import Config, logger


USER_AGENT = "GameThreadBot/1.0"


def build_headers() -> Dict[str, str]:
    return {
        "accept": "application/json",
        "user-agent": USER_AGENT,
        "cache-control": "no-cache",
    }


def make_session(timeout_secs: float | None = None) -> aiohttp.ClientSession:
    timeout = aiohttp.ClientTimeout(total=timeout_secs or Config.REQUEST_TIMEOUT_SECS)
    return aiohttp.ClientSession(
        timeout=timeout,
        headers=build_headers(),
        trust_env=True,
    )


def _describe(url: str, params: Dict[str, str] | None) -> str:
    """Log-friendly request label, e.g. '.../teams/2306/schedule?season=2025'."""
    if not params:
        return url
    return f"{url}?{'&'.join(f'{k}={v}' for k, v in params.items())}"


def _error_detail(body: str) -> str:
    """ESPN error bodies carry a JSON "message"; anything else is truncated as-is."""
    try:
        payload = json.loads(body)
    except ValueError:
        return body[:300]
    if isinstance(payload, dict) and payload.get("message"):
        return str(payload["message"])
    return body[:300]


async def fetch_json(session: aiohttp.ClientSession, url: str, params: Dict[str, str] | None = None) -> Any:
    """GET a JSON document from ESPN.

    Raises PermissionError on 401/403 and RuntimeError on any other non-200.
    ESPN error bodies are JSON with a "message" field; that message is kept
    in the exception text when present. The body is decoded regardless of
    the content type ESPN advertises, so a non-JSON body raises ValueError.
    """
    request = _describe(url, params)
    logger.debug(f"ESPN request: {request}")
    async with session.get(url, params=params) as r:
        if r.status == 200:
            return await r.json(content_type=None)

        detail = _error_detail(await r.text())
        if r.status in (401, 403):
            logger.warning(f"ESPN refused {request}: {r.status}")
            raise PermissionError(f"Access denied ({r.status}) for {request}: {detail}")
        logger.error(f"ESPN error for {request}: {r.status}")
        raise RuntimeError(f"HTTP {r.status} for {request} :: {detail}")
