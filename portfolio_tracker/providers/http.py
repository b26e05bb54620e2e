"""HTTP utilities and normalized provider errors."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Literal

import requests
from requests.adapters import HTTPAdapter

ProviderErrorCode = Literal[
    "EMPTY_SYMBOL",
    "MISSING_CREDENTIAL",
    "TRANSPORT_ERROR",
    "RATE_LIMITED",
    "PROVIDER_ERROR",
    "NO_PRICE_DATA",
    "MALFORMED_PRICE",
    "CANCELED",
]

_SESSION = requests.Session()
_SESSION.mount("https://", HTTPAdapter(pool_connections=4, pool_maxsize=8))
_SESSION.mount("http://", HTTPAdapter(pool_connections=4, pool_maxsize=8))


@dataclass
class ProviderError(Exception):
    provider: str
    code: ProviderErrorCode
    message: str
    status: int | None = None

    def __str__(self) -> str:
        return self.message


def fetch_json(
    url: str,
    provider: str,
    params: dict[str, str] | None = None,
    timeout_seconds: float = 15.0,
    headers: dict[str, str] | None = None,
) -> Any:
    """Fetch JSON once, mapping every transport-level failure to TRANSPORT_ERROR."""
    try:
        response = _SESSION.get(url, params=params, timeout=timeout_seconds, headers=headers)
    except requests.RequestException as error:
        raise ProviderError(provider, "TRANSPORT_ERROR", "Provider request failed due to network error.") from error

    if not response.ok:
        raise ProviderError(
            provider,
            "TRANSPORT_ERROR",
            f"HTTP {response.status_code}",
            response.status_code,
        )

    raw = response.text or ""
    if not raw:
        return {}
    try:
        return json.loads(raw)
    except json.JSONDecodeError as error:
        raise ProviderError(
            provider,
            "TRANSPORT_ERROR",
            "Provider returned non-JSON content.",
            response.status_code,
        ) from error
