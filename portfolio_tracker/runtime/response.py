"""Response shaping helpers for portfolio MCP tools."""

from __future__ import annotations

import json
import time
from dataclasses import asdict, is_dataclass
from typing import Any

DISCLAIMER = "Data is for informational purposes only and does not constitute financial advice."
DATA_PROVIDER = "Alpha Vantage"


def _convert_data(data: Any) -> Any:
    if is_dataclass(data) and not isinstance(data, type):
        return asdict(data)
    if isinstance(data, (list, tuple)):
        return [_convert_data(item) for item in data]
    if isinstance(data, dict):
        return {key: _convert_data(value) for key, value in data.items()}
    return data


def success_response(data: Any, warning: str | None = None) -> str:
    payload: dict[str, Any] = {
        "data": _convert_data(data),
        "disclaimer": DISCLAIMER,
        "data_provider": DATA_PROVIDER,
    }
    if warning:
        payload["warning"] = warning
    return json.dumps(payload, ensure_ascii=True)


def error_response(code: str, message: str) -> str:
    return json.dumps(
        {
            "error": True,
            "code": code,
            "message": message,
            "timestamp": int(time.time()),
        },
        ensure_ascii=True,
    )
