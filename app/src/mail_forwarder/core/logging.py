"""JSONロギングの共通ヘルパー。"""

from __future__ import annotations

import json
import logging
import traceback
from typing import Any

_LOGGER = logging.getLogger("mail_forwarder")


def log_request(*, path: str, status: int, request_id: str, latency_ms: int) -> None:
    payload = {
        "level": "INFO",
        "path": path,
        "status": status,
        "request_id": request_id,
        "latency_ms": latency_ms,
    }
    _LOGGER.info(json.dumps(payload, ensure_ascii=False))


def log_event(event: str, *, level: int = logging.INFO, **fields: Any) -> None:
    """処理段階ごとの診断情報を1行の JSON として出力する。"""

    payload: dict[str, Any] = {
        "level": logging.getLevelName(level),
        "event": event,
    }
    payload.update(fields)
    _LOGGER.log(level, json.dumps(payload, ensure_ascii=False, default=str))


def log_error(
    *,
    path: str,
    status: int,
    request_id: str,
    latency_ms: int,
    error: Any,
) -> None:
    payload = {
        "level": "ERROR",
        "path": path,
        "status": status,
        "request_id": request_id,
        "latency_ms": latency_ms,
        "error_json": _to_error_json(error),
        "traceback": traceback.format_exc(),
    }
    _LOGGER.error(json.dumps(payload, ensure_ascii=False))


def preview(text: str, limit: int = 100) -> str:
    """ログ用に本文を切り詰め、改行をエスケープする。"""

    head = text[:limit].replace("\r", "\\r").replace("\n", "\\n")
    if len(text) <= limit:
        return head
    return f"{head}... ({len(text)} chars total)"


def _to_error_json(error: Any) -> str:
    if isinstance(error, (dict, list)):
        return json.dumps(error, ensure_ascii=False)
    return json.dumps({"message": str(error)}, ensure_ascii=False)
