"""MailChannels Transactional API の送信クライアント。"""

from __future__ import annotations

import time
from typing import Any

import httpx

from mail_forwarder.clients.http_client import create_async_client
from mail_forwarder.core.logging import log_event


class SendFailure(RuntimeError):
    """MailChannels への送信失敗を表す例外。通信エラー時は status_code が None。"""

    def __init__(self, message: str, status_code: int | None) -> None:
        super().__init__(message)
        self.status_code = status_code

    @property
    def retryable(self) -> bool:
        if self.status_code is None:
            return True
        return self.status_code >= 500 or self.status_code in {408, 429}


async def send_payload(
    payload: dict[str, Any],
    *,
    endpoint: str,
    timeout: httpx.Timeout | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> str:
    """ペイロードを1回だけ POST し、成功時のレスポンス本文を返す。"""

    headers = {"Content-Type": "application/json"}
    started = time.perf_counter()
    try:
        async with create_async_client(timeout=timeout, transport=transport) as client:
            response = await client.post(endpoint, json=payload, headers=headers)
    except (httpx.HTTPError, httpx.InvalidURL) as exc:
        raise SendFailure(f"MailChannels API request failed: {exc!r}", None) from exc

    latency_ms = int((time.perf_counter() - started) * 1000)
    log_event(
        "mailchannels_response",
        status=response.status_code,
        reason=response.reason_phrase,
        latency_ms=latency_ms,
    )

    if not response.is_success:
        raise SendFailure(
            f"MailChannels API failed: {response.status_code} - {response.text}",
            response.status_code,
        )
    return response.text
