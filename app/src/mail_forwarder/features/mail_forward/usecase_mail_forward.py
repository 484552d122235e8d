"""受信メール転送ユースケース。"""

from __future__ import annotations

import html
import logging
import time
import traceback
from datetime import datetime, timezone

from mail_forwarder.clients import mailchannels_client
from mail_forwarder.clients.mailchannels_client import SendFailure
from mail_forwarder.core.logging import log_event, preview
from mail_forwarder.core.models import (
    DecodedContent,
    EmailAddress,
    ForwardOutcome,
    RawMessage,
)
from mail_forwarder.core.settings import (
    ConfigurationError,
    Settings,
    mask_address,
    require_forward_address,
)
from mail_forwarder.features.mail_forward.schemas_mail_forward import (
    MailChannelsAddress,
    MailChannelsContent,
    MailChannelsPayload,
    MailChannelsPersonalization,
)
from mail_forwarder.shared.mail.body_decoder import decode_message
from mail_forwarder.shared.mail.byte_stream import StreamReadError, read_message_text

FORWARD_BANNER = "---------- Forwarded Message ----------"
SUBJECT_PREFIX = "[Forwarded] "
SUCCESS_MESSAGE = "Email processed and forwarded successfully"


async def handle_inbound_email(
    message: RawMessage,
    *,
    settings: Settings,
    session_id: str,
) -> ForwardOutcome:
    """受信メールを転送し、結果を ForwardOutcome として返す。"""

    started = time.perf_counter()
    log_event(
        "inbound_email_received",
        session_id=session_id,
        sender=message.sender.display(),
        recipients=[addr.display() for addr in message.recipients],
        cc=[addr.display() for addr in message.cc],
        bcc=[addr.display() for addr in message.bcc],
        subject=message.subject,
        raw_size=message.raw_size,
        forward_to=mask_address(settings.forward_to_email),
    )

    def _elapsed() -> int:
        return int((time.perf_counter() - started) * 1000)

    try:
        forward_to = require_forward_address(settings)
    except ConfigurationError as exc:
        return _failure(
            session_id,
            _elapsed(),
            code="CONFIGURATION_ERROR",
            message=f"Configuration error: {exc}",
            retryable=False,
        )

    try:
        await forward_email(message, forward_to=forward_to, settings=settings)
    except StreamReadError as exc:
        return _failure(
            session_id,
            _elapsed(),
            code="STREAM_READ_ERROR",
            message=f"Email processing failed: {exc}",
            retryable=False,
        )
    except SendFailure as exc:
        return _failure(
            session_id,
            _elapsed(),
            code="SEND_FAILURE",
            message=f"Email processing failed: {exc}",
            retryable=exc.retryable,
        )
    except Exception as exc:
        return _failure(
            session_id,
            _elapsed(),
            code="UNEXPECTED_ERROR",
            message=f"Email processing failed: {exc}",
            retryable=False,
        )

    processing_ms = _elapsed()
    log_event("inbound_email_forwarded", session_id=session_id, processing_ms=processing_ms)
    return ForwardOutcome(
        ok=True,
        message=SUCCESS_MESSAGE,
        session_id=session_id,
        processing_ms=processing_ms,
    )


async def forward_email(
    message: RawMessage,
    *,
    forward_to: str,
    settings: Settings,
) -> None:
    """本文をデコードし、転送ペイロードを MailChannels へ送る。"""

    text = await read_message_text(message.raw, max_bytes=settings.max_message_bytes)
    decoded = decode_message(text)
    log_event(
        "email_body_decoded",
        content_type=decoded.content_type,
        text_chars=len(decoded.text_body),
        html_chars=len(decoded.html_body) if decoded.html_body else None,
    )

    payload = build_outbound_payload(message, decoded, forward_to=forward_to)
    log_event(
        "mailchannels_payload",
        sender=payload.from_.email,
        forward_to=payload.personalizations[0].to[0].email,
        subject=payload.subject,
        parts=[
            {"type": part.type, "chars": len(part.value), "preview": preview(part.value)}
            for part in payload.content
        ],
    )

    await mailchannels_client.send_payload(
        payload.to_request_body(),
        endpoint=settings.mailchannels_endpoint,
    )


def build_outbound_payload(
    message: RawMessage,
    decoded: DecodedContent,
    *,
    forward_to: str,
    now: datetime | None = None,
) -> MailChannelsPayload:
    """デコード結果と元メールから MailChannels のペイロードを組み立てる。"""

    timestamp = _format_timestamp(now or datetime.now(timezone.utc))
    content = [
        MailChannelsContent(
            type="text/plain",
            value=build_text_envelope(message, decoded.text_body, timestamp=timestamp),
        )
    ]
    if decoded.html_body:
        content.append(
            MailChannelsContent(
                type="text/html",
                value=build_html_envelope(message, decoded.html_body, timestamp=timestamp),
            )
        )

    return MailChannelsPayload(
        personalizations=[
            MailChannelsPersonalization(to=[MailChannelsAddress(email=forward_to)])
        ],
        from_=MailChannelsAddress(
            email=message.sender.email,
            name=message.sender.name or None,
        ),
        subject=f"{SUBJECT_PREFIX}{message.subject}",
        content=content,
    )


def build_text_envelope(message: RawMessage, text_body: str, *, timestamp: str) -> str:
    """テキスト版の転送ヘッダを本文の前に付ける。"""

    lines = [
        FORWARD_BANNER,
        f"From: {message.sender.display()}",
        f"To: {', '.join(addr.display() for addr in message.recipients)}",
        f"Subject: {message.subject}",
        f"Date: {timestamp}",
        "",
        text_body,
    ]
    return "\n".join(lines).strip()


def build_html_envelope(message: RawMessage, html_body: str, *, timestamp: str) -> str:
    """HTML 版の転送ヘッダを付ける。HTML 本文自体はエスケープせずに埋め込む。"""

    recipients = ", ".join(_html_address(addr) for addr in message.recipients)
    document = f"""
<!DOCTYPE html>
<html>
<head><title>Forwarded Message</title></head>
<body>
<div style="border-bottom: 2px solid #ccc; padding-bottom: 10px; margin-bottom: 20px;">
<h3>Forwarded Message</h3>
<p><strong>From:</strong> {_html_address(message.sender)}</p>
<p><strong>To:</strong> {recipients}</p>
<p><strong>Subject:</strong> {_escape(message.subject)}</p>
<p><strong>Date:</strong> {timestamp}</p>
</div>
<div>{html_body}</div>
</body>
</html>
"""
    return document.strip()


def _html_address(address: EmailAddress) -> str:
    if address.name:
        return f"{_escape(address.name)} &lt;{_escape(address.email)}&gt;"
    return _escape(address.email)


def _escape(value: str) -> str:
    return html.escape(value, quote=False)


def _format_timestamp(value: datetime) -> str:
    """`2024-01-01T00:00:00.000Z` 形式の UTC タイムスタンプにする。"""

    utc = value.astimezone(timezone.utc)
    return utc.strftime("%Y-%m-%dT%H:%M:%S.") + f"{utc.microsecond // 1000:03d}Z"


def _failure(
    session_id: str,
    processing_ms: int,
    *,
    code: str,
    message: str,
    retryable: bool,
) -> ForwardOutcome:
    log_event(
        "inbound_email_failed",
        level=logging.ERROR,
        session_id=session_id,
        processing_ms=processing_ms,
        error_code=code,
        error=message,
        traceback=traceback.format_exc(),
    )
    return ForwardOutcome(
        ok=False,
        message=message,
        session_id=session_id,
        processing_ms=processing_ms,
        error_code=code,
        retryable=retryable,
    )
