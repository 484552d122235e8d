"""受信メール転送エンドポイント。"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response

from mail_forwarder.core.models import EmailAddress, RawMessage
from mail_forwarder.core.settings import Settings
from mail_forwarder.features.mail_forward.schemas_mail_forward import (
    MailForwardErrorResponse,
    MailForwardResponse,
)
from mail_forwarder.features.mail_forward.usecase_mail_forward import (
    handle_inbound_email,
)
from mail_forwarder.shared.mail.byte_stream import AsyncIteratorReader
from mail_forwarder.shared.schemas.errors import ErrorModel

router = APIRouter(prefix="/mail", tags=["mail"])


async def get_settings(request: Request) -> Settings:
    return request.app.state.settings  # type: ignore[attr-defined]


def _declared_size(request: Request) -> int:
    raw = request.headers.get("content-length") or ""
    # ログ用の値なので不正なヘッダは 0 扱い
    return int(raw) if raw.isascii() and raw.isdigit() else 0


@router.post(
    "/forward",
    response_model=MailForwardResponse,
    responses={500: {"model": MailForwardErrorResponse}},
)
async def mail_forward(
    request: Request,
    response: Response,
    sender: str = Query(..., alias="from", description="送信元（`Name <email>` 可）"),
    to: list[str] = Query(default=[], description="宛先（複数指定可）"),
    cc: list[str] = Query(default=[]),
    bcc: list[str] = Query(default=[]),
    subject: str = Query(""),
    settings: Settings = Depends(get_settings),
) -> MailForwardResponse:
    """リクエストボディの RAW メールをストリームのまま読み、転送する。"""

    message = RawMessage(
        sender=EmailAddress.parse(sender),
        recipients=[EmailAddress.parse(value) for value in to],
        cc=[EmailAddress.parse(value) for value in cc],
        bcc=[EmailAddress.parse(value) for value in bcc],
        subject=subject,
        raw=AsyncIteratorReader(request.stream()),
        raw_size=_declared_size(request),
    )
    session_id = getattr(request.state, "request_id", "")

    outcome = await handle_inbound_email(message, settings=settings, session_id=session_id)

    headers = {
        "X-Session-Id": outcome.session_id,
        "X-Processing-Time-Ms": str(outcome.processing_ms),
    }
    if not outcome.ok:
        error = ErrorModel(
            code=outcome.error_code or "UNEXPECTED_ERROR",
            message=outcome.message,
            retryable=outcome.retryable,
        )
        raise HTTPException(
            status_code=500,
            detail={"error": error.model_dump(), "session_id": outcome.session_id},
            headers={**headers, "X-Error": "true"},
        )

    response.headers.update(headers)
    return MailForwardResponse(
        status="FORWARDED",
        message=outcome.message,
        session_id=outcome.session_id,
    )
