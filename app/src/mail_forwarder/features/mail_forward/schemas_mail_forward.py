"""`/mail/forward` のレスポンススキーマと MailChannels 送信ペイロード。"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from mail_forwarder.shared.schemas.errors import ErrorModel


class MailChannelsAddress(BaseModel):
    email: str
    name: str | None = None


class MailChannelsPersonalization(BaseModel):
    to: list[MailChannelsAddress] = Field(default_factory=list)


class MailChannelsContent(BaseModel):
    type: Literal["text/plain", "text/html"]
    value: str


class MailChannelsPayload(BaseModel):
    """MailChannels `/tx/v1/send` に渡す転送メール。"""

    personalizations: list[MailChannelsPersonalization]
    from_: MailChannelsAddress = Field(..., alias="from")
    subject: str
    content: list[MailChannelsContent]

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    def to_request_body(self) -> dict[str, Any]:
        """未設定の表示名を落とした送信用の辞書へ変換する。"""

        return self.model_dump(by_alias=True, exclude_none=True)


class MailForwardResponse(BaseModel):
    """転送成功レスポンス。"""

    status: Literal["FORWARDED"]
    message: str
    session_id: str

    model_config = ConfigDict(extra="forbid")


class MailForwardErrorDetail(BaseModel):
    error: ErrorModel
    session_id: str


class MailForwardErrorResponse(BaseModel):
    """転送失敗レスポンス。"""

    detail: MailForwardErrorDetail
