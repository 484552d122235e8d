"""ユースケース間で共有するデータモデル。"""

from __future__ import annotations

from dataclasses import dataclass, field
from email.utils import parseaddr
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from mail_forwarder.shared.mail.byte_stream import ByteStreamReader


@dataclass(frozen=True, slots=True)
class EmailAddress:
    """表示名付きのメールアドレス。"""

    email: str
    name: str | None = None

    @classmethod
    def parse(cls, value: str) -> EmailAddress:
        """`Name <email>` または素のアドレス文字列から生成する。"""

        name, addr = parseaddr(value)
        if not addr:
            return cls(email=value.strip())
        return cls(email=addr, name=name or None)

    def display(self) -> str:
        if self.name:
            return f"{self.name} <{self.email}>"
        return self.email


@dataclass(frozen=True, slots=True)
class RawMessage:
    """メールルーティング基盤から届いた受信メール。コアからは読み取り専用。"""

    sender: EmailAddress
    recipients: list[EmailAddress]
    subject: str
    raw: ByteStreamReader
    raw_size: int
    cc: list[EmailAddress] = field(default_factory=list)
    bcc: list[EmailAddress] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class MultipartSection:
    """boundary で区切られた1セクション（ヘッダ断片と本文断片）。"""

    headers: str
    body: str


@dataclass(frozen=True, slots=True)
class DecodedContent:
    """本文デコード結果。"""

    text_body: str
    content_type: str
    html_body: str | None = None


@dataclass(slots=True)
class ForwardOutcome:
    """受信ハンドラの処理結果。"""

    ok: bool
    message: str
    session_id: str
    processing_ms: int
    error_code: str | None = None
    retryable: bool = False
