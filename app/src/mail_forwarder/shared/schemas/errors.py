"""API 共通のエラースキーマ。"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class ErrorModel(BaseModel):
    """共通エラーモデル。"""

    code: str
    message: str
    retryable: bool

    model_config = ConfigDict(extra="forbid")
