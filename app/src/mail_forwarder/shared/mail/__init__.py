"""受信メール本文のデコード処理。"""

from __future__ import annotations

__all__ = [
    "body_decoder",
    "byte_stream",
]
