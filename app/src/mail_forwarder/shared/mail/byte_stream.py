"""チャンク化されたバイトストリームを1つのテキストへ組み立てる。"""

from __future__ import annotations

import logging
from typing import AsyncIterator, Protocol

from mail_forwarder.core.logging import log_event


class StreamReadError(RuntimeError):
    """バイトストリームの読み取り途中で失敗したことを表す例外。"""


class MessageTooLargeError(StreamReadError):
    """読み取ったバイト数が上限を超えたことを表す例外。"""

    def __init__(self, limit: int, received: int) -> None:
        super().__init__(
            f"Message exceeds the size limit of {limit} bytes (read {received} bytes)"
        )
        self.limit = limit
        self.received = received


class ByteStreamReader(Protocol):
    """`次のチャンクを読む / 終端なら None` と明示的な解放を持つリーダー。"""

    async def read(self) -> bytes | None: ...

    async def release(self) -> None: ...


class AsyncIteratorReader:
    """非同期イテレータ（Starlette の `Request.stream()` など）をリーダーとして扱う。"""

    def __init__(self, chunks: AsyncIterator[bytes]) -> None:
        self._chunks = chunks
        self._released = False

    async def read(self) -> bytes | None:
        if self._released:
            raise StreamReadError("stream reader has already been released")
        try:
            return await self._chunks.__anext__()
        except StopAsyncIteration:
            return None

    async def release(self) -> None:
        if self._released:
            return
        self._released = True
        aclose = getattr(self._chunks, "aclose", None)
        if aclose is not None:
            await aclose()


async def read_message_text(
    reader: ByteStreamReader,
    *,
    max_bytes: int | None = None,
) -> str:
    """ストリームを最後まで読み、UTF-8 として寛容にデコードしたテキストを返す。

    Args:
        reader: 読み取り対象のリーダー。終了時には必ず release される。
        max_bytes: 受け付ける最大バイト数。None なら上限なし。

    Raises:
        StreamReadError: リーダーの読み取りに失敗した場合。
        MessageTooLargeError: 読み取り量が max_bytes を超えた場合。
    """

    chunks: list[bytes] = []
    total = 0
    try:
        while True:
            try:
                chunk = await reader.read()
            except StreamReadError:
                raise
            except Exception as exc:
                raise StreamReadError(f"Failed to read email stream: {exc}") from exc
            if chunk is None:
                break
            chunks.append(chunk)
            total += len(chunk)
            log_event(
                "stream_chunk_read",
                level=logging.DEBUG,
                chunk=len(chunks),
                size=len(chunk),
                total=total,
            )
            if max_bytes is not None and total > max_bytes:
                raise MessageTooLargeError(max_bytes, total)
    finally:
        await reader.release()

    # 先頭の BOM は落とし、不正なシーケンスは置換文字にする。
    text = b"".join(chunks).decode("utf-8-sig", errors="replace")
    log_event(
        "stream_decoded",
        chunks=len(chunks),
        bytes=total,
        characters=len(text),
    )
    return text
