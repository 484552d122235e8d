"""受信メールのテキストを本文構造へ分解する。

RFC 5322 / MIME への完全準拠は目指さず、以下の順でフォールバックする。

1. 空行区切りが無ければ全文を text/plain の本文とみなす。
2. Content-Type が multipart でなければ、あるいは boundary が無ければ単一パート。
3. multipart はセクションごとに text/plain / text/html を拾い、
   見つからなければ宣言された型のまま本文全体を返す。

解析自体は失敗しない。どの入力に対しても DecodedContent を返す。
"""

from __future__ import annotations

import re

from mail_forwarder.core.logging import log_event
from mail_forwarder.core.models import DecodedContent, MultipartSection

DEFAULT_CONTENT_TYPE = "text/plain"
HTML_CONTENT_TYPE = "text/html"

_BLANK_LINE = re.compile(r"\r?\n\r?\n")
_CONTENT_TYPE = re.compile(r"Content-Type:\s*([^;\r\n]+)", re.IGNORECASE)
_BOUNDARY = re.compile(r"boundary=([^;\r\n]+)", re.IGNORECASE)
_SEGMENT_JOINER = "\n\n"
_TERMINATOR = "--"


def split_header_body(text: str) -> tuple[str, str] | None:
    """最初の空行でヘッダブロックと本文ブロックに分ける。

    空行が1つも無ければ None を返す。本文内の空行区切りは `\\n\\n` で連結し直す。
    """

    segments = _BLANK_LINE.split(text)
    if len(segments) < 2:
        return None
    return segments[0], _SEGMENT_JOINER.join(segments[1:])


def resolve_content_type(headers: str) -> str:
    """ヘッダブロックから Content-Type を小文字で取り出す。無ければ text/plain。"""

    match = _CONTENT_TYPE.search(headers)
    if not match:
        return DEFAULT_CONTENT_TYPE
    return match.group(1).strip().lower()


def resolve_boundary(headers: str) -> str | None:
    """`boundary=` パラメータを引用符を外して返す。"""

    match = _BOUNDARY.search(headers)
    if not match:
        return None
    boundary = match.group(1).strip().strip("\"'").strip()
    return boundary or None


def iter_sections(body: str, boundary: str) -> list[MultipartSection]:
    """`--<boundary>` で本文を分割し、空セクションと終端 `--` を除いて返す。"""

    sections: list[MultipartSection] = []
    for chunk in body.split(f"--{boundary}"):
        part = chunk.strip()
        if not part or part == _TERMINATOR:
            continue
        headers, *body_segments = _BLANK_LINE.split(part)
        sections.append(
            MultipartSection(
                headers=headers,
                body=_SEGMENT_JOINER.join(body_segments).strip(),
            )
        )
    return sections


def disassemble_multipart(body: str, boundary: str, declared_type: str) -> DecodedContent:
    """multipart 本文からテキスト/HTML パートを取り出す。

    同じ種類のセクションが複数あれば後勝ちで上書きされる（空本文でも上書き）。
    """

    text_candidate = ""
    html_candidate = ""
    sections = iter_sections(body, boundary)
    for index, section in enumerate(sections, start=1):
        if DEFAULT_CONTENT_TYPE in section.headers:
            text_candidate = section.body
            log_event("multipart_text_part", section=index, characters=len(section.body))
        elif HTML_CONTENT_TYPE in section.headers:
            html_candidate = section.body
            log_event("multipart_html_part", section=index, characters=len(section.body))

    log_event("multipart_sections", boundary=boundary, sections=len(sections))

    if text_candidate:
        content_type = DEFAULT_CONTENT_TYPE
    elif html_candidate:
        content_type = HTML_CONTENT_TYPE
    else:
        content_type = declared_type

    return DecodedContent(
        text_body=text_candidate or html_candidate or body.strip(),
        html_body=html_candidate or None,
        content_type=content_type,
    )


def decode_message(text: str) -> DecodedContent:
    """デコード済みのメール全文から DecodedContent を組み立てる。"""

    split = split_header_body(text)
    if split is None:
        log_event("no_header_body_separation", characters=len(text))
        return DecodedContent(text_body=text.strip(), content_type=DEFAULT_CONTENT_TYPE)

    headers, body = split
    content_type = resolve_content_type(headers)
    log_event(
        "content_type_detected",
        content_type=content_type,
        header_chars=len(headers),
        body_chars=len(body),
    )

    if "multipart" in content_type:
        boundary = resolve_boundary(headers)
        if boundary:
            return disassemble_multipart(body, boundary, content_type)
        log_event("multipart_without_boundary", content_type=content_type)

    return DecodedContent(text_body=body.strip(), content_type=content_type)
