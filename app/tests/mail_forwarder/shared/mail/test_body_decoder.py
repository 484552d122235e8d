"""本文デコーダのテスト。"""

from __future__ import annotations

from mail_forwarder.shared.mail.body_decoder import (
    decode_message,
    iter_sections,
    resolve_boundary,
    resolve_content_type,
    split_header_body,
)


def _multipart(boundary: str, *sections: str, header: str | None = None) -> str:
    header = header or f"Content-Type: multipart/mixed; boundary={boundary}"
    body = "".join(f"--{boundary}\r\n{section}\r\n" for section in sections)
    return f"From: a@example.com\r\n{header}\r\n\r\n{body}--{boundary}--\r\n"


def test_空行が無ければ全文をテキスト本文とする() -> None:
    decoded = decode_message("  just text  ")

    assert decoded.text_body == "just text"
    assert decoded.html_body is None
    assert decoded.content_type == "text/plain"


def test_ヘッダらしき行があっても空行が無ければ分割しない() -> None:
    decoded = decode_message("Content-Type: text/html\r\n<b>hi</b>\r\n")

    assert decoded.text_body == "Content-Type: text/html\r\n<b>hi</b>"
    assert decoded.content_type == "text/plain"


def test_本文中の空行区切りは改行2つで連結し直す() -> None:
    split = split_header_body("Subject: x\r\n\r\nfirst\r\n\r\nsecond\n\nthird")

    assert split == ("Subject: x", "first\n\nsecond\n\nthird")


def test_ContentType未指定ならtext_plain() -> None:
    decoded = decode_message("Subject: hello\n\n  body text \n")

    assert decoded.text_body == "body text"
    assert decoded.content_type == "text/plain"


def test_ContentTypeは大文字小文字を無視して小文字化する() -> None:
    assert resolve_content_type("content-type:  Text/HTML ; charset=utf-8") == "text/html"
    assert resolve_content_type("Subject: x") == "text/plain"


def test_単一パートのHTMLはtext_bodyにそのまま入る() -> None:
    decoded = decode_message("Content-Type: text/html; charset=utf-8\r\n\r\n<p>hi</p>\r\n")

    assert decoded.text_body == "<p>hi</p>"
    assert decoded.html_body is None
    assert decoded.content_type == "text/html"


def test_boundaryの引用符を外す() -> None:
    assert resolve_boundary('Content-Type: multipart/alternative; boundary="abc-123"') == "abc-123"
    assert resolve_boundary("Content-Type: multipart/alternative; BOUNDARY='xyz'") == "xyz"
    assert resolve_boundary("Content-Type: multipart/alternative") is None


def test_boundary無しのmultipartは宣言された型の単一パートとして扱う() -> None:
    text = "Content-Type: multipart/mixed\r\n\r\n--XYZ\r\nContent-Type: text/plain\r\n\r\nHello\r\n"

    decoded = decode_message(text)

    assert decoded.content_type == "multipart/mixed"
    assert decoded.html_body is None
    assert decoded.text_body == "--XYZ\r\nContent-Type: text/plain\n\nHello"


def test_テキストとHTMLのmultipartを分解できる() -> None:
    text = (
        "Content-Type: multipart/mixed; boundary=XYZ\r\n\r\n"
        "--XYZ\r\nContent-Type: text/plain\r\n\r\nHello\r\n"
        "--XYZ\r\nContent-Type: text/html\r\n\r\n<b>Hi</b>\r\n--XYZ--"
    )

    decoded = decode_message(text)

    assert decoded.text_body == "Hello"
    assert decoded.html_body == "<b>Hi</b>"
    assert decoded.content_type == "text/plain"


def test_同じ型のセクションは後勝ち() -> None:
    text = _multipart(
        "b1",
        "Content-Type: text/plain\r\n\r\nfirst",
        "Content-Type: text/plain\r\n\r\nsecond",
    )

    decoded = decode_message(text)

    assert decoded.text_body == "second"
    assert decoded.content_type == "text/plain"


def test_HTMLのみならtext_bodyもHTMLになる() -> None:
    text = _multipart("b2", 'Content-Type: text/html; charset="utf-8"\r\n\r\n<p>only html</p>')

    decoded = decode_message(text)

    assert decoded.text_body == "<p>only html</p>"
    assert decoded.html_body == "<p>only html</p>"
    assert decoded.content_type == "text/html"


def test_テキストもHTMLも無ければ本文全体と宣言型を返す() -> None:
    text = _multipart(
        "b3",
        "Content-Type: application/pdf\r\nContent-Disposition: attachment\r\n\r\nJVBERi0=",
    )

    decoded = decode_message(text)

    assert decoded.content_type == "multipart/mixed"
    assert decoded.html_body is None
    assert decoded.text_body.startswith("--b3\r\nContent-Type: application/pdf")
    assert decoded.text_body.endswith("--b3--")


def test_本文の無いセクションは何も寄与しない() -> None:
    text = _multipart(
        "b4",
        "Content-Type: text/plain",
        "Content-Type: text/html\r\n\r\n<i>x</i>",
    )

    decoded = decode_message(text)

    assert decoded.text_body == "<i>x</i>"
    assert decoded.html_body == "<i>x</i>"
    assert decoded.content_type == "text/html"


def test_後続の空本文セクションも同じ型を上書きする() -> None:
    text = _multipart(
        "b6",
        "Content-Type: text/plain\r\n\r\nfirst",
        "Content-Type: text/plain",
        "Content-Type: text/html\r\n\r\n<p>h</p>",
    )

    decoded = decode_message(text)

    assert decoded.text_body == "<p>h</p>"
    assert decoded.html_body == "<p>h</p>"
    assert decoded.content_type == "text/html"


def test_添付ファイルは無視してテキストを拾う() -> None:
    text = _multipart(
        "b5",
        "Content-Type: text/plain; charset=utf-8\r\n\r\nこんにちは",
        "Content-Type: image/png\r\nContent-Disposition: attachment\r\n\r\niVBORw0KGgo=",
    )

    decoded = decode_message(text)

    assert decoded.text_body == "こんにちは"
    assert decoded.html_body is None
    assert decoded.content_type == "text/plain"


def test_セクション分割は空セクションと終端を除く() -> None:
    body = "preamble\r\n--z\r\nContent-Type: text/plain\r\n\r\nA\r\n--z\r\n\r\n--z--\r\n"

    sections = iter_sections(body, "z")

    assert [section.headers for section in sections] == [
        "preamble",
        "Content-Type: text/plain",
    ]
    assert sections[0].body == ""
    assert sections[1].body == "A"


def test_LF改行のみのメールも分解できる() -> None:
    text = (
        "Content-Type: multipart/alternative;\n boundary=\"LF\"\n\n"
        "--LF\nContent-Type: text/plain\n\nline1\n\nline2\n"
        "--LF\nContent-Type: text/html\n\n<p>line</p>\n--LF--\n"
    )

    decoded = decode_message(text)

    assert decoded.text_body == "line1\n\nline2"
    assert decoded.html_body == "<p>line</p>"
    assert decoded.content_type == "text/plain"
