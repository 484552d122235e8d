"""リクエスト ID ミドルウェアのテスト。"""

from __future__ import annotations

from fastapi.testclient import TestClient

from mail_forwarder.app import create_app


def test_リクエストIDを引き継ぐ() -> None:
    client = TestClient(create_app())

    response = client.get("/healthz", headers={"X-Request-Id": "req-123"})

    assert response.status_code == 200
    assert response.headers["X-Request-Id"] == "req-123"
    assert int(response.headers["X-Response-Time-Ms"]) >= 0


def test_リクエストIDが無ければ生成する() -> None:
    client = TestClient(create_app())

    response = client.get("/healthz")

    assert response.headers["X-Request-Id"].startswith("email_")
