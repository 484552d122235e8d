from __future__ import annotations

import os

os.environ.setdefault("FORWARD_TO_EMAIL", "inbox@example.net")

import pytest

from mail_forwarder.core import settings as core_settings


@pytest.fixture(autouse=True)
def basic_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """アプリ初期化に必要な環境変数をテスト時にセットする。"""

    monkeypatch.setenv("FORWARD_TO_EMAIL", "inbox@example.net")
    monkeypatch.delenv("APP_ENV", raising=False)
    monkeypatch.delenv("MAILCHANNELS_API_URL", raising=False)
    monkeypatch.delenv("MAX_MESSAGE_BYTES", raising=False)
    monkeypatch.delenv("REGION", raising=False)
    monkeypatch.delenv("SSM_PATH_PREFIX", raising=False)
    core_settings.load_settings.cache_clear()
