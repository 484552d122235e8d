"""アプリ全体で共有する設定読み込みロジック。"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Iterable

import boto3
from botocore.exceptions import ClientError


_DEFAULT_REGION = "ap-northeast-1"
_LOCAL_ENV = "local"
_DEFAULT_MAILCHANNELS_ENDPOINT = "https://api.mailchannels.net/tx/v1/send"
_DEFAULT_MAX_MESSAGE_BYTES = 25 * 1024 * 1024


class ConfigurationError(RuntimeError):
    """転送に必要な設定が欠けていることを表す例外。"""


@dataclass(slots=True)
class Settings:
    """環境非依存で参照できる設定値の集合。"""

    app_env: str
    region: str
    forward_to_email: str | None
    mailchannels_endpoint: str
    max_message_bytes: int | None
    ssm_path_prefix: str | None = None

    @property
    def is_local(self) -> bool:
        return self.app_env == _LOCAL_ENV

    @property
    def forward_to_configured(self) -> bool:
        return bool(self.forward_to_email)


def require_forward_address(settings: Settings) -> str:
    """転送先アドレスを返す。未設定なら ConfigurationError。"""

    if not settings.forward_to_email:
        raise ConfigurationError("FORWARD_TO_EMAIL is not set")
    return settings.forward_to_email


def mask_address(address: str | None) -> str:
    """ログ出力用に転送先アドレスを先頭10文字まで残して伏せる。"""

    if not address:
        return "NOT SET"
    return f"{address[:10]}..."


def _load_max_message_bytes(raw: str | None) -> int | None:
    if raw is None or raw.strip() == "":
        return _DEFAULT_MAX_MESSAGE_BYTES
    try:
        value = int(raw)
    except ValueError as exc:
        raise ValueError("MAX_MESSAGE_BYTES は整数である必要があります。") from exc
    if value < 0:
        raise ValueError("MAX_MESSAGE_BYTES は 0 以上である必要があります。")
    # 0 は上限なし
    return value or None


def _optional_env(name: str) -> str | None:
    value = os.getenv(name)
    if value is None:
        return None
    return value.strip() or None


def _fetch_ssm_parameters(
    region: str,
    names: Iterable[str],
    prefix: str,
    *,
    required: Iterable[str] = (),
) -> dict[str, str]:
    name_list = [f"{prefix}/{name}" for name in names]
    client = boto3.client("ssm", region_name=region)
    try:
        resp = client.get_parameters(Names=name_list, WithDecryption=True)
    except ClientError as exc:  # pragma: no cover - boto3 例外ラップ
        raise RuntimeError("SSM パラメータ取得に失敗しました。") from exc

    found = {item["Name"]: item["Value"] for item in resp.get("Parameters", [])}
    missing = {f"{prefix}/{name}" for name in required} - set(found)
    if missing:
        raise ValueError(f"SSM パラメータ未設定: {', '.join(sorted(missing))}")
    return found


@lru_cache(maxsize=1)
def load_settings() -> Settings:
    """環境に応じて環境変数または SSM から設定を構築する。"""

    app_env = os.getenv("APP_ENV", _LOCAL_ENV)
    region = os.getenv("REGION", _DEFAULT_REGION)
    mailchannels_endpoint = (
        _optional_env("MAILCHANNELS_API_URL") or _DEFAULT_MAILCHANNELS_ENDPOINT
    )
    max_message_bytes = _load_max_message_bytes(os.getenv("MAX_MESSAGE_BYTES"))

    if app_env == _LOCAL_ENV:
        return Settings(
            app_env=app_env,
            region=region,
            forward_to_email=_optional_env("FORWARD_TO_EMAIL"),
            mailchannels_endpoint=mailchannels_endpoint,
            max_message_bytes=max_message_bytes,
            ssm_path_prefix=None,
        )

    prefix = os.getenv("SSM_PATH_PREFIX", "/app/prod")
    # 転送先の未設定はリクエスト処理時に ConfigurationError として扱う。
    values = _fetch_ssm_parameters(
        region=region, names=["mail/forward_to"], prefix=prefix
    )
    forward_to = (values.get(f"{prefix}/mail/forward_to") or "").strip() or None

    return Settings(
        app_env=app_env,
        region=region,
        forward_to_email=forward_to,
        mailchannels_endpoint=mailchannels_endpoint,
        max_message_bytes=max_message_bytes,
        ssm_path_prefix=prefix,
    )
