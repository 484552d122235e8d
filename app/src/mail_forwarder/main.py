"""ローカル/ Lambda エントリポイント。"""

from __future__ import annotations

import logging
import os
from typing import Any

import uvicorn
from dotenv import load_dotenv
from mangum import Mangum

from .app import create_app

logging.getLogger("mail_forwarder").setLevel(os.getenv("LOG_LEVEL", "INFO").upper())

app = create_app()
_handler = Mangum(app)


def lambda_handler(event: dict[str, Any], context: Any) -> Any:
    """AWS Lambda から呼び出されるエントリポイント"""
    return _handler(event, context)


def run_local() -> None:
    """`mail-forwarder-api` 用のローカル実行関数。`.env.local` があれば読み込む。"""
    load_dotenv(".env.local")
    logging.basicConfig(level=logging.INFO, format="%(message)s")
    host = os.getenv("APP_HOST", "0.0.0.0")
    port = int(os.getenv("APP_PORT", "8000"))
    uvicorn.run("mail_forwarder.main:app", host=host, port=port, reload=True)

