from __future__ import annotations

import logging
from typing import Any, Optional

import requests

from .errors import FetchError

logger = logging.getLogger(__name__)

URL_PREFIXES = ("http://", "https://")


def is_url(value: Any) -> bool:
    """http:// / https:// で始まる文字列だけを取得対象とみなす"""
    return isinstance(value, str) and value.startswith(URL_PREFIXES)


def fetch_csv(
    url: str,
    session: Optional[requests.Session] = None,
    timeout: Optional[float] = None,
) -> str:
    """URL から CSV 本文を取得する（リトライなし）

    2xx 以外の応答や通信エラーは FetchError にまとめて送出する。
    timeout 未指定時は requests の既定（無制限）に従う。
    """
    logger.info("Fetching CSV from URL: %s", url)
    getter = session.get if session is not None else requests.get
    try:
        response = getter(url, timeout=timeout)
        response.raise_for_status()
    except requests.RequestException as exc:
        logger.error("Failed to fetch CSV from %s: %s", url, exc)
        raise FetchError(f"Failed to fetch CSV from URL: {exc}") from exc

    return response.text
