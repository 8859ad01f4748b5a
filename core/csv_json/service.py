from __future__ import annotations

import logging
from typing import Any, Dict, Mapping

from pydantic import ValidationError

from .errors import InvalidRequestError
from .fetcher import fetch_csv, is_url
from .models import (
    CsvJsonRequest,
    CsvJsonResponse,
    ParseOptions,
    ParseResponse,
    UnparseResponse,
    ValidateResponse,
)
from .parser import parse
from .unparser import unparse
from .validator import is_valid, validate

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# 入力解決
# ---------------------------------------------------------------------------


def _resolve_csv_content(csv_data: Any) -> str:
    """csvData を CSV テキストに解決する（URL なら取得、文字列ならそのまま）"""
    if is_url(csv_data):
        return fetch_csv(csv_data)
    if isinstance(csv_data, str):
        return csv_data
    raise InvalidRequestError(
        "csvData must be a string (CSV content or URL), "
        f"got {type(csv_data).__name__}"
    )


# ---------------------------------------------------------------------------
# 各 operation
# ---------------------------------------------------------------------------


def parse_csv(csv_data: Any, options: ParseOptions) -> ParseResponse:
    """CSV（文字列 or URL）をレコード配列に変換する"""
    logger.info("Parsing CSV...")
    content = _resolve_csv_content(csv_data)
    parsed = parse(content, options)

    return ParseResponse(
        data=parsed.records,
        meta=parsed.meta,
        errors=parsed.errors,
        row_count=len(parsed.records),
        column_count=len(parsed.meta.fields),
    )


def unparse_json(json_data: Any, options: ParseOptions) -> UnparseResponse:
    """オブジェクト配列を CSV テキストに変換する"""
    logger.info("Converting JSON to CSV...")
    csv_text = unparse(json_data, options)

    return UnparseResponse(
        csv=csv_text,
        row_count=len(json_data),
        byte_size=len(csv_text.encode("utf-8")),
    )


def validate_csv(csv_data: Any, options: ParseOptions) -> ValidateResponse:
    """CSV をパースしたうえで構造上の診断を付けて返す"""
    logger.info("Validating CSV...")
    content = _resolve_csv_content(csv_data)
    parsed = parse(content, options)
    report = validate(parsed)

    return ValidateResponse(
        is_valid=is_valid(report),
        validations=report,
        data=parsed.records,
        meta=parsed.meta,
        errors=parsed.errors,
    )


# ---------------------------------------------------------------------------
# API エントリーポイント
# ---------------------------------------------------------------------------


def process_request(request: CsvJsonRequest) -> CsvJsonResponse:
    """operation に応じて parse / unparse / validate を振り分ける"""
    if request.operation == "parse":
        response: CsvJsonResponse = parse_csv(request.csv_data, request.options)
    elif request.operation == "unparse":
        response = unparse_json(request.json_data, request.options)
    elif request.operation == "validate":
        response = validate_csv(request.csv_data, request.options)
    else:
        raise InvalidRequestError(f"Unknown operation: {request.operation}")

    logger.info("Operation %s completed successfully", request.operation)
    return response


def handle_payload(payload: Mapping[str, Any]) -> Dict[str, Any]:
    """HTTP 以外のホスト（CLI / キューなど）向け: dict を受けて dict を返す"""
    if not isinstance(payload, Mapping):
        raise InvalidRequestError("No input provided")
    try:
        request = CsvJsonRequest.model_validate(dict(payload))
    except ValidationError as exc:
        raise InvalidRequestError(f"Invalid request: {exc}") from exc

    return process_request(request).model_dump(by_alias=True)
