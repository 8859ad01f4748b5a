from __future__ import annotations

import json
import math
from decimal import Decimal
from typing import Any, List, Optional

from .errors import InvalidInputError
from .models import ParseOptions


def _render_float(value: float) -> str:
    """指数表記を使わない 10 進表記（999.0 -> 999, 1e16 -> 10000000000000000）"""
    if not math.isfinite(value):
        return repr(value)
    if value.is_integer() and abs(value) < 2**53:
        return str(int(value))
    # repr の最短表記を保ったまま指数部だけ展開する
    return format(Decimal(repr(value)), "f")


def _render_value(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        return _render_float(value)
    if isinstance(value, (dict, list)):
        return json.dumps(value, ensure_ascii=False, separators=(",", ":"))
    return str(value)


def _quote(text: str, delimiter: str, quote_char: str, escape_char: str, force: bool) -> str:
    """区切り文字・クォート・改行を含む場合のみクォートする"""
    needs = (
        force
        or delimiter in text
        or quote_char in text
        or "\n" in text
        or "\r" in text
    )
    if not needs:
        return text
    escaped = text.replace(quote_char, escape_char + quote_char)
    return f"{quote_char}{escaped}{quote_char}"


def unparse(records: Any, options: Optional[ParseOptions] = None) -> str:
    """オブジェクト配列 -> CSV テキスト

    ヘッダ（キー順）は columns 指定があればそれ、なければ先頭レコードの
    キー順。以降のレコードもその順で出力し、欠けているキーは空欄になる。
    """
    options = options or ParseOptions()

    if not isinstance(records, list):
        raise InvalidInputError("jsonData must be an array of objects")
    for index, record in enumerate(records):
        if not isinstance(record, dict):
            raise InvalidInputError(
                f"jsonData must be an array of objects (item {index} is {type(record).__name__})"
            )

    if options.columns is not None:
        keys: List[str] = list(options.columns)
    elif records:
        keys = list(records[0].keys())
    else:
        keys = []

    delimiter = options.delimiter or ","
    newline = options.newline or "\n"

    def render_row(values: List[str]) -> str:
        return delimiter.join(
            _quote(v, delimiter, options.quote_char, options.escape_char, options.quotes)
            for v in values
        )

    lines: List[str] = []
    if options.header and keys:
        lines.append(render_row([str(k) for k in keys]))

    for record in records:
        values = [_render_value(record.get(key)) for key in keys]
        lines.append(render_row(values))

    return newline.join(lines)
