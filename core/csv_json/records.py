from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Dict, List

from .models import FieldValue, ParseError, ParseOptions, Record

_INT_RE = re.compile(r"^\s*-?[0-9]+\s*$")
_FLOAT_RE = re.compile(r"^\s*-?([0-9]+\.?|\.[0-9]+|[0-9]+\.[0-9]+)([eE][-+]?[0-9]+)?\s*$")

# JSON 側で精度を失わない整数範囲（2^53）
_MAX_SAFE = 2**53
_MAX_SAFE_DIGITS = len(str(_MAX_SAFE))


@dataclass
class AssembleResult:
    records: List[Record] = field(default_factory=list)
    fields: List[str] = field(default_factory=list)
    errors: List[ParseError] = field(default_factory=list)


def coerce_value(value: str) -> FieldValue:
    """文字列を数値 / 真偽値へ変換する（変換できなければそのまま返す）

    - 空文字は空文字のまま（0 や False にはしない）
    - true / false は大文字小文字を区別する
    - 2^53 以上の数値は文字列のまま残す
    """
    if value == "":
        return value
    if value == "true":
        return True
    if value == "false":
        return False
    if _INT_RE.match(value):
        # 2^53 は 16 桁。先頭ゼロを除いた桁数で先に弾き、巨大な文字列の int 変換を避ける
        if len(value.strip().lstrip("-").lstrip("0")) > _MAX_SAFE_DIGITS:
            return value
        number = int(value)
        return number if abs(number) < _MAX_SAFE else value
    if _FLOAT_RE.match(value):
        number = float(value)
        return number if abs(number) < _MAX_SAFE else value
    return value


def _field_count_error(code: str, expected: int, parsed: int, row: int) -> ParseError:
    if code == "TooFewFields":
        message = f"Too few fields: expected {expected} fields but parsed {parsed}"
        column = parsed
    else:
        message = f"Too many fields: expected {expected} fields but parsed {parsed}"
        column = expected
    return ParseError(type="FieldMismatch", code=code, message=message, row=row, column=column)


def assemble(rows: List[List[str]], options: ParseOptions) -> AssembleResult:
    """行データをレコードに組み立てる

    header 有効時は先頭行をフィールド名とし、残りの各行を
    {フィールド名: 値} にする。列数が合わない行は TooFewFields /
    TooManyFields を記録したうえで可能な範囲で組み立てる
    （不足分のキーは持たせない / 余剰分は捨てる）。
    """
    result = AssembleResult()

    def convert(value: str) -> FieldValue:
        return coerce_value(value) if options.dynamic_typing else value

    if not options.header:
        result.records = [[convert(v) for v in row] for row in rows]
        return result

    if not rows:
        return result

    header = rows[0]
    if options.trim_headers:
        header = [name.strip() for name in header]
    result.fields = list(header)
    expected = len(header)

    # ヘッダ行を 1 行目として数える
    for row_number, row in enumerate(rows[1:], start=2):
        record: Dict[str, FieldValue] = {}
        for name, value in zip(header, row):
            record[name] = convert(value)

        if len(row) < expected:
            result.errors.append(_field_count_error("TooFewFields", expected, len(row), row_number))
        elif len(row) > expected:
            result.errors.append(_field_count_error("TooManyFields", expected, len(row), row_number))

        result.records.append(record)

    return result
