from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from .models import BYTE_ORDER_MARK, ParseError, ParseMeta, ParseOptions, ParseResult
from .records import assemble

logger = logging.getLogger(__name__)

DELIMITER_CANDIDATES = (",", ";", "\t", "|")
DETECT_SAMPLE_ROWS = 10
DEFAULT_DELIMITER = ","
DEFAULT_LINEBREAK = "\n"


@dataclass
class TokenizeResult:
    """トークナイズ結果（ヘッダ / レコード組み立て前の行データ）"""

    rows: List[List[str]] = field(default_factory=list)
    errors: List[ParseError] = field(default_factory=list)
    delimiter: str = DEFAULT_DELIMITER
    linebreak: str = DEFAULT_LINEBREAK
    truncated: bool = False
    cursor: int = 0


# (code, column) の組。row は行を確定させた時点で付与する
_RowIssue = Tuple[str, int]


# ---------------------------------------------------------------------------
# 改行 / 区切り文字の自動判定
# ---------------------------------------------------------------------------


def _guess_linebreak(text: str, options: ParseOptions) -> str:
    """クォート外で最初に現れる改行を採用する（見つからなければ \\n）

    トークナイザと同じく、フィールド先頭のクォートだけを囲みの開始とみなす。
    区切り文字が未確定なら候補のいずれかの直後をフィールド先頭とする。
    """
    quote_char = options.quote_char
    escape_char = options.escape_char
    delimiters = (options.delimiter,) if options.delimiter else DELIMITER_CANDIDATES

    size = len(text)
    in_quotes = False
    field_start = True
    i = 0
    while i < size:
        ch = text[i]
        nxt = text[i + 1 : i + 2]
        if in_quotes:
            if ch == escape_char and nxt == quote_char:
                i += 2
                continue
            if ch == quote_char:
                in_quotes = False
            i += 1
            continue

        if ch == "\n":
            return "\n"
        if ch == "\r":
            return "\r\n" if nxt == "\n" else "\r"

        if ch == quote_char and field_start:
            in_quotes = True
            field_start = False
        elif any(text.startswith(d, i) for d in delimiters):
            field_start = True
        else:
            field_start = False
        i += 1
    return DEFAULT_LINEBREAK


def _guess_delimiter(
    text: str,
    linebreak: str,
    options: ParseOptions,
) -> Optional[str]:
    """候補ごとに先頭数行を実際に切り出し、列数が最も安定するものを選ぶ

    - 列数が一度も 2 以上にならない候補は対象外
    - 連続する行の列数差の総和が最小のものを採用
    - 同点なら候補の並び順（, ; タブ |）で先のものを優先
    - 該当なしなら None
    """
    best: Optional[Tuple[int, int]] = None
    best_delimiter: Optional[str] = None

    for priority, candidate in enumerate(DELIMITER_CANDIDATES):
        sample = _tokenize(
            text,
            delimiter=candidate,
            linebreak=linebreak,
            quote_char=options.quote_char,
            escape_char=options.escape_char,
            comments=options.comment_prefix,
            skip_empty_lines=True,
            max_rows=DETECT_SAMPLE_ROWS,
        )
        counts = [len(row) for row in sample.rows]
        if not counts or max(counts) <= 1:
            continue

        delta = sum(abs(cur - prev) for prev, cur in zip(counts, counts[1:]))
        score = (delta, priority)
        if best is None or score < best:
            best = score
            best_delimiter = candidate

    return best_delimiter


# ---------------------------------------------------------------------------
# トークナイザ本体
# ---------------------------------------------------------------------------


def _find_line_end(text: str, pos: int, linebreak: str) -> int:
    end = text.find(linebreak, pos)
    return len(text) if end == -1 else end


def _next_boundary(text: str, pos: int, delimiter: str, line_end: int) -> int:
    """pos 以降で最初の区切り文字の位置（同じ行になければ行末）を返す"""
    d = text.find(delimiter, pos, line_end)
    return line_end if d == -1 else d


def _read_row(
    text: str,
    pos: int,
    delimiter: str,
    linebreak: str,
    quote_char: str,
    escape_char: str,
) -> Tuple[List[str], List[_RowIssue], int]:
    """pos から 1 行分のフィールドを読み出し、次の行頭位置を返す"""
    size = len(text)
    fields: List[str] = []
    issues: List[_RowIssue] = []
    line_end = _find_line_end(text, pos, linebreak)

    while True:
        column = len(fields)
        if line_end < pos:
            line_end = _find_line_end(text, pos, linebreak)

        if pos < size and text[pos] == quote_char:
            buf: List[str] = []
            pos += 1
            closed = False

            while pos < size:
                ch = text[pos]
                nxt = text[pos + 1] if pos + 1 < size else ""
                if ch == escape_char and nxt == quote_char and escape_char != quote_char:
                    buf.append(quote_char)
                    pos += 2
                    continue
                if ch == quote_char:
                    if escape_char == quote_char and nxt == quote_char:
                        buf.append(quote_char)
                        pos += 2
                        continue
                    pos += 1
                    closed = True
                    break
                buf.append(ch)
                pos += 1

            if not closed:
                # 閉じクォートなし: 入力末尾までをフィールドとして扱う
                issues.append(("MissingQuotes", column))
                fields.append("".join(buf))
                return fields, issues, size

            if pos < size and not text.startswith(delimiter, pos) and not text.startswith(linebreak, pos):
                # 閉じクォート直後のゴミは次の境界までフィールドに連結
                issues.append(("InvalidQuotes", column))
                if line_end < pos:
                    # 改行を含むクォートを読み進めた
                    line_end = _find_line_end(text, pos, linebreak)
                end = _next_boundary(text, pos, delimiter, line_end)
                buf.append(text[pos:end])
                pos = end

            fields.append("".join(buf))
        else:
            end = _next_boundary(text, pos, delimiter, line_end)
            fields.append(text[pos:end])
            pos = end

        if pos >= size:
            return fields, issues, size
        if text.startswith(delimiter, pos):
            pos += len(delimiter)
            continue
        return fields, issues, pos + len(linebreak)


def _make_error(code: str, row: int, column: int) -> ParseError:
    if code == "MissingQuotes":
        message = "Quoted field unterminated"
    else:
        message = "Trailing quote on quoted field is malformed"
    return ParseError(type="Quotes", code=code, message=message, row=row, column=column)


def _tokenize(
    text: str,
    *,
    delimiter: str,
    linebreak: str,
    quote_char: str,
    escape_char: str,
    comments: str,
    skip_empty_lines: bool,
    max_rows: int = 0,
) -> TokenizeResult:
    result = TokenizeResult(delimiter=delimiter, linebreak=linebreak)
    size = len(text)
    pos = 0

    while pos < size:
        if max_rows and len(result.rows) >= max_rows:
            result.truncated = True
            break

        if comments:
            line_end = text.find(linebreak, pos)
            line = text[pos:] if line_end == -1 else text[pos:line_end]
            if line.lstrip().startswith(comments):
                pos = size if line_end == -1 else line_end + len(linebreak)
                continue

        row, issues, pos = _read_row(text, pos, delimiter, linebreak, quote_char, escape_char)

        if skip_empty_lines and not issues and all(value == "" for value in row):
            continue

        result.rows.append(row)
        row_number = len(result.rows)
        for code, column in issues:
            result.errors.append(_make_error(code, row_number, column))

    result.cursor = pos
    return result


def tokenize(text: str, options: ParseOptions) -> TokenizeResult:
    """CSV テキストを行（フィールド文字列の配列）の列に分解する

    改行・区切り文字が未指定なら自動判定し、結果に記録する。
    データ不備は例外にせず errors に積む。
    """
    if text.startswith(BYTE_ORDER_MARK):
        text = text[len(BYTE_ORDER_MARK):]

    linebreak = options.newline or _guess_linebreak(text, options)

    errors: List[ParseError] = []
    delimiter = options.delimiter
    if not delimiter:
        delimiter = _guess_delimiter(text, linebreak, options)
        if delimiter is None:
            delimiter = DEFAULT_DELIMITER
            if text.strip():
                errors.append(
                    ParseError(
                        type="Delimiter",
                        code="UndetectableDelimiter",
                        message=(
                            "Unable to auto-detect delimiting character; "
                            f"defaulted to '{DEFAULT_DELIMITER}'"
                        ),
                    )
                )

    # preview はデータ行数なのでヘッダ行の分を足す
    max_rows = 0
    if options.preview:
        max_rows = options.preview + (1 if options.header else 0)

    result = _tokenize(
        text,
        delimiter=delimiter,
        linebreak=linebreak,
        quote_char=options.quote_char,
        escape_char=options.escape_char,
        comments=options.comment_prefix,
        skip_empty_lines=options.skip_empty_lines,
        max_rows=max_rows,
    )
    result.errors = errors + result.errors
    return result


def parse(text: str, options: Optional[ParseOptions] = None) -> ParseResult:
    """CSV テキスト -> ParseResult（トークナイズ + レコード組み立て）"""
    options = options or ParseOptions()

    tokens = tokenize(text, options)
    assembled = assemble(tokens.rows, options)

    meta = ParseMeta(
        fields=assembled.fields,
        delimiter=tokens.delimiter,
        linebreak=tokens.linebreak,
        truncated=tokens.truncated,
        cursor=tokens.cursor,
    )
    errors = tokens.errors + assembled.errors

    if errors:
        logger.warning("CSV parsed with %d structural error(s)", len(errors))

    return ParseResult(records=assembled.records, meta=meta, errors=errors)
