from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel
from pydantic.config import ConfigDict


Operation = Literal["parse", "unparse", "validate"]
ErrorType = Literal["Quotes", "Delimiter", "FieldMismatch"]
ErrorCode = Literal[
    "MissingQuotes",
    "InvalidQuotes",
    "UndetectableDelimiter",
    "TooFewFields",
    "TooManyFields",
]

# レコードの値: 文字列 / 数値 / 真偽値 / 空（None は呼び出し側 JSON 由来のみ）
FieldValue = Union[bool, int, float, str, None]
Record = Union[Dict[str, FieldValue], List[FieldValue]]

BYTE_ORDER_MARK = "\ufeff"
LINEBREAKS = ("\n", "\r\n", "\r")


class _CamelModel(BaseModel):
    """JSON 側は camelCase、Python 側は snake_case で扱うための共通設定"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ParseOptions(_CamelModel):
    """
    パース / アンパース共通オプション

    既定値は元サービスの既定（header / dynamicTyping / skipEmptyLines /
    trimHeaders が有効）に合わせている。未知のキーは受け付けない。
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
        frozen=True,
        json_schema_extra={
            "example": {
                "header": True,
                "dynamicTyping": True,
                "delimiter": "",
                "comments": "#",
            }
        },
    )

    header: bool = True
    dynamic_typing: bool = True
    skip_empty_lines: bool = True
    delimiter: str = ""  # 空文字なら自動判定
    newline: str = ""  # 空文字なら自動判定
    quote_char: str = '"'
    escape_char: str = '"'
    comments: Union[bool, str] = False
    trim_headers: bool = True
    preview: int = Field(default=0, ge=0)

    # unparse 専用
    quotes: bool = False
    columns: Optional[List[str]] = None

    @field_validator("quote_char", "escape_char")
    @classmethod
    def _single_char(cls, value: str) -> str:
        if len(value) != 1:
            raise ValueError("must be exactly one character")
        return value

    @field_validator("newline")
    @classmethod
    def _known_linebreak(cls, value: str) -> str:
        if value and value not in LINEBREAKS:
            raise ValueError(r"must be one of '\n', '\r\n', '\r' or empty")
        return value

    @model_validator(mode="after")
    def _usable_delimiter(self) -> "ParseOptions":
        bad = ("\r", "\n", BYTE_ORDER_MARK, self.quote_char)
        if self.delimiter and any(b in self.delimiter for b in bad):
            raise ValueError(
                "delimiter may not contain a newline, the quote character or a BOM"
            )
        return self

    @property
    def comment_prefix(self) -> str:
        """コメント行の接頭辞。無効なら空文字"""
        if self.comments is True:
            return "#"
        if self.comments is False:
            return ""
        return self.comments


class ParseError(BaseModel):
    """構造上の（致命的でない）エラー。row は 1 始まり、column は 0 始まり"""

    type: ErrorType
    code: ErrorCode
    message: str
    row: Optional[int] = None
    column: Optional[int] = None


class ParseMeta(_CamelModel):
    fields: List[str] = Field(default_factory=list)
    delimiter: str = ","
    linebreak: str = "\n"
    truncated: bool = False
    cursor: int = 0


class ParseResult(_CamelModel):
    records: List[Record] = Field(default_factory=list)
    meta: ParseMeta = Field(default_factory=ParseMeta)
    errors: List[ParseError] = Field(default_factory=list)


class ValidationReport(_CamelModel):
    has_data: bool
    has_headers: bool
    has_errors: bool
    is_consistent: bool
    empty_fields: Dict[str, List[int]] = Field(default_factory=dict)
    duplicate_headers: List[str] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# リクエスト / レスポンス
# ---------------------------------------------------------------------------


class CsvJsonRequest(_CamelModel):
    """
    CSV ⇄ JSON 変換 API リクエストモデル

    csvData / jsonData の型チェックは service 側で行う
    （型不一致をリクエスト単位の致命的エラーとして扱うため Any で受ける）。
    """

    operation: str = "parse"
    csv_data: Any = None
    json_data: Any = None
    options: ParseOptions = Field(default_factory=ParseOptions)

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "operation": "parse",
                "csvData": "name,age\nJohn,30",
                "options": {"dynamicTyping": True},
            }
        },
    )


class ParseResponse(_CamelModel):
    success: bool = True
    operation: Operation = "parse"
    data: List[Record]
    meta: ParseMeta
    errors: List[ParseError]
    row_count: int
    column_count: int


class UnparseResponse(_CamelModel):
    success: bool = True
    operation: Operation = "unparse"
    csv: str
    row_count: int
    byte_size: int


class ValidateResponse(_CamelModel):
    success: bool = True
    operation: Operation = "validate"
    is_valid: bool
    validations: ValidationReport
    data: List[Record]
    meta: ParseMeta
    errors: List[ParseError]


CsvJsonResponse = Union[ParseResponse, UnparseResponse, ValidateResponse]
