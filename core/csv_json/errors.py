from __future__ import annotations


class CsvJsonError(Exception):
    """リクエスト全体を中断させる致命的エラーの基底クラス

    データ自体の不備（クォート崩れ・列数不一致など）はここには含めず、
    ParseError として結果に積む。
    """

    code = "CSV_JSON_ERROR"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidRequestError(CsvJsonError):
    """operation 不明・csvData の型不一致・options 不正など"""

    code = "INVALID_REQUEST"


class InvalidInputError(CsvJsonError):
    """unparse に渡されたデータがオブジェクト配列ではない"""

    code = "INVALID_INPUT"


class FetchError(CsvJsonError):
    """URL からの CSV 取得に失敗した"""

    code = "FETCH_FAILED"
