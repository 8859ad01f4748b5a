from __future__ import annotations

from typing import Dict, Iterable, List, Optional

from .models import FieldValue, ParseResult, Record, ValidationReport


def _key_count(record: Record) -> int:
    return len(record)


def check_row_consistency(records: List[Record]) -> bool:
    """全レコードのキー数が先頭レコードと同じか（0 件なら True）"""
    if not records:
        return True
    expected = _key_count(records[0])
    return all(_key_count(r) == expected for r in records[1:])


def _is_empty(value: Optional[FieldValue]) -> bool:
    return value is None or value == ""


def find_empty_fields(records: List[Record], fields: Iterable[str] = ()) -> Dict[str, List[int]]:
    """値が空（空文字 / None / キー自体なし）のフィールドごとにレコード番号を集める

    ヘッダに存在するのにレコード側にキーがない場合も「空」として数える。
    位置指定レコード（リスト）は "0", "1", ... をフィールド名とする。
    """
    header = list(dict.fromkeys(fields))
    empty: Dict[str, List[int]] = {}

    for index, record in enumerate(records):
        if isinstance(record, dict):
            names = list(dict.fromkeys(header + list(record.keys())))
            values = [record.get(name) for name in names]
        else:
            names = [str(i) for i in range(len(record))]
            values = list(record)

        for name, value in zip(names, values):
            if _is_empty(value):
                empty.setdefault(name, []).append(index)

    return empty


def find_duplicate_headers(fields: Optional[List[str]]) -> List[str]:
    """2 回以上出現するヘッダ名を、初めて重複した順に 1 回ずつ返す"""
    if not fields:
        return []

    seen = set()
    duplicates: List[str] = []
    for name in fields:
        if name in seen and name not in duplicates:
            duplicates.append(name)
        seen.add(name)
    return duplicates


def validate(result: ParseResult) -> ValidationReport:
    return ValidationReport(
        has_data=len(result.records) > 0,
        has_headers=len(result.meta.fields) > 0,
        has_errors=len(result.errors) > 0,
        is_consistent=check_row_consistency(result.records),
        empty_fields=find_empty_fields(result.records, result.meta.fields),
        duplicate_headers=find_duplicate_headers(result.meta.fields),
    )


def is_valid(report: ValidationReport) -> bool:
    return report.has_data and not report.has_errors and report.is_consistent
