from unittest.mock import Mock, patch

import pytest
import requests

from core.csv_json.errors import FetchError, InvalidInputError, InvalidRequestError
from core.csv_json.models import CsvJsonRequest, ParseOptions
from core.csv_json.service import (
    handle_payload,
    parse_csv,
    process_request,
    unparse_json,
    validate_csv,
)


def _ok_response(text: str) -> Mock:
    response = Mock()
    response.text = text
    response.raise_for_status = Mock()
    return response


def test_parse_counts_rows_and_columns():
    resp = parse_csv("name,age,city\nJohn,30,NYC\nJane,25,LA", ParseOptions())

    assert resp.success is True
    assert resp.operation == "parse"
    assert resp.data == [
        {"name": "John", "age": 30, "city": "NYC"},
        {"name": "Jane", "age": 25, "city": "LA"},
    ]
    assert resp.row_count == 2
    assert resp.column_count == 3


def test_unparse_reports_row_count_and_byte_size():
    json_data = [
        {"product": "Laptop", "price": 999, "stock": 50},
        {"product": "Mouse", "price": 29, "stock": 200},
    ]
    resp = unparse_json(json_data, ParseOptions())

    assert resp.csv == "product,price,stock\nLaptop,999,50\nMouse,29,200"
    assert resp.row_count == 2
    assert resp.byte_size == len(resp.csv)


def test_byte_size_counts_utf8_bytes():
    resp = unparse_json([{"city": "東京"}], ParseOptions())

    assert resp.csv == "city\n東京"
    assert resp.byte_size == 4 + 1 + 6


def test_unparse_requires_array_of_objects():
    with pytest.raises(InvalidInputError) as exc:
        unparse_json("a,b", ParseOptions())
    assert "jsonData must be an array of objects" in str(exc.value)


def test_csv_data_must_be_string():
    with pytest.raises(InvalidRequestError) as exc:
        parse_csv(123, ParseOptions())
    assert "csvData must be a string" in str(exc.value)
    assert "got int" in str(exc.value)

    with pytest.raises(InvalidRequestError):
        validate_csv(None, ParseOptions())


def test_validate_response_shape():
    text = "name,age,city\nJohn,30,NYC\n,25,LA\nBob,invalid,Chicago"
    resp = validate_csv(text, ParseOptions())

    assert resp.operation == "validate"
    assert resp.is_valid is True
    assert resp.validations.empty_fields == {"name": [1]}
    assert len(resp.data) == 3
    assert resp.errors == []


def test_validate_with_structural_error_is_not_valid():
    resp = validate_csv('a,"b,c\nd,e', ParseOptions(header=False))

    assert resp.is_valid is False
    assert resp.validations.has_errors is True
    assert resp.errors[0].type == "Quotes"


def test_url_input_is_fetched():
    with patch("core.csv_json.fetcher.requests.get", return_value=_ok_response("a,b\n1,2")) as get:
        resp = parse_csv("https://example.com/data.csv", ParseOptions())

    get.assert_called_once_with("https://example.com/data.csv", timeout=None)
    assert resp.data == [{"a": 1, "b": 2}]


def test_non_url_string_is_never_fetched():
    with patch("core.csv_json.fetcher.requests.get") as get:
        resp = parse_csv("ftp://example.com,x\n1,2", ParseOptions())

    get.assert_not_called()
    assert resp.meta.fields == ["ftp://example.com", "x"]


def test_fetch_network_failure_is_fatal():
    boom = requests.exceptions.ConnectionError("connection refused")
    with patch("core.csv_json.fetcher.requests.get", side_effect=boom):
        with pytest.raises(FetchError) as exc:
            validate_csv("http://example.com/data.csv", ParseOptions())

    assert "Failed to fetch CSV from URL: connection refused" in str(exc.value)


def test_fetch_non_2xx_is_fatal():
    response = _ok_response("not found")
    response.raise_for_status.side_effect = requests.HTTPError("404 Client Error")
    with patch("core.csv_json.fetcher.requests.get", return_value=response):
        with pytest.raises(FetchError):
            parse_csv("https://example.com/missing.csv", ParseOptions())


def test_process_request_dispatches_by_operation():
    req = CsvJsonRequest(operation="unparse", json_data=[{"a": 1}])

    assert process_request(req).csv == "a\n1"

    with pytest.raises(InvalidRequestError) as exc:
        process_request(CsvJsonRequest(operation="merge", csv_data="a,b"))
    assert str(exc.value) == "Unknown operation: merge"


def test_options_override_defaults():
    req = CsvJsonRequest.model_validate(
        {"operation": "parse", "csvData": "a;b\n1;2", "options": {"dynamicTyping": False, "delimiter": ";"}}
    )

    assert req.options.header is True
    assert req.options.dynamic_typing is False
    assert process_request(req).data == [{"a": "1", "b": "2"}]


def test_handle_payload_returns_camel_case_dict():
    out = handle_payload({"csvData": "name,age\nJohn,30"})

    assert out["success"] is True
    assert out["operation"] == "parse"
    assert out["rowCount"] == 1
    assert out["columnCount"] == 2
    assert out["data"] == [{"name": "John", "age": 30}]
    assert out["meta"]["fields"] == ["name", "age"]


def test_handle_payload_rejects_unknown_options():
    with pytest.raises(InvalidRequestError) as exc:
        handle_payload({"csvData": "a,b", "options": {"transformHeader": "x"}})
    assert "Invalid request" in str(exc.value)

    with pytest.raises(InvalidRequestError):
        handle_payload({"csvData": "a,b", "options": {"quoteChar": "''"}})

    with pytest.raises(InvalidRequestError) as exc:
        handle_payload(None)
    assert str(exc.value) == "No input provided"


def test_parse_with_very_long_number_is_not_fatal():
    """巨大な数値フィールドでもリクエスト全体は失敗しないこと"""
    out = handle_payload({"operation": "parse", "csvData": "id,n\n1," + "9" * 5000})

    assert out["success"] is True
    assert out["data"] == [{"id": 1, "n": "9" * 5000}]
    assert out["errors"] == []
