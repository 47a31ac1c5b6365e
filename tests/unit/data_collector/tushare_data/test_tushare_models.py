import math

import pytest

from src.data_collector.tushare_data.errors import SerializationError
from src.data_collector.tushare_data.models import (
    RequestParams,
    ResponseData,
    ScalarKind,
    TushareResponse,
    classify_scalar,
    join_fields,
)


@pytest.mark.parametrize(
    "value,kind",
    [
        ("000001.SZ", ScalarKind.STRING),
        ("", ScalarKind.STRING),
        (20240102, ScalarKind.NUMBER),
        (10.5, ScalarKind.NUMBER),
        (True, ScalarKind.BOOLEAN),
        (False, ScalarKind.BOOLEAN),
        (None, ScalarKind.NULL),
    ],
)
def test_classify_scalar(value, kind):
    assert classify_scalar(value) is kind


@pytest.mark.parametrize("value", [["a"], {"a": 1}, (1, 2), math.nan, math.inf, object()])
def test_classify_scalar_rejects_non_scalars(value):
    with pytest.raises(SerializationError):
        classify_scalar(value)


def test_join_fields():
    assert join_fields(None) == ""
    assert join_fields("ts_code,close") == "ts_code,close"
    assert join_fields(["ts_code", "close"]) == "ts_code,close"
    assert join_fields(()) == ""


def test_payload_omits_empty_params_and_fields():
    req = RequestParams.build("trade_cal", "tok")
    assert req.to_payload() == {"api_name": "trade_cal", "token": "tok"}


def test_payload_keeps_explicit_null_param():
    req = RequestParams.build("daily", "tok", {"ts_code": "000001.SZ", "end_date": None}, "ts_code")
    assert req.to_payload() == {
        "api_name": "daily",
        "token": "tok",
        "params": {"ts_code": "000001.SZ", "end_date": None},
        "fields": "ts_code",
    }


def test_build_rejects_empty_api_name():
    with pytest.raises(SerializationError):
        RequestParams.build("", "tok")


def test_build_rejects_nested_param_value():
    with pytest.raises(SerializationError, match="ts_code"):
        RequestParams.build("daily", "tok", {"ts_code": {"in": ["a", "b"]}})


def test_with_page_leaves_original_untouched():
    base = RequestParams.build("daily", "tok", {"ts_code": "000001.SZ", "offset": 99})
    paged = base.with_page(10, 5)

    assert paged.params == {"ts_code": "000001.SZ", "offset": 10, "limit": 5}
    assert base.params == {"ts_code": "000001.SZ", "offset": 99}


def test_with_page_rejects_negative_offset():
    base = RequestParams.build("daily", "tok")
    with pytest.raises(ValueError):
        base.with_page(-1, 5)


def test_repr_hides_token():
    req = RequestParams.build("daily", "secret-token")
    assert "secret-token" not in repr(req)


def test_parse_null_msg_and_data():
    resp = TushareResponse.parse({"code": 0, "msg": None, "data": None})
    assert resp.msg == ""
    assert resp.data is None
    assert resp.fields == []
    assert resp.items == []
    assert resp.to_records() == []


def test_parse_null_fields_and_items():
    resp = TushareResponse.parse({"code": 0, "msg": "", "data": {"fields": None, "items": None}})
    assert resp.data.fields == []
    assert resp.data.items == []
    assert resp.data.has_more is False


def test_parse_non_zero_code_is_still_an_envelope():
    resp = TushareResponse.parse({"code": 40101, "msg": "token invalid"})
    assert not resp.is_success()
    assert resp.msg == "token invalid"


def test_parse_keeps_response_data_on_failure():
    payload = {"code": "not-a-number"}
    with pytest.raises(SerializationError) as exc:
        TushareResponse.parse(payload)
    assert exc.value.response_data == payload


def test_row_wider_than_fields_rejected():
    with pytest.raises(ValueError):
        ResponseData(fields=["a"], items=[["x", "y"]])


def test_short_rows_omit_trailing_fields():
    resp = TushareResponse.parse(
        {
            "code": 0,
            "data": {
                "fields": ["ts_code", "trade_date", "close"],
                "items": [["000001.SZ", "20240102", 9.39], ["000002.SZ"]],
            },
        }
    )
    records = resp.to_records()
    assert records[0] == {"ts_code": "000001.SZ", "trade_date": "20240102", "close": 9.39}
    assert records[1] == {"ts_code": "000002.SZ"}


def test_records_match_rows():
    """Every record maps fields[j] to row[j] for each position in the row"""
    fields = ["a", "b", "c"]
    items = [[1, None, "x"], [2.5, True], []]
    resp = TushareResponse.merged(fields, items)

    records = resp.to_records()
    assert len(records) == len(items)
    for record, row in zip(records, items):
        assert set(record) == set(fields[: len(row)])
        for j, value in enumerate(row):
            assert record[fields[j]] == value


def test_merged_envelope():
    resp = TushareResponse.merged(["a"], [[1], [2]])
    assert resp.code == 0
    assert resp.msg == ""
    assert resp.data.has_more is False
    assert resp.items == [[1], [2]]


def test_to_frame_fills_missing_values():
    resp = TushareResponse.merged(["ts_code", "close"], [["000001.SZ", 9.39], ["000002.SZ"]])
    frame = resp.to_frame()

    assert list(frame.columns) == ["ts_code", "close"]
    assert len(frame) == 2
    assert frame.loc[0, "close"] == 9.39
    assert math.isnan(frame.loc[1, "close"])


@pytest.mark.parametrize(
    "payload",
    [
        {"code": True, "msg": ""},
        {"code": "0", "msg": ""},
        {"code": 0, "data": {"fields": ["a"], "items": [[1]], "has_more": "yes"}},
        {"code": 0, "data": {"fields": ["a"], "items": [[1]], "has_more": 1}},
    ],
)
def test_envelope_scalars_are_not_coerced(payload):
    """A boolean code or a non-boolean has_more is a malformed envelope"""
    with pytest.raises(SerializationError):
        TushareResponse.parse(payload)
