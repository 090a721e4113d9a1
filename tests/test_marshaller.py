"""Data-API statement marshalling: placeholder rewrite, typed params, tagged fields."""

from datetime import date
from decimal import Decimal

import pytest

from orgquery.db.marshaller import (
    decode_field,
    encode_parameters,
    encode_value,
    records_to_rows,
    rewrite_placeholders,
)


# ── Placeholder rewrite ───────────────────────────────────────────────────────

def test_rewrite_replaces_every_ordinal():
    sql = "SELECT * FROM t WHERE a = $1 AND b = $2 LIMIT $3"
    assert rewrite_placeholders(sql) == "SELECT * FROM t WHERE a = :p1 AND b = :p2 LIMIT :p3"


def test_rewrite_handles_multi_digit_and_repeats():
    assert rewrite_placeholders("$10 + $1 + $1") == ":p10 + :p1 + :p1"


def test_rewrite_leaves_bare_dollar_alone():
    assert rewrite_placeholders("SELECT '$' || name FROM t") == "SELECT '$' || name FROM t"


# ── Parameter encoding ────────────────────────────────────────────────────────

def test_encode_scalars():
    assert encode_value(None) == {"isNull": True}
    assert encode_value("x") == {"stringValue": "x"}
    assert encode_value(7) == {"longValue": 7}
    assert encode_value(2.5) == {"doubleValue": 2.5}


def test_encode_bool_is_not_long():
    """bool is an int subclass; it must still be tagged booleanValue."""
    assert encode_value(True) == {"booleanValue": True}
    assert encode_value(False) == {"booleanValue": False}


def test_encode_other_values_as_strings():
    assert encode_value({"a": 1}) == {"stringValue": '{"a": 1}'}
    assert encode_value(date(2024, 3, 1)) == {"stringValue": "2024-03-01"}
    assert encode_value(Decimal("1.50")) == {"stringValue": "1.50"}


def test_encode_parameters_names_are_one_based():
    encoded = encode_parameters(["org_A", 20, None])
    assert [p["name"] for p in encoded] == ["p1", "p2", "p3"]
    assert encoded[0]["value"] == {"stringValue": "org_A"}
    assert encoded[2]["value"] == {"isNull": True}


# ── Field decoding ────────────────────────────────────────────────────────────

def test_decode_tagged_fields():
    assert decode_field({"stringValue": "a"}) == "a"
    assert decode_field({"longValue": 3}) == 3
    assert decode_field({"doubleValue": 1.25}) == 1.25
    assert decode_field({"booleanValue": False}) is False
    assert decode_field({"isNull": True}) is None


def test_decode_unknown_or_empty_is_none():
    assert decode_field({}) is None
    assert decode_field(None) is None
    assert decode_field({"somethingNew": 1}) is None


@pytest.mark.parametrize("value", [None, "", "Dr. Rao", 0, -42, 2**40, 3.25, True, False])
def test_scalars_survive_encode_then_decode(value):
    decoded = decode_field(encode_value(value))
    assert decoded == value
    assert type(decoded) is type(value)


def test_decode_arrays():
    assert decode_field({"arrayValue": {"longValues": [1, 2]}}) == [1, 2]
    nested = {"arrayValue": {"arrayValues": [{"stringValues": ["a"]}, {"stringValues": ["b", "c"]}]}}
    assert decode_field(nested) == [["a"], ["b", "c"]]


def test_records_to_rows_zips_by_position():
    records = [
        [{"longValue": 1}, {"stringValue": "Dr. Rao"}],
        [{"longValue": 2}, {"isNull": True}],
    ]
    meta = [{"name": "id"}, {"name": "name"}]
    assert records_to_rows(records, meta) == [
        {"id": 1, "name": "Dr. Rao"},
        {"id": 2, "name": None},
    ]


def test_records_to_rows_falls_back_to_label_then_index():
    records = [[{"longValue": 1}, {"stringValue": "x"}, {"booleanValue": True}]]
    meta = [{"name": ""}, {"label": "title"}]
    assert records_to_rows(records, meta) == [{"col_0": 1, "title": "x", "col_2": True}]
