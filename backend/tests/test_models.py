"""Tests for the configuration record model."""

from __future__ import annotations

import pytest

from appconf.core.exceptions import ConfigurationParseError, ConfigurationStorageError
from appconf.db.models import AppConfigure, DataType, decode_type, encode_type
from appconf.schemas.app_configure import ConfigurationEntry


def _entry(data_type: DataType, data: str) -> ConfigurationEntry:
    return ConfigurationEntry(id=1, name="setting", data_type=data_type, data=data)


# =============================================================================
# Type Code Tests
# =============================================================================


@pytest.mark.parametrize("data_type", list(DataType))
def test_decode_inverts_encode(data_type: DataType) -> None:
    assert decode_type(encode_type(data_type)) is data_type


def test_encode_uses_lowercase_codes() -> None:
    assert [encode_type(t) for t in DataType] == ["int", "float", "bool", "string"]


@pytest.mark.parametrize("code", ["INT", "integer", "", "json", None])
def test_decode_unknown_code_falls_back_to_string(code) -> None:
    assert decode_type(code) is DataType.STRING


# =============================================================================
# Typed Value Tests
# =============================================================================


@pytest.mark.parametrize("data", ["true", "TRUE", "True", "tRuE"])
def test_bool_true_is_case_insensitive(data: str) -> None:
    assert _entry(DataType.BOOL, data).typed_value() is True


@pytest.mark.parametrize("data", ["false", "False", "0", "1", "", "yes", " true"])
def test_bool_anything_else_is_false(data: str) -> None:
    assert _entry(DataType.BOOL, data).typed_value() is False


@pytest.mark.parametrize("data, expected", [("7", 7), ("-12", -12), ("+3", 3), ("0", 0)])
def test_int_parses(data: str, expected: int) -> None:
    assert _entry(DataType.INT, data).typed_value() == expected


@pytest.mark.parametrize("data", ["abc", "", "1.5", " 7", "1_000"])
def test_int_rejects_invalid_literals(data: str) -> None:
    with pytest.raises(ConfigurationParseError):
        _entry(DataType.INT, data).typed_value()


def test_int_accepts_64_bit_bounds() -> None:
    assert _entry(DataType.INT, str(2**63 - 1)).typed_value() == 2**63 - 1
    assert _entry(DataType.INT, str(-(2**63))).typed_value() == -(2**63)


@pytest.mark.parametrize("data", [str(2**63), str(-(2**63) - 1), "9" * 40])
def test_int_rejects_values_outside_64_bits(data: str) -> None:
    with pytest.raises(ConfigurationParseError):
        _entry(DataType.INT, data).typed_value()


@pytest.mark.parametrize("data, expected", [("1.5", 1.5), ("-2", -2.0), ("1e3", 1000.0)])
def test_float_parses(data: str, expected: float) -> None:
    assert _entry(DataType.FLOAT, data).typed_value() == expected


@pytest.mark.parametrize("data", ["abc", "", "nan", "inf", "1_0.5", " 1.5"])
def test_float_rejects_invalid_literals(data: str) -> None:
    with pytest.raises(ConfigurationParseError):
        _entry(DataType.FLOAT, data).typed_value()


def test_parse_error_is_a_storage_error() -> None:
    with pytest.raises(ConfigurationStorageError) as exc_info:
        _entry(DataType.INT, "abc").typed_value()
    assert exc_info.value.code == "PARSE_ERROR"
    assert exc_info.value.name == "setting"


def test_string_returns_raw_text() -> None:
    assert _entry(DataType.STRING, " 42 ").typed_value() == " 42 "


def test_to_external_value() -> None:
    entry = ConfigurationEntry(
        id=3,
        name="max_retries",
        data_type=DataType.INT,
        data="7",
        description="retry budget",
        effective=True,
    )

    assert entry.to_external_value() == {
        "id": 3,
        "name": "max_retries",
        "data": 7,
        "data_type": "int",
        "effective": True,
        "description": "retry budget",
    }


# =============================================================================
# Row Conversion Tests
# =============================================================================


def test_from_row_decodes_unknown_type_and_null_data() -> None:
    row = AppConfigure(
        id=9,
        name="legacy",
        data_type="yaml",
        data=None,
        description=None,
        effective=None,
    )

    entry = ConfigurationEntry.from_row(row)

    assert entry.id == 9
    assert entry.data_type is DataType.STRING
    assert entry.data == ""
    assert entry.effective is None


def test_entry_rejects_negative_id() -> None:
    with pytest.raises(ValueError):
        ConfigurationEntry(id=-1, name="x")


def test_entry_rejects_id_beyond_storage_range() -> None:
    with pytest.raises(ValueError):
        ConfigurationEntry(id=2**31, name="x")
