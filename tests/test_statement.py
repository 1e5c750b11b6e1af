import msgpack
import pytest

from datanode.protocol.data import DeleteStatement, SelectStatement
from datanode.protocol.statement import (
    ColumnDefinition,
    StatementError,
    StatementKind,
)


def _column():
    return ColumnDefinition(
        name="id", type="int", length=11, primary_key=True, index=False, default_value=""
    )


def test_column_to_dict_uses_wire_names():
    data = _column().to_dict()
    assert list(data) == ["name", "type", "length", "primary_key", "index", "default_value"]
    assert data["type"] == "int"
    assert data["primary_key"] is True


def test_column_round_trip():
    column = _column()
    assert ColumnDefinition.from_dict(column.to_dict()) == column


def test_column_positional_array_form():
    decoded = ColumnDefinition.from_dict(["id", "int", 11, True, False, ""])
    assert decoded == _column()


def test_column_missing_field():
    data = _column().to_dict()
    del data["default_value"]
    with pytest.raises(StatementError):
        ColumnDefinition.from_dict(data)


def test_column_wrong_types():
    data = _column().to_dict()
    data["length"] = "eleven"
    with pytest.raises(StatementError):
        ColumnDefinition.from_dict(data)
    data = _column().to_dict()
    data["length"] = True
    with pytest.raises(StatementError):
        ColumnDefinition.from_dict(data)


def test_statement_protocol():
    assert SelectStatement("a").protocol() is StatementKind.SELECT


def test_statement_round_trip():
    stmt = SelectStatement("users", ["x", "y"], {"a": "b"}, 3)
    assert SelectStatement.from_bytes(stmt.to_bytes()) == stmt


def test_statement_length_prefix_matches_payload():
    encoded = DeleteStatement("users", {}, None).to_bytes()
    assert int.from_bytes(encoded[:4], "big") == len(encoded) - 4
    assert msgpack.unpackb(encoded[4:]) == {
        "table_name": "users",
        "conditions": {},
        "limit": None,
    }


def test_missing_optional_field_becomes_none():
    stmt = SelectStatement.from_dict({"table_name": "a", "columns": [], "conditions": {}})
    assert stmt.limit is None
    assert stmt.order_direction is None


def test_missing_required_field_is_error():
    with pytest.raises(StatementError):
        SelectStatement.from_dict({"columns": [], "conditions": {}})


def test_positional_array_form_is_accepted():
    assert SelectStatement.from_dict(["a", ["b"], {}, 2]) == SelectStatement("a", ["b"], {}, 2)


def test_too_many_positional_values_is_error():
    with pytest.raises(StatementError):
        DeleteStatement.from_dict(["t", {}, None, "extra"])


def test_unknown_keys_are_ignored():
    decoded = DeleteStatement.from_dict(
        {"table_name": "t", "conditions": {}, "limit": None, "extra": 1}
    )
    assert decoded == DeleteStatement("t", {}, None)


def test_from_bytes_too_short():
    with pytest.raises(StatementError, match="not enough bytes"):
        SelectStatement.from_bytes(b"\x00\x00")


def test_from_bytes_garbage_payload():
    with pytest.raises(StatementError):
        SelectStatement.from_bytes(b"\x00\x00\x00\x01\xc1")


def test_from_bytes_empty_payload():
    with pytest.raises(StatementError):
        SelectStatement.from_bytes(b"\x00\x00\x00\x00")


def test_from_bytes_non_map_payload():
    with pytest.raises(StatementError):
        SelectStatement.from_bytes(b"\x00\x00\x00\x01" + msgpack.packb(5))