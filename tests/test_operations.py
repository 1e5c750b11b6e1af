import msgpack
import pytest

from datanode.protocol.operations import (
    AddColumn,
    AlterTableStatement,
    CreateTableStatement,
    DescribeTableStatement,
    DropColumn,
    DropTableStatement,
    ModifyColumn,
    RenameColumn,
    RenameTableStatement,
    ShowTablesStatement,
    TruncateTableStatement,
    alter_operation_from_wire,
    alter_operation_to_wire,
)
from datanode.protocol.statement import ColumnDefinition, StatementError, StatementKind


def _column(name="id", primary_key=True):
    return ColumnDefinition(name, "INT", 8, primary_key, False, "0")


def _framed(obj):
    payload = msgpack.packb(obj, use_bin_type=True)
    return len(payload).to_bytes(4, "big") + payload


def test_drop_table_wire_bytes():
    assert DropTableStatement("t").to_bytes() == b"\x00\x00\x00\x0e\x81\xaatable_name\xa1t"


@pytest.mark.parametrize(
    "statement",
    [
        CreateTableStatement("users", [_column(), _column("name", False)], "memory"),
        DropTableStatement("users"),
        RenameTableStatement("users", "people"),
        TruncateTableStatement("users"),
        ShowTablesStatement("main"),
        DescribeTableStatement("users"),
        AlterTableStatement(
            "users",
            [
                AddColumn(_column("age", False)),
                DropColumn("nickname"),
                RenameColumn("name", "full_name"),
                ModifyColumn(_column("id")),
            ],
        ),
    ],
)
def test_round_trip(statement):
    assert type(statement).from_bytes(statement.to_bytes()) == statement


def test_protocol_kinds():
    assert CreateTableStatement("t", [], "s").protocol() is StatementKind.CREATE_TABLE
    assert AlterTableStatement("t", []).protocol() is StatementKind.ALTER_TABLE
    assert RenameTableStatement("a", "b").protocol() is StatementKind.RENAME_TABLE
    assert DescribeTableStatement("t").protocol() is StatementKind.DESCRIBE_TABLE


def test_create_table_decodes_column_definitions():
    statement = CreateTableStatement("users", [_column()], "memory")
    decoded = CreateTableStatement.from_bytes(statement.to_bytes())
    assert isinstance(decoded.columns[0], ColumnDefinition)
    assert decoded.columns[0].name == "id"


def test_create_table_field_order():
    statement = CreateTableStatement("users", [], "memory")
    assert list(statement.to_dict()) == ["table_name", "columns", "storage"]


def test_alter_operation_wire_forms():
    column = _column("age", False)
    assert alter_operation_to_wire(AddColumn(column)) == {"AddColumn": column.to_dict()}
    assert alter_operation_to_wire(DropColumn("c")) == {"DropColumn": "c"}
    assert alter_operation_to_wire(RenameColumn("a", "b")) == {
        "RenameColumn": {"old_name": "a", "new_name": "b"}
    }
    assert alter_operation_to_wire(ModifyColumn(column)) == {"ModifyColumn": column.to_dict()}


@pytest.mark.parametrize(
    "operation",
    [AddColumn(_column()), DropColumn("x"), RenameColumn("a", "b"), ModifyColumn(_column())],
)
def test_alter_operation_round_trip(operation):
    assert alter_operation_from_wire(alter_operation_to_wire(operation)) == operation


def test_alter_table_decodes_externally_produced_payload():
    data = _framed(
        {
            "table_name": "t",
            "operations": [{"DropColumn": "c"}, {"RenameColumn": ["a", "b"]}],
        }
    )
    decoded = AlterTableStatement.from_bytes(data)
    assert decoded == AlterTableStatement("t", [DropColumn("c"), RenameColumn("a", "b")])


def test_alter_operation_to_wire_rejects_other_values():
    with pytest.raises(StatementError):
        alter_operation_to_wire("DropColumn")


@pytest.mark.parametrize(
    "data",
    [
        {"Unknown": "x"},
        {"DropColumn": 5},
        {"RenameColumn": {"old_name": "a"}},
        {"RenameColumn": ["only"]},
        {"DropColumn": "a", "AddColumn": {}},
        "DropColumn",
        {"AddColumn": {"name": "x"}},
    ],
)
def test_alter_operation_from_wire_rejects_malformed(data):
    with pytest.raises(StatementError):
        alter_operation_from_wire(data)


def test_alter_table_missing_operations():
    with pytest.raises(StatementError):
        AlterTableStatement.from_bytes(_framed({"table_name": "t"}))


def test_alter_table_wrong_table_name_type():
    with pytest.raises(StatementError):
        AlterTableStatement.from_bytes(_framed({"table_name": 3, "operations": []}))


def test_too_short_input_rejected():
    with pytest.raises(StatementError, match="length prefix"):
        DropTableStatement.from_bytes(b"\x00\x00")


def test_missing_field_rejected():
    with pytest.raises(StatementError):
        RenameTableStatement.from_bytes(_framed({"old_table_name": "a"}))


def test_wrong_field_type_rejected():
    with pytest.raises(StatementError):
        TruncateTableStatement.from_bytes(_framed({"table_name": 12}))