import pytest

from memquery import Select
from memquery.errors import ExecutionError, PlanError
from memquery.exec.assembler import assemble
from memquery.model import ColumnName, Field, Row

ID = ColumnName("hr", "emp", "id")
NAME = ColumnName("hr", "emp", "name")
DEPT_NAME = ColumnName("hr", "dept", "name")


def rows(n):
    return [Row(fields=(Field(ID, i), Field(NAME, f"n{i}"), Field(DEPT_NAME, f"d{i}"))) for i in range(n)]


def test_metadata_follows_selector_order_with_aliases_and_types():
    select = Select(
        outputs=(NAME, ID),
        aliases={NAME: "emp_name"},
        types={ID: "INTEGER", NAME: "TEXT"},
    )
    rs = assemble(select, -1, rows(1))
    assert [(m.alias, m.type) for m in rs.columns] == [("emp_name", "TEXT"), ("id", "INTEGER")]
    assert rs.rows == [{"emp_name": "n0", "id": 0}]


def test_same_column_name_in_two_tables_resolves_by_identity():
    select = Select(outputs=(NAME, DEPT_NAME), aliases={DEPT_NAME: "dept"})
    rs = assemble(select, -1, rows(2))
    assert rs.rows == [{"name": "n0", "dept": "d0"}, {"name": "n1", "dept": "d1"}]


def test_alias_containing_another_column_name_is_not_confused():
    # an alias like "id_name" must not pick up the "id" field
    select = Select(outputs=(NAME,), aliases={NAME: "id_name"})
    assert assemble(select, -1, rows(1)).rows == [{"id_name": "n0"}]


@pytest.mark.parametrize("n,limit,expected", [(5, -1, 5), (5, 3, 3), (5, 0, 0), (2, 10, 2), (0, 4, 0)])
def test_limit(n, limit, expected):
    rs = assemble(Select(outputs=(ID,)), limit, rows(n))
    assert len(rs) == expected
    assert [r["id"] for r in rs.rows] == list(range(expected))


def test_invalid_limit():
    with pytest.raises(PlanError):
        assemble(Select(outputs=(ID,)), -2, rows(1))


def test_missing_column_is_an_error_in_strict_mode():
    other = ColumnName("hr", "emp", "salary")
    with pytest.raises(ExecutionError):
        assemble(Select(outputs=(ID, other)), -1, rows(1))


def test_missing_column_is_left_out_in_lenient_mode():
    other = ColumnName("hr", "emp", "salary")
    rs = assemble(Select(outputs=(ID, other)), -1, rows(1), strict=False)
    assert rs.rows == [{"id": 0}]
    assert rs.tuples() == [[0, None]]


def test_duplicate_alias_is_rejected():
    with pytest.raises(PlanError):
        assemble(Select(outputs=(NAME, DEPT_NAME)), -1, rows(1))
