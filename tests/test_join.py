import pytest

from memquery.errors import ExecutionError
from memquery.exec.join import correlate
from memquery.model import ColumnName, Field, JoinKey, Row

E_ID = ColumnName("hr", "emp", "id")
E_DEPT = ColumnName("hr", "emp", "dept_key")
D_KEY = ColumnName("hr", "dept", "dept_key")
D_NAME = ColumnName("hr", "dept", "name")


def emp(id_, dept, position=1):
    return Row(fields=(Field(E_ID, id_),), join_keys=(JoinKey("j", E_DEPT, dept, position),))


def dept(key, name):
    return Row(fields=(Field(D_NAME, name),), join_keys=(JoinKey("j", D_KEY, key, 1),))


def values(rows):
    return [[f.value for f in r.fields] for r in rows]


@pytest.mark.parametrize("method", ["index", "scan"])
def test_inner_join_drops_unmatched_rows(method):
    primary = [emp(1, "A"), emp(2, "Z")]
    out = correlate(primary, [[dept("A", "Eng")]], method=method)
    assert values(out) == [[1, "Eng"]]
    assert all(not r.join_keys for r in out)


@pytest.mark.parametrize("method", ["index", "scan"])
def test_first_match_wins_per_table(method):
    out = correlate([emp(1, "A")], [[dept("A", "Eng"), dept("A", "Eng2")]], method=method)
    assert values(out) == [[1, "Eng"]]


@pytest.mark.parametrize("method", ["index", "scan"])
def test_matches_from_every_secondary_table_are_appended(method):
    other_name = ColumnName("hr", "dept_archive", "name")
    other_key = ColumnName("hr", "dept_archive", "dept_key")
    archive = [Row(fields=(Field(other_name, "Old Eng"),), join_keys=(JoinKey("j", other_key, "A"),))]
    out = correlate([emp(1, "A")], [[dept("A", "Eng")], archive], method=method)
    assert values(out) == [[1, "Eng", "Old Eng"]]


@pytest.mark.parametrize("method", ["index", "scan"])
def test_one_matching_table_is_enough(method):
    out = correlate([emp(1, "A")], [[], [dept("A", "Eng")]], method=method)
    assert values(out) == [[1, "Eng"]]


def test_single_table_strips_join_keys_without_dropping():
    primary = [emp(1, "A"), emp(2, None)]
    out = correlate(primary, [])
    assert values(out) == [[1], [2]]
    assert all(not r.join_keys for r in out)


def test_row_without_join_keys_passes_through():
    plain = Row(fields=(Field(E_ID, 9),))
    out = correlate([plain], [[dept("A", "Eng")]])
    assert out == [plain]


def test_matched_fields_are_interleaved_at_key_position():
    e_name = ColumnName("hr", "emp", "name")
    row = Row(
        fields=(Field(E_ID, 1), Field(e_name, "Ada")),
        join_keys=(JoinKey("j", E_DEPT, "A", position=1),),
    )
    out = correlate([row], [[dept("A", "Eng")]])
    assert [f.column for f in out[0].fields] == [E_ID, D_NAME, e_name]


def test_null_keys_do_not_join():
    out = correlate([emp(1, None)], [[dept(None, "Nowhere")]])
    assert out == []


def test_methods_agree_on_larger_input():
    primary = [emp(i, f"k{i % 7}") for i in range(50)]
    secondary = [dept(f"k{i}", f"name{i}") for i in range(0, 7, 2)] * 2
    assert correlate(primary, [secondary], "index") == correlate(primary, [secondary], "scan")


def test_unknown_method_is_rejected():
    with pytest.raises(ExecutionError):
        correlate([], [], method="merge")


E_SITE = ColumnName("hr", "emp", "site")
S_KEY = ColumnName("hr", "site", "site_key")
S_NAME = ColumnName("hr", "site", "name")


def emp_at(id_, dept_key, site_key):
    return Row(
        fields=(Field(E_ID, id_),),
        join_keys=(JoinKey("j", E_DEPT, dept_key, 1), JoinKey("k", E_SITE, site_key, 1)),
    )


def site(key, name):
    return Row(fields=(Field(S_NAME, name),), join_keys=(JoinKey("k", S_KEY, key, 1),))


@pytest.mark.parametrize("method", ["index", "scan"])
def test_row_with_two_keys_is_kept_when_both_match(method):
    out = correlate([emp_at(1, "A", "S1")], [[dept("A", "Eng")], [site("S1", "Berlin")]], method=method)
    assert values(out) == [[1, "Eng", "Berlin"]]


@pytest.mark.parametrize("method", ["index", "scan"])
def test_row_with_two_keys_is_dropped_when_one_key_is_unmatched(method):
    primary = [emp_at(1, "A", "S9"), emp_at(2, "A", "S1")]
    out = correlate(primary, [[dept("A", "Eng")], [site("S1", "Berlin")]], method=method)
    assert values(out) == [[2, "Eng", "Berlin"]]


@pytest.mark.parametrize("method", ["index", "scan"])
def test_nan_keys_do_not_join(method):
    nan = float("nan")
    out = correlate([emp(1, nan), emp(2, "A")], [[dept(nan, "Nowhere"), dept("A", "Eng")]], method=method)
    assert values(out) == [[2, "Eng"]]
