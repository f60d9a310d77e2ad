import pytest

from memquery.errors import ExecutionError
from memquery.exec.paging import paginate
from memquery.model import ColumnName
from memquery.result import ColumnMetadata, ResultSet

ID = ColumnName("c", "t", "id")


def result(n):
    return ResultSet(columns=[ColumnMetadata(ID, "id", "INTEGER")], rows=[{"id": i} for i in range(n)])


def collect(n, page_size, query_id="q1"):
    pages = []
    count = paginate(result(n), page_size, pages.append, query_id=query_id)
    assert count == len(pages)
    return pages


def test_ten_rows_in_pages_of_four():
    pages = collect(10, 4)
    assert [len(p.rows) for p in pages] == [4, 4, 2]
    assert [p.last for p in pages] == [False, False, True]
    assert [p.page for p in pages] == [0, 1, 2]


@pytest.mark.parametrize("n,size", [(0, 3), (1, 1), (7, 3), (9, 3), (5, 100)])
def test_pages_reproduce_the_result_in_order(n, size):
    pages = collect(n, size)
    assert [r for p in pages for r in p.rows] == result(n).rows
    assert [p.last for p in pages].count(True) == 1
    assert pages[-1].last
    assert all(len(p.rows) <= size for p in pages)


def test_empty_result_emits_one_empty_last_page():
    pages = collect(0, 5)
    assert len(pages) == 1
    assert pages[0].rows == []
    assert pages[0].last


def test_exact_multiple_ends_with_empty_last_page():
    pages = collect(8, 4)
    assert [len(p.rows) for p in pages] == [4, 4, 0]
    assert [p.last for p in pages] == [False, False, True]


def test_pages_carry_query_id_and_metadata():
    pages = collect(3, 2, query_id="abc")
    assert {p.query_id for p in pages} == {"abc"}
    assert all(p.columns == result(0).columns for p in pages)


def test_callback_runs_before_next_page_is_built():
    seen = []

    def callback(page):
        seen.append((page.page, len(seen)))

    paginate(result(5), 2, callback)
    assert seen == [(0, 0), (1, 1), (2, 2)]


@pytest.mark.parametrize("size", [0, -1])
def test_non_positive_page_size_fails_fast(size):
    pages = []
    with pytest.raises(ExecutionError):
        paginate(result(3), size, pages.append)
    assert pages == []
