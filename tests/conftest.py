import pytest

from memquery import ColumnName, Connector, InMemoryDatastore, Join, Project, Select, Workflow
from memquery.catalog import ColumnDef

HR = "hr"
CLUSTER = "local"

EMP_ID = ColumnName(HR, "employees", "id")
EMP_NAME = ColumnName(HR, "employees", "name")
EMP_DEPT = ColumnName(HR, "employees", "dept_key")
DEPT_KEY = ColumnName(HR, "departments", "dept_key")
DEPT_NAME = ColumnName(HR, "departments", "name")

DEPT_JOIN = Join(join_id="emp_dept", left=EMP_DEPT, right=DEPT_KEY)


@pytest.fixture
def store():
    s = InMemoryDatastore()
    s.create_table(
        HR,
        "employees",
        [
            ColumnDef("id", "INTEGER", primary_key=True),
            ColumnDef("name", "TEXT"),
            ColumnDef("dept_key", "TEXT"),
        ],
    )
    s.create_table(
        HR,
        "departments",
        [ColumnDef("dept_key", "TEXT", primary_key=True), ColumnDef("name", "TEXT")],
    )
    s.insert_many(
        HR,
        "employees",
        [
            {"id": 1, "name": "Ada", "dept_key": "A"},
            {"id": 2, "name": "Bob", "dept_key": "Z"},
            {"id": 3, "name": "Cy", "dept_key": "A"},
            {"id": 4, "name": "Di", "dept_key": "B"},
        ],
    )
    s.insert_many(
        HR,
        "departments",
        [{"dept_key": "A", "name": "Eng"}, {"dept_key": "B", "name": "Ops"}],
    )
    return s


@pytest.fixture
def connector(store):
    conn = Connector()
    conn.attach(CLUSTER, store)
    return conn


@pytest.fixture
def engine(connector):
    return connector.query_engine()


@pytest.fixture
def single_workflow():
    """SELECT id, name AS emp_name FROM employees."""
    scan = Project(CLUSTER, HR, "employees", (EMP_ID, EMP_NAME))
    select = Select(
        outputs=(EMP_ID, EMP_NAME),
        aliases={EMP_NAME: "emp_name"},
        types={EMP_ID: "INTEGER", EMP_NAME: "TEXT"},
    )
    return Workflow(initial_steps=(scan,), last_step=select)


@pytest.fixture
def join_workflow():
    """SELECT e.id, e.name, d.name AS dept FROM employees e JOIN departments d ON e.dept_key = d.dept_key."""
    emp = Project(CLUSTER, HR, "employees", (EMP_ID, EMP_NAME), join=DEPT_JOIN)
    dept = Project(CLUSTER, HR, "departments", (DEPT_NAME,), join=DEPT_JOIN)
    select = Select(
        outputs=(EMP_ID, EMP_NAME, DEPT_NAME),
        aliases={DEPT_NAME: "dept"},
        types={EMP_ID: "INTEGER", EMP_NAME: "TEXT", DEPT_NAME: "TEXT"},
    )
    return Workflow(initial_steps=(emp, dept), last_step=select)
