import pytest

from leapsql.adapter import Adapter, AdapterError, ConnectionConfig, split_table_name


@pytest.fixture
def adapter():
    a = Adapter()
    a.connect(ConnectionConfig(path=":memory:"))
    yield a
    a.close()


def test_connect_default_path_is_memory():
    a = Adapter()
    a.connect()
    try:
        assert a.connected
        assert a.query("SELECT 1") == [(1,)]
    finally:
        a.close()
    assert not a.connected


def test_connect_file_based(tmp_path):
    db_path = tmp_path / "test.db"
    with Adapter() as a:
        a.connect(ConnectionConfig(path=str(db_path)))
        a.execute("CREATE TABLE t (id INTEGER)")
    assert db_path.exists()


def test_execute_and_query(adapter):
    adapter.execute("CREATE TABLE users (id INTEGER, name VARCHAR)")
    adapter.execute("INSERT INTO users VALUES (1, 'alice'), (2, 'bob')")
    rows = adapter.query("SELECT id, name FROM users ORDER BY id")
    assert rows == [(1, "alice"), (2, "bob")]


def test_table_metadata(adapter):
    adapter.execute(
        "CREATE TABLE products (product_id INTEGER NOT NULL, name VARCHAR, "
        "price DOUBLE, in_stock BOOLEAN)"
    )
    adapter.execute(
        "INSERT INTO products VALUES (1, 'Widget', 9.99, 1), (2, 'Gadget', 19.99, 0)"
    )
    meta = adapter.table_metadata("products")
    assert meta.name == "products"
    assert meta.schema == "main"
    assert meta.row_count == 2
    expected = {"product_id": "INTEGER", "name": "VARCHAR", "price": "DOUBLE", "in_stock": "BOOLEAN"}
    assert {c.name: c.type for c in meta.columns} == expected
    assert [c.position for c in meta.columns] == sorted(c.position for c in meta.columns)
    assert meta.columns[0].nullable is False


def test_table_metadata_with_schema_prefix(adapter):
    adapter.execute("CREATE TABLE t (a INTEGER)")
    meta = adapter.table_metadata("main.t")
    assert (meta.schema, meta.name) == ("main", "t")


def test_table_metadata_not_found(adapter):
    with pytest.raises(AdapterError, match="not found"):
        adapter.table_metadata("nonexistent_table")


def test_load_csv(adapter, tmp_path):
    csv_path = tmp_path / "test_data.csv"
    csv_path.write_text("id,name,value\n1,alice,100.5\n2,bob,200.75\n3,charlie,300.25")
    adapter.load_csv("test_data", csv_path)
    assert adapter.query("SELECT COUNT(*) FROM test_data") == [(3,)]
    meta = adapter.table_metadata("test_data")
    assert [c.name for c in meta.columns] == ["id", "name", "value"]
    assert meta.columns[0].type == "INTEGER"
    assert adapter.query("SELECT name FROM test_data WHERE id = 2") == [("bob",)]


def test_load_csv_replaces_table(adapter, tmp_path):
    csv_path = tmp_path / "data.csv"
    csv_path.write_text("id,name\n1,Alice\n2,Bob\n")
    adapter.load_csv("data", csv_path)
    adapter.load_csv("data", csv_path)
    assert adapter.query("SELECT id, name FROM data ORDER BY id") == [(1, "Alice"), (2, "Bob")]


def test_load_csv_missing_file(adapter, tmp_path):
    with pytest.raises(AdapterError):
        adapter.load_csv("missing", tmp_path / "missing.csv")


def test_execute_without_connect():
    with pytest.raises(AdapterError):
        Adapter().execute("SELECT 1")


def test_query_without_connect():
    with pytest.raises(AdapterError):
        Adapter().query("SELECT 1")


def test_close_without_connect_then_query_fails():
    a = Adapter()
    a.close()
    with pytest.raises(AdapterError):
        a.query("SELECT 1")


def test_invalid_sql_raises(adapter):
    with pytest.raises(AdapterError):
        adapter.execute("NOT VALID SQL")


def test_complex_query(adapter):
    adapter.execute("CREATE TABLE orders (order_id INTEGER, customer_id INTEGER, amount DOUBLE)")
    adapter.execute("CREATE TABLE customers (customer_id INTEGER, name VARCHAR)")
    adapter.execute("INSERT INTO customers VALUES (1, 'Alice'), (2, 'Bob')")
    adapter.execute("INSERT INTO orders VALUES (1, 1, 100.0), (2, 1, 150.0), (3, 2, 200.0)")
    rows = adapter.query(
        "SELECT c.name, SUM(o.amount) AS total FROM customers c "
        "JOIN orders o ON c.customer_id = o.customer_id GROUP BY c.name"
    )
    totals = dict(rows)
    assert totals["Alice"] == 250.0
    assert totals["Bob"] == 200.0


@pytest.mark.parametrize(
    "table, expected",
    [
        ("s.t", ("s", "t")),
        ("t", ("main", "t")),
        ("a.b.c", ("main", "a.b.c")),
    ],
)
def test_split_table_name(table, expected):
    assert split_table_name(table, "main") == expected