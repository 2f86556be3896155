from pathlib import Path

from university_erp.database.bootstrap import _iter_sql_statements, _strip_create_db_and_use

DATABASE_DIR = Path(__file__).resolve().parents[2] / "database"


def test_splitter_keeps_semicolons_inside_quotes():
    sql = """
    -- demo rows
    INSERT INTO leave_types (code, name) VALUES ('CONF', 'Conference; travel');
    INSERT INTO departments (code, name) VALUES ("CS", "Computer Science")
    """

    statements = list(_iter_sql_statements(sql))

    assert len(statements) == 2
    assert statements[0].endswith("'Conference; travel')")
    assert statements[1].startswith("INSERT INTO departments")


def test_splitter_handles_escaped_quotes():
    statements = list(_iter_sql_statements("SELECT 'it\\'s; fine'; SELECT 1;"))
    assert statements == ["SELECT 'it\\'s; fine'", "SELECT 1"]


def test_create_database_and_use_are_stripped():
    sql = "CREATE DATABASE IF NOT EXISTS other;\nUSE other;\nCREATE TABLE t (id INT);"
    assert list(_iter_sql_statements(_strip_create_db_and_use(sql))) == ["CREATE TABLE t (id INT)"]


def test_schema_and_seed_split_into_statements():
    schema = list(_iter_sql_statements(_strip_create_db_and_use((DATABASE_DIR / "schema.sql").read_text("utf-8"))))
    seed = list(_iter_sql_statements(_strip_create_db_and_use((DATABASE_DIR / "seed.sql").read_text("utf-8"))))

    created = [s for s in schema if s.upper().startswith("CREATE TABLE")]
    assert any("billing_statements" in s for s in created)
    assert any("leave_requests" in s for s in created)
    assert all(s.split()[0].upper() in {"INSERT", "UPDATE"} for s in seed)
