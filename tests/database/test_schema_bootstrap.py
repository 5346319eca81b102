from payroll_engine.database.bootstrap import SCHEMA_PATH, _iter_sql_statements, _strip_create_db_and_use


def test_splitter_handles_quotes_and_comments():
    sql = "-- header\nCREATE TABLE a (x VARCHAR(5) DEFAULT ';');\n-- trailing; comment\nINSERT INTO a VALUES ('x');"

    statements = list(_iter_sql_statements(sql))

    assert statements == ["CREATE TABLE a (x VARCHAR(5) DEFAULT ';')", "INSERT INTO a VALUES ('x')"]


def test_schema_file_defines_payroll_tables():
    sql = _strip_create_db_and_use(SCHEMA_PATH.read_text(encoding="utf-8"))
    statements = list(_iter_sql_statements(sql))

    created = [s.split()[5] for s in statements if s.upper().startswith("CREATE TABLE IF NOT EXISTS")]
    assert created == [
        "employees",
        "payroll_periods",
        "payroll_entries",
        "payroll_results",
        "payroll_slips",
        "payroll_tax_brackets",
        "payroll_audit_log",
    ]
    assert not any(s.upper().startswith("USE ") for s in statements)
