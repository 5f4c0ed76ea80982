"""
Catalog introspection & identifiers: test_catalog.py

describe_table (mocked DB):
  - USER_TAB_COLUMNS for bare names, ALL_TAB_COLUMNS + OWNER for SCHEMA.TABLE
  - sequence = COLUMN_ID - 1, emission order follows catalog order
  - invisible columns (NULL COLUMN_ID) left out
  - numeric width/scale, character width, date width 17 + fixed format
  - nullability derived from N / NOT NULL
  - comments keyed by lower-cased name, "" when absent
  - column subset filter
  - CatalogError before any query on missing connection / empty name
  - DB error wrapped as CatalogError

object_exists (mocked DB):
  - USER_OBJECTS vs ALL_OBJECTS, upper-cased binds, default type TABLE
  - COUNT > 0 → True, 0 / no row → False

identifiers / config:
  - split_qualified_name, validate_identifier, to_object_name, to_column_name
  - names read from the catalog only held to the extended length limit
  - AUD$ / TRG$ naming with overrides and schema prefix
"""

from __future__ import annotations

import oracledb
import pytest

from audit_trigger.configs.config import DATE_FORMAT, TriggerConfig
from audit_trigger.configs.exceptions import CatalogError, IdentifierError
from audit_trigger.discovery.catalog import describe_table, object_exists
from audit_trigger.utils.identifiers import (
    split_qualified_name,
    to_column_name,
    to_object_name,
    validate_identifier,
)
from tests.fixtures.oracle_mocks import (
    EMP_COLUMNS,
    MockConnection,
    make_comment_rows,
    make_tab_columns_rows,
)


def make_config(**kwargs) -> TriggerConfig:
    defaults = dict(
        connection_string="",
        table_name="",
        audit_table_name="",
        trigger_name="",
        drop_audit_first=False,
        oracle_max_identifier_len=30,
    )
    defaults.update(kwargs)
    return TriggerConfig(**defaults)


def conn_for(columns: list[dict], comments: dict | None = None) -> MockConnection:
    return MockConnection(query_results=[
        make_tab_columns_rows(columns),
        make_comment_rows(comments or {}),
    ])


# ============================================================================
# describe_table
# ============================================================================

class TestDescribeTable:
    def test_bare_name_uses_user_views(self):
        conn = conn_for(EMP_COLUMNS)
        describe_table(conn, "emp")
        (col_sql, col_params), (cmt_sql, cmt_params) = conn.executed
        assert "FROM USER_TAB_COLUMNS" in col_sql
        assert "FROM USER_COL_COMMENTS" in cmt_sql
        assert col_params == {"table_name": "EMP"}
        assert cmt_params == {"table_name": "EMP"}

    def test_qualified_name_uses_all_views_with_owner(self):
        conn = conn_for(EMP_COLUMNS)
        result = describe_table(conn, "scott.emp")
        (col_sql, col_params), (cmt_sql, _) = conn.executed
        assert "FROM ALL_TAB_COLUMNS" in col_sql
        assert "FROM ALL_COL_COMMENTS" in cmt_sql
        assert col_params == {"owner": "SCOTT", "table_name": "EMP"}
        assert result.table_name == "SCOTT.EMP"

    def test_orders_by_column_id(self):
        conn = conn_for(EMP_COLUMNS)
        describe_table(conn, "EMP")
        assert "ORDER BY COLUMN_ID" in conn.executed_sql[0]

    def test_invisible_columns_excluded(self):
        cols = [
            {"column_name": "ID", "column_id": 1},
            {"column_name": "SECRET", "column_id": None},
            {"column_name": "NAME", "column_id": 2},
        ]
        conn = conn_for(cols)
        result = describe_table(conn, "EMP")
        assert result.column_names == ["ID", "NAME"]
        assert "COLUMN_ID IS NOT NULL" in conn.executed_sql[0]

    def test_invisible_columns_excluded_for_qualified_name(self):
        conn = conn_for([{"column_name": "SECRET", "column_id": None}])
        result = describe_table(conn, "SCOTT.EMP")
        assert result.columns == []
        assert "COLUMN_ID IS NOT NULL" in conn.executed_sql[0]

    def test_sequence_is_zero_based_column_id(self):
        result = describe_table(conn_for(EMP_COLUMNS), "EMP")
        assert [c.sequence for c in result.columns] == [0, 1, 2]
        assert result.column_names == ["ID", "NAME", "CREATED_ON"]
        assert result.column_list == "ID,NAME,CREATED_ON"

    def test_columns_emitted_in_sequence_order(self):
        cols = [
            {"column_name": "B", "column_id": 2},
            {"column_name": "A", "column_id": 1},
        ]
        result = describe_table(conn_for(cols), "T")
        assert result.column_names == ["A", "B"]

    def test_numeric_width_is_precision_with_scale(self):
        cols = [{"column_name": "AMOUNT", "data_type": "NUMBER",
                 "data_length": 22, "data_precision": 12, "data_scale": 2}]
        col = describe_table(conn_for(cols), "T").columns[0]
        assert col.width == 12
        assert col.decimal_scale == 2
        assert col.date_format == ""

    def test_zero_precision_falls_back_to_length(self):
        cols = [{"column_name": "N", "data_type": "NUMBER",
                 "data_length": 22, "data_precision": 0, "data_scale": 0}]
        col = describe_table(conn_for(cols), "T").columns[0]
        assert col.width == 22
        assert col.decimal_scale is None

    def test_character_width_is_length_without_scale(self):
        cols = [{"column_name": "NAME", "data_type": "VARCHAR2", "data_length": 50}]
        col = describe_table(conn_for(cols), "T").columns[0]
        assert col.width == 50
        assert col.decimal_scale is None

    def test_date_columns_forced_to_fixed_width_and_format(self):
        cols = [{"column_name": "CREATED_ON", "data_type": "DATE", "data_length": 7}]
        col = describe_table(conn_for(cols), "T").columns[0]
        assert col.width == 17
        assert col.date_format == DATE_FORMAT == "YYYYMMDD.HH24MISS"
        assert col.is_date

    def test_timestamp_is_not_a_date_column(self):
        cols = [{"column_name": "TS", "data_type": "TIMESTAMP(6)", "data_length": 11}]
        col = describe_table(conn_for(cols), "T").columns[0]
        assert col.date_format == ""
        assert col.width == 11

    @pytest.mark.parametrize("flag, expected", [
        ("Y", True), ("N", False), ("n", False), ("NOT NULL", False),
        ("not  null", False), ("", True), (None, True),
    ])
    def test_nullability(self, flag, expected):
        cols = [{"column_name": "C", "nullable": flag}]
        assert describe_table(conn_for(cols), "T").columns[0].nullable is expected

    def test_comments_keyed_by_lower_case_name(self):
        comments = {"ID": "Primary key", "NAME": None}
        result = describe_table(conn_for(EMP_COLUMNS, comments), "EMP")
        assert result.comments == {"id": "Primary key", "name": ""}
        by_name = result.by_name
        assert by_name["ID"].comment == "Primary key"
        assert by_name["NAME"].comment == ""
        assert by_name["CREATED_ON"].comment == ""

    def test_column_filter_is_case_insensitive(self):
        result = describe_table(conn_for(EMP_COLUMNS), "EMP", columns=["name", "Created_On"])
        assert result.column_names == ["NAME", "CREATED_ON"]
        assert [c.sequence for c in result.columns] == [1, 2]

    def test_missing_connection_raises_before_query(self):
        with pytest.raises(CatalogError):
            describe_table(None, "EMP")

    @pytest.mark.parametrize("name", ["", "   ", "SCOTT."])
    def test_empty_table_name_raises_before_query(self, name):
        conn = conn_for(EMP_COLUMNS)
        with pytest.raises(CatalogError):
            describe_table(conn, name)
        assert conn.executed == []

    def test_database_error_wrapped(self):
        conn = MockConnection(fail_on="USER_TAB_COLUMNS")
        with pytest.raises(CatalogError, match="ORA-00955") as exc:
            describe_table(conn, "EMP")
        assert isinstance(exc.value.__cause__, oracledb.DatabaseError)
        assert exc.value.object_name == "EMP"


# ============================================================================
# object_exists
# ============================================================================

class TestObjectExists:
    def test_bare_name_uses_user_objects(self):
        conn = MockConnection(query_results=[[(1,)]])
        assert object_exists(conn, "emp") is True
        sql, params = conn.executed[0]
        assert "FROM USER_OBJECTS" in sql
        assert params == {"object_name": "EMP", "object_type": "TABLE"}

    def test_qualified_name_uses_all_objects(self):
        conn = MockConnection(query_results=[[(1,)]])
        object_exists(conn, "scott.emp", "trigger")
        sql, params = conn.executed[0]
        assert "FROM ALL_OBJECTS" in sql
        assert params == {"owner": "SCOTT", "object_name": "EMP", "object_type": "TRIGGER"}

    def test_zero_count_is_false(self):
        conn = MockConnection(query_results=[[(0,)]])
        assert object_exists(conn, "EMP") is False

    def test_no_row_is_false(self):
        conn = MockConnection(query_results=[[]])
        assert object_exists(conn, "EMP") is False

    def test_missing_connection_raises(self):
        with pytest.raises(CatalogError):
            object_exists(None, "EMP")

    def test_empty_name_raises(self):
        with pytest.raises(CatalogError):
            object_exists(MockConnection(), "")

    def test_database_error_wrapped(self):
        conn = MockConnection(fail_on="USER_OBJECTS")
        with pytest.raises(CatalogError):
            object_exists(conn, "EMP")


# ============================================================================
# Identifiers
# ============================================================================

class TestIdentifiers:
    def test_split_bare(self):
        assert split_qualified_name("emp") == (None, "emp")

    def test_split_qualified(self):
        assert split_qualified_name(" scott . emp ") == ("scott", "emp")

    def test_validate_upper_cases(self):
        assert validate_identifier("aud$emp", 30) == "AUD$EMP"

    @pytest.mark.parametrize("bad", ["", "1EMP", "EMP X", "EMP;DROP", "\"EMP\"", "E-MP"])
    def test_validate_rejects(self, bad):
        with pytest.raises(IdentifierError):
            validate_identifier(bad, 30)

    def test_validate_rejects_too_long(self):
        with pytest.raises(IdentifierError):
            validate_identifier("A" * 31, 30)
        assert validate_identifier("A" * 31, 128) == "A" * 31

    def test_identifier_error_is_value_error(self):
        assert issubclass(IdentifierError, ValueError)

    def test_to_object_name_qualified(self):
        assert to_object_name("scott.emp", make_config()) == "SCOTT.EMP"

    def test_to_object_name_rejects_extra_dots(self):
        with pytest.raises(IdentifierError):
            to_object_name("a.b.c", make_config())

    def test_existing_object_held_to_extended_limit(self):
        long_name = "CUSTOMER_BILLING_ADDRESS_HISTORY"
        with pytest.raises(IdentifierError):
            to_object_name(long_name, make_config())
        assert to_object_name(long_name, make_config(), existing=True) == long_name
        with pytest.raises(IdentifierError):
            to_object_name("A" * 129, make_config(), existing=True)

    def test_column_name_held_to_extended_limit(self):
        assert to_column_name("customer_billing_address_line_one") == (
            "CUSTOMER_BILLING_ADDRESS_LINE_ONE"
        )
        with pytest.raises(IdentifierError):
            to_column_name("A" * 129)
        with pytest.raises(IdentifierError):
            to_column_name("LINE ONE")


# ============================================================================
# Config naming
# ============================================================================

class TestConfigNaming:
    def test_default_audit_and_trigger_names(self):
        cfg = make_config()
        assert cfg.resolve_audit_table("emp") == "AUD$EMP"
        assert cfg.resolve_trigger_name("emp") == "TRG$EMP"

    def test_schema_prefix_kept(self):
        cfg = make_config()
        assert cfg.resolve_audit_table("scott.emp") == "SCOTT.AUD$EMP"
        assert cfg.resolve_trigger_name("scott.emp") == "SCOTT.TRG$EMP"

    def test_overrides_win(self):
        cfg = make_config(audit_table_name="emp_hist", trigger_name="emp_aud_trg")
        assert cfg.resolve_audit_table("EMP") == "EMP_HIST"
        assert cfg.resolve_trigger_name("EMP") == "EMP_AUD_TRG"

    def test_env_defaults(self, monkeypatch):
        monkeypatch.setenv("DB_CONN_STRING", "u/p@db")
        monkeypatch.setenv("AUDIT_SOURCE_TABLE", "EMP")
        monkeypatch.setenv("DROP_AUDIT_TABLE", "true")
        monkeypatch.setenv("ORACLE_MAX_IDENTIFIER_LEN", "128")
        cfg = TriggerConfig()
        assert cfg.connection_string == "u/p@db"
        assert cfg.table_name == "EMP"
        assert cfg.drop_audit_first is True
        assert cfg.oracle_max_identifier_len == 128
