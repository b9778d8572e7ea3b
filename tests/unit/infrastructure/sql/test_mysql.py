"""
Unit tests for the MySQL dialect and TableDataBuilder.
"""

import pytest

from fluent_mysql.exceptions import InvalidArgumentError, UnsupportedBindTypeError
from fluent_mysql.infrastructure.sql.builder import SubQuery
from fluent_mysql.infrastructure.sql.core.markers import Increment, RawExpr, Toggle
from fluent_mysql.infrastructure.sql.core.parameters import BindParams
from fluent_mysql.infrastructure.sql.dialects.mysql import MySQLDialect
from fluent_mysql.infrastructure.sql.operations.table_data import TableDataBuilder


class TestMySQLDialect:
    """Tests for MySQL dialect."""

    @pytest.fixture
    def dialect(self):
        return MySQLDialect()

    def test_dialect_name(self, dialect):
        assert dialect.name == "mysql"

    def test_quote_identifier(self, dialect):
        """Quote should use backticks."""
        assert dialect.quote("login") == "`login`"

    def test_qualify_table(self, dialect):
        assert dialect.qualify("users", "app_") == "app_users"

    def test_build_select_with_options(self, dialect):
        sql = dialect.build_select("users", "id, login", ["DISTINCT", "SQL_CALC_FOUND_ROWS"])
        assert sql == "SELECT DISTINCT SQL_CALC_FOUND_ROWS id, login FROM users"

    def test_statement_heads(self, dialect):
        assert dialect.build_insert("users") == "INSERT INTO users"
        assert dialect.build_insert("users", ["IGNORE"]) == "INSERT IGNORE INTO users"
        assert dialect.build_update("users", ["LOW_PRIORITY"]) == "UPDATE LOW_PRIORITY users"
        assert dialect.build_delete("users", ["QUICK"]) == "DELETE QUICK FROM users"
        assert dialect.build_drop("users") == "DROP TABLE users"

    def test_build_join(self, dialect):
        assert dialect.build_join("LEFT", "users u", "u.id = p.userId") == "LEFT JOIN users u ON u.id = p.userId"
        assert dialect.build_join("", "users u", "u.id = p.userId") == "JOIN users u ON u.id = p.userId"

    def test_build_group_by(self, dialect):
        assert dialect.build_group_by([]) == ""
        assert dialect.build_group_by(["customerId", "login"]) == "GROUP BY customerId, login"

    def test_build_order_by(self, dialect):
        sql = dialect.build_order_by({"id": "ASC", "login": "DESC"})
        assert sql == "ORDER BY id ASC, login DESC"

    def test_build_order_by_rand_has_no_direction(self, dialect):
        assert dialect.build_order_by({"rand()": "DESC"}) == "ORDER BY rand()"

    def test_build_limit(self, dialect):
        assert dialect.build_limit(None) == ""
        assert dialect.build_limit(10) == "LIMIT 10"

    def test_build_limit_count_offset(self, dialect):
        """(count, offset) renders as LIMIT offset, count."""
        assert dialect.build_limit((10, 20)) == "LIMIT 20, 10"
        assert dialect.build_limit([5, 0]) == "LIMIT 0, 5"

    def test_build_limit_bad_pair(self, dialect):
        with pytest.raises(InvalidArgumentError):
            dialect.build_limit((1, 2, 3))

    def test_build_create_table(self, dialect):
        sql = dialect.build_create_table(
            "t_users", {"login": "CHAR(10) NOT NULL", "active": "BOOL DEFAULT 0"}
        )
        assert sql == (
            "CREATE TABLE t_users (id INT(9) UNSIGNED PRIMARY KEY AUTO_INCREMENT, "
            "login CHAR(10) NOT NULL, active BOOL DEFAULT 0)"
        )


class TestTableDataBuilder:
    """Tests for INSERT/UPDATE data rendering."""

    @pytest.fixture
    def builder(self):
        return TableDataBuilder(MySQLDialect())

    @pytest.fixture
    def params(self):
        return BindParams()

    def test_insert_values(self, builder, params):
        sql = builder.insert_values({"login": "user1", "customerId": 10}, params)

        assert sql == "(`login`, `customerId`) VALUES (%s, %s)"
        assert params.types == "si"
        assert params.values == ["user1", 10]

    def test_update_set(self, builder, params):
        sql = builder.update_set({"firstName": "Jane", "score": 1.5}, params)

        assert sql == "SET `firstName` = %s, `score` = %s"
        assert params.types == "sd"

    def test_none_binds_as_null_string_type(self, builder, params):
        sql = builder.update_set({"lastName": None}, params)

        assert sql == "SET `lastName` = %s"
        assert params.types == "s"
        assert params.values == [None]

    def test_increment_and_decrement(self, builder, params):
        sql = builder.update_set({"loginCount": Increment(2), "credits": Increment(-3)}, params)

        assert sql == "SET `loginCount` = `loginCount` + 2, `credits` = `credits` - 3"
        assert len(params) == 0

    def test_raw_expression_binds_its_params(self, builder, params):
        sql = builder.insert_values(
            {"password": RawExpr("SHA1(%s)", ("secret",)), "createdAt": RawExpr("NOW()")},
            params,
        )

        assert sql == "(`password`, `createdAt`) VALUES (SHA1(%s), NOW())"
        assert params.values == ["secret"]
        assert params.types == "s"

    def test_toggle(self, builder, params):
        sql = builder.update_set({"active": Toggle(), "flag": Toggle("isAdmin")}, params)
        assert sql == "SET `active` = !`active`, `flag` = !isAdmin"

    def test_mapping_markers(self, builder, params):
        sql = builder.update_set(
            {"loginCount": {"[I]": "+1"}, "updatedAt": {"[F]": ["FROM_UNIXTIME(%s)", [0]]}},
            params,
        )

        assert sql == "SET `loginCount` = `loginCount` + 1, `updatedAt` = FROM_UNIXTIME(%s)"
        assert params.values == [0]

    def test_subquery_value(self, builder, params):
        sub = SubQuery().where("id", 3).get("users", columns="login")
        sql = builder.update_set({"owner": sub}, params)

        assert sql == "SET `owner` = (SELECT login FROM users WHERE id = %s)"
        assert params.values == [3]

    def test_composite_value_rejected(self, builder, params):
        with pytest.raises(UnsupportedBindTypeError):
            builder.insert_values({"tags": ["a", "b"]}, params)

    def test_literal_percent_in_raw_expression(self, builder, params):
        sql = builder.insert_values(
            {"name": "x", "yr": RawExpr("DATE_FORMAT(NOW(), '%Y')")}, params
        )

        assert sql == "(`name`, `yr`) VALUES (%s, DATE_FORMAT(NOW(), '%%Y'))"
        assert sql % params.as_tuple() == "(`name`, `yr`) VALUES (x, DATE_FORMAT(NOW(), '%Y'))"

    def test_literal_percent_in_raw_expression_with_its_params(self, builder, params):
        sql = builder.update_set({"code": RawExpr("CONCAT(%s, '%')", ("a",))}, params)

        assert sql == "SET `code` = CONCAT(%s, '%%')"
        assert params.values == ["a"]
