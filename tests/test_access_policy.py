"""Test access policy resolution: defaults, env vars, YAML and overrides.

Covers the layering order, legacy env names, validation failures and the
per-table predicate shared by the gate and list-tables filtering.
"""
import os
import tempfile

import pytest

from mysql_mcp.governance.policy import (
    DEFAULT_POLICY,
    AccessPolicy,
    _parse_env_list,
    environment_layer,
    load_access_policy,
    resolve_access_policy,
)
from mysql_mcp.operations import MUTATION_KINDS, READ_KINDS, OperationKind
from mysql_mcp.utils.errors import ConfigurationError


# ── _parse_env_list Tests ─────────────────────────────────────────────

class TestParseEnvList:
    """Test the env var list parser."""

    def test_empty_string(self):
        assert _parse_env_list({"TEST_VAR": ""}, "TEST_VAR") is None

    def test_unset_var(self):
        assert _parse_env_list({}, "NONEXISTENT_VAR_XYZ") is None

    def test_multiple_values(self):
        env = {"TEST_VAR": "users,orders,items"}
        assert _parse_env_list(env, "TEST_VAR") == ["users", "orders", "items"]

    def test_whitespace_handling(self):
        env = {"TEST_VAR": " users , orders "}
        assert _parse_env_list(env, "TEST_VAR") == ["users", "orders"]

    def test_trailing_comma(self):
        assert _parse_env_list({"TEST_VAR": "users,"}, "TEST_VAR") == ["users"]


# ── Defaults ──────────────────────────────────────────────────────────

class TestDefaults:
    """With no configuration at all the server is read-only and reads only."""

    def test_reads_enabled_writes_disabled(self):
        policy = resolve_access_policy(DEFAULT_POLICY, {})
        assert policy.features_enabled == READ_KINDS
        for kind in MUTATION_KINDS:
            assert not policy.is_feature_enabled(kind)

    def test_read_only_by_default(self):
        assert resolve_access_policy(DEFAULT_POLICY, {}).read_only is True

    def test_default_limits_and_lists(self):
        policy = resolve_access_policy(DEFAULT_POLICY, {})
        assert policy.max_rows == 1000
        assert policy.allowed_tables is None
        assert policy.blocked_tables == frozenset()


# ── Environment layer ─────────────────────────────────────────────────

class TestEnvironmentLayer:

    def test_only_set_variables_appear(self):
        assert environment_layer({}) == {}

    def test_feature_flags(self):
        layer = environment_layer(
            {"MYSQL_ALLOW_UPDATE": "true", "MYSQL_ALLOW_DELETE": "false"}
        )
        assert layer["features"] == {"update": True, "delete": False}

    def test_legacy_create_flag_means_insert(self):
        layer = environment_layer({"MYSQL_ALLOW_CREATE": "true"})
        assert layer["features"] == {"insert": True}

    def test_insert_flag_wins_over_legacy_name(self):
        layer = environment_layer(
            {"MYSQL_ALLOW_INSERT": "false", "MYSQL_ALLOW_CREATE": "true"}
        )
        assert layer["features"] == {"insert": False}

    def test_read_only_only_disabled_by_explicit_false(self):
        assert environment_layer({"MYSQL_READ_ONLY": "false"})["read_only"] is False
        assert environment_layer({"MYSQL_READ_ONLY": "FALSE"})["read_only"] is False
        assert environment_layer({"MYSQL_READ_ONLY": "no"})["read_only"] is True

    def test_table_lists(self):
        layer = environment_layer(
            {"MYSQL_ALLOWED_TABLES": "users,orders", "MYSQL_BLOCKED_TABLES": "secrets"}
        )
        assert layer["allowed_tables"] == ["users", "orders"]
        assert layer["blocked_tables"] == ["secrets"]


# ── resolve_access_policy ─────────────────────────────────────────────

class TestResolveAccessPolicy:

    def test_environment_overrides_defaults(self):
        policy = resolve_access_policy(
            DEFAULT_POLICY,
            {
                "MYSQL_ALLOW_INSERT": "true",
                "MYSQL_READ_ONLY": "false",
                "MYSQL_MAX_ROWS": "50",
            },
        )
        assert policy.is_feature_enabled(OperationKind.INSERT)
        assert policy.read_only is False
        assert policy.max_rows == 50

    def test_overrides_win_over_environment(self):
        policy = resolve_access_policy(
            DEFAULT_POLICY,
            {"MYSQL_MAX_ROWS": "50"},
            overrides={"max_rows": 10, "features": {"delete": True}},
        )
        assert policy.max_rows == 10
        assert policy.is_feature_enabled(OperationKind.DELETE)
        # Untouched feature keys survive the merge
        assert policy.is_feature_enabled(OperationKind.SELECT)

    def test_select_can_be_disabled(self):
        policy = resolve_access_policy(DEFAULT_POLICY, {"MYSQL_ALLOW_SELECT": "false"})
        assert not policy.is_feature_enabled(OperationKind.SELECT)
        assert policy.is_feature_enabled(OperationKind.LIST_TABLES)

    def test_empty_allow_list_means_unrestricted(self):
        policy = resolve_access_policy(
            DEFAULT_POLICY, {}, overrides={"allowed_tables": []}
        )
        assert policy.allowed_tables is None

    def test_non_numeric_max_rows_rejected(self):
        with pytest.raises(ConfigurationError, match="max_rows"):
            resolve_access_policy(DEFAULT_POLICY, {"MYSQL_MAX_ROWS": "lots"})

    @pytest.mark.parametrize("value", ["0", "10001"])
    def test_max_rows_bounds(self, value):
        with pytest.raises(ConfigurationError):
            resolve_access_policy(DEFAULT_POLICY, {"MYSQL_MAX_ROWS": value})

    def test_unknown_feature_rejected(self):
        with pytest.raises(ConfigurationError, match="features"):
            resolve_access_policy(
                DEFAULT_POLICY, {}, overrides={"features": {"truncate": True}}
            )

    def test_unknown_setting_rejected(self):
        with pytest.raises(ConfigurationError):
            resolve_access_policy(DEFAULT_POLICY, {}, overrides={"max_row": 5})

    def test_policy_is_immutable(self):
        policy = resolve_access_policy(DEFAULT_POLICY, {})
        with pytest.raises(AttributeError):
            policy.read_only = False


# ── YAML Config Loading ───────────────────────────────────────────────

class TestYAMLConfig:
    """Test YAML governance config loading."""

    def _write_yaml(self, content: str) -> str:
        with tempfile.NamedTemporaryFile(mode="w", suffix=".yaml", delete=False) as f:
            f.write(content)
            return f.name

    def test_load_yaml_config(self):
        yaml_path = self._write_yaml(
            """
features:
  insert: true
  describe_table: false
read_only: false
blocked_tables:
  - secrets
max_rows: 25
"""
        )
        try:
            policy = load_access_policy({"MYSQL_GOVERNANCE_CONFIG": yaml_path})
            assert policy.is_feature_enabled(OperationKind.INSERT)
            assert not policy.is_feature_enabled(OperationKind.DESCRIBE_TABLE)
            assert policy.read_only is False
            assert policy.blocked_tables == frozenset({"secrets"})
            assert policy.max_rows == 25
        finally:
            os.unlink(yaml_path)

    def test_env_overrides_yaml(self):
        yaml_path = self._write_yaml("max_rows: 25\nread_only: false\n")
        try:
            policy = load_access_policy(
                {"MYSQL_GOVERNANCE_CONFIG": yaml_path, "MYSQL_MAX_ROWS": "200"}
            )
            assert policy.max_rows == 200  # env wins
            assert policy.read_only is False  # yaml still applies
        finally:
            os.unlink(yaml_path)

    def test_missing_yaml_file(self):
        policy = load_access_policy(
            {"MYSQL_GOVERNANCE_CONFIG": "/nonexistent/path/governance.yaml"}
        )
        # Should not crash, just warn and use defaults
        assert policy.features_enabled == READ_KINDS

    def test_yaml_must_be_mapping(self):
        yaml_path = self._write_yaml("- just\n- a list\n")
        try:
            with pytest.raises(ConfigurationError, match="mapping"):
                load_access_policy({"MYSQL_GOVERNANCE_CONFIG": yaml_path})
        finally:
            os.unlink(yaml_path)


# ── Table predicate ───────────────────────────────────────────────────

class TestTablePredicate:

    def test_blocked_beats_allowed(self):
        policy = AccessPolicy(
            allowed_tables=frozenset({"users", "secrets"}),
            blocked_tables=frozenset({"secrets"}),
        )
        assert policy.is_table_allowed("users")
        assert not policy.is_table_allowed("secrets")

    def test_allow_list_restricts(self):
        policy = AccessPolicy(allowed_tables=frozenset({"users"}))
        assert not policy.is_table_allowed("orders")

    def test_no_lists_allows_everything(self):
        assert AccessPolicy().is_table_allowed("anything")

    def test_filter_tables_keeps_order(self):
        policy = AccessPolicy(blocked_tables=frozenset({"b"}))
        assert policy.filter_tables(["c", "b", "a"]) == ["c", "a"]
