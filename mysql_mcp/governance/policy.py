"""Access policy snapshot and its layered resolution.

Layers, later wins: built-in defaults -> optional YAML file -> environment
variables -> explicit overrides. The merged result is validated once and
frozen into an AccessPolicy that is never mutated afterwards.
"""
import os
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable, Mapping, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from mysql_mcp.operations import OperationKind, READ_KINDS
from mysql_mcp.utils.errors import ConfigurationError

logger = logging.getLogger(__name__)


DEFAULT_POLICY: dict[str, Any] = {
    "features": {kind.value: kind in READ_KINDS for kind in OperationKind},
    "read_only": True,
    "allowed_tables": None,
    "blocked_tables": [],
    "max_rows": 1000,
}

# Feature flag env vars. MYSQL_ALLOW_CREATE is the legacy name for inserts.
_FEATURE_ENV_VARS: dict[OperationKind, tuple[str, ...]] = {
    OperationKind.SELECT: ("MYSQL_ALLOW_SELECT",),
    OperationKind.INSERT: ("MYSQL_ALLOW_INSERT", "MYSQL_ALLOW_CREATE"),
    OperationKind.UPDATE: ("MYSQL_ALLOW_UPDATE",),
    OperationKind.DELETE: ("MYSQL_ALLOW_DELETE",),
    OperationKind.CREATE_TABLE: ("MYSQL_ALLOW_CREATE_TABLE",),
}


@dataclass(frozen=True)
class AccessPolicy:
    """Resolved access policy, the runtime enforcement snapshot."""

    features_enabled: frozenset[OperationKind] = frozenset(READ_KINDS)
    read_only: bool = True
    allowed_tables: Optional[frozenset[str]] = None
    blocked_tables: frozenset[str] = frozenset()
    max_rows: int = 1000

    def is_feature_enabled(self, kind: OperationKind) -> bool:
        return kind in self.features_enabled

    def is_table_allowed(self, table_name: str) -> bool:
        """Check if a table may be touched.

        Logic:
        1. Table in block list -> DENIED (even if also in the allow list)
        2. Allow list has entries and table is NOT in it -> DENIED
        3. Otherwise -> ALLOWED
        """
        if table_name in self.blocked_tables:
            return False
        if self.allowed_tables and table_name not in self.allowed_tables:
            return False
        return True

    def filter_tables(self, table_names: Iterable[str]) -> list[str]:
        return [t for t in table_names if self.is_table_allowed(t)]


class _PolicySettings(BaseModel):
    """Validation schema for the merged configuration layers."""

    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    features: dict[OperationKind, bool]
    read_only: bool
    allowed_tables: Optional[list[str]] = None
    blocked_tables: list[str] = Field(default_factory=list)
    max_rows: int = Field(ge=1, le=10000)


def _parse_env_list(environ: Mapping[str, str], env_var: str) -> Optional[list[str]]:
    """Parse comma-separated env var into list. Returns None if unset."""
    val = environ.get(env_var, "").strip()
    if not val:
        return None
    return [item.strip() for item in val.split(",") if item.strip()]


def _parse_env_bool(environ: Mapping[str, str], env_var: str) -> Optional[bool]:
    val = environ.get(env_var, "").strip()
    if not val:
        return None
    return val.lower() == "true"


def environment_layer(environ: Mapping[str, str]) -> dict[str, Any]:
    """Translate MYSQL_* environment variables into a configuration layer.

    Only variables that are actually set appear in the layer.
    """
    layer: dict[str, Any] = {}

    features: dict[str, bool] = {}
    for kind, names in _FEATURE_ENV_VARS.items():
        for name in names:
            flag = _parse_env_bool(environ, name)
            if flag is not None:
                features[kind.value] = flag
                break
    if features:
        layer["features"] = features

    read_only = environ.get("MYSQL_READ_ONLY", "").strip()
    if read_only:
        # Anything other than an explicit "false" keeps the server read-only
        layer["read_only"] = read_only.lower() != "false"

    allowed = _parse_env_list(environ, "MYSQL_ALLOWED_TABLES")
    if allowed is not None:
        layer["allowed_tables"] = allowed
    blocked = _parse_env_list(environ, "MYSQL_BLOCKED_TABLES")
    if blocked is not None:
        layer["blocked_tables"] = blocked

    max_rows = environ.get("MYSQL_MAX_ROWS", "").strip()
    if max_rows:
        layer["max_rows"] = max_rows

    return layer


def _merge_layers(*layers: Optional[Mapping[str, Any]]) -> dict[str, Any]:
    merged: dict[str, Any] = {}
    for layer in layers:
        if not layer:
            continue
        for key, value in layer.items():
            if key == "features" and isinstance(value, Mapping):
                merged["features"] = {**merged.get("features", {}), **value}
            else:
                merged[key] = value
    return merged


def resolve_access_policy(
    defaults: Mapping[str, Any],
    environment: Mapping[str, str],
    overrides: Optional[Mapping[str, Any]] = None,
) -> AccessPolicy:
    """Merge defaults, environment and overrides into a validated AccessPolicy.

    Raises ConfigurationError when the merged configuration is invalid.
    """
    merged = _merge_layers(defaults, environment_layer(environment), overrides)
    try:
        settings = _PolicySettings.model_validate(merged)
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}"
            for err in e.errors()
        )
        raise ConfigurationError(
            f"Access policy configuration is invalid: {problems}"
        ) from e

    return AccessPolicy(
        features_enabled=frozenset(
            kind for kind, enabled in settings.features.items() if enabled
        ),
        read_only=settings.read_only,
        allowed_tables=frozenset(settings.allowed_tables)
        if settings.allowed_tables
        else None,
        blocked_tables=frozenset(settings.blocked_tables),
        max_rows=settings.max_rows,
    )


def _load_yaml_config(path: str) -> dict[str, Any]:
    """Load access policy settings from a YAML file."""
    config_path = Path(path)
    if not config_path.exists():
        logger.warning(f"Governance config file not found: {path}")
        return {}

    with open(config_path) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"Governance config must be a mapping: {path}")
    return data


def load_access_policy(
    environ: Optional[Mapping[str, str]] = None,
    overrides: Optional[Mapping[str, Any]] = None,
) -> AccessPolicy:
    """Build the startup AccessPolicy from env vars + optional YAML.

    Env vars take precedence over YAML for all settings.
    """
    if environ is None:
        environ = os.environ

    yaml_path = environ.get("MYSQL_GOVERNANCE_CONFIG", "")
    yaml_layer = _load_yaml_config(yaml_path) if yaml_path else {}

    policy = resolve_access_policy(
        _merge_layers(DEFAULT_POLICY, yaml_layer), environ, overrides
    )
    logger.info(
        f"Access policy: features={sorted(k.value for k in policy.features_enabled)}, "
        f"read_only={policy.read_only}, "
        f"allowed_tables={len(policy.allowed_tables or ())}, "
        f"blocked_tables={len(policy.blocked_tables)}, max_rows={policy.max_rows}"
    )
    return policy
