"""
Configuration Loader (``transport_config.loader``).

Responsibility
--------------
Loads a YAML configuration set and parses it into the frozen dataclasses
of ``transport_config.schema``.  Runtime callers go through
``transport_config.get_active_config()`` instead of calling this directly.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Missing required keys  -> ``KeyError`` propagates.
* Wrong value types  -> ``ValueError``.
"""

from __future__ import annotations

import hashlib
import json
from pathlib import Path
from typing import Any

import yaml

from transport_config.schema import (
    AccessPolicyDef,
    ApprovalChainDef,
    AssignmentPolicyDef,
    WorkflowConfigSet,
)


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path) as f:
        return yaml.safe_load(f) or {}


def _role_tuple(data: dict[str, Any], key: str) -> tuple[str, ...]:
    value = data.get(key) or ()
    if isinstance(value, str) or not isinstance(value, (list, tuple)):
        raise ValueError(f"{key} must be a list of role names, got {value!r}")
    return tuple(str(v).strip().upper() for v in value)


def parse_approval_chain(data: dict[str, Any]) -> ApprovalChainDef:
    return ApprovalChainDef(
        stages=_role_tuple(data, "stages"),
        override_roles=_role_tuple(data, "override_roles"),
        department_scoped_stages=_role_tuple(data, "department_scoped_stages"),
    )


def parse_access(data: dict[str, Any]) -> AccessPolicyDef:
    return AccessPolicyDef(
        list_all_roles=_role_tuple(data, "list_all_roles"),
        department_scoped_roles=_role_tuple(data, "department_scoped_roles"),
        update_any_roles=_role_tuple(data, "update_any_roles"),
        delete_any_roles=_role_tuple(data, "delete_any_roles"),
        assign_roles=_role_tuple(data, "assign_roles"),
    )


def parse_assignment(data: dict[str, Any]) -> AssignmentPolicyDef:
    window = data.get("conflict_window_minutes", 0)
    if isinstance(window, bool) or not isinstance(window, int):
        raise ValueError(f"conflict_window_minutes must be an integer, got {window!r}")
    return AssignmentPolicyDef(conflict_window_minutes=window)


def parse_config_set(data: dict[str, Any]) -> WorkflowConfigSet:
    """Parse a full configuration set; the checksum covers the raw data."""
    return WorkflowConfigSet(
        config_id=data["config_id"],
        version=int(data["version"]),
        description=data.get("description", ""),
        approval_chain=parse_approval_chain(data["approval_chain"]),
        access=parse_access(data.get("access") or {}),
        assignment=parse_assignment(data.get("assignment") or {}),
        checksum=compute_checksum(data),
    )


def load_config_set(path: Path) -> WorkflowConfigSet:
    return parse_config_set(load_yaml_file(path))


def compute_checksum(data: dict[str, Any]) -> str:
    """
    SHA-256 of the canonical JSON serialization.

    Identical data always produces identical checksums.
    """
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()
