"""
Configuration Validator (``transport_config.validator``).

Responsibility
--------------
Checks a ``WorkflowConfigSet`` for structural problems before it is
handed to the kernel.  Collects every problem instead of stopping at the
first one.

Invariants enforced
-------------------
* Every role named anywhere is a known role.
* Approval stages are non-empty and unique.
* Override roles are not also stages.
* Department-scoped stages are stages.
* The conflict window is >= 0 minutes.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from transport_config.schema import WorkflowConfigSet
from transport_kernel.domain.roles import ALL_ROLES


class ConfigurationError(ValueError):
    """Raised when a configuration set fails validation."""

    def __init__(self, config_id: str, errors: list[str]):
        self.config_id = config_id
        self.errors = errors
        super().__init__(
            f"Configuration {config_id!r} failed validation:\n"
            + "\n".join(f"  - {e}" for e in errors)
        )


@dataclass
class ConfigValidationResult:
    errors: list[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return len(self.errors) == 0

    def add_error(self, msg: str) -> None:
        self.errors.append(msg)


def validate_configuration(config: WorkflowConfigSet) -> ConfigValidationResult:
    result = ConfigValidationResult()

    if config.version < 1:
        result.add_error(f"version must be >= 1, got {config.version}")

    _validate_chain(config, result)
    _validate_known_roles(config, result)

    if config.assignment.conflict_window_minutes < 0:
        result.add_error(
            "assignment.conflict_window_minutes must be >= 0, got "
            f"{config.assignment.conflict_window_minutes}"
        )

    return result


def _validate_chain(config: WorkflowConfigSet, result: ConfigValidationResult) -> None:
    chain = config.approval_chain
    if not chain.stages:
        result.add_error("approval_chain.stages must not be empty")

    seen: set[str] = set()
    for stage in chain.stages:
        if stage in seen:
            result.add_error(f"approval_chain.stages repeats {stage}")
        seen.add(stage)

    for role in chain.override_roles:
        if role in seen:
            result.add_error(f"override role {role} is also an approval stage")

    for role in chain.department_scoped_stages:
        if role not in seen:
            result.add_error(f"department-scoped stage {role} is not an approval stage")


def _validate_known_roles(config: WorkflowConfigSet, result: ConfigValidationResult) -> None:
    chain = config.approval_chain
    named = (
        chain.stages
        + chain.override_roles
        + chain.department_scoped_stages
        + config.access.all_roles()
    )
    for role in sorted(set(named)):
        if role not in ALL_ROLES:
            result.add_error(f"unknown role {role}")


def ensure_valid(config: WorkflowConfigSet) -> None:
    """Raise ConfigurationError listing every problem, if any."""
    result = validate_configuration(config)
    if not result.is_valid:
        raise ConfigurationError(config.config_id, result.errors)
