"""
transport_config -- single public entrypoint for workflow configuration.

Responsibility:
    ``get_active_config()`` is the only way to obtain configuration at
    runtime.  It returns a validated, frozen ``WorkflowConfigSet``: the
    approval chain, the access policy and the assignment policy.

Architecture position:
    Configuration -- YAML-driven.  Sits above ``transport_kernel`` and
    below ``transport_services``.  The kernel MUST NEVER import from
    ``transport_config``; ``bridges`` translate sets into kernel types.

Failure modes:
    - ``FileNotFoundError`` -- no configuration set with that name.
    - ``ConfigurationError`` (a ``ValueError``) -- validation failures,
      all of them listed.

Audit relevance:
    Every successful call emits a ``TRANSPORT_CONFIG_TRACE`` log record
    with the config id, version and checksum.
"""

from __future__ import annotations

import logging
from pathlib import Path

from transport_config.loader import load_config_set
from transport_config.schema import WorkflowConfigSet
from transport_config.validator import ConfigurationError, ensure_valid

_logger = logging.getLogger("transport_kernel.config")

# Default configuration sets directory
_DEFAULT_CONFIG_DIR = Path(__file__).parent / "sets"

__all__ = [
    "ConfigurationError",
    "WorkflowConfigSet",
    "get_active_config",
]


def get_active_config(
    config_set: str = "default",
    config_dir: Path | None = None,
) -> WorkflowConfigSet:
    """The ONLY public configuration entrypoint.

    Args:
        config_set: Name of the set; loads ``<config_dir>/<config_set>.yaml``.
        config_dir: Override path to the sets directory.
            Defaults to transport_config/sets/.

    Raises:
        FileNotFoundError: If the set does not exist.
        ConfigurationError: If validation fails.
    """
    sets_dir = Path(config_dir) if config_dir is not None else _DEFAULT_CONFIG_DIR
    path = sets_dir / f"{config_set}.yaml"
    if not path.is_file():
        raise FileNotFoundError(f"No configuration set {config_set!r} in {sets_dir}")

    config = load_config_set(path)
    ensure_valid(config)

    _logger.info(
        "TRANSPORT_CONFIG_TRACE",
        extra={
            "trace_type": "TRANSPORT_CONFIG_TRACE",
            "config_set_id": config.config_id,
            "config_set_version": config.version,
            "checksum": config.checksum,
            "stages": list(config.approval_chain.stages),
            "conflict_window_minutes": config.assignment.conflict_window_minutes,
        },
    )

    return config
