"""
docflow_config -- single public entrypoint for workflow configuration.

Responsibility:
    Provides the ONLY way to obtain workflow configuration at runtime
    through ``get_active_config()``.  No other component reads the
    configuration files directly.

Architecture position:
    Configuration -- sits above ``docflow_kernel``.  The kernel MUST NEVER
    import from ``docflow_config``; ``docflow_config.bridges`` translates
    the configuration into kernel policy objects.

Failure modes:
    - ``FileNotFoundError`` -- configuration file missing.
    - ``KeyError`` / ``ValueError`` -- required keys missing or invalid
      values (see ``docflow_config.loader``).

Audit relevance:
    Every successful ``get_active_config()`` call emits a
    ``DOCFLOW_CONFIG_TRACE`` log entry with the config_id, version,
    checksum and the selected approval policies.
"""

from __future__ import annotations

import logging
from pathlib import Path

from docflow_config.loader import load_configuration
from docflow_config.schema import WorkflowConfiguration

_logger = logging.getLogger("docflow_kernel.config")

_DEFAULT_CONFIG_PATH = Path(__file__).parent / "sets" / "default.yaml"


def get_active_config(config_path: Path | None = None) -> WorkflowConfiguration:
    """The ONLY public configuration entrypoint.

    Args:
        config_path: Override path to a configuration file.  Defaults to
            docflow_config/sets/default.yaml.

    Returns:
        The parsed, frozen ``WorkflowConfiguration``.
    """
    path = config_path or _DEFAULT_CONFIG_PATH
    config = load_configuration(path)

    _logger.info(
        "DOCFLOW_CONFIG_TRACE",
        extra={
            "trace_type": "DOCFLOW_CONFIG_TRACE",
            "config_id": config.config_id,
            "config_version": config.version,
            "checksum": config.checksum,
            "approval_ordering": config.approval.ordering.value,
            "approval_eligibility": config.approval.eligibility.value,
            "role_count": len(config.roles),
        },
    )
    return config


__all__ = [
    "get_active_config",
    "WorkflowConfiguration",
]
