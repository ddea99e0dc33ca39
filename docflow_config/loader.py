"""
Configuration Loader (``docflow_config.loader``).

Responsibility
--------------
Loads a YAML configuration file and parses it into the frozen
``docflow_config.schema`` dataclasses.  Runtime callers go through
``docflow_config.get_active_config()`` rather than calling this directly.

Invariants enforced
-------------------
* Parse errors raise ``ValueError`` or ``KeyError`` with descriptive
  messages; required fields have no silent defaults.
* ``compute_checksum`` produces a deterministic SHA-256 hash for
  configuration identity and change detection.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Missing ``config_id`` or ``version``  -> ``KeyError`` propagates.
* Unknown ordering/eligibility/step kind, bad numbering, or own-only
  roles outside the catalogue  -> ``ValueError``.
"""

from __future__ import annotations

import hashlib
import json
from pathlib import Path
from typing import Any

import yaml

from docflow_config.schema import (
    ApprovalDef,
    ApprovalOrdering,
    EligibilityMode,
    NumberingDef,
    RoleDef,
    WorkflowConfiguration,
)

_STEP_KINDS = ("reviewer", "signer")


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path) as f:
        return yaml.safe_load(f) or {}


def parse_numbering(data: dict[str, Any]) -> NumberingDef:
    prefix = str(data.get("prefix", "DOC")).strip()
    width = data.get("width", 3)
    if not prefix:
        raise ValueError("numbering.prefix must not be empty")
    if not isinstance(width, int) or isinstance(width, bool) or width < 1:
        raise ValueError(f"numbering.width must be a positive integer, got {width!r}")
    return NumberingDef(prefix=prefix, width=width)


def parse_approval(data: dict[str, Any]) -> ApprovalDef:
    return ApprovalDef(
        ordering=ApprovalOrdering(data.get("ordering", "flat")),
        eligibility=EligibilityMode(data.get("eligibility", "role")),
    )


def parse_role(data: Any) -> RoleDef:
    """A role entry is either a bare code or ``{code, description}``."""
    if isinstance(data, str):
        return RoleDef(code=data)
    return RoleDef(code=data["code"], description=data.get("description", ""))


def parse_configuration(data: dict[str, Any]) -> WorkflowConfiguration:
    """
    Parse a loaded YAML document into a ``WorkflowConfiguration``.

    The checksum is computed over the raw mapping, so key order and
    formatting in the file do not affect it.
    """
    roles = tuple(parse_role(r) for r in data.get("roles", []))
    codes = {role.code for role in roles}

    listing = data.get("listing", {})
    own_only = tuple(listing.get("own_only_roles", ["STAFF"]))
    if codes:
        unknown = sorted(set(own_only) - codes)
        if unknown:
            raise ValueError(
                f"listing.own_only_roles not in role catalogue: {unknown}"
            )

    default_kind = data.get("steps", {}).get("default_kind", "reviewer")
    if default_kind not in _STEP_KINDS:
        raise ValueError(
            f"steps.default_kind must be one of {_STEP_KINDS}, got {default_kind!r}"
        )

    return WorkflowConfiguration(
        config_id=data["config_id"],
        version=int(data["version"]),
        checksum=compute_checksum(data),
        numbering=parse_numbering(data.get("numbering", {})),
        approval=parse_approval(data.get("approval", {})),
        roles=roles,
        own_only_roles=own_only,
        default_step_kind=default_kind,
    )


def load_configuration(path: Path) -> WorkflowConfiguration:
    return parse_configuration(load_yaml_file(path))


def compute_checksum(data: dict[str, Any]) -> str:
    """
    Compute SHA-256 checksum of canonical JSON serialization.

    Identical ``data`` always produces identical checksums.
    """
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()
