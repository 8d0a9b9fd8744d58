"""
Configuration loader — reads a provisioning profile into a Profile model.

The packaged default profile is always loaded first. A user profile
(``--config`` or ``AMPP_PROFILE``) is overlaid key by key, so it only
needs to list what it changes.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

import yaml

from ampp_setup.core.data import DEFAULT_PROFILE
from ampp_setup.core.errors import ProvisionError
from ampp_setup.core.models.profile import Profile

logger = logging.getLogger(__name__)

PROFILE_ENV_VAR = "AMPP_PROFILE"


class ConfigError(ProvisionError):
    """Raised when a profile is invalid or missing."""


def _read_mapping(path: Path) -> dict[str, Any]:
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")
    return data


def resolve_profile_path(path: Path | None = None) -> Path | None:
    """Explicit path, else ``$AMPP_PROFILE``, else None (defaults only)."""
    if path is not None:
        return path
    env_path = os.environ.get(PROFILE_ENV_VAR)
    return Path(env_path).expanduser() if env_path else None


def load_profile(path: Path | None = None) -> Profile:
    """Load and validate the provisioning profile.

    Args:
        path: Optional user profile overlaid on the packaged defaults.

    Returns:
        Validated Profile model.

    Raises:
        ConfigError: If a file is missing, unreadable or invalid.
    """
    data = _read_mapping(DEFAULT_PROFILE)

    path = resolve_profile_path(path)
    if path is not None:
        if not path.is_file():
            raise ConfigError(f"Profile not found: {path}")
        logger.debug("Overlaying profile %s on defaults", path)
        data.update(_read_mapping(path))

    try:
        profile = Profile.model_validate(data)
    except Exception as e:
        raise ConfigError(f"Invalid profile configuration: {e}") from e

    logger.info(
        "Loaded profile '%s' (%d formulae, %d patches)",
        profile.name, len(profile.formulae), len(profile.patches),
    )
    return profile
