"""
Package inventory — which target formulae are already on the machine.

Only used to decide whether to offer the uninstall step.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from ampp_setup.core.services.homebrew import HomebrewProbe

logger = logging.getLogger(__name__)


@dataclass
class PackageInventory:
    candidates: list[str] = field(default_factory=list)
    found: list[str] = field(default_factory=list)          # candidate order
    versions: dict[str, str] = field(default_factory=dict)

    @property
    def any_found(self) -> bool:
        return bool(self.found)

    def to_dict(self) -> dict:
        return {
            "candidates": self.candidates,
            "found": self.found,
            "versions": self.versions,
        }


def detect_installed(probe: HomebrewProbe, candidates: list[str]) -> PackageInventory:
    """Check each candidate with ``brew list --formula --versions``."""
    inventory = PackageInventory(candidates=list(candidates))
    for formula in candidates:
        version = probe.installed_version(formula)
        if version is None:
            continue
        inventory.found.append(formula)
        inventory.versions[formula] = version
    logger.info("Installed candidates: %s", ", ".join(inventory.found) or "none")
    return inventory
