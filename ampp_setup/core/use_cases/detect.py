"""
Detect use case — report installed target formulae and their services.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from ampp_setup.core.models.profile import Profile
from ampp_setup.core.services.homebrew import HomebrewProbe
from ampp_setup.core.services.inventory import PackageInventory, detect_installed


@dataclass
class DetectResult:
    inventory: PackageInventory | None = None
    services: list[dict[str, str]] = field(default_factory=list)
    error: str | None = None

    def to_dict(self) -> dict:
        if self.error:
            return {"error": self.error}
        return {
            "inventory": self.inventory.to_dict() if self.inventory else None,
            "services": self.services,
        }


def run_detect(profile: Profile, probe: HomebrewProbe | None = None) -> DetectResult:
    probe = probe or HomebrewProbe(fallback=profile.homebrew_bin)
    if not probe.locate():
        return DetectResult(error="Homebrew not found; nothing can be installed yet.")

    inventory = detect_installed(probe, profile.candidates)
    watched = set(profile.candidates)
    services = [row for row in probe.service_table() if row["name"] in watched]
    return DetectResult(inventory=inventory, services=services)
