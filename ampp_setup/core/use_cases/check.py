"""
Check use case — what would stop an install, without changing anything.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from ampp_setup.adapters.registry import create_default_registry
from ampp_setup.core.models.profile import Profile
from ampp_setup.core.services.homebrew import HomebrewProbe
from ampp_setup.core.services.preflight import PreflightReport, check_platform


@dataclass
class CheckResult:
    preflight: PreflightReport
    brew_path: str | None = None
    prefix: str | None = None
    tools: dict[str, bool] = field(default_factory=dict)

    @property
    def ready(self) -> bool:
        """Platform is supported (a missing brew can still be installed)."""
        return self.preflight.ok

    def to_dict(self) -> dict:
        return {
            "ready": self.ready,
            "preflight": self.preflight.to_dict(),
            "homebrew": {"path": self.brew_path, "prefix": self.prefix},
            "tools": self.tools,
        }


def run_check(
    profile: Profile,
    probe: HomebrewProbe | None = None,
    platform_overrides: dict[str, str] | None = None,
) -> CheckResult:
    probe = probe or HomebrewProbe(fallback=profile.homebrew_bin)
    result = CheckResult(preflight=check_platform(profile, **(platform_overrides or {})))

    result.brew_path = probe.locate()
    if result.brew_path:
        result.prefix = probe.prefix()

    registry = create_default_registry(prefix=result.prefix or profile.homebrew_prefix)
    result.tools = {
        name: info["available"] for name, info in registry.adapter_status().items()
    }
    return result
