"""
Shared test fixtures and configuration.
"""

from pathlib import Path

import pytest

from ampp_setup.adapters.mock import MockAdapter
from ampp_setup.adapters.registry import AdapterRegistry
from ampp_setup.core.config.loader import PROFILE_ENV_VAR, load_profile
from ampp_setup.core.models.profile import Profile
from ampp_setup.core.services.homebrew import HomebrewProbe

SUPPORTED_PLATFORM = {"machine": "arm64", "shell": "/bin/zsh", "system": "Darwin"}


class FakeProbe(HomebrewProbe):
    """HomebrewProbe answering from memory instead of running brew."""

    def __init__(
        self,
        installed: dict[str, str] | None = None,
        services: list[str] | None = None,
        prefix: str = "/opt/homebrew",
        present: bool = True,
    ):
        super().__init__()
        self.installed = dict(installed or {})
        self.services = list(services or [])
        self._prefix = prefix
        self.present = present

    def locate(self) -> str | None:
        return f"{self._prefix}/bin/brew" if self.present else None

    def prefix(self) -> str | None:
        return self._prefix if self.present else None

    def installed_version(self, formula: str) -> str | None:
        return self.installed.get(formula)

    def service_table(self) -> list[dict[str, str]]:
        return [{"name": n, "status": "started", "user": "dev"} for n in self.services]


@pytest.fixture(autouse=True)
def _no_user_profile(monkeypatch):
    """Keep a developer's AMPP_PROFILE out of the tests."""
    monkeypatch.delenv(PROFILE_ENV_VAR, raising=False)


@pytest.fixture
def home(tmp_path: Path) -> Path:
    """A fake home directory for shell rc/profile files."""
    path = tmp_path / "home"
    path.mkdir()
    return path


@pytest.fixture
def prefix(tmp_path: Path) -> Path:
    """A fake Homebrew prefix."""
    path = tmp_path / "homebrew"
    path.mkdir()
    return path


@pytest.fixture
def profile(tmp_path: Path, home: Path) -> Profile:
    """Packaged defaults, with shell files and patch dir under tmp_path."""
    return load_profile().model_copy(update={
        "shell_rc": str(home / ".zshrc"),
        "shell_profile": str(home / ".zprofile"),
        "patch_dir": str(tmp_path / "patches"),
    })


@pytest.fixture
def mock_adapter() -> MockAdapter:
    return MockAdapter()


@pytest.fixture
def registry(mock_adapter: MockAdapter, prefix: Path) -> AdapterRegistry:
    """Registry routing every action to ``mock_adapter``."""
    reg = AdapterRegistry(prefix=str(prefix))
    reg.set_mock_mode(True, mock_adapter)
    return reg


@pytest.fixture
def platform_ok() -> dict[str, str]:
    return dict(SUPPORTED_PLATFORM)


@pytest.fixture
def make_probe():
    """Factory for FakeProbe instances."""
    return FakeProbe
