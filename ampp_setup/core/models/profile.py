"""
Profile model — what to install and how to configure it.

Loaded from the packaged ``default_profile.yml`` (optionally overlaid
by a user file). Paths in ``cleanup_paths``, ``PatchSpec.target`` and
``FileOperation.path`` are relative to the Homebrew prefix.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator, model_validator


class FileOperation(BaseModel):
    """A webroot follow-up performed after a patch is applied."""

    operation: Literal["touch", "write", "mkdir", "remove"]
    path: str
    template: str | None = None     # webroot template name (for 'write')
    content: str | None = None      # literal content (for 'write')

    @model_validator(mode="after")
    def _write_needs_body(self) -> FileOperation:
        if self.operation == "write" and self.template is None and self.content is None:
            raise ValueError(f"write operation on '{self.path}' needs 'template' or 'content'")
        return self


class PatchSpec(BaseModel):
    """A unified-diff template applied to a configuration file."""

    name: str
    label: str = ""
    target: str
    template: str
    backup: bool = True
    after: list[FileOperation] = Field(default_factory=list)

    @property
    def display_name(self) -> str:
        return self.label or self.name


class Profile(BaseModel):
    """Provisioning profile."""

    name: str = "ie-ampp"
    description: str = ""

    # Preflight
    required_arch: str = "arm64"
    required_shell: str = "zsh"
    required_system: str | None = "Darwin"

    # Homebrew
    homebrew_installer_url: str = (
        "https://raw.githubusercontent.com/Homebrew/install/HEAD/install.sh"
    )
    homebrew_bin: str = "/opt/homebrew/bin/brew"
    homebrew_prefix: str = "/opt/homebrew"    # fallback when brew is absent

    # Packages
    php_formula: str = "php@8.4"
    formulae: list[str] = Field(default_factory=list)
    candidates: list[str] = Field(default_factory=list)
    uninstall: list[str] = Field(default_factory=list)
    stop_services: list[str] = Field(default_factory=list)
    cleanup_paths: list[str] = Field(default_factory=list)
    services: list[str] = Field(default_factory=list)

    # Configuration values substituted into patches
    timezone: str = "Australia/Melbourne"
    locale: str = "en_AU"
    http_port: int = 8080

    # Shell files
    shell_rc: str = "~/.zshrc"
    shell_profile: str = "~/.zprofile"

    patch_dir: str = "/tmp"
    patches: list[PatchSpec] = Field(default_factory=list)
    open_webroot: bool = True

    @field_validator("php_formula")
    @classmethod
    def _php_formula_versioned(cls, value: str) -> str:
        if "@" not in value:
            raise ValueError("php_formula must be a versioned formula such as 'php@8.4'")
        return value

    @model_validator(mode="after")
    def _unique_patch_names(self) -> Profile:
        names = [p.name for p in self.patches]
        dupes = sorted({n for n in names if names.count(n) > 1})
        if dupes:
            raise ValueError(f"duplicate patch names: {', '.join(dupes)}")
        return self

    @property
    def php_version(self) -> str:
        return self.php_formula.split("@", 1)[1]

    @property
    def shell_rc_path(self) -> Path:
        return Path(self.shell_rc).expanduser()

    @property
    def shell_profile_path(self) -> Path:
        return Path(self.shell_profile).expanduser()

    def get_patch(self, name: str) -> PatchSpec | None:
        """Look up a patch definition by name."""
        for patch in self.patches:
            if patch.name == name:
                return patch
        return None
