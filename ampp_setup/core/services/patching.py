"""
Configuration patches — render diff templates and build patch steps.

Each PatchSpec becomes one confirmable step: apply the diff, then run
its webroot follow-ups (``after``). The diff templates carry
``__PLACEHOLDER__`` tokens for values that differ per machine.
"""

from __future__ import annotations

import base64
import getpass
import logging
import secrets

from ampp_setup.core.data import process_template, read_template
from ampp_setup.core.models.action import Action
from ampp_setup.core.models.profile import FileOperation, PatchSpec, Profile
from ampp_setup.core.models.step import Step

logger = logging.getLogger(__name__)

BLOWFISH_SECRET_LENGTH = 32


def generate_blowfish_secret() -> str:
    """32 characters for phpMyAdmin's cookie encryption (FAQ 2.10).

    Base64 of 24 random bytes is exactly 32 characters.
    """
    return base64.b64encode(secrets.token_bytes(24)).decode("ascii")[:BLOWFISH_SECRET_LENGTH]


def current_user() -> str:
    """Login name; Homebrew's MariaDB creates a passwordless account for it."""
    return getpass.getuser()


def build_placeholders(
    profile: Profile,
    prefix: str,
    *,
    blowfish_secret: str | None = None,
    db_user: str | None = None,
) -> dict[str, str]:
    """Values for every placeholder used by the packaged templates."""
    return {
        "HOMEBREW_PREFIX": prefix.rstrip("/"),
        "PHP_FORMULA": profile.php_formula,
        "BLOWFISH_SECRET": blowfish_secret or generate_blowfish_secret(),
        "DB_USER": db_user or current_user(),
        "TIMEZONE": profile.timezone,
        "LOCALE": profile.locale,
    }


def render_patch(spec: PatchSpec, placeholders: dict[str, str]) -> str:
    return process_template(read_template("patches", spec.template), placeholders)


def _file_action(spec: PatchSpec, index: int, op: FileOperation,
                 placeholders: dict[str, str]) -> Action:
    params: dict = {"operation": op.operation, "path": op.path}
    if op.operation == "write":
        if op.template is not None:
            params["content"] = process_template(read_template("webroot", op.template), placeholders)
        else:
            params["content"] = op.content
    return Action(
        id=f"patch:{spec.name}:after:{index}",
        name=f"{op.operation} {op.path}",
        adapter="filesystem",
        params=params,
    )


def patch_step(
    profile: Profile,
    spec: PatchSpec,
    prefix: str,
    placeholders: dict[str, str],
) -> Step:
    """One confirmable step: apply ``spec`` then its follow-ups."""
    target = f"{prefix.rstrip('/')}/{spec.target}"
    label = spec.display_name

    apply = Action(
        id=f"patch:{spec.name}",
        name=f"Apply {spec.template} to {spec.target}",
        adapter="patch",
        params={
            "name": spec.name,
            "target": spec.target,
            "diff": render_patch(spec, placeholders),
            "patch_dir": profile.patch_dir,
            "backup": spec.backup,
        },
    )
    followups = [
        _file_action(spec, i, op, placeholders) for i, op in enumerate(spec.after)
    ]

    return Step(
        id=f"patch:{spec.name}",
        description=f"Update {label} configuration",
        prompt=(
            f"Update {label} configuration file in {target} "
            "with proper configuration?"
        ),
        actions=[apply, *followups],
        success_message=f"{label} configuration completed!",
        skip_message=f"Skipped: {label} configuration update.",
    )
