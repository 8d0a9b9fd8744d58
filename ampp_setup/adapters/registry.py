"""
Adapter registry — every side effect of a run passes through here.

``execute_action`` picks the adapter, validates, honours dry-run and
turns anything an adapter raises into a failed receipt, so the
sequencer only ever deals with receipts.
"""

from __future__ import annotations

import logging
import time
from typing import Any

from ampp_setup.adapters.base import Adapter, ExecutionContext
from ampp_setup.core.models.action import Action, Receipt

logger = logging.getLogger(__name__)


class AdapterRegistry:
    """Adapters by name, plus the Homebrew prefix they resolve paths against.

    ``prefix`` is mutable: it is only known once brew exists, which may
    be after the bootstrap step has already gone through the registry.
    """

    def __init__(self, prefix: str = "", mock_mode: bool = False):
        self.prefix = prefix
        self._adapters: dict[str, Adapter] = {}
        self._mock_mode = mock_mode
        self._mock: Adapter | None = None

    @property
    def mock_mode(self) -> bool:
        return self._mock_mode

    def set_mock_mode(self, enabled: bool, mock_adapter: Adapter | None = None) -> None:
        """Send every action to ``mock_adapter`` (or succeed blindly if None)."""
        self._mock_mode = enabled
        self._mock = mock_adapter

    def register(self, adapter: Adapter) -> None:
        if adapter.name in self._adapters:
            logger.warning("Replacing adapter %s", adapter.name)
        self._adapters[adapter.name] = adapter

    def unregister(self, name: str) -> None:
        self._adapters.pop(name, None)

    def get(self, name: str) -> Adapter | None:
        return self._adapters.get(name)

    def list_adapters(self) -> list[str]:
        return list(self._adapters)

    def adapter_status(self) -> dict[str, dict[str, Any]]:
        """``{name: {name, available, type}}`` for the ``check`` command."""
        status = {}
        for name, adapter in self._adapters.items():
            try:
                available = adapter.is_available()
            except Exception:
                logger.debug("is_available() raised for %s", name, exc_info=True)
                available = False
            status[name] = {"name": name, "available": available, "type": type(adapter).__name__}
        return status

    def _adapter_for(self, action: Action) -> Adapter | None:
        if self._mock_mode:
            return self._mock
        return self._adapters.get(action.adapter)

    def execute_action(self, action: Action, dry_run: bool = False) -> Receipt:
        """Validate and run one action. Never raises."""
        started = time.monotonic()

        if self._mock_mode and self._mock is None:
            return Receipt.success(action.adapter, action.id, f"[mock] {action.id}", metadata={"mock": True})

        adapter = self._adapter_for(action)
        if adapter is None:
            return Receipt.failure(action.adapter, action.id,
                                   f"No adapter registered for '{action.adapter}'")

        context = ExecutionContext(action=action, prefix=self.prefix, dry_run=dry_run,
                                   params=action.params)
        try:
            valid, reason = adapter.validate(context)
        except Exception as e:
            valid, reason = False, f"validator crashed: {e}"
        if not valid:
            logger.info("✗ %s rejected: %s", action.id, reason)
            return Receipt.failure(action.adapter, action.id, f"Validation failed: {reason}")

        if dry_run:
            return Receipt.skip(action.adapter, action.id, f"[dry-run] would run {action.label}",
                                metadata={"dry_run": True})

        logger.info("→ %s", action.label)
        try:
            receipt = adapter.execute(context)
        except Exception as e:
            logger.exception("%s adapter raised on %s", action.adapter, action.id)
            receipt = Receipt.failure(action.adapter, action.id, f"Unexpected error: {e}")

        receipt.duration_ms = int((time.monotonic() - started) * 1000)
        logger.debug("%s finished in %d ms (%s)", action.id, receipt.duration_ms, receipt.status)
        return receipt


def create_default_registry(prefix: str) -> AdapterRegistry:
    """Registry with the real brew, patch, filesystem and shell adapters."""
    from ampp_setup.adapters.homebrew import BrewAdapter
    from ampp_setup.adapters.patch import PatchAdapter
    from ampp_setup.adapters.shell.command import ShellCommandAdapter
    from ampp_setup.adapters.shell.filesystem import FilesystemAdapter

    registry = AdapterRegistry(prefix=prefix)
    for adapter in (BrewAdapter(), PatchAdapter(), FilesystemAdapter(), ShellCommandAdapter()):
        registry.register(adapter)
    return registry
