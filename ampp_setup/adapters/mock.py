"""
Mock adapter for tests.

Plug one into ``AdapterRegistry.set_mock_mode`` and every brew, patch,
filesystem and shell action lands here instead of touching the machine.
"""

from __future__ import annotations

from ampp_setup.adapters.base import Adapter, ExecutionContext
from ampp_setup.core.models.action import Receipt


class MockAdapter(Adapter):
    """Records each context; answers with a canned receipt or success."""

    def __init__(self, adapter_name: str = "mock", available: bool = True,
                 default_output: str = "[mock] executed"):
        self._name = adapter_name
        self._available = available
        self._default_output = default_output
        self._canned: dict[str, Receipt] = {}
        self.call_log: list[ExecutionContext] = []

    @property
    def name(self) -> str:
        return self._name

    @property
    def call_count(self) -> int:
        return len(self.call_log)

    @property
    def executed_ids(self) -> list[str]:
        return [ctx.action.id for ctx in self.call_log]

    def is_available(self) -> bool:
        return self._available

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        return True, ""

    def set_response(self, action_id: str, receipt: Receipt) -> None:
        self._canned[action_id] = receipt

    def set_failure(self, action_id: str, error: str = "Mock failure", **metadata) -> None:
        self._canned[action_id] = Receipt.failure(self._name, action_id, error, metadata=metadata)

    def execute(self, context: ExecutionContext) -> Receipt:
        self.call_log.append(context)
        canned = self._canned.get(context.action.id)
        if canned is not None:
            return canned
        return self.succeeded(context, self._default_output, mock=True)

    def reset(self) -> None:
        self.call_log.clear()
        self._canned.clear()
