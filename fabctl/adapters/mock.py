"""
Mock adapter — stands in for docker or the shell in tests.

Every call is recorded, so tests can assert on the exact sequence of
steps a service took. Behaviour is scripted per action id:

    mock.set_failure("channel:join", error="...")     # fail this step
    mock.set_response("chaincode:query", receipt)      # canned output
    mock.set_handler("crypto:generate", write_files)   # side effects

A handler runs first; returning None falls through to the scripted
response, then to a plain success.
"""

from __future__ import annotations

from collections.abc import Callable

from fabctl.adapters.base import Adapter, ExecutionContext
from fabctl.core.models.action import Receipt

Handler = Callable[[ExecutionContext], "Receipt | None"]


class MockAdapter(Adapter):
    def __init__(
        self,
        adapter_name: str = "mock",
        available: bool = True,
        default_output: str = "[mock] executed",
    ):
        self.name = adapter_name
        self._available = available
        self._default_output = default_output
        self._responses: dict[str, Receipt] = {}
        self._handlers: dict[str, Handler] = {}
        self.call_log: list[ExecutionContext] = []

    @property
    def call_count(self) -> int:
        return len(self.call_log)

    @property
    def called_ids(self) -> list[str]:
        """Action ids, in the order they were executed."""
        return [ctx.action.id for ctx in self.call_log]

    def is_available(self) -> bool:
        return self._available

    def set_response(self, action_id: str, receipt: Receipt) -> None:
        self._responses[action_id] = receipt

    def set_failure(self, action_id: str, error: str = "Mock failure", return_code: int = 1) -> None:
        self._responses[action_id] = Receipt.failure(
            adapter=self.name, action_id=action_id, error=error, return_code=return_code,
        )

    def set_handler(self, action_id: str, handler: Handler) -> None:
        self._handlers[action_id] = handler

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        return True, ""

    def execute(self, context: ExecutionContext) -> Receipt:
        self.call_log.append(context)
        action_id = context.action.id

        handler = self._handlers.get(action_id)
        if handler is not None:
            receipt = handler(context)
            if receipt is not None:
                return receipt

        if action_id in self._responses:
            return self._responses[action_id]

        return Receipt.success(
            adapter=self.name,
            action_id=action_id,
            output=self._default_output,
            return_code=0,
            metadata={"mock": True},
        )

    def reset(self) -> None:
        self.call_log.clear()
        self._responses.clear()
        self._handlers.clear()
