"""Autonomous agents: a decider chooses, the dispatcher calls.

Example:
    >>> target = IntentBuilder(AutonomousAIApi).adapter(adapter).build()
    >>> decider = IntentBuilder(DecidingAgentAPI).adapter(adapter).build().api
    >>> agent = AutonomousAgent(target, decider)
    >>> agent.invoke("understand", {"data": "Book me a table for two"})
    >>> agent.run(max_steps=5).value
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from concurrent.futures import Future
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from intentcall.foundation.core.descriptor import operation

from .decider import decide, decide_async
from .dispatcher import AgentDispatcher, DispatchResult

if TYPE_CHECKING:
    from intentcall.builder import IntentInstance

logger = logging.getLogger("intentcall.agents")

T = TypeVar("T")


class AutonomousAgent(Generic[T]):
    """Drives ``instance`` with decisions from ``decider``.

    The interface defines the pipeline; ``AutonomousAIApi`` is one example.
    """

    __slots__ = ("_instance", "_decider", "_dispatcher")

    def __init__(self, instance: IntentInstance[T], decider: Any) -> None:
        self._instance = instance
        self._decider = decider
        self._dispatcher = AgentDispatcher(instance)

    @property
    def instance(self) -> IntentInstance[T]:
        return self._instance

    @property
    def dispatcher(self) -> AgentDispatcher:
        return self._dispatcher

    def step(self, excluded: Iterable[str] = ()) -> DispatchResult:
        """Ask for one decision and dispatch it."""
        decision = decide(self._decider, self._instance, excluded)
        logger.info(f"Decided {decision.method}({', '.join(a.name for a in decision.args)})")
        return self._dispatcher.dispatch(decision.method, decision.args_map())

    async def step_async(self, excluded: Iterable[str] = ()) -> DispatchResult:
        decision = await decide_async(self._decider, self._instance, excluded)
        logger.info(f"Decided {decision.method}({', '.join(a.name for a in decision.args)})")
        return await self._dispatcher.dispatch_async(decision.method, decision.args_map())

    def run(self, max_steps: int) -> DispatchResult:
        """Step until a terminal operation runs or ``max_steps`` is spent.

        When the budget runs out, the first terminal operation without
        required parameters is dispatched; otherwise the last result is
        returned.
        """
        if max_steps <= 0:
            raise ValueError(f"max_steps must be > 0, got {max_steps}")
        last = DispatchResult("", "", False)
        for _ in range(max_steps):
            last = self.step()
            if last.is_terminal:
                return last
        if (fallback := self._dispatcher.first_parameterless_terminal()) is not None:
            logger.info(f"Step budget of {max_steps} exhausted, finishing with {fallback}")
            return self._dispatcher.dispatch(fallback)
        return last

    async def run_async(self, max_steps: int) -> DispatchResult:
        if max_steps <= 0:
            raise ValueError(f"max_steps must be > 0, got {max_steps}")
        last = DispatchResult("", "", False)
        for _ in range(max_steps):
            last = await self.step_async()
            if last.is_terminal:
                return last
        if (fallback := self._dispatcher.first_parameterless_terminal()) is not None:
            logger.info(f"Step budget of {max_steps} exhausted, finishing with {fallback}")
            return await self._dispatcher.dispatch_async(fallback)
        return last

    def invoke(self, method: str, args: Mapping[str, Any] | None = None) -> DispatchResult:
        """Dispatch ``method`` directly, without asking the decider."""
        return self._dispatcher.dispatch(method, args)

    async def invoke_async(self, method: str, args: Mapping[str, Any] | None = None) -> DispatchResult:
        return await self._dispatcher.dispatch_async(method, args)


class AutonomousAIApi:
    """Autonomous agent that reflects on user input and delivers a result."""

    @operation(
        description="Accept input from the user and try to understand it",
        params={"data": "The user's input we are trying to understand."},
        response="Rephrase and clarify the user's input.",
        memorize="Users Intent",
    )
    def understand(self, data: str) -> Future[str]: ...

    @operation(
        description="Process the gathered data to extract insights and identify potential actions.",
        response="Result of the analysis phase.",
        memorize="analyze",
    )
    def analyze(self) -> Future[str]: ...

    @operation(
        description="Devise a strategy based on current insights and previous memory to decide the next steps.",
        response="Result of the planning process.",
        memorize="plan",
    )
    def plan(self) -> Future[str]: ...

    @operation(
        description="Reflect on the current state and provide the update.",
        response="Result of the reflection process.",
        memorize="reflect",
    )
    def reflect(self) -> Future[str]: ...

    @operation(
        description="Deliver the result",
        response="The final result/communication",
        memorize="act",
        terminal=True,
    )
    def act(self) -> Future[str]: ...
