"""Choosing the next operation of an interface.

The decider is itself a declared interface: it receives the target's
operations (and current memory) as a JSON schema string and answers with an
``AiDecision``.
"""

from __future__ import annotations

import asyncio
import inspect
from collections.abc import Iterable, Mapping
from concurrent.futures import Future
from typing import TYPE_CHECKING, Any, Self

from pydantic import BaseModel, ConfigDict, Field

from intentcall.foundation.core.descriptor import operation
from intentcall.foundation.core.schema import interface_metadata_string
from intentcall.runtime.concurrency import run_sync

if TYPE_CHECKING:
    from intentcall.builder import IntentInstance


class AiArg(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str = Field(description="The name of the argument")
    value: str = Field(description="The value of the argument, as text")


class AiDecision(BaseModel):
    """The operation to call next and its arguments."""

    model_config = ConfigDict(frozen=True)

    method: str = Field(description="The method to call")
    args: list[AiArg] = Field(default_factory=list, description="The arguments to pass to this call")

    def args_map(self) -> dict[str, str]:
        return {a.name: a.value for a in self.args}

    @classmethod
    def of(cls, method: str, args: Mapping[str, Any] | None = None) -> Self:
        return cls(method=method, args=[AiArg(name=k, value=str(v)) for k, v in (args or {}).items()])


class DecidingAgentAPI:
    """Decider interface; build it with an adapter like any other interface."""

    @operation(
        summary="Decide Next Action",
        description=(
            "Look at the agent's available methods, their descriptions and the current memory, "
            "and decide which method should be called next and with which arguments. "
            "Prefer a terminal method once the goal is reached."
        ),
        params={"current_object": "JSON description of the agent: its methods and current memory"},
        returns=AiDecision,
        response="The next method to call and its arguments",
    )
    def decide_next_action(self, current_object: str) -> Future[AiDecision]: ...


def decision_schema(instance: IntentInstance[Any], excluded: Iterable[str] = ()) -> str:
    """Schema string for ``instance``: its operations minus ``excluded``, plus memory."""
    return interface_metadata_string(instance.interface, excluded, instance.memory.get_all())


def decide(decider: Any, instance: IntentInstance[Any], excluded: Iterable[str] = ()) -> AiDecision:
    """Ask ``decider`` for the next decision, blocking until it answers."""
    answer = decider.decide_next_action(decision_schema(instance, excluded))
    if isinstance(answer, Future):
        return answer.result()
    if inspect.isawaitable(answer):
        return run_sync(_await(answer))
    return answer


async def decide_async(decider: Any, instance: IntentInstance[Any], excluded: Iterable[str] = ()) -> AiDecision:
    """Ask ``decider`` for the next decision without blocking the loop."""
    answer = decider.decide_next_action(decision_schema(instance, excluded))
    if isinstance(answer, Future):
        return await asyncio.wrap_future(answer)
    if inspect.isawaitable(answer):
        return await answer
    return answer


async def _await(awaitable: Any) -> Any:
    return await awaitable
