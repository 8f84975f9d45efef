"""Agent decision loop: decider, dispatcher and autonomous agent."""

from .autonomous import AutonomousAgent, AutonomousAIApi
from .decider import AiArg, AiDecision, DecidingAgentAPI, decide, decide_async, decision_schema
from .dispatcher import AgentDispatcher, DispatchResult, coerce

__all__ = [
    "AiArg", "AiDecision", "DecidingAgentAPI", "decide", "decide_async", "decision_schema",
    "AgentDispatcher", "DispatchResult", "coerce",
    "AutonomousAgent", "AutonomousAIApi",
]
