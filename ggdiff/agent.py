"""Events produced by a coding agent and the interface agents implement."""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Union


class EventKind(Enum):
    """What an agent event reports."""

    DELTA = "delta"
    MESSAGE = "message"
    TOOL_START = "tool_start"
    TOOL_COMPLETE = "tool_complete"
    DONE = "done"
    ERROR = "error"


@dataclass(frozen=True)
class DeltaPayload:
    """A piece of streamed assistant text, or a whole message."""

    text: str


@dataclass(frozen=True)
class ToolPayload:
    """A tool invocation and a short summary of its arguments."""

    tool_name: str
    args_summary: str


@dataclass(frozen=True)
class ErrorPayload:
    """An error reported by the agent."""

    message: str


Payload = Union[DeltaPayload, ToolPayload, ErrorPayload, None]


@dataclass(frozen=True)
class AgentEvent:
    """One event from an agent session, tied to the comment that started it."""

    comment_id: str
    kind: EventKind
    payload: Payload = None


class AgentRunner(ABC):
    """A background agent that answers prompts and streams events."""

    @abstractmethod
    def take_events(self) -> asyncio.Queue[AgentEvent] | None:
        """Return the event queue on the first call and ``None`` afterwards."""

    @abstractmethod
    async def send(self, comment_id: str, prompt: str) -> None:
        """Send ``prompt`` on behalf of the comment ``comment_id``."""

    @abstractmethod
    async def start(self) -> None:
        """Start the agent."""

    @abstractmethod
    def stop(self) -> None:
        """Stop the agent."""