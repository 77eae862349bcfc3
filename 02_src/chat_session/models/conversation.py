"""Conversation identity and operation outcome models."""

from dataclasses import dataclass
from enum import Enum

from ..config import DEFAULT_CONVERSATION_TITLE


class ConversationState(str, Enum):
    """Identity states of a conversation."""

    ANONYMOUS = "anonymous"
    IDENTIFIED = "identified"  # id assigned, no name applied yet
    NAMED = "named"
    DELETED = "deleted"


@dataclass
class Conversation:
    """The conversation a session is showing."""

    id: str | None = None
    title: str = DEFAULT_CONVERSATION_TITLE
    state: ConversationState = ConversationState.ANONYMOUS

    @property
    def is_identified(self) -> bool:
        return self.id is not None and self.state != ConversationState.DELETED


class OutcomeStatus(str, Enum):
    """Result kinds of a session operation."""

    OK = "ok"
    SKIPPED = "skipped"  # rejected by validation, nothing was called
    FAILED = "failed"


@dataclass
class Outcome:
    """Structured result handed to the presentation layer."""

    status: OutcomeStatus
    message: str = ""
    title: str | None = None
    close: bool = False

    @property
    def ok(self) -> bool:
        return self.status == OutcomeStatus.OK

    @classmethod
    def success(cls, message: str = "", **kwargs) -> "Outcome":
        return cls(OutcomeStatus.OK, message, **kwargs)

    @classmethod
    def skipped(cls, message: str = "") -> "Outcome":
        return cls(OutcomeStatus.SKIPPED, message)

    @classmethod
    def failure(cls, message: str) -> "Outcome":
        return cls(OutcomeStatus.FAILED, message)
