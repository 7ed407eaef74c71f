"""
Conversation-side inputs consumed by the routing engine.

These types are produced by collaborators (chat threads, the temporal
intelligence layer, the system performance monitor). The engine only reads them.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional


class WorkspaceType(Enum):
    """Workspace a conversation lives in."""
    GENERAL = "general"
    CODE = "code"
    CREATIVE = "creative"
    RESEARCH = "research"

    @property
    def display_name(self) -> str:
        return self.value.capitalize()


class MessageRole(Enum):
    """Author of a chat message."""
    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


class TimeOfDay(Enum):
    """Coarse time-of-day bucket."""
    EARLY_MORNING = "early_morning"
    MORNING = "morning"
    MIDDAY = "midday"
    AFTERNOON = "afternoon"
    EVENING = "evening"
    NIGHT = "night"
    LATE_NIGHT = "late_night"

    @classmethod
    def from_hour(cls, hour: int) -> "TimeOfDay":
        if 5 <= hour < 7:
            return cls.EARLY_MORNING
        if 7 <= hour < 12:
            return cls.MORNING
        if 12 <= hour < 14:
            return cls.MIDDAY
        if 14 <= hour < 18:
            return cls.AFTERNOON
        if 18 <= hour < 21:
            return cls.EVENING
        if 21 <= hour < 23:
            return cls.NIGHT
        return cls.LATE_NIGHT


class CircadianPhase(Enum):
    """User energy phase as reported by the temporal layer."""
    PEAK = "peak"
    ACTIVE = "active"
    DECLINING = "declining"
    RECOVERY = "recovery"


@dataclass(frozen=True)
class TemporalContext:
    """Time-of-day bucket and circadian phase."""

    time_of_day: TimeOfDay
    circadian_phase: CircadianPhase = CircadianPhase.ACTIVE
    user_energy_level: float = 0.8

    @classmethod
    def now(cls, moment: Optional[datetime] = None) -> "TemporalContext":
        """Build a context from the wall clock."""
        moment = moment or datetime.now()
        return cls(time_of_day=TimeOfDay.from_hour(moment.hour))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "time_of_day": self.time_of_day.value,
            "circadian_phase": self.circadian_phase.value,
            "user_energy_level": self.user_energy_level,
        }


@dataclass(frozen=True)
class UserPreferences:
    """User personalization settings."""

    response_style: str = "balanced"
    verbosity: str = "medium"
    technical_level: str = "intermediate"
    creativity_preference: str = "balanced"
    privacy_level: str = "maximum"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "response_style": self.response_style,
            "verbosity": self.verbosity,
            "technical_level": self.technical_level,
            "creativity_preference": self.creativity_preference,
            "privacy_level": self.privacy_level,
        }


@dataclass(frozen=True)
class ChatMessage:
    """A single message in a conversation thread."""

    content: str
    role: MessageRole = MessageRole.USER
    timestamp: datetime = field(default_factory=datetime.now)


@dataclass(frozen=True)
class ConversationContext:
    """State of the conversation a tool is invoked from."""

    workspace_type: WorkspaceType = WorkspaceType.GENERAL
    recent_messages: List[ChatMessage] = field(default_factory=list)
    thread_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    semantic_context: List[str] = field(default_factory=list)
    temporal_context: Optional[TemporalContext] = None
    user_preferences: Optional[UserPreferences] = None

    @property
    def last_message_content(self) -> str:
        """Content of the most recent message, or an empty string."""
        if not self.recent_messages:
            return ""
        return self.recent_messages[-1].content

    def to_dict(self) -> Dict[str, Any]:
        return {
            "thread_id": self.thread_id,
            "workspace_type": self.workspace_type.value,
            "recent_messages": [
                {
                    "role": message.role.value,
                    "content": message.content,
                    "timestamp": message.timestamp.isoformat(),
                }
                for message in self.recent_messages
            ],
            "semantic_context": list(self.semantic_context),
            "temporal_context": self.temporal_context.to_dict() if self.temporal_context else None,
            "user_preferences": self.user_preferences.to_dict() if self.user_preferences else None,
        }


@dataclass(frozen=True)
class SystemPerformanceMetrics:
    """System load sample: CPU as a 0-1 fraction, memory in bytes."""

    cpu_usage: float = 0.0
    memory_usage: int = 0
    timestamp: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "cpu_usage": self.cpu_usage,
            "memory_usage": self.memory_usage,
            "timestamp": self.timestamp.isoformat(),
        }
