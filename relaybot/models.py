from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class ReadyState(Enum):
    READY = "ready"
    NOT_READY = "not_ready"
    FAILED = "failed"


RUN_COMPLETED = "completed"
RUN_FAILED_STATUSES = frozenset({"expired", "failed"})


@dataclass
class Run:
    id: str
    thread_id: str
    status: str  # "queued" | "in_progress" | "completed" | "expired" | "failed" | ...

    @property
    def ready_state(self) -> ReadyState:
        if self.status == RUN_COMPLETED:
            return ReadyState.READY
        if self.status in RUN_FAILED_STATUSES:
            return ReadyState.FAILED
        return ReadyState.NOT_READY

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "Run":
        return cls(id=data["id"], thread_id=data.get("thread_id", ""), status=data["status"])


@dataclass
class ContentSegment:
    type: str  # "text" | "image_file" | "image_url" | ...
    text: Optional[str] = None


@dataclass
class ThreadMessage:
    id: str
    role: str  # "user" | "assistant"
    content: List[ContentSegment] = field(default_factory=list)
    run_id: Optional[str] = None

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "ThreadMessage":
        if not isinstance(data, dict):
            raise ValueError("message is not an object")
        content = data.get("content") or []
        if not isinstance(content, list):
            raise ValueError("message content is not a list")

        segments = []
        for item in content:
            if not isinstance(item, dict):
                continue
            seg_type = item.get("type", "")
            text = None
            if seg_type == "text":
                text_obj = item.get("text")
                text = text_obj.get("value", "") if isinstance(text_obj, dict) else str(text_obj or "")
            segments.append(ContentSegment(type=seg_type, text=text))
        return cls(
            id=data.get("id", ""),
            role=data.get("role", ""),
            content=segments,
            run_id=data.get("run_id"),
        )


@dataclass
class InboundEvent:
    """Transport-neutral view of one incoming chat message."""
    chat_id: int
    chat_type: str  # "private" | "group" | "supergroup" | "channel"
    display_name: str
    text: Optional[str] = None
    photo_file_id: Optional[str] = None

    @property
    def is_private(self) -> bool:
        return self.chat_type == "private"


@dataclass
class RelayOutcome:
    status: str  # "replied" | "ignored" | "failed"
    text: Optional[str] = None
    reason: Optional[str] = None
    error: Optional[Exception] = None

    @classmethod
    def replied(cls, text: str) -> "RelayOutcome":
        return cls(status="replied", text=text)

    @classmethod
    def ignored(cls, reason: str) -> "RelayOutcome":
        return cls(status="ignored", reason=reason)

    @classmethod
    def failed(cls, error: Exception) -> "RelayOutcome":
        return cls(status="failed", reason=str(error), error=error)
