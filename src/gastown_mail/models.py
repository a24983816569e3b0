"""Mail records as emitted by ``gt`` and as served by the HTTP API."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Optional, TypedDict


# One element of the ``gt mail inbox --json`` array ("from" is a keyword, hence the functional form).
RawMail = TypedDict(
    "RawMail",
    {
        "id": str,
        "from": str,
        "to": str,
        "subject": str,
        "body": str,
        "timestamp": str,
        "read": bool,
        "priority": str,
        "type": str,
        "thread_id": str,
    },
    total=False,
)


@dataclass(slots=True, frozen=True)
class Mail:
    id: Optional[str]
    sender: Optional[str]
    to: Optional[str]
    subject: Optional[str]
    body: Optional[str]
    sent_at: Optional[str]
    read: bool = False
    thread_id: Optional[str] = None

    @classmethod
    def from_raw(cls, raw: RawMail | Mapping[str, Any]) -> Mail:
        """Rename ``timestamp`` to ``sent_at``; values pass through untouched."""
        return cls(
            id=raw.get("id"),
            sender=raw.get("from"),
            to=raw.get("to"),
            subject=raw.get("subject"),
            body=raw.get("body"),
            sent_at=raw.get("timestamp"),
            read=raw.get("read", False),
            thread_id=raw.get("thread_id"),
        )

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "id": self.id,
            "from": self.sender,
            "to": self.to,
            "subject": self.subject,
            "body": self.body,
            "sent_at": self.sent_at,
            "read": self.read,
        }
        if self.thread_id is not None:
            payload["thread_id"] = self.thread_id
        return payload
