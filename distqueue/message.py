"""A single message stored in a queue."""

from __future__ import annotations

import base64
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

_TIMESTAMP = re.compile(
    r"(?P<base>\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2})"
    r"(?:\.(?P<frac>\d+))?"
    r"(?P<tz>Z|[+-]\d{2}:\d{2})?"
)


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _format_time(moment: datetime) -> str:
    return moment.isoformat()


def _parse_time(text: str) -> datetime:
    match = _TIMESTAMP.fullmatch(text)
    if match is None:
        raise ValueError(f"invalid timestamp {text!r}")
    normalised = match["base"]
    if match["frac"]:
        normalised += "." + match["frac"][:6].ljust(6, "0")
    tz = match["tz"]
    if tz == "Z":
        tz = "+00:00"
    normalised += tz or "+00:00"
    return datetime.fromisoformat(normalised)


@dataclass
class Message:
    """A payload at a position in a queue."""

    id: str
    queue_id: str
    index: int
    data: bytes
    created_at: datetime = field(default_factory=_now)

    def to_dict(self) -> dict[str, Any]:
        """Return the stored JSON form of this message."""
        return {
            "ID": self.id,
            "QueueID": self.queue_id,
            "Index": self.index,
            "Data": base64.b64encode(self.data).decode("ascii"),
            "CreatedAt": _format_time(self.created_at),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Message:
        """Build a message from its stored JSON form."""
        payload = data.get("Data")
        created = data.get("CreatedAt")
        return cls(
            id=data.get("ID") or "",
            queue_id=data.get("QueueID") or "",
            index=int(data.get("Index") or 0),
            data=base64.b64decode(payload) if payload else b"",
            created_at=_parse_time(created) if created else _now(),
        )