from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from .datetime_utils import as_utc


@dataclass(frozen=True)
class AuditStamp:
    """Who did something and when. Used for every create/update/lifecycle event."""

    actor_id: int
    at: datetime

    def to_dict(self) -> dict:
        return {"actor_id": self.actor_id, "at": self.at.isoformat()}

    @classmethod
    def from_columns(cls, actor_id, at) -> Optional["AuditStamp"]:
        """Build a stamp from a nullable (actor, timestamp) column pair."""
        if actor_id is None or at is None:
            return None
        return cls(actor_id=int(actor_id), at=as_utc(at))


def stamp_dict(stamp: Optional[AuditStamp]) -> Optional[dict]:
    return stamp.to_dict() if stamp is not None else None
