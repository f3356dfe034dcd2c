"""
Shared data structures for the AI chat side channel.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from exchanges.schemas import utc_timestamp


@dataclass(slots=True)
class ChatReply:
    """Answer returned by one assistant provider."""

    provider: str
    message: str
    model: Optional[str] = None
    timestamp: str = field(default_factory=utc_timestamp)

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "provider": self.provider,
            "message": self.message,
            "timestamp": self.timestamp,
        }
        if self.model:
            payload["model"] = self.model
        return payload
