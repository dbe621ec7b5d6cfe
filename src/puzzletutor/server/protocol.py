"""JSON-lines protocol messages exchanged with a front end."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Optional

PROGRESS_UPDATED = "progressUpdated"


@dataclass
class Request:
    """Incoming request; ``id`` defaults to 0 when the client omits it."""
    id: int
    method: str
    params: dict = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict) -> Request:
        if not isinstance(data, dict):
            raise ValueError("Request must be a JSON object")
        params = data.get("params") or {}
        if not isinstance(params, dict):
            raise ValueError("params must be a JSON object")
        return cls(
            id=data.get("id", 0),
            method=data.get("method", ""),
            params=params,
        )


@dataclass
class Response:
    id: int
    result: Optional[dict] = None
    error: Optional[str] = None

    def to_json_line(self) -> str:
        d = {"id": self.id}
        if self.error is not None:
            d["error"] = self.error
        else:
            d["result"] = self.result
        return json.dumps(d) + "\n"


@dataclass
class Notification:
    """Server-initiated message (no id, no response expected)."""
    method: str
    params: dict = field(default_factory=dict)

    @classmethod
    def progress_updated(cls) -> Notification:
        return cls(PROGRESS_UPDATED)

    def to_json_line(self) -> str:
        return json.dumps({"method": self.method, "params": self.params}) + "\n"
