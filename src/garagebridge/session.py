"""Login session held by :class:`~garagebridge.client.GarageClient`."""

from __future__ import annotations

import time

from pydantic import BaseModel, ConfigDict, Field


class Session(BaseModel):
    """Security token returned by a successful login.

    The API never says when a token expires; it answers ``-3333`` once it
    has.  ``ttl`` lets the client log in again ahead of that, and ``None``
    keeps the token until the API rejects it.
    """

    model_config = ConfigDict(frozen=True, extra="forbid", str_strip_whitespace=True)

    security_token: str = Field(min_length=1)
    created_at: float = Field(default_factory=time.monotonic)
    ttl: float | None = None

    @property
    def age(self) -> float:
        """Seconds since login."""
        return time.monotonic() - self.created_at

    @property
    def remaining(self) -> float | None:
        """Seconds left before a proactive re-login, ``None`` without a TTL."""
        if self.ttl is None:
            return None
        return max(0.0, self.ttl - self.age)

    @property
    def is_expired(self) -> bool:
        return self.remaining == 0.0
