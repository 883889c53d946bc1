"""
Analytics event sinks.

The frontend reports usage events to /event/{name}; the server hands
them to a sink. Delivery problems are logged and never fail a request.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

import aiohttp

logger = logging.getLogger(__name__)


@dataclass
class AnalyticsEvent:
    """A single usage event."""

    name: str
    duration_ms: int = 0
    meta: dict[str, str] = field(default_factory=dict)
    user_id: str | None = None
    path: str | None = None
    user_agent: str | None = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        data: dict[str, Any] = {
            "event_name": self.name,
            "timestamp": self.timestamp.isoformat(),
            "event_meta": self.meta,
        }
        if self.duration_ms:
            data["event_duration"] = self.duration_ms
        if self.user_id:
            data["user_id"] = self.user_id
        if self.path:
            data["url"] = self.path
        if self.user_agent:
            data["user_agent"] = self.user_agent
        return data


class AnalyticsSink(ABC):
    """Destination for analytics events."""

    @abstractmethod
    async def emit(self, event: AnalyticsEvent) -> None:
        """Record an event. Must not raise on delivery failure."""
        ...

    async def close(self) -> None:
        """Release resources."""
        pass


class LoggingAnalyticsSink(AnalyticsSink):
    """Writes events to the log (development, or no analytics configured)."""

    async def emit(self, event: AnalyticsEvent) -> None:
        logger.info(f"analytics event: {event.name}", extra={"event": event.to_dict()})


class HttpAnalyticsSink(AnalyticsSink):
    """POSTs events as JSON to an HTTP endpoint."""

    def __init__(
        self,
        url: str,
        token: str | None = None,
        timeout_seconds: float = 5.0,
    ) -> None:
        self.url = url
        self.token = token
        self.timeout = aiohttp.ClientTimeout(total=timeout_seconds)
        self._session: aiohttp.ClientSession | None = None

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            headers = {"Content-Type": "application/json"}
            if self.token:
                headers["Authorization"] = f"Bearer {self.token}"
            self._session = aiohttp.ClientSession(headers=headers, timeout=self.timeout)
        return self._session

    async def emit(self, event: AnalyticsEvent) -> None:
        try:
            async with self._get_session().post(self.url, json=event.to_dict()) as response:
                if response.status >= 400:
                    body = await response.text()
                    logger.error(
                        f"Analytics endpoint rejected event {event.name}: "
                        f"{response.status} {body[:200]}"
                    )
        except (aiohttp.ClientError, TimeoutError) as e:
            logger.error(f"Failed to send analytics event {event.name}: {e}")

    async def close(self) -> None:
        if self._session is not None:
            await self._session.close()
            self._session = None


def parse_duration_ms(value: str | None) -> int:
    """Parse the `dur` field; malformed values count as 0."""
    try:
        return max(int(value or 0), 0)
    except ValueError:
        return 0
