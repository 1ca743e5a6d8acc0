"""AnnouncementFeed -- default AnnouncementSink keeping a bounded news history.

Announcements are logged and fanned out to optional subscribers.
Subscriber failures are logged and never reach the engine that announced.
"""

from __future__ import annotations

import logging
from collections import deque
from typing import Callable

from core.models.events import Announcement

logger = logging.getLogger(__name__)

Subscriber = Callable[[Announcement], None]


class AnnouncementFeed:
    """In-process announcement feed.

    Implements the AnnouncementSink protocol.

    Usage:
        feed = AnnouncementFeed(max_items=200)
        feed.subscribe(print)
        feed.announce(Announcement(title="Market Event", description="..."))
    """

    def __init__(self, max_items: int = 500) -> None:
        self._items: deque[Announcement] = deque(maxlen=max_items)
        self._subscribers: list[Subscriber] = []

    @property
    def name(self) -> str:
        return "announcement_feed"

    def announce(self, announcement: Announcement) -> None:
        """Record an announcement, then dispatch it to subscribers."""
        self._items.append(announcement)
        logger.info("%s: %s", announcement.title, announcement.description)

        for callback in list(self._subscribers):
            try:
                callback(announcement)
            except Exception:
                logger.exception("Error in announcement subscriber %s", callback)

    def subscribe(self, callback: Subscriber) -> None:
        self._subscribers.append(callback)

    def unsubscribe(self, callback: Subscriber) -> None:
        if callback in self._subscribers:
            self._subscribers.remove(callback)

    def recent(self, limit: int | None = None) -> list[Announcement]:
        """Most recent announcements, oldest first."""
        items = list(self._items)
        if limit is not None:
            return items[-limit:] if limit > 0 else []
        return items

    def __len__(self) -> int:
        return len(self._items)
