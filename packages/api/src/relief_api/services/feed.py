# This project was developed with assistance from AI tools.
"""In-process change feed.

Stores publish after every committed write; session controllers subscribe
per entity and hold the returned ``Subscription`` handles so all of a
session's observers are torn down together on sign-out.
"""

import logging
from collections.abc import Awaitable, Callable
from typing import Any

logger = logging.getLogger(__name__)

Callback = Callable[[Any], Awaitable[None]]


class Topics:
    """Feed topic names, one channel per observed entity."""

    PROFILE_PREFIX = "profile:"
    OWNER_APPLICATIONS_PREFIX = "applications:owner:"
    PROXY_APPLICATIONS_PREFIX = "applications:submitter:"

    @classmethod
    def profile(cls, uid: str) -> str:
        return f"{cls.PROFILE_PREFIX}{uid}"

    @classmethod
    def owner_applications(cls, uid: str) -> str:
        return f"{cls.OWNER_APPLICATIONS_PREFIX}{uid}"

    @classmethod
    def proxy_applications(cls, submitter_uid: str) -> str:
        return f"{cls.PROXY_APPLICATIONS_PREFIX}{submitter_uid}"


class Subscription:
    """Handle returned by ``ChangeFeed.subscribe``."""

    def __init__(self, feed: "ChangeFeed", topic: str, callback: Callback):
        self._feed = feed
        self.topic = topic
        self.callback = callback
        self.active = True

    def unsubscribe(self) -> None:
        if self.active:
            self._feed._remove(self)
            self.active = False


class ChangeFeed:
    def __init__(self):
        self._subscribers: dict[str, list[Subscription]] = {}

    def subscribe(self, topic: str, callback: Callback) -> Subscription:
        subscription = Subscription(self, topic, callback)
        self._subscribers.setdefault(topic, []).append(subscription)
        return subscription

    def _remove(self, subscription: Subscription) -> None:
        subscribers = self._subscribers.get(subscription.topic, [])
        if subscription in subscribers:
            subscribers.remove(subscription)
        if not subscribers:
            self._subscribers.pop(subscription.topic, None)

    def subscriber_count(self, topic: str) -> int:
        return len(self._subscribers.get(topic, []))

    async def publish(self, topic: str, value: Any) -> None:
        """Deliver ``value`` to every current subscriber of ``topic``.

        A failing observer is logged and does not stop delivery to the rest;
        the write that triggered the publish has already been committed.
        """
        for subscription in list(self._subscribers.get(topic, [])):
            if not subscription.active:
                continue
            try:
                await subscription.callback(value)
            except Exception:
                logger.exception("Feed observer failed on topic %s", topic)


_feed: ChangeFeed | None = None


def get_change_feed() -> ChangeFeed:
    """Process-wide feed shared by the stores and the session registry."""
    global _feed  # noqa: PLW0603
    if _feed is None:
        _feed = ChangeFeed()
    return _feed
