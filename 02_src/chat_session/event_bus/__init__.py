"""Message feed module."""

from .feed import FeedSubscription, IMessageFeed, MessageFeed

__all__ = ["FeedSubscription", "IMessageFeed", "MessageFeed"]
