"""Tests for MessageFeed."""

import asyncio

import pytest


class TestMessageFeedSubscribe:
    """Tests for MessageFeed subscription."""

    @pytest.mark.asyncio
    async def test_subscribe_registers_subscription(self, feed):
        """Test subscribing adds a subscription."""
        subscription = feed.subscribe("c1")

        assert feed.subscriber_count == 1
        assert subscription.conversation_id == "c1"

    @pytest.mark.asyncio
    async def test_close_unsubscribes(self, feed):
        """Test closing removes the subscription from the feed."""
        subscription = feed.subscribe()
        subscription.close()

        assert feed.subscriber_count == 0
        assert subscription.closed

    @pytest.mark.asyncio
    async def test_context_manager_closes(self, feed):
        async with feed.subscribe() as subscription:
            assert feed.subscriber_count == 1

        assert subscription.closed
        assert feed.subscriber_count == 0


class TestMessageFeedPublish:
    """Tests for MessageFeed publishing."""

    @pytest.mark.asyncio
    async def test_close_drops_pending(self, feed, make_message):
        """Test that closing discards undelivered messages."""
        subscription = feed.subscribe("c1")

        for text in ["H", "He", "Hello"]:
            await feed.publish(make_message(text, conversation_id="c1"))
        subscription.close()

        received = [m.content async for m in subscription]
        assert received == []

    @pytest.mark.asyncio
    async def test_iteration_receives_messages(self, feed, make_message):
        """Test that an open subscription yields published messages in order."""
        subscription = feed.subscribe("c1")

        for text in ["H", "He", "Hello"]:
            await feed.publish(make_message(text, conversation_id="c1"))

        received = []
        async for message in subscription:
            received.append(message.content)
            subscription.task_done()
            if len(received) == 3:
                break

        assert received == ["H", "He", "Hello"]

    @pytest.mark.asyncio
    async def test_broadcast_to_all_subscribers(self, feed, make_message):
        """Test that every subscription receives the message."""
        first = feed.subscribe()
        second = feed.subscribe()

        await feed.publish(make_message("Hi"))

        assert (await first.__anext__()).content == "Hi"
        assert (await second.__anext__()).content == "Hi"

    @pytest.mark.asyncio
    async def test_scope_filters_other_conversations(self, feed, make_message):
        """Test that a scoped subscription ignores other conversations."""
        subscription = feed.subscribe("c1")

        await feed.publish(make_message("other", conversation_id="c2"))
        await feed.publish(make_message("mine", conversation_id="c1"))
        await feed.publish(make_message("unscoped"))

        assert (await subscription.__anext__()).content == "mine"
        assert (await subscription.__anext__()).content == "unscoped"

    @pytest.mark.asyncio
    async def test_unscoped_subscription_accepts_everything(self, feed, make_message):
        """Test that an anonymous subscription accepts any conversation."""
        subscription = feed.subscribe()

        await feed.publish(make_message("new", conversation_id="c9"))

        assert (await subscription.__anext__()).conversation_id == "c9"

    @pytest.mark.asyncio
    async def test_rebind_changes_scope(self, feed, make_message):
        subscription = feed.subscribe()
        subscription.rebind("c1")

        await feed.publish(make_message("other", conversation_id="c2"))

        assert subscription.accepts(make_message("x", conversation_id="c1"))
        assert not subscription.accepts(make_message("x", conversation_id="c2"))

    @pytest.mark.asyncio
    async def test_closed_subscription_ends_iteration(self, feed):
        """Test that closing ends a pending iteration."""
        subscription = feed.subscribe()

        async def consume():
            return [m async for m in subscription]

        task = asyncio.create_task(consume())
        await asyncio.sleep(0)
        subscription.close()

        assert await asyncio.wait_for(task, timeout=1) == []

    @pytest.mark.asyncio
    async def test_join_waits_for_task_done(self, feed, make_message):
        """Test that join returns once every message is marked done."""
        subscription = feed.subscribe()
        await feed.publish(make_message("a"))

        joiner = asyncio.create_task(subscription.join())
        await asyncio.sleep(0)
        assert not joiner.done()

        await subscription.__anext__()
        subscription.task_done()
        await asyncio.wait_for(joiner, timeout=1)
