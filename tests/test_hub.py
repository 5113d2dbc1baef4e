"""Tests for BroadcastHub."""

import pytest

from clipshare.hub import BroadcastHub, SnapshotTooLargeError
from clipshare.models import MessageKind, SessionState

from conftest import FailingTransport, file_payload, text_payload


async def _settle(*sessions):
    for session in sessions:
        await session.drain()


class TestHubConnect:
    """Tests for BroadcastHub.connect()."""

    @pytest.mark.asyncio
    async def test_connect_sends_empty_snapshot(self, hub, make_session):
        """Test that a first client receives an empty history."""
        session, transport = make_session()

        hub.connect(session)
        await _settle(session)

        assert transport.events == [("initial-messages", [])]
        assert session.state is SessionState.SYNCED
        assert hub.session_count == 1

    @pytest.mark.asyncio
    async def test_late_joiner_receives_history_in_order(self, hub, make_session):
        """Test that a session joining after K messages gets exactly those K."""
        sender, _ = make_session()
        hub.connect(sender)
        for text in ["one", "two", "three"]:
            hub.handle_message(sender, text_payload(text))

        late, transport = make_session()
        hub.connect(late)
        await _settle(late)

        event, data = transport.events[0]
        assert event == "initial-messages"
        assert [item["text"] for item in data] == ["one", "two", "three"]
        assert len(transport.events) == 1

    @pytest.mark.asyncio
    async def test_snapshot_then_broadcasts_without_overlap(self, hub, make_session):
        """Test no gap and no duplicate across the snapshot boundary."""
        sender, _ = make_session()
        hub.connect(sender)
        hub.handle_message(sender, text_payload("before"))

        late, transport = make_session()
        hub.connect(late)
        hub.handle_message(sender, text_payload("after"))
        await _settle(late)

        assert transport.events == [
            ("initial-messages", [text_payload("before")]),
            ("message-received", text_payload("after")),
        ]

    @pytest.mark.asyncio
    async def test_oversize_snapshot_rejected(self, store, make_session):
        """Test that a snapshot too big for one frame drops the join."""
        hub = BroadcastHub(store, max_payload_bytes=200)
        sender, _ = make_session()
        hub.connect(sender)
        hub.handle_message(sender, text_payload("x" * 300))

        late, transport = make_session()
        with pytest.raises(SnapshotTooLargeError):
            hub.connect(late)

        assert hub.session_count == 1
        assert transport.frames == []


class TestHubHandleMessage:
    """Tests for BroadcastHub.handle_message()."""

    @pytest.mark.asyncio
    async def test_broadcast_reaches_every_session(self, hub, make_session):
        """Test fan-out to all sessions, the sender included."""
        pairs = [make_session() for _ in range(3)]
        for session, _ in pairs:
            hub.connect(session)

        sender = pairs[0][0]
        message = hub.handle_message(sender, text_payload("hello"))
        await _settle(*(s for s, _ in pairs))

        assert message is not None and message.text == "hello"
        for _, transport in pairs:
            assert transport.events[-1] == ("message-received", text_payload("hello"))
            assert len(transport.events) == 2

    @pytest.mark.asyncio
    async def test_message_is_appended_to_store(self, hub, store, make_session):
        session, _ = make_session()
        hub.connect(session)

        hub.handle_message(session, file_payload())

        assert len(store) == 1
        assert store.snapshot()[0].kind is MessageKind.FILE
        assert hub.history_length == 1

    @pytest.mark.asyncio
    async def test_message_relayed_verbatim(self, hub, make_session):
        """Test that extra keys and uncoerced values reach every client unchanged."""
        sender, sender_transport = make_session()
        hub.connect(sender)
        text = {**text_payload("hello"), "id": "abc"}
        upload = file_payload()
        upload["file"]["size"] = "1024"

        hub.handle_message(sender, text)
        hub.handle_message(sender, upload)
        late, late_transport = make_session()
        hub.connect(late)
        await _settle(sender, late)

        assert sender_transport.events[1:] == [
            ("message-received", text),
            ("message-received", upload),
        ]
        assert late_transport.events == [("initial-messages", [text, upload])]

    @pytest.mark.asyncio
    async def test_stored_message_independent_of_caller_dict(self, hub, store, make_session):
        session, _ = make_session()
        hub.connect(session)
        payload = text_payload("hello")

        hub.handle_message(session, payload)
        payload["text"] = "changed"

        assert store.snapshot()[0].to_wire()["text"] == "hello"

    @pytest.mark.asyncio
    async def test_all_sessions_agree_on_order(self, hub, make_session):
        """Test a single total order for interleaved senders."""
        pairs = [make_session() for _ in range(3)]
        for session, _ in pairs:
            hub.connect(session)

        for i in range(9):
            sender = pairs[i % 3][0]
            hub.handle_message(sender, text_payload(f"m{i}"))
        await _settle(*(s for s, _ in pairs))

        orders = [
            [data["text"] for event, data in t.events if event == "message-received"]
            for _, t in pairs
        ]
        assert orders[0] == [f"m{i}" for i in range(9)]
        assert orders[0] == orders[1] == orders[2]

    @pytest.mark.asyncio
    async def test_malformed_message_dropped(self, hub, store, make_session):
        """Test that invalid payloads are neither stored nor broadcast."""
        session, transport = make_session()
        hub.connect(session)

        assert hub.handle_message(session, text_payload("   ")) is None
        assert hub.handle_message(session, {"type": "file", "timestamp": "x"}) is None
        assert hub.handle_message(session, "garbage") is None
        await _settle(session)

        assert len(store) == 0
        assert transport.events == [("initial-messages", [])]

    @pytest.mark.asyncio
    async def test_slow_session_evicted(self, hub, make_session):
        """Test that a saturated session is closed, not silently skipped."""
        fast, fast_transport = make_session()
        slow, slow_transport = make_session(max_pending=1)
        hub.connect(fast)
        hub.connect(slow)

        # slow still holds its unwritten snapshot, so the broadcast won't fit
        hub.handle_message(fast, text_payload("hello"))
        await _settle(fast)
        await slow.wait_closed()

        assert hub.session_count == 1
        assert slow.state is SessionState.CLOSED
        assert slow_transport.close_codes == [1008]
        assert fast_transport.events[-1] == ("message-received", text_payload("hello"))

    @pytest.mark.asyncio
    async def test_failed_session_dropped_on_next_broadcast(self, hub, make_session):
        broken, _ = make_session(FailingTransport())
        healthy, _ = make_session()
        hub.connect(broken)
        hub.connect(healthy)
        await broken.wait_closed()

        hub.handle_message(healthy, text_payload("hello"))

        assert hub.session_count == 1


class TestHubDisconnect:
    """Tests for BroadcastHub.disconnect() and close_all()."""

    @pytest.mark.asyncio
    async def test_disconnected_session_gets_no_broadcasts(self, hub, make_session):
        staying, _ = make_session()
        leaving, leaving_transport = make_session()
        hub.connect(staying)
        hub.connect(leaving)
        await _settle(leaving)

        hub.disconnect(leaving)
        hub.handle_message(staying, text_payload("after"))
        await leaving.wait_closed()

        assert hub.session_count == 1
        assert leaving_transport.events == [("initial-messages", [])]

    @pytest.mark.asyncio
    async def test_disconnect_is_idempotent(self, hub, make_session):
        session, _ = make_session()
        hub.connect(session)

        hub.disconnect(session)
        hub.disconnect(session)

        assert hub.session_count == 0

    @pytest.mark.asyncio
    async def test_reconnect_snapshot_matches_history(self, hub, store, make_session):
        """Test that a reconnecting client sees everything sent while away."""
        other, _ = make_session()
        client, _ = make_session()
        hub.connect(other)
        hub.connect(client)
        hub.handle_message(other, text_payload("a"))

        hub.disconnect(client)
        hub.handle_message(other, text_payload("b"))
        hub.handle_message(other, file_payload())

        again, transport = make_session()
        hub.connect(again)
        await _settle(again)

        event, data = transport.events[0]
        assert event == "initial-messages"
        assert data == [m.to_wire() for m in store.snapshot()]
        assert len(data) == 3

    @pytest.mark.asyncio
    async def test_close_all(self, hub, make_session):
        pairs = [make_session() for _ in range(2)]
        for session, _ in pairs:
            hub.connect(session)

        hub.close_all()
        for session, transport in pairs:
            await session.wait_closed()
            assert transport.close_codes == [1001]
        assert hub.session_count == 0
