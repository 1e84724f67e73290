"""Tests for the room subscription index."""

from roomchat.realtime.room_subscription_manager import RoomSubscriptionManager


class TestRoomSubscriptionManager:
    """Test cases for RoomSubscriptionManager."""

    def setup_method(self):
        self.manager = RoomSubscriptionManager()

    def test_subscribe_adds_connection(self):
        """Test subscribing adds the connection to the room's set."""
        assert self.manager.subscribe_to_room("c1", "general") is None
        assert self.manager.get_room_subscribers("general") == {"c1"}
        assert self.manager.get_connection_room("c1") == "general"

    def test_subscribe_to_new_room_leaves_old_one(self):
        """Test a connection is never subscribed to two rooms at once."""
        self.manager.subscribe_to_room("c1", "general")
        previous = self.manager.subscribe_to_room("c1", "tech")

        assert previous == "general"
        assert self.manager.get_room_subscribers("general") == set()
        assert self.manager.get_room_subscribers("tech") == {"c1"}
        assert "general" not in self.manager.room_subscriptions

    def test_resubscribe_same_room_is_noop(self):
        """Test subscribing twice to the same room reports no previous room."""
        self.manager.subscribe_to_room("c1", "general")
        assert self.manager.subscribe_to_room("c1", "general") is None
        assert self.manager.get_room_subscribers("general") == {"c1"}

    def test_unsubscribe(self):
        """Test unsubscribing removes the connection and prunes empty rooms."""
        self.manager.subscribe_to_room("c1", "general")
        self.manager.subscribe_to_room("c2", "general")

        assert self.manager.unsubscribe_from_room("c1", "general") is True
        assert self.manager.get_room_subscribers("general") == {"c2"}

        assert self.manager.unsubscribe_from_room("c2", "general") is True
        assert self.manager.room_subscriptions == {}

    def test_unsubscribe_wrong_room(self):
        """Test unsubscribing from a room the connection is not in does nothing."""
        self.manager.subscribe_to_room("c1", "general")
        assert self.manager.unsubscribe_from_room("c1", "tech") is False
        assert self.manager.get_connection_room("c1") == "general"

    def test_unsubscribe_connection(self):
        """Test dropping whatever subscription a connection holds."""
        self.manager.subscribe_to_room("c1", "random")
        assert self.manager.unsubscribe_connection("c1") == "random"
        assert self.manager.unsubscribe_connection("c1") is None

    def test_get_room_subscribers_returns_copy(self):
        """Test callers cannot mutate the index through the returned set."""
        self.manager.subscribe_to_room("c1", "general")
        subscribers = self.manager.get_room_subscribers("general")
        subscribers.add("intruder")
        assert self.manager.get_room_subscribers("general") == {"c1"}

    def test_unknown_room_has_no_subscribers(self):
        assert self.manager.get_room_subscribers("nowhere") == set()

    def test_get_stats(self):
        self.manager.subscribe_to_room("c1", "general")
        self.manager.subscribe_to_room("c2", "tech")
        assert self.manager.get_stats() == {"rooms_with_subscribers": 2, "subscribed_connections": 2}
