import pytest

from coordinator import SignalingCoordinator
from registry import RoomRegistry


class RecordingHub:
    """Stands in for ConnectionHub; remembers every delivered message."""

    def __init__(self):
        self.sent = []
        self.closed = set()

    def deliver(self, connection_id, message):
        if connection_id in self.closed:
            return False
        self.sent.append((connection_id, message))
        return True

    def to(self, connection_id):
        return [message for dest, message in self.sent if dest == connection_id]

    def clear(self):
        self.sent.clear()


@pytest.fixture
def registry():
    return RoomRegistry()


@pytest.fixture
def hub():
    return RecordingHub()


@pytest.fixture
def coordinator(registry, hub):
    return SignalingCoordinator(registry, hub)


@pytest.fixture
def connect(coordinator, hub):
    def _connect(*connection_ids):
        for connection_id in connection_ids:
            coordinator.connect(connection_id)
        hub.clear()
    return _connect
