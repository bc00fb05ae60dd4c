from dataclasses import dataclass
from unittest import mock

import pytest

from shared.application.message_bus import MessageBus
from shared.domain.base import DomainEvent


@dataclass
class RoomCleaned(DomainEvent):
    room_number: str = ""


@dataclass
class CleanRoom:
    room_number: str


def test_command_has_exactly_one_handler():
    bus = MessageBus()
    bus.register_command_handler(CleanRoom, lambda command: command.room_number)

    assert bus.handle_command(CleanRoom("101")) == "101"
    with pytest.raises(ValueError):
        bus.register_command_handler(CleanRoom, lambda command: None)


def test_unregistered_command_is_rejected():
    with pytest.raises(ValueError):
        MessageBus().handle_command(CleanRoom("101"))


def test_handler_errors_propagate():
    bus = MessageBus()
    bus.register_command_handler(CleanRoom, mock.Mock(side_effect=LookupError("no room")))

    with pytest.raises(LookupError):
        bus.handle_command(CleanRoom("999"))


def test_event_handlers_are_isolated_from_each_other():
    bus = MessageBus()
    failing = mock.Mock(side_effect=RuntimeError("boom"), __name__="failing")
    audit = mock.Mock(__name__="audit")
    bus.register_event_handler(RoomCleaned, failing)
    bus.register_event_handler(RoomCleaned, audit)
    bus.register_event_handler(RoomCleaned, audit)

    event = RoomCleaned(aggregate_id=1, room_number="101")
    bus.publish_events([event])

    audit.assert_called_once_with(event)


def test_event_to_dict_includes_own_fields():
    data = RoomCleaned(aggregate_id=7, room_number="101").to_dict()

    assert data["event_type"] == "RoomCleaned"
    assert data["aggregate_id"] == 7
    assert data["room_number"] == "101"
