import logging
from unittest.mock import MagicMock

import pytest

from infrastructure.logging.event_logger import EventLogger
from reef.enums.events import ChannelEvent, SchedulerEvent


@pytest.fixture()
def activity(mock_event_bus, caplog):
    caplog.set_level(logging.DEBUG, logger="reef.activity")
    mock_event_bus.subscribe.side_effect = lambda topic, callback: MagicMock(name=f"unsubscribe_{topic.value}")
    return EventLogger(mock_event_bus)


def test_subscribes_to_channel_and_scheduler_topics(activity, mock_event_bus):
    topics = {call.args[0] for call in mock_event_bus.subscribe.call_args_list}

    assert topics == {
        ChannelEvent.VALUE_COMMITTED,
        ChannelEvent.TICK_FAILED,
        ChannelEvent.TICK_SKIPPED,
        ChannelEvent.CHANNEL_REJECTED,
        SchedulerEvent.STARTED,
        SchedulerEvent.STOPPED,
    }


def test_close_unsubscribes(activity):
    unsubscribers = list(activity._unsubscribers)

    activity.close()

    for unsubscribe in unsubscribers:
        unsubscribe.assert_called_once_with()


def test_output_change_logged_at_info(activity, caplog):
    activity.log_value_committed(
        {
            "channel": "Heater_Outlet",
            "direction": "output",
            "value": {"text": "0"},
            "previous": {"text": "1"},
            "changed": True,
        }
    )

    record = caplog.records[-1]
    assert record.levelno == logging.INFO
    assert "Heater_Outlet" in record.getMessage()
    assert "was 1" in record.getMessage()


def test_unchanged_value_logged_at_debug(activity, caplog):
    activity.log_value_committed({"channel": "Tank_Temperature", "value": {"text": "78"}, "changed": False})

    assert caplog.records[-1].levelno == logging.DEBUG


def test_undefined_failures_are_quiet(activity, caplog):
    activity.log_tick_failed({"channel": "Heater_Outlet", "kind": "undefined", "error": {"message": "Undefined"}})
    assert caplog.records[-1].levelno == logging.DEBUG

    activity.log_tick_failed(
        {
            "channel": "Tank_Temperature",
            "kind": "device_error",
            "error": {"message": "bus stuck"},
            "consecutive_failures": 2,
        }
    )
    assert caplog.records[-1].levelno == logging.WARNING
    assert "bus stuck" in caplog.records[-1].getMessage()


def test_rejected_channel_logged_as_error(activity, caplog):
    activity.log_channel_rejected({"channel": "Broken", "error": "unknown operator 'bogus'"})

    assert caplog.records[-1].levelno == logging.ERROR


def test_scheduler_state(activity, caplog):
    activity.log_scheduler_state({"running": True, "channels": 4})

    assert "started" in caplog.records[-1].getMessage()
