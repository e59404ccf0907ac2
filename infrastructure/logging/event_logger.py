# infrastructure/logging/event_logger.py
import logging
from typing import Callable

from reef.enums.events import ChannelEvent, SchedulerEvent
from reef.utils.event_bus import EventBus

logger = logging.getLogger("reef.activity")


class EventLogger:
    """Listens for channel and scheduler events and writes a readable activity log."""

    def __init__(self, event_bus: EventBus | None = None):
        self.event_bus = event_bus if event_bus is not None else EventBus()
        self._unsubscribers: list[Callable[[], None]] = [
            self.event_bus.subscribe(ChannelEvent.VALUE_COMMITTED, self.log_value_committed),
            self.event_bus.subscribe(ChannelEvent.TICK_FAILED, self.log_tick_failed),
            self.event_bus.subscribe(ChannelEvent.TICK_SKIPPED, self.log_tick_skipped),
            self.event_bus.subscribe(ChannelEvent.CHANNEL_REJECTED, self.log_channel_rejected),
            self.event_bus.subscribe(SchedulerEvent.STARTED, self.log_scheduler_state),
            self.event_bus.subscribe(SchedulerEvent.STOPPED, self.log_scheduler_state),
        ]

    def close(self) -> None:
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers.clear()

    def log_value_committed(self, data):
        channel = data.get("channel")
        text = (data.get("value") or {}).get("text")
        previous = (data.get("previous") or {}).get("text")
        if not data.get("changed", True):
            logger.debug("%s unchanged at %s", channel, text)
        elif data.get("direction") == "output":
            logger.info("🔁 %s → %s (was %s)", channel, text, previous)
        else:
            logger.info("🌡️ %s = %s", channel, text)

    def log_tick_failed(self, data):
        channel = data.get("channel")
        kind = data.get("kind")
        error = data.get("error") or {}
        message = error.get("message", error)
        if kind == "undefined":
            logger.debug("⏳ %s waiting: %s", channel, message)
        elif data.get("committed"):
            logger.warning("⚠️ %s committed but device write failed: %s", channel, message)
        else:
            logger.warning(
                "⚠️ %s tick failed (%s, %s in a row): %s",
                channel,
                kind,
                data.get("consecutive_failures"),
                message,
            )

    def log_tick_skipped(self, data):
        logger.warning("⏭️ %s skipped: %s (%s total)", data.get("channel"), data.get("reason"), data.get("skipped_total"))

    def log_channel_rejected(self, data):
        logger.error("🚫 Channel %s rejected: %s", data.get("channel"), data.get("error"))

    def log_scheduler_state(self, data):
        state = "started" if data.get("running") else "stopped"
        logger.info("🚀 Scheduler %s (%s channels)", state, data.get("channels"))
