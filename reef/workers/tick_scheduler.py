"""
Tick scheduler for reef channels.

Wakes every channel on its period, moves values between devices, the Risp
evaluator and ReefState, and reports every outcome.

Design Principles:
- Single scheduler loop thread (Pi-friendly)
- Bounded worker pool for channel runs, separate bounded pool for device I/O
- Fixed-rate scheduling aligned to multiples of each period; missed slots
  are skipped, never piled up
- A channel never runs concurrently with itself
- Per-channel failures are contained: an erroring channel holds its last
  value and the rest keep running

Heap entries are tuples ``(run_at_ts, seq, channel_name)``; ``seq`` keeps
ordering stable when timestamps match (declaration order). Stale entries are
skipped rather than removed in place.
"""

from __future__ import annotations

import heapq
import logging
import math
import threading
import time
from collections import deque
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable

from reef.domain.channels.channel_entity import Channel
from reef.domain.channels.registry import ChannelRegistry
from reef.domain.exceptions import ConfigurationError, DeviceError, DeviceTimeoutError
from reef.enums.channels import ChannelState, TickStatus
from reef.enums.events import ChannelEvent, FailureKind, SchedulerEvent
from reef.risp.errors import RispError, UndefinedSymbolError
from reef.risp.evaluator import evaluate
from reef.risp.values import Number, Value, coerce_value, value_to_dict
from reef.schemas.events import (
    ChannelFailurePayload,
    ChannelRejectedPayload,
    ChannelSkippedPayload,
    ChannelValuePayload,
    SchedulerLifecyclePayload,
)
from reef.services.reef_state import ReefState
from reef.utils.event_bus import EventBus
from reef.utils.time import iso_from_timestamp, iso_now

logger = logging.getLogger(__name__)

DEFAULT_PRIOR = Number(0)


def _utc(ts: float) -> datetime:
    return datetime.fromtimestamp(ts, tz=timezone.utc)


@dataclass
class TickResult:
    """Result of one channel run."""

    channel: str
    status: TickStatus
    started_at: datetime
    completed_at: datetime
    value: Value | None = None
    committed: bool = False
    error: str | None = None
    error_code: str | None = None
    failure_kind: FailureKind | None = None
    scheduled_for: datetime | None = None

    @property
    def success(self) -> bool:
        return self.status == TickStatus.COMMITTED

    @property
    def duration_seconds(self) -> float:
        return (self.completed_at - self.started_at).total_seconds()

    def to_dict(self) -> dict[str, Any]:
        return {
            "channel": self.channel,
            "status": self.status.value,
            "started_at": self.started_at.isoformat(),
            "completed_at": self.completed_at.isoformat(),
            "duration_seconds": round(self.duration_seconds, 4),
            "value": value_to_dict(self.value) if self.value is not None else None,
            "committed": self.committed,
            "error": self.error,
            "error_code": self.error_code,
            "failure_kind": self.failure_kind.value if self.failure_kind else None,
            "scheduled_for": self.scheduled_for.isoformat() if self.scheduled_for else None,
        }


@dataclass
class ChannelRuntime:
    """Mutable scheduling and health state of one channel."""

    channel: Channel
    state: ChannelState = ChannelState.IDLE
    next_run_ts: float | None = None
    held_value: Value | None = None

    last_run: datetime | None = None
    last_success: datetime | None = None
    last_status: TickStatus | None = None
    run_count: int = 0
    success_count: int = 0
    failure_count: int = 0
    consecutive_failures: int = 0
    skipped_count: int = 0
    last_error: str | None = None

    # Device call that outlived its timeout; the driver is not reused until it returns
    pending_device_call: Future | None = field(default=None, repr=False)

    @property
    def name(self) -> str:
        return self.channel.name

    def to_dict(self) -> dict[str, Any]:
        return {
            **self.channel.to_dict(),
            "state": self.state.value,
            "next_run": iso_from_timestamp(self.next_run_ts) if self.next_run_ts is not None else None,
            "last_run": self.last_run.isoformat() if self.last_run else None,
            "last_success": self.last_success.isoformat() if self.last_success else None,
            "last_status": self.last_status.value if self.last_status else None,
            "run_count": self.run_count,
            "success_count": self.success_count,
            "failure_count": self.failure_count,
            "consecutive_failures": self.consecutive_failures,
            "skipped_count": self.skipped_count,
            "last_error": self.last_error,
            "device_call_stuck": self.pending_device_call is not None and not self.pending_device_call.done(),
        }


class _TickFailure(Exception):
    """Internal carrier for a classified failure inside one run."""

    def __init__(
        self,
        kind: FailureKind,
        error: Exception,
        committed_value: Value | None = None,
        previous: Value | None = None,
    ):
        super().__init__(str(error))
        self.kind = kind
        self.error = error
        self.committed_value = committed_value
        self.previous = previous


class TickScheduler:
    """
    Runs every channel of a registry on its period.

    Args:
        registry: Channels to schedule
        state: Shared store; a fresh one is created if omitted
        event_bus: Where tick outcomes are published
        max_workers: Concurrent channel runs
        device_timeout: Seconds a device read/write may take
        check_interval_seconds: Scheduler loop quantum
        max_history: Tick results kept for ``get_history()``
        clock: Epoch-seconds clock; drives both scheduling and ``now``
    """

    def __init__(
        self,
        registry: ChannelRegistry,
        state: ReefState | None = None,
        *,
        event_bus: EventBus | None = None,
        max_workers: int = 4,
        device_timeout: float = 5.0,
        check_interval_seconds: float = 0.25,
        max_history: int = 100,
        clock: Callable[[], float] = time.time,
    ):
        self.registry = registry
        self.state = state if state is not None else ReefState()
        self.event_bus = event_bus if event_bus is not None else EventBus()

        self._max_workers = int(max_workers)
        self._device_timeout = float(device_timeout)
        self._check_interval = float(check_interval_seconds)
        self._clock = clock

        self._runtimes: dict[str, ChannelRuntime] = {
            channel.name: ChannelRuntime(channel=channel, held_value=channel.value) for channel in registry
        }
        physical = sum(1 for channel in registry if channel.is_physical)
        self._io_workers = max(self._max_workers, physical, 1)

        # Entries: (run_at_ts, seq, channel_name)
        self._heap: list[tuple[float, int, str]] = []
        self._heap_seq = 0
        self._seeded = False

        self._history: deque[TickResult] = deque(maxlen=int(max_history))

        self._running = False
        self._thread: threading.Thread | None = None
        self._stop_event = threading.Event()
        self._lock = threading.RLock()

        self._executor: ThreadPoolExecutor | None = None
        self._io_executor: ThreadPoolExecutor | None = None

        logger.info(
            "TickScheduler initialized (%d channels, workers=%d, device_timeout=%.1fs)",
            len(self._runtimes),
            self._max_workers,
            self._device_timeout,
        )

    # ==================== Executors ====================

    def _ensure_executors(self) -> None:
        """Ensure executors exist (supports stop() -> start() restarts)."""
        with self._lock:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(
                    max_workers=self._max_workers,
                    thread_name_prefix="ReefChannel",
                )
            if self._io_executor is None:
                self._io_executor = ThreadPoolExecutor(
                    max_workers=self._io_workers,
                    thread_name_prefix="ReefDeviceIO",
                )

    # ==================== Heap Helpers ====================

    @staticmethod
    def first_slot(period: int, now_ts: float) -> float:
        """Next whole multiple of ``period`` seconds (from the epoch) after ``now_ts``."""
        return float((math.floor(now_ts / period) + 1) * period)

    def _push_heap(self, runtime: ChannelRuntime) -> None:
        if runtime.next_run_ts is None:
            return
        self._heap_seq += 1
        heapq.heappush(self._heap, (runtime.next_run_ts, self._heap_seq, runtime.name))

    def _seed(self, now_ts: float) -> None:
        with self._lock:
            self._heap.clear()
            self._heap_seq = 0
            for runtime in self._runtimes.values():
                runtime.next_run_ts = self.first_slot(runtime.channel.period_seconds, now_ts)
                self._push_heap(runtime)
            self._seeded = True

    def _collect_due(self, now_ts: float) -> list[tuple[str, float]]:
        """
        Pop every slot due at ``now_ts``, reschedule it and mark the channel DUE.

        A slot that finds its channel still DUE or RUNNING is skipped.
        """
        if not self._seeded:
            self._seed(now_ts)

        due: list[tuple[str, float]] = []
        skipped: list[ChannelRuntime] = []
        with self._lock:
            while self._heap:
                run_at_ts, _seq, name = self._heap[0]
                if run_at_ts > now_ts:
                    break
                heapq.heappop(self._heap)

                runtime = self._runtimes.get(name)
                if runtime is None or runtime.next_run_ts != run_at_ts:
                    continue  # stale heap entry

                # Fixed-rate: advance from the scheduled slot; skip ahead if far behind
                period = runtime.channel.period_seconds
                next_run = run_at_ts + period
                if next_run <= now_ts:
                    missed = int((now_ts - next_run) // period) + 1
                    logger.debug("Channel %s skipping %d missed slot(s)", name, missed)
                    next_run += missed * period
                runtime.next_run_ts = next_run
                self._push_heap(runtime)

                if runtime.state in (ChannelState.DUE, ChannelState.RUNNING):
                    runtime.skipped_count += 1
                    skipped.append(runtime)
                    continue

                runtime.state = ChannelState.DUE
                due.append((name, run_at_ts))

        for runtime in skipped:
            logger.warning(
                "Channel %s still running at its next slot; skipped (%d total)",
                runtime.name,
                runtime.skipped_count,
            )
            self._publish(
                ChannelEvent.TICK_SKIPPED,
                ChannelSkippedPayload(
                    channel=runtime.name,
                    reason="still running",
                    skipped_total=runtime.skipped_count,
                    timestamp=iso_now(),
                ),
            )
        return due

    # ==================== Scheduler Control ====================

    def start(self) -> None:
        """Start the scheduler background thread."""
        if self._running:
            logger.warning("Scheduler already running")
            return

        self._ensure_executors()
        self._seed(self._clock())

        self._running = True
        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._run_loop,
            daemon=True,
            name="TickScheduler",
        )
        self._thread.start()
        self._publish(
            SchedulerEvent.STARTED,
            SchedulerLifecyclePayload(channels=len(self._runtimes), running=True, timestamp=iso_now()),
        )
        for name, error in self.registry.rejected.items():
            self._publish(
                ChannelEvent.CHANNEL_REJECTED,
                ChannelRejectedPayload(channel=name, error=error, timestamp=iso_now()),
            )
        logger.info("TickScheduler started")

    def stop(self, wait: bool = True, timeout: float = 5.0) -> None:
        """
        Stop the scheduler.

        Args:
            wait: Wait for the loop thread and in-flight channel runs
            timeout: Maximum wait for the loop thread in seconds
        """
        was_running = self._running
        self._running = False
        self._stop_event.set()

        if was_running and wait and self._thread:
            self._thread.join(timeout=timeout)

        with self._lock:
            executor, self._executor = self._executor, None
            io_executor, self._io_executor = self._io_executor, None
        if executor:
            executor.shutdown(wait=wait)
        if io_executor:
            # Never block shutdown on a wedged device call
            io_executor.shutdown(wait=False, cancel_futures=True)

        if not was_running:
            return
        self._publish(
            SchedulerEvent.STOPPED,
            SchedulerLifecyclePayload(channels=len(self._runtimes), running=False, timestamp=iso_now()),
        )
        logger.info("TickScheduler stopped")

    def shutdown(self, wait: bool = True, timeout: float = 5.0) -> None:
        """Alias for stop()."""
        self.stop(wait=wait, timeout=timeout)

    def is_running(self) -> bool:
        return self._running

    def _run_loop(self) -> None:
        logger.debug("Scheduler loop started")
        while self._running:
            try:
                self._dispatch_due(self._clock())
            except Exception as e:
                logger.error("Error in scheduler loop: %s", e, exc_info=True)
            self._stop_event.wait(self._check_interval)
        logger.debug("Scheduler loop ended")

    def _dispatch_due(self, now_ts: float) -> None:
        for name, scheduled_for in self._collect_due(now_ts):
            executor = self._executor
            if executor is None:
                logger.warning("Executor unavailable; skipping channel %s", name)
                self._reset_state(name)
                continue
            try:
                executor.submit(self._execute, name, scheduled_for)
            except RuntimeError as e:
                logger.error("Failed to submit channel %s: %s", name, e)
                self._reset_state(name)

    def _reset_state(self, name: str) -> None:
        with self._lock:
            self._runtimes[name].state = ChannelState.IDLE

    # ==================== Synchronous entry points ====================

    def tick(self, now_ts: float | None = None) -> list[TickResult]:
        """
        Run every channel due at ``now_ts`` on the calling thread, in slot order.

        The first call seeds the schedule at ``now_ts``.
        """
        now_ts = self._clock() if now_ts is None else now_ts
        return [self._execute(name, scheduled_for) for name, scheduled_for in self._collect_due(now_ts)]

    def run_channel(self, name: str) -> TickResult:
        """Run one channel immediately, outside its schedule."""
        if name not in self._runtimes:
            raise ConfigurationError(f"Unknown channel '{name}'", detail={"channel": name})
        return self._execute(name, None)

    def run_all(self) -> list[TickResult]:
        """Run every channel once, inputs before outputs, in declaration order."""
        ordered = self.registry.inputs() + self.registry.outputs()
        return [self.run_channel(channel.name) for channel in ordered]

    def set_virtual_input(self, name: str, value: Any) -> None:
        """Replace the held value of a virtual input; committed on its next tick."""
        runtime = self._runtimes.get(name)
        if runtime is None or not (runtime.channel.is_input and runtime.channel.is_virtual):
            raise ConfigurationError(f"'{name}' is not a virtual input channel", detail={"channel": name})
        converted = coerce_value(value)
        with self._lock:
            runtime.held_value = converted
        logger.info("Virtual input %s set to %s", name, converted.to_text())

    # ==================== Core Execution ====================

    def _execute(self, name: str, scheduled_for: float | None) -> TickResult:
        runtime = self._runtimes[name]
        started_ts = self._clock()
        started_at = _utc(started_ts)

        with self._lock:
            if runtime.state == ChannelState.RUNNING:
                runtime.skipped_count += 1
                skipped = True
            else:
                runtime.state = ChannelState.RUNNING
                skipped = False
        if skipped:
            return TickResult(
                channel=name,
                status=TickStatus.SKIPPED,
                started_at=started_at,
                completed_at=started_at,
                error="channel is already running",
            )

        try:
            try:
                value, previous = self._run(runtime, started_ts)
            except _TickFailure as failure:
                result = self._record_failure(runtime, failure, started_at, scheduled_for)
            except Exception as e:
                result = self._record_failure(
                    runtime, _TickFailure(FailureKind.UNEXPECTED, e), started_at, scheduled_for
                )
            else:
                result = self._record_success(runtime, value, previous, started_at, scheduled_for)
        finally:
            with self._lock:
                runtime.state = ChannelState.IDLE
        return result

    def _run(self, runtime: ChannelRuntime, now_ts: float) -> tuple[Value, Value | None]:
        """
        One channel run. Returns (committed value, replaced value).

        A physical output commits before the device write, so after a failed
        write ReefState leads the device until the next successful tick.
        """
        channel = runtime.channel

        if channel.is_input:
            if channel.is_physical:
                try:
                    value = coerce_value(self._device_call(runtime, channel.driver.read))
                except DeviceTimeoutError as e:
                    raise _TickFailure(FailureKind.DEVICE_TIMEOUT, e) from e
                except DeviceError as e:
                    raise _TickFailure(FailureKind.DEVICE_ERROR, e) from e
                except TypeError as e:
                    raise _TickFailure(FailureKind.DEVICE_ERROR, DeviceError(str(e))) from e
            else:
                with self._lock:
                    value = runtime.held_value
            return value, self.state.commit(channel.name, value)

        prior = self.state.get(channel.name)
        if prior is None:
            prior = channel.initial if channel.initial is not None else DEFAULT_PRIOR
        try:
            value = evaluate(
                channel.program,
                self.state.snapshot(),
                prior,
                channel=channel.name,
                now=datetime.fromtimestamp(now_ts),
            )
        except UndefinedSymbolError as e:
            raise _TickFailure(FailureKind.UNDEFINED, e) from e
        except RispError as e:
            raise _TickFailure(FailureKind.PROGRAM_ERROR, e) from e

        previous = self.state.commit(channel.name, value)

        if channel.is_physical:
            try:
                self._device_call(runtime, channel.driver.write, value)
            except DeviceTimeoutError as e:
                raise _TickFailure(FailureKind.DEVICE_TIMEOUT, e, value, previous) from e
            except DeviceError as e:
                raise _TickFailure(FailureKind.DEVICE_ERROR, e, value, previous) from e
        return value, previous

    def _device_call(self, runtime: ChannelRuntime, func: Callable, *args: Any) -> Any:
        """
        Run a driver call on the I/O pool with the device timeout.

        Raises:
            DeviceTimeoutError: the call timed out, or the previous one is still stuck
            DeviceError: the driver failed
        """
        name = runtime.name
        pending = runtime.pending_device_call
        if pending is not None:
            if not pending.done():
                raise DeviceTimeoutError(
                    f"Previous device call for '{name}' has not returned",
                    detail={"channel": name},
                )
            runtime.pending_device_call = None

        self._ensure_executors()
        future = self._io_executor.submit(func, *args)
        try:
            result = future.result(timeout=self._device_timeout)
        except FutureTimeoutError:
            runtime.pending_device_call = future
            raise DeviceTimeoutError(
                f"Device call for '{name}' timed out after {self._device_timeout:.1f}s",
                detail={"channel": name, "timeout": self._device_timeout},
            ) from None
        except OSError as e:
            raise DeviceError(f"Device I/O error on '{name}': {e}", detail={"channel": name}) from e
        return result

    # ==================== Outcome Recording ====================

    def _record_success(
        self,
        runtime: ChannelRuntime,
        value: Value,
        previous: Value | None,
        started_at: datetime,
        scheduled_for: float | None,
    ) -> TickResult:
        completed_at = _utc(self._clock())
        with self._lock:
            runtime.state = ChannelState.COMMITTED
            runtime.last_run = started_at
            runtime.last_success = completed_at
            runtime.last_status = TickStatus.COMMITTED
            runtime.run_count += 1
            runtime.success_count += 1
            if runtime.consecutive_failures:
                logger.info(
                    "Channel %s recovered after %d failure(s)",
                    runtime.name,
                    runtime.consecutive_failures,
                )
            runtime.consecutive_failures = 0
            runtime.last_error = None

        result = TickResult(
            channel=runtime.name,
            status=TickStatus.COMMITTED,
            started_at=started_at,
            completed_at=completed_at,
            value=value,
            committed=True,
            scheduled_for=_utc(scheduled_for) if scheduled_for is not None else None,
        )
        self._record_history(result)
        self._publish_committed(runtime, value, previous, result)
        logger.debug("Channel %s committed %s", runtime.name, value.to_text())
        return result

    def _record_failure(
        self,
        runtime: ChannelRuntime,
        failure: _TickFailure,
        started_at: datetime,
        scheduled_for: float | None,
    ) -> TickResult:
        completed_at = _utc(self._clock())
        error = failure.error
        committed = failure.committed_value is not None

        with self._lock:
            runtime.state = ChannelState.FAILED
            runtime.last_run = started_at
            runtime.last_status = TickStatus.FAILED
            runtime.run_count += 1
            runtime.failure_count += 1
            runtime.consecutive_failures += 1
            runtime.last_error = str(error)
            consecutive = runtime.consecutive_failures

        self._log_failure(runtime.name, failure, consecutive)

        result = TickResult(
            channel=runtime.name,
            status=TickStatus.FAILED,
            started_at=started_at,
            completed_at=completed_at,
            value=failure.committed_value,
            committed=committed,
            error=str(error),
            error_code=getattr(getattr(error, "code", None), "value", type(error).__name__),
            failure_kind=failure.kind,
            scheduled_for=_utc(scheduled_for) if scheduled_for is not None else None,
        )
        self._record_history(result)

        if committed:
            self._publish_committed(runtime, failure.committed_value, failure.previous, result)

        channel = runtime.channel
        error_detail = error.to_dict() if isinstance(error, RispError) else {
            "code": result.error_code,
            "message": str(error),
            **getattr(error, "detail", {}),
        }
        self._publish(
            ChannelEvent.TICK_FAILED,
            ChannelFailurePayload(
                channel=channel.name,
                direction=channel.direction.value,
                locality=channel.locality.value,
                kind=failure.kind,
                error=error_detail,
                consecutive_failures=consecutive,
                committed=committed,
                duration_ms=round(result.duration_seconds * 1000, 2),
                timestamp=completed_at.isoformat(),
            ),
        )
        return result

    @staticmethod
    def _log_failure(name: str, failure: _TickFailure, consecutive: int) -> None:
        kind = failure.kind
        if kind == FailureKind.UNDEFINED:
            logger.debug("Channel %s holding last value: %s", name, failure.error)
        elif kind == FailureKind.PROGRAM_ERROR:
            logger.error("Channel %s program error: %s", name, failure.error)
        elif kind in (FailureKind.DEVICE_ERROR, FailureKind.DEVICE_TIMEOUT):
            if consecutive == 1 or consecutive % 10 == 0:
                logger.warning(
                    "Channel %s device failing (%d consecutive): %s",
                    name,
                    consecutive,
                    failure.error,
                )
            else:
                logger.debug("Channel %s device failure: %s", name, failure.error)
        else:
            logger.error("Channel %s failed unexpectedly: %s", name, failure.error, exc_info=failure.error)

    def _publish_committed(
        self,
        runtime: ChannelRuntime,
        value: Value,
        previous: Value | None,
        result: TickResult,
    ) -> None:
        channel = runtime.channel
        self._publish(
            ChannelEvent.VALUE_COMMITTED,
            ChannelValuePayload(
                channel=channel.name,
                direction=channel.direction.value,
                locality=channel.locality.value,
                value=value_to_dict(value),
                previous=value_to_dict(previous) if previous is not None else None,
                changed=previous != value,
                duration_ms=round(result.duration_seconds * 1000, 2),
                timestamp=result.completed_at.isoformat(),
            ),
        )

    def _publish(self, event: Any, payload: Any) -> None:
        try:
            self.event_bus.publish(event, payload)
        except Exception as e:
            logger.warning("Failed to publish %s: %s", getattr(event, "value", event), e)

    def _record_history(self, result: TickResult) -> None:
        with self._lock:
            self._history.append(result)

    # ==================== Status & History ====================

    def get_state(self) -> dict[str, dict[str, Any]]:
        """Current ReefState view."""
        return self.state.as_dict()

    def get_channel_status(self, name: str) -> dict[str, Any] | None:
        runtime = self._runtimes.get(name)
        if runtime is None:
            return None
        value = self.state.get(name)
        with self._lock:
            status = runtime.to_dict()
        status["value"] = value_to_dict(value) if value is not None else None
        return status

    def get_status(self) -> dict[str, Any]:
        with self._lock:
            recent = list(self._history)[-20:]
            return {
                "running": self._running,
                "total_channels": len(self._runtimes),
                "inputs": sum(1 for r in self._runtimes.values() if r.channel.is_input),
                "outputs": sum(1 for r in self._runtimes.values() if r.channel.is_output),
                "rejected_channels": dict(self.registry.rejected),
                "history_size": len(self._history),
                "recent_failures": sum(1 for r in recent if r.status == TickStatus.FAILED),
                "skipped_total": sum(r.skipped_count for r in self._runtimes.values()),
                "max_workers": self._max_workers,
                "device_timeout": self._device_timeout,
            }

    def health_check(self) -> dict[str, Any]:
        """
        Structured health report.

        - unhealthy: scheduler stopped, or more than half of recent ticks failed
        - degraded: stale channels (no run for 3 periods), channels failing
          3+ times in a row, or more than a fifth of recent ticks failed
        """
        now_ts = self._clock()
        with self._lock:
            is_running = self._running
            recent = list(self._history)[-50:]
            recent_failures = [r for r in recent if r.status == TickStatus.FAILED]
            failure_rate = len(recent_failures) / len(recent) if recent else 0.0

            stale_channels = []
            failing_channels = []
            for runtime in self._runtimes.values():
                period = runtime.channel.period_seconds
                if runtime.last_run is not None:
                    since = now_ts - runtime.last_run.timestamp()
                    if since > period * 3:
                        stale_channels.append(
                            {
                                "channel": runtime.name,
                                "last_run": runtime.last_run.isoformat(),
                                "period_seconds": period,
                                "overdue_seconds": round(since - period, 3),
                            }
                        )
                if runtime.consecutive_failures >= 3:
                    failing_channels.append(
                        {
                            "channel": runtime.name,
                            "consecutive_failures": runtime.consecutive_failures,
                            "last_error": runtime.last_error,
                        }
                    )

            if not is_running:
                health = "unhealthy"
                health_reason = "Scheduler is not running"
            elif failure_rate > 0.5:
                health = "unhealthy"
                health_reason = f"High failure rate: {failure_rate:.0%}"
            elif stale_channels:
                health = "degraded"
                health_reason = f"{len(stale_channels)} stale channel(s) detected"
            elif failing_channels:
                health = "degraded"
                health_reason = f"{len(failing_channels)} channel(s) failing repeatedly"
            elif failure_rate > 0.2:
                health = "degraded"
                health_reason = f"Elevated failure rate: {failure_rate:.0%}"
            else:
                health = "healthy"
                health_reason = "All channels operational"

            return {
                "health": health,
                "reason": health_reason,
                "timestamp": iso_from_timestamp(now_ts),
                "scheduler_running": is_running,
                "statistics": {
                    "total_channels": len(self._runtimes),
                    "recent_ticks": len(recent),
                    "recent_failures": len(recent_failures),
                    "failure_rate": round(failure_rate, 3),
                },
                "stale_channels": stale_channels,
                "failing_channels": failing_channels,
                "rejected_channels": sorted(self.registry.rejected),
            }

    def get_history(self, channel: str | None = None, limit: int = 100) -> list[TickResult]:
        """Tick results, newest first."""
        with self._lock:
            results = list(self._history)
        if channel:
            results = [r for r in results if r.channel == channel]
        return list(reversed(results))[: int(limit)]
