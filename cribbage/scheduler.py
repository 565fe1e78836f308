"""
cribbage/scheduler.py

Serializes every change to a game through one FIFO queue.

Callers on any thread submit actions and block on a Future until their
action has been applied. Whichever thread finds the queue idle drains it;
the others only enqueue. Turn timeouts, computer moves and the round-end
pause are scheduled events that carry the game version they were scheduled
for plus a cancellation token, so an event that arrives after the state has
moved on does nothing.
"""

import logging
import random
import threading
from collections import deque
from concurrent.futures import Future
from dataclasses import dataclass, field
from typing import Callable, Deque, Dict, List, Optional

from .agents.baseline_strategies import BaseStrategy
from .config import SchedulerConfig
from .constants import GamePhase, GameAction
from .errors import InvariantViolation, SessionHalted
from .game.engine import CribbageGameState
from .game.snapshot import GameSnapshot
from .game.types import ActionResult

logger = logging.getLogger(__name__)

TimerFactory = Callable[[float, Callable[[], None]], "threading.Timer"]


def default_timer_factory(delay: float, fn: Callable[[], None]) -> threading.Timer:
    timer = threading.Timer(delay, fn)
    timer.daemon = True
    return timer


class InlineTimer:
    """Fires as soon as it is started, ignoring the delay. For headless simulations."""

    def __init__(self, delay: float, fn: Callable[[], None]):
        self.delay = delay
        self.fn = fn
        self.cancelled = False

    def start(self):
        if not self.cancelled:
            self.fn()

    def cancel(self):
        self.cancelled = True


@dataclass
class CancelToken:
    cancelled: bool = False

    def cancel(self):
        self.cancelled = True


@dataclass
class ScheduledEvent:
    """A deferred step, valid only while the game is still at `version`."""

    kind: str  # 'timeout' | 'opponent' | 'round_end'
    version: int
    player_id: Optional[str] = None
    token: CancelToken = field(default_factory=CancelToken)


@dataclass
class _WorkItem:
    run: Callable[[], ActionResult]
    future: Optional[Future] = None
    label: str = ""


class TurnScheduler:
    """Single logical writer for one CribbageGameState."""

    def __init__(
        self,
        game: CribbageGameState,
        config: Optional[SchedulerConfig] = None,
        strategies: Optional[Dict[str, BaseStrategy]] = None,
        timer_factory: Optional[TimerFactory] = None,
        rng: Optional[random.Random] = None,
        on_finished: Optional[Callable[[Optional[str]], None]] = None,
    ):
        self.game = game
        self.config = config or SchedulerConfig()
        self.strategies = dict(strategies or {})
        self.timer_factory = timer_factory or default_timer_factory
        self.rng = rng or random.Random()
        self.on_finished = on_finished

        self._queue: Deque[_WorkItem] = deque()
        self._queue_lock = threading.Lock()
        self._process_lock = threading.Lock()
        self._timers: List = []
        self._scheduled: List[ScheduledEvent] = []
        self._halted: Optional[BaseException] = None
        self._closed = False
        self._finished_notified = False
        self._notifications: List[Callable[[], None]] = []

    # --- Public API ---

    @property
    def halted(self) -> bool:
        return self._halted is not None

    def start(self, deck=None) -> ActionResult:
        """Deals the first round and arms the first timers."""

        def run() -> ActionResult:
            result = self.game.start(deck)
            if result.accepted:
                self._after_change()
            return result

        return self._submit_item(run, "start")

    def submit(self, action: GameAction) -> ActionResult:
        """Applies an action in turn order and returns its result (blocks until processed)."""

        def run() -> ActionResult:
            result = self.game.apply_action(action)
            if result.accepted:
                self._after_change()
            else:
                logger.debug("Action %s rejected: %s", action, result.message)
            return result

        return self._submit_item(run, type(action).__name__)

    def snapshot(self, viewer_id: Optional[str] = None) -> GameSnapshot:
        """A consistent snapshot, taken between processing steps."""
        with self._process_lock:
            return self.game.snapshot(viewer_id)

    def pending_events(self) -> List[ScheduledEvent]:
        return [e for e in self._scheduled if not e.token.cancelled]

    def shutdown(self):
        """Cancels every timer; later submissions raise SessionHalted."""
        self._closed = True
        self._cancel_scheduled()
        with self._queue_lock:
            abandoned = list(self._queue)
            self._queue.clear()
        for item in abandoned:
            if item.future is not None and not item.future.done():
                item.future.set_exception(SessionHalted("Scheduler shut down."))
        logger.debug("Scheduler shut down.")

    # --- Queue ---

    def _submit_item(self, run: Callable[[], ActionResult], label: str) -> ActionResult:
        if self._halted is not None:
            raise SessionHalted(f"Session halted: {self._halted}")
        if self._closed:
            raise SessionHalted("Scheduler shut down.")
        future: Future = Future()
        with self._queue_lock:
            self._queue.append(_WorkItem(run=run, future=future, label=label))
        self._drain()
        return future.result()

    def _enqueue_event(self, event: ScheduledEvent):
        if event.token.cancelled or self._closed or self._halted is not None:
            return
        with self._queue_lock:
            self._queue.append(
                _WorkItem(run=lambda: self._run_event(event), label=event.kind)
            )
        self._drain()

    def _drain(self):
        """Processes queued items until the queue is empty, unless another thread already is."""
        while True:
            if not self._process_lock.acquire(blocking=False):
                return
            try:
                while True:
                    with self._queue_lock:
                        if not self._queue:
                            break
                        item = self._queue.popleft()
                    self._process(item)
            finally:
                self._process_lock.release()
            self._fire_notifications()
            # An item may have arrived between the last check and the release
            with self._queue_lock:
                if not self._queue:
                    return

    def _process(self, item: _WorkItem):
        if self._halted is not None:
            if item.future is not None:
                item.future.set_exception(SessionHalted(f"Session halted: {self._halted}"))
            return
        try:
            result = item.run()
        except InvariantViolation as exc:
            self._halt(exc)
            if item.future is not None:
                item.future.set_exception(exc)
            return
        except Exception as exc:  # pylint: disable=broad-except
            logger.exception("Error processing %s.", item.label)
            # Scheduled events have no caller to report to; the queue keeps draining
            if item.future is not None:
                item.future.set_exception(exc)
            return
        if item.future is not None:
            item.future.set_result(result)

    def _halt(self, exc: BaseException):
        logger.critical("Halting scheduler after invariant violation: %s", exc)
        self._halted = exc
        self._cancel_scheduled()

    def _fire_notifications(self):
        notifications, self._notifications = self._notifications, []
        for notify in notifications:
            notify()

    # --- Scheduled Events ---

    def _run_event(self, event: ScheduledEvent) -> ActionResult:
        if event.token.cancelled or event.version != self.game.version:
            logger.debug(
                "Dropping stale %s event (v%d, game at v%d).",
                event.kind,
                event.version,
                self.game.version,
            )
            return ActionResult.ok(message="stale")

        if event.kind == "timeout":
            result = ActionResult.ok()
            for player_id in self.game.pending_actors():
                logger.info("Turn timeout for %s in %s.", player_id, self.game.phase.value)
                result = self.game.end_turn(player_id)
                if not result.accepted:
                    logger.warning(
                        "Timeout end-turn for %s rejected: %s", player_id, result.message
                    )
                if self.game.is_terminal():
                    break
        elif event.kind == "opponent":
            strategy = self.strategies[event.player_id]
            action = strategy.next_action(self.game.snapshot(event.player_id))
            if action is None:
                return ActionResult.ok(message="no action")
            result = self.game.apply_action(action)
            if not result.accepted:
                logger.warning(
                    "Computer move %s rejected (%s): %s",
                    action,
                    result.reason,
                    result.message,
                )
                return result
        elif event.kind == "round_end":
            self.game.advance()
            result = ActionResult.ok()
        else:
            raise ValueError(f"Unknown event kind '{event.kind}'")

        self._after_change()
        return result

    def _schedule(self, kind: str, delay: float, player_id: Optional[str] = None):
        event = ScheduledEvent(kind=kind, version=self.game.version, player_id=player_id)
        timer = self.timer_factory(delay, lambda: self._enqueue_event(event))
        self._scheduled.append(event)
        self._timers.append(timer)
        timer.start()
        logger.debug("Scheduled %s in %.2fs at v%d.", kind, delay, event.version)

    def _cancel_scheduled(self):
        for event in self._scheduled:
            event.token.cancel()
        for timer in self._timers:
            timer.cancel()
        self._scheduled = []
        self._timers = []

    def _after_change(self):
        """Phase transition check, invariant check, then re-arm timers for the new version."""
        if self.config.round_end_delay_seconds <= 0:
            self.game.advance()
        self.game.verify_invariants()
        self._cancel_scheduled()

        if self.game.is_terminal():
            if not self._finished_notified:
                self._finished_notified = True
                winner = self.game.winner_id
                logger.info("Game finished; winner %s.", winner)
                if self.on_finished is not None:
                    self._notifications.append(lambda: self.on_finished(winner))
            return

        if self.game.phase is GamePhase.ROUND_END:
            self._schedule("round_end", self.config.round_end_delay_seconds)
            return

        pending = self.game.pending_actors()
        if pending and self.config.turn_timeout_seconds > 0:
            self._schedule("timeout", self.config.turn_timeout_seconds)
        for player_id in pending:
            if player_id in self.strategies:
                delay = self.rng.uniform(
                    self.config.opponent_think_min_seconds,
                    self.config.opponent_think_max_seconds,
                )
                self._schedule("opponent", delay, player_id)
