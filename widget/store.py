"""Single-actor store that drives the processing indicator on an asyncio loop."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Callable, Dict, List, Optional

from .processing_indicator import (
    PROCESSING_TIMEOUT_SECONDS,
    Action,
    ActionKind,
    CustomCommand,
    Effect,
    HostEffect,
    IndicatorState,
    ScheduleEffect,
    WidgetControllerHandler,
    reduce,
)

logger = logging.getLogger(__name__)

Listener = Callable[[Action, IndicatorState], None]

REFRESH_ANIMATION_KEY = "refresh_animation"
_HOST_FLAGS = frozenset({"is_displaying_content", "is_content_empty", "is_panel_detached", "is_panel_open"})


class ProcessingIndicatorStore:
    """
    Owns one `IndicatorState` and applies actions to it one at a time.

    Deferred actions run as asyncio tasks keyed by name. Scheduling a key that
    is already in flight cancels the old task first, so at most one auto-end
    timer exists per store.
    """

    def __init__(
        self,
        state: Optional[IndicatorState] = None,
        *,
        handler: Optional[WidgetControllerHandler] = None,
        clock: Callable[[], float] = time.time,
        processing_timeout: float = PROCESSING_TIMEOUT_SECONDS,
    ) -> None:
        self._state = state or IndicatorState()
        self._handler = handler
        self._clock = clock
        self._timeout = processing_timeout
        self._listeners: List[Listener] = []
        self._in_flight: Dict[str, asyncio.Task] = {}

    @property
    def state(self) -> IndicatorState:
        return self._state

    def pending_keys(self) -> List[str]:
        return [key for key, task in self._in_flight.items() if not task.done()]

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def send(self, action: Action) -> None:
        effect = reduce(self._state, action, now=self._clock(), timeout=self._timeout)
        logger.debug(
            "Widget action %s -> processing=%s tokens=%d",
            action.kind.value,
            self._state.is_processing,
            len(self._state.tokens),
        )
        for listener in list(self._listeners):
            listener(action, self._state)
        if effect is not None:
            self._run_effect(effect)

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------
    def begin_processing(self) -> None:
        self.send(Action(ActionKind.BEGIN_PROCESSING))

    def end_processing(self) -> None:
        self.send(Action(ActionKind.END_PROCESSING))

    def force_end_processing(self) -> None:
        self.send(Action(ActionKind.FORCE_END_PROCESSING))

    def refresh_animation(self) -> None:
        self.send(Action(ActionKind.REFRESH_ANIMATION))

    def widget_clicked(self) -> None:
        self.send(Action(ActionKind.WIDGET_CLICKED))

    def detach_panel_toggled(self) -> None:
        self.send(Action(ActionKind.DETACH_PANEL_TOGGLED))

    def open_chat_requested(self) -> None:
        self.send(Action(ActionKind.OPEN_CHAT_REQUESTED))

    def custom_command_requested(self, command: CustomCommand) -> None:
        self.send(Action.custom_command(command))

    def update_host_flags(self, **flags: bool) -> None:
        """Copy host-owned booleans such as `is_content_empty` into the state."""

        unknown = set(flags) - _HOST_FLAGS
        if unknown:
            raise TypeError(f"Unknown host flags: {', '.join(sorted(unknown))}")
        for name, value in flags.items():
            setattr(self._state, name, bool(value))

    # ------------------------------------------------------------------
    # Ring ticker
    # ------------------------------------------------------------------
    def start_refreshing(self, interval: float) -> None:
        """Send `REFRESH_ANIMATION` every `interval` seconds until stopped."""

        self._replace_in_flight(REFRESH_ANIMATION_KEY, self._tick(interval))

    def stop_refreshing(self) -> None:
        self._cancel(REFRESH_ANIMATION_KEY)

    async def _tick(self, interval: float) -> None:
        while True:
            await asyncio.sleep(interval)
            self.refresh_animation()

    # ------------------------------------------------------------------
    # Effects
    # ------------------------------------------------------------------
    def _run_effect(self, effect: Effect) -> None:
        if isinstance(effect, HostEffect):
            if self._handler is None:
                logger.warning("No widget controller handler registered; dropping host call.")
                return
            try:
                effect.run(self._handler)
            except Exception:
                logger.exception("Widget controller handler failed.")
            return
        if isinstance(effect, ScheduleEffect):
            self._replace_in_flight(effect.key, self._deferred(effect))

    async def _deferred(self, effect: ScheduleEffect) -> None:
        await asyncio.sleep(effect.delay)
        if self._in_flight.get(effect.key) is asyncio.current_task():
            del self._in_flight[effect.key]
        logger.info("Deferred widget action %s fired.", effect.action.kind.value)
        self.send(effect.action)

    def _replace_in_flight(self, key: str, coro) -> None:
        self._cancel(key)
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            coro.close()
            logger.warning("No running event loop; '%s' was not scheduled.", key)
            return
        self._in_flight[key] = loop.create_task(coro)

    def _cancel(self, key: str) -> None:
        task = self._in_flight.pop(key, None)
        if task is not None and not task.done():
            task.cancel()

    def cancel_all(self) -> None:
        for key in list(self._in_flight):
            self._cancel(key)

    async def aclose(self) -> None:
        tasks = list(self._in_flight.values())
        self.cancel_all()
        await asyncio.gather(*tasks, return_exceptions=True)
