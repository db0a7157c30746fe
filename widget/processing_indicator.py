"""
Processing indicator of the floating circular widget.

The indicator keeps a FIFO list of timed processing tokens. `reduce` applies one
action to an `IndicatorState` in place and returns at most one effect for the
store to run: a call into the host, or a named deferred action that replaces
any earlier one with the same key.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List, Optional, Protocol, Union

PROCESSING_TIMEOUT_SECONDS: float = 20.0
AUTO_END_PROCESSING = "auto_end_processing"


@dataclass(frozen=True, slots=True)
class CustomCommand:
    id: str
    name: str
    prompt: Optional[str] = None


@dataclass(slots=True)
class ProcessingToken:
    expiration_deadline: float


@dataclass(slots=True)
class IndicatorState:
    tokens: List[ProcessingToken] = field(default_factory=list)
    is_processing: bool = False
    is_displaying_content: bool = False
    is_content_empty: bool = True
    is_panel_detached: bool = False
    is_panel_open: bool = False
    animation_progress: float = 0.0


class ActionKind(str, Enum):
    WIDGET_CLICKED = "widget_clicked"
    DETACH_PANEL_TOGGLED = "detach_panel_toggled"
    OPEN_CHAT_REQUESTED = "open_chat_requested"
    CUSTOM_COMMAND_REQUESTED = "custom_command_requested"
    BEGIN_PROCESSING = "begin_processing"
    END_PROCESSING = "end_processing"
    FORCE_END_PROCESSING = "force_end_processing"
    REFRESH_ANIMATION = "refresh_animation"


@dataclass(frozen=True, slots=True)
class Action:
    kind: ActionKind
    command: Optional[CustomCommand] = None

    @classmethod
    def custom_command(cls, command: CustomCommand) -> "Action":
        return cls(ActionKind.CUSTOM_COMMAND_REQUESTED, command)


class WidgetControllerHandler(Protocol):
    """Host callbacks the widget forwards button presses to."""

    def on_open_chat(self) -> None: ...

    def on_custom_command(self, command: CustomCommand) -> None: ...


@dataclass(frozen=True, slots=True)
class HostEffect:
    run: Callable[[WidgetControllerHandler], None]


@dataclass(frozen=True, slots=True)
class ScheduleEffect:
    key: str
    delay: float
    action: Action


Effect = Union[HostEffect, ScheduleEffect]


def reduce(
    state: IndicatorState,
    action: Action,
    *,
    now: float,
    timeout: float = PROCESSING_TIMEOUT_SECONDS,
) -> Optional[Effect]:
    kind = action.kind

    if kind in (ActionKind.WIDGET_CLICKED, ActionKind.DETACH_PANEL_TOGGLED):
        # handled by the host
        return None

    if kind is ActionKind.OPEN_CHAT_REQUESTED:
        return HostEffect(run=lambda handler: handler.on_open_chat())

    if kind is ActionKind.CUSTOM_COMMAND_REQUESTED:
        command = action.command
        if command is None:
            return None
        return HostEffect(run=lambda handler: handler.on_custom_command(command))

    if kind is ActionKind.BEGIN_PROCESSING:
        state.tokens.append(ProcessingToken(expiration_deadline=now + timeout))
        state.is_processing = True
        return ScheduleEffect(
            key=AUTO_END_PROCESSING,
            delay=timeout,
            action=Action(ActionKind.FORCE_END_PROCESSING),
        )

    if kind is ActionKind.END_PROCESSING:
        if state.tokens:
            state.tokens.pop(0)
        state.tokens[:] = [token for token in state.tokens if token.expiration_deadline >= now]
        state.is_processing = bool(state.tokens)
        return None

    if kind is ActionKind.FORCE_END_PROCESSING:
        state.tokens.clear()
        state.is_processing = False
        return None

    if kind is ActionKind.REFRESH_ANIMATION:
        if state.is_processing:
            state.animation_progress = 1 - state.animation_progress
        else:
            state.animation_progress = 0.0 if state.is_content_empty else 1.0
        return None

    raise ValueError(f"Unhandled action: {kind!r}")
