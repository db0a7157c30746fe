"""
Floating circular widget: the processing indicator reducer and its store.
"""

from .processing_indicator import (  # noqa: F401
    PROCESSING_TIMEOUT_SECONDS,
    Action,
    ActionKind,
    CustomCommand,
    IndicatorState,
    ProcessingToken,
    WidgetControllerHandler,
    reduce,
)
from .store import ProcessingIndicatorStore  # noqa: F401

__all__ = [
    "PROCESSING_TIMEOUT_SECONDS",
    "Action",
    "ActionKind",
    "CustomCommand",
    "IndicatorState",
    "ProcessingIndicatorStore",
    "ProcessingToken",
    "WidgetControllerHandler",
    "reduce",
]
