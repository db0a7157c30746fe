"""
Unit tests for the processing indicator reducer.
"""

import random

import pytest

from widget.processing_indicator import (
    AUTO_END_PROCESSING,
    PROCESSING_TIMEOUT_SECONDS,
    Action,
    ActionKind,
    CustomCommand,
    HostEffect,
    IndicatorState,
    ProcessingToken,
    ScheduleEffect,
    reduce,
)

BEGIN = Action(ActionKind.BEGIN_PROCESSING)
END = Action(ActionKind.END_PROCESSING)
FORCE_END = Action(ActionKind.FORCE_END_PROCESSING)
REFRESH = Action(ActionKind.REFRESH_ANIMATION)


class TestProcessingTokens:
    def test_begin_adds_token_with_deadline(self):
        state = IndicatorState()

        effect = reduce(state, BEGIN, now=100.0)

        assert state.tokens == [ProcessingToken(expiration_deadline=120.0)]
        assert state.is_processing is True
        assert effect == ScheduleEffect(key=AUTO_END_PROCESSING, delay=PROCESSING_TIMEOUT_SECONDS, action=FORCE_END)

    def test_processing_flag_tracks_tokens(self):
        rng = random.Random(7)
        state = IndicatorState()
        now = 0.0
        for _ in range(500):
            now += rng.uniform(0, 3)
            reduce(state, rng.choice([BEGIN, BEGIN, END, END, FORCE_END]), now=now)
            assert state.is_processing == (len(state.tokens) > 0)

    @pytest.mark.parametrize("count", [1, 2, 5])
    def test_balanced_begin_end(self, count):
        state = IndicatorState()
        for _ in range(count):
            reduce(state, BEGIN, now=0.0)
        for _ in range(count):
            reduce(state, END, now=1.0)

        assert state.tokens == []
        assert state.is_processing is False

    def test_end_on_empty_is_noop(self):
        state = IndicatorState()

        assert reduce(state, END, now=0.0) is None
        assert state.tokens == []
        assert state.is_processing is False

    def test_end_removes_oldest_token_first(self):
        state = IndicatorState(
            tokens=[ProcessingToken(50.0), ProcessingToken(30.0)],
            is_processing=True,
        )

        reduce(state, END, now=0.0)

        assert state.tokens == [ProcessingToken(30.0)]
        assert state.is_processing is True

    def test_end_sweeps_expired_tokens(self):
        state = IndicatorState()
        for started in (0.0, 10.0, 20.0):
            reduce(state, BEGIN, now=started)

        reduce(state, END, now=35.0)

        assert state.tokens == [ProcessingToken(40.0)]
        assert state.is_processing is True

    def test_end_keeps_token_expiring_now(self):
        state = IndicatorState()
        reduce(state, BEGIN, now=0.0)
        reduce(state, BEGIN, now=5.0)

        reduce(state, END, now=25.0)

        assert state.tokens == [ProcessingToken(25.0)]

    def test_end_clears_flag_when_all_expired(self):
        state = IndicatorState()
        reduce(state, BEGIN, now=0.0)
        reduce(state, BEGIN, now=1.0)

        reduce(state, END, now=100.0)

        assert state.tokens == []
        assert state.is_processing is False

    @pytest.mark.parametrize("begins", [0, 1, 4])
    def test_force_end_clears_everything(self, begins):
        state = IndicatorState()
        for _ in range(begins):
            reduce(state, BEGIN, now=0.0)

        reduce(state, FORCE_END, now=1.0)
        reduce(state, FORCE_END, now=2.0)

        assert state.tokens == []
        assert state.is_processing is False

    def test_custom_timeout(self):
        state = IndicatorState()

        effect = reduce(state, BEGIN, now=10.0, timeout=0.5)

        assert state.tokens == [ProcessingToken(10.5)]
        assert effect.delay == 0.5


class TestAnimation:
    def test_refresh_alternates_while_processing(self):
        state = IndicatorState()
        reduce(state, BEGIN, now=0.0)

        phases = []
        for _ in range(4):
            reduce(state, REFRESH, now=0.0)
            phases.append(state.animation_progress)

        assert phases == [1.0, 0.0, 1.0, 0.0]

    @pytest.mark.parametrize("content_empty, expected", [(True, 0.0), (False, 1.0)])
    def test_refresh_snaps_when_idle(self, content_empty, expected):
        state = IndicatorState(is_content_empty=content_empty, animation_progress=0.0 if expected else 1.0)

        reduce(state, REFRESH, now=0.0)
        reduce(state, REFRESH, now=0.0)

        assert state.animation_progress == expected

    def test_begin_refresh_end_refresh(self):
        state = IndicatorState(is_content_empty=True)

        reduce(state, BEGIN, now=0.0)
        assert len(state.tokens) == 1 and state.is_processing

        reduce(state, REFRESH, now=0.0)
        assert state.animation_progress == 1.0

        reduce(state, END, now=1.0)
        assert state.tokens == [] and not state.is_processing

        reduce(state, REFRESH, now=1.0)
        assert state.animation_progress == 0.0


class TestHostActions:
    @pytest.mark.parametrize("kind", [ActionKind.WIDGET_CLICKED, ActionKind.DETACH_PANEL_TOGGLED])
    def test_handled_elsewhere(self, kind):
        state = IndicatorState(is_panel_open=True, is_panel_detached=True)

        assert reduce(state, Action(kind), now=0.0) is None
        assert state == IndicatorState(is_panel_open=True, is_panel_detached=True)

    def test_open_chat_forwards_to_handler(self):
        calls = []

        class Handler:
            def on_open_chat(self):
                calls.append("open")

            def on_custom_command(self, command):
                calls.append(command)

        state = IndicatorState()
        effect = reduce(state, Action(ActionKind.OPEN_CHAT_REQUESTED), now=0.0)
        assert isinstance(effect, HostEffect)
        effect.run(Handler())

        command = CustomCommand(id="cmd-1", name="Explain")
        effect = reduce(state, Action.custom_command(command), now=0.0)
        effect.run(Handler())

        assert calls == ["open", command]
        assert state == IndicatorState()
