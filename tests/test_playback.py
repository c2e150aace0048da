import asyncio

import pytest

from attention_engine import AsyncioTicker, PlaybackController
from attention_engine.playback import COMPLETE, IDLE, PAUSED, PLAYING
from attention_engine.types import tokenize

TARGETS = tokenize("The black cat jumped", prefix="target")


@pytest.fixture
def controller(ticker):
    controller = PlaybackController(ticker=ticker, interval=1.5)
    controller.load(TARGETS)
    return controller


class TestManualStep:

    def test_initial_state(self, controller):
        assert controller.state == IDLE
        assert controller.generated_count == 0
        assert controller.active_target_index is None

    def test_steps_are_monotonic_until_complete(self, controller):
        for expected in range(1, len(TARGETS) + 1):
            assert controller.step()
            assert controller.generated_count == expected
            assert controller.active_target_index == expected - 1

        assert controller.state == COMPLETE
        assert controller.is_complete and not controller.is_playing

    def test_step_after_complete_is_noop(self, controller):
        for _ in TARGETS:
            controller.step()

        assert not controller.step()
        assert controller.generated_count == len(TARGETS)
        assert controller.state == COMPLETE

    def test_partial_reveal_is_paused(self, controller):
        controller.step()
        assert controller.state == PAUSED
        assert [t.text for t in controller.revealed] == ["The"]

    def test_step_rejected_while_playing(self, controller):
        controller.start()
        assert not controller.step()
        assert controller.generated_count == 0

    def test_empty_sequence_completes_on_step(self, ticker):
        controller = PlaybackController(ticker=ticker)
        assert not controller.step()
        assert controller.state == COMPLETE


class TestTimedPlayback:

    def test_tick_every_interval(self, controller, ticker):
        controller.start()
        assert controller.state == PLAYING

        ticker.advance(1.4)
        assert controller.generated_count == 0
        ticker.advance(0.1)
        assert controller.generated_count == 1
        ticker.advance(3.0)
        assert controller.generated_count == 3

    def test_playing_to_complete_stops_timer(self, controller, ticker):
        controller.start()
        ticker.advance(1.5 * len(TARGETS))

        assert controller.state == COMPLETE
        assert not ticker.running
        assert ticker.advance(10.0) == 0

    def test_pause_keeps_revealed_tokens(self, controller, ticker):
        controller.start()
        ticker.advance(3.0)
        assert controller.pause()

        ticker.advance(10.0)
        assert controller.state == PAUSED
        assert controller.generated_count == 2
        assert not ticker.running

    def test_resume_continues(self, controller, ticker):
        controller.start()
        ticker.advance(1.5)
        controller.pause()
        controller.start()
        ticker.advance(1.5)
        assert controller.generated_count == 2

    def test_start_after_complete_replays(self, controller, ticker):
        for _ in TARGETS:
            controller.step()

        assert controller.start()
        assert controller.state == PLAYING
        assert controller.generated_count == 0
        ticker.advance(1.5)
        assert controller.active_target_index == 0

    def test_double_start_does_not_double_speed(self, controller, ticker):
        controller.start()
        assert not controller.start()
        ticker.advance(1.5)
        assert controller.generated_count == 1

    def test_toggle(self, controller):
        controller.toggle()
        assert controller.is_playing
        controller.toggle()
        assert controller.state == IDLE

    def test_reset_from_any_state(self, controller, ticker):
        controller.start()
        ticker.advance(3.0)
        controller.reset()

        assert controller.state == IDLE
        assert controller.revealed == []
        assert controller.active_target_index is None
        assert not ticker.running

    def test_load_clears_previous_playback(self, controller, ticker):
        controller.start()
        ticker.advance(1.5)
        controller.load(tokenize("Good morning", prefix="target"))

        assert controller.state == IDLE
        assert controller.total == 2
        assert not ticker.running

    def test_close_cancels_timer(self, controller, ticker):
        controller.start()
        controller.close()
        assert not ticker.running
        assert not controller.is_playing


class TestSelectAndListeners:

    def test_select_toggles_pin(self, controller):
        controller.step()
        controller.step()
        controller.select(0)
        assert controller.active_target_index == 0
        controller.select(0)
        assert controller.active_target_index is None

    def test_select_unrevealed_token(self, controller):
        with pytest.raises(ValueError):
            controller.select(3)

    def test_listener_sees_every_step(self, controller):
        seen = []
        controller.add_listener(lambda state: seen.append(state.generated_count))
        controller.step()
        controller.step()
        assert seen == [1, 2]

    def test_failing_listener_stops_timed_playback(self, controller, ticker):
        controller.start()

        def broken(state):
            raise RuntimeError("listener exploded")

        controller.add_listener(broken)
        ticker.advance(1.5)

        assert controller.generated_count == 1
        assert not controller.is_playing
        assert not ticker.running
        assert controller.state == PAUSED

    def test_snapshot(self, controller):
        controller.step()
        assert controller.snapshot().to_dict() == {
            "state": PAUSED,
            "generated_count": 1,
            "total": 4,
            "is_playing": False,
            "is_complete": False,
            "active_target_index": 0,
        }


@pytest.mark.asyncio
async def test_asyncio_ticker_drives_playback():
    controller = PlaybackController(ticker=AsyncioTicker(), interval=0.01)
    controller.load(TARGETS)
    controller.start()

    for _ in range(200):
        if controller.is_complete:
            break
        await asyncio.sleep(0.01)

    assert controller.state == COMPLETE
    assert controller.generated_count == len(TARGETS)
    assert not controller.ticker.running
