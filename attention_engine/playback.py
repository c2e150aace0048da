"""
Playback Controller
===================

Replays a cross-attention alignment one generated token at a time, the way a
decoder emits its output.

LEARNING NOTES
--------------
- A decoder produces target tokens left to right
- At step t, the token being generated attends to the source sentence;
  that is the row alignment[t] of the alignment matrix
- Revealing tokens one by one makes it visible that "black" (t=1) looks at
  "preto" (s=2) even though "gato" (s=1) comes first in the source

States:
    idle      nothing revealed yet
    playing   a ticker reveals one token every `interval` seconds
    paused    some tokens revealed, not advancing
    complete  every target token has been revealed

The ticker is injectable: AsyncioTicker runs on the event loop,
ManualTicker advances virtual time for deterministic tests.
"""

import asyncio
import logging
from dataclasses import asdict, dataclass
from typing import Callable, List, Optional, Protocol, Sequence

from .types import Token

logger = logging.getLogger(__name__)

PLAYBACK_INTERVAL = 1.5

IDLE = "idle"
PLAYING = "playing"
PAUSED = "paused"
COMPLETE = "complete"


# =============================================================================
# Tickers
# =============================================================================

class Ticker(Protocol):
    """Calls a callback every `interval` seconds until cancelled."""

    @property
    def running(self) -> bool:
        ...

    def start(self, interval: float, callback: Callable[[], None]) -> None:
        ...

    def cancel(self) -> None:
        ...


class AsyncioTicker:
    """Ticker backed by an asyncio task. start() needs a running loop."""

    def __init__(self):
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self, interval: float, callback: Callable[[], None]) -> None:
        self.cancel()
        self._task = asyncio.create_task(self._run(interval, callback))

    async def _run(self, interval: float, callback: Callable[[], None]):
        while True:
            await asyncio.sleep(interval)
            callback()

    def cancel(self) -> None:
        if self._task is not None:
            self._task.cancel()
            self._task = None


class ManualTicker:
    """
    Ticker driven by virtual time.

    Usage:
        ticker = ManualTicker()
        controller = PlaybackController(ticker=ticker)
        controller.start()
        ticker.advance(3.0)  # two ticks at 1.5s
    """

    def __init__(self):
        self.now = 0.0
        self._interval: Optional[float] = None
        self._callback: Optional[Callable[[], None]] = None
        self._next_fire: Optional[float] = None

    @property
    def running(self) -> bool:
        return self._callback is not None

    def start(self, interval: float, callback: Callable[[], None]) -> None:
        self._interval = interval
        self._callback = callback
        self._next_fire = self.now + interval

    def cancel(self) -> None:
        self._callback = None
        self._next_fire = None

    def advance(self, seconds: float) -> int:
        """Move virtual time forward, firing due ticks. Returns tick count."""
        end = self.now + seconds
        fired = 0
        while self._callback is not None and self._next_fire <= end + 1e-9:
            self.now = self._next_fire
            self._next_fire += self._interval
            fired += 1
            self._callback()
        self.now = end
        return fired


# =============================================================================
# Controller
# =============================================================================

@dataclass
class PlaybackState:
    """Snapshot of the controller, safe to hand to the presentation layer."""
    state: str
    generated_count: int
    total: int
    is_playing: bool
    is_complete: bool
    active_target_index: Optional[int]

    def to_dict(self) -> dict:
        return asdict(self)


class PlaybackController:
    """
    Token-by-token reveal of a target sequence.

    Args:
        ticker: Timer used while playing (AsyncioTicker by default)
        interval: Seconds between automatic steps

    Usage:
        controller = PlaybackController()
        controller.load(result.target_tokens)
        controller.start()
    """

    def __init__(self, ticker: Optional[Ticker] = None, interval: float = PLAYBACK_INTERVAL):
        self.ticker = ticker if ticker is not None else AsyncioTicker()
        self.interval = interval
        self._targets: List[Token] = []
        self.revealed: List[Token] = []
        self.active_target_index: Optional[int] = None
        self.is_playing = False
        self.is_complete = False
        self._listeners: List[Callable[[PlaybackState], None]] = []

    @property
    def total(self) -> int:
        return len(self._targets)

    @property
    def generated_count(self) -> int:
        return len(self.revealed)

    @property
    def state(self) -> str:
        if self.is_complete:
            return COMPLETE
        if self.is_playing:
            return PLAYING
        if self.generated_count == 0:
            return IDLE
        return PAUSED

    def snapshot(self) -> PlaybackState:
        return PlaybackState(
            state=self.state,
            generated_count=self.generated_count,
            total=self.total,
            is_playing=self.is_playing,
            is_complete=self.is_complete,
            active_target_index=self.active_target_index,
        )

    def add_listener(self, listener: Callable[[PlaybackState], None]):
        """Register a callback invoked with a snapshot after each mutation."""
        self._listeners.append(listener)

    def remove_listener(self, listener: Callable[[PlaybackState], None]):
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _notify(self):
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            listener(snapshot)

    # =========================================================================
    # Commands
    # =========================================================================

    def load(self, targets: Sequence[Token]):
        """Install a new target sequence; stops and clears any playback."""
        self.pause()
        self.reset()
        self._targets = list(targets)
        logger.info(f"Playback loaded with {self.total} target tokens")
        self._notify()

    def start(self) -> bool:
        """
        Start or resume automatic playback.

        A completed playback is reset first, so start() after the end
        replays from the beginning.
        """
        if self.is_playing or not self._targets:
            return False
        if self.is_complete:
            self.reset()

        self.ticker.cancel()
        self.is_playing = True
        self.ticker.start(self.interval, self._tick)
        self._notify()
        return True

    def pause(self) -> bool:
        if not self.is_playing:
            return False
        self.ticker.cancel()
        self.is_playing = False
        self._notify()
        return True

    def toggle(self) -> bool:
        """Play/pause button: pause when playing, start otherwise."""
        return self.pause() if self.is_playing else self.start()

    def step(self) -> bool:
        """
        Reveal one token manually.

        Rejected (returns False, no change) while playing or once complete.
        """
        if self.is_playing or self.is_complete:
            return False
        return self._advance()

    def reset(self):
        self.ticker.cancel()
        self.revealed = []
        self.active_target_index = None
        self.is_playing = False
        self.is_complete = False
        self._notify()

    def select(self, index: Optional[int]):
        """Pin a revealed target token, or unpin it when already pinned."""
        if index is not None and not any(t.index == index for t in self.revealed):
            raise ValueError(f"Target token {index} has not been generated yet")
        self.active_target_index = None if index == self.active_target_index else index
        self._notify()

    def close(self):
        """Teardown: stop the timer without touching revealed tokens."""
        self.ticker.cancel()
        self.is_playing = False

    # =========================================================================
    # Internals
    # =========================================================================

    def _tick(self):
        if not self.is_playing:
            return
        try:
            self._advance()
        except Exception as e:
            # A failing tick must not leave "playing" with no timer behind it
            logger.error(f"Playback tick failed: {e}")
            self.ticker.cancel()
            self.is_playing = False

    def _advance(self) -> bool:
        if self.generated_count >= self.total:
            self._finish()
            self._notify()
            return False

        token = self._targets[self.generated_count]
        self.revealed.append(token)
        self.active_target_index = token.index

        if self.generated_count >= self.total:
            self._finish()

        self._notify()
        return True

    def _finish(self):
        self.ticker.cancel()
        self.is_playing = False
        self.is_complete = True
