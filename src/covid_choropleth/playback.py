"""
Time Series Playback Module

Replays a reconstructed series onto the map renderer one date per tick. The
tick source is injected so playback can run on an asyncio loop, be stepped by
hand from a UI loop, or be driven deterministically in tests.
"""

import asyncio
from enum import Enum
from typing import Callable, Dict, List, Mapping, Optional, Protocol

from .code_resolver import normalize_display_name
from .color_encoder import encode_many
from .config.constants import PLAYBACK_INTERVAL_SECONDS
from .config.logging_config import get_logger
from .timeseries import Series

logger = get_logger(__name__)


class MapRenderer(Protocol):
    """What playback and selection need from a choropleth map."""

    def reset(self) -> None: ...

    def update_choropleth(self, colors: Mapping[str, str]) -> None: ...

    def show_date(self, label: str) -> None: ...


class Timer(Protocol):
    def schedule_repeating(self, interval: float, callback: Callable[[], None]): ...

    def cancel(self, handle) -> None: ...


class ManualTimer:
    """Repeating timer that only ticks when :meth:`fire` is called."""

    def __init__(self):
        self._callbacks: Dict[int, Callable[[], None]] = {}
        self._next_handle = 0
        self.interval: Optional[float] = None

    def schedule_repeating(self, interval: float, callback: Callable[[], None]) -> int:
        handle = self._next_handle
        self._next_handle += 1
        self._callbacks[handle] = callback
        self.interval = interval
        return handle

    def cancel(self, handle: int) -> None:
        self._callbacks.pop(handle, None)

    @property
    def active_count(self) -> int:
        return len(self._callbacks)

    def fire(self, times: int = 1) -> None:
        """Run every active callback ``times`` times."""
        for _ in range(times):
            for callback in list(self._callbacks.values()):
                callback()


class _RepeatingCall:
    def __init__(self, loop: asyncio.AbstractEventLoop, interval: float, callback: Callable[[], None]):
        self._loop = loop
        self._interval = interval
        self._callback = callback
        self._cancelled = False
        self._handle = loop.call_later(interval, self._run)

    def _run(self) -> None:
        if self._cancelled:
            return
        # Next call is queued first so the callback may cancel it
        self._handle = self._loop.call_later(self._interval, self._run)
        self._callback()

    def cancel(self) -> None:
        self._cancelled = True
        self._handle.cancel()


class AsyncioTimer:
    """Repeating timer on an asyncio event loop (single thread, cooperative)."""

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self._loop = loop

    def schedule_repeating(self, interval: float, callback: Callable[[], None]) -> _RepeatingCall:
        loop = self._loop or asyncio.get_running_loop()
        return _RepeatingCall(loop, interval, callback)

    def cancel(self, handle: _RepeatingCall) -> None:
        handle.cancel()


class PlaybackState(Enum):
    IDLE = "idle"
    PLAYING = "playing"


class PlaybackScheduler:
    """
    Idle/Playing state machine that animates the confirmed and deaths series.

    Playback loops forever: once the cursor passes the last date the map is reset
    and the animation starts over from the first date.
    """

    def __init__(
        self,
        confirmed: Series,
        deaths: Series,
        code_table: Mapping[str, str],
        renderer: MapRenderer,
        timer: Timer,
        interval: float = PLAYBACK_INTERVAL_SECONDS,
    ):
        if interval <= 0:
            raise ValueError(f"Playback interval must be positive, got {interval}")

        self.confirmed = confirmed
        self.deaths = deaths
        self.code_table = code_table
        self.renderer = renderer
        self.timer = timer
        self.interval = interval
        self.state = PlaybackState.IDLE
        self.cursor = 0
        self._dates: List[str] = list(confirmed)
        self._handle = None

    @property
    def dates(self) -> List[str]:
        return list(self._dates)

    @property
    def is_playing(self) -> bool:
        return self.state is PlaybackState.PLAYING

    def start(self) -> None:
        """Reset the map, render the first date right away and start ticking."""
        if self.is_playing:
            return
        if not self._dates:
            logger.warning("No time series loaded, playback not started")
            return

        self._cancel_tick()
        self.renderer.reset()
        self.cursor = 0
        self.tick()
        self._handle = self.timer.schedule_repeating(self.interval, self.tick)
        self.state = PlaybackState.PLAYING
        logger.info(f"Playback started over {len(self._dates)} dates")

    def stop(self) -> None:
        """Cancel the tick and return the map to the default fill."""
        if not self.is_playing:
            return

        self._cancel_tick()
        self.renderer.reset()
        self.state = PlaybackState.IDLE
        logger.info(f"Playback stopped at frame {self.cursor}")

    def toggle(self) -> PlaybackState:
        if self.is_playing:
            self.stop()
        else:
            self.start()
        return self.state

    def _cancel_tick(self) -> None:
        if self._handle is not None:
            self.timer.cancel(self._handle)
            self._handle = None

    def frame_colors(self, date_key: str) -> Dict[str, str]:
        """
        Colour map for one date of the series.

        Only countries with confirmed + deaths > 0 get a colour; everything else
        keeps the default fill.

        Args:
            date_key: "M/D/YY" key of the frame

        Returns:
            Dictionary of country code -> HSL colour
        """
        confirmed = self.confirmed.get(date_key, {})
        deaths = self.deaths.get(date_key, {})

        codes, confirmed_counts, death_counts = [], [], []
        for country, count in confirmed.items():
            dead = deaths.get(country, 0)
            if count + dead <= 0:
                continue
            code = self.code_table.get(normalize_display_name(country))
            if not code:
                logger.debug(f"No country code for series region '{country}' on {date_key}")
                continue
            codes.append(code)
            confirmed_counts.append(count)
            death_counts.append(dead)

        return dict(zip(codes, encode_many(confirmed_counts, death_counts)))

    def tick(self) -> None:
        """Render the frame under the cursor and advance one date."""
        if not self._dates:
            return

        if self.cursor >= len(self._dates):
            self.renderer.reset()
            self.cursor = 0

        date_key = self._dates[self.cursor]
        colors = self.frame_colors(date_key)
        self.renderer.show_date(date_key)
        self.renderer.update_choropleth(colors)
        self.cursor += 1
