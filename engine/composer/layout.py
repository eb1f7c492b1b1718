"""
Storefront Composer — Responsive Layout / Carousel Controller

Grid vs. slider presentation, pointer-drag scrolling and hero slide rotation.

Interaction state lives in explicit handles:
  DragSession    — acquired on pointer-down, released on pointer-up/leave
  SlideRotation  — acquired on start, released on teardown

Both are context managers so release happens on every exit path.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Protocol

logger = logging.getLogger(__name__)

DRAG_GAIN = 2.0
PAGE_FRACTION = 0.8
MOBILE_BREAKPOINT = 768


# ---------------------------------------------------------------------------
# Layout planning
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class LayoutPlan:
    """How a resolved item list is arranged."""

    mode: str  # "grid" | "slider"
    item_count: int
    desktop_columns: int = 4
    mobile_columns: int = 2
    item_width: int = 280
    gap: int = 24

    @property
    def is_slider(self) -> bool:
        return self.mode == "slider"

    def css(self, selector: str) -> str:
        """CSS for the item track under `selector`."""
        if self.is_slider:
            return "\n".join(
                [
                    f"{selector} {{ display: flex; gap: {self.gap}px; overflow-x: auto; "
                    "scroll-behavior: smooth; scrollbar-width: none; cursor: grab; }}",
                    f"{selector}.is-dragging {{ cursor: grabbing; scroll-behavior: auto; }}",
                    f"{selector} > * {{ flex: 0 0 {self.item_width}px; }}",
                ]
            )
        return "\n".join(
            [
                f"{selector} {{ display: grid; gap: {self.gap}px; "
                f"grid-template-columns: repeat({self.mobile_columns}, minmax(0, 1fr)); }}",
                f"@media (min-width: {MOBILE_BREAKPOINT}px) {{ {selector} "
                f"{{ grid-template-columns: repeat({self.desktop_columns}, minmax(0, 1fr)); }} }}",
            ]
        )


def plan_layout(item_count: int, settings: Any) -> LayoutPlan:
    """Choose grid or slider from section settings (ItemSettings or VideoSettings)."""
    return LayoutPlan(
        mode="slider" if settings.is_slider else "grid",
        item_count=item_count,
        desktop_columns=settings.desktop_columns,
        mobile_columns=settings.mobile_columns,
        item_width=settings.item_width,
        gap=settings.gap,
    )


# ---------------------------------------------------------------------------
# Scroll region
# ---------------------------------------------------------------------------


class ScrollRegion:
    """
    A horizontally scrollable viewport.

    scroll_width is the full content width; when known, offsets clamp to
    [0, scroll_width - client_width]. Offsets never go below zero.
    """

    def __init__(self, scroll_left: float = 0.0, client_width: float = 0.0, scroll_width: float | None = None) -> None:
        self.client_width = client_width
        self.scroll_width = scroll_width
        self.last_behavior = "auto"
        self._scroll_left = 0.0
        self.scroll_left = scroll_left

    @property
    def scroll_left(self) -> float:
        return self._scroll_left

    @scroll_left.setter
    def scroll_left(self, value: float) -> None:
        upper = None
        if self.scroll_width is not None:
            upper = max(0.0, self.scroll_width - self.client_width)
        value = max(0.0, value)
        if upper is not None:
            value = min(value, upper)
        self._scroll_left = value

    def scroll_by(self, dx: float, behavior: str = "smooth") -> None:
        self.last_behavior = behavior
        self.scroll_left = self.scroll_left + dx


# ---------------------------------------------------------------------------
# Drag-to-scroll
# ---------------------------------------------------------------------------


class DragSession:
    """One pointer drag. Holds the starting pointer x and scroll offset."""

    def __init__(self, controller: SliderController, start_x: float, start_offset: float) -> None:
        self.controller = controller
        self.start_x = start_x
        self.start_offset = start_offset
        self.released = False

    def offset_for(self, x: float) -> float:
        return self.start_offset - (x - self.start_x) * self.controller.drag_gain

    def release(self) -> None:
        if self.released:
            return
        self.released = True
        if self.controller.session is self:
            self.controller.session = None


class SliderController:
    """
    Drag state machine for one slider region: idle → dragging → idle.

    Pointer-up and pointer-leave both release the drag unconditionally.
    Arrow controls scroll by 80% of the visible width regardless of state.
    """

    def __init__(self, region: ScrollRegion, drag_gain: float = DRAG_GAIN) -> None:
        self.region = region
        self.drag_gain = drag_gain
        self.session: DragSession | None = None

    @property
    def state(self) -> str:
        return "dragging" if self.session is not None else "idle"

    def pointer_down(self, x: float) -> DragSession:
        if self.session is not None:
            self.session.release()
        self.session = DragSession(self, x, self.region.scroll_left)
        return self.session

    def pointer_move(self, x: float) -> None:
        if self.session is None:
            return
        self.region.scroll_left = self.session.offset_for(x)

    def pointer_up(self) -> None:
        self._release()

    def pointer_leave(self) -> None:
        self._release()

    def _release(self) -> None:
        if self.session is not None:
            self.session.release()
        self.session = None

    @contextmanager
    def drag(self, x: float) -> Iterator[DragSession]:
        """Scoped drag: released however the block exits."""
        session = self.pointer_down(x)
        try:
            yield session
        finally:
            session.release()

    def scroll_next(self) -> None:
        self.region.scroll_by(self.region.client_width * PAGE_FRACTION, behavior="smooth")

    def scroll_prev(self) -> None:
        self.region.scroll_by(-self.region.client_width * PAGE_FRACTION, behavior="smooth")


# ---------------------------------------------------------------------------
# Slide rotation
# ---------------------------------------------------------------------------


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    def call_later(self, delay: float, callback: Callable[[], Any]) -> TimerHandle: ...


class SlideRotation:
    """
    Auto-advance through `slide_count` slides every `interval` seconds.

    No timer runs with fewer than two slides. release() cancels the timer
    and is safe to call more than once.
    """

    def __init__(
        self,
        slide_count: int,
        interval: float = 5.0,
        scheduler: Scheduler | None = None,
        on_advance: Callable[[int], Any] | None = None,
    ) -> None:
        self.slide_count = slide_count
        self.interval = interval
        self.scheduler = scheduler
        self.on_advance = on_advance
        self.current = 0
        self._timer: TimerHandle | None = None
        self.released = False

    @property
    def timer_active(self) -> bool:
        return self._timer is not None

    def start(self) -> SlideRotation:
        if self.slide_count < 2 or self.released:
            return self
        if self.scheduler is None:
            self.scheduler = asyncio.get_running_loop()
        self._schedule()
        return self

    def _schedule(self) -> None:
        self._timer = self.scheduler.call_later(self.interval, self._tick)

    def _tick(self) -> None:
        self._timer = None
        if self.released:
            return
        self.advance()
        self._schedule()

    def advance(self) -> int:
        if self.slide_count == 0:
            return self.current
        self.current = (self.current + 1) % self.slide_count
        if self.on_advance is not None:
            self.on_advance(self.current)
        return self.current

    def previous(self) -> int:
        if self.slide_count == 0:
            return self.current
        self.current = (self.current - 1) % self.slide_count
        if self.on_advance is not None:
            self.on_advance(self.current)
        return self.current

    def release(self) -> None:
        self.released = True
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def __enter__(self) -> SlideRotation:
        return self.start()

    def __exit__(self, *exc_info: Any) -> None:
        self.release()


def start_rotation(
    slide_count: int,
    interval: float = 5.0,
    scheduler: Scheduler | None = None,
    on_advance: Callable[[int], Any] | None = None,
) -> SlideRotation:
    """Start rotating slides. The caller must release() the returned handle."""
    rotation = SlideRotation(slide_count, interval=interval, scheduler=scheduler, on_advance=on_advance)
    rotation.start()
    if not rotation.timer_active:
        logger.debug("start_rotation: %d slide(s), no timer started", slide_count)
    return rotation
