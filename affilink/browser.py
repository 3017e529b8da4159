"""Window/location abstraction the redirect dispatcher navigates through."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, List, Protocol

from .scheduling import VirtualScheduler

LOGGER = logging.getLogger(__name__)

REPLACE = "replace"
ASSIGN = "assign"
IFRAME = "iframe"
OVERLAY = "overlay"


def is_web_url(url: str) -> bool:
    lowered = url.lower()
    return lowered.startswith(("http://", "https://", "/"))


class Navigator(Protocol):
    """What the dispatcher may do to the page it runs in."""

    @property
    def visible(self) -> bool:
        ...

    def replace(self, url: str) -> None:
        ...

    def assign(self, url: str) -> None:
        ...

    def open_in_iframe(self, url: str) -> None:
        ...

    def show_overlay(self, on_tap: Callable[[], None]) -> None:
        ...

    def on_leave(self, callback: Callable[[], None]) -> None:
        ...


@dataclass(frozen=True)
class NavigationEvent:
    method: str
    url: str
    at: float

    def describe(self) -> str:
        target = f" {self.url}" if self.url else ""
        return f"{self.at * 1000:7.0f}ms  {self.method}{target}"


class SimulatedWindow:
    """A browser tab replayed on a virtual clock.

    Web navigations unload the page. Deep links hand off to a native app only
    when ``app_installed`` is set, which hides the page. A visitor who
    ``taps_overlay`` taps the continue overlay ``tap_delay`` seconds after it
    appears.
    """

    def __init__(
        self,
        scheduler: VirtualScheduler,
        *,
        app_installed: bool = False,
        taps_overlay: bool = False,
        tap_delay: float = 0.3,
    ) -> None:
        self.scheduler = scheduler
        self.app_installed = app_installed
        self.taps_overlay = taps_overlay
        self.tap_delay = tap_delay
        self.history: List[NavigationEvent] = []
        self.unloaded = False
        self.hidden = False
        self._leave_callbacks: List[Callable[[], None]] = []

    @property
    def visible(self) -> bool:
        return not (self.unloaded or self.hidden)

    @property
    def navigations(self) -> List[NavigationEvent]:
        return [event for event in self.history if event.method in (REPLACE, ASSIGN)]

    def _record(self, method: str, url: str) -> None:
        self.history.append(NavigationEvent(method=method, url=url, at=self.scheduler.now))

    def _leave(self, reason: str) -> None:
        if not self.visible:
            return
        LOGGER.debug("Page %s at %.3fs", reason, self.scheduler.now)
        if reason == "unloaded":
            self.unloaded = True
        else:
            self.hidden = True
        callbacks, self._leave_callbacks = self._leave_callbacks, []
        for callback in callbacks:
            callback()

    def _follow(self, url: str) -> None:
        if is_web_url(url):
            self._leave("unloaded")
        elif self.app_installed:
            self._leave("hidden")

    def replace(self, url: str) -> None:
        self._record(REPLACE, url)
        self._follow(url)

    def assign(self, url: str) -> None:
        self._record(ASSIGN, url)
        self._follow(url)

    def open_in_iframe(self, url: str) -> None:
        self._record(IFRAME, url)
        if not is_web_url(url) and self.app_installed:
            self._leave("hidden")

    def show_overlay(self, on_tap: Callable[[], None]) -> None:
        self._record(OVERLAY, "")
        if not self.taps_overlay:
            return

        def _tap() -> None:
            if self.visible:
                on_tap()

        self.scheduler.call_later(self.tap_delay, _tap)

    def on_leave(self, callback: Callable[[], None]) -> None:
        if not self.visible:
            callback()
            return
        self._leave_callbacks.append(callback)
