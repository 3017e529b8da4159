"""Redirect dispatcher for affiliate preview pages.

A visitor lands on ``/affiliate/<page>?variant=<key>``. The dispatcher decides
whether to hand the visit to a native shopping app through a deep link or to
send the browser to the plain web URL, and races every deep-link attempt
against a fallback timer so the visitor never gets stuck on the preview page.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, List, Optional

from .browser import Navigator
from .config import SiteSettings, load_settings
from .intents import INTENT_PREFIX, is_custom_scheme, normalize_intent_link
from .links import LinkTableError
from .models import (
    AMAZON_PRODUCT_KEY,
    HOME_PRODUCT_KEY,
    BrowserContext,
    LinkTable,
    NavigationContext,
    RedirectRequest,
    VariantMap,
)
from .scheduling import FallbackTimer, Scheduler
from .utils import absolute_url

LOGGER = logging.getLogger(__name__)

SITE_ROOT = "/"
SAFARI_ESCAPE_PREFIX = "x-safari-"

LinkLoader = Callable[[], LinkTable]


class DispatchOutcome(str, Enum):
    SKIPPED = "skipped"
    INERT = "inert"
    CANONICAL = "canonical"
    FAILED = "failed"
    DIRECT = "direct"
    DEEP_LINK = "deep-link"


@dataclass(frozen=True)
class Resolution:
    target_key: Optional[str]
    target_link: str


def canonical_page_url(product_key: str) -> Optional[str]:
    """Path of the site page a preview stands in for; ``None`` for ``amzn``."""

    if product_key == HOME_PRODUCT_KEY:
        return SITE_ROOT
    if product_key == AMAZON_PRODUCT_KEY:
        return None
    return f"/{product_key.strip('/')}/"


def resolve_target(variants: VariantMap, variant: Optional[str]) -> Resolution:
    """Pick the variant to send the visitor to, defaulting to the first one."""

    candidates = variants.web_variants()
    target_key = variants.match(variant)
    if target_key is None:
        target_key = candidates[0] if candidates else None
    return Resolution(target_key=target_key, target_link=variants.web_url(target_key) or SITE_ROOT)


def safari_escape_url(url: str) -> str:
    return SAFARI_ESCAPE_PREFIX + url


class RedirectDispatcher:
    def __init__(
        self,
        *,
        navigator: Navigator,
        scheduler: Scheduler,
        load_links: LinkLoader,
        settings: SiteSettings | None = None,
    ) -> None:
        self.navigator = navigator
        self.scheduler = scheduler
        self.load_links = load_links
        self.settings = settings or load_settings()
        self.timers: List[FallbackTimer] = []
        self._handlers: Dict[BrowserContext, Callable[[VariantMap, Resolution], None]] = {
            BrowserContext.DESKTOP: self._go_direct,
            BrowserContext.ANDROID_OTHER: self._go_direct,
            BrowserContext.ANDROID_EMBEDDED: self._android_embedded,
            BrowserContext.ANDROID_CHROMIUM: self._android_chromium,
            BrowserContext.IOS_EMBEDDED: self._ios_embedded,
            BrowserContext.IOS_STANDALONE: self._ios_standalone,
        }

    # ------------------------------------------------------------------
    # Public API

    def dispatch(self, request: RedirectRequest, context: NavigationContext) -> DispatchOutcome:
        if not request.product_key:
            return DispatchOutcome.INERT
        if request.skip_redirect:
            LOGGER.debug("skipredirect set; staying on preview for %s", request.product_key)
            return DispatchOutcome.SKIPPED

        if not request.variant:
            page_url = canonical_page_url(request.product_key)
            if page_url is None:
                return DispatchOutcome.INERT
            self.navigator.replace(page_url)
            return DispatchOutcome.CANONICAL

        try:
            table = self.load_links()
        except LinkTableError as exc:
            LOGGER.error("Failed to load link table: %s", exc)
            self.navigator.replace(SITE_ROOT)
            return DispatchOutcome.FAILED

        variants = table.get(request.product_key)
        if variants is None:
            LOGGER.error("Product %s not found in link table", request.product_key)
            self.navigator.replace(SITE_ROOT)
            return DispatchOutcome.FAILED

        resolution = resolve_target(variants, request.variant)
        browser_context = context.browser_context
        LOGGER.info(
            "Dispatching %s/%s as %s to %s",
            request.product_key,
            resolution.target_key,
            browser_context.value,
            resolution.target_link,
        )
        self._handlers[browser_context](variants, resolution)
        if browser_context in (BrowserContext.DESKTOP, BrowserContext.ANDROID_OTHER):
            return DispatchOutcome.DIRECT
        return DispatchOutcome.DEEP_LINK

    # ------------------------------------------------------------------
    # Navigation helpers

    def _assign(self, url: Optional[str]) -> None:
        if not url:
            LOGGER.debug("No deep link available; relying on fallback timer")
            return
        self.navigator.assign(url)

    def _start_fallback(self, delay: float, url: str) -> FallbackTimer:
        def _fallback() -> None:
            if self.navigator.visible:
                LOGGER.info("Deep link did not take over after %.2fs; opening %s", delay, url)
                self.navigator.assign(url)

        timer = FallbackTimer(self.scheduler, delay, _fallback)
        self.navigator.on_leave(timer.user_left)
        self.timers.append(timer)
        return timer

    def _offer_overlay(self, deep_link: Optional[str], target_link: str) -> None:
        def _on_tap() -> None:
            if deep_link:
                self.navigator.open_in_iframe(deep_link)
            self._start_fallback(self.settings.timings.overlay_fallback, target_link)

        self.navigator.show_overlay(_on_tap)

    # ------------------------------------------------------------------
    # Per-context strategies

    def _go_direct(self, variants: VariantMap, resolution: Resolution) -> None:
        self.navigator.replace(resolution.target_link)

    def _android_embedded(self, variants: VariantMap, resolution: Resolution) -> None:
        deep_link = variants.android_deep_link(resolution.target_key)
        if deep_link and (deep_link.startswith(INTENT_PREFIX) or is_custom_scheme(deep_link)):
            fallback = absolute_url(self.settings.base_url, resolution.target_link)
            deep_link = normalize_intent_link(deep_link, fallback)
        # No intent to hand off, so the timer carries the visitor to the web URL.
        fallback_target = SITE_ROOT if deep_link else resolution.target_link
        self._start_fallback(self.settings.timings.embedded_fallback, fallback_target)
        self._assign(deep_link)

    def _android_chromium(self, variants: VariantMap, resolution: Resolution) -> None:
        deep_link = variants.android_deep_link(resolution.target_key)
        self._start_fallback(self.settings.timings.standalone_fallback, resolution.target_link)
        self._offer_overlay(deep_link, resolution.target_link)
        self._assign(deep_link)

    def _ios_embedded(self, variants: VariantMap, resolution: Resolution) -> None:
        target = absolute_url(self.settings.base_url, resolution.target_link)
        self._start_fallback(self.settings.timings.embedded_fallback, SITE_ROOT)
        self._assign(safari_escape_url(target))

    def _ios_standalone(self, variants: VariantMap, resolution: Resolution) -> None:
        deep_link = variants.ios_deep_link(resolution.target_key)
        self._start_fallback(self.settings.timings.standalone_fallback, resolution.target_link)
        self._offer_overlay(deep_link, resolution.target_link)
