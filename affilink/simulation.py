"""Replay a preview page visit against the redirect dispatcher."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import List

from .browser import NavigationEvent, SimulatedWindow
from .config import SiteSettings, load_settings
from .context import detect_navigation_context
from .dispatcher import DispatchOutcome, LinkLoader, RedirectDispatcher
from .models import NavigationContext, RedirectRequest
from .scheduling import VirtualScheduler


@dataclass
class VisitResult:
    request: RedirectRequest
    context: NavigationContext
    outcome: DispatchOutcome
    history: List[NavigationEvent] = field(default_factory=list)
    final_url: str | None = None

    def to_dict(self) -> dict:
        return {
            "product": self.request.product_key,
            "variant": self.request.variant,
            "context": self.context.browser_context.value,
            "outcome": self.outcome.value,
            "final_url": self.final_url,
            "history": [
                {"method": event.method, "url": event.url, "at_ms": int(round(event.at * 1000))}
                for event in self.history
            ],
        }


def simulate_visit(
    page_url: str,
    product_key: str,
    user_agent: str,
    load_links: LinkLoader,
    *,
    app_installed: bool = False,
    taps_overlay: bool = False,
    settings: SiteSettings | None = None,
) -> VisitResult:
    """Run the dispatcher for one visit and let every timer play out."""

    scheduler = VirtualScheduler()
    window = SimulatedWindow(scheduler, app_installed=app_installed, taps_overlay=taps_overlay)
    dispatcher = RedirectDispatcher(
        navigator=window,
        scheduler=scheduler,
        load_links=load_links,
        settings=settings or load_settings(),
    )
    request = RedirectRequest.from_page_url(page_url, product_key)
    context = detect_navigation_context(user_agent)
    outcome = dispatcher.dispatch(request, context)
    scheduler.run_until_idle()

    navigations = window.navigations
    return VisitResult(
        request=request,
        context=context,
        outcome=outcome,
        history=list(window.history),
        final_url=navigations[-1].url if navigations else None,
    )
