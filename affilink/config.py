"""Configuration helpers for the affilink preview generator and dispatcher."""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Tuple

BASE_DIR = Path(__file__).resolve().parent.parent
TEMPLATE_DIR = Path(__file__).resolve().parent / "templates"
LINKS_FILE_NAME = "amazonLinks.json"
PREVIEW_DIR_NAME = "affiliate"

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class DispatchTimings:
    """Delays (in seconds) used by the redirect dispatcher's fallback timers."""

    embedded_fallback: float = 2.4
    standalone_fallback: float = 1.0
    overlay_fallback: float = 0.05

    def as_milliseconds(self) -> dict:
        return {
            "embeddedFallback": int(round(self.embedded_fallback * 1000)),
            "standaloneFallback": int(round(self.standalone_fallback * 1000)),
            "overlayFallback": int(round(self.overlay_fallback * 1000)),
        }


@dataclass(frozen=True)
class SiteSettings:
    """Site level settings used for preview pages and redirects."""

    base_url: str = "https://www.outdoorsavannah.com"
    brand: str = "Raja and David®"
    profile_image_url: str = (
        "https://www.outdoorsavannah.com/wp-content/uploads/2025/04/"
        "cropped-profile-pic-yt_1.1.2-scaled-2-300x300.webp"
    )
    default_og_image: str = "https://www.outdoorsavannah.com/default-og-image.webp"
    fb_app_id: str = "1234567890"
    twitter_site: str = "@outdoorsavannah"
    twitter_creator: str = "@outdoorsavannah"
    links_path: str = "/" + LINKS_FILE_NAME
    featured_pages: Tuple[str, ...] = ("cat-shelf-guide",)
    timings: DispatchTimings = DispatchTimings()

    @property
    def host(self) -> str:
        return self.base_url.split("://", 1)[-1].split("/", 1)[0]


def _env(name: str, default: str | None = None) -> str | None:
    value = os.getenv(name)
    if value is None:
        return default
    value = value.strip()
    return value or default


def _env_seconds(name: str, default: float) -> float:
    """Read a millisecond environment value and return it in seconds."""

    raw = _env(name)
    if raw is None:
        return default
    try:
        milliseconds = float(raw)
    except ValueError:
        LOGGER.warning("Ignoring non-numeric %s=%r", name, raw)
        return default
    if milliseconds < 0:
        LOGGER.warning("Ignoring negative %s=%r", name, raw)
        return default
    return milliseconds / 1000.0


def load_timings() -> DispatchTimings:
    defaults = DispatchTimings()
    return DispatchTimings(
        embedded_fallback=_env_seconds("AFFILINK_EMBEDDED_FALLBACK_MS", defaults.embedded_fallback),
        standalone_fallback=_env_seconds("AFFILINK_STANDALONE_FALLBACK_MS", defaults.standalone_fallback),
        overlay_fallback=_env_seconds("AFFILINK_OVERLAY_FALLBACK_MS", defaults.overlay_fallback),
    )


def load_settings() -> SiteSettings:
    defaults = SiteSettings()
    featured_env = _env("SITE_FEATURED_PAGES")
    featured = defaults.featured_pages
    if featured_env is not None:
        featured = tuple(item.strip().strip("/") for item in featured_env.split(",") if item.strip())
    twitter = _env("SITE_TWITTER", defaults.twitter_site) or defaults.twitter_site
    return SiteSettings(
        base_url=(_env("SITE_BASE_URL", defaults.base_url) or defaults.base_url).rstrip("/"),
        brand=_env("SITE_BRAND", defaults.brand) or defaults.brand,
        profile_image_url=_env("SITE_PROFILE_IMAGE", defaults.profile_image_url) or defaults.profile_image_url,
        default_og_image=_env("SITE_DEFAULT_OG_IMAGE", defaults.default_og_image) or defaults.default_og_image,
        fb_app_id=_env("SITE_FB_APP_ID", defaults.fb_app_id) or defaults.fb_app_id,
        twitter_site=twitter,
        twitter_creator=_env("SITE_TWITTER_CREATOR", twitter) or twitter,
        links_path=_env("AFFILINK_LINKS_PATH", defaults.links_path) or defaults.links_path,
        featured_pages=featured,
        timings=load_timings(),
    )
