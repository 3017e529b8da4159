"""Data models used by the affilink generator and redirect dispatcher."""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterator, List, Mapping, Optional
from urllib.parse import parse_qs, unquote, urlsplit

IOS_DEEPLINK_SUFFIX = "_deeplink_ios"
ANDROID_DEEPLINK_SUFFIX = "_deeplink_android"
DEEPLINK_SUFFIXES = (IOS_DEEPLINK_SUFFIX, ANDROID_DEEPLINK_SUFFIX)

AMAZON_PRODUCT_KEY = "amzn"
HOME_PRODUCT_KEY = "home"

_HASH_VARIANT = re.compile(r"[?&]variant=([^&]*)")


def is_deeplink_key(key: str) -> bool:
    return key.endswith(DEEPLINK_SUFFIXES)


@dataclass
class VariantMap:
    """Ordered variant key to URL mapping for a single product."""

    links: Dict[str, str] = field(default_factory=dict)

    def web_variants(self) -> List[str]:
        """Return plain variant keys in insertion order, deep-link keys excluded."""

        return [key for key in self.links if not is_deeplink_key(key)]

    def match(self, variant: str | None) -> Optional[str]:
        """Case-insensitively find a plain variant key."""

        if not variant:
            return None
        wanted = variant.lower()
        for key in self.web_variants():
            if key.lower() == wanted:
                return key
        return None

    def web_url(self, key: str | None) -> Optional[str]:
        if not key:
            return None
        return self.links.get(key) or None

    def ios_deep_link(self, key: str | None) -> Optional[str]:
        if not key:
            return None
        return self.links.get(key + IOS_DEEPLINK_SUFFIX) or None

    def android_deep_link(self, key: str | None) -> Optional[str]:
        if not key:
            return None
        return self.links.get(key + ANDROID_DEEPLINK_SUFFIX) or None

    def to_dict(self) -> dict:
        return dict(self.links)

    @classmethod
    def from_dict(cls, payload: Mapping[str, object]) -> "VariantMap":
        links = {str(key): str(value) for key, value in payload.items() if isinstance(value, str)}
        return cls(links=links)


@dataclass
class LinkTable:
    """All products and their variant maps, as published in amazonLinks.json."""

    products: Dict[str, VariantMap] = field(default_factory=dict)

    def get(self, product_key: str) -> Optional[VariantMap]:
        return self.products.get(product_key)

    def __contains__(self, product_key: object) -> bool:
        return product_key in self.products

    def __iter__(self) -> Iterator[str]:
        return iter(self.products)

    def __len__(self) -> int:
        return len(self.products)

    def to_dict(self) -> dict:
        return {key: variants.to_dict() for key, variants in self.products.items()}

    @classmethod
    def from_dict(cls, payload: Mapping[str, object]) -> "LinkTable":
        products = {
            str(key): VariantMap.from_dict(value)
            for key, value in payload.items()
            if isinstance(value, Mapping)
        }
        return cls(products=products)


class Platform(str, Enum):
    IOS = "ios"
    ANDROID = "android"
    OTHER = "other"


class BrowserContext(str, Enum):
    """Closed set of browsing contexts the dispatcher distinguishes."""

    IOS_EMBEDDED = "ios-embedded"
    IOS_STANDALONE = "ios-standalone"
    ANDROID_EMBEDDED = "android-embedded"
    ANDROID_CHROMIUM = "android-chromium"
    ANDROID_OTHER = "android-other"
    DESKTOP = "desktop"


@dataclass(frozen=True)
class NavigationContext:
    """Browser facts derived once per page load from the user agent."""

    platform: Platform
    is_app_embedded_browser: bool
    is_mobile: bool
    is_chromium_android: bool = False

    @property
    def browser_context(self) -> BrowserContext:
        if not self.is_mobile:
            return BrowserContext.DESKTOP
        if self.platform is Platform.ANDROID:
            if self.is_app_embedded_browser:
                return BrowserContext.ANDROID_EMBEDDED
            if self.is_chromium_android:
                return BrowserContext.ANDROID_CHROMIUM
            return BrowserContext.ANDROID_OTHER
        if self.platform is Platform.IOS:
            if self.is_app_embedded_browser:
                return BrowserContext.IOS_EMBEDDED
            return BrowserContext.IOS_STANDALONE
        # Mobile devices outside iOS/Android never get deep links.
        return BrowserContext.DESKTOP


@dataclass(frozen=True)
class RedirectRequest:
    """What a preview page visitor asked for, parsed from the page URL."""

    product_key: str
    variant: Optional[str] = None
    skip_redirect: bool = False
    hash: str = ""

    @classmethod
    def from_page_url(cls, page_url: str, product_key: str) -> "RedirectRequest":
        parts = urlsplit(page_url)
        query = parse_qs(parts.query, keep_blank_values=True)
        fragment = "#" + parts.fragment if parts.fragment else ""

        variant = (query.get("variant") or [""])[0]
        if not variant and fragment:
            match = _HASH_VARIANT.search(fragment)
            if match:
                variant = unquote(match.group(1))
        if product_key == AMAZON_PRODUCT_KEY and not variant:
            filename = parts.path.rsplit("/", 1)[-1]
            if filename.endswith(".html"):
                filename = filename[: -len(".html")]
            if filename and filename != "index":
                variant = filename

        skip = (query.get("skipredirect") or [""])[0] == "true"
        return cls(
            product_key=product_key,
            variant=variant or None,
            skip_redirect=skip,
            hash=fragment,
        )
