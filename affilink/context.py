"""User-agent sniffing for the redirect dispatcher."""
from __future__ import annotations

import re
from functools import lru_cache

from .models import NavigationContext, Platform

_IOS = re.compile(r"iPhone|iPad|iPod", re.IGNORECASE)
_ANDROID = re.compile(r"Android", re.IGNORECASE)
_MOBILE = re.compile(
    r"Mobile|iPhone|iPad|iPod|Android|BlackBerry|IEMobile|Kindle|Silk-Accelerated|(hpw|web)OS|Opera M(obi|ini)",
    re.IGNORECASE,
)
# Social and chat apps that open links in their own web view.
_APP_BROWSER = re.compile(
    r"((?:fban/fbios|fb_iab/fb4a)(?!.+fbav)|;fbav/([\w.]+);|metaiab|instagram|barcelona|threads"
    r"|linkedin|twitter|tiktok|wechat|line)",
    re.IGNORECASE,
)
_NON_CHROME_CHROMIUM = ("Edg", "OPR", "Brave")


def is_chromium_android(user_agent: str) -> bool:
    return (
        "Chrome" in user_agent
        and "Android" in user_agent
        and not any(marker in user_agent for marker in _NON_CHROME_CHROMIUM)
    )


@lru_cache(maxsize=256)
def detect_navigation_context(user_agent: str) -> NavigationContext:
    """Classify a user agent once; repeated calls return the same context."""

    ua = user_agent or ""
    if _IOS.search(ua):
        platform = Platform.IOS
    elif _ANDROID.search(ua):
        platform = Platform.ANDROID
    else:
        platform = Platform.OTHER
    return NavigationContext(
        platform=platform,
        is_app_embedded_browser=bool(_APP_BROWSER.search(ua)),
        is_mobile=bool(_MOBILE.search(ua)),
        is_chromium_android=is_chromium_android(ua),
    )
