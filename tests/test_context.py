from __future__ import annotations

import unittest

from affilink.context import detect_navigation_context, is_chromium_android
from affilink.models import BrowserContext, Platform

DESKTOP_CHROME = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0 Safari/537.36"
)
ANDROID_CHROME = (
    "Mozilla/5.0 (Linux; Android 14; Pixel 8) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0.0.0 Mobile Safari/537.36"
)
ANDROID_EDGE = ANDROID_CHROME + " EdgA/124.0.2478.50"
ANDROID_FIREFOX = "Mozilla/5.0 (Android 14; Mobile; rv:125.0) Gecko/125.0 Firefox/125.0"
ANDROID_INSTAGRAM = (
    "Mozilla/5.0 (Linux; Android 14; Pixel 8 Build/UQ1A; wv) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Version/4.0 Chrome/124.0 Mobile Safari/537.36 Instagram 330.0.0.40.92 Android"
)
IOS_SAFARI = (
    "Mozilla/5.0 (iPhone; CPU iPhone OS 17_4 like Mac OS X) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/17.4 Mobile/15E148 Safari/604.1"
)
IOS_FACEBOOK = (
    "Mozilla/5.0 (iPhone; CPU iPhone OS 17_4 like Mac OS X) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Mobile/15E148 [FBAN/FBIOS;FBDV/iPhone15,2;FBSV/17.4;FBAV/458.0.0.38.107;FBLC/en_US]"
)
BLACKBERRY = (
    "Mozilla/5.0 (BlackBerry; U; BlackBerry 9900; en) AppleWebKit/534.11+ "
    "(KHTML, like Gecko) Version/7.1.0.346 Mobile Safari/534.11+"
)


class DetectNavigationContextTests(unittest.TestCase):
    def assertContext(self, user_agent: str, expected: BrowserContext) -> None:
        self.assertEqual(detect_navigation_context(user_agent).browser_context, expected)

    def test_desktop_browser(self) -> None:
        context = detect_navigation_context(DESKTOP_CHROME)
        self.assertFalse(context.is_mobile)
        self.assertEqual(context.platform, Platform.OTHER)
        self.assertContext(DESKTOP_CHROME, BrowserContext.DESKTOP)

    def test_android_contexts(self) -> None:
        self.assertContext(ANDROID_CHROME, BrowserContext.ANDROID_CHROMIUM)
        self.assertContext(ANDROID_EDGE, BrowserContext.ANDROID_OTHER)
        self.assertContext(ANDROID_FIREFOX, BrowserContext.ANDROID_OTHER)
        self.assertContext(ANDROID_INSTAGRAM, BrowserContext.ANDROID_EMBEDDED)

    def test_ios_contexts(self) -> None:
        self.assertContext(IOS_SAFARI, BrowserContext.IOS_STANDALONE)
        self.assertContext(IOS_FACEBOOK, BrowserContext.IOS_EMBEDDED)

    def test_other_mobile_platform_is_dispatched_like_desktop(self) -> None:
        context = detect_navigation_context(BLACKBERRY)
        self.assertTrue(context.is_mobile)
        self.assertEqual(context.platform, Platform.OTHER)
        self.assertContext(BLACKBERRY, BrowserContext.DESKTOP)

    def test_detection_is_memoized(self) -> None:
        self.assertIs(detect_navigation_context(IOS_SAFARI), detect_navigation_context(IOS_SAFARI))

    def test_chromium_android_excludes_other_chromium_brands(self) -> None:
        self.assertTrue(is_chromium_android(ANDROID_CHROME))
        self.assertFalse(is_chromium_android(ANDROID_CHROME + " OPR/80.0"))
        self.assertFalse(is_chromium_android(DESKTOP_CHROME))


if __name__ == "__main__":
    unittest.main()
