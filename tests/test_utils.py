from __future__ import annotations

import unittest

from affilink.utils import (
    absolute_url,
    amazon_title_from_url,
    encode_uri_component,
    humanize_slug,
    is_absolute_url,
)


class UtilsTests(unittest.TestCase):
    def test_encode_uri_component_matches_browser(self) -> None:
        self.assertEqual(
            encode_uri_component("https://www.amazon.com/dp/B01?tag=a b&x=(1)"),
            "https%3A%2F%2Fwww.amazon.com%2Fdp%2FB01%3Ftag%3Da%20b%26x%3D(1)",
        )

    def test_is_absolute_url(self) -> None:
        self.assertTrue(is_absolute_url("https://example.com/a"))
        self.assertFalse(is_absolute_url("/cat-shelf-guide/"))
        self.assertFalse(is_absolute_url(None))

    def test_absolute_url_resolves_site_paths(self) -> None:
        self.assertEqual(absolute_url("https://example.com/", "/gear/"), "https://example.com/gear/")
        self.assertEqual(absolute_url("https://example.com", ""), "https://example.com/")
        self.assertEqual(absolute_url("https://example.com", "https://other.test/x"), "https://other.test/x")

    def test_humanize_slug(self) -> None:
        self.assertEqual(humanize_slug("cat-TREE"), "Cat Tree")
        self.assertEqual(humanize_slug("cat-TREE", lower_rest=False), "Cat TREE")

    def test_amazon_title_from_url(self) -> None:
        self.assertEqual(
            amazon_title_from_url("https://www.amazon.com/Cat-Wall-Shelves/dp/B0ABC?tag=x"),
            "Cat Wall Shelves",
        )
        self.assertIsNone(amazon_title_from_url("https://amzn.to/abc"))
        self.assertIsNone(amazon_title_from_url(None))


if __name__ == "__main__":
    unittest.main()
