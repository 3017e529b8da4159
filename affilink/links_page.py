"""WordPress block markup for the "All Affiliate Links" page."""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from html import escape as html_escape
from pathlib import Path
from typing import List, Sequence

from .config import BASE_DIR, PREVIEW_DIR_NAME, TEMPLATE_DIR, SiteSettings, load_settings
from .generator import PRODUCT_DIR_NAME, extract_og_meta
from .models import AMAZON_PRODUCT_KEY, HOME_PRODUCT_KEY, LinkTable, VariantMap
from .utils import amazon_title_from_url, humanize_slug

LOGGER = logging.getLogger(__name__)

TAIL_TEMPLATE_PATH = TEMPLATE_DIR / "links_page_tail.html"
GUIDE_PRODUCT_KEY = "cat-shelf-guide"
EXTRA_LINK_PREFIX = "extralink"
EXCLUDED_PRODUCTS = frozenset({HOME_PRODUCT_KEY, "about"})
DISPLAY_NAMES = {
    AMAZON_PRODUCT_KEY: "Amazon",
    GUIDE_PRODUCT_KEY: "Cat Shelf Guide",
}

_SPACER = (
    '<!-- wp:spacer {{"height":"{height}"}} -->\n'
    '<div style="height:{height}" aria-hidden="true" class="wp-block-spacer"></div>\n'
    "<!-- /wp:spacer -->"
)

_INTRO = """<!-- wp:heading -->
<h2 class="wp-block-heading">All Affiliate Links</h2>
<!-- /wp:heading -->

<!-- wp:paragraph -->
<p>Click any button to visit the affiliate link, or click "Copy" to copy the link to share.</p>
<!-- /wp:paragraph -->

"""


def display_name(product_key: str) -> str:
    if product_key in DISPLAY_NAMES:
        return DISPLAY_NAMES[product_key]
    slug = product_key
    if slug.startswith(PRODUCT_DIR_NAME + "/"):
        slug = slug[len(PRODUCT_DIR_NAME) + 1:]
    return humanize_slug(slug, lower_rest=False)


def variant_display_name(product_key: str, variant_key: str, variants: VariantMap) -> str:
    if product_key == GUIDE_PRODUCT_KEY and variant_key.startswith(EXTRA_LINK_PREFIX):
        inferred = amazon_title_from_url(variants.ios_deep_link(variant_key))
        if inferred:
            return inferred
    return humanize_slug(variant_key, lower_rest=False)


def listed_variants(product_key: str, variants: VariantMap) -> List[str]:
    """Variants shown on the page.

    The guide only lists its extra links, deduplicated by URL and without
    YouTube videos; every other product hides extra links.
    """

    keys = variants.web_variants()
    if product_key != GUIDE_PRODUCT_KEY:
        return [key for key in keys if not key.startswith(EXTRA_LINK_PREFIX)]
    seen = set()
    unique: List[str] = []
    for key in keys:
        if not key.startswith(EXTRA_LINK_PREFIX):
            continue
        url = variants.web_url(key)
        if not url or "youtube.com" in url or url in seen:
            continue
        seen.add(url)
        unique.append(key)
    return unique


def sort_product_keys(keys: Sequence[str]) -> List[str]:
    """``product/*`` keys first, then everything else, each alphabetically."""

    return sorted(keys, key=lambda key: (not key.startswith(PRODUCT_DIR_NAME + "/"), key))


@dataclass(frozen=True)
class LinkEntry:
    name: str
    url: str
    button_text: str


class LinksPageBuilder:
    def __init__(self, site_root: Path | str = BASE_DIR, settings: SiteSettings | None = None) -> None:
        self.site_root = Path(site_root)
        self.settings = settings or load_settings()

    def preview_url(self, product_key: str, variant_key: str) -> str:
        base = self.settings.base_url.rstrip("/")
        slug = product_key
        if slug.startswith(PRODUCT_DIR_NAME + "/"):
            slug = slug[len(PRODUCT_DIR_NAME) + 1:]
        return f"{base}/{PREVIEW_DIR_NAME}/{slug}/{variant_key}"

    def product_image(self, product_key: str) -> str:
        default = self.settings.profile_image_url
        if product_key == HOME_PRODUCT_KEY:
            index_path = self.site_root / "index.html"
        elif product_key.startswith(PRODUCT_DIR_NAME + "/"):
            index_path = self.site_root / product_key / "index.html"
        elif product_key == GUIDE_PRODUCT_KEY:
            index_path = self.site_root / GUIDE_PRODUCT_KEY / "index.html"
        else:
            return default
        if not index_path.exists():
            return default
        return extract_og_meta(index_path.read_text(encoding="utf-8")).get("image") or default

    def entries(self, product_key: str, variants: VariantMap) -> List[LinkEntry]:
        product_name = display_name(product_key)
        result: List[LinkEntry] = []
        for key in listed_variants(product_key, variants):
            name = variant_display_name(product_key, key, variants)
            if product_key == AMAZON_PRODUCT_KEY:
                button = f"{name} on Amazon"
            elif product_key == GUIDE_PRODUCT_KEY:
                button = name
            else:
                button = f"{product_name} on {name}"
            result.append(LinkEntry(name=name, url=self.preview_url(product_key, key), button_text=button))
        return result

    def build(self, links: LinkTable) -> str:
        parts = [_INTRO]
        for product_key in sort_product_keys(list(links)):
            if product_key in EXCLUDED_PRODUCTS:
                LOGGER.info("Skipping %s (excluded)", product_key)
                continue
            variants = links.get(product_key)
            entries = self.entries(product_key, variants) if variants else []
            if not entries:
                continue
            LOGGER.info("%s (%s variant%s)", display_name(product_key), len(entries), "" if len(entries) == 1 else "s")
            parts.append(self._product_block(product_key, entries))
        parts.append(TAIL_TEMPLATE_PATH.read_text(encoding="utf-8"))
        return "".join(parts)

    def write(self, links: LinkTable, output: Path) -> Path:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(self.build(links), encoding="utf-8")
        LOGGER.info("Wrote affiliate links page to %s", output)
        return output

    def _product_block(self, product_key: str, entries: List[LinkEntry]) -> str:
        name = html_escape(display_name(product_key))
        anchor = html_escape(product_key)
        image = html_escape(self.product_image(product_key))
        variants_json = html_escape(json.dumps([{"name": e.name, "url": e.url} for e in entries], ensure_ascii=False))
        buttons = []
        for entry in entries:
            buttons.append(
                '<div class="wp-block-buttons is-layout-flex wp-block-buttons-is-layout-flex">\n'
                '<div class="wp-block-button buy-button"><a class="wp-block-button__link wp-element-button" '
                f'href="{html_escape(entry.url)}" target="_blank" rel="noreferrer noopener nofollow">'
                f"{html_escape(entry.button_text)}</a></div>\n"
                "</div>"
            )
        spacer = "\n" + _SPACER.format(height="10px") + "\n\n"
        return (
            '<!-- wp:media-text {"mediaPosition":"left","mediaId":0,"mediaType":"image",'
            '"mediaWidth":15,"verticalAlignment":"top"} -->\n'
            '<div class="wp-block-media-text alignwide has-media-on-the-left is-stacked-on-mobile '
            'is-vertically-aligned-top" style="grid-template-columns:15% auto">\n'
            '<figure class="wp-block-media-text__media" style="text-align:center; position:relative;">\n'
            f'<img id="{anchor}" src="{image}" alt="{name}" style="max-width:120px;"/>\n'
            f'<span class="copy-btn-mobile" data-product="{anchor}" data-variants="{variants_json}" '
            'style="position:absolute; top:0; right:0; cursor:pointer; font-size:1.5em; '
            'user-select:none; display:none;">📋</span>\n'
            "</figure>\n"
            '<div class="wp-block-media-text__content">\n'
            '<!-- wp:heading {"level":3} -->\n'
            '<h3 class="wp-block-heading" style="margin-top:0; position:relative;">\n'
            f"<strong>{name}</strong>\n"
            f'<span class="copy-btn-desktop" data-product="{anchor}" data-variants="{variants_json}" '
            'style="cursor:pointer; font-size:0.8em; margin-left:0.5em; user-select:none;">📋</span>\n'
            "</h3>\n"
            "<!-- /wp:heading -->\n\n"
            + spacer.join(buttons)
            + "</div>\n</div>\n<!-- /wp:media-text -->\n\n"
            + _SPACER.format(height="30px")
            + "\n\n"
        )
