"""Social preview page generator for affiliate links."""
from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from html import escape as html_escape
from html import unescape as html_unescape
from pathlib import Path
from typing import Dict, List, Mapping

from .config import BASE_DIR, PREVIEW_DIR_NAME, TEMPLATE_DIR, SiteSettings, load_settings
from .models import AMAZON_PRODUCT_KEY, HOME_PRODUCT_KEY, LinkTable
from .utils import amazon_title_from_url, humanize_slug

LOGGER = logging.getLogger(__name__)

PREVIEW_TEMPLATE_PATH = TEMPLATE_DIR / "preview.html"
AMAZON_LABEL = "Amazon Affiliate Link"
PRODUCT_DIR_NAME = "product"

_PLACEHOLDER = re.compile(r"\{\{\s*(?P<name>[a-z_]+)(?P<safe>\|safe)?\s*\}\}")
_OG_PATTERNS = {
    name: re.compile(
        rf"<meta[^>]+property=[\"']og:{name}[\"'][^>]+content=[\"']([^\"']+)[\"']",
        re.IGNORECASE,
    )
    for name in ("title", "image", "description", "url")
}


def _read_markup(path: Path) -> str:
    return path.read_text(encoding="utf-8").lstrip("\ufeff")


def render_template(template: str, context: Mapping[str, str]) -> str:
    """Fill ``{{ name }}`` (escaped) and ``{{ name|safe }}`` (raw) placeholders."""

    def _replace(match: re.Match[str]) -> str:
        value = context.get(match.group("name"), "")
        if match.group("safe"):
            return value
        return html_escape(value)

    return _PLACEHOLDER.sub(_replace, template)


def extract_og_meta(html: str) -> Dict[str, str]:
    meta: Dict[str, str] = {}
    for name, pattern in _OG_PATTERNS.items():
        match = pattern.search(html)
        if match:
            meta[name] = html_unescape(match.group(1))
    return meta


@dataclass(frozen=True)
class PreviewMeta:
    title: str
    image: str = ""
    description: str = ""
    url: str = ""


@dataclass(frozen=True)
class PreviewPage:
    """A site page that gets a preview under /affiliate/."""

    slug: str
    index_path: Path
    product_key: str
    output_file: str


@dataclass
class BuildSummary:
    pages: List[str] = field(default_factory=list)
    amazon_variants: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)


class PreviewGenerator:
    def __init__(
        self,
        site_root: Path | str = BASE_DIR,
        settings: SiteSettings | None = None,
        template: str | None = None,
    ) -> None:
        self.site_root = Path(site_root)
        self.output_dir = self.site_root / PREVIEW_DIR_NAME
        self.settings = settings or load_settings()
        self.template = template if template is not None else _read_markup(PREVIEW_TEMPLATE_PATH)

    # ------------------------------------------------------------------
    # Public API

    def build(self, links: LinkTable) -> BuildSummary:
        LOGGER.info("Rendering affiliate previews to %s", self.output_dir)
        summary = BuildSummary()
        for page in self.discover_pages():
            if not page.index_path.exists():
                LOGGER.warning("No index.html found for %s at %s", page.slug, page.index_path)
                summary.skipped.append(page.product_key)
                continue
            meta = self._page_meta(page)
            self._safe_write(self.output_dir / page.output_file, self.render(meta, page.product_key))
            LOGGER.info("%s -> /%s/%s", page.product_key, PREVIEW_DIR_NAME, page.output_file)
            summary.pages.append(page.product_key)
        summary.amazon_variants = self._write_amazon_variants(links)
        LOGGER.info(
            "Generated %s page previews and %s Amazon variant previews",
            len(summary.pages),
            len(summary.amazon_variants),
        )
        return summary

    def discover_pages(self) -> List[PreviewPage]:
        product_dir = self.site_root / PRODUCT_DIR_NAME
        pages = [
            PreviewPage(HOME_PRODUCT_KEY, self.site_root / "index.html", HOME_PRODUCT_KEY, "home.html"),
        ]
        for slug in self.settings.featured_pages:
            pages.append(PreviewPage(slug, self.site_root / slug / "index.html", slug, f"{slug}.html"))
        pages.append(
            PreviewPage(PRODUCT_DIR_NAME, product_dir / "index.html", PRODUCT_DIR_NAME, f"{PRODUCT_DIR_NAME}.html")
        )
        if product_dir.is_dir():
            for child in sorted(product_dir.iterdir()):
                if not child.is_dir():
                    continue
                pages.append(
                    PreviewPage(
                        child.name,
                        child / "index.html",
                        f"{PRODUCT_DIR_NAME}/{child.name}",
                        f"{child.name}.html",
                    )
                )
        return pages

    def render(self, meta: PreviewMeta, product_key: str) -> str:
        config = {
            "productKey": product_key,
            "baseUrl": self.settings.base_url.rstrip("/"),
            "linksPath": self.settings.links_path,
            "timings": self.settings.timings.as_milliseconds(),
        }
        dispatch_config = json.dumps(config, ensure_ascii=False).replace("</", "<\\/")
        return render_template(
            self.template,
            {
                "title": self.page_title(meta.title),
                "og_image": meta.image or self.settings.default_og_image,
                "og_description": meta.description,
                "og_url": meta.url,
                "fb_app_id": self.settings.fb_app_id,
                "twitter_site": self.settings.twitter_site,
                "twitter_creator": self.settings.twitter_creator,
                "profile_image": self.settings.profile_image_url,
                "dispatch_config": dispatch_config,
            },
        )

    def page_title(self, title: str) -> str:
        brand = self.settings.brand
        if brand in title or AMAZON_LABEL in title:
            return title
        return f"{title} - {brand}"

    # ------------------------------------------------------------------
    # Helpers

    def _page_meta(self, page: PreviewPage) -> PreviewMeta:
        html = page.index_path.read_text(encoding="utf-8")
        og = extract_og_meta(html)
        if page.product_key == HOME_PRODUCT_KEY:
            image = self.settings.profile_image_url
        else:
            image = og.get("image") or self.settings.default_og_image
        return PreviewMeta(
            title=og.get("title") or page.slug,
            image=image,
            description=og.get("description", ""),
            url=og.get("url", ""),
        )

    def _write_amazon_variants(self, links: LinkTable) -> List[str]:
        variants = links.get(AMAZON_PRODUCT_KEY)
        if variants is None:
            LOGGER.warning("No '%s' product in link table; skipping Amazon previews", AMAZON_PRODUCT_KEY)
            return []
        written: List[str] = []
        for key in variants.web_variants():
            product_title = amazon_title_from_url(variants.ios_deep_link(key) or variants.web_url(key))
            meta = PreviewMeta(
                title=f"{product_title or humanize_slug(key)} - {AMAZON_LABEL}",
                image=self.settings.profile_image_url,
            )
            target = self.output_dir / AMAZON_PRODUCT_KEY / f"{key}.html"
            self._safe_write(target, self.render(meta, AMAZON_PRODUCT_KEY))
            LOGGER.info("%s/%s -> %s (%s)", AMAZON_PRODUCT_KEY, key, target, meta.title)
            written.append(key)
        return written

    def _safe_write(self, target: Path, content: str) -> None:
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content, encoding="utf-8")
