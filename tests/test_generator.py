import json
import re

from affilink.config import SiteSettings
from affilink.generator import PreviewGenerator, extract_og_meta, render_template
from affilink.models import LinkTable

SETTINGS = SiteSettings(
    base_url="https://www.example.com",
    brand="Example Brand",
    profile_image_url="https://www.example.com/profile.webp",
    default_og_image="https://www.example.com/default.webp",
)


def _page(title: str, image: str | None = None, description: str = "") -> str:
    parts = [f'<meta property="og:title" content="{title}" />']
    if image:
        parts.append(f'<meta property="og:image" content="{image}" />')
    if description:
        parts.append(f'<meta property="og:description" content="{description}" />')
    return "<html><head>" + "".join(parts) + "</head><body></body></html>"


def build_site(root):
    (root / "index.html").write_text(_page("Home Page", image="https://www.example.com/home.jpg"), encoding="utf-8")
    guide = root / "cat-shelf-guide"
    guide.mkdir()
    (guide / "index.html").write_text(_page("Cat Shelf Guide - Example Brand"), encoding="utf-8")
    leash = root / "product" / "leash"
    leash.mkdir(parents=True)
    (leash / "index.html").write_text(
        _page("Leash &amp; Collar", image="https://www.example.com/leash.jpg", description="Strong leash"),
        encoding="utf-8",
    )
    (root / "product" / "no-page").mkdir()


def link_table() -> LinkTable:
    return LinkTable.from_dict(
        {
            "amzn": {
                "cat-wall": "https://amzn.to/abc",
                "cat-wall_deeplink_ios": "https://www.amazon.com/Cat-Wall-Shelves/dp/B0ABC",
                "store": "https://www.amazon.com/shop/example",
            }
        }
    )


def _title(html: str) -> str:
    return re.search(r"<title>(.*?)</title>", html).group(1)


def _config(html: str) -> dict:
    return json.loads(re.search(r"const CONFIG = (\{.*?\});", html).group(1))


def test_build_writes_previews_for_pages_and_amazon_variants(tmp_path):
    build_site(tmp_path)
    generator = PreviewGenerator(site_root=tmp_path, settings=SETTINGS)

    summary = generator.build(link_table())

    assert summary.pages == ["home", "cat-shelf-guide", "product/leash"]
    assert summary.skipped == ["product", "product/no-page"]
    assert summary.amazon_variants == ["cat-wall", "store"]

    preview_dir = tmp_path / "affiliate"
    home = (preview_dir / "home.html").read_text(encoding="utf-8")
    assert _title(home) == "Home Page - Example Brand"
    assert 'property="og:image" content="https://www.example.com/profile.webp"' in home
    assert _config(home)["productKey"] == "home"

    guide = (preview_dir / "cat-shelf-guide.html").read_text(encoding="utf-8")
    assert _title(guide) == "Cat Shelf Guide - Example Brand"
    assert 'content="https://www.example.com/default.webp"' in guide

    leash = (preview_dir / "leash.html").read_text(encoding="utf-8")
    assert _title(leash) == "Leash &amp; Collar - Example Brand"
    assert 'property="og:description" content="Strong leash"' in leash
    config = _config(leash)
    assert config["productKey"] == "product/leash"
    assert config["linksPath"] == "/amazonLinks.json"
    assert config["timings"] == {"embeddedFallback": 2400, "standaloneFallback": 1000, "overlayFallback": 50}
    assert "{{" not in leash

    cat_wall = (preview_dir / "amzn" / "cat-wall.html").read_text(encoding="utf-8")
    assert _title(cat_wall) == "Cat Wall Shelves - Amazon Affiliate Link"
    assert _config(cat_wall)["productKey"] == "amzn"
    store = (preview_dir / "amzn" / "store.html").read_text(encoding="utf-8")
    assert _title(store) == "Store - Amazon Affiliate Link"


def test_build_without_amazon_product_skips_variant_pages(tmp_path, caplog):
    build_site(tmp_path)
    summary = PreviewGenerator(site_root=tmp_path, settings=SETTINGS).build(LinkTable())
    assert summary.amazon_variants == []
    assert not (tmp_path / "affiliate" / "amzn").exists()
    assert "skipping Amazon previews" in caplog.text


def test_featured_pages_follow_settings(tmp_path):
    settings = SiteSettings(featured_pages=("about", "gear"))
    pages = PreviewGenerator(site_root=tmp_path, settings=settings, template="").discover_pages()
    assert [page.product_key for page in pages] == ["home", "about", "gear", "product"]


def test_render_template_escapes_unless_safe():
    html = render_template("<p>{{ title }}</p>{{ raw|safe }}{{ missing }}", {"title": "A & B", "raw": "<b>"})
    assert html == "<p>A &amp; B</p><b>"


def test_extract_og_meta_handles_attribute_quotes():
    html = "<meta property='og:url' content='https://x.test/a'><meta property=\"og:title\" content=\"T\">"
    assert extract_og_meta(html) == {"title": "T", "url": "https://x.test/a"}
