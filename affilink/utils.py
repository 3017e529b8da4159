"""General utility helpers."""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict
from urllib.parse import quote, urljoin, urlsplit

logger = logging.getLogger(__name__)

# Characters left unescaped by the browser's encodeURIComponent.
_URI_COMPONENT_SAFE = "-_.!~*'()"


def load_json(path: Path, default: Dict[str, Any] | list | None = None) -> Any:
    """Load a JSON file returning a default value if it does not exist."""

    if not path.exists():
        return default if default is not None else {}
    with path.open("r", encoding="utf-8") as f:
        return json.load(f)


def dump_json(path: Path, data: Any) -> None:
    """Persist JSON data to disk, ensuring the parent folder exists."""

    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, ensure_ascii=False)


def encode_uri_component(value: str) -> str:
    return quote(value, safe=_URI_COMPONENT_SAFE)


def is_absolute_url(value: str | None) -> bool:
    """Return True when the value parses as an absolute URL with scheme and host."""

    if not value:
        return False
    try:
        parsed = urlsplit(value)
    except ValueError:
        return False
    return bool(parsed.scheme and parsed.netloc)


def absolute_url(base_url: str, path: str) -> str:
    """Resolve a site-relative path against the site's base URL."""

    if is_absolute_url(path):
        return path
    return urljoin(base_url.rstrip("/") + "/", path or "/")


def humanize_slug(value: str, *, lower_rest: bool = True) -> str:
    """Turn ``some-slug`` into ``Some Slug``."""

    words = []
    for word in value.split("-"):
        if not word:
            words.append(word)
            continue
        rest = word[1:].lower() if lower_rest else word[1:]
        words.append(word[0].upper() + rest)
    return " ".join(words)


def amazon_title_from_url(url: str | None) -> str | None:
    """Extract a readable product title from an ``amazon.com/<slug>/dp/`` URL."""

    if not url:
        return None
    marker = "amazon.com/"
    start = url.find(marker)
    if start < 0:
        return None
    start += len(marker)
    end = url.find("/dp/", start)
    if end <= start:
        return None
    return humanize_slug(url[start:end])
