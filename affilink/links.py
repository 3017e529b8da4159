"""Loading and validating the amazonLinks.json link table."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional

import requests

from .config import BASE_DIR, LINKS_FILE_NAME
from .models import DEEPLINK_SUFFIXES, LinkTable, is_deeplink_key
from .utils import absolute_url, dump_json, load_json

logger = logging.getLogger(__name__)

HEADERS = {
    "Accept": "application/json",
    "User-Agent": "affilink/1.0 (+link-table fetch)",
}


class LinkTableError(RuntimeError):
    """Raised when the link table cannot be loaded or parsed."""


def parse_link_table(payload: object) -> LinkTable:
    if not isinstance(payload, dict):
        raise LinkTableError(f"Link table must be a JSON object, got {type(payload).__name__}")
    return LinkTable.from_dict(payload)


def validate_link_table(table: LinkTable) -> List[str]:
    """Return human readable problems; an empty list means the table is sound."""

    problems: List[str] = []
    for product_key, variants in table.products.items():
        plain = variants.web_variants()
        if not plain:
            problems.append(f"{product_key}: no web variants")
        for key in plain:
            if not variants.links.get(key, "").strip():
                problems.append(f"{product_key}/{key}: empty web URL")
        for key in variants.links:
            if not is_deeplink_key(key):
                continue
            base = key
            for suffix in DEEPLINK_SUFFIXES:
                if key.endswith(suffix):
                    base = key[: -len(suffix)]
                    break
            if base not in plain:
                problems.append(f"{product_key}/{key}: deep link without a '{base}' web variant")
    return problems


class LinkTableRepository:
    """Read and write the link table stored next to the exported site."""

    def __init__(self, data_file: Path | None = None) -> None:
        self.data_file = data_file or BASE_DIR / LINKS_FILE_NAME

    def exists(self) -> bool:
        return self.data_file.exists()

    def load(self) -> LinkTable:
        if not self.data_file.exists():
            raise LinkTableError(f"{self.data_file} not found")
        try:
            payload = load_json(self.data_file)
        except (OSError, ValueError) as exc:
            raise LinkTableError(f"Unable to read {self.data_file}: {exc}") from exc
        table = parse_link_table(payload)
        logger.debug("Loaded %s products from %s", len(table), self.data_file)
        return table

    def load_or_empty(self) -> LinkTable:
        if not self.data_file.exists():
            logger.warning("%s not found; continuing with an empty link table", self.data_file)
            return LinkTable()
        return self.load()

    def save(self, table: LinkTable) -> None:
        dump_json(self.data_file, table.to_dict())


def fetch_link_table(
    base_url: str,
    links_path: str = "/" + LINKS_FILE_NAME,
    *,
    session: Optional[requests.Session] = None,
    timeout: float = 15,
) -> LinkTable:
    """Fetch the published link table from a live site. One attempt, no retries."""

    url = absolute_url(base_url, links_path)
    http = session or requests.Session()
    try:
        response = http.get(url, headers=HEADERS, timeout=timeout)
        response.raise_for_status()
        payload = response.json()
    except requests.RequestException as exc:
        raise LinkTableError(f"Failed to fetch {url}: {exc}") from exc
    except ValueError as exc:
        raise LinkTableError(f"Invalid JSON at {url}: {exc}") from exc
    return parse_link_table(payload)
