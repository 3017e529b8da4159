"""One-off script to rebuild every affiliate artifact for an exported site."""
from __future__ import annotations

import logging
import sys
from pathlib import Path

from affilink.generator import PreviewGenerator
from affilink.links import LinkTableRepository, validate_link_table
from affilink.links_page import LinksPageBuilder

logger = logging.getLogger(__name__)


def rebuild(site_root: Path) -> int:
    """Validate the link table, then regenerate previews and the links page."""

    repository = LinkTableRepository(data_file=site_root / "amazonLinks.json")
    links = repository.load()
    problems = validate_link_table(links)
    for problem in problems:
        logger.warning("Link table: %s", problem)
    PreviewGenerator(site_root=site_root).build(links)
    LinksPageBuilder(site_root=site_root).write(links, site_root / "affiliate-links-page.html")
    return 1 if problems else 0


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    root = Path(sys.argv[1]) if len(sys.argv) > 1 else Path(".")
    raise SystemExit(rebuild(root))
