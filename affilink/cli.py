"""Command line entrypoints for affilink."""
from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path

from .config import LINKS_FILE_NAME, load_settings
from .generator import PreviewGenerator
from .intents import normalize_intent_link
from .links import LinkTableError, LinkTableRepository, fetch_link_table, validate_link_table
from .links_page import LinksPageBuilder
from .simulation import simulate_visit

LOGGER = logging.getLogger(__name__)

DESKTOP_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0 Safari/537.36"
)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Affiliate preview page and deep-link tools")
    parser.add_argument("--log-level", default="INFO", help="Logging level (default: INFO)")
    subparsers = parser.add_subparsers(dest="command", required=True)

    previews_parser = subparsers.add_parser(
        "previews", help="Generate /affiliate/ preview pages for the exported site"
    )
    previews_parser.add_argument(
        "--root",
        type=Path,
        default=Path("."),
        help="Root directory of the exported static site",
    )
    previews_parser.add_argument(
        "--links",
        type=Path,
        help=f"Link table to read (defaults to <root>/{LINKS_FILE_NAME})",
    )
    previews_parser.set_defaults(func=handle_previews)

    page_parser = subparsers.add_parser(
        "links-page", help="Render the WordPress 'All Affiliate Links' page markup"
    )
    page_parser.add_argument("--root", type=Path, default=Path("."), help="Root of the exported site")
    page_parser.add_argument("--links", type=Path, help="Link table to read")
    page_parser.add_argument(
        "--output",
        type=Path,
        help="Where to write the markup (defaults to <root>/affiliate-links-page.html)",
    )
    page_parser.set_defaults(func=handle_links_page)

    resolve_parser = subparsers.add_parser(
        "resolve", help="Replay a preview page visit and print where the browser ends up"
    )
    resolve_parser.add_argument("url", help="Preview page URL, e.g. https://site/affiliate/leash.html?variant=amazon")
    resolve_parser.add_argument("--product", required=True, help="Product key baked into the preview page")
    resolve_parser.add_argument("--user-agent", default=DESKTOP_USER_AGENT, help="Visitor user agent")
    source = resolve_parser.add_mutually_exclusive_group()
    source.add_argument("--links", type=Path, help="Read the link table from a local file")
    source.add_argument("--site", help="Fetch the link table from a live site base URL")
    resolve_parser.add_argument(
        "--app-installed",
        action="store_true",
        help="Simulate a visitor whose phone opens deep links in the native app",
    )
    resolve_parser.add_argument(
        "--tap-overlay",
        action="store_true",
        help="Simulate a visitor who taps the continue overlay",
    )
    resolve_parser.add_argument("--json", action="store_true", help="Print the visit as JSON")
    resolve_parser.set_defaults(func=handle_resolve)

    normalize_parser = subparsers.add_parser(
        "normalize", help="Repair an Android intent:// or com.*:// deep link"
    )
    normalize_parser.add_argument("link", help="Deep link to repair")
    normalize_parser.add_argument("fallback", help="Absolute web URL to fall back to")
    normalize_parser.set_defaults(func=handle_normalize)

    check_parser = subparsers.add_parser("check", help="Validate the link table before deploy")
    check_parser.add_argument("--links", type=Path, default=Path(LINKS_FILE_NAME), help="Link table to validate")
    check_parser.set_defaults(func=handle_check)

    return parser


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(message)s",
    )


def _repository(root: Path, links: Path | None) -> LinkTableRepository:
    return LinkTableRepository(data_file=links or root / LINKS_FILE_NAME)


def handle_previews(args: argparse.Namespace) -> None:
    if not args.root.is_dir():
        raise SystemExit(f"--root {args.root} is not a directory")
    links = _repository(args.root, args.links).load_or_empty()
    summary = PreviewGenerator(site_root=args.root).build(links)
    LOGGER.info(
        "Preview pages: %s, Amazon variants: %s, skipped: %s",
        len(summary.pages),
        len(summary.amazon_variants),
        len(summary.skipped),
    )


def handle_links_page(args: argparse.Namespace) -> None:
    try:
        links = _repository(args.root, args.links).load()
    except LinkTableError as exc:
        raise SystemExit(str(exc)) from exc
    output = args.output or args.root / "affiliate-links-page.html"
    LinksPageBuilder(site_root=args.root).write(links, output)


def handle_resolve(args: argparse.Namespace) -> None:
    settings = load_settings()
    if args.site:
        site = args.site

        def load_links():
            return fetch_link_table(site, settings.links_path)

    else:
        repository = LinkTableRepository(data_file=args.links or Path(LINKS_FILE_NAME))
        load_links = repository.load

    result = simulate_visit(
        args.url,
        args.product,
        args.user_agent,
        load_links,
        app_installed=args.app_installed,
        taps_overlay=args.tap_overlay,
        settings=settings,
    )
    if args.json:
        print(json.dumps(result.to_dict(), indent=2))
        return
    print(f"Context:  {result.context.browser_context.value}")
    print(f"Outcome:  {result.outcome.value}")
    for event in result.history:
        print(event.describe())
    print(f"Final:    {result.final_url or '(stays on preview page)'}")


def handle_normalize(args: argparse.Namespace) -> None:
    print(normalize_intent_link(args.link, args.fallback))


def handle_check(args: argparse.Namespace) -> None:
    try:
        table = LinkTableRepository(data_file=args.links).load()
    except LinkTableError as exc:
        LOGGER.error("%s", exc)
        raise SystemExit(1) from exc
    problems = validate_link_table(table)
    if problems:
        for problem in problems:
            LOGGER.error(problem)
        raise SystemExit(1)
    LOGGER.info("Check passed: %s products", len(table))


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.log_level)
    args.func(args)


if __name__ == "__main__":
    main()
