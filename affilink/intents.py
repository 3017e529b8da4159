"""Repair helpers for Android ``intent://`` and ``com.*://`` deep links."""
from __future__ import annotations

import logging
import re
from urllib.parse import unquote, urlsplit

from .utils import encode_uri_component, is_absolute_url

LOGGER = logging.getLogger(__name__)

INTENT_PREFIX = "intent://"
INTENT_MARKER = "#Intent;"
VIEW_ACTION = "action=android.intent.action.VIEW"
FALLBACK_PARAM = "S.browser_fallback_url"

_CUSTOM_SCHEME = re.compile(r"^com\.[A-Za-z0-9_.-]+://", re.IGNORECASE)
_HOSTED_PATH = re.compile(r"^[A-Za-z0-9-]+(?:\.[A-Za-z0-9-]+)*\.[A-Za-z]{2,}(?:[:/?]|$)")
_REPEATED_SEPARATORS = re.compile(r";{2,}")
# Parameters that pin an intent to one installed app build.
_DROPPED_PARAMS = {"package", "component", "end", "scheme", "action"}


def is_custom_scheme(url: str) -> bool:
    return bool(_CUSTOM_SCHEME.match(url))


def normalize_intent_link(url: str | None, fallback_web_url: str) -> str | None:
    """Return an intent URL that opens over https and falls back to the web.

    Anything that is neither ``intent://`` nor a ``com.*://`` custom scheme is
    returned untouched, as is any input that cannot be parsed.
    """

    if not url:
        return url
    try:
        if url.startswith(INTENT_PREFIX):
            return _normalize_intent(url, fallback_web_url)
        if is_custom_scheme(url):
            return _custom_scheme_to_intent(url, fallback_web_url)
    except ValueError as exc:
        LOGGER.warning("Could not normalize deep link %s: %s", url, exc)
    return url


def _fallback_host(fallback_web_url: str) -> str:
    host = urlsplit(fallback_web_url).netloc
    if not host:
        raise ValueError(f"fallback URL {fallback_web_url!r} has no host")
    return host


def _fallback_target(fallback_web_url: str) -> str:
    if not is_absolute_url(fallback_web_url):
        raise ValueError(f"fallback URL {fallback_web_url!r} is not absolute")
    return fallback_web_url


def _assemble(path: str, params: list[str], fallback: str) -> str:
    parts = [f"{INTENT_PREFIX}{path}{INTENT_MARKER}"]
    parts.append(";".join(params))
    parts.append(f";{VIEW_ACTION};{FALLBACK_PARAM}={encode_uri_component(fallback)};end")
    return _REPEATED_SEPARATORS.sub(";", "".join(parts))


def _normalize_intent(url: str, fallback_web_url: str) -> str:
    body = url[len(INTENT_PREFIX):]
    path, marker, raw_params = body.partition(INTENT_MARKER)
    if not marker:
        path, _, raw_params = body.partition("#")
        if raw_params.startswith("Intent"):
            raw_params = raw_params[len("Intent"):]

    kept: list[str] = ["scheme=https"]
    existing_fallback: str | None = None
    for token in raw_params.split(";"):
        token = token.strip()
        if not token:
            continue
        name, _, value = token.partition("=")
        if name == FALLBACK_PARAM:
            existing_fallback = unquote(value)
            continue
        if name in _DROPPED_PARAMS:
            continue
        kept.append(token)

    if not _HOSTED_PATH.match(path):
        path = f"{_fallback_host(fallback_web_url)}/{path.lstrip('/')}"

    if existing_fallback and is_absolute_url(existing_fallback):
        fallback = existing_fallback
    else:
        fallback = _fallback_target(fallback_web_url)
    return _assemble(path, kept, fallback)


def _custom_scheme_to_intent(url: str, fallback_web_url: str) -> str:
    path = url.split("://", 1)[1]
    return _assemble(path, ["scheme=https"], _fallback_target(fallback_web_url))
