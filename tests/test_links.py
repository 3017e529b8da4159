import json

import pytest
import requests

from affilink.config import SiteSettings
from affilink.dispatcher import DispatchOutcome
from affilink.links import (
    LinkTableError,
    LinkTableRepository,
    fetch_link_table,
    parse_link_table,
    validate_link_table,
)
from affilink.models import LinkTable
from affilink.simulation import simulate_visit


class DummyResponse:
    def __init__(self, payload, status_code: int = 200):
        self._payload = payload
        self.status_code = status_code

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")

    def json(self):
        if isinstance(self._payload, Exception):
            raise self._payload
        return self._payload


class DummySession:
    def __init__(self, response=None, error: Exception | None = None):
        self.response = response
        self.error = error
        self.calls = []

    def get(self, url, headers=None, timeout=None):
        self.calls.append((url, headers, timeout))
        if self.error:
            raise self.error
        return self.response


def test_repository_round_trip(tmp_path):
    repository = LinkTableRepository(data_file=tmp_path / "amazonLinks.json")
    table = LinkTable.from_dict({"amzn": {"store": "https://amzn.to/store"}})

    repository.save(table)

    assert repository.exists()
    assert repository.load().to_dict() == {"amzn": {"store": "https://amzn.to/store"}}


def test_repository_missing_file(tmp_path):
    repository = LinkTableRepository(data_file=tmp_path / "missing.json")
    with pytest.raises(LinkTableError):
        repository.load()
    assert len(repository.load_or_empty()) == 0


def test_repository_rejects_invalid_json(tmp_path):
    path = tmp_path / "amazonLinks.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(LinkTableError) as excinfo:
        LinkTableRepository(data_file=path).load()
    assert "Unable to read" in str(excinfo.value)


def test_repository_rejects_undecodable_file(tmp_path):
    path = tmp_path / "amazonLinks.json"
    path.write_bytes(b'{"product/leash": {"amazon": "\xff\xfe"}}')
    with pytest.raises(LinkTableError):
        LinkTableRepository(data_file=path).load()


def test_undecodable_file_sends_visitor_home(tmp_path):
    path = tmp_path / "amazonLinks.json"
    path.write_bytes(b'{"product/leash": {"amazon": "\xff\xfe"}}')
    repository = LinkTableRepository(data_file=path)

    result = simulate_visit(
        "https://www.example.com/affiliate/leash.html?variant=amazon",
        "product/leash",
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) Chrome/124.0 Safari/537.36",
        repository.load,
        settings=SiteSettings(base_url="https://www.example.com"),
    )

    assert result.outcome is DispatchOutcome.FAILED
    assert result.final_url == "/"


def test_parse_link_table_requires_object():
    with pytest.raises(LinkTableError):
        parse_link_table(["not", "a", "table"])


def test_fetch_link_table_uses_site_path():
    session = DummySession(DummyResponse({"product/leash": {"amazon": "https://a"}}))

    table = fetch_link_table("https://www.example.com/", "/amazonLinks.json", session=session)

    assert "product/leash" in table
    url, headers, timeout = session.calls[0]
    assert url == "https://www.example.com/amazonLinks.json"
    assert headers["Accept"] == "application/json"
    assert timeout == 15


@pytest.mark.parametrize(
    "session",
    [
        DummySession(error=requests.ConnectionError("offline")),
        DummySession(DummyResponse({}, status_code=404)),
        DummySession(DummyResponse(json.JSONDecodeError("bad", "doc", 0))),
    ],
)
def test_fetch_link_table_failures_raise_link_table_error(session):
    with pytest.raises(LinkTableError):
        fetch_link_table("https://www.example.com", session=session)
    assert len(session.calls) == 1


def test_validate_link_table_reports_orphans_and_empty_urls():
    table = LinkTable.from_dict(
        {
            "product/leash": {
                "amazon": "https://a",
                "amazon_deeplink_ios": "com.amazon://a",
                "chewy_deeplink_android": "intent://chewy#Intent;end",
                "petco": " ",
            },
            "empty": {"ghost_deeplink_ios": "com.ghost://x"},
        }
    )

    problems = validate_link_table(table)

    assert "product/leash/chewy_deeplink_android: deep link without a 'chewy' web variant" in problems
    assert "product/leash/petco: empty web URL" in problems
    assert "empty: no web variants" in problems
    assert not any("amazon_deeplink_ios" in problem for problem in problems)


def test_validate_link_table_accepts_sound_table():
    table = LinkTable.from_dict({"amzn": {"store": "https://a", "store_deeplink_ios": "com.amazon://a"}})
    assert validate_link_table(table) == []
