import json
import subprocess
from unittest.mock import MagicMock

import pytest

from repo_inventory.config import EXTENDED_FIELDS, FetcherConfig
from repo_inventory.exceptions import (
    CommandError,
    ConfigurationError,
    FetchTimeoutError,
    PayloadError,
)
from repo_inventory.models import PageRequest
from repo_inventory.sources import GhCliSource, RestApiSource, create_source

from tests.fakes import repo


def request(cursor=1, page_size=3, fields=("name", "url"), **kwargs):
    return PageRequest(account="octocat", page_size=page_size, cursor=cursor, fields=fields, **kwargs)


def gh_runner(stdout="[]", returncode=0, stderr=""):
    runner = MagicMock()
    runner.return_value = subprocess.CompletedProcess(
        args=[], returncode=returncode, stdout=stdout, stderr=stderr
    )
    return runner


def listing(count):
    return json.dumps([repo(f"r{i}") for i in range(1, count + 1)])


class TestGhCliSource:
    def test_builds_repo_list_command(self):
        source = GhCliSource(executable="gh")
        cmd = source.build_command(request(cursor=2, page_size=50))
        assert cmd == ["gh", "repo", "list", "octocat", "--json", "name,url", "--limit", "100"]

    def test_adds_visibility_and_source_filters(self):
        cmd = GhCliSource().build_command(request(visibility="public", source_only=True))
        assert cmd[-3:] == ["--visibility", "public", "--source"]

    def test_runs_with_timeout_and_utf8_decoding(self):
        runner = gh_runner(listing(3))
        GhCliSource(timeout=12, runner=runner).fetch(request())
        _, kwargs = runner.call_args
        assert kwargs["timeout"] == 12
        assert kwargs["capture_output"] is True
        assert kwargs["text"] is True
        assert kwargs["encoding"] == "utf-8"

    def test_full_first_page_has_more(self):
        page = GhCliSource(runner=gh_runner(listing(3))).fetch(request(cursor=1))
        assert [item["name"] for item in page.items] == ["r1", "r2", "r3"]
        assert page.has_more

    def test_later_pages_return_the_whole_listing(self):
        page = GhCliSource(runner=gh_runner(listing(6))).fetch(request(cursor=2))
        assert [item["name"] for item in page.items] == ["r1", "r2", "r3", "r4", "r5", "r6"]
        assert page.has_more

    def test_short_listing_ends_paging(self):
        page = GhCliSource(runner=gh_runner(listing(5))).fetch(request(cursor=2))
        assert len(page.items) == 5
        assert not page.has_more

    def test_listing_that_did_not_grow_ends_paging(self):
        page = GhCliSource(runner=gh_runner(listing(3))).fetch(request(cursor=2))
        assert len(page.items) == 3
        assert not page.has_more

    def test_nonzero_exit_raises_command_error(self):
        runner = gh_runner(returncode=1, stderr="HTTP 404: Not Found\n")
        with pytest.raises(CommandError) as exc_info:
            GhCliSource(runner=runner).fetch(request())
        assert exc_info.value.returncode == 1
        assert "HTTP 404" in str(exc_info.value)

    def test_missing_executable_raises_command_error(self):
        runner = MagicMock(side_effect=FileNotFoundError("gh"))
        with pytest.raises(CommandError, match="not found"):
            GhCliSource(runner=runner).fetch(request())

    def test_timeout_raises_fetch_timeout(self):
        runner = MagicMock(side_effect=subprocess.TimeoutExpired(cmd="gh", timeout=5))
        with pytest.raises(FetchTimeoutError):
            GhCliSource(timeout=5, runner=runner).fetch(request())

    @pytest.mark.parametrize("stdout", ["not json", '{"name": "r1"}', '["r1"]'])
    def test_malformed_payload_raises_payload_error(self, stdout):
        with pytest.raises(PayloadError):
            GhCliSource(runner=gh_runner(stdout)).fetch(request())

    def test_output_not_utf8_raises_payload_error(self):
        runner = MagicMock(side_effect=UnicodeDecodeError("utf-8", b"\xff", 0, 1, "invalid start byte"))
        with pytest.raises(PayloadError, match="UTF-8"):
            GhCliSource(runner=runner).fetch(request())


def rest_item(name, fork=False, visibility="public", **extra):
    item = {
        "name": name,
        "html_url": f"https://github.com/octocat/{name}",
        "url": f"https://api.github.com/repos/octocat/{name}",
        "fork": fork,
        "visibility": visibility,
        "private": visibility != "public",
        "stargazers_count": 1,
        "owner": {"login": "octocat", "node_id": "MDQ6VXNlcjE="},
        "language": "Python",
    }
    item.update(extra)
    return item


class TestRestApiSource:
    def make(self, items, fields=("name", "url")):
        client = MagicMock()
        client.get_json.return_value = items
        return RestApiSource(client, fields, api_url="https://api.example.com/"), client

    def test_requests_user_repos_page(self):
        source, client = self.make([])
        source.fetch(request(cursor=4, page_size=30))
        client.get_json.assert_called_once_with(
            "https://api.example.com/users/octocat/repos",
            params={"type": "owner", "sort": "full_name", "per_page": 30, "page": 4},
        )

    def test_maps_rest_keys_to_cli_field_names(self):
        fields = ("name", "url", "isFork", "stargazerCount", "owner", "primaryLanguage", "visibility")
        source, _ = self.make([rest_item("r1")], fields=fields)
        page = source.fetch(request(fields=fields))
        assert page.items == ({
            "name": "r1",
            "url": "https://github.com/octocat/r1",
            "isFork": False,
            "stargazerCount": 1,
            "owner": {"id": "MDQ6VXNlcjE=", "login": "octocat"},
            "primaryLanguage": {"name": "Python"},
            "visibility": "PUBLIC",
        },)

    def test_has_more_uses_unfiltered_page_length(self):
        items = [rest_item("r1"), rest_item("r2", fork=True), rest_item("r3", visibility="private")]
        source, _ = self.make(items)

        page = source.fetch(request(page_size=3, visibility="public", source_only=True))

        assert [item["name"] for item in page.items] == ["r1"]
        assert page.has_more

    def test_short_page_ends_paging(self):
        source, _ = self.make([rest_item("r1")])
        assert not source.fetch(request(page_size=3)).has_more

    def test_rejects_fields_without_rest_counterpart(self):
        with pytest.raises(ConfigurationError, match="deleteBranchOnMerge"):
            RestApiSource(MagicMock(), EXTENDED_FIELDS)

    def test_non_list_payload_raises(self):
        source, _ = self.make({"message": "Not Found"})
        with pytest.raises(PayloadError):
            source.fetch(request())

    def test_close_closes_client(self):
        source, client = self.make([])
        with source:
            pass
        client.close.assert_called_once()


def test_create_source_picks_by_name():
    assert isinstance(create_source(FetcherConfig(account="octocat", source="gh")), GhCliSource)
    api_source = create_source(FetcherConfig(account="octocat", source="api"))
    try:
        assert isinstance(api_source, RestApiSource)
    finally:
        api_source.close()
