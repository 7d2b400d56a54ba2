"""Adapters for the collaborators that list an account's repositories."""

import json
import subprocess
from typing import Any, Callable, Dict, List, Optional

from loguru import logger

from .config import FETCH_TIMEOUT, GH_EXECUTABLE, GITHUB_API_URL, FetcherConfig
from .exceptions import CommandError, ConfigurationError, FetchTimeoutError, PayloadError
from .http_client import HTTPClient
from .models import Page, PageRequest


def _page_has_more(raw_count: int, full_count: int) -> bool:
    # Neither collaborator says "last page"; a full page is taken to mean more may follow.
    return raw_count == full_count


def _ensure_objects(items: Any, origin: str) -> List[Dict[str, Any]]:
    if not isinstance(items, list):
        raise PayloadError(f"Expected a JSON array from {origin}, got {type(items).__name__}")
    for index, item in enumerate(items):
        if not isinstance(item, dict):
            raise PayloadError(f"Item {index} from {origin} is not an object: {item!r}")
    return items


class RepositorySource:
    """Something that can return one page of an account's repositories."""

    name = "source"

    def fetch(self, request: PageRequest) -> Page:
        """Fetch one page; raise a FetchFailure subclass on any failure."""
        raise NotImplementedError

    def close(self):
        pass

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


class GhCliSource(RepositorySource):
    """Lists repositories with ``gh repo list``.

    ``gh repo list`` only takes a ``--limit``, so page ``n`` is a listing
    limited to ``n*size`` entries. All of it is returned; entries already
    seen on earlier pages are removed later, when the snapshot is finalized.
    """

    name = "gh"

    def __init__(self, executable: str = GH_EXECUTABLE, timeout: float = FETCH_TIMEOUT,
                 runner: Callable[..., subprocess.CompletedProcess] = subprocess.run):
        self.executable = executable
        self.timeout = timeout
        self._run = runner

    def build_command(self, request: PageRequest) -> List[str]:
        cmd = [
            self.executable, "repo", "list", request.account,
            "--json", ",".join(request.fields),
            "--limit", str(request.cursor * request.page_size),
        ]
        if request.visibility:
            cmd.extend(["--visibility", request.visibility])
        if request.source_only:
            cmd.append("--source")
        return cmd

    def fetch(self, request: PageRequest) -> Page:
        cmd = self.build_command(request)
        logger.debug(f"Running: {' '.join(cmd)}")

        try:
            proc = self._run(cmd, capture_output=True, text=True, encoding="utf-8",
                             timeout=self.timeout, check=False)
        except FileNotFoundError as e:
            raise CommandError(f"'{self.executable}' executable not found; is the GitHub CLI installed?") from e
        except OSError as e:
            raise CommandError(f"Could not run '{self.executable}': {e}") from e
        except subprocess.TimeoutExpired as e:
            raise FetchTimeoutError(f"'{' '.join(cmd)}' timed out after {self.timeout}s") from e
        except UnicodeDecodeError as e:
            raise PayloadError(f"gh repo list output is not valid UTF-8: {e}") from e

        if proc.returncode != 0:
            stderr = (proc.stderr or "").strip()
            raise CommandError(
                f"gh repo list failed (code={proc.returncode}): {stderr or 'no error output'}",
                returncode=proc.returncode,
                stderr=stderr,
            )

        try:
            items = json.loads(proc.stdout or "[]")
        except json.JSONDecodeError as e:
            raise PayloadError(f"Invalid JSON from gh repo list: {e}") from e

        # whole listing up to cursor*size; overlap with earlier pages is removed in finalize
        items = _ensure_objects(items, "gh repo list")
        logger.debug(f"gh returned {len(items)} repositories for page {request.cursor}")
        return Page(
            items=tuple(items),
            has_more=_page_has_more(len(items), request.cursor * request.page_size),
        )


def _owner(item: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    owner = item.get("owner")
    if not owner:
        return None
    return {"id": owner.get("node_id"), "login": owner.get("login")}


def _language(item: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    language = item.get("language")
    return {"name": language} if language else None


# `gh repo list --json` field name -> REST key, or a function of the REST object
REST_FIELD_MAP = {
    "name": "name",
    "url": "html_url",
    "id": "node_id",
    "nameWithOwner": "full_name",
    "owner": _owner,
    "description": "description",
    "homepageUrl": "homepage",
    "sshUrl": "ssh_url",
    "visibility": lambda item: (item.get("visibility") or "").upper() or None,
    "isPrivate": "private",
    "isFork": "fork",
    "isArchived": "archived",
    "isTemplate": "is_template",
    "stargazerCount": "stargazers_count",
    "forkCount": "forks_count",
    "watchers": lambda item: {"totalCount": item.get("watchers_count", 0)},
    "diskUsage": "size",
    "primaryLanguage": _language,
    "hasIssuesEnabled": "has_issues",
    "hasWikiEnabled": "has_wiki",
    "hasProjectsEnabled": "has_projects",
    "createdAt": "created_at",
    "updatedAt": "updated_at",
    "pushedAt": "pushed_at",
}


class RestApiSource(RepositorySource):
    """Lists repositories with ``GET /users/{account}/repos``.

    REST objects are renamed to the ``gh repo list`` field names so both
    sources write the same snapshot shape.
    """

    name = "api"

    def __init__(self, client: HTTPClient, fields, api_url: str = GITHUB_API_URL):
        unsupported = [f for f in fields if f not in REST_FIELD_MAP]
        if unsupported:
            raise ConfigurationError(
                f"Fields not available from the REST API source: {', '.join(unsupported)}"
            )
        self.client = client
        self.api_url = api_url.rstrip("/")

    def build_params(self, request: PageRequest) -> Dict[str, Any]:
        return {
            "type": "owner",
            "sort": "full_name",
            "per_page": request.page_size,
            "page": request.cursor,
        }

    @staticmethod
    def _keep(item: Dict[str, Any], request: PageRequest) -> bool:
        if request.source_only and item.get("fork"):
            return False
        if request.visibility and item.get("visibility") != request.visibility:
            return False
        return True

    @staticmethod
    def _project(item: Dict[str, Any], fields) -> Dict[str, Any]:
        projected = {}
        for name in fields:
            key = REST_FIELD_MAP[name]
            projected[name] = key(item) if callable(key) else item.get(key)
        return projected

    def fetch(self, request: PageRequest) -> Page:
        url = f"{self.api_url}/users/{request.account}/repos"
        items = _ensure_objects(self.client.get_json(url, params=self.build_params(request)), url)
        kept = [self._project(item, request.fields) for item in items if self._keep(item, request)]
        if len(kept) < len(items):
            logger.debug(f"Filtered {len(items) - len(kept)} repositories from page {request.cursor}")
        return Page(
            items=tuple(kept),
            # decided on the unfiltered page so client-side filtering never ends paging early
            has_more=_page_has_more(len(items), request.page_size),
        )

    def close(self):
        self.client.close()


def create_source(config: FetcherConfig) -> RepositorySource:
    """Build the source named by the configuration."""
    if config.source == "gh":
        return GhCliSource(timeout=config.fetch_timeout)
    if config.source == "api":
        return RestApiSource(HTTPClient(timeout=config.fetch_timeout), config.fields)
    raise ConfigurationError(f"Unknown source '{config.source}'")
