"""Configuration settings for the repository inventory fetcher."""

import os
from dataclasses import dataclass
from typing import Optional, Tuple

from .exceptions import ConfigurationError

# Which collaborator lists repositories: 'gh' (GitHub CLI) or 'api' (REST API)
SOURCE = os.getenv("INVENTORY_SOURCE", "gh")
SOURCES = ("gh", "api")

# Paging configuration
PAGE_SIZE = int(os.getenv("PAGE_SIZE", "100"))
MAX_API_PAGE_SIZE = 100  # REST API rejects per_page above this
MAX_PAGES = int(os.getenv("MAX_PAGES", "1000"))  # Hard cap on fetch iterations
MAX_CONSECUTIVE_FAILURES = int(os.getenv("MAX_CONSECUTIVE_FAILURES", "3"))

# What to do when a page cannot be fetched: 'continue' records and moves on, 'abort' stops fetching
ON_ERROR = os.getenv("ON_ERROR", "continue")
ERROR_POLICIES = ("continue", "abort")

# Per-page request configuration
FETCH_TIMEOUT = float(os.getenv("FETCH_TIMEOUT", "60"))  # seconds, applies to each page
FETCH_RETRIES = int(os.getenv("FETCH_RETRIES", "3"))  # attempts per page, including the first
RETRY_DELAY = float(os.getenv("RETRY_DELAY", "1"))  # seconds
RATE_LIMIT_DELAY = float(os.getenv("RATE_LIMIT_DELAY", "0.1"))

# GitHub CLI
GH_EXECUTABLE = os.getenv("GH_EXECUTABLE", "gh")

# GitHub REST API
GITHUB_API_URL = os.getenv("GITHUB_API_URL", "https://api.github.com")
GITHUB_TOKEN = os.getenv("GITHUB_TOKEN", "")
USER_AGENT = "repo-inventory/0.1"
DEFAULT_HEADERS = {
    "User-Agent": USER_AGENT,
    "Accept": "application/vnd.github+json",
    "X-GitHub-Api-Version": "2022-11-28",
}

# Visibility filter values understood by `gh repo list --visibility`
VISIBILITIES = ("public", "private", "internal")

# Field sets. Names follow `gh repo list --json`.
REQUIRED_FIELDS = ("name", "url")
DEFAULT_FIELDS = ("name", "url")
EXTENDED_FIELDS = (
    "name",
    "url",
    "owner",
    "description",
    "visibility",
    "isPrivate",
    "isFork",
    "isArchived",
    "isTemplate",
    "stargazerCount",
    "forkCount",
    "diskUsage",
    "createdAt",
    "updatedAt",
    "pushedAt",
    "deleteBranchOnMerge",
    "mergeCommitAllowed",
    "rebaseMergeAllowed",
    "squashMergeAllowed",
)

# Output files, fully replaced on each run
SNAPSHOT_FILE = os.getenv("SNAPSHOT_FILE", "sorted_repositories.json")
ERROR_FILE = os.getenv("ERROR_FILE", "repository_errors.json")

# Logging configuration
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FILE = os.getenv("LOG_FILE", "inventory.log")
LOG_FORMAT = "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"


def parse_fields(values) -> Tuple[str, ...]:
    """Flatten comma separated field options, keeping first-seen order."""
    fields = []
    for value in values:
        for name in value.split(","):
            name = name.strip()
            if name and name not in fields:
                fields.append(name)
    return tuple(fields)


@dataclass(frozen=True)
class FetcherConfig:
    """Everything a single inventory run needs, built once at the entry point."""
    account: str
    source: str = SOURCE
    page_size: int = PAGE_SIZE
    max_pages: int = MAX_PAGES
    max_consecutive_failures: int = MAX_CONSECUTIVE_FAILURES
    on_error: str = ON_ERROR
    fields: Tuple[str, ...] = DEFAULT_FIELDS
    visibility: Optional[str] = None
    source_only: bool = False
    fetch_timeout: float = FETCH_TIMEOUT
    fetch_retries: int = FETCH_RETRIES
    retry_delay: float = RETRY_DELAY
    snapshot_path: str = SNAPSHOT_FILE
    error_path: str = ERROR_FILE
    dry_run: bool = False

    def __post_init__(self):
        # name and url are always requested, ahead of anything else
        missing = tuple(f for f in REQUIRED_FIELDS if f not in self.fields)
        if missing:
            object.__setattr__(self, "fields", missing + tuple(self.fields))

    def validate(self) -> "FetcherConfig":
        """Check values; raise ConfigurationError on the first problem."""
        if not self.account or not self.account.strip():
            raise ConfigurationError("An account is required (--account or INVENTORY_ACCOUNT)")
        if self.source not in SOURCES:
            raise ConfigurationError(f"Unknown source '{self.source}', expected one of {SOURCES}")
        if self.page_size < 1:
            raise ConfigurationError(f"Page size must be a positive integer, got {self.page_size}")
        if self.source == "api" and self.page_size > MAX_API_PAGE_SIZE:
            raise ConfigurationError(
                f"Page size {self.page_size} exceeds the REST API maximum of {MAX_API_PAGE_SIZE}"
            )
        if self.max_pages < 1:
            raise ConfigurationError(f"max_pages must be at least 1, got {self.max_pages}")
        if self.max_consecutive_failures < 1:
            raise ConfigurationError(
                f"max_consecutive_failures must be at least 1, got {self.max_consecutive_failures}"
            )
        if self.on_error not in ERROR_POLICIES:
            raise ConfigurationError(f"Unknown error policy '{self.on_error}', expected one of {ERROR_POLICIES}")
        if self.visibility is not None and self.visibility not in VISIBILITIES:
            raise ConfigurationError(f"Unknown visibility '{self.visibility}', expected one of {VISIBILITIES}")
        if self.fetch_timeout <= 0:
            raise ConfigurationError(f"fetch_timeout must be positive, got {self.fetch_timeout}")
        if self.fetch_retries < 1:
            raise ConfigurationError(f"fetch_retries must be at least 1, got {self.fetch_retries}")
        if self.snapshot_path == self.error_path:
            raise ConfigurationError("Snapshot and error files must be different paths")
        return self
