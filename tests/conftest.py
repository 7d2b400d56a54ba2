"""Shared fixtures for the inventory tests."""

import pytest

from repo_inventory.config import FetcherConfig


@pytest.fixture
def make_config(tmp_path):
    """Build a validated config writing into tmp_path, with retries off."""
    def _make(**overrides):
        values = dict(
            account="octocat",
            page_size=3,
            retry_delay=0,
            fetch_retries=1,
            snapshot_path=str(tmp_path / "sorted_repositories.json"),
            error_path=str(tmp_path / "repository_errors.json"),
        )
        values.update(overrides)
        return FetcherConfig(**values).validate()
    return _make
