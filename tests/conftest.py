import os
import tempfile
from pathlib import Path

import pytest

from gitstore.config import UpstreamConfig

# Set up a minimal config BEFORE anything calls get_settings()
_tmp_dir = tempfile.TemporaryDirectory(prefix="pytest_config_")
_config_file = Path(_tmp_dir.name) / "config.yaml"
_config_file.write_text(
    """
github:
  token: ghp-test-token
  owner: octocat
  repo: storage
  branch: main

logging:
  level: INFO
  json: false
"""
)
os.environ["CONFIG_PATH"] = str(_config_file)


@pytest.fixture
def upstream_config() -> UpstreamConfig:
    """Upstream configuration pointing at a fake GitHub."""
    return UpstreamConfig(
        api_base_url="https://github.test",
        token="ghp-test-token",
        owner="octocat",
        repo="storage",
        branch="main",
        timeout_seconds=5,
        max_concurrent_requests=2,
    )
