"""Tests for the CLI module."""

import json
import os
import tempfile
import unittest
from unittest.mock import AsyncMock, MagicMock, patch

from typer.testing import CliRunner

from aita_fetcher.cli import app
from aita_fetcher.exceptions import UpstreamError
from aita_fetcher.models.item import FetchBatchResult, Item

ENV_KEYS = ["REDDIT_CLIENT_ID", "REDDIT_CLIENT_SECRET", "REDDIT_USERNAME", "REDDIT_PASSWORD", "REDDIT_USER_AGENT"]


class TestCli(unittest.TestCase):
    """Test cases for the CLI interface."""

    def setUp(self):
        """Set up test environment."""
        self.runner = CliRunner()

        self.temp_dir = tempfile.TemporaryDirectory()
        self.config_path = os.path.join(self.temp_dir.name, "config.yaml")
        self.env_path = os.path.join(self.temp_dir.name, ".env")
        self.empty_env_path = os.path.join(self.temp_dir.name, "empty.env")

        with open(self.config_path, "w", encoding="utf-8") as f:
            f.write("""
fetch:
  default_collection: AmItheAsshole
  default_window: week
  default_limit: 2
            """)
        with open(self.env_path, "w", encoding="utf-8") as f:
            f.write("REDDIT_CLIENT_ID=cid\nREDDIT_CLIENT_SECRET=secret\n")
            f.write("REDDIT_USERNAME=user\nREDDIT_PASSWORD=pass\n")
        with open(self.empty_env_path, "w", encoding="utf-8") as f:
            f.write("")

        self.env_patcher = patch.dict(os.environ, {}, clear=False)
        self.env_patcher.start()
        for key in ENV_KEYS:
            os.environ.pop(key, None)

        self.logging_patcher = patch("aita_fetcher.cli.setup_logging")
        self.logging_patcher.start()

        self.mock_client = MagicMock()

        async def fake_with_client(config, action):
            return await action(self.mock_client)

        self.with_client_patcher = patch("aita_fetcher.cli.with_client", side_effect=fake_with_client)
        self.mock_with_client = self.with_client_patcher.start()

    def tearDown(self):
        """Clean up test environment."""
        self.with_client_patcher.stop()
        self.logging_patcher.stop()
        self.env_patcher.stop()
        self.temp_dir.cleanup()

    def test_batch_command_uses_config_defaults(self):
        """Test the batch command prints the batch as JSON."""
        items = (Item(id="abc123", title="AITA?", is_self=True, comments=("NTA",)),)
        self.mock_client.run_batch = AsyncMock(
            return_value=FetchBatchResult(collection="AmItheAsshole", count=1, items=items)
        )

        result = self.runner.invoke(app, ["batch", "--config", self.config_path, "--env", self.env_path])

        self.assertEqual(result.exit_code, 0)
        self.mock_client.run_batch.assert_awaited_once_with("AmItheAsshole", 2, "week")
        output = json.loads(result.stdout)
        self.assertEqual(output["subreddit"], "AmItheAsshole")
        self.assertEqual(output["count"], 1)
        self.assertEqual(output["results"][0]["comments"], ["NTA"])

    def test_batch_command_with_options(self):
        self.mock_client.run_batch = AsyncMock(
            return_value=FetchBatchResult(collection="relationship_advice", count=0, items=())
        )

        result = self.runner.invoke(app, [
            "batch", "relationship_advice",
            "--limit", "5",
            "--window", "month",
            "--config", self.config_path,
            "--env", self.env_path,
        ])

        self.assertEqual(result.exit_code, 0)
        self.mock_client.run_batch.assert_awaited_once_with("relationship_advice", 5, "month")

    def test_batch_command_fetch_error(self):
        """A failed fetch exits with status 1."""
        self.mock_client.run_batch = AsyncMock(side_effect=UpstreamError(503, "/r/AmItheAsshole/top"))

        result = self.runner.invoke(app, ["batch", "--config", self.config_path, "--env", self.env_path])

        self.assertEqual(result.exit_code, 1)
        self.assertNotIn("results", result.stdout)

    def test_batch_command_invalid_config(self):
        """Missing credentials abort before any client is created."""
        result = self.runner.invoke(app, ["batch", "--config", self.config_path, "--env", self.empty_env_path])

        self.assertEqual(result.exit_code, 1)
        self.mock_with_client.assert_not_called()

    def test_post_command(self):
        self.mock_client.fetch_one = AsyncMock(return_value=Item(id="abc123", title="AITA?"))

        result = self.runner.invoke(app, ["post", "abc123", "--config", self.config_path, "--env", self.env_path])

        self.assertEqual(result.exit_code, 0)
        self.mock_client.fetch_one.assert_awaited_once_with("abc123")
        self.assertEqual(json.loads(result.stdout)["id"], "abc123")

    def test_check_config_ok(self):
        result = self.runner.invoke(app, ["check-config", "--config", self.config_path, "--env", self.env_path])

        self.assertEqual(result.exit_code, 0)
        self.assertIn("Configuration OK", result.stdout)

    def test_check_config_errors(self):
        result = self.runner.invoke(app, ["check-config", "--config", self.config_path, "--env", self.empty_env_path])

        self.assertEqual(result.exit_code, 1)
        self.assertIn("Missing REDDIT_CLIENT_ID", result.stdout)


if __name__ == "__main__":
    unittest.main()
