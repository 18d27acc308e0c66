"""Tests for the configuration module."""

import os
import tempfile
import unittest
from unittest.mock import patch

import yaml

from aita_fetcher.config import Config


ENV_KEYS = ["REDDIT_CLIENT_ID", "REDDIT_CLIENT_SECRET", "REDDIT_USERNAME", "REDDIT_PASSWORD", "REDDIT_USER_AGENT"]


class TestConfig(unittest.TestCase):
    """Test cases for the Config class."""

    def setUp(self):
        """Set up test environment."""
        self.temp_dir = tempfile.TemporaryDirectory()
        self.config_path = os.path.join(self.temp_dir.name, "config.yaml")
        self.env_path = os.path.join(self.temp_dir.name, ".env")

        self.sample_config = {
            "auth": {"max_attempts": 3, "request_timeout_sec": 8},
            "rate_limit": {"min_interval_sec": 2.0, "burst": 1},
            "fetch": {
                "overfetch": 10,
                "comment_timeout_sec": 3.5,
                "meta_markers": ["open forum"],
                "default_window": "week",
            },
            "monitoring": {"enable_prometheus": True, "prometheus_port": 9100},
        }
        with open(self.config_path, "w", encoding="utf-8") as f:
            yaml.dump(self.sample_config, f)

        with open(self.env_path, "w", encoding="utf-8") as f:
            f.write("REDDIT_CLIENT_ID=test_client_id\n")
            f.write("REDDIT_CLIENT_SECRET=test_client_secret\n")
            f.write("REDDIT_USERNAME=test_username\n")
            f.write("REDDIT_PASSWORD=test_password\n")
            f.write("REDDIT_USER_AGENT=test_user_agent\n")

        # Keep values loaded from the .env file from leaking between tests
        self.env_patcher = patch.dict(os.environ, {}, clear=False)
        self.env_patcher.start()
        for key in ENV_KEYS:
            os.environ.pop(key, None)

    def tearDown(self):
        """Clean up test environment."""
        self.env_patcher.stop()
        self.temp_dir.cleanup()

    def test_load_from_files(self):
        """Test loading configuration from files."""
        config = Config.from_files(self.config_path, self.env_path)

        self.assertEqual(config.client_id, "test_client_id")
        self.assertEqual(config.client_secret, "test_client_secret")
        self.assertEqual(config.username, "test_username")
        self.assertEqual(config.password, "test_password")
        self.assertEqual(config.user_agent, "test_user_agent")

        self.assertEqual(config.auth.max_attempts, 3)
        self.assertEqual(config.auth.request_timeout_sec, 8)
        self.assertEqual(config.rate_limit.min_interval_sec, 2.0)
        self.assertEqual(config.fetch.overfetch, 10)
        self.assertEqual(config.fetch.comment_timeout_sec, 3.5)
        self.assertEqual(config.fetch.meta_markers, ["open forum"])
        self.assertEqual(config.fetch.default_window, "week")
        self.assertTrue(config.monitoring.enable_prometheus)
        self.assertEqual(config.monitoring.prometheus_port, 9100)

        # Untouched values keep their defaults
        self.assertEqual(config.fetch.comment_limit, 100)
        self.assertEqual(config.auth.backoff_base, 2.0)

    def test_missing_yaml_uses_defaults(self):
        """Test that a missing YAML file leaves defaults in place."""
        config = Config.from_files(os.path.join(self.temp_dir.name, "absent.yaml"), self.env_path)

        self.assertEqual(config.client_id, "test_client_id")
        self.assertEqual(config.fetch.overfetch, 5)
        self.assertEqual(config.fetch.comment_timeout_sec, 5.0)
        self.assertEqual(config.rate_limit.min_interval_sec, 1.1)
        self.assertEqual(config.auth.max_attempts, 5)
        self.assertEqual(config.fetch.meta_markers, ["open forum", "monthly discussion"])

    def test_validate_valid_config(self):
        """Test validation with valid configuration."""
        config = Config.from_files(self.config_path, self.env_path)
        self.assertEqual(config.validate(), [])

    def test_validate_invalid_config(self):
        """Test validation with invalid configuration."""
        config = Config()
        config.auth.request_timeout_sec = 30
        config.fetch.default_window = "century"
        config.fetch.comment_limit = 0

        errors = " ".join(config.validate())
        self.assertIn("Missing REDDIT_CLIENT_ID", errors)
        self.assertIn("auth.request_timeout_sec must be between 0 and 10 seconds", errors)
        self.assertIn("fetch.default_window must be one of", errors)
        self.assertIn("fetch.comment_limit must be greater than 0", errors)


if __name__ == "__main__":
    unittest.main()
