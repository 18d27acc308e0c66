"""Command-line interface for the AITA fetcher."""

import asyncio
import json
import logging
import logging.config
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, Optional

import typer
from typing_extensions import Annotated

from aita_fetcher.config import Config
from aita_fetcher.exceptions import FetchError
from aita_fetcher.monitoring.metrics import PrometheusExporter
from aita_fetcher.reddit_client import RedditClient

app = typer.Typer(help="AITA fetcher - pull top posts and their comments from Reddit")

logger = logging.getLogger(__name__)


def setup_logging(log_level: str = "INFO") -> None:
    """
    Set up logging configuration.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    log_dir = Path("logs")
    log_dir.mkdir(exist_ok=True)

    log_config = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "standard": {
                "format": "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "level": log_level,
                "formatter": "standard",
                "stream": "ext://sys.stderr",
            },
            "file": {
                "class": "logging.handlers.RotatingFileHandler",
                "level": log_level,
                "formatter": "standard",
                "filename": "logs/fetcher.log",
                "maxBytes": 10485760,  # 10 MB
                "backupCount": 5,
                "encoding": "utf8",
            },
        },
        "loggers": {
            "": {
                "handlers": ["console", "file"],
                "level": log_level,
                "propagate": True
            },
            "asyncio": {
                "level": "WARNING",
            },
            "aiohttp": {
                "level": "WARNING",
            },
        }
    }

    logging.config.dictConfig(log_config)


def load_config(config_path: str, env_path: Optional[str]) -> Config:
    """Load and validate configuration, exiting with status 1 when invalid."""
    config = Config.from_files(config_path, env_path)
    validation_errors = config.validate()
    if validation_errors:
        for error in validation_errors:
            logger.error(f"Configuration error: {error}")
        typer.echo("Invalid configuration, aborting", err=True)
        raise typer.Exit(code=1)
    return config


async def with_client(config: Config, action: Callable[[RedditClient], Awaitable[Dict[str, Any]]]) -> Dict[str, Any]:
    """Authenticate, run ``action`` against the client and always close it."""
    prometheus_exporter = None
    if config.monitoring.enable_prometheus:
        prometheus_exporter = PrometheusExporter(port=config.monitoring.prometheus_port)
        prometheus_exporter.start_server()

    client = await RedditClient.from_config(config, prometheus_exporter=prometheus_exporter)
    async with client:
        return await action(client)


def run_and_print(config: Config, action: Callable[[RedditClient], Awaitable[Dict[str, Any]]]) -> None:
    try:
        result = asyncio.run(with_client(config, action))
    except FetchError as e:
        logger.error(f"Fetch failed: {e}")
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)
    typer.echo(json.dumps(result, indent=2))


@app.command()
def batch(
    collection: Annotated[Optional[str], typer.Argument(help="Subreddit to fetch (defaults to config)")] = None,
    limit: Annotated[Optional[int], typer.Option("--limit", "-n", help="Number of posts to return")] = None,
    window: Annotated[Optional[str], typer.Option("--window", "-t", help="hour, day, week, month, year or all")] = None,
    config: Annotated[str, typer.Option("--config", "-c", help="Path to configuration file")] = "config.yaml",
    env: Annotated[Optional[str], typer.Option("--env", "-e", help="Path to .env file")] = None,
    loglevel: Annotated[str, typer.Option("--loglevel", "-l", help="Logging level")] = "INFO",
) -> None:
    """
    Fetch the top posts of a subreddit together with their comments.
    """
    setup_logging(loglevel)
    cfg = load_config(config, env)

    collection = collection or cfg.fetch.default_collection
    limit = limit if limit is not None else cfg.fetch.default_limit
    window = window or cfg.fetch.default_window
    logger.info(f"Starting batch for r/{collection} (limit={limit}, window={window})")

    async def action(client: RedditClient) -> Dict[str, Any]:
        result = await client.run_batch(collection, limit, window)
        return result.to_dict()

    run_and_print(cfg, action)


@app.command()
def post(
    item_id: Annotated[str, typer.Argument(help="Reddit post id, without the t3_ prefix")],
    config: Annotated[str, typer.Option("--config", "-c", help="Path to configuration file")] = "config.yaml",
    env: Annotated[Optional[str], typer.Option("--env", "-e", help="Path to .env file")] = None,
    loglevel: Annotated[str, typer.Option("--loglevel", "-l", help="Logging level")] = "INFO",
) -> None:
    """
    Fetch a single post by id together with its comments.
    """
    setup_logging(loglevel)
    cfg = load_config(config, env)

    async def action(client: RedditClient) -> Dict[str, Any]:
        item = await client.fetch_one(item_id)
        return item.to_dict()

    run_and_print(cfg, action)


@app.command("check-config")
def check_config(
    config: Annotated[str, typer.Option("--config", "-c", help="Path to configuration file")] = "config.yaml",
    env: Annotated[Optional[str], typer.Option("--env", "-e", help="Path to .env file")] = None,
) -> None:
    """
    Validate the configuration without contacting Reddit.
    """
    cfg = Config.from_files(config, env)
    errors = cfg.validate()
    if errors:
        for error in errors:
            typer.echo(f"- {error}")
        raise typer.Exit(code=1)
    typer.echo("Configuration OK")


if __name__ == "__main__":
    app()
