"""Startup probes for the Cosmos DB and Azurite emulators used in development."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING
from urllib.parse import urlparse

import httpx

if TYPE_CHECKING:
    from contribution_review.config import Settings

logger = logging.getLogger(__name__)

_PROBE_TIMEOUT_SECONDS = 3


def _local_root(url: str) -> str | None:
    """Scheme and host of a plain-HTTP emulator URL; None for cloud (https) endpoints."""
    parsed = urlparse(url)
    if parsed.scheme == "https":
        return None
    return f"{parsed.scheme}://{parsed.netloc}/"


def emulator_targets(settings: Settings) -> tuple[dict[str, str], list[str]]:
    """Split the configured endpoints into probe targets and configuration problems."""
    targets: dict[str, str] = {}
    problems: list[str] = []

    if not settings.cosmos.endpoint:
        problems.append("COSMOS_ENDPOINT is not set, add it to .env")
    elif root := _local_root(settings.cosmos.endpoint):
        targets["Cosmos DB emulator"] = root

    if settings.storage.connection_string:
        logger.debug("Storage uses a connection string, Azurite is not probed")
    elif not settings.storage.account_url:
        problems.append(
            "Neither AZURE_STORAGE_CONNECTION_STRING nor AZURE_STORAGE_ACCOUNT_URL is set"
        )
    elif root := _local_root(settings.storage.account_url):
        targets["Azurite storage emulator"] = root

    return targets, problems


async def check_emulators(settings: Settings) -> bool:
    """Return True when every local emulator answers. Problems are logged as errors."""
    targets, problems = emulator_targets(settings)
    if targets:
        async with httpx.AsyncClient(timeout=_PROBE_TIMEOUT_SECONDS) as client:
            for name, root in targets.items():
                try:
                    await client.get(root)
                except httpx.ConnectError:
                    problems.append(f"{name} is not running at {urlparse(root).netloc}")

    for problem in problems:
        logger.error(problem)
    if problems:
        logger.error("Run `docker compose up -d` to start the local emulators")
    return not problems
