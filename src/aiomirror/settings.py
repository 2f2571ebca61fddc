"""Settings and credential loading.

Nothing here reads environment variables; paths are passed in by the caller.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

import aiofiles
import yaml
from pydantic import ValidationError

from .exceptions import MirrorError
from .models.config import GitHubCredentials, MirrorSettings

logger = logging.getLogger(__name__)


async def _read_text(path: Path, kind: str) -> str:
    try:
        async with aiofiles.open(path, encoding="utf-8") as f:
            return await f.read()
    except FileNotFoundError as exc:
        raise MirrorError(f"{kind} file not found: {path}") from exc


async def load_settings(path: Path) -> MirrorSettings:
    """Read :class:`MirrorSettings` from a YAML file.

    An empty file yields the defaults.
    """
    content = await _read_text(path, "Settings")
    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as exc:
        raise MirrorError(f"Invalid YAML in {path}: {exc}") from exc

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise MirrorError(f"Settings in {path} must be a mapping")

    try:
        settings = MirrorSettings.model_validate(data)
    except ValidationError as exc:
        raise MirrorError(f"Invalid settings in {path}: {exc}") from exc

    logger.debug("Loaded settings from %s", path)
    return settings


async def load_credentials(
    source: Path | MirrorSettings,
    *,
    base_dir: Path | None = None,
) -> GitHubCredentials:
    """Read a ``{"login": ..., "token": ...}`` JSON file.

    *source* is either the file itself or settings whose
    ``credentials_file`` names it; a relative ``credentials_file`` is
    resolved against *base_dir* (the current directory by default).
    """
    if isinstance(source, MirrorSettings):
        path = Path(source.credentials_file)
        if base_dir is not None and not path.is_absolute():
            path = base_dir / path
    else:
        path = source

    content = await _read_text(path, "Credentials")
    try:
        return GitHubCredentials.model_validate(json.loads(content))
    except (json.JSONDecodeError, ValidationError) as exc:
        raise MirrorError(f"Invalid credentials in {path}: {exc}") from exc
