"""Environment-level configuration shared by every bundle run."""

from __future__ import annotations

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class BundlerSettings(BaseSettings):
    """Where packages and native modules live, read from `SLOOP_*` variables."""

    model_config = SettingsConfigDict(env_prefix="SLOOP_", frozen=True)

    catalog_path: Path = Path.home() / ".sloop" / "packages"
    node_modules_path: Path | None = None
    core_package: str = "core"
    validate_version_override: bool = False
