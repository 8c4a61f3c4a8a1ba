"""Package records and the catalogs that supply them."""

from __future__ import annotations

import logging
import tomllib
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import TYPE_CHECKING, Any, Protocol

from sloop.errors import ManifestError

if TYPE_CHECKING:
    from collections.abc import Sequence

logger = logging.getLogger(__name__)

MANIFEST = "package.toml"


@dataclass(frozen=True, slots=True, kw_only=True)
class Package:
    name: str
    version: str
    root: Path
    summary: str = ""
    client: tuple[str, ...] = ()
    server: tuple[str, ...] = ()
    tests: tuple[str, ...] = ()
    depends: tuple[str, ...] = ()
    test_depends: tuple[str, ...] = ()
    npm_dependencies: tuple[str, ...] = ()

    def source(self, file: str) -> Path:
        return self.root / PurePosixPath(file)


class Catalog(Protocol):
    """Read-only lookup of packages keyed by name and release version."""

    def get(self, name: str, version: str) -> Package | None:
        """Return the package, or `None` when the catalog does not carry it."""

    def has_release(self, version: str) -> bool:
        """Return whether any package is published for the release."""


def split_requirement(requirement: str) -> tuple[str, str | None]:
    """Split ``name@version`` into its parts; a bare name has no pinned version."""
    name, sep, version = requirement.partition("@")
    name = name.strip()
    if not name or (sep and not version.strip()):
        msg = f"Invalid package requirement {requirement!r}"
        raise ManifestError(msg)
    return name, version.strip() if sep else None


def _file_list(data: dict[str, Any], key: str, manifest: Path) -> tuple[str, ...]:
    value = data.get(key, [])
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        msg = f"{manifest}: '{key}' must be a list of strings"
        raise ManifestError(msg)
    return tuple(value)


def _relative_files(data: dict[str, Any], key: str, manifest: Path) -> tuple[str, ...]:
    files = _file_list(data, key, manifest)
    for file in files:
        path = PurePosixPath(file)
        if path.is_absolute() or any(part in {"", ".", ".."} for part in path.parts):
            msg = f"{manifest}: file {file!r} in '{key}' must be a relative path inside the package"
            raise ManifestError(msg)
    return files


def load_manifest(path: Path, *, version: str) -> Package:
    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, tomllib.TOMLDecodeError) as exc:
        msg = f"Could not read package manifest {path}: {exc}"
        raise ManifestError(msg) from exc

    name = data.get("name", path.parent.name)
    if name != path.parent.name:
        msg = f"{path}: package name {name!r} does not match its directory {path.parent.name!r}"
        raise ManifestError(msg)

    depends = _file_list(data, "depends", path)
    test_depends = _file_list(data, "test_depends", path)
    for requirement in (*depends, *test_depends):
        split_requirement(requirement)

    return Package(
        name=name,
        version=version,
        root=path.parent,
        summary=str(data.get("summary", "")),
        client=_relative_files(data, "client", path),
        server=_relative_files(data, "server", path),
        tests=_relative_files(data, "tests", path),
        depends=depends,
        test_depends=test_depends,
        npm_dependencies=_file_list(data, "npm_dependencies", path),
    )


@dataclass(frozen=True, slots=True)
class DirectoryCatalog:
    """Catalog laid out as ``<root>/<version>/<name>/package.toml``."""

    root: Path

    def get(self, name: str, version: str) -> Package | None:
        if any(part in {"", ".", ".."} or "/" in part for part in (name, version)):
            return None
        manifest = self.root / version / name / MANIFEST
        if not manifest.is_file():
            return None
        logger.debug("Loading %s@%s from %s", name, version, manifest)
        return load_manifest(manifest, version=version)

    def has_release(self, version: str) -> bool:
        return bool(version) and (self.root / version).is_dir()

    def releases(self) -> Sequence[str]:
        if not self.root.is_dir():
            return []
        return sorted(entry.name for entry in self.root.iterdir() if entry.is_dir())
