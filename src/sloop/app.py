"""Reading an application source tree."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import ClassVar

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class SourceFile:
    """An application file, addressed by its POSIX path relative to the app root."""

    path: PurePosixPath
    source: Path

    @property
    def suffix(self) -> str:
        return self.path.suffix


def load_order_key(path: PurePosixPath) -> tuple[int, int, int, str]:
    """Sort `lib/` files first and `main.*` files last, deeper paths before shallower."""
    in_lib = 0 if "lib" in path.parts[:-1] else 1
    is_main = 1 if path.stem == "main" else 0
    return (is_main, in_lib, -len(path.parts), path.as_posix())


@dataclass(frozen=True, slots=True)
class Application:
    """An application directory and its ``.sloop`` metadata."""

    _meta_dir: ClassVar[str] = ".sloop"
    _ignored_dirs: ClassVar[frozenset[str]] = frozenset({"node_modules", "tests"})
    _client_suffixes: ClassVar[frozenset[str]] = frozenset({".js", ".css", ".html"})
    _server_suffixes: ClassVar[frozenset[str]] = frozenset({".js"})

    root: Path
    _files: list[SourceFile] = field(default_factory=list, init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        if not self.root.is_dir():
            msg = f"The application directory {self.root} does not exist"
            raise ValueError(msg)

    @property
    def version_file(self) -> Path:
        return self.root / self._meta_dir / "version"

    @property
    def packages_file(self) -> Path:
        return self.root / self._meta_dir / "packages"

    def declared_version(self) -> str | None:
        """Return the stripped marker contents, or `None` when missing or blank."""
        if not self.version_file.is_file():
            return None
        version = self.version_file.read_text(encoding="utf-8").strip()
        return version or None

    def declared_packages(self) -> tuple[str, ...]:
        if not self.packages_file.is_file():
            return ()
        names: list[str] = []
        for raw in self.packages_file.read_text(encoding="utf-8").splitlines():
            line = raw.split("#", 1)[0].strip()
            if line:
                names.append(line)
        return tuple(dict.fromkeys(names))

    def files(self) -> list[SourceFile]:
        """Every non-hidden file in the app, in load order."""
        if not self._files:
            found = [
                SourceFile(path=PurePosixPath(path.relative_to(self.root).as_posix()), source=path)
                for path in self._walk(self.root)
            ]
            self._files.extend(sorted(found, key=lambda file: load_order_key(file.path)))
            logger.debug("Found %d application files in %s", len(found), self.root)
        return list(self._files)

    def _walk(self, directory: Path) -> list[Path]:
        paths: list[Path] = []
        for entry in sorted(directory.iterdir()):
            if entry.name.startswith("."):
                continue
            if entry.is_dir():
                if directory == self.root and entry.name in self._ignored_dirs:
                    continue
                paths.extend(self._walk(entry))
            elif entry.is_file():
                paths.append(entry)
        return paths

    def public_files(self) -> list[SourceFile]:
        return [file for file in self.files() if file.path.parts[0] == "public"]

    def client_files(self) -> list[SourceFile]:
        return [
            file
            for file in self.files()
            if file.path.parts[0] != "public"
            and "server" not in file.path.parts[:-1]
            and file.suffix in self._client_suffixes
        ]

    def server_files(self) -> list[SourceFile]:
        return [
            file
            for file in self.files()
            if file.path.parts[0] != "public"
            and "client" not in file.path.parts[:-1]
            and file.suffix in self._server_suffixes
        ]
