"""Concatenating, minifying and fingerprinting production client assets."""

from __future__ import annotations

import hashlib
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, ClassVar

import rcssmin
import rjsmin

from sloop.errors import AssetError

if TYPE_CHECKING:
    from collections.abc import Sequence
    from pathlib import Path

logger = logging.getLogger(__name__)


def fingerprint(content: str) -> str:
    """Return the 40 character SHA-1 hex digest used as a cacheable file name."""
    return hashlib.sha1(content.encode("utf-8"), usedforsecurity=False).hexdigest()


@dataclass(frozen=True, slots=True)
class MinifiedAssets:
    js: str | None = None
    css: str | None = None

    @property
    def scripts(self) -> list[str]:
        return [f"/{self.js}"] if self.js else []

    @property
    def stylesheets(self) -> list[str]:
        return [f"/{self.css}"] if self.css else []


@dataclass(frozen=True, slots=True)
class Minifier:
    """Write one minified JavaScript file and one minified stylesheet per bundle."""

    _js_separator: ClassVar[str] = "\n;\n"
    _css_separator: ClassVar[str] = "\n"

    output: Path

    def __call__(self, *, js: Sequence[Path], css: Sequence[Path]) -> MinifiedAssets:
        js_name = self._write(rjsmin.jsmin(self._concat(js, self._js_separator)), ".js")
        css_name = self._write(rcssmin.cssmin(self._concat(css, self._css_separator)), ".css")
        return MinifiedAssets(js=js_name, css=css_name)

    @staticmethod
    def _concat(sources: Sequence[Path], separator: str) -> str:
        parts: list[str] = []
        for source in sources:
            try:
                parts.append(source.read_text(encoding="utf-8"))
            except UnicodeDecodeError as exc:
                msg = f"Could not minify {source}: not valid UTF-8 ({exc.reason})"
                raise AssetError(msg) from exc
            except OSError as exc:
                msg = f"Could not read {source}: {exc.strerror or exc}"
                raise AssetError(msg) from exc
        return separator.join(parts)

    def _write(self, content: str, suffix: str) -> str | None:
        if not content.strip():
            return None
        name = f"{fingerprint(content)}{suffix}"
        self.output.mkdir(parents=True, exist_ok=True)
        (self.output / name).write_text(content, encoding="utf-8")
        logger.debug("Wrote %s (%d bytes)", name, len(content))
        return name
