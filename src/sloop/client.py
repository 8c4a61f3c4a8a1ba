"""Building `app.html` and the client assets it references."""

from __future__ import annotations

import logging
import re
import shutil
from dataclasses import dataclass, field
from pathlib import PurePosixPath
from typing import TYPE_CHECKING, Any
from urllib.parse import quote

from sloop.errors import AssetError, BundleError
from sloop.minify import Minifier
from sloop.render import render

if TYPE_CHECKING:
    from pathlib import Path

    from sloop.app import Application, SourceFile
    from sloop.errors import Diagnostics
    from sloop.options import BuildOptions
    from sloop.resolver import ResolvedGraph

logger = logging.getLogger(__name__)

_HEAD = re.compile(r"<head\b[^>]*>(.*?)</head\s*>", re.IGNORECASE | re.DOTALL)
_BODY = re.compile(r"<body\b[^>]*>(.*?)</body\s*>", re.IGNORECASE | re.DOTALL)


@dataclass(slots=True)
class ClientManifest:
    """What `app.html` loads, in load order."""

    scripts: list[str] = field(default_factory=list)
    stylesheets: list[str] = field(default_factory=list)
    head: list[str] = field(default_factory=list)
    body: list[str] = field(default_factory=list)

    def add(self, url: str) -> None:
        if url.endswith(".js"):
            self.scripts.append(url)
        elif url.endswith(".css"):
            self.stylesheets.append(url)

    def as_dict(self) -> dict[str, Any]:
        return {"js": list(self.scripts), "css": list(self.stylesheets)}


def copy_file(source: Path, destination: Path) -> None:
    """Copy one asset into the bundle, reporting failures as `AssetError`."""
    if not source.is_file():
        msg = f"File not found: {source}"
        raise AssetError(msg)
    try:
        destination.parent.mkdir(parents=True, exist_ok=True)
        shutil.copyfile(source, destination)
    except OSError as exc:
        msg = f"Could not copy {source} to {destination}: {exc.strerror or exc}"
        raise AssetError(msg) from exc


def _url(*parts: str) -> str:
    return "/" + quote(PurePosixPath(*parts).as_posix())


@dataclass(slots=True)
class ClientBuilder:
    graph: ResolvedGraph
    app: Application
    output: Path
    options: BuildOptions
    diagnostics: Diagnostics
    manifest: ClientManifest = field(default_factory=ClientManifest)

    def build(self) -> tuple[ClientManifest | None, Diagnostics]:
        self._html_fragments()
        self._public_files()
        if self.options.minify:
            built = self._production()
        else:
            self._development()
            built = True
        if not built:
            return None, self.diagnostics
        self._write_html()
        return self.manifest, self.diagnostics

    def _development(self) -> None:
        for entry in self.graph:
            for file in entry.client_files:
                destination = self.output / "packages" / entry.name / PurePosixPath(file)
                try:
                    copy_file(entry.package.source(file), destination)
                except AssetError as exc:
                    self.diagnostics = self.diagnostics.exception(exc)
                    continue
                self.manifest.add(_url("packages", entry.name, file))
                logger.debug("Copied %s/%s", entry.name, file)

        for source in self._app_assets():
            try:
                copy_file(source.source, self.output / "static" / source.path)
            except AssetError as exc:
                self.diagnostics = self.diagnostics.exception(exc)
                continue
            self.manifest.add(_url(source.path.as_posix()))

    def _production(self) -> bool:
        skipped = [entry.name for entry in self.graph if entry.include_tests or entry.test_only]
        if skipped:
            logger.warning("Tests of %s are not included in minified bundles", ", ".join(skipped))

        packages = [entry for entry in self.graph if not entry.test_only]
        sources = [entry.package.source(file) for entry in packages for file in entry.package.client]
        sources.extend(file.source for file in self._app_assets())
        minifier = Minifier(self.output / "static_cacheable")
        try:
            assets = minifier(
                js=[source for source in sources if source.suffix == ".js"],
                css=[source for source in sources if source.suffix == ".css"],
            )
        except BundleError as exc:
            self.diagnostics = self.diagnostics.exception(exc)
            return False
        self.manifest.scripts.extend(assets.scripts)
        self.manifest.stylesheets.extend(assets.stylesheets)
        logger.info("Minified client assets into %s", ", ".join([*assets.scripts, *assets.stylesheets]) or "nothing")
        return True

    def _app_assets(self) -> list[SourceFile]:
        return [file for file in self.app.client_files() if file.suffix in {".js", ".css"}]

    def _html_fragments(self) -> None:
        for file in self.app.client_files():
            if file.suffix != ".html":
                continue
            try:
                text = file.source.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as exc:
                msg = f"Could not read {file.path}: {exc}"
                self.diagnostics = self.diagnostics.exception(AssetError(msg))
                continue
            head, body = _HEAD.search(text), _BODY.search(text)
            if head is None and body is None:
                self.manifest.body.append(text.strip())
                continue
            if head is not None:
                self.manifest.head.append(head.group(1).strip())
            if body is not None:
                self.manifest.body.append(body.group(1).strip())

    def _public_files(self) -> None:
        for file in self.app.public_files():
            relative = PurePosixPath(*file.path.parts[1:])
            try:
                copy_file(file.source, self.output / "static" / relative)
            except AssetError as exc:
                self.diagnostics = self.diagnostics.exception(exc)

    def _write_html(self) -> None:
        html = render(
            "app.html",
            scripts=self.manifest.scripts,
            stylesheets=self.manifest.stylesheets,
            head="\n".join(fragment for fragment in self.manifest.head if fragment),
            body="\n".join(fragment for fragment in self.manifest.body if fragment),
        )
        (self.output / "app.html").write_text(html + "\n", encoding="utf-8")


def build_client(
    graph: ResolvedGraph,
    app: Application,
    output: Path,
    options: BuildOptions,
    diagnostics: Diagnostics,
) -> tuple[ClientManifest | None, Diagnostics]:
    """Write `app.html` and its assets; the manifest is `None` when the client build failed."""
    builder = ClientBuilder(graph=graph, app=app, output=output, options=options, diagnostics=diagnostics)
    try:
        return builder.build()
    except OSError as exc:
        return None, builder.diagnostics.exception(exc)
