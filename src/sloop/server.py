"""Writing the server half of a bundle and its entry points."""

from __future__ import annotations

import json
import logging
from pathlib import PurePosixPath
from typing import TYPE_CHECKING, Final

from sloop.client import copy_file
from sloop.errors import AssetError
from sloop.render import render

if TYPE_CHECKING:
    from pathlib import Path

    from sloop.app import Application
    from sloop.client import ClientManifest
    from sloop.errors import Diagnostics
    from sloop.options import BuildOptions
    from sloop.resolver import ResolvedGraph

logger = logging.getLogger(__name__)

MAIN_JS: Final[str] = "require(require('path').join(__dirname, 'server', 'server.js'));\n"
MANIFEST: Final[str] = "app.json"


def build_server(  # noqa: PLR0913
    graph: ResolvedGraph,
    app: Application,
    output: Path,
    options: BuildOptions,
    client: ClientManifest | None,
    diagnostics: Diagnostics,
) -> Diagnostics:
    """Copy server code in load order and write `server/server.js`, `main.js` and `app.json`."""
    load: list[str] = []

    for entry in graph:
        if entry.test_only and options.minify:
            continue
        for file in entry.package.server:
            relative = PurePosixPath("server", "packages", entry.name, file)
            try:
                copy_file(entry.package.source(file), output / relative)
            except AssetError as exc:
                diagnostics = diagnostics.exception(exc)
                continue
            load.append(relative.as_posix())

    for file in app.server_files():
        relative = PurePosixPath("server", "app", file.path)
        try:
            copy_file(file.source, output / relative)
        except AssetError as exc:
            diagnostics = diagnostics.exception(exc)
            continue
        load.append(relative.as_posix())

    manifest = {
        "release": graph.release,
        "packages": graph.names(),
        "load": load,
        "client": client.as_dict() if client is not None else {"js": [], "css": []},
        "node_modules": options.node_modules_mode.value,
    }
    server_dir = output / "server"
    try:
        server_dir.mkdir(parents=True, exist_ok=True)
        (server_dir / "server.js").write_text(render("server.js", manifest=MANIFEST), encoding="utf-8")
        (output / "main.js").write_text(MAIN_JS, encoding="utf-8")
        (output / MANIFEST).write_text(json.dumps(manifest, indent=2) + "\n", encoding="utf-8")
    except OSError as exc:
        return diagnostics.exception(exc)
    logger.info("Wrote server bundle with %d files to load", len(load))
    return diagnostics
