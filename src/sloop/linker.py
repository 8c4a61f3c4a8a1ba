"""Materializing native runtime dependencies into ``server/node_modules``."""

from __future__ import annotations

import logging
import shutil
from typing import TYPE_CHECKING

from sloop.errors import LinkError
from sloop.options import NodeModulesMode

if TYPE_CHECKING:
    from collections.abc import Sequence
    from pathlib import Path

    from sloop.errors import Diagnostics

logger = logging.getLogger(__name__)


def _module_cache(cache: Path | None, mode: NodeModulesMode) -> Path:
    if cache is None:
        msg = f"Cannot {mode.value} node_modules: no module cache is configured (set SLOOP_NODE_MODULES_PATH)"
        raise LinkError(msg)
    if not cache.is_dir():
        msg = f"Cannot {mode.value} node_modules: module cache {cache} does not exist"
        raise LinkError(msg)
    return cache


def link_node_modules(
    server_dir: Path,
    dependencies: Sequence[str],
    *,
    mode: NodeModulesMode,
    cache: Path | None,
    diagnostics: Diagnostics,
) -> Diagnostics:
    """Create ``node_modules`` under `server_dir` as nothing, a copy or a symlink.

    Copies hold exactly the declared dependencies; a symlink exposes the whole
    cache. Dependencies missing from the cache are reported one by one.
    """
    if mode is NodeModulesMode.SKIP:
        logger.debug("Skipping node_modules")
        return diagnostics

    target = server_dir / "node_modules"
    if mode is NodeModulesMode.COPY and not dependencies:
        target.mkdir(parents=True, exist_ok=True)
        logger.debug("No native modules to copy into %s", target)
        return diagnostics

    try:
        source = _module_cache(cache, mode)
    except LinkError as exc:
        return diagnostics.exception(exc)

    server_dir.mkdir(parents=True, exist_ok=True)

    if mode is NodeModulesMode.SYMLINK:
        try:
            target.symlink_to(source.resolve(), target_is_directory=True)
        except OSError as exc:
            msg = f"Could not link {target} to {source}: {exc.strerror or exc}"
            return diagnostics.exception(LinkError(msg))
        for name in dependencies:
            if not (source / name).exists():
                diagnostics = diagnostics.exception(LinkError(f"Native module not found in {source}: {name}"))
        logger.info("Linked node_modules to %s", source)
        return diagnostics

    target.mkdir(exist_ok=True)
    for name in dependencies:
        module = source / name
        if not module.is_dir():
            diagnostics = diagnostics.exception(LinkError(f"Native module not found in {source}: {name}"))
            continue
        try:
            shutil.copytree(module, target / name, symlinks=True)
        except OSError as exc:
            msg = f"Could not copy native module {name}: {exc}"
            diagnostics = diagnostics.exception(LinkError(msg))
            continue
        logger.debug("Copied native module %s", name)
    logger.info("Copied %d native modules into %s", len(dependencies), target)
    return diagnostics
