from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from sloop.errors import ResolutionError

if TYPE_CHECKING:
    from sloop.app import Application
    from sloop.catalog import Catalog
    from sloop.options import BuildOptions

logger = logging.getLogger(__name__)


def resolve_version(
    app: Application,
    options: BuildOptions,
    *,
    catalog: Catalog | None = None,
) -> str | None:
    """Pick the release to build against.

    The override always wins over the app's marker file. When a catalog is given the
    override must name a release it carries. `None` means no release could be
    determined; package resolution reports that as the core package going missing.
    """
    if options.version_override is not None:
        version = options.version_override.strip()
        if catalog is not None and not catalog.has_release(version):
            msg = f"Release not found: {version}"
            raise ResolutionError(msg)
        declared = app.declared_version()
        if declared is not None and declared != version:
            logger.info("Using release %s instead of %s declared by %s", version, declared, app.root)
        return version

    version = app.declared_version()
    if version is None:
        logger.info("No release declared by %s", app.root)
    return version
