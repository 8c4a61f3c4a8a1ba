"""The `bundle()` entry point tying the build stages together."""

from __future__ import annotations

import functools
import logging
import shutil
from collections.abc import Mapping
from pathlib import Path
from typing import TYPE_CHECKING, Any

import anyio.to_thread

from sloop.app import Application
from sloop.catalog import DirectoryCatalog
from sloop.client import build_client
from sloop.errors import BundleError, Diagnostics
from sloop.linker import link_node_modules
from sloop.options import BuildOptions
from sloop.resolver import resolve_packages
from sloop.server import build_server
from sloop.settings import BundlerSettings
from sloop.version import resolve_version

if TYPE_CHECKING:
    from os import PathLike

    from sloop.catalog import Catalog
    from sloop.resolver import ResolvedGraph

logger = logging.getLogger(__name__)


def _options(options: BuildOptions | Mapping[str, Any] | None) -> BuildOptions:
    if options is None:
        return BuildOptions()
    if isinstance(options, BuildOptions):
        return options
    if isinstance(options, Mapping):
        return BuildOptions.from_mapping(options)
    msg = f"options must be BuildOptions or a mapping, not {type(options).__name__}"
    raise TypeError(msg)


def _resolve(
    app_dir: Path,
    options: BuildOptions,
    catalog: Catalog,
    settings: BundlerSettings,
) -> tuple[Application, ResolvedGraph]:
    app = Application(app_dir)
    release = resolve_version(app, options, catalog=catalog if settings.validate_version_override else None)
    graph = resolve_packages(
        catalog,
        release,
        core_package=settings.core_package,
        packages=app.declared_packages(),
        test_packages=options.test_packages,
    )
    return app, graph


def _check_output(app_dir: Path, output: Path) -> None:
    app_root, target = app_dir.resolve(), output.resolve()
    if target == app_root or target in app_root.parents:
        msg = f"The output directory {output} would overwrite the application in {app_dir}"
        raise BundleError(msg)


def _fresh_directory(path: Path) -> None:
    if path.is_symlink() or path.is_file():
        path.unlink()
    elif path.exists():
        shutil.rmtree(path)
    path.mkdir(parents=True)


def bundle(
    app_dir: str | PathLike[str],
    output_dir: str | PathLike[str],
    options: BuildOptions | Mapping[str, Any] | None = None,
    *,
    catalog: Catalog | None = None,
    settings: BundlerSettings | None = None,
) -> list[str] | None:
    """Bundle the application in `app_dir` into `output_dir`.

    Returns `None` on success. Otherwise returns the error messages collected from
    every stage that ran, in order; the output directory may be partially written.
    Only malformed `options` raise.
    """
    build_options = _options(options)
    app_path, output = Path(app_dir), Path(output_dir)
    diagnostics = Diagnostics()

    logger.info("Bundling %s into %s", app_path, output)
    try:
        settings = settings if settings is not None else BundlerSettings()
        catalog = catalog if catalog is not None else DirectoryCatalog(settings.catalog_path)
        app, graph = _resolve(app_path, build_options, catalog, settings)
    except Exception as exc:  # noqa: BLE001
        return diagnostics.exception(exc).result()

    try:
        _check_output(app_path, output)
        _fresh_directory(output)
    except (BundleError, OSError) as exc:
        return diagnostics.exception(exc).result()

    client = None
    try:
        client, diagnostics = build_client(graph, app, output, build_options, diagnostics)
    except Exception as exc:  # noqa: BLE001
        diagnostics = diagnostics.exception(exc)

    try:
        diagnostics = build_server(graph, app, output, build_options, client, diagnostics)
    except Exception as exc:  # noqa: BLE001
        diagnostics = diagnostics.exception(exc)

    try:
        diagnostics = link_node_modules(
            output / "server",
            graph.npm_dependencies(),
            mode=build_options.node_modules_mode,
            cache=settings.node_modules_path,
            diagnostics=diagnostics,
        )
    except Exception as exc:  # noqa: BLE001
        diagnostics = diagnostics.exception(exc)

    if diagnostics:
        logger.info("Bundling %s failed with %d errors", app_path, len(diagnostics))
    else:
        logger.info("Bundled %s (release %s, %d packages)", app_path, graph.release, len(graph))
    return diagnostics.result()


async def bundle_async(
    app_dir: str | PathLike[str],
    output_dir: str | PathLike[str],
    options: BuildOptions | Mapping[str, Any] | None = None,
    *,
    catalog: Catalog | None = None,
    settings: BundlerSettings | None = None,
) -> list[str] | None:
    """Run `bundle` on a worker thread so the event loop stays responsive."""
    build_options = _options(options)
    call = functools.partial(bundle, app_dir, output_dir, build_options, catalog=catalog, settings=settings)
    return await anyio.to_thread.run_sync(call)
