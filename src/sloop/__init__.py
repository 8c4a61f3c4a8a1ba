from sloop.catalog import Catalog, DirectoryCatalog, Package
from sloop.core import bundle, bundle_async
from sloop.errors import Diagnostics
from sloop.options import BuildOptions, NodeModulesMode
from sloop.settings import BundlerSettings

__all__ = [
    "BuildOptions",
    "BundlerSettings",
    "Catalog",
    "Diagnostics",
    "DirectoryCatalog",
    "NodeModulesMode",
    "Package",
    "bundle",
    "bundle_async",
]
