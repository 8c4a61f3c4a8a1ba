from __future__ import annotations

from pathlib import Path

import pytest

from sloop.app import Application
from sloop.catalog import DirectoryCatalog
from sloop.settings import BundlerSettings

RELEASE = "0.1"

PACKAGES: dict[str, tuple[str, dict[str, str]]] = {
    "underscore": (
        """
summary = "Collection helpers"
client = ["underscore.js"]
server = ["underscore.js"]
""",
        {"underscore.js": "var _ = {each: function (list, fn) { for (var i = 0; i < list.length; i++) fn(list[i]); }};\n"},
    ),
    "core": (
        """
summary = "Core runtime"
depends = ["underscore"]
client = ["client_environment.js", "url_common.js", "core.css"]
server = ["server_environment.js", "url_common.js"]
tests = ["url_tests.js"]
test_depends = ["tinytest"]
npm_dependencies = ["fibers"]
""",
        {
            "client_environment.js": "Core = {isClient: true, isServer: false};\n",
            "server_environment.js": "Core = {isClient: false, isServer: true};\n",
            "url_common.js": "Core.absoluteUrl = function (path) {\n  // joins the root url\n  return '/' + path;\n};\n",
            "core.css": "body {\n  margin: 0;\n}\n",
            "url_tests.js": "Tinytest.add('absoluteUrl', function (test) { test.equal(Core.absoluteUrl('a'), '/a'); });\n",
        },
    ),
    "deps": (
        """
summary = "Dependency tracking"
depends = ["core"]
client = ["deps.js"]
tests = ["deps_tests.js"]
""",
        {
            "deps.js": "Deps = {flush: function () { return true; }};\n",
            "deps_tests.js": "Tinytest.add('flush', function (test) { test.isTrue(Deps.flush()); });\n",
        },
    ),
    "tinytest": (
        """
summary = "Test framework"
depends = ["core"]
client = ["tinytest.js"]
""",
        {"tinytest.js": "Tinytest = {add: function (name, fn) {}};\n"},
    ),
}


def write_package(catalog_root: Path, name: str, manifest: str, files: dict[str, str], *, release: str = RELEASE) -> Path:
    package_dir = catalog_root / release / name
    package_dir.mkdir(parents=True, exist_ok=True)
    (package_dir / "package.toml").write_text(manifest.lstrip(), encoding="utf-8")
    for file, content in files.items():
        target = package_dir / file
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content, encoding="utf-8")
    return package_dir


def write_app(root: Path, files: dict[str, str]) -> Path:
    for file, content in files.items():
        target = root / file
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content, encoding="utf-8")
    return root


@pytest.fixture
def catalog_path(tmp_path):
    root = tmp_path / "catalog"
    for name, (manifest, files) in PACKAGES.items():
        write_package(root, name, manifest, files)
    return root


@pytest.fixture
def catalog(catalog_path):
    return DirectoryCatalog(catalog_path)


@pytest.fixture
def module_cache(tmp_path):
    root = tmp_path / "node_modules"
    fibers = root / "fibers"
    (fibers / "lib").mkdir(parents=True)
    (fibers / "package.json").write_text('{"name": "fibers"}\n', encoding="utf-8")
    (fibers / "lib" / "fibers.js").write_text("module.exports = {};\n", encoding="utf-8")
    (root / "unused").mkdir()
    return root


@pytest.fixture
def settings(catalog_path, module_cache):
    return BundlerSettings(catalog_path=catalog_path, node_modules_path=module_cache)


@pytest.fixture
def unversioned_app_dir(tmp_path):
    return write_app(
        tmp_path / "unversioned-app",
        {
            ".sloop/packages": "# packages used by this app\ndeps\n",
            "client/main.js": "Deps.flush();\n",
            "server/main.js": "console.log('started');\n",
            "app.html": "<head>\n  <title>empty</title>\n</head>\n<body>\n  <h1>Hello</h1>\n</body>\n",
            "public/robots.txt": "User-agent: *\n",
        },
    )


@pytest.fixture
def versioned_app_dir(unversioned_app_dir, tmp_path):
    root = tmp_path / "versioned-app"
    write_app(root, {".sloop/version": f"{RELEASE}\n"})
    for path in unversioned_app_dir.rglob("*"):
        if path.is_file():
            target = root / path.relative_to(unversioned_app_dir)
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(path.read_bytes())
    return root


@pytest.fixture
def versioned_app(versioned_app_dir):
    return Application(versioned_app_dir)


@pytest.fixture
def output_dir(tmp_path):
    return tmp_path / "bundle"


@pytest.fixture
def make_package():
    return write_package


@pytest.fixture
def make_app():
    return write_app
