from __future__ import annotations

import pytest

from sloop.errors import Diagnostics
from sloop.linker import link_node_modules
from sloop.options import NodeModulesMode


@pytest.fixture
def server_dir(tmp_path):
    return tmp_path / "bundle" / "server"


def test_skip_creates_nothing(server_dir, module_cache):
    diagnostics = link_node_modules(
        server_dir, ["fibers"], mode=NodeModulesMode.SKIP, cache=module_cache, diagnostics=Diagnostics()
    )
    assert not diagnostics
    assert not (server_dir / "node_modules").exists()


def test_skip_ignores_missing_cache(server_dir):
    diagnostics = link_node_modules(server_dir, ["fibers"], mode=NodeModulesMode.SKIP, cache=None, diagnostics=Diagnostics())
    assert not diagnostics


def test_copy_creates_real_directory(server_dir, module_cache):
    diagnostics = link_node_modules(
        server_dir, ["fibers"], mode=NodeModulesMode.COPY, cache=module_cache, diagnostics=Diagnostics()
    )
    node_modules = server_dir / "node_modules"
    assert not diagnostics
    assert not node_modules.is_symlink()
    assert (node_modules / "fibers" / "lib" / "fibers.js").is_file()
    assert not (node_modules / "unused").exists()


def test_copy_reports_missing_module_and_copies_the_rest(server_dir, module_cache):
    diagnostics = link_node_modules(
        server_dir, ["ghost", "fibers"], mode=NodeModulesMode.COPY, cache=module_cache, diagnostics=Diagnostics()
    )
    assert len(diagnostics) == 1
    assert "Native module not found" in diagnostics.messages[0]
    assert "ghost" in diagnostics.messages[0]
    assert (server_dir / "node_modules" / "fibers").is_dir()


def test_symlink_points_at_cache(server_dir, module_cache):
    diagnostics = link_node_modules(
        server_dir, ["fibers"], mode=NodeModulesMode.SYMLINK, cache=module_cache, diagnostics=Diagnostics()
    )
    node_modules = server_dir / "node_modules"
    assert not diagnostics
    assert node_modules.is_symlink()
    assert node_modules.resolve() == module_cache.resolve()
    assert (node_modules / "fibers").is_dir()


def test_symlink_reports_missing_module(server_dir, module_cache):
    diagnostics = link_node_modules(
        server_dir, ["ghost"], mode=NodeModulesMode.SYMLINK, cache=module_cache, diagnostics=Diagnostics()
    )
    assert len(diagnostics) == 1
    assert "ghost" in diagnostics.messages[0]
    assert (server_dir / "node_modules").is_symlink()


@pytest.mark.parametrize("mode", [NodeModulesMode.COPY, NodeModulesMode.SYMLINK])
def test_unconfigured_cache(server_dir, mode):
    diagnostics = link_node_modules(server_dir, ["fibers"], mode=mode, cache=None, diagnostics=Diagnostics())
    assert "no module cache is configured" in diagnostics.messages[0]
    assert not (server_dir / "node_modules").exists()


@pytest.mark.parametrize("mode", [NodeModulesMode.COPY, NodeModulesMode.SYMLINK])
def test_missing_cache_directory(server_dir, tmp_path, mode):
    diagnostics = link_node_modules(
        server_dir, ["fibers"], mode=mode, cache=tmp_path / "missing", diagnostics=Diagnostics()
    )
    assert "LinkError" in diagnostics.messages[0]
    assert "does not exist" in diagnostics.messages[0]


def test_keeps_earlier_diagnostics(server_dir):
    earlier = Diagnostics().add("earlier")
    diagnostics = link_node_modules(server_dir, ["fibers"], mode=NodeModulesMode.COPY, cache=None, diagnostics=earlier)
    assert diagnostics.messages[0] == "earlier"
    assert len(diagnostics) == 2


def test_copy_without_dependencies_needs_no_cache(server_dir):
    diagnostics = link_node_modules(server_dir, [], mode=NodeModulesMode.COPY, cache=None, diagnostics=Diagnostics())
    assert not diagnostics
    assert (server_dir / "node_modules").is_dir()
    assert list((server_dir / "node_modules").iterdir()) == []
