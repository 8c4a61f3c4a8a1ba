"""Resolving the package graph an application is built from."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING

from sloop.catalog import split_requirement
from sloop.errors import PackageNotFoundError, ResolutionError

if TYPE_CHECKING:
    from collections.abc import Iterator, Sequence

    from sloop.catalog import Catalog, Package

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ResolvedPackage:
    package: Package
    include_tests: bool = False
    test_only: bool = False

    @property
    def name(self) -> str:
        return self.package.name

    @property
    def client_files(self) -> tuple[str, ...]:
        """Client files followed by test files when tests were requested."""
        if self.include_tests:
            return (*self.package.client, *self.package.tests)
        return self.package.client


@dataclass(frozen=True, slots=True)
class ResolvedGraph:
    """Packages in dependency order: every package follows all of its dependencies."""

    release: str
    packages: tuple[ResolvedPackage, ...]

    def __iter__(self) -> Iterator[ResolvedPackage]:
        return iter(self.packages)

    def __len__(self) -> int:
        return len(self.packages)

    def names(self) -> list[str]:
        return [entry.name for entry in self.packages]

    def get(self, name: str) -> ResolvedPackage | None:
        return next((entry for entry in self.packages if entry.name == name), None)

    def npm_dependencies(self) -> list[str]:
        found: dict[str, None] = {}
        for entry in self.packages:
            found.update(dict.fromkeys(entry.package.npm_dependencies))
        return list(found)


@dataclass(slots=True)
class _Walk:
    catalog: Catalog
    release: str | None
    test_packages: frozenset[str]
    ordered: list[ResolvedPackage] = field(default_factory=list)
    versions: dict[str, str] = field(default_factory=dict)
    stack: list[str] = field(default_factory=list)

    def visit(self, requirement: str) -> None:
        name, pinned = split_requirement(requirement)
        if name in self.stack:
            cycle = " -> ".join([*self.stack[self.stack.index(name) :], name])
            msg = f"Dependency cycle: {cycle}"
            raise ResolutionError(msg)

        if name in self.versions:
            if pinned is not None and pinned != self.versions[name]:
                logger.warning(
                    "Ignoring %s@%s; %s@%s was resolved first",
                    name,
                    pinned,
                    name,
                    self.versions[name],
                )
            return

        version = pinned or self.release
        package = self.catalog.get(name, version) if version else None
        if package is None:
            raise PackageNotFoundError(name)

        self.stack.append(name)
        for dependency in package.depends:
            self.visit(dependency)
        self.stack.pop()

        include_tests = name in self.test_packages
        self.versions[name] = package.version
        self.ordered.append(ResolvedPackage(package=package, include_tests=include_tests))
        logger.debug("Resolved %s@%s", name, package.version)

        # Test dependencies may themselves depend on the package under test.
        if include_tests:
            for dependency in package.test_depends:
                self.visit(dependency)

    def runtime_names(self, roots: Sequence[str]) -> set[str]:
        """Names reachable from `roots` through `depends` alone."""
        packages = {entry.name: entry.package for entry in self.ordered}
        pending = [split_requirement(root)[0] for root in roots]
        found: set[str] = set()
        while pending:
            name = pending.pop()
            if name in found or name not in packages:
                continue
            found.add(name)
            pending.extend(split_requirement(dependency)[0] for dependency in packages[name].depends)
        return found


def resolve_packages(
    catalog: Catalog,
    release: str | None,
    *,
    core_package: str,
    packages: Sequence[str] = (),
    test_packages: Sequence[str] = (),
) -> ResolvedGraph:
    """Resolve the transitive closure of the core package, `packages` and `test_packages`.

    Dependencies are visited in declaration order and the first version seen for a
    name wins. Packages only get their test files (and test dependencies) when they
    are named in `test_packages`; packages pulled in only as test dependencies are
    marked `test_only`.
    """
    walk = _Walk(catalog=catalog, release=release, test_packages=frozenset(test_packages))
    roots = (core_package, *packages, *test_packages)
    for requirement in roots:
        walk.visit(requirement)

    if release is None:
        msg = "No release could be determined"
        raise ResolutionError(msg)

    runtime = walk.runtime_names(roots)
    ordered = tuple(replace(entry, test_only=entry.name not in runtime) for entry in walk.ordered)
    logger.info("Resolved %d packages for release %s", len(ordered), release)
    return ResolvedGraph(release=release, packages=ordered)
