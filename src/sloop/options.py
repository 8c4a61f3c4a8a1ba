"""Per-run build options accepted by `sloop.bundle`."""

from __future__ import annotations

from dataclasses import dataclass, fields
from enum import StrEnum
from typing import TYPE_CHECKING, Any, ClassVar

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence


class NodeModulesMode(StrEnum):
    SKIP = "skip"
    COPY = "copy"
    SYMLINK = "symlink"


@dataclass(frozen=True, slots=True, kw_only=True)
class BuildOptions:
    """How a single bundle run materializes its output."""

    _aliases: ClassVar[dict[str, str]] = {
        "nodeModulesMode": "node_modules_mode",
        "noMinify": "no_minify",
        "testPackages": "test_packages",
        "versionOverride": "version_override",
    }

    node_modules_mode: NodeModulesMode = NodeModulesMode.COPY
    no_minify: bool = False
    test_packages: Sequence[str] = ()
    version_override: str | None = None

    def __post_init__(self) -> None:
        try:
            mode = NodeModulesMode(self.node_modules_mode)
        except ValueError:
            allowed = ", ".join(member.value for member in NodeModulesMode)
            msg = f"Unknown node modules mode {self.node_modules_mode!r} (expected one of: {allowed})"
            raise ValueError(msg) from None
        object.__setattr__(self, "node_modules_mode", mode)

        if isinstance(self.test_packages, str):
            msg = "test_packages must be a sequence of package names, not a string"
            raise TypeError(msg)
        object.__setattr__(self, "test_packages", tuple(dict.fromkeys(self.test_packages)))

        if self.version_override is not None and not self.version_override.strip():
            msg = "version_override must not be blank"
            raise ValueError(msg)

    @property
    def minify(self) -> bool:
        return not self.no_minify

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> BuildOptions:
        """Build options from a plain mapping using snake_case or camelCase keys."""
        known = {option.name for option in fields(cls)}
        kwargs: dict[str, Any] = {}
        for key, value in values.items():
            name = cls._aliases.get(key, key)
            if name not in known:
                msg = f"Unknown build option {key!r}"
                raise ValueError(msg)
            kwargs[name] = value
        return cls(**kwargs)
