"""Bundling failures and the accumulator that carries them out of `bundle()`."""

from __future__ import annotations

import traceback
from dataclasses import dataclass


class BundleError(Exception):
    """Base class for failures that are reported to the caller as text."""


class ResolutionError(BundleError):
    """The release or the package graph could not be determined."""


class PackageNotFoundError(ResolutionError):
    def __init__(self, name: str) -> None:
        super().__init__(f"Package not found: {name}")
        self.name = name


class ManifestError(ResolutionError):
    pass


class AssetError(BundleError):
    pass


class LinkError(BundleError):
    pass


def format_exception(exc: BaseException) -> str:
    header = "Exception while bundling application:"
    if isinstance(exc, BundleError):
        return f"{header}\n{type(exc).__name__}: {exc}"
    detail = "".join(traceback.format_exception(exc)).rstrip()
    return f"{header}\n{detail}"


@dataclass(frozen=True, slots=True)
class Diagnostics:
    """Ordered error messages collected across the stages of one run.

    Stages take the current value and return a new one, so nothing is shared
    between runs and the orchestrator decides when to stop.
    """

    messages: tuple[str, ...] = ()

    def __bool__(self) -> bool:
        return bool(self.messages)

    def __len__(self) -> int:
        return len(self.messages)

    def add(self, message: str) -> Diagnostics:
        return Diagnostics((*self.messages, message))

    def exception(self, exc: BaseException) -> Diagnostics:
        return self.add(format_exception(exc))

    def merge(self, other: Diagnostics) -> Diagnostics:
        return Diagnostics((*self.messages, *other.messages))

    def result(self) -> list[str] | None:
        """Return `None` on success, otherwise the messages in stage order."""
        if not self.messages:
            return None
        return list(self.messages)
