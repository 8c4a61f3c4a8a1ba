"""Templates for the generated ``app.html`` and ``server/server.js``."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Final

from minijinja import Environment

TEMPLATE_DIR: Final[Path] = Path(__file__).parent
SUFFIX: Final[str] = ".j2"


def load_template(name: str) -> str | None:
    """Source of ``<name>.j2`` beside this module, `None` when there is none."""
    path = TEMPLATE_DIR / f"{name}{SUFFIX}"
    if path.parent != TEMPLATE_DIR or not path.is_file():
        return None
    return path.read_text(encoding="utf-8")


def template_names() -> list[str]:
    return sorted(path.name.removesuffix(SUFFIX) for path in TEMPLATE_DIR.glob(f"*{SUFFIX}"))


ENV: Final[Environment] = Environment(loader=load_template)


def render(name: str, **context: Any) -> str:
    return ENV.render_template(name, **context)
