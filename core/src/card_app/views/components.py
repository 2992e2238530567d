from __future__ import annotations

from pathlib import Path
from typing import Protocol

from fastapi.templating import Jinja2Templates

BASE_DIR = Path(__file__).resolve().parent
TEMPLATES_DIR = BASE_DIR / "templates"

templates = Jinja2Templates(directory=str(TEMPLATES_DIR))


class Component(Protocol):
    def render(self) -> str: ...


class TemplateComponent:
    """A Jinja2 template rendered without context."""

    def __init__(self, name: str) -> None:
        self.name = name

    def render(self) -> str:
        return templates.get_template(self.name).render()

    def __repr__(self) -> str:
        return f"TemplateComponent({self.name!r})"
