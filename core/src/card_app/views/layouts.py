from __future__ import annotations

from card_app.views.components import TemplateComponent


def base_layout() -> TemplateComponent:
    return TemplateComponent("base.html")
