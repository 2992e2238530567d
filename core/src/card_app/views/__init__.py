"""Server-rendered page components.

Components are static: they take no per-request data and render to the same
HTML on every call.
"""

from card_app.views.components import Component, TemplateComponent
from card_app.views.layouts import base_layout

__all__ = ["Component", "TemplateComponent", "base_layout"]
