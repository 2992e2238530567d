from __future__ import annotations

from typing import Final

from starlette.responses import Response

from card_app.views import Component

MIME_TEXT_HTML: Final[str] = "text/html"


class RenderError(RuntimeError):
    pass


def render(status: int, component: Component) -> Response:
    """Serialize `component` into an HTML response with the given status.

    The Content-Type header is set to exactly ``text/html``; Starlette would
    otherwise append a charset parameter.
    """

    if isinstance(status, bool) or not isinstance(status, int) or not 100 <= status <= 599:
        raise ValueError(f"Invalid HTTP status: {status!r}")

    try:
        body = component.render()
    except Exception as exc:
        raise RenderError(f"Failed to render {component!r}") from exc

    return Response(
        content=body.encode("utf-8"),
        status_code=status,
        headers={"content-type": MIME_TEXT_HTML},
    )
