"""
Base component for server-rendered HTML.

Components are plain Python objects that render to an HTML string; all text
that comes from data is escaped.
"""

import html
from typing import Any, Callable, Optional, Union


class Component:
    def render(self) -> str:
        raise NotImplementedError("Subclasses must implement render()")

    def __str__(self) -> str:
        return self.render()

    @staticmethod
    def escape(text: Optional[Any]) -> str:
        return html.escape(str(text)) if text is not None else ""


Renderable = Union[str, Component, Callable[[], Any], None]


def render_content(content: Renderable) -> str:
    """Render a string, a Component, or a zero-argument callable producing either."""
    if content is None:
        return ""
    if isinstance(content, Component):
        return content.render()
    if callable(content):
        return render_content(content())
    return str(content)
