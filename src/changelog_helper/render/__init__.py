"""
Output encodings for generated changelogs.

Three renderers are provided: :class:`MarkdownRenderer`,
:class:`JsonRenderer` and :class:`HtmlRenderer`. Use
:func:`get_renderer` to look one up by format name.
"""

from typing import Dict, Type

from .base import RenderOptions, Renderer  # noqa: F401
from .html import HtmlRenderer  # noqa: F401
from .json_renderer import JsonRenderer, changelog_from_json  # noqa: F401
from .markdown import MarkdownRenderer  # noqa: F401


RENDERERS: Dict[str, Type[Renderer]] = {
    MarkdownRenderer.name: MarkdownRenderer,
    JsonRenderer.name: JsonRenderer,
    HtmlRenderer.name: HtmlRenderer,
}


def get_renderer(output_format: str) -> Renderer:
    """Return a renderer instance for ``output_format``.

    Raises
    ------
    ValueError
        If the format is not supported.
    """
    try:
        return RENDERERS[output_format.lower()]()
    except KeyError:
        raise ValueError(
            f"Unsupported output format: {output_format!r} (choose from {', '.join(RENDERERS)})"
        ) from None
