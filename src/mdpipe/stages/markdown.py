"""Built-in markdown stages backed by markdown-it-py.

The base parse stage turns a body into a markdown-it token stream, which is
what configured pre-stages receive. The render stage turns tokens into HTML,
which is what configured post-stages receive.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from markdown_it import MarkdownIt

from mdpipe.stages.base import BaseStage

if TYPE_CHECKING:
    from collections.abc import Sequence

    from markdown_it.renderer import RendererHTML
    from markdown_it.rules_inline import StateInline
    from markdown_it.token import Token
    from markdown_it.utils import EnvType, OptionsDict

__all__ = [
    "HtmlRenderStage",
    "HtmlSerializeStage",
    "MarkdownParseStage",
    "expression_plugin",
    "make_markdown",
]

logger = logging.getLogger(__name__)


def make_markdown(expressions: bool = False) -> MarkdownIt:
    """Return the shared markdown-it configuration.

    CommonMark plus GitHub-style tables and strikethrough. Raw HTML in the
    source is escaped, never passed through. With ``expressions`` set,
    template spans are kept verbatim (see :func:`expression_plugin`).
    """
    md = MarkdownIt("commonmark", {"html": False}).enable(["table", "strikethrough"])
    if expressions:
        md.use(expression_plugin)
    return md


_EXPRESSION_DELIMITERS = {"{{": "}}", "{%": "%}"}


def expression_plugin(md: MarkdownIt) -> None:
    """Treat ``{{ ... }}`` and ``{% ... %}`` spans as opaque inline tokens.

    Emphasis, links, escapes and entity handling never see the inside of a
    span, and the renderer writes it back unescaped.
    """
    md.inline.ruler.before("text", "template_expression", _expression_rule)
    md.add_render_rule("template_expression", _render_expression)


def _expression_rule(state: StateInline, silent: bool) -> bool:
    opener = state.src[state.pos : state.pos + 2]
    closer = _EXPRESSION_DELIMITERS.get(opener)
    if closer is None:
        return False

    end = state.src.find(closer, state.pos + 2, state.posMax)
    if end < 0:
        return False

    end += len(closer)
    if not silent:
        token = state.push("template_expression", "", 0)
        token.content = state.src[state.pos : end]
    state.pos = end
    return True


def _render_expression(
    self: RendererHTML,
    tokens: Sequence[Token],
    idx: int,
    options: OptionsDict,
    env: EnvType,
) -> str:
    return tokens[idx].content


class MarkdownParseStage(BaseStage):
    """Parse a markdown body into a list of tokens."""

    name = "markdown-parse"
    blocking = True

    def __init__(self, md: MarkdownIt | None = None) -> None:
        self.md = md or make_markdown()

    def apply(self, value: Any, **options: Any) -> list[Token]:
        if not isinstance(value, str):
            raise TypeError(f"{self.name} expects a string body, got {type(value).__name__}")
        return self.md.parse(value)


class HtmlRenderStage(BaseStage):
    """Render a token list to an HTML string."""

    name = "html-render"
    blocking = True

    def __init__(self, md: MarkdownIt | None = None) -> None:
        self.md = md or make_markdown()

    def apply(self, value: Any, **options: Any) -> str:
        if not isinstance(value, list):
            raise TypeError(f"{self.name} expects a token list, got {type(value).__name__}")
        return self.md.renderer.render(value, self.md.options, {})


class HtmlSerializeStage(BaseStage):
    """Final stage of the HTML pipeline: enforce a string result."""

    name = "html-serialize"

    def apply(self, value: Any, **options: Any) -> str:
        if not isinstance(value, str):
            raise TypeError(f"{self.name} expects HTML text, got {type(value).__name__}")
        return value
