"""Program serialization — compile rendered markdown into Python source.

Documents may embed Jinja2 expressions (``{{ name }}``, ``{% if x %}``),
which the markdown stages pass through verbatim. The rendered HTML is
compiled with ``Environment.compile(..., raw=True)``, which yields the
source of a Python module exposing a ``root`` render function. Literal
``md`` sources skip the template parser and compile as one text node.
"""

from __future__ import annotations

import logging
import re
import textwrap
from dataclasses import dataclass
from typing import Any, Literal

import jinja2
from jinja2 import meta, nodes

from mdpipe.stages.base import BaseStage
from mdpipe.types import Diagnostic

__all__ = ["OUTPUT_FORMATS", "SOURCE_FORMATS", "ProgramOutput", "ProgramSerializeStage"]

logger = logging.getLogger(__name__)

# Line mapping emitted at the bottom of every compiled template
_DEBUG_INFO_RE = re.compile(r"^debug_info = '([^']*)'", re.MULTILINE)

SOURCE_FORMATS = ("mdx", "md")
OUTPUT_FORMATS = ("program", "function-body")

_ROOT_DEF = "def root("


@dataclass(frozen=True)
class ProgramOutput:
    """Source code plus compile-time metadata."""

    code: str
    diagnostics: tuple[Diagnostic, ...] = ()
    source_map: tuple[tuple[int, int], ...] | None = None


class ProgramSerializeStage(BaseStage):
    """Compile HTML with embedded template expressions into a program.

    Args:
        source_format: ``"mdx"`` treats ``{{ }}``/``{% %}`` as live expressions,
            ``"md"`` keeps them as literal text.
        output_format: ``"program"`` returns the whole module source,
            ``"function-body"`` only the body of ``root``.
    """

    name = "program-serialize"
    blocking = True

    def __init__(
        self,
        source_format: Literal["mdx", "md"] = "mdx",
        output_format: Literal["program", "function-body"] = "program",
        environment: jinja2.Environment | None = None,
    ) -> None:
        if source_format not in SOURCE_FORMATS:
            raise ValueError(f"Unknown source format: {source_format!r}")
        if output_format not in OUTPUT_FORMATS:
            raise ValueError(f"Unknown output format: {output_format!r}")
        self.source_format = source_format
        self.output_format = output_format
        self.environment = environment or jinja2.Environment(autoescape=True)

    def apply(self, value: Any, **options: Any) -> ProgramOutput:
        if not isinstance(value, str):
            raise TypeError(f"{self.name} expects HTML text, got {type(value).__name__}")

        if self.source_format == "md":
            tree = _literal_template(value)
            tree.set_environment(self.environment)
        else:
            # TemplateSyntaxError propagates; the pipeline wraps it
            tree = self.environment.parse(value)
        code = self.environment.compile(tree, raw=True)

        diagnostics = tuple(
            Diagnostic(message=f"Undeclared variable '{var}'", source="jinja2")
            for var in sorted(meta.find_undeclared_variables(tree))
        )
        source_map = _parse_debug_info(code)

        if self.output_format == "function-body":
            code = _root_body(code)

        logger.debug("Compiled program: %d chars, %d diagnostics", len(code), len(diagnostics))
        return ProgramOutput(code=code, diagnostics=diagnostics, source_map=source_map)


def _literal_template(text: str) -> nodes.Template:
    """Build a template tree that outputs ``text`` unchanged."""
    data = nodes.TemplateData(text, lineno=1)
    return nodes.Template([nodes.Output([data], lineno=1)], lineno=1)


def _parse_debug_info(code: str) -> tuple[tuple[int, int], ...] | None:
    """Extract ``(template_line, code_line)`` pairs from compiled source."""
    match = _DEBUG_INFO_RE.search(code)
    if not match or not match.group(1):
        return None

    pairs: list[tuple[int, int]] = []
    for item in match.group(1).split("&"):
        template_line, _, code_line = item.partition("=")
        if template_line.isdigit() and code_line.isdigit():
            pairs.append((int(template_line), int(code_line)))
    return tuple(pairs) or None


def _root_body(code: str) -> str:
    """Return the dedented body of the ``root`` function in ``code``."""
    lines = code.splitlines()
    start = next((i for i, line in enumerate(lines) if line.startswith(_ROOT_DEF)), None)
    if start is None:
        return code

    body: list[str] = []
    for line in lines[start + 1 :]:
        if line and not line[0].isspace():
            break
        body.append(line)
    return textwrap.dedent("\n".join(body)).strip("\n") + "\n"
