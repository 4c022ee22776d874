"""Transform pipeline for mdpipe.

Stage order is fixed::

    base parse → pre-stages → core render → post-stages → serialize

Pre- and post-stages come from the effective :class:`PipelineConfig`; the
other three positions are built in. Any exception raised by any stage is
returned as a :class:`CompileError` and partial output is discarded.
"""

from __future__ import annotations

import asyncio
import functools
import inspect
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Literal

from mdpipe.exceptions import CompileError
from mdpipe.stages.base import Bare, StageSpec, as_stage_specs, stage_name
from mdpipe.stages.markdown import (
    HtmlRenderStage,
    HtmlSerializeStage,
    MarkdownParseStage,
    make_markdown,
)
from mdpipe.stages.program import OUTPUT_FORMATS, SOURCE_FORMATS, ProgramSerializeStage
from mdpipe.types import Err, Ok, Result

if TYPE_CHECKING:
    from collections.abc import Sequence

    from mdpipe.config import PipelineConfig

__all__ = ["CompileOptions", "Pipeline", "PipelineBuilder", "PipelineKind"]

logger = logging.getLogger(__name__)

PipelineKind = Literal["html", "program"]


@dataclass(frozen=True)
class CompileOptions:
    """Per-call options for program compilation.

    ``pre_stages``/``post_stages`` replace the configured lists for this call
    only; ``None`` keeps them. Entries are validated here, so a bad stage or
    format fails where the options are built.

    Raises:
        PluginError: If a stage entry is not a valid stage.
        ValueError: If a format is not recognized.
    """

    pre_stages: Sequence[Any] | None = None
    post_stages: Sequence[Any] | None = None
    source_format: Literal["mdx", "md"] = "mdx"
    output_format: Literal["program", "function-body"] = "program"

    def __post_init__(self) -> None:
        if self.source_format not in SOURCE_FORMATS:
            raise ValueError(f"Unknown source format: {self.source_format!r}")
        if self.output_format not in OUTPUT_FORMATS:
            raise ValueError(f"Unknown output format: {self.output_format!r}")
        if self.pre_stages is not None:
            object.__setattr__(self, "pre_stages", as_stage_specs(self.pre_stages))
        if self.post_stages is not None:
            object.__setattr__(self, "post_stages", as_stage_specs(self.post_stages))


class Pipeline:
    """An assembled, immutable chain of stages.

    Usage::

        pipeline = PipelineBuilder(config).build("html")
        result = await pipeline.run("# Hello")
    """

    def __init__(self, kind: PipelineKind, stages: Sequence[StageSpec]) -> None:
        self.kind = kind
        self.stages: tuple[StageSpec, ...] = tuple(stages)

    @property
    def stage_names(self) -> list[str]:
        return [stage_name(spec.stage) for spec in self.stages]

    async def run(self, body: str) -> Result[Any, CompileError]:
        """Thread ``body`` through every stage in order.

        Stages marked ``blocking`` run in the default executor so large
        documents do not stall other calls on the event loop.

        Returns:
            ``Ok(output)`` from the serialize stage, or ``Err(CompileError)``
            naming the stage that failed.
        """
        loop = asyncio.get_running_loop()
        value: Any = body
        for spec in self.stages:
            name = stage_name(spec.stage)
            logger.debug("Applying %s stage %s", self.kind, name)
            try:
                if getattr(spec.stage, "blocking", False):
                    call = functools.partial(spec.stage.apply, value, **spec.options)
                    value = await loop.run_in_executor(None, call)
                else:
                    value = spec.stage.apply(value, **spec.options)
                if inspect.isawaitable(value):
                    value = await value
            except Exception as e:
                logger.info("Stage %s failed: %s", name, e)
                return Err(CompileError(f"Stage '{name}' failed: {e}", cause=e))
        return Ok(value)


class PipelineBuilder:
    """Assembles pipelines from an effective configuration.

    The builder owns two markdown-it instances: a plain one for HTML and
    literal sources, and one that keeps template expressions intact for
    ``mdx`` programs. Each is shared by the parse and render stages of every
    pipeline it builds.
    """

    def __init__(self, config: PipelineConfig) -> None:
        self.config = config
        self._md = make_markdown()
        self._parse = MarkdownParseStage(self._md)
        self._render = HtmlRenderStage(self._md)
        self._expression_md = make_markdown(expressions=True)
        self._expression_parse = MarkdownParseStage(self._expression_md)
        self._expression_render = HtmlRenderStage(self._expression_md)

    def build(
        self,
        kind: PipelineKind = "html",
        options: CompileOptions | None = None,
    ) -> Pipeline:
        """Build a pipeline of the given kind.

        Args:
            kind: ``"html"`` renders to HTML, ``"program"`` compiles to
                Python source.
            options: Per-call overrides; stage lists given here replace the
                configured ones rather than extending them.
        """
        opts = options or CompileOptions()
        effective = self.config.with_overrides(opts.pre_stages, opts.post_stages)

        parse, render = self._parse, self._render
        if kind == "html":
            serializer: Any = HtmlSerializeStage()
        elif kind == "program":
            serializer = ProgramSerializeStage(
                source_format=opts.source_format,
                output_format=opts.output_format,
            )
            if opts.source_format == "mdx":
                parse, render = self._expression_parse, self._expression_render
        else:
            raise ValueError(f"Unknown pipeline kind: {kind!r}")

        stages = (
            Bare(parse),
            *effective.pre_stages,
            Bare(render),
            *effective.post_stages,
            Bare(serializer),
        )
        pipeline = Pipeline(kind, stages)
        logger.debug("Built %s pipeline: %s", kind, " → ".join(pipeline.stage_names))
        return pipeline
