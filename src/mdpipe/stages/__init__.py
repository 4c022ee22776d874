"""Transform stages — the units a render pipeline is assembled from."""

from mdpipe.stages.base import (
    Bare,
    BaseStage,
    FunctionStage,
    Stage,
    StageSpec,
    WithOptions,
    as_stage_spec,
    as_stage_specs,
    stage_name,
)
from mdpipe.stages.markdown import (
    HtmlRenderStage,
    HtmlSerializeStage,
    MarkdownParseStage,
    expression_plugin,
    make_markdown,
)
from mdpipe.stages.program import ProgramOutput, ProgramSerializeStage

__all__ = [
    "Bare",
    "BaseStage",
    "FunctionStage",
    "HtmlRenderStage",
    "HtmlSerializeStage",
    "MarkdownParseStage",
    "ProgramOutput",
    "ProgramSerializeStage",
    "Stage",
    "StageSpec",
    "WithOptions",
    "as_stage_spec",
    "as_stage_specs",
    "expression_plugin",
    "make_markdown",
    "stage_name",
]
