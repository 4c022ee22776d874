"""mdpipe — typed pipeline for front-matter markdown documents."""

from mdpipe.config import DocsPresetOptions, PipelineConfig, default_config, docs_preset
from mdpipe.exceptions import (
    CompileError,
    ConfigError,
    DocumentError,
    MalformedHeaderError,
    MdpipeError,
    PluginError,
)
from mdpipe.pipeline import CompileOptions
from mdpipe.service import DocumentService
from mdpipe.stages import Bare, BaseStage, WithOptions
from mdpipe.types import (
    CompiledResult,
    Document,
    Err,
    Ok,
    ParameterDefinition,
    ParsedDocument,
)

__version__ = "0.1.0"

__all__ = [
    "Bare",
    "BaseStage",
    "CompileError",
    "CompileOptions",
    "CompiledResult",
    "ConfigError",
    "DocsPresetOptions",
    "Document",
    "DocumentError",
    "DocumentService",
    "Err",
    "MalformedHeaderError",
    "MdpipeError",
    "Ok",
    "ParameterDefinition",
    "ParsedDocument",
    "PipelineConfig",
    "PluginError",
    "WithOptions",
    "__version__",
    "default_config",
    "docs_preset",
]
