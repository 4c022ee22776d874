"""Document service — the public facade of mdpipe.

Orchestrates the splitter, codec, filesystem and pipeline builder. The
service holds no mutable state: the configuration is resolved once at
construction and every operation depends only on its arguments.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from mdpipe.codec import YamlFrontMatterCodec
from mdpipe.config import resolve_config
from mdpipe.filesystem import LocalFileSystem
from mdpipe.pipeline import CompileOptions, PipelineBuilder
from mdpipe.sanitize import sanitize_metadata
from mdpipe.splitter import reconstruct, split
from mdpipe.types import (
    PARAMETER_TYPES,
    CompiledResult,
    Err,
    InteractivePayload,
    KnownConfigFields,
    Ok,
    ParameterDefinition,
    ParsedDocument,
)

if TYPE_CHECKING:
    from pathlib import Path

    from mdpipe.codec import BaseCodec
    from mdpipe.config import ConfigSource
    from mdpipe.exceptions import DocumentError, MalformedHeaderError
    from mdpipe.filesystem import BaseFileSystem
    from mdpipe.registry import StageRegistry
    from mdpipe.types import Document, Result

__all__ = ["DocumentService"]

logger = logging.getLogger(__name__)


class DocumentService:
    """Parses, rewrites, renders and compiles front-matter documents.

    All collaborators are injected via the constructor, making the service
    fully testable with fakes.

    Usage::

        service = DocumentService(docs_preset(DocsPresetOptions(slug_stage=slugify)))
        result = await service.render_html(text)
        if result.ok:
            print(result.value)
    """

    def __init__(
        self,
        config: ConfigSource = None,
        *,
        codec: BaseCodec | None = None,
        filesystem: BaseFileSystem | None = None,
        registry: StageRegistry | None = None,
    ) -> None:
        self.config = resolve_config(config, registry)
        self.codec = codec or YamlFrontMatterCodec()
        self.filesystem = filesystem or LocalFileSystem()
        self.builder = PipelineBuilder(self.config)
        logger.info(
            "Document service ready (%d pre-stages, %d post-stages)",
            len(self.config.pre_stages),
            len(self.config.post_stages),
        )

    # ── Header handling ─────────────────────────────────────────────

    async def load_and_split(
        self, path: str | Path
    ) -> Result[Document, OSError | MalformedHeaderError]:
        """Read a document from the filesystem and split it.

        Filesystem errors are returned unchanged.
        """
        try:
            text = await self.filesystem.read_text(path)
        except OSError as e:
            logger.info("Cannot read %s: %s", path, e)
            return Err(e)

        logger.info("Loaded %s: %d chars", path, len(text))
        return split(text, self.codec)

    def split(self, text: str) -> Result[Document, MalformedHeaderError]:
        """Split ``text`` into a :class:`Document`."""
        return split(text, self.codec)

    def reconstruct(self, text: str, new_metadata: Mapping[str, Any]) -> str:
        """Return ``text`` with its header replaced by ``new_metadata``.

        ``text`` must be a document :meth:`parse` accepts.
        """
        return reconstruct(text, new_metadata, self.codec)

    def parse(self, text: str) -> Result[ParsedDocument, MalformedHeaderError]:
        """Parse ``text`` into attributes and body."""
        result = split(text, self.codec)
        if not result.ok:
            return result
        document = result.value
        return Ok(ParsedDocument(attributes=document.metadata, body=document.body))

    def set_needs_review(
        self, text: str, flag: bool = True
    ) -> Result[str, MalformedHeaderError]:
        """Set the ``needsReview`` flag in the header of ``text``."""
        result = split(text, self.codec)
        if not result.ok:
            return result
        metadata = {**result.value.metadata, "needsReview": flag}
        return Ok(self.codec.serialize(result.value.body, metadata))

    # ── Rendering ───────────────────────────────────────────────────

    async def render_html(self, text: str) -> Result[str, DocumentError]:
        """Render the body of ``text`` to HTML through the configured stages."""
        parsed = self.parse(text)
        if not parsed.ok:
            return parsed

        pipeline = self.builder.build("html")
        return await pipeline.run(parsed.value.body)

    async def compile_program(
        self,
        text: str,
        options: CompileOptions | None = None,
    ) -> Result[CompiledResult, DocumentError]:
        """Compile the body of ``text`` into program source.

        Stage lists in ``options`` replace the configured ones for this call.
        """
        parsed = self.parse(text)
        if not parsed.ok:
            return parsed

        pipeline = self.builder.build("program", options)
        result = await pipeline.run(parsed.value.body)
        if not result.ok:
            return result

        output = result.value
        return Ok(
            CompiledResult(
                code=output.code,
                metadata=sanitize_metadata(parsed.value.attributes),
                diagnostics=output.diagnostics,
                source_map=output.source_map,
            )
        )

    def prepare_for_interactive_consumption(
        self, text: str
    ) -> Result[InteractivePayload, MalformedHeaderError]:
        """Split ``text`` without rendering it.

        Nothing is compiled or rendered, so this is safe for previews of
        untrusted documents.
        """
        parsed = self.parse(text)
        if not parsed.ok:
            return parsed
        return Ok(
            InteractivePayload(
                raw_body=parsed.value.body,
                metadata=sanitize_metadata(parsed.value.attributes),
            )
        )

    # ── Metadata projections ────────────────────────────────────────

    @staticmethod
    def extract_known_config_fields(metadata: Mapping[str, Any]) -> KnownConfigFields:
        """Read ``provider``, ``model`` and ``parameters`` from flat metadata."""
        provider = metadata.get("provider")
        model = metadata.get("model")
        parameters = metadata.get("parameters")
        return KnownConfigFields(
            provider=provider if isinstance(provider, str) else None,
            model=model if isinstance(model, str) else None,
            parameters=sanitize_metadata(parameters) if isinstance(parameters, Mapping) else None,
        )

    @staticmethod
    def extract_parameter_definitions(
        metadata: Mapping[str, Any],
    ) -> dict[str, ParameterDefinition]:
        """Collect well-formed entries of ``metadata["parameters"]``.

        An entry is kept only if it is a mapping whose ``type`` is one of
        ``string``, ``number``, ``boolean``, ``array`` or ``object``. Other
        entries are skipped without error.
        """
        node = metadata.get("parameters")
        if not isinstance(node, Mapping):
            return {}

        definitions: dict[str, ParameterDefinition] = {}
        for key, value in node.items():
            if not isinstance(value, Mapping):
                continue
            param_type = value.get("type")
            if not isinstance(param_type, str) or param_type not in PARAMETER_TYPES:
                continue

            description = value.get("description")
            required = value.get("required")
            definitions[str(key)] = ParameterDefinition(
                type=param_type,  # type: ignore[arg-type]
                description=description if isinstance(description, str) else None,
                required=required if isinstance(required, bool) else None,
                default=value.get("default"),
            )
        return definitions
