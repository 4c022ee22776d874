"""Configuration system for mdpipe.

One :class:`PipelineConfig` is resolved per service at construction time.
Precedence: per-call overrides > provided config > built-in default. A
config may be given directly, produced by a provider callable, or loaded
from a TOML file whose stage names resolve through a :class:`StageRegistry`.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from pathlib import Path
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, TypeAlias, Union

import tomli_w

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

from mdpipe.exceptions import ConfigError
from mdpipe.registry import default_registry
from mdpipe.stages.base import StageSpec, WithOptions, as_stage_spec, as_stage_specs, stage_name

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from mdpipe.registry import StageRegistry

__all__ = [
    "ConfigSource",
    "DocsPresetOptions",
    "PipelineConfig",
    "default_config",
    "docs_preset",
    "load_config",
    "resolve_config",
    "save_config",
]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PipelineConfig:
    """Effective pipeline configuration.

    Stage lists accept any shape :func:`as_stage_spec` understands and are
    normalized (and checked) on construction. ``sanitize_policy=None``
    means sanitizing is off.
    """

    pre_stages: tuple[StageSpec, ...] = ()
    post_stages: tuple[StageSpec, ...] = ()
    sanitize_policy: Mapping[str, Any] | None = None
    slug_enabled: bool = False
    autolink_enabled: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "pre_stages", as_stage_specs(self.pre_stages))
        object.__setattr__(self, "post_stages", as_stage_specs(self.post_stages))
        if self.sanitize_policy is not None:
            object.__setattr__(
                self, "sanitize_policy", MappingProxyType(dict(self.sanitize_policy))
            )

    def with_overrides(
        self,
        pre_stages: Sequence[Any] | None = None,
        post_stages: Sequence[Any] | None = None,
    ) -> PipelineConfig:
        """Return a copy whose stage lists are replaced where given.

        ``None`` keeps the configured list; any sequence, including an empty
        one, replaces it entirely.
        """
        changes: dict[str, Any] = {}
        if pre_stages is not None:
            changes["pre_stages"] = tuple(pre_stages)
        if post_stages is not None:
            changes["post_stages"] = tuple(post_stages)
        return replace(self, **changes) if changes else self


def default_config() -> PipelineConfig:
    """Return a config with all default values: a no-op pipeline."""
    return PipelineConfig()


# ── Docs preset ─────────────────────────────────────────────────────


@dataclass(frozen=True)
class DocsPresetOptions:
    """Toggles and caller-supplied stages for documentation rendering.

    No stage implementations ship with mdpipe: an enabled toggle without its
    stage is a no-op. A mapping given for ``autolink`` or ``sanitize`` both
    enables the toggle and becomes the stage's options.
    """

    slug: bool = True
    autolink: bool | Mapping[str, Any] = True
    sanitize: bool | Mapping[str, Any] = True
    slug_stage: Any = None
    autolink_stage: Any = None
    sanitize_stage: Any = None
    extra_pre: tuple[Any, ...] = field(default_factory=tuple)
    extra_post: tuple[Any, ...] = field(default_factory=tuple)


def _toggled(stage: Any, setting: bool | Mapping[str, Any]) -> StageSpec:
    if isinstance(setting, Mapping):
        return WithOptions(as_stage_spec(stage).stage, setting)
    return as_stage_spec(stage)


def docs_preset(options: DocsPresetOptions | None = None) -> PipelineConfig:
    """Compose a documentation-style config from named toggles."""
    opts = options or DocsPresetOptions()
    pre: list[StageSpec] = []
    post: list[StageSpec] = []

    if opts.slug and opts.slug_stage is not None:
        pre.append(as_stage_spec(opts.slug_stage))

    if opts.autolink is not False and opts.autolink_stage is not None:
        pre.append(_toggled(opts.autolink_stage, opts.autolink))

    if opts.sanitize is not False and opts.sanitize_stage is not None:
        post.append(_toggled(opts.sanitize_stage, opts.sanitize))

    pre.extend(as_stage_specs(opts.extra_pre))
    post.extend(as_stage_specs(opts.extra_post))

    if opts.sanitize is False:
        policy = None
    elif isinstance(opts.sanitize, Mapping):
        policy = opts.sanitize
    else:
        policy = {}

    return PipelineConfig(
        pre_stages=tuple(pre),
        post_stages=tuple(post),
        sanitize_policy=policy,
        slug_enabled=opts.slug,
        autolink_enabled=opts.autolink is not False,
    )


# ── Resolution ──────────────────────────────────────────────────────

ConfigSource: TypeAlias = Union[
    PipelineConfig, "Callable[[], PipelineConfig | None]", str, Path, None
]


def resolve_config(
    source: ConfigSource = None,
    registry: StageRegistry | None = None,
) -> PipelineConfig:
    """Resolve the effective config for a service.

    Failure to obtain a config from ``source`` is not an error: the
    built-in default (a no-op pipeline) is used and a warning is logged.
    """
    if source is None:
        return default_config()
    if isinstance(source, PipelineConfig):
        return source

    try:
        if isinstance(source, (str, Path)):
            return load_config(Path(source), registry)
        resolved = source()
    except Exception as e:
        logger.warning("Config source unavailable, using defaults: %s", e)
        return default_config()

    if not isinstance(resolved, PipelineConfig):
        logger.warning("Config source returned %r, using defaults", type(resolved).__name__)
        return default_config()
    return resolved


# ── TOML persistence ────────────────────────────────────────────────


def _stage_to_toml(spec: StageSpec) -> object:
    name = stage_name(spec.stage)
    if isinstance(spec, WithOptions) and spec.options:
        return {"name": name, "options": dict(spec.options)}
    return name


def _config_to_dict(config: PipelineConfig) -> dict[str, object]:
    """Convert PipelineConfig to a nested dict suitable for TOML serialization."""
    section: dict[str, object] = {
        "pre_stages": [_stage_to_toml(s) for s in config.pre_stages],
        "post_stages": [_stage_to_toml(s) for s in config.post_stages],
        "slug": config.slug_enabled,
        "autolink": config.autolink_enabled,
    }
    if config.sanitize_policy is not None:
        section["sanitize"] = dict(config.sanitize_policy)
    return {"pipeline": section}


def save_config(config: PipelineConfig, path: Path) -> None:
    """Save configuration to a TOML file.

    Stages are written by name, so the file can only be loaded back through
    a registry that knows those names.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    data = _config_to_dict(config)
    try:
        with path.open("wb") as f:
            tomli_w.dump(data, f)
        logger.info("Saved config to %s", path)
    except (OSError, TypeError) as e:
        logger.error("Failed to save config to %s: %s", path, e)
        raise ConfigError(f"Failed to save config to {path}: {e}") from e


def _load_stages(
    entries: object, category: str, registry: StageRegistry
) -> tuple[StageSpec, ...]:
    if not isinstance(entries, list):
        raise ConfigError(f"'{category}_stages' must be a list, got {type(entries).__name__}")

    specs: list[StageSpec] = []
    for entry in entries:
        if isinstance(entry, str):
            specs.append(as_stage_spec(registry.create(category, entry)))
        elif isinstance(entry, dict) and isinstance(entry.get("name"), str):
            stage = registry.create(category, entry["name"])
            specs.append(WithOptions(as_stage_spec(stage).stage, entry.get("options", {})))
        else:
            raise ConfigError(f"Invalid {category} stage entry: {entry!r}")
    return tuple(specs)


def load_config(path: Path, registry: StageRegistry | None = None) -> PipelineConfig:
    """Load configuration from a TOML file.

    Missing keys get default values. ``sanitize`` may be a table (the
    policy) or ``false``.

    Raises:
        ConfigError: If the file is missing, unreadable, or invalid.
        PluginError: If a stage name is not registered.
    """
    if not path.exists():
        raise ConfigError(f"Config file not found: {path}")

    try:
        raw = path.read_bytes()
        data = tomllib.loads(raw.decode("utf-8"))
    except (OSError, UnicodeDecodeError, tomllib.TOMLDecodeError) as e:
        logger.error("Failed to load config from %s: %s", path, e)
        raise ConfigError(f"Failed to load config from {path}: {e}") from e

    if registry is None:
        registry = default_registry

    section = data.get("pipeline", {})
    if not isinstance(section, dict):
        raise ConfigError(f"[pipeline] must be a table in {path}")

    sanitize = section.get("sanitize", False)
    if sanitize is True:
        sanitize = {}
    if sanitize is not False and not isinstance(sanitize, dict):
        raise ConfigError(f"'sanitize' must be a table or boolean in {path}")

    config = PipelineConfig(
        pre_stages=_load_stages(section.get("pre_stages", []), "pre", registry),
        post_stages=_load_stages(section.get("post_stages", []), "post", registry),
        sanitize_policy=None if sanitize is False else sanitize,
        slug_enabled=bool(section.get("slug", False)),
        autolink_enabled=bool(section.get("autolink", False)),
    )

    logger.info("Loaded config from %s", path)
    return config
