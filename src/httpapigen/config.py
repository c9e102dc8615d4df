"""Configuration loading with XDG paths and precedence resolution.

Settings for a generator run come from four layers, highest first:

1. Explicit CLI values passed to :func:`resolve_config`.
2. Project rc file ``./.httpapigenrc`` (JSON or YAML).
3. User config: ``$XDG_CONFIG_HOME/httpapigen/config.json`` on Linux/BSD
   (default ``~/.config/httpapigen/config.json``), otherwise
   ``~/.httpapigenrc``.
4. The defaults declared on :class:`GeneratorConfig`.

A config file that cannot be read, parsed or validated never aborts a run:
the layer is skipped and :func:`resolve_config` returns a warning string for
it instead. Only invalid CLI values raise :class:`~httpapigen.exceptions.ConfigError`.
"""

from __future__ import annotations

import os
import platform
from pathlib import Path
from typing import Any, Mapping, Optional, Sequence

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from httpapigen.exceptions import ConfigError
from httpapigen.models import ResolutionOptions
from httpapigen.pipeline import PipelineOptions

_APP_NAME = "httpapigen"
_CONFIG_FILENAME = "config.json"
_RC_FILENAME = ".httpapigenrc"


class GeneratorConfig(BaseModel):
    """Effective settings for a ``generate`` run."""

    model_config = ConfigDict(extra="forbid")

    input_path: Optional[str] = None
    output_dir: str = "generated"
    verbose: bool = False
    resolve_external: bool = False
    allowed_domains: list[str] = Field(default_factory=list)
    timeout: float = Field(default=5.0, gt=0)
    max_redirects: int = Field(default=0, ge=0)
    skip_validation: bool = False
    continue_on_validation_error: bool = False
    continue_on_resolution_error: bool = False


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform uses XDG base directories (Linux/BSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def get_config_dir() -> Path:
    """Return ``$XDG_CONFIG_HOME/httpapigen`` (default ``~/.config/httpapigen``).

    The directory is not created; httpapigen only ever reads from it.
    """
    base = os.environ.get("XDG_CONFIG_HOME", "")
    root = Path(base) if base else Path.home() / ".config"
    return root / _APP_NAME


def user_config_path() -> Path:
    """Location of the user-level config file for this platform."""
    if _is_xdg_platform():
        return get_config_dir() / _CONFIG_FILENAME
    return Path.home() / _RC_FILENAME


def project_config_path(project_dir: Optional[Path] = None) -> Path:
    """Location of the project rc file in *project_dir* (default: cwd)."""
    return (project_dir or Path.cwd()) / _RC_FILENAME


# --- Loading ---


def load_config_file(path: Path) -> tuple[dict[str, Any], Optional[str]]:
    """Load one config layer from *path*.

    JSON is a subset of YAML, so both formats go through ``yaml.safe_load``.

    Returns:
        ``(values, warning)``. A missing file yields ``({}, None)``; a file
        that fails to read, parse or validate yields ``({}, message)``.
    """
    if not path.is_file():
        return {}, None
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError) as exc:
        return {}, f"Ignoring config file {path}: {exc}"

    if data is None:
        return {}, None
    if not isinstance(data, dict):
        return {}, f"Ignoring config file {path}: expected a mapping at the top level"
    try:
        GeneratorConfig.model_validate(data)
    except ValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in exc.errors()
        )
        return {}, f"Ignoring config file {path}: {problems}"
    return data, None


# --- Precedence resolution ---


def resolve_config(
    cli_values: Optional[Mapping[str, Any]] = None,
    project_dir: Optional[Path] = None,
    user_paths: Optional[Sequence[Path]] = None,
) -> tuple[GeneratorConfig, list[str]]:
    """Merge every config layer into the effective :class:`GeneratorConfig`.

    Args:
        cli_values: Values given on the command line. ``None`` entries mean
            "not given" and do not override lower layers.
        project_dir: Directory holding the project rc file (default: cwd).
        user_paths: User-level files, lowest precedence first. Defaults to
            ``[user_config_path()]``.

    Returns:
        A tuple of ``(config, warnings)``.

    Raises:
        ConfigError: If the explicit CLI values are invalid.
    """
    warnings: list[str] = []
    merged: dict[str, Any] = {}

    paths = list(user_paths) if user_paths is not None else [user_config_path()]
    paths.append(project_config_path(project_dir))
    for path in paths:
        values, warning = load_config_file(path)
        if warning:
            warnings.append(warning)
        merged.update(values)

    for key, value in (cli_values or {}).items():
        if value is not None:
            merged[key] = value

    try:
        config = GeneratorConfig.model_validate(merged)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration: {exc}") from exc
    return config, warnings


def to_pipeline_options(config: GeneratorConfig, write: bool = True) -> PipelineOptions:
    """Translate *config* into the options the pipeline consumes."""
    return PipelineOptions(
        output_dir=config.output_dir if write else None,
        skip_validation=config.skip_validation,
        continue_on_validation_error=config.continue_on_validation_error,
        resolution=ResolutionOptions(
            resolve_external=config.resolve_external,
            continue_on_error=config.continue_on_resolution_error,
            allowed_domains=tuple(config.allowed_domains),
            max_redirects=config.max_redirects,
            timeout=config.timeout,
        ),
    )
