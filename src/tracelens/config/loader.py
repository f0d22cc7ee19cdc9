"""Load session configs from Python references."""

from __future__ import annotations

import importlib
import importlib.util
from pathlib import Path
from types import ModuleType
from typing import Any

from tracelens.config.schema import SessionConfig


def _load_module(module_ref: str) -> ModuleType:
    path_candidate = Path(module_ref).expanduser()
    if path_candidate.exists():
        module_name = f"_tracelens_cfg_{path_candidate.stem}"
        spec = importlib.util.spec_from_file_location(module_name, path_candidate)
        if spec is None or spec.loader is None:
            raise RuntimeError(f"Could not load module from path: {path_candidate}")
        module = importlib.util.module_from_spec(spec)
        spec.loader.exec_module(module)
        return module
    return importlib.import_module(module_ref)


def _resolve_attr(obj: Any, attr_path: str) -> Any:
    value = obj
    for part in attr_path.split("."):
        value = getattr(value, part)
    return value


def load_object(reference: str) -> Any:
    """Load object by `module_or_path:attribute` reference."""

    if ":" not in reference:
        raise ValueError("Config reference must be in form 'module_or_path:attribute'.")
    module_ref, attr = reference.split(":", maxsplit=1)
    module = _load_module(module_ref)
    return _resolve_attr(module, attr)


def load_session_config(config_ref: str | None, pipeline: str | None) -> SessionConfig:
    """Load a SessionConfig from reference, or build a default one.

    A pipeline given on the command line overrides the one in the config.
    """

    if config_ref is None:
        if not pipeline:
            raise ValueError("A pipeline description is required when no config is given.")
        return SessionConfig(pipeline=pipeline)

    loaded = load_object(config_ref)
    if not isinstance(loaded, SessionConfig):
        type_name = type(loaded).__name__
        raise TypeError(
            f"Config reference must resolve to SessionConfig, got {type_name}."
        )

    if pipeline:
        loaded.pipeline = pipeline
    return loaded
