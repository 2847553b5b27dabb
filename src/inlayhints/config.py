"""Hint configuration.

Resolution follows the same precedence as workspace LSP bindings:
explicit config file -> environment -> built-in defaults.
"""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "inlayhints.json"
ENV_PREFIX = "INLAYHINTS_"

# Single-parameter callables whose parameter is one of these words get no hint
# (`filter(predicate)`, `eq(other)`, `add(rhs)`, ...).
DEFAULT_OBVIOUS_PARAM_NAMES = frozenset({"predicate", "value", "pat", "rhs", "other"})

_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})
_FALSE_VALUES = frozenset({"0", "false", "no", "off"})
_BOOL_FIELDS = ("type_hints", "parameter_hints", "chaining_hints")


@dataclass(frozen=True)
class HintConfig:
    """Per-request switches for the hint engine."""

    type_hints: bool = True
    parameter_hints: bool = True
    chaining_hints: bool = True
    max_length: int | None = None
    obvious_param_names: frozenset[str] = DEFAULT_OBVIOUS_PARAM_NAMES

    def __post_init__(self) -> None:
        if self.max_length is not None and (
            isinstance(self.max_length, bool)
            or not isinstance(self.max_length, int)
            or self.max_length < 0
        ):
            raise ValueError(f"max_length must be a non-negative integer, got {self.max_length!r}")
        if not isinstance(self.obvious_param_names, frozenset):
            object.__setattr__(self, "obvious_param_names", frozenset(self.obvious_param_names))

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any]) -> HintConfig:
        """Build a config from a JSON-style mapping, rejecting unknown keys."""
        known = {f.name for f in fields(cls)}
        unknown = set(payload) - known
        if unknown:
            raise ValueError(f"Unknown config keys: {', '.join(sorted(unknown))}")

        values: dict[str, Any] = {}
        for key in _BOOL_FIELDS:
            if key in payload:
                if not isinstance(payload[key], bool):
                    raise ValueError(f"'{key}' must be a boolean")
                values[key] = payload[key]
        if "max_length" in payload:
            values["max_length"] = payload["max_length"]
        if "obvious_param_names" in payload:
            names = payload["obvious_param_names"]
            if not isinstance(names, list | tuple | set | frozenset) or not all(
                isinstance(n, str) for n in names
            ):
                raise ValueError("'obvious_param_names' must be a list of strings")
            values["obvious_param_names"] = frozenset(names)
        return cls(**values)

    @classmethod
    def from_env(
        cls,
        environ: Mapping[str, str] | None = None,
        base: HintConfig | None = None,
    ) -> HintConfig:
        """Apply ``INLAYHINTS_*`` overrides on top of *base*."""
        env = os.environ if environ is None else environ
        config = base if base is not None else cls()
        overrides: dict[str, Any] = {}

        for key in _BOOL_FIELDS:
            var = ENV_PREFIX + key.upper()
            raw = env.get(var)
            if raw is None:
                continue
            value = raw.strip().lower()
            if value in _TRUE_VALUES:
                overrides[key] = True
            elif value in _FALSE_VALUES:
                overrides[key] = False
            else:
                logger.warning("Ignoring %s=%r (expected a boolean)", var, raw)

        var = ENV_PREFIX + "MAX_LENGTH"
        raw = env.get(var)
        if raw is not None:
            if not raw.strip():
                overrides["max_length"] = None
            else:
                try:
                    length = int(raw)
                except ValueError:
                    length = -1
                if length < 0:
                    logger.warning("Ignoring %s=%r (expected a non-negative integer)", var, raw)
                else:
                    overrides["max_length"] = length

        return replace(config, **overrides) if overrides else config


def load_config(
    path: str | Path | None = None,
    *,
    environ: Mapping[str, str] | None = None,
) -> HintConfig:
    """Resolve the effective config: file -> environment -> defaults.

    Without *path*, ``inlayhints.json`` in the working directory is used when
    present. An unreadable or invalid file is logged and skipped.
    """
    config_path = Path(path) if path is not None else Path.cwd() / CONFIG_FILENAME
    config = HintConfig()

    if config_path.exists():
        try:
            payload = json.loads(config_path.read_text(encoding="utf-8"))
            if not isinstance(payload, dict):
                raise ValueError("config file must contain a JSON object")
            config = HintConfig.from_mapping(payload)
        except (OSError, UnicodeDecodeError, ValueError) as exc:
            logger.warning("Ignoring config file %s: %s", config_path, exc)
    elif path is not None:
        logger.warning("Config file %s does not exist; using defaults", config_path)

    return HintConfig.from_env(environ, base=config)
