"""Reference selection configuration.

Settings come from an optional YAML file, with CLI options taking
precedence::

    tool: pylint
    use_previous_build_as_reference: false
    use_stable_build_as_reference: true
    results_dir: results
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any

import yaml

from trendref.logging import get_logger
from trendref.reference import ReferenceStrategy

log = get_logger("config")

_FLAG_KEYS = ("use_previous_build_as_reference", "use_stable_build_as_reference")


@dataclass
class ReferenceConfig:
    """Resolved configuration for a reference query."""

    tool: str = ""
    use_previous_build_as_reference: bool = False
    use_stable_build_as_reference: bool = False
    results_dir: Path = field(default_factory=lambda: Path("results"))

    @property
    def strategy(self) -> ReferenceStrategy:
        return ReferenceStrategy.from_flags(self.use_previous_build_as_reference)


@dataclass
class ValidationError:
    """A single configuration validation error."""

    field: str
    message: str


def load_config(path: Path) -> dict[str, Any]:
    """Load a YAML configuration file.

    Raises:
        FileNotFoundError: If *path* does not exist.
        ValueError: If the file is not valid YAML or does not hold a mapping.
    """
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise ValueError(f"Invalid YAML in {path}: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Config must be a YAML mapping, got {type(data).__name__}")
    log.debug("Loaded config from %s: %s", path, sorted(data))
    return data


def config_from_dict(
    data: dict[str, Any],
    *,
    cli_overrides: dict[str, Any] | None = None,
) -> ReferenceConfig:
    """Build a ReferenceConfig from file values and CLI overrides.

    CLI overrides that are not None win over file values.

    Raises:
        ValueError: On unknown keys or flags that are not booleans.
    """
    known = {f.name for f in fields(ReferenceConfig)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ValueError(f"Unknown config key(s): {', '.join(unknown)}")

    merged = dict(data)
    for key, value in (cli_overrides or {}).items():
        if value is not None:
            merged[key] = value

    for key in _FLAG_KEYS:
        if key in merged and not isinstance(merged[key], bool):
            raise ValueError(f"'{key}' must be true or false, got {merged[key]!r}")

    config = ReferenceConfig(
        tool=str(merged.get("tool") or ""),
        use_previous_build_as_reference=merged.get("use_previous_build_as_reference", False),
        use_stable_build_as_reference=merged.get("use_stable_build_as_reference", False),
    )
    if merged.get("results_dir") is not None:
        config.results_dir = Path(merged["results_dir"])
    return config


def validate_config(config: ReferenceConfig) -> list[ValidationError]:
    """Validate a configuration. An empty list means valid."""
    errors: list[ValidationError] = []

    if not config.tool:
        errors.append(
            ValidationError(
                field="tool",
                message="No analysis tool given. Use --tool or set 'tool' in the config.",
            )
        )

    if not config.results_dir.is_dir():
        errors.append(
            ValidationError(
                field="results_dir",
                message=f"Results directory does not exist: {config.results_dir}",
            )
        )

    return errors
