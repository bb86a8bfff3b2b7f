"""YAML config loading with env var expansion."""

import os
import re
from pathlib import Path

import yaml
from pydantic import ValidationError

from .models import SmakeConfig

# Only these variables may be interpolated into config values
_ALLOWED_ENV_VARS = frozenset({"HOME", "PWD", "SMAKE_PROJECT", "SMAKE_ROOT", "SMAKE_LOG_LEVEL"})


def load_config(cli_path: str | None = None) -> SmakeConfig:
    """Load config with resolution order: CLI > project-local > user-global > defaults."""
    config_paths = [
        Path(cli_path) if cli_path else None,
        Path("./smake.config.yaml"),
        Path.home() / ".smake" / "config.yaml",
    ]

    for path in config_paths:
        if path and path.exists():
            try:
                with open(path) as f:
                    raw = yaml.safe_load(f)
                if raw is None:
                    continue
                raw = _expand_env_vars(raw)
                return SmakeConfig(**raw)
            except yaml.YAMLError as e:
                raise ValueError(f"Invalid YAML in {path}: {e}") from e
            except (ValidationError, TypeError) as e:
                raise ValueError(f"Invalid config in {path}: {e}") from e

    return SmakeConfig()


def _expand_env_vars(obj: object) -> object:
    """Recursively expand ${VAR} references in strings (allow-listed vars only)."""
    if isinstance(obj, str):
        return re.sub(
            r"\$\{(\w+)\}",
            lambda m: os.environ.get(m.group(1), "") if m.group(1) in _ALLOWED_ENV_VARS else m.group(0),
            obj,
        )
    elif isinstance(obj, dict):
        return {k: _expand_env_vars(v) for k, v in obj.items()}
    elif isinstance(obj, list):
        return [_expand_env_vars(v) for v in obj]
    return obj


# Default YAML template for `smake config init`
DEFAULT_CONFIG_TEMPLATE = """\
# smake.config.yaml

# Project
project:
  file: "smake.yaml"           # rule declarations
  # root: "."                  # base for rule paths (default: project file's directory)

# Reporting
report:
  verbose: false               # per-output diagnostics in `smake status`
  fail_on_stale: false         # `smake check` exits 1 if any rule is stale
  fail_on_invalid: false       # `smake check` exits 1 if any rule is indeterminate

# Watch mode
watch:
  debounce_seconds: 0.5
  ignore_patterns: [".venv", "node_modules"]

# Logging
log_level: "warn"              # debug | info | warn | error
"""
