"""Smake Core - rule freshness engine: mtime staleness verdicts and diagnostics."""

from smake_core.config import SmakeConfig, load_config
from smake_core.declaration import ParseReport, Tag, load_project, load_rules, parse_rule, parse_rules
from smake_core.freshness import (
    Freshness,
    FreshnessVerdict,
    IndeterminateReason,
    OutputUpdateInfo,
    Rule,
    RuleWatcher,
)
from smake_core.interfaces import DeclarationNode, FileQueryError, FileSystem, LocalFileSystem

__version__ = "0.1.0"

__all__ = [
    "DeclarationNode",
    "FileQueryError",
    "FileSystem",
    "Freshness",
    "FreshnessVerdict",
    "IndeterminateReason",
    "LocalFileSystem",
    "OutputUpdateInfo",
    "ParseReport",
    "Rule",
    "RuleWatcher",
    "SmakeConfig",
    "Tag",
    "load_config",
    "load_project",
    "load_rules",
    "parse_rule",
    "parse_rules",
]
