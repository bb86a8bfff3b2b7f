"""Declarative rule sources: node model, rule construction, and YAML loading."""

from smake_core.declaration.loader import load_project, load_rules
from smake_core.declaration.models import Tag
from smake_core.declaration.parser import ParseReport, parse_rule, parse_rules

__all__ = [
    "ParseReport",
    "Tag",
    "load_project",
    "load_rules",
    "parse_rule",
    "parse_rules",
]
