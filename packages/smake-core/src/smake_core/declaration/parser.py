"""Build rules from generic declarative nodes.

A rule is declared by a ``rule`` node with exactly one string value (its
name) and ``cmd`` / ``in`` / ``out`` children whose values are concatenated
in document order. Construction is all-or-nothing: any malformed piece means
no rule at all.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field

from smake_core.freshness.rule import Rule
from smake_core.interfaces.filesystem import FileSystem, LocalFileSystem
from smake_core.interfaces.node import DeclarationNode

logger = logging.getLogger(__name__)


@dataclass
class ParseReport:
    """Rules built from a batch of nodes, plus what was rejected and why."""

    rules: list[Rule] = field(default_factory=list)
    rejected: list[str] = field(default_factory=list)

    def get(self, name: str) -> Rule | None:
        """First rule with the given name, if any."""
        return next((r for r in self.rules if r.name == name), None)


def _describe(node: DeclarationNode) -> str:
    vals = " ".join(repr(v) for v in node.values)
    return f"{node.name} {vals}".rstrip()


def _child_values(node: DeclarationNode, tag: str) -> list[str | None]:
    """Concatenated values of every *tag* child; non-strings become None."""
    return [
        value if isinstance(value, str) else None
        for child in node.children
        if child.name == tag
        for value in child.values
    ]


def _build(node: DeclarationNode, fs: FileSystem | None) -> tuple[Rule | None, str]:
    values = list(node.values)
    if node.name != "rule":
        return None, f"expected a 'rule' tag, got {node.name!r}"
    if len(values) != 1:
        return None, f"expected exactly one value (the rule name), got {len(values)}"
    name = values[0]
    if not isinstance(name, str) or not name:
        return None, "rule name must be a non-empty string"

    commands = _child_values(node, "cmd")
    if not commands:
        return None, "rule has no commands"
    inputs = _child_values(node, "in")
    outputs = _child_values(node, "out")
    if None in commands or None in inputs or None in outputs:
        return None, "cmd/in/out values must all be strings"

    rule = Rule(
        name=name,
        commands=tuple(commands),
        inputs=tuple(inputs),
        outputs=tuple(outputs),
        fs=fs if fs is not None else LocalFileSystem(),
    )
    return rule, ""


def parse_rule(node: DeclarationNode, fs: FileSystem | None = None) -> Rule | None:
    """Build a rule from *node*, or return None if the node is malformed."""
    rule, reason = _build(node, fs)
    if rule is None:
        logger.debug("Rejected declaration %s: %s", _describe(node), reason)
    return rule


def parse_rules(nodes: Iterable[DeclarationNode], fs: FileSystem | None = None) -> ParseReport:
    """Build every rule in *nodes*; malformed nodes are reported, not raised."""
    report = ParseReport()
    for node in nodes:
        rule, reason = _build(node, fs)
        if rule is None:
            entry = f"{_describe(node)}: {reason}"
            logger.warning("Skipping malformed declaration %s", entry)
            report.rejected.append(entry)
            continue
        report.rules.append(rule)
    return report
