"""
CSS custom property parsing.

Provides functions to split stylesheet text into rules, extract CSS variable
definitions from an allow-listed set of selectors, and resolve var()
references between those variables. This is a simplified parser: nested
SCSS/LESS rules and selector specificity are not handled.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable, Optional


# =============================================================================
# Constants
# =============================================================================

# Maximum nesting depth followed when resolving var() chains
MAX_REFERENCE_DEPTH = 10

# Selectors used by the bundled dataset
BUILTIN_SELECTORS = (":root", ".css-var-root", ".qz-css-var")

# Selectors whose declaration blocks may hold token definitions
_ALLOWED_SELECTOR_PATTERNS = [
    re.compile(r"^:root$"),
    re.compile(r"^\.css-var-root$"),
    re.compile(r"^\.qz-css-var$"),
    re.compile(r"^(?:html|body|:root)?\.(?:dark|light)(?:-theme|-mode)?$"),
    re.compile(r"""^(?:html|body|:root)?\[data-theme\s*=\s*["']?(?:dark|light)["']?\]$"""),
]

_DARK_SCOPE = re.compile(
    r"""\[data-theme\s*=\s*["']?dark["']?\]|(?<![\w-])\.dark(?:-theme|-mode)?(?![\w-])"""
)

_COMMENT = re.compile(r"/\*.*?\*/", re.DOTALL)

_DEFINITION = re.compile(r"--[\w-]+\s*:\s*[^;{}]+;")

# var(--name) or var(--name, fallback); the fallback may hold one level of
# nested parentheses, e.g. var(--x, rgba(0, 0, 0, 0.5)).
VAR_REFERENCE = re.compile(
    r"var\(\s*(--[\w-]+)\s*(?:,((?:[^()]|\([^()]*\))*))?\)"
)


# =============================================================================
# Data Structures
# =============================================================================


@dataclass
class CSSRule:
    """Represents a parsed CSS rule with selector and properties.

    Attributes:
        selector: The CSS selector string (e.g., ':root', '.dark').
        properties: Dictionary mapping property names to values.
        line_number: Line number where the rule begins in the source text.
    """

    selector: str
    properties: dict[str, str]
    line_number: int


# =============================================================================
# Parsing Functions
# =============================================================================


def remove_comments(content: str) -> str:
    """Remove /* */ comments from CSS content."""
    return _COMMENT.sub("", content)


def parse_rules(content: str) -> list[CSSRule]:
    """Parse CSS content into a flat list of rules.

    Comments are stripped first. Line numbers refer to the comment-free text.
    Only innermost blocks are read; text after the last '}' is ignored.
    """
    rules: list[CSSRule] = []
    content = remove_comments(content)

    offset = 0
    line_number = 1
    counted_to = 0

    for chunk in content.split("}")[:-1]:
        chunk_start = offset
        offset += len(chunk) + 1

        head, brace, block = chunk.rpartition("{")
        if not brace:
            continue

        selector_offset = head.rfind("{") + 1
        raw_selector = head[selector_offset:]
        stripped = raw_selector.lstrip()
        if not stripped:
            continue

        selector_start = chunk_start + selector_offset + len(raw_selector) - len(stripped)
        line_number += content.count("\n", counted_to, selector_start)
        counted_to = selector_start

        selector = " ".join(raw_selector.split())
        properties = _parse_properties(block)

        if properties:
            rules.append(
                CSSRule(
                    selector=selector,
                    properties=properties,
                    line_number=line_number,
                )
            )

    return rules


def _parse_properties(block: str) -> dict[str, str]:
    """Parse a declaration block into a property dictionary.

    Values spanning several lines are joined with single spaces. A property
    declared twice keeps its last value.
    """
    properties: dict[str, str] = {}

    for decl in block.split(";"):
        decl = decl.strip()
        if not decl or ":" not in decl:
            continue

        # Split on first colon only (values may contain colons)
        colon_pos = decl.index(":")
        prop_name = decl[:colon_pos].strip()
        prop_value = " ".join(decl[colon_pos + 1 :].split())

        if prop_name and prop_value:
            properties[prop_name] = prop_value

    return properties


def is_allowed_selector(selector: str, selectors: Optional[Iterable[str]] = None) -> bool:
    """Check whether every part of a selector list may define tokens.

    Args:
        selector: Selector text, possibly a comma-separated list.
        selectors: Explicit selectors to accept instead of the default
            allow-list patterns.
    """
    parts = [" ".join(p.split()) for p in selector.split(",")]
    if not all(parts):
        return False

    if selectors is not None:
        accepted = {" ".join(s.split()) for s in selectors}
        return all(p in accepted for p in parts)

    return all(
        any(pattern.match(part) for pattern in _ALLOWED_SELECTOR_PATTERNS)
        for part in parts
    )


def extract_variables(
    content: str,
    selectors: Optional[Iterable[str]] = None,
) -> dict[str, str]:
    """Extract CSS custom property definitions from stylesheet text.

    Only declaration blocks under allowed selectors are read. Within one call
    a later definition of the same name overrides an earlier one.

    Args:
        content: Raw CSS content.
        selectors: Optional explicit selector set (see is_allowed_selector).

    Returns:
        Dictionary mapping variable names (with --) to their values, in
        first-definition order. E.g., {'--ant-color-primary': '#1677ff'}
    """
    if selectors is not None:
        selectors = tuple(selectors)

    variables: dict[str, str] = {}

    for rule in parse_rules(content):
        if not is_allowed_selector(rule.selector, selectors):
            continue
        for prop_name, prop_value in rule.properties.items():
            if prop_name.startswith("--"):
                variables[prop_name] = prop_value

    return variables


def resolve_references(variables: dict[str, str]) -> dict[str, str]:
    """Substitute var() references between variables.

    Every var(--name) whose target is defined is replaced by the target's
    (recursively resolved) value; an undefined target falls back to the
    literal fallback when one is given. References past
    MAX_REFERENCE_DEPTH levels, or to undefined names without a fallback, are
    left verbatim, so cyclic definitions terminate.

    Returns:
        A new dictionary; the input is not modified.
    """
    return {
        name: _resolve_value(value, variables, 0)
        for name, value in variables.items()
    }


def _resolve_value(value: str, variables: dict[str, str], depth: int) -> str:
    if depth >= MAX_REFERENCE_DEPTH:
        return value

    def substitute(match: re.Match) -> str:
        target, fallback = match.group(1), match.group(2)
        if target in variables:
            return _resolve_value(variables[target], variables, depth + 1)
        if fallback is not None and fallback.strip():
            return _resolve_value(fallback.strip(), variables, depth + 1)
        return match.group(0)

    return VAR_REFERENCE.sub(substitute, value)


def has_dark_scope(content: str) -> bool:
    """Check whether the stylesheet uses a dark-theme selector."""
    return bool(_DARK_SCOPE.search(remove_comments(content)))


def contains_variable_definitions(content: str) -> bool:
    """Cheap check for at least one '--name: value;' declaration."""
    return bool(_DEFINITION.search(remove_comments(content)))
