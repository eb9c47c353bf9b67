"""Parse and resolve ``${...}`` placeholders inside attribute values."""

import re
from typing import Any, Callable, List, Tuple

PLACEHOLDER = re.compile(r"\$\{([A-Za-z][A-Za-z0-9_-]*)\.([A-Za-z0-9_-]+)\}")
VARIABLE_SCOPE = "var"


def find_placeholders(value: Any) -> List[Tuple[str, str]]:
    """Return every (scope, key) placeholder found in a nested value, in order."""
    found = []
    
    def walk(item: Any) -> None:
        if isinstance(item, str):
            found.extend(PLACEHOLDER.findall(item))
        elif isinstance(item, dict):
            for nested in item.values():
                walk(nested)
        elif isinstance(item, (list, tuple)):
            for nested in item:
                walk(nested)
    
    walk(value)
    return found


def find_references(attributes: Any) -> List[Tuple[str, str]]:
    """Resource references (resource name, output key); ``${var.x}`` is excluded."""
    return [(scope, key) for scope, key in find_placeholders(attributes) if scope != VARIABLE_SCOPE]


def referenced_resources(attributes: Any) -> List[str]:
    """Distinct resource names referenced by the attributes, in first-seen order."""
    names = []
    for name, _ in find_references(attributes):
        if name not in names:
            names.append(name)
    return names


def substitute(value: Any, lookup: Callable[[str, str], Any], scopes: Callable[[str], bool]) -> Any:
    """
    Replace placeholders whose scope satisfies ``scopes`` using ``lookup``.
    
    A string consisting of a single placeholder takes the looked-up value as-is,
    so non-string values keep their type. Embedded placeholders are rendered with str().
    """
    if isinstance(value, str):
        whole = PLACEHOLDER.fullmatch(value)
        if whole and scopes(whole.group(1)):
            return lookup(whole.group(1), whole.group(2))
        
        def render(match: "re.Match") -> str:
            if not scopes(match.group(1)):
                return match.group(0)
            return str(lookup(match.group(1), match.group(2)))
        
        return PLACEHOLDER.sub(render, value)
    if isinstance(value, dict):
        return {key: substitute(nested, lookup, scopes) for key, nested in value.items()}
    if isinstance(value, list):
        return [substitute(nested, lookup, scopes) for nested in value]
    return value
