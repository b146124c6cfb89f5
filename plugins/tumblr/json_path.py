# plugins/tumblr/json_path.py
"""
Lookups into decoded JSON documents that never raise.

Tumblr wraps every API payload in {"meta": ..., "response": ...} and many
fields are only present for some post types, so callers walk the tree with
json_path() and decide what a missing value means.
"""

from typing import Any, List, Optional, Union

PathElement = Union[str, int]


def json_path(data: Any, *path: PathElement) -> Optional[Any]:
    """
    Follow a path of object keys and list indexes.

    Example:
        json_path(body, "response", "posts", 0, "type")

    Returns:
        The value at the end of the path, or None if any step is missing or
        has the wrong type.
    """
    current = data
    for element in path:
        if isinstance(element, int) and not isinstance(element, bool):
            if not isinstance(current, list) or not -len(current) <= element < len(current):
                return None
            current = current[element]
        elif isinstance(current, dict):
            if element not in current:
                return None
            current = current[element]
        else:
            return None
    return current


def json_list(data: Any, *path: PathElement) -> List[Any]:
    """Like json_path(), but returns an empty list unless the value is a list."""
    value = json_path(data, *path)
    return value if isinstance(value, list) else []


def json_str(data: Any, *path: PathElement) -> Optional[str]:
    """Like json_path(), but only returns non-empty strings; numbers are converted."""
    value = json_path(data, *path)
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, str) and value:
        return value
    return None
