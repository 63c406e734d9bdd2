"""
Chromium ``Bookmarks`` JSON tree.

The file looks like::

    {"roots": {"bookmark_bar": {"type": "folder", "children": [...]},
               "other": {...}, "synced": {...}}}

Nodes are parsed into a small tagged variant (:class:`Folder` or
:class:`UrlLeaf`) and walked with an explicit stack, so a deep or malformed
tree never blows the recursion limit. Anything that is neither a folder nor
a URL leaf with a string ``url`` is ignored.
"""
from dataclasses import dataclass, field
from typing import Any, Iterator, List, Optional, Union

ROOT_NAMES = ("bookmark_bar", "other", "synced")


@dataclass
class UrlLeaf:
    title: str
    url: str
    date_added: int = 0


@dataclass
class Folder:
    name: str
    children: List[Any] = field(default_factory=list)


Node = Union[Folder, UrlLeaf]


def parse_node(raw: Any) -> Optional[Node]:
    """Tag one raw JSON node. Children stay raw until visited."""
    if not isinstance(raw, dict):
        return None
    node_type = raw.get("type")
    if node_type == "url":
        url = raw.get("url")
        if not isinstance(url, str) or not url:
            return None
        try:
            date_added = int(raw.get("date_added") or 0)
        except (TypeError, ValueError):
            date_added = 0
        return UrlLeaf(title=str(raw.get("name") or url), url=url, date_added=date_added)
    children = raw.get("children")
    if node_type in ("folder", None) and isinstance(children, list):
        return Folder(name=str(raw.get("name") or ""), children=children)
    return None


def walk(document: Any) -> Iterator[UrlLeaf]:
    """
    Yield every URL leaf under the known roots, in document order.

    Args:
        document: Parsed ``Bookmarks`` JSON
    """
    roots = document.get("roots") if isinstance(document, dict) else None
    if not isinstance(roots, dict):
        raise ValueError("Bookmarks file has no 'roots' object")

    stack: List[Any] = [roots.get(name) for name in reversed(ROOT_NAMES)]
    while stack:
        node = parse_node(stack.pop())
        if isinstance(node, UrlLeaf):
            yield node
        elif isinstance(node, Folder):
            stack.extend(reversed(node.children))


def count(document: Any) -> int:
    return sum(1 for _ in walk(document))
