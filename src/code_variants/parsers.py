"""Plain-text parser producing line-based trees.

This is the bundled ``parse_source`` collaborator. It does no syntax
highlighting: every line becomes one ``span.line`` element so that trees can
be diffed and rendered line by line.
"""

from typing import Any, Optional

from code_variants.models.variant import HastRoot


def parse_plain_text(text: str, file_name: str = "", language: Optional[str] = None) -> HastRoot:
    """Parse raw text into a tree with one element per line.

    Args:
        text: Raw source text.
        file_name: File name (unused, accepted for the collaborator signature).
        language: Language name recorded on the root.

    Returns:
        Root node whose text content equals ``text``.
    """
    children: list[dict[str, Any]] = []
    lines = text.split("\n")

    for number, line in enumerate(lines, start=1):
        children.append(
            {
                "type": "element",
                "tagName": "span",
                "properties": {"className": ["line"], "dataLn": number},
                "children": [{"type": "text", "value": line}] if line else [],
            }
        )
        if number < len(lines):
            children.append({"type": "text", "value": "\n"})

    root: HastRoot = {"type": "root", "children": children}
    if language:
        root["data"] = {"language": language}
    return root


def tree_to_text(node: Any) -> str:
    """Concatenate the text content of a tree."""
    if not isinstance(node, dict):
        return ""
    if node.get("type") == "text":
        return node.get("value", "")
    return "".join(tree_to_text(child) for child in node.get("children", []))
