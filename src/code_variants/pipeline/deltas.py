"""Delta computation and replay.

Two delta formats are supported, one per baseline representation:

* Line deltas for raw text: a list of operations over ``text.split("\\n")``.
  ``["=", n]`` keeps ``n`` lines, ``["-", n]`` drops ``n`` lines and
  ``["+", [lines]]`` inserts lines.
* Tree deltas for parsed trees: ``None`` when the trees are equal,
  ``{"replace": node}`` when a node cannot be patched in place, otherwise a
  dict with optional ``set`` (changed properties), ``unset`` (removed
  properties) and ``children`` operations. Children operations are the line
  operations plus ``["~", [sub_delta, ...]]`` which patches consecutive
  children in place.

Applying a delta to the exact baseline it was computed against reproduces the
target exactly.
"""

import copy
import json
from difflib import SequenceMatcher
from typing import Any, Optional

from code_variants.errors import DeltaError

LineDelta = list[list[Any]]
TreeDelta = Optional[dict[str, Any]]


def _opcodes(base_keys: list, target_keys: list):
    matcher = SequenceMatcher(None, base_keys, target_keys, autojunk=False)
    return matcher.get_opcodes()


def diff_lines(base: str, target: str) -> LineDelta:
    """Compute a line delta turning ``base`` into ``target``."""
    base_lines = base.split("\n")
    target_lines = target.split("\n")
    ops: LineDelta = []

    for tag, i1, i2, j1, j2 in _opcodes(base_lines, target_lines):
        if tag == "equal":
            ops.append(["=", i2 - i1])
        elif tag == "delete":
            ops.append(["-", i2 - i1])
        elif tag == "insert":
            ops.append(["+", target_lines[j1:j2]])
        else:
            ops.append(["-", i2 - i1])
            ops.append(["+", target_lines[j1:j2]])

    return ops


def apply_line_delta(base: str, delta: LineDelta) -> str:
    """Replay a line delta against its baseline text.

    Raises:
        DeltaError: If the delta does not fit the baseline.
    """
    if not isinstance(delta, list):
        raise DeltaError("Line delta must be a list of operations")

    base_lines = base.split("\n")
    result = _apply_sequence_ops(base_lines, delta, allow_patch=False)
    return "\n".join(result)


def _fingerprint(node: Any) -> str:
    return json.dumps(node, sort_keys=True, default=str)


def diff_tree(base: Any, target: Any) -> TreeDelta:
    """Compute a structural delta turning tree ``base`` into ``target``.

    Returns:
        ``None`` if the trees are equal, otherwise the delta.
    """
    if base == target:
        return None

    if (
        not isinstance(base, dict)
        or not isinstance(target, dict)
        or base.get("type") != target.get("type")
    ):
        return {"replace": copy.deepcopy(target)}

    delta: dict[str, Any] = {}
    diff_children = isinstance(base.get("children"), list) and isinstance(
        target.get("children"), list
    )

    changed = {
        key: copy.deepcopy(value)
        for key, value in target.items()
        if not (key == "children" and diff_children)
        and (key not in base or base[key] != value)
    }
    if changed:
        delta["set"] = changed

    removed = [key for key in base if key not in target]
    if removed:
        delta["unset"] = removed

    if diff_children and base["children"] != target["children"]:
        delta["children"] = _diff_children(base["children"], target["children"])

    return delta


def _diff_children(base: list, target: list) -> list[list[Any]]:
    base_keys = [_fingerprint(node) for node in base]
    target_keys = [_fingerprint(node) for node in target]
    ops: list[list[Any]] = []

    for tag, i1, i2, j1, j2 in _opcodes(base_keys, target_keys):
        if tag == "equal":
            ops.append(["=", i2 - i1])
        elif tag == "delete":
            ops.append(["-", i2 - i1])
        elif tag == "insert":
            ops.append(["+", copy.deepcopy(target[j1:j2])])
        elif i2 - i1 == j2 - j1:
            ops.append(
                ["~", [diff_tree(base[i], target[j]) for i, j in zip(range(i1, i2), range(j1, j2))]]
            )
        else:
            ops.append(["-", i2 - i1])
            ops.append(["+", copy.deepcopy(target[j1:j2])])

    return ops


def apply_tree_delta(base: Any, delta: TreeDelta) -> Any:
    """Replay a structural delta against its baseline tree.

    Raises:
        DeltaError: If the delta does not fit the baseline.
    """
    if delta is None:
        return copy.deepcopy(base)

    if not isinstance(delta, dict):
        raise DeltaError("Tree delta must be a dict or None")

    if "replace" in delta:
        return copy.deepcopy(delta["replace"])

    if not isinstance(base, dict):
        raise DeltaError("Tree delta can only patch a node")

    result = {
        key: copy.deepcopy(value)
        for key, value in base.items()
        if key not in delta.get("unset", [])
    }
    for key, value in delta.get("set", {}).items():
        result[key] = copy.deepcopy(value)

    if "children" in delta:
        children = base.get("children")
        if not isinstance(children, list):
            raise DeltaError("Delta patches children of a node without children")
        result["children"] = _apply_sequence_ops(children, delta["children"], allow_patch=True)

    return result


def _apply_sequence_ops(base: list, ops: list, allow_patch: bool) -> list:
    result: list = []
    cursor = 0

    for op in ops:
        if not isinstance(op, list) or len(op) != 2:
            raise DeltaError(f"Malformed delta operation: {op!r}")
        code, arg = op

        if code == "=":
            if cursor + arg > len(base):
                raise DeltaError("Delta keeps more items than the baseline has")
            result.extend(copy.deepcopy(base[cursor:cursor + arg]))
            cursor += arg
        elif code == "-":
            if cursor + arg > len(base):
                raise DeltaError("Delta removes more items than the baseline has")
            cursor += arg
        elif code == "+":
            result.extend(copy.deepcopy(arg))
        elif code == "~" and allow_patch:
            if cursor + len(arg) > len(base):
                raise DeltaError("Delta patches more items than the baseline has")
            for sub_delta in arg:
                result.append(apply_tree_delta(base[cursor], sub_delta))
                cursor += 1
        else:
            raise DeltaError(f"Unknown delta operation: {code!r}")

    if cursor != len(base):
        raise DeltaError("Delta does not cover the whole baseline")

    return result


def apply_delta(base: Any, delta: Any) -> Any:
    """Replay a delta, choosing the format from the baseline type."""
    if isinstance(base, str):
        return apply_line_delta(base, delta)
    return apply_tree_delta(base, delta)
