"""Structural and value comparison of normalized records.

``compare_structure`` checks shape only: types, key sets and (for arrays)
the first element. Arrays longer than one element are NOT compared past
index 0; a second element with a different shape goes unnoticed.
``compare_values`` then compares scalars on the parts both sides share,
treating server-generated fields as opaque.
"""
from dataclasses import dataclass

from taskboard.utils.timestamps import parse_timestamp

# Server-generated: presence and type are checked, not the value
OPAQUE_FIELDS = frozenset({"id", "userId", "taskId", "token", "createdAt", "updatedAt"})
TIMESTAMP_FIELDS = frozenset({"createdAt", "updatedAt"})


@dataclass(frozen=True)
class Issue:
    path: str
    message: str

    def __str__(self):
        return f"{self.path or '<root>'}: {self.message}"


def kind(value) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "array"
    if isinstance(value, dict):
        return "object"
    return type(value).__name__


def _join(path: str, key: str) -> str:
    return f"{path}.{key}" if path else key


def compare_structure(left, right, path: str = "", names: tuple[str, str] = ("REST", "RPC")) -> list[Issue]:
    issues = []
    left_kind, right_kind = kind(left), kind(right)

    if left_kind != right_kind:
        issues.append(Issue(path, f"Type mismatch - {left_kind} vs {right_kind}"))
        return issues

    if left_kind == "array":
        if left and right:
            issues.extend(compare_structure(left[0], right[0], f"{path}[0]", names))
        elif left or right:
            issues.append(Issue(path, "Array length mismatch (structure comparison needs non-empty arrays)"))
        return issues

    if left_kind == "object":
        left_keys, right_keys = set(left), set(right)
        missing = sorted(left_keys - right_keys)
        if missing:
            issues.append(Issue(path, f"Missing fields in {names[1]} response: {', '.join(missing)}"))
        extra = sorted(right_keys - left_keys)
        if extra:
            issues.append(Issue(path, f"Extra fields in {names[1]} response: {', '.join(extra)}"))
        for key in sorted(left_keys & right_keys):
            issues.extend(compare_structure(left[key], right[key], _join(path, key), names))

    return issues


def _check_opaque(key: str, left, right, path: str) -> list[Issue]:
    issues = []
    if left is None or right is None:
        if left is not right:
            issues.append(Issue(path, "Server-generated value missing on one side"))
        return issues
    if key in TIMESTAMP_FIELDS:
        for side, value in (("left", left), ("right", right)):
            try:
                parse_timestamp(value)
            except (TypeError, ValueError, AttributeError):
                issues.append(Issue(path, f"Unparseable timestamp on {side} side: {value!r}"))
    return issues


def compare_values(left, right, path: str = "", opaque=OPAQUE_FIELDS, key: str | None = None) -> list[Issue]:
    """Compare scalars where both shapes agree; shape problems are left to ``compare_structure``."""
    if key in opaque:
        return _check_opaque(key, left, right, path)

    left_kind, right_kind = kind(left), kind(right)
    if left_kind != right_kind:
        return []

    issues = []
    if left_kind == "object":
        for k in sorted(set(left) & set(right)):
            issues.extend(compare_values(left[k], right[k], _join(path, k), opaque, k))
    elif left_kind == "array":
        if len(left) != len(right):
            issues.append(Issue(path, f"Array length differs - {len(left)} vs {len(right)}"))
        for index, (a, b) in enumerate(zip(left, right)):
            issues.extend(compare_values(a, b, f"{path}[{index}]", opaque))
    elif left != right:
        issues.append(Issue(path, f"Value mismatch - {left!r} vs {right!r}"))
    return issues


def diff_records(left, right, check_values: bool = True, opaque=OPAQUE_FIELDS) -> list[Issue]:
    issues = compare_structure(left, right)
    if check_values:
        issues.extend(compare_values(left, right, opaque=opaque))
    return issues
