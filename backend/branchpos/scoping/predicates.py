"""
Predicate Inspector.

Answers one question: does a filter already name one of a resource's scoping
columns somewhere inside its AND/OR/NOT structure? The walk is iterative and
bounded, so a malformed or hostile filter cannot make it loop or recurse
without limit; when a bound is hit the answer is False, which makes the
interceptor inject the scope.
"""

from __future__ import annotations

from collections.abc import Mapping

from sqlalchemy.sql.elements import (
    BinaryExpression,
    BooleanClauseList,
    ClauseList,
    ColumnClause,
    Grouping,
    UnaryExpression,
)

MAX_DEPTH = 32
MAX_NODES = 2000


def _names_field(node: ColumnClause, fields) -> bool:
    return node.name in fields or getattr(node, "key", None) in fields


def _children(node):
    if isinstance(node, Mapping):
        return [v for v in node.values() if isinstance(v, (Mapping, list, tuple)) or hasattr(v, "__clause_element__")]
    if isinstance(node, (list, tuple)):
        return list(node)
    if isinstance(node, (BooleanClauseList, ClauseList)):
        return list(node.clauses)
    if isinstance(node, BinaryExpression):
        return [node.left, node.right]
    if isinstance(node, (Grouping, UnaryExpression)):
        return [node.element]
    return []


def contains_scoping_field(entry, criteria, *, max_depth: int = MAX_DEPTH, max_nodes: int = MAX_NODES) -> bool:
    """
    True iff criteria names any of entry.scoping_fields.

    criteria may be a SQLAlchemy boolean clause or a filter_by-style mapping.
    Only logical combinators, groupings and comparison operands are walked;
    subqueries and function calls are opaque.
    """
    if criteria is None:
        return False

    fields = frozenset(entry.scoping_fields)
    stack = [(criteria, 0)]
    visited = 0

    while stack:
        node, depth = stack.pop()
        visited += 1
        if visited > max_nodes or depth > max_depth:
            return False

        if hasattr(node, "__clause_element__"):
            node = node.__clause_element__()

        if isinstance(node, Mapping):
            if any(isinstance(k, str) and k in fields for k in node.keys()):
                return True
        elif isinstance(node, ColumnClause):
            if _names_field(node, fields):
                return True
            continue

        for child in _children(node):
            stack.append((child, depth + 1))

    return False
