"""
Static scan for call sites that touch catalog resources outside the guard.

The interceptor cannot see unique-key reads and writes (it never rewrites
them), so those must go through the escape-hatch combinators. This scan walks
Python sources and flags, per function, direct ORM access to a catalog model
(session.query(Model), session.get(Model, ...), select/update/delete(Model),
Model.query) unless the same function authorizes through is_in_scope,
require_in_scope or fetch_in_scope. A line ending in "# scope: checked" is
accepted as reviewed.
"""

from __future__ import annotations

import ast
from dataclasses import dataclass
from pathlib import Path

from .catalog import DEFAULT_CATALOG, ResourceCatalog

HATCH_CALLS = frozenset({"is_in_scope", "require_in_scope", "fetch_in_scope"})
SESSION_CALLS = frozenset({"query", "get", "get_one", "get_or_404"})
STATEMENT_CALLS = frozenset({"select", "update", "delete"})
WRITE_CALLS = frozenset({"update", "delete"})
PRAGMA = "# scope: checked"


@dataclass(frozen=True)
class Finding:
    path: str
    line: int
    function: str
    resource_type: str
    operation: str

    def format(self) -> str:
        return (
            f"{self.path}:{self.line}: {self.function}() accesses {self.resource_type} "
            f"via {self.operation} without a branch scope check"
        )


def _call_name(func) -> str | None:
    if isinstance(func, ast.Name):
        return func.id
    if isinstance(func, ast.Attribute):
        return func.attr
    return None


def _first_arg_name(call: ast.Call) -> str | None:
    """Model name of the first argument; Payment.amount_cents resolves to Payment."""
    if not call.args:
        return None
    node = call.args[0]
    while isinstance(node, ast.Attribute):
        node = node.value
    if isinstance(node, ast.Name):
        return node.id
    return None


def _uses_escape_hatch(node) -> bool:
    for child in ast.walk(node):
        if isinstance(child, ast.Call) and _call_name(child.func) in HATCH_CALLS:
            return True
    return False


def _chained_write(call: ast.Call, parents: dict) -> str | None:
    """For session.query(M).filter(...).update(...) report the trailing write."""
    node = parents.get(call)
    while node is not None:
        if isinstance(node, ast.Call) and _call_name(node.func) in WRITE_CALLS:
            return _call_name(node.func)
        if not isinstance(node, (ast.Attribute, ast.Call)):
            return None
        node = parents.get(node)
    return None


class _Scanner(ast.NodeVisitor):
    def __init__(self, path: str, lines: list[str], resource_types: frozenset[str]):
        self.path = path
        self.lines = lines
        self.resource_types = resource_types
        self.findings: list[Finding] = []
        self._functions: list[tuple[str, bool]] = [("<module>", False)]
        self._parents: dict = {}

    def scan(self, tree) -> list[Finding]:
        for parent in ast.walk(tree):
            for child in ast.iter_child_nodes(parent):
                self._parents[child] = parent
        self.visit(tree)
        return self.findings

    def _enter(self, node):
        self._functions.append((node.name, _uses_escape_hatch(node)))
        self.generic_visit(node)
        self._functions.pop()

    visit_FunctionDef = _enter
    visit_AsyncFunctionDef = _enter

    def _flag(self, node, resource_type: str, operation: str):
        function, checked = self._functions[-1]
        if checked:
            return
        line = self.lines[node.lineno - 1] if 0 < node.lineno <= len(self.lines) else ""
        if line.rstrip().endswith(PRAGMA):
            return
        self.findings.append(Finding(self.path, node.lineno, function, resource_type, operation))

    def visit_Call(self, node: ast.Call):
        name = _call_name(node.func)
        target = _first_arg_name(node)
        if target in self.resource_types:
            if name in SESSION_CALLS and isinstance(node.func, ast.Attribute):
                operation = _chained_write(node, self._parents) or name
                self._flag(node, target, operation)
            elif name in STATEMENT_CALLS:
                self._flag(node, target, name)
        self.generic_visit(node)

    def visit_Attribute(self, node: ast.Attribute):
        if (
            node.attr == "query"
            and isinstance(node.value, ast.Name)
            and node.value.id in self.resource_types
            and not isinstance(self._parents.get(node), ast.Call)
        ):
            self._flag(node, node.value.id, "Model.query")
        self.generic_visit(node)


def scan_source(source: str, path: str = "<string>", catalog: ResourceCatalog = DEFAULT_CATALOG) -> list[Finding]:
    tree = ast.parse(source, filename=path)
    return _Scanner(path, source.splitlines(), catalog.resource_types).scan(tree)


def iter_python_files(paths):
    for raw in paths:
        path = Path(raw)
        if path.is_dir():
            yield from sorted(p for p in path.rglob("*.py") if "__pycache__" not in p.parts)
        elif path.suffix == ".py":
            yield path


def scan_paths(paths, catalog: ResourceCatalog = DEFAULT_CATALOG) -> list[Finding]:
    findings: list[Finding] = []
    for path in iter_python_files(paths):
        findings.extend(scan_source(path.read_text(encoding="utf-8"), str(path), catalog))
    return findings
