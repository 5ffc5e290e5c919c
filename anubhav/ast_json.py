"""JSON serialization/deserialization for the Anubhav AST.

Nodes become dicts tagged with their class name under "type", with one
entry per dataclass field. Lists and optional fields are handled
recursively, so every node type round-trips without per-node code.
"""

from __future__ import annotations

import inspect
from dataclasses import fields
from typing import Any, Dict, Type

from . import ast as ast_nodes
from .ast import BinaryOp, Call, Node, Number, Program, Recall, Switch, SwitchCase, UnaryOp

NODE_TYPES: Dict[str, Type[Node]] = {
    name: cls for name, cls in inspect.getmembers(ast_nodes, inspect.isclass)
    if issubclass(cls, Node) and cls is not Node
}


def ast_to_obj(node: Any) -> Any:
    if node is None or isinstance(node, (bool, int, float, str)):
        return node
    if isinstance(node, list):
        return [ast_to_obj(item) for item in node]
    if isinstance(node, Node):
        obj: Dict[str, Any] = {"type": type(node).__name__}
        for f in fields(node):
            obj[f.name] = ast_to_obj(getattr(node, f.name))
        return obj
    raise TypeError(f"Cannot serialise {type(node).__name__} to JSON")


def ast_from_obj(obj: Any) -> Any:
    if obj is None or isinstance(obj, (bool, int, float, str)):
        return obj
    if isinstance(obj, list):
        return [ast_from_obj(item) for item in obj]
    if isinstance(obj, dict):
        type_name = obj.get("type")
        cls = NODE_TYPES.get(type_name)
        if cls is None:
            raise ValueError(f"Unknown AST node type: {type_name!r}")
        kwargs = {f.name: ast_from_obj(obj[f.name]) for f in fields(cls) if f.name in obj}
        if cls is Number:
            kwargs["value"] = float(kwargs["value"])
        return cls(**kwargs)
    raise ValueError(f"Unsupported AST JSON value: {obj!r}")


EXPRESSION_TYPES = (Number, Recall, UnaryOp, BinaryOp, Call)
BODY_FIELDS = ('body', 'then_body', 'else_body', 'handler', 'default')


def check_program(program: Any) -> Program:
    """Raise ValueError unless `program` is a Program with statements in every body."""
    if not isinstance(program, Program):
        raise ValueError(f"Expected a Program, got {type(program).__name__}")
    _check_body(program.body)
    return program


def _check_body(statements: Any) -> None:
    if not isinstance(statements, list):
        raise ValueError(f"Statement body must be a list, got {type(statements).__name__}")
    for stmt in statements:
        if not isinstance(stmt, Node) or isinstance(stmt, (Program, SwitchCase) + EXPRESSION_TYPES):
            raise ValueError(f"{type(stmt).__name__} cannot appear as a statement")
        for f in fields(stmt):
            value = getattr(stmt, f.name)
            if f.name in BODY_FIELDS and value is not None:
                _check_body(value)
        if isinstance(stmt, Switch):
            for case in stmt.cases:
                if not isinstance(case, SwitchCase):
                    raise ValueError(f"Expected a SwitchCase, got {type(case).__name__}")
                _check_body(case.body)
