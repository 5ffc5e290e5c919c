"""State snapshots written by EXPORT and read back by IMPORT.

A snapshot is line oriented, one directive per line, after a fixed
header line:

    # Exported from Anubhav
    INTENT greeting "hello"
    STORE total 42
    ARRAY scores
    PUSH scores 7

The reader is a small Lark grammar whose transformer turns every
directive into the AST statement with the same effect, so applying a
snapshot goes through the ordinary evaluator.
"""

from __future__ import annotations

from typing import List

from lark import Lark, Transformer
from lark.exceptions import UnexpectedInput

from .ast import ArrayCreate, Intent, Node, Number, Push, Store
from .environment import Environment
from .errors import fail
from .types import format_number

EXPORT_HEADER = '# Exported from Anubhav'

SNAPSHOT_GRAMMAR = r"""
    start: directive*

    ?directive: intent
              | store
              | array
              | push

    intent: "INTENT" NAME STRING
    store: "STORE" NAME NUMBER
    array: "ARRAY" NAME
    push: "PUSH" NAME NUMBER

    NAME: /[^\W\d_]\w*/
    // greedy up to the last quote on the line
    STRING: /"[^\n]*"/
    NUMBER: /-?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?/ | /-?inf/ | "NaN"

    COMMENT: /#[^\n]*/
    %import common.WS
    %ignore WS
    %ignore COMMENT
"""

SNAPSHOT_PARSER = Lark(
    SNAPSHOT_GRAMMAR,
    parser='lalr',
    lexer='contextual',
    propagate_positions=True,
)


class SnapshotTransformer(Transformer):
    """Turns snapshot directives into AST statements."""

    def start(self, items):
        return list(items)

    def intent(self, items):
        name, value = items
        return Intent(str(name), str(value)[1:-1])

    def store(self, items):
        name, value = items
        return Store(str(name), Number(float(value)))

    def array(self, items):
        return ArrayCreate(str(items[0]))

    def push(self, items):
        name, value = items
        return Push(str(name), Number(float(value)))


def is_snapshot(text: str) -> bool:
    return text.split('\n', 1)[0].rstrip('\r') == EXPORT_HEADER


def read_snapshot(text: str, path: str = '<snapshot>') -> List[Node]:
    """Parse snapshot text into the statements that recreate its state."""
    try:
        tree = SNAPSHOT_PARSER.parse(text)
    except UnexpectedInput as e:
        raise fail('ImportError', f"Malformed snapshot '{path}' at line {e.line}, column {e.column}")
    statements = SnapshotTransformer().transform(tree)
    declared = set()
    for stmt in statements:
        if isinstance(stmt, ArrayCreate):
            declared.add(stmt.name)
        elif isinstance(stmt, Push) and stmt.name not in declared:
            raise fail('ImportError', f"Snapshot '{path}' pushes to array '{stmt.name}' before declaring it")
    return statements


def write_snapshot(env: Environment, names: List[str]) -> str:
    """Serialise the named entries of `env`.

    Each name is looked up as an intent, then a calculation, then a
    variable, then an array; the first hit wins and unknown names are
    skipped.
    """
    lines = [EXPORT_HEADER]
    for name in names:
        if name in env.intents:
            lines.append(f'INTENT {name} "{env.intents[name]}"')
        elif name in env.calculations:
            lines.append(f'STORE {name} {format_number(env.calculations[name])}')
        elif name in env.variables:
            lines.append(f'STORE {name} {format_number(env.variables[name])}')
        elif name in env.arrays:
            lines.append(f'ARRAY {name}')
            lines.extend(f'PUSH {name} {format_number(value)}' for value in env.arrays[name])
    return '\n'.join(lines) + '\n'
