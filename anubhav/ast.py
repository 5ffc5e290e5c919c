"""Abstract Syntax Tree (AST) definitions for the Anubhav language.

Every statement form of the language has its own dataclass. Bodies of
compound statements are plain lists of statement nodes. Expressions are
numeric: literals, recalls, unary and binary operators and calls to the
fixed set of built-in functions.

Names that refer to a namespace entry (intents, arrays, ...) are kept as
plain strings; the evaluator decides which namespace to consult.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional


@dataclass
class Node:
    """Base class for all AST nodes."""
    pass


@dataclass
class Program(Node):
    body: List[Node]


# ---------------------------------------------------------------------------
# Expressions
# ---------------------------------------------------------------------------

@dataclass
class Number(Node):
    value: float


@dataclass
class Recall(Node):
    name: str


@dataclass
class UnaryOp(Node):
    op: str  # '-' or 'NOT'
    operand: Node


@dataclass
class BinaryOp(Node):
    op: str
    left: Node
    right: Node


@dataclass
class Call(Node):
    """Built-in function call such as MIN(a b) or RANDOM()."""
    name: str
    args: List[Node]


# ---------------------------------------------------------------------------
# Declarations and output
# ---------------------------------------------------------------------------

@dataclass
class Intent(Node):
    name: str
    value: str


@dataclass
class Manifest(Node):
    name: str
    context: Optional[str] = None


@dataclass
class Calculate(Node):
    name: str
    expr: Node


@dataclass
class Store(Node):
    name: str
    expr: Node


@dataclass
class Combine(Node):
    name: str
    parts: List[str]  # template fragments; identifiers appear as '${name}'


@dataclass
class Print(Node):
    parts: List[str]


@dataclass
class Increment(Node):
    name: str


@dataclass
class Decrement(Node):
    name: str


# ---------------------------------------------------------------------------
# Control flow
# ---------------------------------------------------------------------------

@dataclass
class Repeat(Node):
    count: Node
    body: List[Node]


@dataclass
class If(Node):
    condition: Node
    then_body: List[Node]
    else_body: Optional[List[Node]] = None


@dataclass
class While(Node):
    condition: Node
    body: List[Node]


@dataclass
class For(Node):
    var: str
    start: Node
    end: Node
    step: Optional[Node]
    body: List[Node]


@dataclass
class Assert(Node):
    condition: Node
    message: Optional[str] = None


@dataclass
class TryCatch(Node):
    body: List[Node]
    handler: List[Node]


@dataclass
class SwitchCase(Node):
    value: Node
    body: List[Node]


@dataclass
class Switch(Node):
    subject: Node
    cases: List[SwitchCase]
    default: Optional[List[Node]] = None


@dataclass
class Break(Node):
    pass


@dataclass
class Continue(Node):
    pass


@dataclass
class Return(Node):
    value: Optional[Node] = None


@dataclass
class FunctionDef(Node):
    name: str
    params: List[str]
    body: List[Node]


@dataclass
class FunctionCall(Node):
    name: str
    args: List[Node] = field(default_factory=list)
    result: Optional[str] = None


# ---------------------------------------------------------------------------
# Strings
# ---------------------------------------------------------------------------

@dataclass
class StringTransform(Node):
    op: str  # UPPERCASE, LOWERCASE or TRIM
    name: str
    source: str


@dataclass
class Substring(Node):
    name: str
    source: str
    start: Node
    length: Node


@dataclass
class Contains(Node):
    source: str
    needle: str
    result: str


@dataclass
class Replace(Node):
    name: str
    pattern: str
    replacement: str
    result: str


@dataclass
class Split(Node):
    name: str
    delimiter: str
    result: str


# ---------------------------------------------------------------------------
# Arrays
# ---------------------------------------------------------------------------

@dataclass
class ArrayCreate(Node):
    name: str


@dataclass
class Push(Node):
    name: str
    expr: Node


@dataclass
class Pop(Node):
    name: str
    result: str


@dataclass
class ArraySize(Node):
    name: str
    result: str


@dataclass
class Get(Node):
    name: str
    index: Node
    result: str


@dataclass
class Set(Node):
    name: str
    index: Node
    value: Node


@dataclass
class Sort(Node):
    name: str
    descending: bool = False


@dataclass
class Reverse(Node):
    name: str


@dataclass
class Shuffle(Node):
    name: str


@dataclass
class Filter(Node):
    name: str
    predicate: Node
    result: str


@dataclass
class MapArray(Node):
    name: str
    expr: Node
    result: str


@dataclass
class Find(Node):
    name: str
    predicate: Node
    result: str


@dataclass
class Count(Node):
    name: str
    predicate: Node
    result: str


@dataclass
class Fold(Node):
    name: str
    initial: Node
    expr: Node
    result: str


@dataclass
class ArrayAggregate(Node):
    op: str  # SUM, AVERAGE, MIN_OF, MAX_OF or MEDIAN
    name: str
    result: str


@dataclass
class Join(Node):
    name: str
    separator: str
    result: str


@dataclass
class Range(Node):
    start: Node
    end: Node
    step: Optional[Node]
    result: str


@dataclass
class Unique(Node):
    name: str
    result: str


@dataclass
class Flatten(Node):
    name: str
    result: str


@dataclass
class Concat(Node):
    first: str
    second: str
    result: str


@dataclass
class Zip(Node):
    first: str
    second: str
    result: str


@dataclass
class Take(Node):
    name: str
    count: Node
    result: str


@dataclass
class Drop(Node):
    name: str
    count: Node
    result: str


@dataclass
class Clear(Node):
    name: str


@dataclass
class Clone(Node):
    source: str
    target: str


# ---------------------------------------------------------------------------
# Dictionaries
# ---------------------------------------------------------------------------

@dataclass
class DictCreate(Node):
    name: str


@dataclass
class Put(Node):
    name: str
    key: str
    expr: Node


@dataclass
class Fetch(Node):
    name: str
    key: str
    result: str


@dataclass
class DictDelete(Node):
    name: str
    key: str


@dataclass
class Keys(Node):
    name: str
    result: str


@dataclass
class Values(Node):
    name: str
    result: str


# ---------------------------------------------------------------------------
# I/O, reflection and modules
# ---------------------------------------------------------------------------

@dataclass
class ReadFile(Node):
    path: str
    result: str


@dataclass
class WriteFile(Node):
    path: str
    content: str


@dataclass
class AppendFile(Node):
    path: str
    content: str


@dataclass
class Exists(Node):
    path: str
    result: str


@dataclass
class Sleep(Node):
    duration: Node


@dataclass
class Input(Node):
    prompt: str
    result: str


@dataclass
class TypeOf(Node):
    name: str
    result: str


@dataclass
class ParseNumber(Node):
    source: str
    result: str


@dataclass
class ToString(Node):
    expr: Node
    result: str


@dataclass
class Import(Node):
    path: str


@dataclass
class Export(Node):
    names: List[str]
    path: str
