"""Tree-walking evaluator for the Anubhav language.

`Interpreter.execute` runs one statement and returns an `Outcome`:
NORMAL, BREAK, CONTINUE, RETURN(value) or FAILURE(error). Statement
handlers report errors by raising `AnubhavError`; `execute` turns the
exception into a FAILURE outcome so that loops, calls and TRY can match
on the tag. Loops consume BREAK and CONTINUE, calls consume RETURN and
TRY consumes FAILURE. `Interpreter.run` raises the error of a FAILURE
that reaches the top level.

Expressions are evaluated by `Interpreter.evaluate`, which returns a
float and raises `AnubhavError` on failure.
"""

from __future__ import annotations

import math
import os
import re
from typing import Any, Callable, Dict, List, Optional

from .ast import (
    Node, Program, Number, Recall, UnaryOp, BinaryOp, Call,
    Intent, Manifest, Calculate, Store, Combine, Print, Increment, Decrement,
    Repeat, If, While, For, Assert, TryCatch, Switch,
    Break, Continue, Return, FunctionDef, FunctionCall,
    StringTransform, Substring, Contains, Replace, Split,
    ArrayCreate, Push, Pop, ArraySize, Get, Set, Sort, Reverse, Shuffle,
    Filter, MapArray, Find, Count, Fold, ArrayAggregate, Join, Range,
    Unique, Flatten, Concat, Zip, Take, Drop, Clear, Clone,
    DictCreate, Put, Fetch, DictDelete, Keys, Values,
    ReadFile, WriteFile, AppendFile, Exists, Sleep, Input,
    TypeOf, ParseNumber, ToString, Import, Export,
)
from .builtin_function import BUILTINS
from .environment import Environment
from .errors import AnubhavError, ParseError, fail
from .parser import parse_program
from .snapshot import is_snapshot, read_snapshot, write_snapshot
from .std.io import BasicIO
from .types import (
    ErrorVal, Lcg, Outcome, OutcomeKind, NORMAL,
    format_number, ieee_fmod, ieee_pow, parse_float, to_count,
)

PLACEHOLDER = re.compile(r'\$\{([^}]*)\}')

COMPARISONS: Dict[str, Callable[[float, float], bool]] = {
    '==': lambda a, b: a == b,
    '!=': lambda a, b: a != b,
    '<': lambda a, b: a < b,
    '>': lambda a, b: a > b,
    '<=': lambda a, b: a <= b,
    '>=': lambda a, b: a >= b,
}


def truthy(value: float) -> bool:
    return value != 0.0


class Interpreter:
    """Executes Anubhav programs against a single, persistent state."""
    def __init__(self, io: Any = None, debug_level: int = 0, debug_file: Optional[str] = 'debug.txt'):
        self.env = Environment()
        self.io = io if io is not None else BasicIO()
        self.rng = Lcg()
        self.import_stack: List[str] = []
        self.debug_level = debug_level
        self.debug_fp = open(debug_file, 'w', encoding='utf-8') if debug_level > 0 and debug_file else None
        self.handlers: Dict[type, Callable[[Any], Optional[Outcome]]] = {
            Intent: self.exec_intent,
            Manifest: self.exec_manifest,
            Calculate: self.exec_calculate,
            Store: self.exec_store,
            Combine: self.exec_combine,
            Print: self.exec_print,
            Increment: self.exec_increment,
            Decrement: self.exec_decrement,
            Repeat: self.exec_repeat,
            If: self.exec_if,
            While: self.exec_while,
            For: self.exec_for,
            Assert: self.exec_assert,
            TryCatch: self.exec_try,
            Switch: self.exec_switch,
            Break: lambda node: Outcome.brk(),
            Continue: lambda node: Outcome.cont(),
            Return: self.exec_return,
            FunctionDef: self.exec_function_def,
            FunctionCall: self.exec_function_call,
            StringTransform: self.exec_string_transform,
            Substring: self.exec_substring,
            Contains: self.exec_contains,
            Replace: self.exec_replace,
            Split: self.exec_split,
            ArrayCreate: self.exec_array_create,
            Push: self.exec_push,
            Pop: self.exec_pop,
            ArraySize: self.exec_array_size,
            Get: self.exec_get,
            Set: self.exec_set,
            Sort: self.exec_sort,
            Reverse: self.exec_reverse,
            Shuffle: self.exec_shuffle,
            Filter: self.exec_filter,
            MapArray: self.exec_map,
            Find: self.exec_find,
            Count: self.exec_count,
            Fold: self.exec_fold,
            ArrayAggregate: self.exec_aggregate,
            Join: self.exec_join,
            Range: self.exec_range,
            Unique: self.exec_unique,
            Flatten: self.exec_flatten,
            Concat: self.exec_concat,
            Zip: self.exec_zip,
            Take: self.exec_take,
            Drop: self.exec_drop,
            Clear: self.exec_clear,
            Clone: self.exec_clone,
            DictCreate: self.exec_dict_create,
            Put: self.exec_put,
            Fetch: self.exec_fetch,
            DictDelete: self.exec_dict_delete,
            Keys: self.exec_keys,
            Values: self.exec_values,
            ReadFile: self.exec_read_file,
            WriteFile: self.exec_write_file,
            AppendFile: self.exec_append_file,
            Exists: self.exec_exists,
            Sleep: self.exec_sleep,
            Input: self.exec_input,
            TypeOf: self.exec_type_of,
            ParseNumber: self.exec_parse_number,
            ToString: self.exec_to_string,
            Import: self.exec_import,
            Export: self.exec_export,
        }

    def debug(self, msg: str):
        if self.debug_level > 0:
            if self.debug_fp:
                self.debug_fp.write(msg + '\n')
                self.debug_fp.flush()
            else:
                print(msg)

    def close(self):
        if self.debug_fp:
            self.debug_fp.close()
            self.debug_fp = None

    # Public API
    def run(self, program: Program) -> None:
        outcome = self.execute_block(program.body)
        if outcome.is_failure:
            raise AnubhavError(outcome.error)
        if not outcome.is_normal:
            raise AnubhavError(self.stray_signal(outcome))

    def execute_block(self, statements: List[Node]) -> Outcome:
        for stmt in statements:
            outcome = self.execute(stmt)
            if not outcome.is_normal:
                return outcome
        return NORMAL

    def execute(self, node: Node) -> Outcome:
        handler = self.handlers.get(type(node))
        if handler is None:
            return Outcome.failure(ErrorVal('RuntimeError', f"Cannot execute {type(node).__name__} as a statement"))
        if self.debug_level >= 2:
            self.debug(f"exec {type(node).__name__} {getattr(node, 'name', '')}".rstrip())
        try:
            outcome = handler(node)
        except AnubhavError as ex:
            if self.debug_level >= 2:
                self.debug(f"failed {ex.err.name}: {ex.err.message}")
            return Outcome.failure(ex.err)
        except RecursionError:
            return Outcome.failure(ErrorVal('RuntimeError', 'Maximum recursion depth exceeded'))
        return outcome if outcome is not None else NORMAL

    def stray_signal(self, outcome: Outcome, where: str = '') -> ErrorVal:
        if outcome.kind is OutcomeKind.RETURN:
            return ErrorVal('RuntimeError', f"RETURN outside of a function{where}")
        keyword = 'BREAK' if outcome.kind is OutcomeKind.BREAK else 'CONTINUE'
        return ErrorVal('RuntimeError', f"{keyword} outside of a loop{where}")

    def loop_exit(self, outcome: Outcome) -> Optional[Outcome]:
        """What a loop should do after one pass of its body.

        Returns None to keep iterating, NORMAL to stop after a BREAK, or the
        outcome to propagate (RETURN, FAILURE).
        """
        if outcome.kind in (OutcomeKind.NORMAL, OutcomeKind.CONTINUE):
            return None
        if outcome.kind is OutcomeKind.BREAK:
            return NORMAL
        return outcome

    # ------------------------------------------------------------------
    # Expressions
    # ------------------------------------------------------------------

    def evaluate(self, node: Node) -> float:
        if isinstance(node, Number):
            return node.value
        if isinstance(node, Recall):
            return self.env.recall(node.name)
        if isinstance(node, UnaryOp):
            operand = self.evaluate(node.operand)
            if node.op == '-':
                return -operand
            if node.op == 'NOT':
                return 0.0 if truthy(operand) else 1.0
            raise fail('RuntimeError', f"Unknown unary operator '{node.op}'")
        if isinstance(node, BinaryOp):
            left = self.evaluate(node.left)
            right = self.evaluate(node.right)
            return self.apply_binary_op(node.op, left, right)
        if isinstance(node, Call):
            return self.call_builtin(node)
        raise fail('RuntimeError', f"Cannot evaluate {type(node).__name__} as an expression")

    def apply_binary_op(self, op: str, a: float, b: float) -> float:
        if op == '+':
            return a + b
        if op == '-':
            return a - b
        if op == '*':
            return a * b
        if op == '/':
            if b == 0.0:
                raise fail('RuntimeError', 'Division by zero')
            return a / b
        if op == '%':
            if b == 0.0:
                raise fail('RuntimeError', 'Modulo by zero')
            return ieee_fmod(a, b)
        if op == '**':
            return ieee_pow(a, b)
        if op in COMPARISONS:
            return 1.0 if COMPARISONS[op](a, b) else 0.0
        if op == 'AND':
            return 1.0 if truthy(a) and truthy(b) else 0.0
        if op == 'OR':
            return 1.0 if truthy(a) or truthy(b) else 0.0
        raise fail('RuntimeError', f"Unknown operator '{op}'")

    def call_builtin(self, node: Call) -> float:
        builtin = BUILTINS.get(node.name)
        if builtin is None:
            raise fail('NameError', f"Unknown built-in function '{node.name}'")
        if len(node.args) != builtin.arity:
            raise fail('TypeError', f"{builtin.name} expects {builtin.arity} arguments, got {len(node.args)}")
        if builtin.takes_name:
            arg = node.args[0]
            if not isinstance(arg, Recall):
                raise fail('TypeError', f"{builtin.name} expects a name")
            return builtin.fn(self, [arg.name])
        return builtin.fn(self, [self.evaluate(arg) for arg in node.args])

    def render_template(self, text: str) -> str:
        def substitute(match) -> str:
            value = self.env.render(match.group(1))
            return value if value is not None else f"<{match.group(1)} not found>"
        return PLACEHOLDER.sub(substitute, text)

    def checked_index(self, name: str, values: List[float], index: float) -> int:
        position = int(index) if math.isfinite(index) else -1
        if position < 0 or position >= len(values):
            shown = position if math.isfinite(index) else format_number(index)
            raise fail('IndexError', f"Array index {shown} out of bounds for array '{name}'")
        return position

    # ------------------------------------------------------------------
    # Declarations and output
    # ------------------------------------------------------------------

    def exec_intent(self, node: Intent):
        self.env.intents[node.name] = node.value

    def exec_manifest(self, node: Manifest):
        if node.name in self.env.intents:
            text = self.env.intents[node.name]
        elif node.name in self.env.calculations:
            text = format_number(self.env.calculations[node.name])
        else:
            raise fail('NameError', f"Intent '{node.name}' not found")
        if node.context is not None:
            text = f"{text} {node.context}"
        self.io.write_line(text)

    def exec_calculate(self, node: Calculate):
        self.env.calculations[node.name] = self.evaluate(node.expr)

    def exec_store(self, node: Store):
        self.env.variables[node.name] = self.evaluate(node.expr)

    def exec_combine(self, node: Combine):
        self.env.intents[node.name] = ''.join(self.render_template(part) for part in node.parts)

    def exec_print(self, node: Print):
        self.io.write_line(' '.join(self.render_template(part) for part in node.parts).strip())

    def exec_increment(self, node: Increment):
        self.env.variables[node.name] = self.env.variables.get(node.name, 0.0) + 1.0

    def exec_decrement(self, node: Decrement):
        self.env.variables[node.name] = self.env.variables.get(node.name, 0.0) - 1.0

    # ------------------------------------------------------------------
    # Control flow
    # ------------------------------------------------------------------

    def exec_repeat(self, node: Repeat):
        times = to_count(self.evaluate(node.count))
        for i in range(times):
            if self.debug_level >= 3:
                self.debug(f"repeat iteration {i + 1} of {times}")
            exit_outcome = self.loop_exit(self.execute_block(node.body))
            if exit_outcome is not None:
                return exit_outcome

    def exec_if(self, node: If):
        cond = self.evaluate(node.condition)
        if self.debug_level >= 3:
            self.debug(f"if condition {format_number(cond)} -> {truthy(cond)}")
        if truthy(cond):
            return self.execute_block(node.then_body)
        if node.else_body is not None:
            return self.execute_block(node.else_body)

    def exec_while(self, node: While):
        while True:
            cond = self.evaluate(node.condition)
            if self.debug_level >= 3:
                self.debug(f"while condition {format_number(cond)}")
            if not truthy(cond):
                return
            exit_outcome = self.loop_exit(self.execute_block(node.body))
            if exit_outcome is not None:
                return exit_outcome

    def exec_for(self, node: For):
        current = self.evaluate(node.start)
        end = self.evaluate(node.end)
        step = self.evaluate(node.step) if node.step is not None else 1.0
        if not (step > 0 or step < 0):
            return
        while (current <= end) if step > 0 else (current >= end):
            self.env.variables[node.var] = current
            if self.debug_level >= 3:
                self.debug(f"for {node.var} = {format_number(current)}")
            exit_outcome = self.loop_exit(self.execute_block(node.body))
            if exit_outcome is not None:
                return exit_outcome
            current += step

    def exec_assert(self, node: Assert):
        if not truthy(self.evaluate(node.condition)):
            message = 'Assertion failed'
            if node.message is not None:
                message = f"{message}: {node.message}"
            raise fail('AssertionError', message)

    def exec_try(self, node: TryCatch):
        outcome = self.execute_block(node.body)
        if outcome.is_failure:
            self.debug(f"caught {outcome.error.name}: {outcome.error.message}")
            return self.execute_block(node.handler)
        return outcome

    def exec_switch(self, node: Switch):
        subject = self.evaluate(node.subject)
        for case in node.cases:
            if self.evaluate(case.value) == subject:
                return self.execute_block(case.body)
        if node.default is not None:
            return self.execute_block(node.default)

    def exec_return(self, node: Return):
        value = self.evaluate(node.value) if node.value is not None else 0.0
        return Outcome.ret(value)

    def exec_function_def(self, node: FunctionDef):
        self.env.functions[node.name] = node
        self.debug(f"defined function {node.name}({', '.join(node.params)})")

    def exec_function_call(self, node: FunctionCall):
        func = self.env.function(node.name)
        if len(node.args) != len(func.params):
            raise fail('TypeError',
                       f"Function '{node.name}' expects {len(func.params)} parameters, got {len(node.args)}")
        args = [self.evaluate(arg) for arg in node.args]
        self.env.push_frame(dict(zip(func.params, args)))
        try:
            outcome = self.execute_block(func.body)
        finally:
            self.env.pop_frame()
        if outcome.is_failure:
            return outcome
        if outcome.kind is OutcomeKind.RETURN:
            value = outcome.value
        elif outcome.is_normal:
            value = 0.0
        else:
            raise AnubhavError(self.stray_signal(outcome, f" in function '{node.name}'"))
        if node.result is not None:
            self.env.variables[node.result] = value

    # ------------------------------------------------------------------
    # Strings
    # ------------------------------------------------------------------

    def exec_string_transform(self, node: StringTransform):
        text = self.env.resolve_text(node.source)
        if node.op == 'UPPERCASE':
            text = text.upper()
        elif node.op == 'LOWERCASE':
            text = text.lower()
        else:
            text = text.strip()
        self.env.intents[node.name] = text

    def exec_substring(self, node: Substring):
        text = self.env.resolve_text(node.source)
        start = to_count(self.evaluate(node.start))
        length = to_count(self.evaluate(node.length))
        self.env.intents[node.name] = text[start:start + length]

    def exec_contains(self, node: Contains):
        text = self.env.resolve_text(node.source)
        self.env.variables[node.result] = 1.0 if node.needle in text else 0.0

    def exec_replace(self, node: Replace):
        text = self.env.intent(node.name)
        self.env.intents[node.result] = text.replace(node.pattern, node.replacement)

    def exec_split(self, node: Split):
        text = self.env.intent(node.name)
        pieces = text.split(node.delimiter) if node.delimiter else list(text)
        values = []
        for piece in pieces:
            value = parse_float(piece.strip())
            values.append(value if value is not None else 0.0)
        self.env.arrays[node.result] = values

    # ------------------------------------------------------------------
    # Arrays
    # ------------------------------------------------------------------

    def exec_array_create(self, node: ArrayCreate):
        self.env.arrays[node.name] = []
        self.debug(f"created array '{node.name}'")

    def exec_push(self, node: Push):
        values = self.env.array(node.name)
        values.append(self.evaluate(node.expr))

    def exec_pop(self, node: Pop):
        values = self.env.array(node.name)
        if not values:
            raise fail('RuntimeError', f"Array '{node.name}' is empty")
        self.env.variables[node.result] = values.pop(0)

    def exec_array_size(self, node: ArraySize):
        self.env.variables[node.result] = float(len(self.env.array(node.name)))

    def exec_get(self, node: Get):
        values = self.env.array(node.name)
        position = self.checked_index(node.name, values, self.evaluate(node.index))
        self.env.variables[node.result] = values[position]

    def exec_set(self, node: Set):
        values = self.env.array(node.name)
        position = self.checked_index(node.name, values, self.evaluate(node.index))
        values[position] = self.evaluate(node.value)

    def exec_sort(self, node: Sort):
        self.env.array(node.name).sort(reverse=node.descending)

    def exec_reverse(self, node: Reverse):
        self.env.array(node.name).reverse()

    def exec_shuffle(self, node: Shuffle):
        values = self.env.array(node.name)
        n = len(values)
        for i in range(n):
            j = min(int(self.rng.next_float() * n), n - 1)
            values[i], values[j] = values[j], values[i]

    def each_element(self, values: List[float], expr: Node):
        """Evaluate `expr` once per element with `item` and `index` bound.

        Yields (element, result) pairs. Prior values of the bound names are
        restored after every element.
        """
        for i, item in enumerate(list(values)):
            with self.env.temporaries(['item', 'index']):
                self.env.variables['item'] = item
                self.env.variables['index'] = float(i)
                result = self.evaluate(expr)
            yield item, result

    def exec_filter(self, node: Filter):
        values = self.env.array(node.name)
        self.env.arrays[node.result] = [item for item, keep in self.each_element(values, node.predicate)
                                        if truthy(keep)]

    def exec_map(self, node: MapArray):
        values = self.env.array(node.name)
        self.env.arrays[node.result] = [mapped for _, mapped in self.each_element(values, node.expr)]

    def exec_find(self, node: Find):
        values = self.env.array(node.name)
        for item, matched in self.each_element(values, node.predicate):
            if truthy(matched):
                self.env.variables[node.result] = item
                return

    def exec_count(self, node: Count):
        values = self.env.array(node.name)
        total = sum(1 for _, matched in self.each_element(values, node.predicate) if truthy(matched))
        self.env.variables[node.result] = float(total)

    def exec_fold(self, node: Fold):
        values = self.env.array(node.name)
        acc = self.evaluate(node.initial)
        for i, item in enumerate(list(values)):
            with self.env.temporaries(['acc', 'item', 'index']):
                self.env.variables['acc'] = acc
                self.env.variables['item'] = item
                self.env.variables['index'] = float(i)
                acc = self.evaluate(node.expr)
        self.env.variables[node.result] = acc

    def exec_aggregate(self, node: ArrayAggregate):
        values = self.env.array(node.name)
        if node.op == 'SUM':
            total = 0.0
            for value in values:
                total += value
            result = total
        elif node.op == 'AVERAGE':
            total = 0.0
            for value in values:
                total += value
            result = total / len(values) if values else 0.0
        else:
            if not values:
                raise fail('RuntimeError', f"Array '{node.name}' is empty")
            if node.op == 'MIN_OF':
                result = min(values)
            elif node.op == 'MAX_OF':
                result = max(values)
            else:
                ordered = sorted(values)
                mid = len(ordered) // 2
                if len(ordered) % 2:
                    result = ordered[mid]
                else:
                    result = (ordered[mid - 1] + ordered[mid]) / 2.0
        self.env.variables[node.result] = result

    def exec_join(self, node: Join):
        values = self.env.array(node.name)
        self.env.intents[node.result] = node.separator.join(format_number(v) for v in values)

    def exec_range(self, node: Range):
        current = self.evaluate(node.start)
        end = self.evaluate(node.end)
        step = self.evaluate(node.step) if node.step is not None else 1.0
        if step == 0.0:
            raise fail('RuntimeError', 'RANGE step cannot be zero')
        values = []
        while (step > 0 and current <= end) or (step < 0 and current >= end):
            values.append(current)
            current += step
        self.env.arrays[node.result] = values

    def exec_unique(self, node: Unique):
        values = self.env.array(node.name)
        self.env.arrays[node.result] = list(dict.fromkeys(values))

    def exec_flatten(self, node: Flatten):
        self.env.arrays[node.result] = list(self.env.array(node.name))

    def exec_concat(self, node: Concat):
        first = self.env.array(node.first)
        second = self.env.array(node.second)
        self.env.arrays[node.result] = first + second

    def exec_zip(self, node: Zip):
        first = self.env.array(node.first)
        second = self.env.array(node.second)
        zipped = []
        for a, b in zip(first, second):
            zipped.extend((a, b))
        self.env.arrays[node.result] = zipped

    def exec_take(self, node: Take):
        values = self.env.array(node.name)
        self.env.arrays[node.result] = values[:to_count(self.evaluate(node.count))]

    def exec_drop(self, node: Drop):
        values = self.env.array(node.name)
        self.env.arrays[node.result] = values[to_count(self.evaluate(node.count)):]

    def exec_clear(self, node: Clear):
        if node.name in self.env.arrays:
            self.env.arrays[node.name].clear()
        elif node.name in self.env.dicts:
            self.env.dicts[node.name].clear()
        else:
            raise fail('NameError', f"Array or dictionary '{node.name}' not found")

    def exec_clone(self, node: Clone):
        if node.source in self.env.arrays:
            self.env.arrays[node.target] = list(self.env.arrays[node.source])
        elif node.source in self.env.dicts:
            self.env.dicts[node.target] = dict(self.env.dicts[node.source])
        else:
            raise fail('NameError', f"Array or dictionary '{node.source}' not found")

    # ------------------------------------------------------------------
    # Dictionaries
    # ------------------------------------------------------------------

    def exec_dict_create(self, node: DictCreate):
        self.env.dicts[node.name] = {}
        self.debug(f"created dictionary '{node.name}'")

    def exec_put(self, node: Put):
        entries = self.env.dictionary(node.name)
        entries[node.key] = self.evaluate(node.expr)

    def exec_fetch(self, node: Fetch):
        entries = self.env.dictionary(node.name)
        if node.key not in entries:
            raise fail('KeyError', f"Key '{node.key}' not found in dictionary '{node.name}'")
        self.env.variables[node.result] = entries[node.key]

    def exec_dict_delete(self, node: DictDelete):
        self.env.dictionary(node.name).pop(node.key, None)

    def exec_keys(self, node: Keys):
        self.env.intents[node.result] = ','.join(self.env.dictionary(node.name))

    def exec_values(self, node: Values):
        self.env.arrays[node.result] = list(self.env.dictionary(node.name).values())

    # ------------------------------------------------------------------
    # I/O and reflection
    # ------------------------------------------------------------------

    def exec_read_file(self, node: ReadFile):
        self.env.intents[node.result] = self.io.read_file(node.path)

    def exec_write_file(self, node: WriteFile):
        self.io.write_file(node.path, self.render_template(node.content))
        self.debug(f"wrote file '{node.path}'")

    def exec_append_file(self, node: AppendFile):
        self.io.append_file(node.path, self.render_template(node.content))
        self.debug(f"appended to file '{node.path}'")

    def exec_exists(self, node: Exists):
        self.env.variables[node.result] = 1.0 if self.io.file_exists(node.path) else 0.0

    def exec_sleep(self, node: Sleep):
        self.io.sleep(self.evaluate(node.duration))

    def exec_input(self, node: Input):
        line = self.io.read_line(node.prompt).strip()
        number = parse_float(line)
        if number is not None:
            self.env.variables[node.result] = number
        else:
            self.env.intents[node.result] = line

    def exec_type_of(self, node: TypeOf):
        self.env.intents[node.result] = self.env.type_of(node.name)

    def exec_parse_number(self, node: ParseNumber):
        number = parse_float(self.env.resolve_text(node.source))
        self.env.variables[node.result] = number if number is not None else 0.0

    def exec_to_string(self, node: ToString):
        self.env.intents[node.result] = format_number(self.evaluate(node.expr))

    # ------------------------------------------------------------------
    # Modules
    # ------------------------------------------------------------------

    def exec_import(self, node: Import):
        key = import_key(node.path)
        if key in self.import_stack:
            raise fail('ImportError', f"Circular import of '{node.path}'")
        text = self.io.read_file(node.path)
        if is_snapshot(text):
            statements = read_snapshot(text, node.path)
        else:
            try:
                statements = parse_program(text).body
            except ParseError as ex:
                raise fail('ImportError', f"Failed to parse '{node.path}': {ex.err.message}")
        self.debug(f"importing '{node.path}' ({len(statements)} statements)")
        self.import_stack.append(key)
        try:
            outcome = self.execute_block(statements)
        finally:
            self.import_stack.pop()
        if outcome.is_failure:
            return outcome
        if not outcome.is_normal:
            raise AnubhavError(self.stray_signal(outcome, f" in imported file '{node.path}'"))

    def exec_export(self, node: Export):
        env = self.env
        skipped = [name for name in node.names
                   if not any(name in ns for ns in (env.intents, env.calculations, env.variables, env.arrays))]
        self.io.write_file(node.path, write_snapshot(self.env, node.names))
        self.debug(f"exported {len(node.names) - len(skipped)} names to '{node.path}'")
        if skipped:
            self.debug(f"export skipped: {', '.join(skipped)}")


def import_key(path: str) -> str:
    return os.path.realpath(path)


def run_program(source: str, io: Any = None, debug_level: int = 0, path: Optional[str] = None) -> Interpreter:
    """Parse and run Anubhav source text, returning the interpreter for inspection.

    `path` names the file the source came from; it counts as an import in
    progress, so a module importing it back is reported as circular.
    """
    program = parse_program(source)
    interpreter = Interpreter(io=io, debug_level=debug_level)
    if path is not None:
        interpreter.import_stack.append(import_key(path))
    try:
        interpreter.run(program)
    finally:
        interpreter.close()
    return interpreter


def run_file(file_path: str, io: Any = None, debug_level: int = 0) -> Interpreter:
    """Read, parse and run an Anubhav file, returning the interpreter instance."""
    with open(file_path, 'r', encoding='utf-8') as f:
        source = f.read()
    return run_program(source, io=io, debug_level=debug_level, path=file_path)
