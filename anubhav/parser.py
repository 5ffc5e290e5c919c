"""Recursive-descent parser for the Anubhav language.

The parser pulls tokens from the lexer one at a time and keeps a single
token of lookahead. Every statement starts with a keyword; the routine
registered for that keyword consumes it and then demands the fixed
sequence of participants the statement needs.

Expression precedence, from loosest to tightest binding, is

    OR  ->  AND  ->  + -  ->  == != < > <= >=  ->  * / %  ->  **  ->  primary

Comparison deliberately binds tighter than addition, so `a + b > c`
parses as `a + (b > c)`.
"""

from __future__ import annotations

from typing import Callable, Dict, List, Optional, Union

from .ast import (
    Node, Program, Number, Recall, UnaryOp, BinaryOp, Call,
    Intent, Manifest, Calculate, Store, Combine, Print, Increment, Decrement,
    Repeat, If, While, For, Assert, TryCatch, SwitchCase, Switch,
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
from .errors import ParseError
from .lexer import Lexer, Token

COMPARISON_OPS = ['==', '!=', '<', '>', '<=', '>=']
EXPRESSION_START = {'NUMBER', 'IDENT', 'RECALL', '-', 'NOT', '('} | set(BUILTINS)


class Parser:
    def __init__(self, lexer: Lexer):
        self.lexer = lexer
        self.current: Token = lexer.next_token()
        self.statement_parsers: Dict[str, Callable[[], Node]] = {
            'INTENT': self.parse_intent,
            'MANIFEST': self.parse_manifest,
            'CALCULATE': self.parse_calculate,
            'STORE': self.parse_store,
            'COMBINE': self.parse_combine,
            'PRINT': self.parse_print,
            'INCREMENT': self.parse_increment,
            'DECREMENT': self.parse_decrement,
            'REPEAT': self.parse_repeat,
            'IF': self.parse_if,
            'WHILE': self.parse_while,
            'FOR': self.parse_for,
            'ASSERT': self.parse_assert,
            'TRY': self.parse_try,
            'SWITCH': self.parse_switch,
            'BREAK': self.parse_break,
            'CONTINUE': self.parse_continue,
            'RETURN': self.parse_return,
            'FUNCTION': self.parse_function,
            'CALL': self.parse_call,
            'UPPERCASE': self.parse_string_transform,
            'LOWERCASE': self.parse_string_transform,
            'TRIM': self.parse_string_transform,
            'SUBSTRING': self.parse_substring,
            'CONTAINS': self.parse_contains,
            'REPLACE': self.parse_replace,
            'SPLIT': self.parse_split,
            'ARRAY': self.parse_array,
            'PUSH': self.parse_push,
            'POP': self.parse_pop,
            'SIZE': self.parse_size,
            'GET': self.parse_get,
            'SET': self.parse_set,
            'SORT': self.parse_sort,
            'REVERSE': self.parse_reverse,
            'SHUFFLE': self.parse_shuffle,
            'FILTER': self.parse_filter,
            'MAP': self.parse_map,
            'FIND': self.parse_find,
            'COUNT': self.parse_count,
            'FOLD': self.parse_fold,
            'SUM': self.parse_aggregate,
            'AVERAGE': self.parse_aggregate,
            'MIN_OF': self.parse_aggregate,
            'MAX_OF': self.parse_aggregate,
            'MEDIAN': self.parse_aggregate,
            'JOIN': self.parse_join,
            'RANGE': self.parse_range,
            'UNIQUE': self.parse_unique,
            'FLATTEN': self.parse_flatten,
            'CONCAT': self.parse_concat,
            'ZIP': self.parse_zip,
            'TAKE': self.parse_take,
            'DROP': self.parse_drop,
            'CLEAR': self.parse_clear,
            'CLONE': self.parse_clone,
            'DICT': self.parse_dict,
            'PUT': self.parse_put,
            'FETCH': self.parse_fetch,
            'DELETE': self.parse_delete,
            'KEYS': self.parse_keys,
            'VALUES': self.parse_values,
            'READ_FILE': self.parse_read_file,
            'WRITE_FILE': self.parse_write_file,
            'APPEND_FILE': self.parse_append_file,
            'EXISTS': self.parse_exists,
            'SLEEP': self.parse_sleep,
            'INPUT': self.parse_input,
            'TYPE': self.parse_type,
            'TYPE_OF': self.parse_type,
            'PARSE': self.parse_parse,
            'TO_STRING': self.parse_to_string,
            'IMPORT': self.parse_import,
            'EXPORT': self.parse_export,
        }

    # -- token helpers -----------------------------------------------------

    def peek(self) -> Token:
        return self.current

    def advance(self) -> Token:
        token = self.current
        self.current = self.lexer.next_token()
        return token

    def match(self, expected: Union[str, List[str]]) -> bool:
        if isinstance(expected, list):
            return self.current.type in expected
        return self.current.type == expected

    def consume(self, expected: Union[str, List[str]], context: str = '') -> Token:
        if not self.match(expected):
            wanted = ' or '.join(expected) if isinstance(expected, list) else expected
            if context:
                wanted = f"{wanted} {context}"
            token = self.current
            raise ParseError(f"Expected {wanted}, found {token.describe()}", token.line, token.column)
        return self.advance()

    def name(self, context: str) -> str:
        return self.consume('IDENT', context).value

    def string(self, context: str) -> str:
        return self.consume('STRING', context).value

    def text(self, context: str) -> str:
        """A string literal or an identifier, returned as its text."""
        return self.consume(['STRING', 'IDENT'], context).value

    # -- program and bodies ------------------------------------------------

    def parse(self) -> List[Node]:
        statements: List[Node] = []
        while not self.match('EOF'):
            statements.append(self.parse_statement())
        return statements

    def parse_statement(self) -> Node:
        token = self.current
        handler = self.statement_parsers.get(token.type)
        if handler is None:
            raise ParseError(f"Unexpected token {token.describe()}", token.line, token.column)
        return handler()

    def parse_body(self, terminators: List[str], construct: str) -> List[Node]:
        body: List[Node] = []
        while not self.match(terminators):
            if self.match('EOF'):
                token = self.current
                raise ParseError(f"Expected {' or '.join(terminators)} to close {construct}",
                                 token.line, token.column)
            body.append(self.parse_statement())
        return body

    # -- expressions -------------------------------------------------------

    def parse_expression(self) -> Node:
        return self.parse_or()

    def parse_binary_level(self, ops: List[str], operand: Callable[[], Node]) -> Node:
        node = operand()
        while self.match(ops):
            op = self.advance().type
            node = BinaryOp(op, node, operand())
        return node

    def parse_or(self) -> Node:
        return self.parse_binary_level(['OR'], self.parse_and)

    def parse_and(self) -> Node:
        return self.parse_binary_level(['AND'], self.parse_term)

    def parse_term(self) -> Node:
        return self.parse_binary_level(['+', '-'], self.parse_comparison)

    def parse_argument(self) -> Node:
        # '+' separates call arguments; '-' still subtracts
        return self.parse_binary_level(['-'], self.parse_comparison)

    def parse_comparison(self) -> Node:
        return self.parse_binary_level(COMPARISON_OPS, self.parse_factor)

    def parse_factor(self) -> Node:
        return self.parse_binary_level(['*', '/', '%'], self.parse_power)

    def parse_power(self) -> Node:
        return self.parse_binary_level(['**'], self.parse_primary)

    def parse_primary(self) -> Node:
        token = self.current
        if token.type == 'NUMBER':
            self.advance()
            return Number(token.value)
        if token.type == 'RECALL':
            self.advance()
            return Recall(self.name('after RECALL'))
        if token.type == 'IDENT':
            self.advance()
            return Recall(token.value)
        if token.type in ('-', 'NOT'):
            self.advance()
            return UnaryOp(token.type, self.parse_primary())
        if token.type == '(':
            self.advance()
            expr = self.parse_expression()
            self.consume(')', 'to close parenthesised expression')
            return expr
        if token.type in BUILTINS:
            return self.parse_builtin_call()
        raise ParseError(f"Unexpected token {token.describe()} in expression", token.line, token.column)

    def parse_builtin_call(self) -> Node:
        name = self.advance().type
        builtin = BUILTINS[name]
        self.consume('(', f'after {name}')
        args: List[Node] = []
        if name in ('LENGTH', 'SIZE'):
            token = self.consume(['IDENT', 'STRING'] if name == 'LENGTH' else 'IDENT', f'in {name}')
            self.consume(')', f'to close {name}')
            if token.type == 'STRING':
                return Number(float(len(token.value)))
            return Call(name, [Recall(token.value)])
        if builtin.arity == 1:
            args.append(self.parse_expression())
        else:
            for _ in range(builtin.arity):
                args.append(self.parse_primary())
        self.consume(')', f'to close {name}')
        return Call(name, args)

    def starts_expression(self) -> bool:
        return self.current.type in EXPRESSION_START

    # -- declarations and output -------------------------------------------

    def parse_intent(self) -> Node:
        self.advance()
        name = self.name('after INTENT')
        return Intent(name, self.string('after INTENT name'))

    def parse_manifest(self) -> Node:
        self.advance()
        name = self.name('after MANIFEST')
        context = None
        if self.match('WITH'):
            self.advance()
            context = self.string('after WITH')
        return Manifest(name, context)

    def parse_calculate(self) -> Node:
        self.advance()
        name = self.name('after CALCULATE')
        return Calculate(name, self.parse_expression())

    def parse_store(self) -> Node:
        self.advance()
        name = self.name('after STORE')
        return Store(name, self.parse_expression())

    def parse_template_parts(self, keyword: str) -> List[str]:
        parts: List[str] = []
        while self.match(['STRING', 'IDENT']):
            token = self.advance()
            parts.append(token.value if token.type == 'STRING' else '${' + token.value + '}')
        if not parts:
            token = self.current
            raise ParseError(f"Expected strings or identifiers after {keyword}", token.line, token.column)
        return parts

    def parse_combine(self) -> Node:
        self.advance()
        name = self.name('after COMBINE')
        return Combine(name, self.parse_template_parts('COMBINE name'))

    def parse_print(self) -> Node:
        self.advance()
        return Print(self.parse_template_parts('PRINT'))

    def parse_increment(self) -> Node:
        self.advance()
        return Increment(self.name('after INCREMENT'))

    def parse_decrement(self) -> Node:
        self.advance()
        return Decrement(self.name('after DECREMENT'))

    # -- control flow ------------------------------------------------------

    def parse_repeat(self) -> Node:
        self.advance()
        count = self.parse_expression()
        self.consume('TIMES', 'after REPEAT count')
        self.consume('DO', 'after TIMES')
        body = self.parse_body(['END'], 'REPEAT')
        self.advance()
        return Repeat(count, body)

    def parse_if(self) -> Node:
        self.advance()
        condition = self.parse_expression()
        self.consume('THEN', 'after IF condition')
        then_body = self.parse_body(['ELSE', 'END'], 'IF')
        else_body = None
        if self.match('ELSE'):
            self.advance()
            else_body = self.parse_body(['END'], 'ELSE')
        self.advance()
        return If(condition, then_body, else_body)

    def parse_while(self) -> Node:
        self.advance()
        condition = self.parse_expression()
        self.consume('DO', 'after WHILE condition')
        body = self.parse_body(['END'], 'WHILE')
        self.advance()
        return While(condition, body)

    def parse_for(self) -> Node:
        self.advance()
        var = self.name('after FOR')
        start = self.parse_expression()
        self.consume('TO', 'after FOR start value')
        end = self.parse_expression()
        step = None
        if self.match('STEP'):
            self.advance()
            step = self.parse_expression()
        self.consume('DO', 'after FOR range')
        body = self.parse_body(['END'], 'FOR')
        self.advance()
        return For(var, start, end, step, body)

    def parse_assert(self) -> Node:
        self.advance()
        condition = self.parse_expression()
        message = None
        if self.match('STRING'):
            message = self.advance().value
        return Assert(condition, message)

    def parse_try(self) -> Node:
        self.advance()
        body = self.parse_body(['CATCH'], 'TRY')
        self.advance()
        handler = self.parse_body(['END'], 'CATCH')
        self.advance()
        return TryCatch(body, handler)

    def parse_switch(self) -> Node:
        self.advance()
        subject = self.parse_expression()
        cases: List[SwitchCase] = []
        default = None
        while not self.match('END'):
            if self.match('CASE'):
                self.advance()
                value = self.parse_expression()
                self.consume('DO', 'after CASE value')
                cases.append(SwitchCase(value, self.parse_body(['CASE', 'DEFAULT', 'END'], 'CASE')))
            elif self.match('DEFAULT'):
                self.advance()
                self.consume('DO', 'after DEFAULT')
                default = self.parse_body(['END'], 'DEFAULT')
            else:
                token = self.current
                raise ParseError(f"Expected CASE, DEFAULT or END in SWITCH, found {token.describe()}",
                                 token.line, token.column)
        self.advance()
        return Switch(subject, cases, default)

    def parse_break(self) -> Node:
        self.advance()
        return Break()

    def parse_continue(self) -> Node:
        self.advance()
        return Continue()

    def parse_return(self) -> Node:
        self.advance()
        if self.starts_expression():
            return Return(self.parse_expression())
        return Return()

    def parse_function(self) -> Node:
        self.advance()
        name = self.name('after FUNCTION')
        params: List[str] = []
        if self.match('('):
            self.advance()
            while not self.match(')'):
                params.append(self.name('in parameter list'))
                if self.match('+'):
                    self.advance()
            self.advance()
        self.consume('DO', 'after FUNCTION signature')
        body = self.parse_body(['END'], 'FUNCTION')
        self.advance()
        return FunctionDef(name, params, body)

    def parse_call(self) -> Node:
        self.advance()
        name = self.name('after CALL')
        args: List[Node] = []
        if self.match('('):
            self.advance()
            while not self.match(')'):
                args.append(self.parse_argument())
                if self.match('+'):
                    self.advance()
            self.advance()
        result = None
        if self.match('IDENT'):
            result = self.advance().value
        return FunctionCall(name, args, result)

    # -- strings -----------------------------------------------------------

    def parse_string_transform(self) -> Node:
        op = self.advance().type
        name = self.name(f'after {op}')
        return StringTransform(op, name, self.text(f'after {op} name'))

    def parse_substring(self) -> Node:
        self.advance()
        name = self.name('after SUBSTRING')
        source = self.text('after SUBSTRING name')
        start = self.parse_expression()
        length = self.parse_expression()
        return Substring(name, source, start, length)

    def parse_contains(self) -> Node:
        self.advance()
        source = self.text('after CONTAINS')
        needle = self.string('as CONTAINS needle')
        return Contains(source, needle, self.name('for CONTAINS result'))

    def parse_replace(self) -> Node:
        self.advance()
        name = self.name('after REPLACE')
        pattern = self.string('as REPLACE pattern')
        replacement = self.string('as REPLACE replacement')
        return Replace(name, pattern, replacement, self.name('for REPLACE result'))

    def parse_split(self) -> Node:
        self.advance()
        name = self.name('after SPLIT')
        delimiter = self.string('as SPLIT delimiter')
        return Split(name, delimiter, self.name('for SPLIT result'))

    # -- arrays ------------------------------------------------------------

    def parse_array(self) -> Node:
        self.advance()
        return ArrayCreate(self.name('after ARRAY'))

    def parse_push(self) -> Node:
        self.advance()
        name = self.name('after PUSH')
        return Push(name, self.parse_expression())

    def parse_pop(self) -> Node:
        self.advance()
        name = self.name('after POP')
        return Pop(name, self.name('for POP result'))

    def parse_size(self) -> Node:
        self.advance()
        name = self.name('after SIZE')
        return ArraySize(name, self.name('for SIZE result'))

    def parse_get(self) -> Node:
        self.advance()
        name = self.name('after GET')
        index = self.parse_expression()
        return Get(name, index, self.name('for GET result'))

    def parse_set(self) -> Node:
        self.advance()
        name = self.name('after SET')
        index = self.parse_expression()
        return Set(name, index, self.parse_expression())

    def parse_sort(self) -> Node:
        self.advance()
        name = self.name('after SORT')
        descending = False
        if self.match('IDENT') and self.current.value in ('ASC', 'DESC'):
            descending = self.advance().value == 'DESC'
        return Sort(name, descending)

    def parse_reverse(self) -> Node:
        self.advance()
        return Reverse(self.name('after REVERSE'))

    def parse_shuffle(self) -> Node:
        self.advance()
        return Shuffle(self.name('after SHUFFLE'))

    def parse_filter(self) -> Node:
        self.advance()
        name = self.name('after FILTER')
        predicate = self.parse_expression()
        return Filter(name, predicate, self.name('for FILTER result'))

    def parse_map(self) -> Node:
        self.advance()
        name = self.name('after MAP')
        expr = self.parse_expression()
        return MapArray(name, expr, self.name('for MAP result'))

    def parse_find(self) -> Node:
        self.advance()
        name = self.name('after FIND')
        predicate = self.parse_expression()
        return Find(name, predicate, self.name('for FIND result'))

    def parse_count(self) -> Node:
        self.advance()
        name = self.name('after COUNT')
        predicate = self.parse_expression()
        return Count(name, predicate, self.name('for COUNT result'))

    def parse_fold(self) -> Node:
        self.advance()
        name = self.name('after FOLD')
        initial = self.parse_expression()
        self.consume('WITH', 'after FOLD initial value')
        expr = self.parse_expression()
        return Fold(name, initial, expr, self.name('for FOLD result'))

    def parse_aggregate(self) -> Node:
        op = self.advance().type
        name = self.name(f'after {op}')
        return ArrayAggregate(op, name, self.name(f'for {op} result'))

    def parse_join(self) -> Node:
        self.advance()
        name = self.name('after JOIN')
        separator = self.string('as JOIN separator')
        return Join(name, separator, self.name('for JOIN result'))

    def parse_range(self) -> Node:
        self.advance()
        start = self.parse_expression()
        self.consume('TO', 'after RANGE start')
        end = self.parse_expression()
        step = None
        if self.match('STEP'):
            self.advance()
            step = self.parse_expression()
        return Range(start, end, step, self.name('for RANGE result'))

    def parse_unique(self) -> Node:
        self.advance()
        name = self.name('after UNIQUE')
        return Unique(name, self.name('for UNIQUE result'))

    def parse_flatten(self) -> Node:
        self.advance()
        name = self.name('after FLATTEN')
        return Flatten(name, self.name('for FLATTEN result'))

    def parse_concat(self) -> Node:
        self.advance()
        first = self.name('after CONCAT')
        second = self.name('as second CONCAT array')
        return Concat(first, second, self.name('for CONCAT result'))

    def parse_zip(self) -> Node:
        self.advance()
        first = self.name('after ZIP')
        second = self.name('as second ZIP array')
        return Zip(first, second, self.name('for ZIP result'))

    def parse_take(self) -> Node:
        self.advance()
        name = self.name('after TAKE')
        count = self.parse_expression()
        return Take(name, count, self.name('for TAKE result'))

    def parse_drop(self) -> Node:
        self.advance()
        name = self.name('after DROP')
        count = self.parse_expression()
        return Drop(name, count, self.name('for DROP result'))

    def parse_clear(self) -> Node:
        self.advance()
        return Clear(self.name('after CLEAR'))

    def parse_clone(self) -> Node:
        self.advance()
        source = self.name('after CLONE')
        return Clone(source, self.name('for CLONE target'))

    # -- dictionaries ------------------------------------------------------

    def parse_dict(self) -> Node:
        self.advance()
        return DictCreate(self.name('after DICT'))

    def parse_put(self) -> Node:
        self.advance()
        name = self.name('after PUT')
        key = self.text('as PUT key')
        return Put(name, key, self.parse_expression())

    def parse_fetch(self) -> Node:
        self.advance()
        name = self.name('after FETCH')
        key = self.text('as FETCH key')
        return Fetch(name, key, self.name('for FETCH result'))

    def parse_delete(self) -> Node:
        self.advance()
        name = self.name('after DELETE')
        return DictDelete(name, self.text('as DELETE key'))

    def parse_keys(self) -> Node:
        self.advance()
        name = self.name('after KEYS')
        return Keys(name, self.name('for KEYS result'))

    def parse_values(self) -> Node:
        self.advance()
        name = self.name('after VALUES')
        return Values(name, self.name('for VALUES result'))

    # -- I/O, reflection, modules ------------------------------------------

    def parse_read_file(self) -> Node:
        self.advance()
        path = self.string('as READ_FILE path')
        return ReadFile(path, self.name('for READ_FILE result'))

    def parse_file_content(self, keyword: str) -> str:
        token = self.consume(['STRING', 'IDENT'], f'as {keyword} content')
        if token.type == 'IDENT':
            return '${' + token.value + '}'
        return token.value

    def parse_write_file(self) -> Node:
        self.advance()
        path = self.string('as WRITE_FILE path')
        return WriteFile(path, self.parse_file_content('WRITE_FILE'))

    def parse_append_file(self) -> Node:
        self.advance()
        path = self.string('as APPEND_FILE path')
        return AppendFile(path, self.parse_file_content('APPEND_FILE'))

    def parse_exists(self) -> Node:
        self.advance()
        path = self.string('as EXISTS path')
        return Exists(path, self.name('for EXISTS result'))

    def parse_sleep(self) -> Node:
        self.advance()
        return Sleep(self.parse_expression())

    def parse_input(self) -> Node:
        self.advance()
        prompt = self.string('as INPUT prompt')
        return Input(prompt, self.name('for INPUT result'))

    def parse_type(self) -> Node:
        keyword = self.advance().type
        name = self.name(f'after {keyword}')
        return TypeOf(name, self.name(f'for {keyword} result'))

    def parse_parse(self) -> Node:
        self.advance()
        source = self.text('after PARSE')
        return ParseNumber(source, self.name('for PARSE result'))

    def parse_to_string(self) -> Node:
        self.advance()
        expr = self.parse_expression()
        return ToString(expr, self.name('for TO_STRING result'))

    def parse_import(self) -> Node:
        self.advance()
        return Import(self.string('as IMPORT path'))

    def parse_export(self) -> Node:
        self.advance()
        names = [self.name('after EXPORT')]
        while self.match('IDENT'):
            names.append(self.advance().value)
        return Export(names, self.string('as EXPORT path'))


def parse_program(source: str) -> Program:
    """Parse Anubhav source text into a Program AST."""
    return Program(Parser(Lexer(source)).parse())
