"""Tokenizer for the Anubhav language.

The lexer is pull based: `Lexer.next_token()` produces one token per call
and keeps returning the EOF token once the input is exhausted. It never
raises. Malformed numbers degrade to 0.0 and unknown characters are
skipped, so every error surfaces later in the parser.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, List, Optional, Union

KEYWORDS = frozenset("""
    INTENT MANIFEST CALCULATE WITH STORE RECALL COMBINE REPEAT TIMES DO END
    IF THEN ELSE AND OR NOT PRINT WHILE INCREMENT DECREMENT FOR TO STEP MIN
    MAX ASSERT TRY CATCH FLOOR CEIL ROUND RANDOM LENGTH SUBSTRING UPPERCASE
    LOWERCASE CONTAINS TRIM SWITCH CASE DEFAULT ARRAY PUSH POP SIZE GET SET
    IMPORT EXPORT BREAK CONTINUE FUNCTION CALL RETURN SORT FILTER REVERSE MAP
    SUM JOIN DICT PUT FETCH KEYS VALUES READ_FILE WRITE_FILE APPEND_FILE
    DELETE EXISTS SLEEP INPUT TYPE TYPE_OF PARSE TO_STRING RANGE FOLD FIND
    ZIP FLATTEN UNIQUE COUNT TAKE DROP CONCAT SPLIT REPLACE CLEAR SHUFFLE
    CLONE AVERAGE MIN_OF MAX_OF MEDIAN
""".split())

TWO_CHAR_OPS = {'**', '==', '!=', '<=', '>='}
SINGLE_OPS = {'+', '-', '*', '/', '%', '(', ')', '<', '>'}


@dataclass
class Token:
    """A lexical token.

    `type` is the keyword text for keywords, the operator text for
    operators, or one of 'IDENT', 'STRING', 'NUMBER', 'EOF'.
    """
    type: str
    value: Union[str, float]
    line: int
    column: int

    def describe(self) -> str:
        if self.type == 'EOF':
            return 'end of input'
        if self.type == 'STRING':
            return f'string "{self.value}"'
        if self.type in ('IDENT', 'NUMBER'):
            return f"{self.type.lower()} {self.value!r}"
        return repr(self.type)


class Lexer:
    def __init__(self, source: str):
        self.source = source
        self.pos = 0
        self.line = 1
        self.column = 1

    def peek_char(self, offset: int = 0) -> Optional[str]:
        i = self.pos + offset
        if i < len(self.source):
            return self.source[i]
        return None

    def advance(self, n: int = 1):
        for _ in range(n):
            if self.pos >= len(self.source):
                return
            if self.source[self.pos] == '\n':
                self.line += 1
                self.column = 1
            else:
                self.column += 1
            self.pos += 1

    def skip_whitespace_and_comments(self):
        while True:
            c = self.peek_char()
            if c is None:
                return
            if c.isspace():
                self.advance()
            elif c == '#':
                while self.peek_char() not in (None, '\n'):
                    self.advance()
            else:
                return

    def next_token(self) -> Token:
        while True:
            self.skip_whitespace_and_comments()
            c = self.peek_char()
            line, column = self.line, self.column
            if c is None:
                return Token('EOF', '', line, column)
            if c.isalpha():
                return self.read_word(line, column)
            if c.isdigit():
                return self.read_number(line, column)
            if c == '"':
                return self.read_string(line, column)
            pair = c + (self.peek_char(1) or '')
            if pair in TWO_CHAR_OPS:
                self.advance(2)
                return Token(pair, pair, line, column)
            self.advance()
            if c in SINGLE_OPS:
                return Token(c, c, line, column)
            if c == '=':
                return Token('==', '=', line, column)
            # anything else (a lone '!', ',', brackets...) is dropped

    def read_word(self, line: int, column: int) -> Token:
        start = self.pos
        while True:
            c = self.peek_char()
            if c is None or not (c.isalnum() or c == '_'):
                break
            self.advance()
        word = self.source[start:self.pos]
        if word in KEYWORDS:
            return Token(word, word, line, column)
        return Token('IDENT', word, line, column)

    def read_number(self, line: int, column: int) -> Token:
        start = self.pos
        while True:
            c = self.peek_char()
            if c is None or not (c.isdigit() or c == '.'):
                break
            self.advance()
        text = self.source[start:self.pos]
        try:
            value = float(text)
        except ValueError:
            value = 0.0
        return Token('NUMBER', value, line, column)

    def read_string(self, line: int, column: int) -> Token:
        self.advance()  # opening quote
        start = self.pos
        while self.peek_char() not in (None, '"'):
            self.advance()
        text = self.source[start:self.pos]
        self.advance()  # closing quote, if any
        return Token('STRING', text, line, column)

    def __iter__(self) -> Iterator[Token]:
        while True:
            token = self.next_token()
            yield token
            if token.type == 'EOF':
                return


def tokenize(source: str) -> List[Token]:
    """Return every token of `source`, ending with a single EOF token."""
    return list(Lexer(source))
