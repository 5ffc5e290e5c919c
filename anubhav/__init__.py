# Anubhav language package
# This package provides a tokenizer, parser and interpreter for the Anubhav scripting language.
from .errors import AnubhavError, ParseError
from .interpreter import Interpreter, run_file, run_program
from .parser import parse_program

__all__ = [
    'run_program',
    'run_file',
    'parse_program',
    'Interpreter',
    'AnubhavError',
    'ParseError',
]
