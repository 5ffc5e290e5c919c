"""CLI entry point for the Anubhav interpreter.

Usage:
    python -m anubhav [-v|-vv|-vvv] <program_file>
    python -m anubhav [-v...] --emit-ast <program_file>
    python -m anubhav [-v...] --ast <ast_json_file>

Options:
  -v            Increase debug verbosity (can be repeated)
  --emit-ast    Parse the given .anubhav file and emit an AST JSON file
  --ast         Execute a previously emitted AST JSON file

Debug information is written to `debug.txt` in the current directory when
verbosity is greater than zero. Parse and runtime errors are reported on
standard error and make the process exit with status 1.
"""

import argparse
import json
import sys
from pathlib import Path
from typing import List, Optional

from .ast import Program
from .ast_json import ast_to_obj, ast_from_obj, check_program
from .errors import AnubhavError, ParseError
from .interpreter import Interpreter, import_key
from .parser import parse_program


def read_source(path: Path) -> str:
    if not path.exists():
        print(f"Error: file {path} not found", file=sys.stderr)
        sys.exit(1)
    with open(path, 'r', encoding='utf-8') as f:
        return f.read()


def parse_or_exit(source: str) -> Program:
    try:
        return parse_program(source)
    except ParseError as e:
        print(f"Parse error: {e.err.message}", file=sys.stderr)
        sys.exit(1)


def execute(program: Program, debug_level: int, path: Optional[Path] = None) -> None:
    interpreter = Interpreter(debug_level=debug_level)
    if path is not None:
        interpreter.import_stack.append(import_key(str(path)))
    try:
        interpreter.run(program)
    except AnubhavError as e:
        print(f"Runtime error: {e}", file=sys.stderr)
        sys.exit(1)
    finally:
        interpreter.close()


def main(argv: Optional[List[str]] = None) -> None:
    parser = argparse.ArgumentParser(prog='anubhav', description="Anubhav language interpreter")
    parser.add_argument('-v', action='count', default=0, help='increase debug verbosity (can be repeated)')
    group = parser.add_mutually_exclusive_group()
    group.add_argument('--emit-ast', metavar='PROGRAM_FILE', help='emit AST JSON for the given program file')
    group.add_argument('--ast', metavar='AST_JSON_FILE', help='execute AST from a JSON file')
    parser.add_argument('program', nargs='?', help='Anubhav program file to execute')
    args = parser.parse_args(argv)

    # Emit AST mode
    if args.emit_ast:
        program_file = Path(args.emit_ast)
        program = parse_or_exit(read_source(program_file))
        out_path = program_file.with_name(program_file.name + '.ast.json')
        with open(out_path, 'w', encoding='utf-8') as out:
            json.dump(ast_to_obj(program), out, ensure_ascii=False, indent=2)
        print(str(out_path))
        return

    # Execute from AST JSON
    if args.ast:
        ast_path = Path(args.ast)
        try:
            program = check_program(ast_from_obj(json.loads(read_source(ast_path))))
        except (ValueError, TypeError, KeyError) as e:
            print(f"Error: invalid AST file {ast_path}: {e}", file=sys.stderr)
            sys.exit(1)
        execute(program, args.v)
        return

    # Default: execute source file
    if not args.program:
        parser.error('missing program file; or use --emit-ast/--ast')
    program_file = Path(args.program)
    execute(parse_or_exit(read_source(program_file)), args.v, program_file)


if __name__ == '__main__':
    main()
