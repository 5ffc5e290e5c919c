from pathlib import Path
from anubhav.interpreter import parse_program, Interpreter

EXAMPLES = Path(__file__).resolve().parent.parent / 'examples'


def test_program_6(capsys):
    with open(EXAMPLES / 'program_6.anubhav', 'r', encoding='utf-8') as f:
        source = f.read()
    ast = parse_program(source)
    interp = Interpreter()
    interp.run(ast)
    out = capsys.readouterr().out.strip()
    assert out == 'result -1\nbob is 25\nkeys: alice,bob\ntwenty-five\nassertion caught'
