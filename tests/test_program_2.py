from pathlib import Path
from anubhav.interpreter import parse_program, Interpreter

EXAMPLES = Path(__file__).resolve().parent.parent / 'examples'


def test_program_2(capsys):
    with open(EXAMPLES / 'program_2.anubhav', 'r', encoding='utf-8') as f:
        source = f.read()
    ast = parse_program(source)
    interp = Interpreter()
    interp.run(ast)
    out = capsys.readouterr().out.strip()
    assert out == '12\nhalf is 2.5\nodd: 1\npower: 64\ncmp: 2'
