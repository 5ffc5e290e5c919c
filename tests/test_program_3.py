from pathlib import Path
from anubhav.interpreter import parse_program, Interpreter

EXAMPLES = Path(__file__).resolve().parent.parent / 'examples'


def test_program_3(capsys):
    with open(EXAMPLES / 'program_3.anubhav', 'r', encoding='utf-8') as f:
        source = f.read()
    ast = parse_program(source)
    interp = Interpreter()
    interp.run(ast)
    out = capsys.readouterr().out.strip()
    assert out == 'total 5\ni = 1\ni = 4\ni = 7\ni = 10\nj = 3\nj = 1\nn = 21'
