from pathlib import Path
from anubhav.interpreter import parse_program, Interpreter

EXAMPLES = Path(__file__).resolve().parent.parent / 'examples'


def test_program_5(capsys):
    with open(EXAMPLES / 'program_5.anubhav', 'r', encoding='utf-8') as f:
        source = f.read()
    ast = parse_program(source)
    interp = Interpreter()
    interp.run(ast)
    out = capsys.readouterr().out.strip()
    assert out == 'sorted: 9, 5, 3, 1\npopped 9\nsize 3\nbig: 5\ntotal 90\nfolded 9'
