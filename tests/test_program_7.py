from pathlib import Path
from anubhav.interpreter import parse_program, Interpreter

EXAMPLES = Path(__file__).resolve().parent.parent / 'examples'


def test_program_7(capsys):
    with open(EXAMPLES / 'program_7.anubhav', 'r', encoding='utf-8') as f:
        source = f.read()
    ast = parse_program(source)
    interp = Interpreter()
    interp.run(ast)
    out = capsys.readouterr().out.strip()
    assert out == 'MIXED CASE / mixed case\npart: Mixed\nfound 1\ncsv total 6.5\nMixed Bag\n84 string number undefined\nparsed 3.25\nlength 10'
