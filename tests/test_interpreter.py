import pytest

from anubhav.ast import Number, Program
from anubhav.errors import AnubhavError
from anubhav.interpreter import Interpreter, parse_program, run_program
from anubhav.std.io import MemoryIO


def run(source, io=None):
    io = io if io is not None else MemoryIO()
    interp = Interpreter(io=io)
    interp.run(parse_program(source))
    return interp, io


def run_error(source):
    interp = Interpreter(io=MemoryIO())
    with pytest.raises(AnubhavError) as exc:
        interp.run(parse_program(source))
    return interp, exc.value.err


def test_store_and_recall():
    interp, _ = run('STORE x 10\nSTORE y RECALL x * 2')
    assert interp.env.variables['y'] == 20.0


def test_undefined_recall_fails():
    _, err = run_error('STORE z RECALL y')
    assert err.name == 'NameError'
    assert err.message == "Variable 'y' not found"


def test_recall_falls_back_to_calculations():
    interp, _ = run('CALCULATE c 4\nSTORE d c + 1')
    assert interp.env.variables['d'] == 5.0


def test_repeat_runs_exactly_n_times():
    interp, _ = run('STORE c 0\nREPEAT 3 TIMES DO STORE c c + 1 END')
    assert interp.env.variables['c'] == 3.0


def test_break_halts_repeat():
    source = 'STORE c 0\nREPEAT 3 TIMES DO\n STORE c c + 1\n IF c == 2 THEN BREAK END\nEND'
    interp, _ = run(source)
    assert interp.env.variables['c'] == 2.0


def test_negative_and_fractional_repeat_counts():
    interp, _ = run('STORE c 0\nREPEAT -2 TIMES DO INCREMENT c END\nREPEAT 2.9 TIMES DO INCREMENT c END')
    assert interp.env.variables['c'] == 2.0


def test_division_by_zero_leaves_no_calculation():
    interp, err = run_error('CALCULATE r 5 / 0')
    assert err.name == 'RuntimeError'
    assert err.message == 'Division by zero'
    assert 'r' not in interp.env.calculations


def test_modulo_by_zero_and_truncated_remainder():
    _, err = run_error('STORE r 5 % 0')
    assert err.message == 'Modulo by zero'
    interp, _ = run('STORE r -7 % 3')
    assert interp.env.variables['r'] == -1.0


def test_sort_desc_then_pop():
    interp, _ = run('ARRAY a\nPUSH a 1\nPUSH a 2\nPUSH a 3\nSORT a DESC\nPOP a top')
    assert interp.env.variables['top'] == 3.0
    assert interp.env.arrays['a'] == [2.0, 1.0]


def test_function_call_with_plus_separated_arguments():
    source = 'FUNCTION add(x + y) DO RETURN x + y END\nCALL add(2 + 3) result'
    interp, _ = run(source)
    assert interp.env.variables['result'] == 5.0
    assert interp.env.frames == []
    with pytest.raises(AnubhavError):
        interp.run(parse_program('STORE leak RECALL x'))


def test_function_arity_is_checked():
    _, err = run_error('FUNCTION f(a) DO RETURN a END\nCALL f(1 + 2) r')
    assert err.name == 'TypeError'
    assert err.message == "Function 'f' expects 1 parameters, got 2"


def test_function_implicit_return_is_zero():
    interp, _ = run('STORE r 9\nFUNCTION noop DO STORE touched 1 END\nCALL noop r')
    assert interp.env.variables['r'] == 0.0
    assert interp.env.variables['touched'] == 1.0


def test_frame_is_popped_when_body_fails():
    interp, err = run_error('FUNCTION boom(a) DO STORE q 1 / 0 END\nCALL boom(1)')
    assert err.message == 'Division by zero'
    assert interp.env.frames == []


def test_break_inside_function_is_an_error():
    _, err = run_error('FUNCTION f DO BREAK END\nREPEAT 2 TIMES DO CALL f END')
    assert err.name == 'RuntimeError'
    assert 'BREAK' in err.message


def test_top_level_break_is_an_error():
    _, err = run_error('BREAK')
    assert err.name == 'RuntimeError'


def test_unbounded_recursion_becomes_runtime_error():
    _, err = run_error('FUNCTION f DO CALL f END\nCALL f')
    assert err.name == 'RuntimeError'


def test_random_matches_lcg():
    interp, _ = run('STORE a RANDOM()\nSTORE b RANDOM()')
    assert interp.env.variables['a'] == 87628868 / 2 ** 32
    assert interp.env.variables['b'] == 71072467 / 2 ** 32


def test_runs_are_deterministic():
    source = 'ARRAY a\nFOR i 1 TO 6 DO PUSH a i END\nSHUFFLE a\nSTORE r RANDOM()\nJOIN a "," s\nPRINT s r'
    _, first = run(source)
    _, second = run(source)
    assert first.output == second.output


def test_try_catch_downgrades_failure():
    interp, _ = run('STORE r 0\nTRY\n STORE q 1 / 0\nCATCH\n STORE r -1\nEND')
    assert interp.env.variables['r'] == -1.0


def test_try_without_failure_skips_catch():
    interp, _ = run('TRY STORE r 1 CATCH STORE r 2 END')
    assert interp.env.variables['r'] == 1.0


def test_break_passes_through_try_to_loop():
    interp, _ = run('STORE c 0\nWHILE 1 DO\n INCREMENT c\n TRY BREAK CATCH STORE c 100 END\nEND')
    assert interp.env.variables['c'] == 1.0


def test_for_loop_directions_and_continue():
    interp, io = run('FOR i 10 TO 1 STEP -4 DO PRINT i END\nFOR k 1 TO 3 DO\n IF k == 2 THEN CONTINUE END\n PRINT k\nEND')
    assert io.output == ['10', '6', '2', '1', '3']
    assert interp.env.variables['k'] == 3.0


def test_for_with_zero_step_runs_nothing():
    _, io = run('FOR i 1 TO 5 STEP 0 DO PRINT i END')
    assert io.output == []


def test_switch_first_match_wins():
    _, io = run('SWITCH 2 CASE 2 DO PRINT "first" CASE 2 DO PRINT "second" END')
    assert io.output == ['first']


def test_switch_falls_to_default():
    _, io = run('SWITCH 9 CASE 1 DO PRINT "one" DEFAULT DO PRINT "default" END')
    assert io.output == ['default']


def test_assert_messages():
    _, err = run_error('ASSERT 1 == 2')
    assert (err.name, err.message) == ('AssertionError', 'Assertion failed')
    _, err = run_error('ASSERT 0 "must hold"')
    assert err.message == 'Assertion failed: must hold'


def test_increment_and_decrement_default_to_zero():
    interp, _ = run('INCREMENT up\nDECREMENT down\nDECREMENT down')
    assert interp.env.variables['up'] == 1.0
    assert interp.env.variables['down'] == -2.0


def test_builtins():
    source = ('STORE a MIN(3 7)\nSTORE b MAX(3 7)\nSTORE c FLOOR(2.7)\nSTORE d CEIL(2.1)\n'
              'STORE e ROUND(2.5)\nSTORE f ROUND(-2.5)\nSTORE g NOT 0')
    variables = run(source)[0].env.variables
    assert [variables[k] for k in 'abcdefg'] == [3.0, 7.0, 2.0, 3.0, 3.0, -3.0, 1.0]


def test_length_and_size_require_the_right_namespace():
    interp, _ = run('INTENT s "hello"\nARRAY a\nPUSH a 1\nSTORE n LENGTH(s)\nSTORE m SIZE(a)')
    assert interp.env.variables['n'] == 5.0
    assert interp.env.variables['m'] == 1.0
    _, err = run_error('ARRAY a\nSTORE n LENGTH(a)')
    assert err.name == 'TypeError'


def test_templates_resolve_in_namespace_order():
    source = ('INTENT who "intent"\nCALCULATE who 1\nSTORE num 2.5\n'
              'COMBINE msg "${who}/" num "/" missing\nPRINT msg')
    _, io = run(source)
    assert io.output == ['intent/2.5/<missing not found>']


def test_manifest_prints_intent_or_calculation():
    _, io = run('INTENT hi "hello"\nCALCULATE n 2 * 5\nMANIFEST hi WITH "friend"\nMANIFEST n')
    assert io.output == ['hello friend', '10']
    _, err = run_error('STORE v 1\nMANIFEST v')
    assert err.message == "Intent 'v' not found"


def test_number_rendering():
    _, io = run('STORE a 0.1 + 0.2\nSTORE b 1 / 3\nSTORE c 0.0000001\nSTORE d -0\nSTORE e 10 ** 21\nPRINT a b c d e')
    assert io.output == ['0.30000000000000004 0.3333333333333333 0.0000001 -0 1000000000000000000000']


def test_run_program_returns_interpreter(capsys):
    interp = run_program('STORE x 4\nPRINT x')
    assert interp.env.variables['x'] == 4.0
    assert capsys.readouterr().out.strip() == '4'


def test_debug_trace_goes_to_file(tmp_path, capsys):
    trace = tmp_path / 'trace.txt'
    interp = Interpreter(debug_level=3, debug_file=str(trace))
    interp.run(parse_program('ARRAY a\nIF 1 THEN PRINT "shown" END'))
    interp.close()
    assert capsys.readouterr().out.strip() == 'shown'
    text = trace.read_text(encoding='utf-8')
    assert "created array 'a'" in text
    assert 'if condition 1 -> True' in text


def test_recursive_call_with_subtracted_argument():
    source = 'FUNCTION down(n) DO\n IF n <= 0 THEN RETURN 0 END\n CALL down(n - 1) rest\n RETURN rest + 1\nEND\nCALL down(4) r'
    interp, _ = run(source)
    assert interp.env.variables['r'] == 4.0


def test_expression_node_in_statement_position_fails():
    interp = Interpreter(io=MemoryIO())
    with pytest.raises(AnubhavError) as exc:
        interp.run(Program([Number(1.0)]))
    assert exc.value.err.message == 'Cannot execute Number as a statement'
