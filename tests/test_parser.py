import pytest

from anubhav.ast import (
    BinaryOp, Call, FunctionCall, FunctionDef, If, Number, Print, Recall,
    Repeat, Return, Sort, Store, Switch, UnaryOp,
)
from anubhav.errors import ParseError
from anubhav.parser import parse_program


def expr_of(source):
    stmt = parse_program(f'STORE r {source}').body[0]
    assert isinstance(stmt, Store)
    return stmt.expr


def test_comparison_binds_tighter_than_addition():
    assert expr_of('1 + 2 > 1') == BinaryOp('+', Number(1.0), BinaryOp('>', Number(2.0), Number(1.0)))


def test_multiplication_binds_tighter_than_comparison():
    assert expr_of('a * 2 < b') == BinaryOp('<', BinaryOp('*', Recall('a'), Number(2.0)), Recall('b'))


def test_power_is_left_associative():
    assert expr_of('2 ** 3 ** 2') == BinaryOp('**', BinaryOp('**', Number(2.0), Number(3.0)), Number(2.0))


def test_logic_is_loosest():
    expr = expr_of('a OR b AND c')
    assert expr == BinaryOp('OR', Recall('a'), BinaryOp('AND', Recall('b'), Recall('c')))


def test_unary_operators_take_a_primary():
    assert expr_of('-x * 2') == BinaryOp('*', UnaryOp('-', Recall('x')), Number(2.0))
    assert expr_of('NOT RECALL flag') == UnaryOp('NOT', Recall('flag'))


def test_builtin_calls():
    assert expr_of('MAX(a 3)') == Call('MAX', [Recall('a'), Number(3.0)])
    assert expr_of('RANDOM()') == Call('RANDOM', [])
    assert expr_of('SIZE(items)') == Call('SIZE', [Recall('items')])
    assert expr_of('FLOOR(x / 2)') == Call('FLOOR', [BinaryOp('/', Recall('x'), Number(2.0))])


def test_length_of_literal_folds_at_parse_time():
    assert expr_of('LENGTH("hello")') == Number(5.0)


def test_call_arguments_are_split_on_plus():
    stmt = parse_program('CALL add(2 + 3) result').body[0]
    assert stmt == FunctionCall('add', [Number(2.0), Number(3.0)], 'result')


def test_function_definition_and_bare_call():
    body = parse_program('FUNCTION greet DO PRINT "hi" END CALL greet').body
    assert body[0] == FunctionDef('greet', [], [Print(['hi'])])
    assert body[1] == FunctionCall('greet', [], None)


def test_return_without_value_before_end():
    fn = parse_program('FUNCTION f(a + b) DO RETURN END').body[0]
    assert fn.params == ['a', 'b']
    assert fn.body == [Return(None)]


def test_print_identifiers_become_placeholders():
    assert parse_program('PRINT "x is" x').body[0] == Print(['x is', '${x}'])


def test_nested_bodies():
    stmt = parse_program('REPEAT 2 TIMES DO IF x THEN BREAK ELSE CONTINUE END END').body[0]
    assert isinstance(stmt, Repeat)
    assert isinstance(stmt.body[0], If)
    assert stmt.body[0].else_body is not None


def test_switch_cases_and_default():
    stmt = parse_program('SWITCH x CASE 1 DO PRINT "a" CASE 2 DO PRINT "b" DEFAULT DO PRINT "c" END').body[0]
    assert isinstance(stmt, Switch)
    assert [case.value for case in stmt.cases] == [Number(1.0), Number(2.0)]
    assert stmt.default == [Print(['c'])]


def test_sort_direction():
    assert parse_program('SORT a DESC').body[0] == Sort('a', True)
    assert parse_program('SORT a ASC').body[0] == Sort('a', False)
    assert parse_program('SORT a').body[0] == Sort('a', False)


def test_missing_end_is_a_parse_error():
    with pytest.raises(ParseError) as exc:
        parse_program('REPEAT 3 TIMES DO PRINT "x"')
    assert 'Expected END to close REPEAT' in str(exc.value)


def test_unexpected_token_reports_position():
    with pytest.raises(ParseError) as exc:
        parse_program('STORE x 1\n  TIMES')
    assert exc.value.line == 2
    assert exc.value.column == 3


def test_missing_identifier():
    with pytest.raises(ParseError):
        parse_program('INTENT "oops"')


def test_call_argument_may_subtract():
    stmt = parse_program('CALL dec(k - 1 + 2) r').body[0]
    assert stmt == FunctionCall('dec', [BinaryOp('-', Recall('k'), Number(1.0)), Number(2.0)], 'r')
