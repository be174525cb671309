import pytest

from greetmotion.exceptions import ExpressionError
from greetmotion.processing.expr import (
    BinOp,
    Const,
    Neg,
    T,
    Var,
    between,
    clamp,
    evaluate,
    format_number,
    if_,
    lt,
    parse,
    render,
)


def test_render_clamped_progress():
    progress = clamp((T - 1) / 2, 0, 1)
    assert render(progress) == "min(max((t-1)/2,0),1)"
    assert evaluate(progress, {"t": 2}) == pytest.approx(0.5)
    assert evaluate(progress, {"t": 10}) == 1.0
    assert evaluate(progress, {"t": -3}) == 0.0


def test_constant_folding():
    assert Const(2) + 3 == Const(5)
    assert T * 1 is T
    assert T + 0 is T
    assert 0 * T == Const(0)
    assert (T - 0) / 1 is T
    assert -Const(4) == Const(-4)
    assert -(-Var("w")) == Var("w")


def test_render_grouping():
    a, b, c = Var("a"), Var("b"), Var("c")
    assert render(a - (b - c)) == "a-(b-c)"
    assert render((a - b) - c) == "a-b-c"
    assert render(a * (b + 1)) == "a*(b+1)"
    assert render(a / (b * c)) == "a/(b*c)"
    assert render(a * b + c) == "a*b+c"


def test_render_negative_operands():
    assert render(-Var("overlay_w")) == "-overlay_w"
    assert render(T - (-Var("overlay_w"))) == "t-(-overlay_w)"
    assert render(T * -3) == "t*(-3)"
    assert render(Const(-3)) == "-3"


def test_render_renames_variables():
    assert render(lt(T, 1), {"t": "T"}) == "lt(T,1)"


def test_format_number():
    assert format_number(2.0) == "2"
    assert format_number(0.7000000000000001) == "0.7"
    assert format_number(-0.5) == "-0.5"
    assert format_number(1 / 3) == "0.333333333"


def test_format_number_keeps_sub_micro_values():
    assert format_number(4e-7) == "0.0000004"
    assert format_number(1e-9) == "0.000000001"
    assert format_number(1e-10) == "0"
    assert format_number(-1e-10) == "0"


def test_parse_builds_tree():
    assert parse("(w-text_w)/2") == BinOp("/", BinOp("-", Var("w"), Var("text_w")), Const(2))
    assert parse("-overlay_w") == Neg(Var("overlay_w"))
    assert render(parse("(w-text_w)/2")) == "(w-text_w)/2"
    assert render(parse("h*0.8")) == "h*0.8"


def test_parse_and_evaluate_functions():
    assert evaluate("if(lt(t,1),2,3)", {"t": 0.5}) == 2.0
    assert evaluate("if(lt(t,1),2,3)", {"t": 1}) == 3.0
    assert evaluate("2^3^2") == 512.0
    assert evaluate("sin(PI/2)") == pytest.approx(1.0)
    assert evaluate("max(1, min(5, 3))") == 3.0


@pytest.mark.parametrize("text", ["", "1+", "w $ 2", "min(1,2", "(1))"])
def test_parse_rejects_invalid(text):
    with pytest.raises(ExpressionError):
        parse(text)


def test_evaluate_errors():
    with pytest.raises(ExpressionError):
        evaluate(Var("text_w"), {"t": 0})
    with pytest.raises(ExpressionError):
        evaluate("frobnicate(1)")


def test_if_is_lazy():
    guarded = if_(lt(T, 1), T, 1 / (T - T))
    assert evaluate(guarded, {"t": 0.5}) == 0.5


def test_if_folds_constant_conditions():
    assert if_(1, Var("a"), Var("b")) == Var("a")
    assert if_(0, Var("a"), Var("b")) == Var("b")
    assert if_(lt(T, 1), Var("a"), Var("a")) == Var("a")


def test_between_is_inclusive():
    window = between(T, 1, 2)
    assert evaluate(window, {"t": 1}) == 1.0
    assert evaluate(window, {"t": 2}) == 1.0
    assert evaluate(window, {"t": 2.01}) == 0.0
    assert evaluate(window, {"t": 0.99}) == 0.0


def test_division_by_zero_is_expression_error():
    with pytest.raises(ExpressionError, match="Division by zero"):
        evaluate("w/0", {"w": 1080})
    with pytest.raises(ExpressionError):
        evaluate("pow(0,-1)")


@pytest.mark.parametrize("text", ["(-8)^(1/3)", "pow(-2,0.5)", "sqrt(-1)"])
def test_non_real_results_are_expression_errors(text):
    with pytest.raises(ExpressionError):
        evaluate(text)


def test_negative_base_with_integer_exponent():
    assert evaluate("(-2)^3") == -8.0


def test_str_uses_render():
    assert str(T + 1) == "t+1"
