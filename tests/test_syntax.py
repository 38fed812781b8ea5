import dataclasses

import pytest

from jaqlang.ops import MathOp, OrdOp
from jaqlang.syntax import (
    Arg,
    AssignOp,
    Binary,
    BinaryKind,
    BinaryOp,
    Call,
    Def,
    FilterPart,
    FilterCall,
    Fold,
    FoldFilter,
    FoldType,
    Identity,
    KeyValFilter,
    KeyValStr,
    Main,
    NumLit,
    Opt,
    PathFilter,
    PathIndex,
    PathRange,
    Str,
    TextPart,
    VarRef,
    binary,
    make_path,
)


def test_call_map_args_keeps_name():
    call = Call("map", ["f", "g"])
    mapped = call.map_args(str.upper)
    assert mapped == Call("map", ["F", "G"])
    assert call.args == ["f", "g"]


def test_arg_var():
    arg = Arg.new_var("x")
    assert arg.is_var()
    assert arg.get_var() == "x"
    assert arg.get_filter() is None
    assert str(arg) == "$x"


def test_arg_filter():
    arg = Arg.new_filter("f")
    assert not arg.is_var()
    assert arg.get_filter() == "f"
    assert arg.get_var() is None


def test_arg_map_keeps_kind():
    assert Arg.new_var("v").map(str.upper) == Arg.new_var("V")
    assert Arg.new_filter("f").map(str.upper) == Arg.new_filter("F")


def test_def_holds_parts():
    body = (Identity(), (0, 1))
    d = Def(Call("f", [Arg.new_filter("g")]), Main([], body))
    assert d.lhs.name == "f"
    assert d.rhs.body == body


@pytest.mark.parametrize(
    "op, symbol",
    [(AssignOp.ASSIGN, "="), (AssignOp.UPDATE, "|="), (AssignOp.ADD, "+="), (AssignOp.SUB, "-=")],
)
def test_assign_display(op, symbol):
    assert str(op) == symbol


@pytest.mark.parametrize("math", list(MathOp))
def test_assign_update_with_round_trip(math):
    assert AssignOp.update_with(math).math is math
    assert str(AssignOp.update_with(math)) == f"{math}="


def test_plain_assign_has_no_math():
    updates = [AssignOp.update_with(m) for m in MathOp]
    assert AssignOp.ASSIGN not in updates
    assert AssignOp.UPDATE not in updates
    assert AssignOp.ASSIGN.math is None
    assert AssignOp.UPDATE.math is None


def _ops():
    return {
        "pipe": BinaryOp(BinaryKind.PIPE),
        "comma": BinaryOp(BinaryKind.COMMA),
        "assign": BinaryOp(BinaryKind.ASSIGN, AssignOp.UPDATE),
        "alt": BinaryOp(BinaryKind.ALT),
        "or": BinaryOp(BinaryKind.OR),
        "and": BinaryOp(BinaryKind.AND),
        "eq": BinaryOp(BinaryKind.ORD, OrdOp.EQ),
        "lt": BinaryOp(BinaryKind.ORD, OrdOp.LT),
        "add": BinaryOp(BinaryKind.MATH, MathOp.ADD),
        "mul": BinaryOp(BinaryKind.MATH, MathOp.MUL),
        "rem": BinaryOp(BinaryKind.MATH, MathOp.REM),
    }


def test_binary_precedence_fixed_values():
    ops = _ops()
    assert ops["pipe"].prec() == 0
    assert ops["comma"].prec() == 1
    assert ops["assign"].prec() == 2
    assert ops["alt"].prec() == 3


def test_binary_precedence_is_strictly_increasing():
    precs = [op.prec() for op in _ops().values()]
    assert precs == sorted(set(precs))


def test_same_level_precedences():
    assert BinaryOp(BinaryKind.ORD, OrdOp.NE).prec() == _ops()["eq"].prec()
    assert BinaryOp(BinaryKind.ORD, OrdOp.GE).prec() == _ops()["lt"].prec()
    assert BinaryOp(BinaryKind.MATH, MathOp.SUB).prec() == _ops()["add"].prec()
    assert BinaryOp(BinaryKind.MATH, MathOp.DIV).prec() == _ops()["mul"].prec()
    assert BinaryOp(BinaryKind.PIPE, var="x").prec() == _ops()["pipe"].prec()


def test_right_assoc():
    right = {name for name, op in _ops().items() if op.right_assoc()}
    assert right == {"pipe", "assign"}


def test_binary_op_validation():
    with pytest.raises(TypeError):
        BinaryOp(BinaryKind.MATH, OrdOp.EQ)
    with pytest.raises(ValueError):
        BinaryOp(BinaryKind.COMMA, MathOp.ADD)
    with pytest.raises(ValueError):
        BinaryOp(BinaryKind.ALT, var="x")


def test_keyval_filter_map_order():
    seen = []

    def record(x):
        seen.append(x)
        return x * 2

    assert KeyValFilter(1, 2).map(record) == KeyValFilter(2, 4)
    assert seen == [1, 2]


def test_keyval_str_map():
    key = Str(fmt=1, parts=[TextPart("a"), FilterPart(2)])
    kv = KeyValStr(key, 3).map(lambda x: x * 10)
    assert kv.key == Str(10, [TextPart("a"), FilterPart(20)])
    assert kv.value == 30
    assert KeyValStr(Str.from_text("b")).map(lambda x: x * 10).value is None


def test_fold_filter_holds_fold():
    fold = Fold(xs="xs", x="x", init="init", f="f")
    node = FoldFilter(FoldType.REDUCE, fold)
    assert node.fold.x == "x"
    assert node.type is FoldType.REDUCE


def test_path_parts_map():
    assert PathIndex(1).map(str) == PathIndex("1")
    assert PathRange(1, None).map(str) == PathRange("1", None)
    assert PathRange().map(str) == PathRange(None, None)


def test_opt_fail():
    assert Opt.OPTIONAL.fail(5, ValueError) == 5
    with pytest.raises(ValueError):
        Opt.ESSENTIAL.fail(5, ValueError)


def test_opt_collect():
    items = [1, KeyError("k"), 2]
    assert Opt.OPTIONAL.collect(items) == [1, 2]
    with pytest.raises(KeyError):
        Opt.ESSENTIAL.collect(items)
    assert Opt.ESSENTIAL.collect(iter([1, 2])) == [1, 2]


def test_string_parts():
    assert TextPart("").is_empty()
    assert not TextPart("a").is_empty()
    assert not FilterPart(None).is_empty()
    assert TextPart("a").map(lambda x: 1 / 0) == TextPart("a")


def test_str_from_text():
    s = Str.from_text("hello")
    assert s.fmt is None
    assert s.parts == [TextPart("hello")]
    assert s.map(lambda x: 1 / 0) == s


def test_binary_span():
    a = (NumLit("1"), (0, 1))
    b = (VarRef("x"), (4, 6))
    op = BinaryOp(BinaryKind.MATH, MathOp.ADD)
    node, span = binary(a, op, b)
    assert span == (0, 6)
    assert node == Binary(a, op, b)


def test_make_path():
    f = (FilterCall("keys"), (0, 4))
    assert make_path(f, [], (0, 6)) is f
    path = [(PathRange(), Opt.ESSENTIAL)]
    node, span = make_path(f, path, (0, 6))
    assert node == PathFilter(f, path)
    assert span == (0, 6)


def test_nodes_are_immutable():
    with pytest.raises(dataclasses.FrozenInstanceError):
        VarRef("x").name = "y"