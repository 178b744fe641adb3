from __future__ import annotations

import sys
import unittest

from _configs import float_config

from zmap_jax.ast import Call, Literal, VariableRef, to_source
from zmap_jax.engine import Engine
from zmap_jax.errors import ParseError
from zmap_jax.parser import parse
from zmap_jax.symbols import CallKind


class ParserGrammarTests(unittest.TestCase):
    def setUp(self) -> None:
        self.config = float_config()
        self.engine = Engine(self.config)

    def _value(self, source: str, **bindings):
        expr = self.engine.compile_or_raise(source)
        return self.engine.evaluate(expr, bindings or None)

    def _grouping(self, source: str) -> str:
        return to_source(parse(source, self.config))

    def _error(self, source: str, config=None) -> ParseError:
        with self.assertRaises(ParseError) as ctx:
            parse(source, config or self.config)
        return ctx.exception

    def test_higher_precedence_binds_tighter(self) -> None:
        self.assertEqual(self._value("1+2*3"), 7.0)
        self.assertEqual(self._value("2*3^2"), 18.0)
        self.assertEqual(self._grouping("1+2*3^4"), "(1 + (2 * (3 ^ 4)))")

    def test_equal_precedence_associates_left(self) -> None:
        self.assertEqual(self._value("8-3-2"), 3.0)
        self.assertEqual(self._value("8/4/2"), 1.0)
        self.assertEqual(self._value("2^3^2"), 64.0)
        self.assertEqual(self._grouping("1-2+3"), "((1 - 2) + 3)")

    def test_parentheses_override_precedence(self) -> None:
        self.assertEqual(self._value("(1+2)*3"), 9.0)
        self.assertEqual(self._value("2*(3-(4-1))"), 0.0)

    def test_tree_shape(self) -> None:
        expr = parse("sin(x)*2", self.config)
        self.assertIsInstance(expr, Call)
        self.assertEqual((expr.kind, expr.name), (CallKind.OPERATOR, "*"))
        inner, two = expr.args
        self.assertEqual((inner.kind, inner.name), (CallKind.FUNCTION, "sin"))
        self.assertEqual(inner.args, (VariableRef("x"),))
        self.assertEqual(two, Literal("2", 2.0))

    def test_function_argument_lists(self) -> None:
        self.assertEqual(self._value("max(1, 5, 3)"), 5.0)
        self.assertEqual(self._value("max(x)", x=4.0), 4.0)
        self.assertEqual(self._value("sq(1+2)*2"), 18.0)

    def test_function_without_parentheses_takes_one_primary(self) -> None:
        self.assertEqual(self._value("sq 3 + 1"), 10.0)
        self.assertEqual(self._value("sq sq 2"), 16.0)
        self.assertEqual(self._grouping("sq x^2"), "(sq(x) ^ 2)")

    def test_prefix_operators(self) -> None:
        self.assertEqual(self._value("-3+5"), 2.0)
        self.assertEqual(self._value("2*-3"), -6.0)
        self.assertEqual(self._value("-2^2"), -4.0)
        self.assertEqual(self._value("2^-1*4"), 2.0)
        self.assertEqual(self._value("~x", x=3.0), -3.0)
        self.assertEqual(self._grouping("--x"), "(-(-x))")

    def test_binary_only_operator_cannot_be_prefix(self) -> None:
        err = self._error("*3")
        self.assertEqual((err.reason, err.start), ("unexpected", 0))

    def test_prefix_only_operator_cannot_be_infix(self) -> None:
        err = self._error("1 ~ 2")
        self.assertEqual((err.reason, err.start), ("arity", 2))

    def test_too_few_arguments_points_at_open_paren(self) -> None:
        err = self._error("sin()")
        self.assertEqual((err.reason, err.start), ("arity", 3))

    def test_too_many_arguments_points_at_extra_comma(self) -> None:
        err = self._error("sin(1,2)")
        self.assertEqual((err.reason, err.start), ("arity", 5))
        err = self._error("max(1,2,3,4)")
        self.assertEqual((err.reason, err.start), ("arity", 9))

    def test_unknown_identifier_points_at_name(self) -> None:
        err = self._error("foo(1)")
        self.assertEqual((err.reason, err.start), ("unknown-identifier", 0))

    def test_empty_input(self) -> None:
        for source in ("", "   "):
            with self.subTest(source=source):
                err = self._error(source)
                self.assertEqual((err.reason, err.start), ("empty", 0))

    def test_unbalanced_parentheses(self) -> None:
        cases = {
            "(1+2": 0,
            "1+2)": 3,
            ")": 0,
            "sin(x": 3,
            "((x)": 0,
        }
        for source, offset in cases.items():
            with self.subTest(source=source):
                err = self._error(source)
                self.assertEqual((err.reason, err.start), ("unbalanced", offset))

    def test_trailing_tokens(self) -> None:
        err = self._error("1 2")
        self.assertEqual((err.reason, err.start), ("trailing", 2))
        err = self._error("(x)(y)")
        self.assertEqual((err.reason, err.start), ("trailing", 3))

    def test_missing_operand(self) -> None:
        err = self._error("1+")
        self.assertEqual((err.reason, err.start), ("unexpected", 2))
        err = self._error("max(1,)")
        self.assertEqual((err.reason, err.start), ("unexpected", 6))

    def test_nesting_limit(self) -> None:
        config = float_config(max_nesting=8)
        err = self._error("(" * 9 + "1" + ")" * 9, config)
        self.assertEqual(err.reason, "too-deep")
        self.assertEqual(err.start, 8)
        parse("(" * 7 + "1" + ")" * 7, config)

    def test_default_nesting_limit_holds_for_function_calls(self) -> None:
        limit = self.config.max_nesting
        self.assertEqual(limit, 256)

        deep = "sin(" * (limit - 1) + "x" + ")" * (limit - 1)
        result = self.engine.compile(deep)
        self.assertTrue(result.ok)
        self.assertEqual(self.engine.evaluate(result.expr, {"x": 0.0}), 0.0)

        at_limit = self.engine.compile("sin(" * limit + "x" + ")" * limit)
        self.assertTrue(at_limit.ok)

        too_deep = self.engine.compile("sin(" * (limit + 1) + "x" + ")" * (limit + 1))
        self.assertFalse(too_deep.ok)
        self.assertEqual(too_deep.reason, "too-deep")
        self.assertEqual(too_deep.error_offset, limit * 4 + 3)

    def test_default_nesting_limit_holds_for_prefix_and_bare_calls(self) -> None:
        limit = self.config.max_nesting

        self.assertEqual(self._value("-" * limit + "x", x=3.0), 3.0)
        result = self.engine.compile("-" * (limit + 1) + "x")
        self.assertEqual((result.reason, result.error_offset), ("too-deep", limit))

        self.assertTrue(self.engine.compile("sq " * limit + "x").ok)
        result = self.engine.compile("sq " * (limit + 1) + "x")
        self.assertEqual((result.reason, result.error_offset), ("too-deep", limit * 3))

    def test_nesting_limit_is_reached_before_recursion_limit(self) -> None:
        limit = sys.getrecursionlimit()
        engine = Engine(float_config(max_nesting=limit))
        depth = limit - 1
        result = engine.compile("max(" * depth + "x" + ")" * depth)
        self.assertTrue(result.ok)
        self.assertEqual(sys.getrecursionlimit(), limit)

    def test_long_flat_chain_compiles_and_evaluates(self) -> None:
        source = "+".join(["1"] * 5000)
        self.assertEqual(self._value(source), 5000.0)

    def test_parser_keeps_no_state_between_calls(self) -> None:
        first = parse("x*2", self.config)
        self._error("x*")
        self.assertEqual(parse("x*2", self.config), first)


if __name__ == "__main__":
    unittest.main()
