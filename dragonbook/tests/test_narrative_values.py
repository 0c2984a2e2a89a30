# test_narrative_values.py
import unittest
from dataclasses import dataclass, field

from storybook.errors import UnreachableBranchError
from storybook.narrative.context import NarrativeContext, make_context_type
from storybook.narrative.expr import Computed, Constant, as_expr, unreachable
from storybook.narrative.rich_text import TextSpan, parse_emphasis, plain_text

from story_fixtures import ABContext


class TestNarrativeContext(unittest.TestCase):
    def test_defaults_and_flags(self):
        ctx = ABContext()
        self.assertEqual(ABContext.flag_names(), ("a", "b"))
        self.assertEqual(ctx.snapshot(), {"a": False, "b": False})

    def test_unknown_flag_is_rejected(self):
        ctx = ABContext()
        with self.assertRaises(AttributeError):
            ctx.c = True

    def test_clone_is_independent(self):
        ctx = ABContext()
        copy = ctx.clone()
        copy.a = True
        self.assertFalse(ctx.a)
        self.assertNotEqual(ctx, copy)

    def test_state_key_is_hashable(self):
        @dataclass
        class Bag(NarrativeContext):
            items: list = field(default_factory=list)
            seen: bool = False

        ctx = Bag()
        ctx.items.append("rose")
        self.assertEqual(hash(ctx.state_key()), hash(Bag(items=["rose"]).state_key()))
        self.assertEqual(Bag.bool_flag_names(), ("seen",))

    def test_make_context_type(self):
        cls = make_context_type("the dragon's tale", ["brave", "scared"])
        self.assertEqual(cls.__name__, "TheDragonSTaleContext")
        ctx = cls()
        self.assertFalse(ctx.brave)
        ctx.scared = True
        self.assertEqual(cls.bool_flag_names(), ("brave", "scared"))

    def test_make_context_type_rejects_bad_names(self):
        with self.assertRaises(ValueError):
            make_context_type("x", ["not a flag"])


class TestNarrativeExpr(unittest.TestCase):
    def test_coercion(self):
        self.assertIsInstance(as_expr("text"), Constant)
        self.assertIsInstance(as_expr(lambda ctx: 1), Computed)
        expr = Constant(3)
        self.assertIs(as_expr(expr), expr)
        self.assertTrue(expr.is_constant)

    def test_computed_reads_context(self):
        expr = as_expr(lambda ctx: "yes" if ctx.a else "no")
        ctx = ABContext()
        self.assertEqual(expr.evaluate(ctx), "no")
        ctx.a = True
        self.assertEqual(expr.evaluate(ctx), "yes")
        self.assertFalse(expr.is_constant)

    def test_unreachable_carries_snapshot(self):
        ctx = ABContext(b=True)
        with self.assertRaises(UnreachableBranchError) as cm:
            unreachable(ctx, "no flag")
        self.assertEqual(cm.exception.context, {"a": False, "b": True})
        self.assertIn("no flag", str(cm.exception))


class TestRichText(unittest.TestCase):
    def test_emphasis(self):
        self.assertEqual(parse_emphasis("This *text* matters"), [
            TextSpan("This ", False),
            TextSpan("text", True),
            TextSpan(" matters", False),
        ])

    def test_plain(self):
        self.assertEqual(parse_emphasis("no markers"), [TextSpan("no markers")])
        self.assertEqual(parse_emphasis(""), [])

    def test_edges(self):
        self.assertEqual(parse_emphasis("*all*"), [TextSpan("all", True)])
        self.assertEqual(parse_emphasis("**"), [])
        self.assertEqual(parse_emphasis("open *tail"), [TextSpan("open "), TextSpan("tail", True)])

    def test_plain_text(self):
        self.assertEqual(plain_text(parse_emphasis("a *b* c")), "a b c")


if __name__ == "__main__":
    unittest.main()
