# test_graph.py
import unittest

from storybook.errors import (
    ChoiceIndexError,
    EmptyForkError,
    InvalidOperationError,
    MissingNodeError,
    StoryConfigError,
    UnreachableBranchError,
)
from storybook.narrative.expr import unreachable
from storybook.narrative.graph import StoryGraph
from storybook.narrative.rich_text import TextSpan
from storybook.narrative.types import Choice, ForkNode, SimpleNode

from story_fixtures import ABContext, build_ab_graph


class TestStoryGraphNavigation(unittest.TestCase):
    def test_flag_a_reaches_node_4(self):
        g = build_ab_graph()
        g.choose(0)
        self.assertEqual(g.current_index, 1)
        self.assertTrue(g.context.a)
        g.advance()
        self.assertEqual(g.current_index, 3)
        g.choose(0)
        self.assertEqual(g.current_index, 4)

    def test_flag_b_reaches_node_5(self):
        g = build_ab_graph()
        g.choose(1)
        self.assertEqual(g.current_index, 2)
        self.assertTrue(g.context.b)
        self.assertFalse(g.context.a)
        g.advance()
        self.assertEqual(g.current_index, 3)
        g.choose(0)
        self.assertEqual(g.current_index, 5)

    def test_next_sees_the_effect_of_its_own_choice(self):
        g = StoryGraph(ABContext)
        g.add_node(0, ForkNode("?", [
            Choice("x", next=lambda ctx: 1 if ctx.a else 2,
                   effect=lambda ctx: setattr(ctx, "a", True)),
        ]))
        g.add_node(1, SimpleNode("a was set"))
        g.add_node(2, SimpleNode("a was not set"))
        g.choose(0)
        self.assertEqual(g.current_index, 1)

    def test_choose_returns_the_choice(self):
        g = build_ab_graph()
        picked = g.choose(1)
        self.assertEqual(picked.label(g.context), "Go right")

    def test_content_depends_on_context(self):
        g = build_ab_graph()
        g.choose(1)
        g.advance()
        self.assertEqual(g.get_content(), "You came from the *right*")
        view = g.view()
        self.assertTrue(view.is_fork)
        self.assertIn(TextSpan("right", True), view.spans)

    def test_reset_is_idempotent(self):
        g = build_ab_graph()
        g.choose(0)
        g.advance()
        g.reset()
        g.reset()
        self.assertEqual(g.current_index, 0)
        self.assertEqual(g.context, ABContext())

    def test_terminal_and_extra(self):
        g = build_ab_graph()
        self.assertTrue(g.is_fork())
        self.assertIsNone(g.get_extra())
        g.choose(0)
        self.assertFalse(g.is_terminal())
        self.assertEqual(g.get_extra().illustration, "left.png")
        g.advance()
        g.choose(0)
        self.assertTrue(g.is_terminal())
        self.assertTrue(g.view().terminal)

    def test_get_choices_on_simple_node_is_empty(self):
        g = build_ab_graph()
        g.choose(0)
        self.assertEqual(g.get_choices(), [])


class TestStoryGraphErrors(unittest.TestCase):
    def test_advance_on_fork(self):
        g = build_ab_graph()
        with self.assertRaises(InvalidOperationError):
            g.advance()

    def test_advance_on_terminal(self):
        g = build_ab_graph()
        g.choose(0)
        g.advance()
        g.choose(0)
        with self.assertRaises(InvalidOperationError):
            g.advance()

    def test_choose_on_simple(self):
        g = build_ab_graph()
        g.choose(0)
        with self.assertRaises(InvalidOperationError):
            g.choose(0)

    def test_choice_out_of_range_leaves_state_alone(self):
        g = build_ab_graph()
        with self.assertRaises(ChoiceIndexError) as cm:
            g.choose(2)
        self.assertIsInstance(cm.exception, IndexError)
        self.assertEqual(cm.exception.node, 0)
        self.assertEqual(g.current_index, 0)
        self.assertEqual(g.context, ABContext())

    def test_negative_choice_index(self):
        g = build_ab_graph()
        with self.assertRaises(ChoiceIndexError):
            g.choose(-1)

    def test_missing_next_node(self):
        g = StoryGraph()
        g.add_node(0, SimpleNode("start", next=7))
        with self.assertRaises(MissingNodeError) as cm:
            g.advance()
        self.assertEqual(cm.exception.node, 0)
        self.assertIn("7", str(cm.exception))

    def test_missing_current_node(self):
        g = StoryGraph()
        with self.assertRaises(MissingNodeError):
            g.get_current_node()

    def test_non_int_route(self):
        g = StoryGraph()
        g.add_node(0, ForkNode("?", [Choice("x", next=lambda ctx: "one")]))
        with self.assertRaises(StoryConfigError):
            g.choose(0)

    def test_empty_fork_rejected(self):
        g = StoryGraph()
        with self.assertRaises(EmptyForkError):
            g.add_node(0, ForkNode("nothing to pick", []))

    def test_sealed_graph_rejects_nodes(self):
        g = build_ab_graph()
        g.validate_or_raise()
        self.assertTrue(g.sealed)
        with self.assertRaises(InvalidOperationError):
            g.add_node(9, SimpleNode("late"))

    def test_wrong_node_type(self):
        g = StoryGraph()
        with self.assertRaises(TypeError):
            g.add_node(0, "not a node")

    def test_unreachable_content_carries_node_index(self):
        g = build_ab_graph()
        g.add_node(6, SimpleNode(lambda ctx: unreachable(ctx, "never shown")))
        g.add_node(0, ForkNode("Start", [Choice("skip", next=6)]))
        g.choose(0)
        with self.assertRaises(UnreachableBranchError) as cm:
            g.get_content()
        self.assertEqual(cm.exception.node, 6)
        self.assertEqual(cm.exception.context, {"a": False, "b": False})

    def test_unreachable_label_carries_node_index(self):
        g = StoryGraph(ABContext)
        g.add_node(0, ForkNode("?", [Choice(lambda ctx: unreachable(ctx), next=0)]))
        with self.assertRaises(UnreachableBranchError) as cm:
            g.get_choices()
        self.assertEqual(cm.exception.node, 0)


class TestDescribe(unittest.TestCase):
    def test_describe_tree(self):
        text = build_ab_graph().describe()
        lines = text.splitlines()
        self.assertEqual(lines[0], "#0 Fork: 'Start'")
        self.assertEqual(lines[1], "  [0] 'Go left'")
        self.assertIn("\t#1 Simple: 'Left path'", lines)
        self.assertIn("\t\t\t#4 Simple: 'Ending A' [end]", lines)
        self.assertIn("\t\t\t#5 Simple: 'Ending B' [end]", lines)

    def test_describe_marks_loops(self):
        g = StoryGraph()
        g.add_node(0, SimpleNode("again", next=1))
        g.add_node(1, SimpleNode("and again", next=0))
        self.assertIn("-> #0 (seen)", g.describe())

    def test_describe_missing(self):
        g = StoryGraph()
        g.add_node(0, SimpleNode("dangling", next=3))
        self.assertIn("#3 <missing>", g.describe())


if __name__ == "__main__":
    unittest.main()
