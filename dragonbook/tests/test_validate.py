# test_validate.py
import unittest
from dataclasses import dataclass

from storybook.errors import StoryConfigError
from storybook.narrative.context import NarrativeContext
from storybook.narrative.expr import unreachable
from storybook.narrative.graph import StoryGraph
from storybook.narrative.types import Choice, ForkNode, SimpleNode
from storybook.narrative.validate import Issue, format_issue

from story_fixtures import ABContext, build_ab_graph, set_flag


def codes(issues):
    return [i.code for i in issues]


class TestValidateGraph(unittest.TestCase):
    def test_clean_graph_has_no_issues(self):
        self.assertEqual(build_ab_graph().validate(), [])

    def test_missing_entry(self):
        g = StoryGraph()
        g.add_node(1, SimpleNode("no start"))
        self.assertEqual(codes(g.validate()), ["MISSING_ENTRY"])

    def test_missing_simple_target(self):
        g = StoryGraph()
        g.add_node(0, SimpleNode("start", next=9))
        issues = g.validate()
        self.assertIn("MISSING_NODE", codes(issues))
        self.assertEqual(issues[0].node, 0)

    def test_missing_choice_target_reports_choice(self):
        g = StoryGraph()
        g.add_node(0, ForkNode("?", [Choice("ok", next=1), Choice("broken", next=42)]))
        g.add_node(1, SimpleNode("fine"))
        missing = [i for i in g.validate() if i.code == "MISSING_NODE"]
        self.assertEqual(len(missing), 1)
        self.assertEqual((missing[0].node, missing[0].choice), (0, 1))

    def test_orphan_is_a_warning(self):
        g = build_ab_graph()
        g.add_node(8, SimpleNode("nobody comes here"))
        issues = g.validate()
        self.assertEqual(codes(issues), ["ORPHAN_NODE"])
        self.assertEqual(issues[0].severity, "WARNING")
        g.validate_or_raise()
        self.assertTrue(g.sealed)

    def test_unreachable_branch_on_reachable_state_is_an_error(self):
        g = StoryGraph(ABContext)
        g.add_node(0, ForkNode("?", [Choice("skip the flags", next=1)]))
        g.add_node(1, SimpleNode(lambda ctx: "a" if ctx.a else unreachable(ctx, "a must be set")))
        issues = g.validate()
        self.assertEqual(codes(issues), ["UNREACHABLE_BRANCH"])
        self.assertEqual(issues[0].severity, "ERROR")
        self.assertEqual(issues[0].node, 1)
        self.assertEqual(issues[0].context, {"a": False, "b": False})

    def test_broken_expression(self):
        g = StoryGraph(ABContext)
        g.add_node(0, SimpleNode(lambda ctx: ctx.no_such_flag))
        issues = g.validate()
        self.assertEqual(codes(issues), ["EXPR_FAILED"])
        self.assertIn("AttributeError", issues[0].message)

    def test_effect_writing_undeclared_flag(self):
        g = StoryGraph(ABContext)
        g.add_node(0, ForkNode("?", [Choice("typo", next=1, effect=set_flag("c"))]))
        g.add_node(1, SimpleNode("end"))
        issues = g.validate()
        self.assertEqual(issues[0].code, "EXPR_FAILED")
        self.assertEqual(issues[0].choice, 0)

    def test_bad_next_type(self):
        g = StoryGraph()
        g.add_node(0, ForkNode("?", [Choice("x", next=lambda ctx: None)]))
        self.assertEqual(codes(g.validate()), ["BAD_NEXT"])

    def test_validation_does_not_move_the_cursor(self):
        g = build_ab_graph()
        g.validate(exhaustive=True)
        self.assertEqual(g.current_index, 0)
        self.assertEqual(g.context, ABContext())

    def test_exhaustive_findings_are_warnings(self):
        # Node 2 can only be reached with `a` set, so only the flag sweep trips it
        g = StoryGraph(ABContext)
        g.add_node(0, ForkNode("?", [Choice("set a", next=1, effect=set_flag("a"))]))
        g.add_node(1, ForkNode("!", [
            Choice("go", next=lambda ctx: 2 if ctx.a else unreachable(ctx, "a is always set here")),
        ]))
        g.add_node(2, SimpleNode("end"))
        self.assertEqual(g.validate(), [])
        issues = g.validate(exhaustive=True)
        self.assertEqual(codes(issues), ["UNREACHABLE_BRANCH"])
        self.assertEqual(issues[0].severity, "WARNING")
        g.validate_or_raise(exhaustive=True)

    def test_state_limit(self):
        @dataclass
        class Counter(NarrativeContext):
            n: int = 0

        def bump(ctx):
            ctx.n += 1

        g = StoryGraph(Counter)
        g.add_node(0, ForkNode("loop", [Choice("again", next=0, effect=bump)]))
        issues = g.validate(max_states=50)
        self.assertEqual(codes(issues), ["STATE_LIMIT"])

    def test_validate_or_raise_lists_errors(self):
        g = StoryGraph()
        g.add_node(0, SimpleNode("start", next=9))
        with self.assertRaises(StoryConfigError) as cm:
            g.validate_or_raise()
        self.assertEqual(codes(cm.exception.issues), ["MISSING_NODE"])
        self.assertIn("MISSING_NODE", str(cm.exception))
        self.assertFalse(g.sealed)


class TestFormatIssue(unittest.TestCase):
    def test_format(self):
        issue = Issue("ERROR", "MISSING_NODE", "Next node 3 does not exist.", node=1, choice=0,
                      context={"a": True})
        self.assertEqual(format_issue(issue),
                         "[ERROR] MISSING_NODE: Next node 3 does not exist. (node=1 choice=0 context={a=True})")

    def test_format_without_location(self):
        self.assertEqual(format_issue(Issue("ERROR", "MISSING_ENTRY", "Story has no entry node 0.")),
                         "[ERROR] MISSING_ENTRY: Story has no entry node 0.")


if __name__ == "__main__":
    unittest.main()
