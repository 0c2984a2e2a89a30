# test_session.py
import unittest

from storybook.lifecycle import AdvancePressed, ChoicePressed, Phase, RestartPressed
from storybook.session import GameSession

from story_fixtures import RecordingAdapter, build_ab_graph


class TestGameSession(unittest.TestCase):
    def setUp(self):
        self.graph = build_ab_graph()
        self.adapter = RecordingAdapter()
        self.session = GameSession(self.graph, self.adapter)

    def turn_page(self):
        self.session.post(AdvancePressed())
        self.session.update(0.016)
        self.adapter.finish_transition()
        self.session.update(0.016)

    def test_first_update_shows_node_0(self):
        self.session.update(0.016)
        self.assertEqual(self.adapter.calls, [("show_node", 0)])
        self.assertIs(self.session.phase, Phase.CHOOSING)

    def test_full_playthrough_to_ending_a(self):
        self.session.update(0.016)
        self.session.post(ChoicePressed(0))
        self.session.update(0.016)
        self.assertEqual(self.adapter.chosen.text, "Go left")
        self.assertIs(self.session.phase, Phase.CHOSEN)

        self.turn_page()
        self.assertEqual(self.adapter.shown.index, 1)
        self.assertIs(self.session.phase, Phase.SHOWING_SIMPLE)

        self.turn_page()
        self.assertEqual(self.adapter.shown.index, 3)
        self.assertEqual(self.adapter.shown.content, "You came from the *left*")

        self.session.post(ChoicePressed(0))
        self.session.update(0.016)
        self.turn_page()
        self.assertEqual(self.adapter.shown.index, 4)
        self.assertTrue(self.adapter.ended)
        self.assertIs(self.session.phase, Phase.END)

        self.session.post(RestartPressed())
        self.session.update(0.016)
        self.assertEqual(self.adapter.calls[-2:], [("erase",), ("show_node", 0)])
        self.assertIs(self.session.phase, Phase.CHOOSING)

    def test_render_command_order(self):
        self.session.update(0.016)
        self.session.post(ChoicePressed(1))
        self.session.update(0.016)
        self.session.post(AdvancePressed())
        self.session.update(0.016)
        self.assertEqual(self.adapter.names(),
                         ["show_node", "erase", "show_chosen", "start_transition", "erase"])

    def test_events_are_handled_in_order(self):
        self.session.update(0.016)
        self.session.post_all([ChoicePressed(1), ChoicePressed(0), AdvancePressed()])
        self.session.update(0.016)
        self.assertTrue(self.graph.context.b)
        self.assertFalse(self.graph.context.a)
        self.assertIs(self.session.phase, Phase.TRANSITIONING)

    def test_animation_callback_waits_for_next_tick(self):
        self.session.update(0.016)
        self.session.post(ChoicePressed(0))
        self.session.post(AdvancePressed())
        self.session.update(0.016)
        self.adapter.finish_transition()
        self.assertEqual(self.session.pending_events(), 1)
        self.assertIs(self.session.phase, Phase.TRANSITIONING)
        self.session.update(0.016)
        self.assertEqual(self.session.pending_events(), 0)
        self.assertEqual(self.adapter.shown.index, 1)


if __name__ == "__main__":
    unittest.main()
