# test_resources.py
import tempfile
import unittest

from storybook import resources


class TestResources(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        resources.set_assets_root(self._tmp.name)

    def tearDown(self):
        resources.set_assets_root(resources._project_root() / "dragonbook" / "assets")
        self._tmp.cleanup()

    def test_fit_size_keeps_aspect(self):
        self.assertEqual(resources.fit_size((200, 100), (100, 100)), (100, 50))
        self.assertEqual(resources.fit_size((100, 400), (300, 200)), (50, 200))
        self.assertEqual(resources.fit_size((0, 0), (30, 20)), (30, 20))

    def test_missing_image_falls_back_and_warns(self):
        with self.assertLogs("storybook.resources", level="WARNING") as logs:
            surf = resources.load_image("illustrations/nowhere.png", max_size=(64, 32))
        self.assertEqual(surf.get_size(), (64, 32))
        self.assertIn("nowhere.png", logs.output[0])
        # Cached: no second warning
        self.assertIs(resources.load_image("illustrations/nowhere.png", max_size=(64, 32)), surf)


if __name__ == "__main__":
    unittest.main()
