from __future__ import annotations

import shutil
import tempfile
import unittest
from pathlib import Path

from render_server.utils.file_handler import RenderStorage, safe_name, safe_stem


class SafeNameTests(unittest.TestCase):
    def test_stem_drops_directories_and_extension(self) -> None:
        self.assertEqual(safe_stem("uploads/sub/robot.glb"), "robot")
        self.assertEqual(safe_stem("C:\\models\\robot arm.glb"), "robotarm")

    def test_empty_result_uses_fallback(self) -> None:
        self.assertEqual(safe_name("../..", "view"), "view")
        self.assertEqual(safe_stem(".glb"), "glb")

    def test_name_is_truncated(self) -> None:
        self.assertEqual(len(safe_name("a" * 200, "view")), 60)


class OutputPathTests(unittest.TestCase):
    def setUp(self) -> None:
        root = Path(tempfile.mkdtemp(prefix="file_handler_test_"))
        self.addCleanup(shutil.rmtree, root, True)
        self.storage = RenderStorage(str(root / "renders"), str(root / "temp"))
        self.storage.setup_directories()

    def test_label_cannot_escape_job_dir(self) -> None:
        path = self.storage.output_path("job1", "robot.glb", "../evil view", "png")
        self.assertEqual(path.name, "robot_evilview.png")
        self.assertEqual(path.parent, self.storage.renders_dir / "job1")

    def test_label_with_only_separators_falls_back(self) -> None:
        path = self.storage.output_path("job1", "robot.glb", "/../", "jpg")
        self.assertEqual(path.name, "robot_view.jpg")

    def test_plain_label_is_kept(self) -> None:
        path = self.storage.output_path("job1", "robot.glb", "front", "png")
        self.assertEqual(path.name, "robot_front.png")


if __name__ == "__main__":
    unittest.main()
