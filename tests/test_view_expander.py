from __future__ import annotations

import unittest

from render_server.services.view_expander import (
    clamp_gif_timing,
    expand_views,
    turntable_views,
)


class ExpandViewsTests(unittest.TestCase):
    def test_all_expands_to_canonical_order(self) -> None:
        labels = [v.label for v in expand_views(["all"])]
        self.assertEqual(labels, ["front", "back", "left", "right", "top", "bottom"])

    def test_named_views_pass_through_unchanged(self) -> None:
        views = expand_views(["front", "custom"])
        self.assertEqual([v.label for v in views], ["front", "custom"])
        self.assertEqual([v.view for v in views], ["front", "custom"])
        self.assertTrue(all(v.angle is None for v in views))

    def test_unknown_names_never_fail(self) -> None:
        views = expand_views(["not-a-view", "diagonal"])
        self.assertEqual([v.label for v in views], ["not-a-view", "diagonal"])

    def test_all_mixed_with_names_drops_repeats(self) -> None:
        labels = [v.label for v in expand_views(["custom", "all", "front"])]
        self.assertEqual(
            labels, ["custom", "front", "back", "left", "right", "top", "bottom"]
        )

    def test_repeated_name_yields_one_output_file(self) -> None:
        labels = [v.label for v in expand_views(["front", "custom", "front"])]
        self.assertEqual(labels, ["front", "custom"])


class TurntableViewsTests(unittest.TestCase):
    def test_two_seconds_at_ten_fps(self) -> None:
        frames = turntable_views(2, 10)
        self.assertEqual(len(frames), 20)
        self.assertEqual([f.angle for f in frames], [i * 18.0 for i in range(20)])
        self.assertEqual(frames[0].angle, 0)
        self.assertEqual(frames[-1].angle, 342)
        self.assertEqual(frames[7].label, "frame_0007")
        self.assertTrue(all(f.is_rotation for f in frames))

    def test_frame_count_is_rounded(self) -> None:
        self.assertEqual(len(turntable_views(1.26, 10)), 13)

    def test_zero_frames_yields_empty_list(self) -> None:
        self.assertEqual(turntable_views(0.01, 10), [])

    def test_gif_timing_is_capped(self) -> None:
        self.assertEqual(clamp_gif_timing(5, 30), (3, 15))
        self.assertEqual(clamp_gif_timing(2, 10), (2, 10))


if __name__ == "__main__":
    unittest.main()
