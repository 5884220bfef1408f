# services/view_expander.py

"""
View expansion - turns requested view names and turntable timing into
concrete camera placements
"""

from typing import List, Tuple

from render_server.models.render import ViewDescriptor

ALL_VIEWS = "all"
CANONICAL_VIEWS = ("front", "back", "left", "right", "top", "bottom")


def expand_views(requested: List[str]) -> List[ViewDescriptor]:
    """Resolve named views. Never fails: unknown names surface at capture time.

    A repeated name is kept once (first occurrence) since every view is written
    to <stem>_<view>.<ext>; two captures of one name would overwrite each other.
    """
    names = []
    for name in requested:
        if name == ALL_VIEWS:
            names.extend(CANONICAL_VIEWS)
        else:
            names.append(name)

    seen = set()
    views = []
    for name in names:
        if name in seen:
            continue
        seen.add(name)
        views.append(ViewDescriptor(label=name, view=name))
    return views


def turntable_frame_count(duration: float, fps: int) -> int:
    return int(round(duration * fps))


def turntable_views(duration: float, fps: int) -> List[ViewDescriptor]:
    """One descriptor per frame of a full revolution."""
    total_frames = turntable_frame_count(duration, fps)
    if total_frames <= 0:
        return []

    angle_step = 360 / total_frames
    return [
        ViewDescriptor(label=f"frame_{i:04d}", angle=i * angle_step)
        for i in range(total_frames)
    ]


def clamp_gif_timing(duration: float, fps: int, max_duration: float = 3.0,
                     max_fps: int = 15) -> Tuple[float, int]:
    return min(duration, max_duration), min(fps, max_fps)
