"""Layered layout of the step graph.

Each step gets a rank (longest path from a step with no dependencies) and a
track index (its position among the steps of the same rank, in recipe
order). Steps sharing a rank are the ones that can run side by side.
"""

from __future__ import annotations

import logging
from collections import deque
from typing import Dict, List, Tuple

from recipegraph.errors import CycleError, DanglingReferenceError
from recipegraph.graph.model import StepGraph
from recipegraph.models.dto import StepPlacement

logger = logging.getLogger(__name__)

GraphLayout = Dict[str, StepPlacement]

NODE_WIDTH = 280
NODE_HEIGHT = 100
TRACK_GAP = 40
RANK_GAP = 60


def compute_layout(graph: StepGraph) -> GraphLayout:
    """Rank every step with Kahn's algorithm.

    Raises DanglingReferenceError or CycleError for graphs that were not
    validated first.
    """
    step_ids = graph.all_step_ids()
    for sid in step_ids:
        for dep in graph.predecessors_of(sid):
            if dep not in graph:
                raise DanglingReferenceError(sid, dep)

    remaining = {sid: graph.in_degree(sid) for sid in step_ids}
    rank = {sid: 0 for sid in step_ids}
    queue = deque(sid for sid in step_ids if remaining[sid] == 0)
    ordered = 0
    while queue:
        sid = queue.popleft()
        ordered += 1
        for succ in graph.successors_of(sid):
            rank[succ] = max(rank[succ], rank[sid] + 1)
            remaining[succ] -= 1
            if remaining[succ] == 0:
                queue.append(succ)

    if ordered < len(step_ids):
        stuck = [sid for sid in step_ids if remaining[sid] > 0]
        logger.warning("Layout aborted: %d steps are part of or behind a cycle", len(stuck))
        raise CycleError(stuck)

    layout: GraphLayout = {}
    next_track: Dict[int, int] = {}
    for sid in step_ids:
        r = rank[sid]
        layout[sid] = StepPlacement(rank=r, track_index=next_track.get(r, 0))
        next_track[r] = next_track.get(r, 0) + 1
    return layout


def tracks(layout: GraphLayout) -> List[List[str]]:
    """Step ids grouped by rank, each group ordered by track index."""
    if not layout:
        return []
    depth = max(p.rank for p in layout.values()) + 1
    rows: List[List[str]] = [[] for _ in range(depth)]
    for sid, placement in sorted(layout.items(), key=lambda kv: (kv[1].rank, kv[1].track_index)):
        rows[placement.rank].append(sid)
    return rows


def max_parallelism(layout: GraphLayout) -> int:
    return max((len(row) for row in tracks(layout)), default=0)


def layout_coordinates(
    layout: GraphLayout,
    node_width: int = NODE_WIDTH,
    node_height: int = NODE_HEIGHT,
    track_gap: int = TRACK_GAP,
    rank_gap: int = RANK_GAP,
) -> Dict[str, Tuple[float, float]]:
    """Top-left (x, y) per step for a top-to-bottom drawing.

    Ranks run downwards; each rank is centered on the widest one.
    """
    rows = tracks(layout)
    if not rows:
        return {}
    widest = max(len(row) for row in rows)
    full_width = widest * node_width + (widest - 1) * track_gap
    coords: Dict[str, Tuple[float, float]] = {}
    for r, row in enumerate(rows):
        row_width = len(row) * node_width + (len(row) - 1) * track_gap
        offset = (full_width - row_width) / 2
        y = float(r * (node_height + rank_gap))
        for i, sid in enumerate(row):
            coords[sid] = (offset + i * (node_width + track_gap), y)
    return coords
