"""Codel grid and the translation session that paints into it.

Execution runs left to right along the lane row. Loops drop a column of
`loop_rows(depth)` codels below the lane at both brackets and connect the
bottoms of those columns with a white return row:

    lane:   [anchor] dup dup mul ... switch [branch] . body . push pointer [close] .
              white                          |                              |
    return: [anchor] white x 8               [branch] white .......... white [close]

A zero cell leaves the branch column at its bottom and slides right to
the closing column. A `pointer` of 2 at the closing column turns the
pointer around so it slides back to the anchor, where it climbs the white
column and re-enters the test.
"""
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional, Tuple

from .encoder import ColorEncoder, RGB, WHITE
from .errors import LayoutError

# rows used by the instruction glyphs; the lane starts two rows below
GLYPH_TOP = 1


class Grid:
    """Sparse (x, y) -> color map that only grows."""

    def __init__(self) -> None:
        self.cells: Dict[Tuple[int, int], RGB] = {}
        self.width = 0
        self.height = 0

    def rect(self, x: int, y: int, color: RGB, w: int = 1, h: int = 1) -> None:
        for cx in range(x, x + w):
            for cy in range(y, y + h):
                self.cells[(cx, cy)] = color
        if w > 0 and h > 0:
            self.width = max(self.width, x + w)
            self.height = max(self.height, y + h)

    def get(self, x: int, y: int) -> Optional[RGB]:
        return self.cells.get((x, y))

    def __len__(self) -> int:
        return len(self.cells)


@dataclass
class PendingLoop:
    anchor: int
    depth: int
    branch: Optional[int] = None


class Session:
    def __init__(self, max_depth: int = 0) -> None:
        self.grid = Grid()
        self.encoder = ColorEncoder()
        self.max_depth = max_depth
        self.x = 0
        self.y = 0
        self.loops: List[PendingLoop] = []

    # -- painting primitives ------------------------------------------------

    def rect(self, w: int = 1, h: int = 1, x: Optional[int] = None, y: Optional[int] = None,
             color: Optional[RGB] = None) -> None:
        self.grid.rect(
            self.x if x is None else x,
            self.y if y is None else y,
            self.encoder.color if color is None else color,
            w,
            h,
        )

    def paint(self, h: int = 1) -> None:
        self.rect(h=h)
        self.x += 1

    def white(self, h: int = 1) -> None:
        self.rect(h=h, color=WHITE)
        self.x += 1

    def emit(self, op: str, count: int = 1) -> None:
        for height, color in self.encoder.emit(op, count):
            self.rect(h=height, color=color)
            self.x += 1

    def mark(self, *lines: str) -> None:
        """Draw a white glyph above the lane starting at the cursor column."""
        for dy, line in enumerate(lines):
            for dx, ch in enumerate(line):
                if ch != " ":
                    self.rect(x=self.x + dx, y=GLYPH_TOP + dy, color=WHITE)

    @contextmanager
    def checkpoint(self) -> Iterator["Session"]:
        """Restore cursor and color state when the block exits."""
        x, y, state = self.x, self.y, self.encoder.state
        try:
            yield self
        finally:
            self.x, self.y = x, y
            self.encoder.state = state

    # -- loops --------------------------------------------------------------

    def loop_rows(self, depth: int) -> int:
        return (self.max_depth - depth) * 2 + 4

    def open_loop(self, depth: int) -> None:
        rows = self.loop_rows(depth)
        # the lane codel above the white column is painted by the next op
        self.rect(h=rows - 1, color=WHITE)
        self.rect(y=self.y + rows - 1)
        self.loops.append(PendingLoop(anchor=self.x, depth=depth))

    def branch(self, depth: int) -> None:
        if not self.loops or self.loops[-1].depth != depth or self.loops[-1].branch is not None:
            raise LayoutError(f"Loop branch at depth {depth} has no open loop")
        self.loops[-1].branch = self.x
        self.paint(self.loop_rows(depth))
        self.white()

    def close_loop(self, depth: int) -> None:
        if not self.loops:
            raise LayoutError(f"Loop close at depth {depth} has no open loop")
        loop = self.loops.pop()
        if loop.depth != depth or loop.branch is None:
            raise LayoutError(
                f"Loop close at depth {depth} does not match loop opened at column {loop.anchor} "
                f"(depth {loop.depth})"
            )
        rows = self.loop_rows(depth)
        pointer_x = self.x - 1
        self.paint(rows)
        self.white()

        row = self.y + rows - 1
        self._return_span(row, loop.branch + 1, pointer_x)
        self._return_span(row, loop.anchor + 1, loop.branch - 1)

    def _return_span(self, row: int, start: int, end: int) -> None:
        """Whiten [start, end] on `row`; it must be empty and bounded on the left."""
        if self.grid.get(start - 1, row) is None:
            raise LayoutError(f"No loop column at ({start - 1}, {row})")
        for x in range(start, end + 1):
            if self.grid.get(x, row) is not None:
                raise LayoutError(f"Loop return row {row} is already painted at column {x}")
        self.rect(w=end - start + 1, x=start, y=row, color=WHITE)

    def finish(self) -> Grid:
        if self.loops:
            raise LayoutError(f"{len(self.loops)} loop(s) left open at end of program")
        return self.grid
