"""Minimal Piet interpreter.

Used to run translated images from the command line and to check that a
translation behaves like its Brainfuck source.

The direction pointer (DP) is 0=right, 1=down, 2=left, 3=up and rotates
clockwise; the codel chooser (CC) is 0=left, 1=right, relative to DP.
Colors outside the palette are treated as white.
"""
from collections import deque
from typing import Deque, Dict, List, Optional, Tuple, Union, BinaryIO

from PIL import Image

from .encoder import BLACK, PALETTE_INDEX, RGB, WHITE, transition
from .raster import check_codel_size

DIRECTIONS = [(1, 0), (0, 1), (-1, 0), (0, -1)]
DP_NAMES = ["right", "down", "left", "up"]

# codel kinds besides (hue, lightness) pairs
WHITE_CODEL = "white"
BLACK_CODEL = None

Codel = Union[Tuple[int, int], str, None]


class Machine:
    """Value stack, DP/CC and I/O of a running Piet program."""

    def __init__(self, stdin: bytes = b"") -> None:
        self.stack: List[int] = []
        self.dp = 0
        self.cc = 0
        self.stdin: Deque[int] = deque(stdin)
        self.stdout = bytearray()

    def execute(self, op: str, size: int = 1) -> None:
        """Run one Piet operation; `size` is the block being left.

        Operations without enough operands (or dividing by zero) do nothing.
        """
        s = self.stack
        if op == "push":
            s.append(size)
        elif op == "pop":
            if s:
                s.pop()
        elif op in ("add", "sub", "mul", "div", "mod", "greater"):
            if len(s) < 2:
                return
            if op in ("div", "mod") and s[-1] == 0:
                return
            a = s.pop()
            b = s.pop()
            if op == "add":
                s.append(b + a)
            elif op == "sub":
                s.append(b - a)
            elif op == "mul":
                s.append(b * a)
            elif op == "div":
                s.append(b // a)
            elif op == "mod":
                s.append(b % a)
            else:
                s.append(1 if b > a else 0)
        elif op == "not":
            if s:
                s.append(1 if s.pop() == 0 else 0)
        elif op == "pointer":
            if s:
                self.dp = (self.dp + s.pop()) % 4
        elif op == "switch":
            if s and s.pop() % 2 == 1:
                self.cc = 1 - self.cc
        elif op == "dup":
            if s:
                s.append(s[-1])
        elif op == "roll":
            if len(s) < 2:
                return
            depth, rolls = s[-2], s[-1]
            if depth < 0 or depth > len(s) - 2:
                return
            del s[-2:]
            if depth == 0:
                return
            r = rolls % depth
            if r:
                window = s[-depth:]
                s[-depth:] = window[-r:] + window[:-r]
        elif op == "in_num":
            value = self._read_number()
            if value is not None:
                s.append(value)
        elif op == "in_char":
            if self.stdin:
                s.append(self.stdin.popleft())
        elif op == "out_num":
            if s:
                self.stdout.extend(str(s.pop()).encode("ascii"))
        elif op == "out_char":
            if s:
                self.stdout.append(s.pop() % 256)
        else:
            raise RuntimeError(f"Unknown Piet operation: {op}")

    def _read_number(self) -> Optional[int]:
        while self.stdin and chr(self.stdin[0]).isspace():
            self.stdin.popleft()
        digits = ""
        if self.stdin and self.stdin[0] == ord("-"):
            digits = "-"
            self.stdin.popleft()
        while self.stdin and chr(self.stdin[0]).isdigit():
            digits += chr(self.stdin.popleft())
        if digits in ("", "-"):
            return None
        return int(digits)


class Simulator:
    def __init__(self, codel_size: int = 1) -> None:
        self.codel_size = check_codel_size(codel_size)
        self.width = 0
        self.height = 0
        self.codels: List[List[Codel]] = []
        # (x, y) -> block id, and block id -> member codels
        self.block_of: Dict[Tuple[int, int], int] = {}
        self.blocks: List[List[Tuple[int, int]]] = []

    # -- loading ------------------------------------------------------------

    def load_image(self, source: Union[str, BinaryIO]) -> None:
        with Image.open(source) as img:
            rgb = img.convert("RGB")
        cs = self.codel_size
        width, height = rgb.size[0] // cs, rgb.size[1] // cs
        px = rgb.load()
        self.load_rows([[px[x * cs, y * cs] for x in range(width)] for y in range(height)])

    def load_rows(self, rows: List[List[RGB]]) -> None:
        self.height = len(rows)
        self.width = len(rows[0]) if rows else 0
        self.codels = [[self._classify(tuple(c)) for c in row] for row in rows]
        self._build_blocks()

    @staticmethod
    def _classify(color: RGB) -> Codel:
        if color == BLACK:
            return BLACK_CODEL
        if color == WHITE:
            return WHITE_CODEL
        return PALETTE_INDEX.get(color, WHITE_CODEL)

    def _build_blocks(self) -> None:
        self.block_of = {}
        self.blocks = []
        for y in range(self.height):
            for x in range(self.width):
                kind = self.codels[y][x]
                if not isinstance(kind, tuple) or (x, y) in self.block_of:
                    continue
                bid = len(self.blocks)
                members = []
                todo = [(x, y)]
                self.block_of[(x, y)] = bid
                while todo:
                    cx, cy = todo.pop()
                    members.append((cx, cy))
                    for dx, dy in DIRECTIONS:
                        nx, ny = cx + dx, cy + dy
                        if (nx, ny) not in self.block_of and self._kind(nx, ny) == kind:
                            self.block_of[(nx, ny)] = bid
                            todo.append((nx, ny))
                self.blocks.append(members)

    def _kind(self, x: int, y: int) -> Codel:
        if 0 <= x < self.width and 0 <= y < self.height:
            return self.codels[y][x]
        return BLACK_CODEL

    # -- stepping -----------------------------------------------------------

    def _edge_codel(self, members: List[Tuple[int, int]], dp: int, cc: int) -> Tuple[int, int]:
        dx, dy = DIRECTIONS[dp]
        far = max(x * dx + y * dy for x, y in members)
        edge = [(x, y) for x, y in members if x * dx + y * dy == far]
        # CC left of DP is DP rotated counter-clockwise
        lx, ly = (dy, -dx) if cc == 0 else (-dy, dx)
        return max(edge, key=lambda c: c[0] * lx + c[1] * ly)

    def _slide(self, machine: Machine, x: int, y: int) -> Optional[Tuple[int, int]]:
        """Move straight through white from (x, y); None if trapped."""
        seen = set()
        while True:
            state = (x, y, machine.dp, machine.cc)
            if state in seen:
                return None
            seen.add(state)
            dx, dy = DIRECTIONS[machine.dp]
            kind = self._kind(x + dx, y + dy)
            if kind is BLACK_CODEL:
                machine.cc = 1 - machine.cc
                machine.dp = (machine.dp + 1) % 4
                continue
            x, y = x + dx, y + dy
            if kind != WHITE_CODEL:
                return (x, y)

    def _step(self, machine: Machine, pos: Tuple[int, int]) -> Tuple[Optional[Tuple[int, int]], str]:
        """Leave the block at `pos`; returns (new position or None when halted, op)."""
        members = self.blocks[self.block_of[pos]]
        src = self.codels[pos[1]][pos[0]]
        for attempt in range(8):
            ex, ey = self._edge_codel(members, machine.dp, machine.cc)
            dx, dy = DIRECTIONS[machine.dp]
            nx, ny = ex + dx, ey + dy
            kind = self._kind(nx, ny)
            if kind is BLACK_CODEL:
                if attempt % 2 == 0:
                    machine.cc = 1 - machine.cc
                else:
                    machine.dp = (machine.dp + 1) % 4
                continue
            if kind == WHITE_CODEL:
                return self._slide(machine, nx, ny), ""
            op = transition(src, kind)
            if op:
                machine.execute(op, len(members))
            return (nx, ny), op
        return None, ""

    def _start(self) -> Tuple[int, int]:
        if not self.blocks or (0, 0) not in self.block_of:
            raise RuntimeError("Program must start with a colored codel at the top-left corner")
        return (0, 0)

    def run(self, stdin: bytes = b"", max_steps: int = 1000000) -> bytes:
        machine = Machine(stdin)
        pos: Optional[Tuple[int, int]] = self._start()
        steps = 0
        while pos is not None:
            if steps >= max_steps:
                raise RuntimeError(f"Program did not halt within {max_steps} steps")
            pos, _ = self._step(machine, pos)
            steps += 1
        return bytes(machine.stdout)

    def trace_run(self, stdin: bytes = b"", max_steps: int = 100000) -> Tuple[bytes, List[str]]:
        """Run while recording one log line per block transition.

        On error the last 20 trace lines are appended to the message.
        """
        machine = Machine(stdin)
        logs: List[str] = []
        pos: Optional[Tuple[int, int]] = self._start()
        steps = 0
        try:
            while pos is not None:
                if steps >= max_steps:
                    raise RuntimeError("Trace exceeded max_steps")
                before = pos
                pos, op = self._step(machine, pos)
                logs.append(
                    f"step={steps} at={before} op={op or '-'} dp={DP_NAMES[machine.dp]} "
                    f"cc={'right' if machine.cc else 'left'} stack={list(reversed(machine.stack))}"
                )
                steps += 1
            return bytes(machine.stdout), logs
        except RuntimeError as e:
            tail = "\n--- TRACE (last 20 entries) ---\n" + "\n".join(logs[-20:])
            raise RuntimeError(str(e) + tail) from e
