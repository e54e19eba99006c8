"""Piet color encoder.

A Piet instruction is the change in (hue, lightness) between two adjacent
color blocks. The encoder keeps the current (hue, lightness) pair, hands
out the codels to paint for an instruction, and then advances the pair by
that instruction's delta so the next block decodes to it.

Palette rows are light / normal / dark, columns are the six hues:
red, yellow, green, cyan, blue, magenta.
"""
from typing import List, Dict, Tuple

RGB = Tuple[int, int, int]


def _rgb(code: str) -> RGB:
    return (int(code[0:2], 16), int(code[2:4], 16), int(code[4:6], 16))


COLORS: List[List[RGB]] = [
    [_rgb(c) for c in ("FFC0C0", "FFFFC0", "C0FFC0", "C0FFFF", "C0C0FF", "FFC0FF")],
    [_rgb(c) for c in ("FF0000", "FFFF00", "00FF00", "00FFFF", "0000FF", "FF00FF")],
    [_rgb(c) for c in ("C00000", "C0C000", "00C000", "00C0C0", "0000C0", "C000C0")],
]
WHITE: RGB = _rgb("FFFFFF")
BLACK: RGB = _rgb("000000")

HUES = 6
LIGHTNESS = 3

# op -> (hue delta, lightness delta)
DELTAS: Dict[str, Tuple[int, int]] = {
    "push": (0, 1),
    "pop": (0, 2),
    "add": (1, 0),
    "sub": (1, 1),
    "mul": (1, 2),
    "div": (2, 0),
    "mod": (2, 1),
    "not": (2, 2),
    "greater": (3, 0),
    "pointer": (3, 1),
    "switch": (3, 2),
    "dup": (4, 0),
    "roll": (4, 1),
    "in_num": (4, 2),
    "in_char": (5, 0),
    "out_num": (5, 1),
    "out_char": (5, 2),
}

# (hue delta, lightness delta) -> op, used when decoding transitions
OPS_BY_DELTA: Dict[Tuple[int, int], str] = {delta: op for op, delta in DELTAS.items()}

# rgb -> (hue, lightness)
PALETTE_INDEX: Dict[RGB, Tuple[int, int]] = {
    color: (hue, light)
    for light, row in enumerate(COLORS)
    for hue, color in enumerate(row)
}


class ColorEncoder:
    def __init__(self, hue: int = 0, lightness: int = 0) -> None:
        self.hue = hue
        self.lightness = lightness

    @property
    def state(self) -> Tuple[int, int]:
        return (self.hue, self.lightness)

    @state.setter
    def state(self, value: Tuple[int, int]) -> None:
        hue, lightness = value
        self.hue = hue % HUES
        self.lightness = lightness % LIGHTNESS

    @property
    def color(self) -> RGB:
        return COLORS[self.lightness][self.hue]

    def advance(self, op: str) -> None:
        hue_d, light_d = DELTAS[op]
        self.hue = (self.hue + hue_d) % HUES
        self.lightness = (self.lightness + light_d) % LIGHTNESS

    def emit(self, op: str, count: int = 1) -> List[Tuple[int, RGB]]:
        """Return the (height, color) codel columns for `op`, then advance.

        `count` is the size of the block, which is what a following `push`
        reads. It is laid out as two-high columns plus one single codel
        when odd, all in the current color.
        """
        if op not in DELTAS:
            raise KeyError(f"Unknown Piet operation: {op}")
        if count < 1:
            raise ValueError(f"block size must be at least 1, got {count}")
        color = self.color
        columns = [(2, color)] * (count // 2)
        if count % 2 == 1:
            columns.append((1, color))
        self.advance(op)
        return columns


def transition(src: Tuple[int, int], dst: Tuple[int, int]) -> str:
    """Decode the op executed when moving from block `src` to block `dst`."""
    delta = ((dst[0] - src[0]) % HUES, (dst[1] - src[1]) % LIGHTNESS)
    return OPS_BY_DELTA.get(delta, "")
