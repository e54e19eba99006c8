"""Turn a codel grid into a PNG image with Pillow."""
import io
from typing import List

from PIL import Image

from .encoder import BLACK, RGB
from .errors import ConfigError
from .layout import Grid


def check_codel_size(codel_size: int) -> int:
    if isinstance(codel_size, bool) or not isinstance(codel_size, int) or codel_size <= 0:
        raise ConfigError(f"codel size must be a positive integer, got {codel_size!r}")
    return codel_size


def normalize(grid: Grid) -> List[List[RGB]]:
    """Dense rows of the grid; unset cells are black and one black row is added below."""
    height = grid.height + 1
    return [
        [grid.cells.get((x, y), BLACK) for x in range(grid.width)]
        for y in range(height)
    ]


def to_image(grid: Grid, codel_size: int = 1) -> Image.Image:
    check_codel_size(codel_size)
    rows = normalize(grid)
    width, height = grid.width, len(rows)
    img = Image.new("RGB", (width, height))
    img.putdata([color for row in rows for color in row])
    if codel_size != 1:
        img = img.resize((width * codel_size, height * codel_size), Image.Resampling.NEAREST)
    return img


def png_bytes(grid: Grid, codel_size: int = 8) -> bytes:
    buf = io.BytesIO()
    to_image(grid, codel_size).save(buf, format="PNG")
    return buf.getvalue()
