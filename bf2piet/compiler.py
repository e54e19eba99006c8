"""Brainfuck -> Piet translator.

Every Brainfuck instruction becomes a fixed run of Piet instructions that
keeps the tape-as-stack layout described in `stack.py`:

    +   push(1); add
    -   push(1); sub
    >   deposit; if the tape ends here grow it by one zero cell,
        otherwise step onto the next cell and withdraw it
    <   deposit; push(1); sub; withdraw
    [   skip to the matching `]` when value * value is not > 0
    ]   go back to the matching `[`
    ,   pop; read a char (0 at end of input)
    .   dup; out(char)

The session paints each instruction as soon as it is emitted, so nothing
but the grid is kept around.
"""
import sys
from dataclasses import dataclass
from typing import List, Tuple

from .encoder import COLORS
from .errors import MalformedProgramError
from .layout import Grid, Session
from .raster import check_codel_size, png_bytes
from .stack import deposit, pick, push, withdraw

INSTRUCTIONS = {
    "+": "increment",
    "-": "decrement",
    ">": "advance-pointer",
    "<": "retreat-pointer",
    "[": "loop-open",
    "]": "loop-close",
    ",": "read",
    ".": "write",
}

# row the execution lane runs along once the initializer is done
LANE_ROW = 5


@dataclass(frozen=True)
class Instruction:
    symbol: str
    depth: int = 0


def parse(src: str) -> Tuple[List[Instruction], int]:
    """Return the instructions in `src` and the maximum loop depth.

    Both brackets of a loop carry the same 1-based depth.
    """
    code: List[Instruction] = []
    depth = max_depth = 0
    opened: List[int] = []
    for offset, ch in enumerate(src):
        if ch not in INSTRUCTIONS:
            continue
        if ch == "[":
            depth += 1
            max_depth = max(depth, max_depth)
            opened.append(offset)
            code.append(Instruction(ch, depth))
        elif ch == "]":
            if depth == 0:
                raise MalformedProgramError("Unmatched `]`", offset)
            code.append(Instruction(ch, depth))
            depth -= 1
            opened.pop()
        else:
            code.append(Instruction(ch))
    if depth != 0:
        raise MalformedProgramError(f"{depth} unclosed `[`", opened[-1])
    return code, max_depth


def _emit_prologue(session: Session) -> None:
    # builds (top) 0 3 3 and leaves the pointer heading right along the lane
    session.encoder.state = (0, 0)
    session.rect(x=0, y=0, w=2, h=2)
    session.x, session.y = 0, 0
    session.emit("push")
    session.rect(x=0, y=1)
    session.rect(x=0, y=2, w=2)
    session.x, session.y = 1, 2
    session.emit("push")
    session.x, session.y = 1, 3
    session.emit("push")
    session.x, session.y = 1, 4
    session.emit("push")
    session.rect(x=0, y=LANE_ROW, w=3)
    session.rect(x=2, y=LANE_ROW + 1)
    session.x, session.y = 2, LANE_ROW
    session.emit("sub")


def _emit_epilogue(session: Session) -> None:
    session.paint()
    session.white()
    # a 3-high block with nothing reachable around it halts the program
    session.rect(y=session.y - 1, h=3, color=COLORS[0][0])


def _emit_instruction(session: Session, insn: Instruction) -> None:
    c = insn.symbol
    if c == "+":
        session.mark(" # ", "###", " # ")
        push(session, 1)
        session.paint()
        session.paint()
        session.emit("add")
    elif c == "-":
        session.mark("", "###", "")
        push(session, 1)
        session.paint()
        session.paint()
        session.emit("sub")
    elif c == ">":
        session.mark("#", " #", "#")
        deposit(session)
        pick(session, 1)
        pick(session, 1)
        session.emit("greater")
        session.emit("switch")
        session.paint(2)
        session.white(2)
        # upper lane, entered through white: the tape ends here, append a zero cell
        session.encoder.state = (0, 0)
        with session.checkpoint():
            session.emit("pop")
            push(session, 1)
            session.emit("add")
            session.emit("dup")
            push(session, 0)
            session.paint()
            session.white()
        # lower lane: step onto the existing next cell
        session.encoder.state = (1, 0)
        session.y += 1
        push(session, 1)
        session.emit("add")
        withdraw(session)
        session.paint()
        session.white()
        session.y -= 1
        session.paint(2)
        session.white()
    elif c == "<":
        session.mark(" #", "#", " #")
        deposit(session)
        push(session, 1)
        session.emit("sub")
        withdraw(session)
    elif c == "[":
        session.mark("##", "#", "##")
        session.open_loop(insn.depth)
        session.emit("dup")
        session.emit("dup")
        session.emit("mul")
        push(session, 0)
        session.emit("greater")
        session.emit("not")
        session.emit("switch")
        session.branch(insn.depth)
    elif c == "]":
        session.mark("##", " #", "##")
        push(session, 2)
        session.emit("pointer")
        session.close_loop(insn.depth)
    elif c == ",":
        session.mark("", " #", "#")
        session.emit("pop")
        push(session, 1)
        push(session, -1)
        session.emit("in_char")
        session.emit("dup")
        push(session, -1)
        session.emit("greater")
        session.emit("switch")
        # upper lane (end of input): one add turns -1 into 0
        with session.checkpoint():
            session.paint()
            session.white()
            session.white()
        # lower lane (char read): two adds drop the -1 and 1 under it
        session.y += 1
        session.emit("add")
        session.paint()
        session.white()
        session.y -= 1
        session.emit("add", 2)
        session.paint()
        session.white()
    elif c == ".":
        session.mark("", "", "#")
        session.emit("dup")
        session.emit("out_char")
    else:
        raise RuntimeError(f"Unsupported instruction: {c!r}")


def translate(src: str) -> Grid:
    """Translate Brainfuck source text into a grid of Piet codels."""
    code, max_depth = parse(src)
    session = Session(max_depth)
    _emit_prologue(session)
    if code and code[0].symbol == "[":
        # keep the first lane column one codel high so the prologue's
        # last block exits into the lane instead of the loop column
        push(session, 1)
        session.emit("pop")
    for insn in code:
        _emit_instruction(session, insn)
    _emit_epilogue(session)
    return session.finish()


def compile_file(src_path: str, out_path: str, codel_size: int = 8) -> Grid:
    """Translate the Brainfuck file at `src_path` and write a PNG to `out_path`.

    `src_path` may be "-" for stdin. The source is read as raw bytes and
    decoded as latin-1, so any byte outside the eight instructions is a
    comment. The output file is only opened once the image bytes are
    complete.
    """
    check_codel_size(codel_size)
    if src_path == "-":
        raw = sys.stdin.buffer.read()
    else:
        with open(src_path, "rb") as f:
            raw = f.read()
    src = raw.decode("latin-1")
    grid = translate(src)
    data = png_bytes(grid, codel_size)
    with open(out_path, "wb") as f:
        f.write(data)
    return grid
