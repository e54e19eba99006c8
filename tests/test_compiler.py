import pytest

from bf2piet.compiler import Instruction, LANE_ROW, parse, translate
from bf2piet.encoder import COLORS, WHITE
from bf2piet.errors import MalformedProgramError


def test_parse_ignores_comments():
    code, max_depth = parse("a+b-c>d<e,f.g")
    assert [i.symbol for i in code] == list("+-><,.")
    assert max_depth == 0
    assert all(i.depth == 0 for i in code)


def test_parse_records_bracket_depths():
    code, max_depth = parse("[[-]][+]")
    assert max_depth == 2
    assert code == [
        Instruction("[", 1),
        Instruction("[", 2),
        Instruction("-"),
        Instruction("]", 2),
        Instruction("]", 1),
        Instruction("[", 1),
        Instruction("+"),
        Instruction("]", 1),
    ]


@pytest.mark.parametrize("src,offset", [("]", 0), ("+[]]", 3), ("[[]", 0), ("x[+[]", 1)])
def test_parse_rejects_unbalanced_brackets(src, offset):
    with pytest.raises(MalformedProgramError) as exc:
        parse(src)
    assert exc.value.offset == offset


def test_unbalanced_program_is_rejected_before_painting():
    with pytest.raises(MalformedProgramError):
        translate("+++[")


def test_empty_program_has_prologue_and_halting_block():
    grid = translate("")
    # prologue occupies columns 0-2, the lane starts at column 3
    assert grid.get(0, 0) == COLORS[0][0]
    assert grid.get(2, LANE_ROW) == COLORS[1][0]
    # the sub codel, one white codel, then the 3-high halting column
    assert grid.get(3, LANE_ROW) == COLORS[2][1]
    assert grid.get(4, LANE_ROW) == WHITE
    for y in (LANE_ROW - 1, LANE_ROW, LANE_ROW + 1):
        assert grid.get(5, y) == COLORS[0][0]
    assert grid.width == 6
    assert grid.height == LANE_ROW + 2


def test_increment_is_push_block_then_add():
    grid = translate("+")
    x = 3
    push_color = grid.get(x, LANE_ROW)
    add_color = grid.get(x + 1, LANE_ROW)
    assert push_color != add_color
    # push(1) is one codel, the add block is three wide
    assert grid.get(x + 2, LANE_ROW) == add_color
    assert grid.get(x + 3, LANE_ROW) == add_color
    assert grid.get(x + 4, LANE_ROW) != add_color
    # glyph drawn above the lane
    assert grid.get(x + 1, 1) == WHITE
    assert grid.get(x, 2) == WHITE


def test_glyphs_never_touch_the_lane():
    grid = translate("+-<>[,.]")
    assert all(grid.get(x, LANE_ROW - 1) is None for x in range(3, grid.width - 1))


def test_loop_columns_share_a_return_row():
    grid = translate("+[-]")
    # one loop at max depth: 4 rows, return row three below the lane
    row = LANE_ROW + 3
    painted = sorted(x for (x, y) in grid.cells if y == row)
    assert painted == list(range(painted[0], painted[-1] + 1))
    colored = [x for x in painted if grid.get(x, row) != WHITE]
    # anchor, branch column and closing column
    assert len(colored) == 3
    anchor, branch, close = colored
    assert branch == anchor + 9
    # white column from the lane down to the anchor's return codel
    for y in range(LANE_ROW + 1, row):
        assert grid.get(anchor, y) == WHITE
    for y in range(LANE_ROW, row + 1):
        assert grid.get(branch, y) == grid.get(branch, LANE_ROW)
        assert grid.get(close, y) == grid.get(close, LANE_ROW)


def test_nested_loops_use_distinct_rows():
    grid = translate("+[>+[-]<-]")
    inner_row = LANE_ROW + 3
    outer_row = LANE_ROW + 5
    assert any(y == inner_row for (_, y) in grid.cells)
    assert any(y == outer_row for (_, y) in grid.cells)
    assert grid.height == outer_row + 1


def test_leading_loop_keeps_first_lane_column_single():
    grid = translate("[-]")
    assert grid.get(3, LANE_ROW + 1) is None


def test_translation_is_deterministic():
    src = "++[>+++[>++<-]<-]>>.,"
    assert translate(src).cells == translate(src).cells
