"""
转向指令测试
"""

import pytest

from indoor_nav.grid.grid_model import Cell
from indoor_nav.navigation.instructions import (
    Instruction, InstructionConfig, InstructionGenerator,
    bearing, classify, normalize180, normalize360, required_heading
)

EAST_ROW = (Cell(0, 0), Cell(1, 0), Cell(2, 0), Cell(3, 0))


@pytest.fixture
def generator():
    return InstructionGenerator()


@pytest.mark.parametrize('diff, expected', [
    (0.0, Instruction.STRAIGHT),
    (29.9, Instruction.STRAIGHT),
    (-29.9, Instruction.STRAIGHT),
    (30.0, Instruction.RIGHT),
    (149.9, Instruction.RIGHT),
    (-30.0, Instruction.LEFT),
    (-149.9, Instruction.LEFT),
    (150.0, Instruction.TURN_AROUND),
    (-150.0, Instruction.TURN_AROUND),
    (180.0, Instruction.TURN_AROUND),
])
def test_classify(diff, expected):
    assert classify(diff) is expected


def test_classify_custom_thresholds():
    config = InstructionConfig(straight_tolerance=10.0, turn_limit=170.0)
    assert classify(15.0, config) is Instruction.RIGHT
    assert classify(160.0, config) is Instruction.RIGHT


def test_normalize():
    assert normalize360(-90.0) == 270.0
    assert normalize360(720.0) == 0.0
    assert 0.0 <= normalize360(-1e-20) < 360.0
    assert normalize180(270.0) == -90.0
    assert normalize180(-180.0) == 180.0
    assert normalize180(180.0) == 180.0


def test_bearing_and_required_heading():
    """y 轴向下：东 0°、南 90°、西 180°、北 270°"""
    origin = Cell(5, 5)
    assert bearing(origin, Cell(6, 5)) == pytest.approx(0.0)
    assert bearing(origin, Cell(5, 6)) == pytest.approx(90.0)
    assert bearing(origin, Cell(4, 5)) == pytest.approx(180.0)
    assert bearing(origin, Cell(5, 4)) == pytest.approx(270.0)

    assert required_heading(0.0) == pytest.approx(90.0)
    assert required_heading(90.0) == pytest.approx(0.0)
    assert required_heading(180.0) == pytest.approx(270.0)
    assert required_heading(270.0) == pytest.approx(180.0)


@pytest.mark.parametrize('heading, expected', [
    (90.0, Instruction.STRAIGHT),
    (100.0, Instruction.STRAIGHT),
    (0.0, Instruction.RIGHT),
    (180.0, Instruction.LEFT),
    (270.0, Instruction.TURN_AROUND),
])
def test_east_leg(generator, heading, expected):
    """向东走时需要航向 90°"""
    assert generator.next_instruction(EAST_ROW, Cell(1, 0), heading) is expected


def test_heading_difference(generator):
    assert generator.heading_difference(EAST_ROW, Cell(0, 0), 60.0) == pytest.approx(30.0)
    assert generator.heading_difference(EAST_ROW, Cell(0, 0), 120.0) == pytest.approx(-30.0)


def test_no_instruction_cases(generator):
    # 已在最后一格
    assert generator.next_instruction(EAST_ROW, Cell(3, 0), 90.0) is None
    # 偏离路径
    assert generator.next_instruction(EAST_ROW, Cell(1, 1), 90.0) is None
    # 空路径
    assert generator.next_instruction((), Cell(0, 0), 90.0) is None
    assert generator.next_instruction(EAST_ROW, None, 90.0) is None


def test_phrases():
    assert Instruction.STRAIGHT.phrase == 'Continue straight'
    assert Instruction.RIGHT.phrase == 'Turn right'
    assert Instruction.LEFT.phrase == 'Turn left'
    assert Instruction.TURN_AROUND.phrase == 'Turn around'
