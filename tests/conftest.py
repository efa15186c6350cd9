"""Shared fixtures: a dice roller that returns scripted faces."""

import pytest

from engine.dice import DiceRoller


class ScriptedRoller(DiceRoller):
    """Returns faces from a fixed list, in order, and records each die's sides."""

    def __init__(self, faces: list[int]) -> None:
        super().__init__()
        self.faces = list(faces)
        self.sides_rolled: list[int] = []

    def roll_die(self, sides: int) -> int:
        if not self.faces:
            raise AssertionError("ScriptedRoller ran out of faces")
        face = self.faces.pop(0)
        assert 1 <= face <= sides, f"Scripted face {face} does not fit a d{sides}"
        self.sides_rolled.append(sides)
        return face


@pytest.fixture
def scripted():
    """Factory: ``scripted(20, 4, 3)`` builds a roller yielding those faces."""
    return lambda *faces: ScriptedRoller(list(faces))
