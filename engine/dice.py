"""Dice rolling for Stormsheet Server. The only source of randomness."""

import random

from config import D20_SIDES


class DiceRoller:
    """Rolls uniformly distributed dice from an injectable random source.

    Pass a seeded ``random.Random`` for reproducible rolls. Tests can also
    subclass and override :meth:`roll_die` to script exact faces.
    """

    def __init__(self, rng: random.Random | None = None) -> None:
        self.rng = rng or random.Random()

    def roll_die(self, sides: int) -> int:
        """Roll one die with faces numbered 1..sides.

        Raises:
            ValueError: If the die has fewer than 2 sides.
        """
        if sides < 2:
            raise ValueError("Dice must have at least 2 sides")
        return self.rng.randint(1, sides)

    def roll_dice(self, sides: int, count: int = 1) -> list[int]:
        """Roll ``count`` independent dice of ``sides`` faces each.

        Returns:
            The individual faces, in roll order.
        """
        if count < 1:
            raise ValueError("Must roll at least 1 die")
        return [self.roll_die(sides) for _ in range(count)]

    def roll_d20(self) -> int:
        """Roll a single d20."""
        return self.roll_die(D20_SIDES)
