"""Damage dice notation: ``[count]d<size>[(+|-)bonus]``, e.g. 'd6', '2d6+3', 'd20-1'."""

import re

from config import MIN_DIE_SIZE
from engine.errors import InvalidNotation
from models.attacks import DamageNotation

NOTATION_PATTERN = re.compile(r"^(\d*)d(\d+)([+-]\d+)?$")


def parse_notation(text: str) -> DamageNotation:
    """Parse damage notation into its parts.

    Whitespace anywhere in the text is ignored and matching is
    case-insensitive. The dice count defaults to 1.

    Args:
        text: Notation string (e.g. "2d6+3").

    Returns:
        DamageNotation with dice count, die size and flat bonus.

    Raises:
        InvalidNotation: If the text does not match the grammar, or the
            count or die size is out of range.
    """
    if not isinstance(text, str):
        raise InvalidNotation(f"Invalid damage notation: {text!r}")

    compact = "".join(text.split()).lower()
    match = NOTATION_PATTERN.match(compact)
    if not match:
        raise InvalidNotation(f"Invalid damage notation: {text}")

    dice_count = int(match.group(1)) if match.group(1) else 1
    die_size = int(match.group(2))
    flat_bonus = int(match.group(3)) if match.group(3) else 0

    if dice_count < 1:
        raise InvalidNotation(f"Invalid damage notation: {text} (must roll at least 1 die)")
    if die_size < MIN_DIE_SIZE:
        raise InvalidNotation(
            f"Invalid damage notation: {text} (dice must have at least {MIN_DIE_SIZE} sides)"
        )

    return DamageNotation(dice_count=dice_count, die_size=die_size, flat_bonus=flat_bonus)


def format_notation(notation: DamageNotation) -> str:
    """Render notation in canonical form: '2d6+3', '1d6', '1d20-1'."""
    return str(notation)


def damage_range(notation: DamageNotation, damage_bonus: int = 0) -> tuple[int, int]:
    """Smallest and largest damage total the notation can produce, floored at 0."""
    bonus = notation.flat_bonus + damage_bonus
    low = notation.dice_count + bonus
    high = notation.dice_count * notation.die_size + bonus
    return max(0, low), max(0, high)
