"""Attack request and roll result models for Stormsheet Server."""

from enum import Enum

from pydantic import ConfigDict

from models.base import CamelModel


class AdvantageMode(str, Enum):
    """How many d20s an attack rolls and which one it keeps."""
    NORMAL = "normal"
    ADVANTAGE = "advantage"             # Roll two, keep the higher
    DISADVANTAGE = "disadvantage"       # Roll two, keep the lower


class AttackRequest(CamelModel):
    """Parameters of a single attack. Ranges are checked by the validator."""
    model_config = ConfigDict(frozen=True)

    skill_total: int                    # Skill rank + attribute bonus
    bonus_modifiers: int = 0            # From items, effects, etc.
    damage_notation: str                # e.g. "2d6+3"
    damage_bonus: int = 0               # Added on top of the notation bonus
    target_defense: int
    advantage_mode: AdvantageMode = AdvantageMode.NORMAL


class CombinationRequest(AttackRequest):
    """An attack repeated ``attack_count`` times with the same parameters."""
    attack_count: int


class DamageNotation(CamelModel):
    """Parsed damage dice expression."""
    dice_count: int
    die_size: int
    flat_bonus: int = 0

    def __str__(self) -> str:
        text = f"{self.dice_count}d{self.die_size}"
        if self.flat_bonus:
            text += f"{self.flat_bonus:+d}"
        return text


class AttackRollResult(CamelModel):
    """Outcome of the d20 attack roll."""
    advantage_mode: AdvantageMode
    rolls_generated: list[int]          # One roll, or two under (dis)advantage
    final_roll: int                     # The kept roll
    skill_modifier: int
    bonus_modifiers: int
    total: int                          # final_roll + both modifiers, unclamped
    is_critical: bool                   # Natural 20
    is_fumble: bool                     # Natural 1


class DamageRollResult(CamelModel):
    """Outcome of the damage dice, before hit/critical adjustments."""
    dice_notation: str                  # Canonical form of the parsed notation
    dice_rolls: list[int]
    dice_total: int
    bonuses: int                        # Notation bonus + damage bonus
    total: int                          # May be negative; clamped on resolution


class CombatOutcome(CamelModel):
    """Verdict of an attack roll against a defense."""
    vs_defense: int
    attack_total: int
    is_hit: bool
    hit_margin: int                     # attack_total - vs_defense
    is_critical: bool
    damage_dealt: int
    hit_description: str


class AttackResult(CamelModel):
    """A fully resolved attack."""
    attack_roll: AttackRollResult
    damage_roll: DamageRollResult
    combat: CombatOutcome


class NumberedAttack(AttackResult):
    """One attack within a combination; ``number`` starts at 1."""
    number: int


class CombinationSummary(CamelModel):
    """Aggregate of several independent attacks."""
    attack_count: int
    attacks: list[NumberedAttack]       # In roll order
    hit_count: int
    miss_count: int
    total_damage: int
    average_damage_per_attack: float
    critical_hits: int                  # Attacks that were both critical and a hit


class AttackSummary(CamelModel):
    """Pre-roll estimate shown alongside a successful validation."""
    attack_power: int
    expected_damage_range: str          # "min-max"
    defense_difficulty: str             # "easy", "medium" or "hard"
    hit_probability: int                # Percent


class ValidationResult(CamelModel):
    """Result of a dry validation. ``error``/``code`` are set when invalid."""
    is_valid: bool
    error: str | None = None
    code: str | None = None
