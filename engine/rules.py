"""Attack rules: d20 attack rolls, damage rolls, and hit resolution."""

from __future__ import annotations

from config import CRITICAL_MULTIPLIER, CRITICAL_ROLL, FUMBLE_ROLL
from engine.dice import DiceRoller
from engine.notation import format_notation, parse_notation
from models.attacks import (
    AdvantageMode,
    AttackRollResult,
    CombatOutcome,
    DamageNotation,
    DamageRollResult,
)


def roll_attack(
    advantage_mode: AdvantageMode = AdvantageMode.NORMAL,
    skill_total: int = 0,
    bonus_modifiers: int = 0,
    roller: DiceRoller | None = None,
) -> AttackRollResult:
    """Roll to hit: d20 + skill total + bonuses.

    Advantage rolls two d20s and keeps the higher, disadvantage keeps the
    lower. Critical and fumble look only at the kept roll.

    Args:
        advantage_mode: Normal, advantage or disadvantage.
        skill_total: Skill rank + attribute bonus.
        bonus_modifiers: Additional bonuses from items/effects.
        roller: Dice source; a fresh unseeded one if omitted.

    Returns:
        AttackRollResult with every generated roll and the breakdown.
    """
    roller = roller or DiceRoller()

    if advantage_mode == AdvantageMode.NORMAL:
        rolls = [roller.roll_d20()]
        final_roll = rolls[0]
    elif advantage_mode == AdvantageMode.ADVANTAGE:
        rolls = [roller.roll_d20(), roller.roll_d20()]
        final_roll = max(rolls)
    else:
        rolls = [roller.roll_d20(), roller.roll_d20()]
        final_roll = min(rolls)

    return AttackRollResult(
        advantage_mode=advantage_mode,
        rolls_generated=rolls,
        final_roll=final_roll,
        skill_modifier=skill_total,
        bonus_modifiers=bonus_modifiers,
        total=final_roll + skill_total + bonus_modifiers,
        is_critical=final_roll == CRITICAL_ROLL,
        is_fumble=final_roll == FUMBLE_ROLL,
    )


def roll_damage(
    notation: DamageNotation | str,
    damage_bonus: int = 0,
    roller: DiceRoller | None = None,
) -> DamageRollResult:
    """Roll damage dice and add the notation bonus plus ``damage_bonus``.

    The total is not clamped here; a negative total becomes zero damage
    when the attack is resolved.
    """
    roller = roller or DiceRoller()
    if isinstance(notation, str):
        notation = parse_notation(notation)

    rolls = roller.roll_dice(notation.die_size, notation.dice_count)
    dice_total = sum(rolls)
    bonuses = notation.flat_bonus + damage_bonus

    return DamageRollResult(
        dice_notation=format_notation(notation),
        dice_rolls=rolls,
        dice_total=dice_total,
        bonuses=bonuses,
        total=dice_total + bonuses,
    )


def resolve_combat(
    attack_roll: AttackRollResult,
    damage_roll: DamageRollResult,
    target_defense: int,
) -> CombatOutcome:
    """Compare an attack against a defense and work out damage dealt.

    A fumble always misses. A natural 20 does not force a hit; it only
    multiplies damage when the total already meets the defense.
    """
    hit_margin = attack_roll.total - target_defense
    is_hit = attack_roll.total >= target_defense and not attack_roll.is_fumble
    is_critical = attack_roll.is_critical

    damage_dealt = 0
    if is_hit:
        multiplier = CRITICAL_MULTIPLIER if is_critical else 1
        damage_dealt = max(0, damage_roll.total * multiplier)

    return CombatOutcome(
        vs_defense=target_defense,
        attack_total=attack_roll.total,
        is_hit=is_hit,
        hit_margin=hit_margin,
        is_critical=is_critical,
        damage_dealt=damage_dealt,
        hit_description=hit_description(
            is_hit, hit_margin, is_critical, is_fumble=attack_roll.is_fumble,
        ),
    )


def hit_description(
    is_hit: bool,
    hit_margin: int,
    is_critical: bool,
    is_fumble: bool = False,
) -> str:
    """Human-readable verdict, e.g. 'HIT (+3 margin)' or 'MISS (off by 2)'."""
    if is_hit and is_critical:
        return f"CRITICAL HIT (+{hit_margin} margin)"
    if is_hit:
        return f"HIT (+{hit_margin} margin)"
    if is_fumble:
        return "FUMBLE (natural 1)"
    return f"MISS (off by {abs(hit_margin)})"


def advantage_description(mode: AdvantageMode) -> str:
    """Describe how many d20s a mode rolls and which one it keeps."""
    if mode == AdvantageMode.ADVANTAGE:
        return "Roll 2d20, take higher"
    if mode == AdvantageMode.DISADVANTAGE:
        return "Roll 2d20, take lower"
    return "Roll 1d20"
