"""Attack orchestration: validate, roll, resolve, and aggregate."""

from __future__ import annotations

import logging

from engine.dice import DiceRoller
from engine.errors import InvalidAttackCount
from engine.rules import resolve_combat, roll_attack, roll_damage
from engine.validation import ensure_valid
from models.attacks import (
    AttackRequest,
    AttackResult,
    CombinationSummary,
    DamageNotation,
    NumberedAttack,
)

logger = logging.getLogger("stormsheet.attacks")


def _resolve(
    request: AttackRequest,
    notation: DamageNotation,
    roller: DiceRoller,
) -> AttackResult:
    """Roll one attack and its damage, then resolve them together."""
    attack_roll = roll_attack(
        request.advantage_mode,
        skill_total=request.skill_total,
        bonus_modifiers=request.bonus_modifiers,
        roller=roller,
    )
    # Damage is always rolled; resolution decides whether it lands.
    damage_roll = roll_damage(notation, request.damage_bonus, roller=roller)
    combat = resolve_combat(attack_roll, damage_roll, request.target_defense)
    return AttackResult(attack_roll=attack_roll, damage_roll=damage_roll, combat=combat)


def execute_attack(request: AttackRequest, roller: DiceRoller | None = None) -> AttackResult:
    """Validate and resolve a single attack.

    Args:
        request: The attack parameters.
        roller: Dice source; a fresh unseeded one if omitted.

    Returns:
        AttackResult with the attack roll, damage roll and verdict.

    Raises:
        AttackError: If the request is invalid. No dice are rolled.
    """
    notation = ensure_valid(request)
    result = _resolve(request, notation, roller or DiceRoller())
    logger.debug(
        f"Attack total {result.attack_roll.total} vs {request.target_defense}: "
        f"{result.combat.hit_description}"
    )
    return result


def run_combination(
    request: AttackRequest,
    attack_count: int,
    roller: DiceRoller | None = None,
) -> CombinationSummary:
    """Make ``attack_count`` independent attacks with the same parameters.

    Each attack draws fresh dice; nothing carries over between attacks.

    Args:
        request: The attack parameters shared by every attack.
        attack_count: How many attacks to make (at least 1).
        roller: Dice source; a fresh unseeded one if omitted.

    Returns:
        CombinationSummary with every attack in roll order and the totals.

    Raises:
        AttackError: If the request or the count is invalid. No dice are rolled.
    """
    notation = ensure_valid(request)
    if isinstance(attack_count, bool) or not isinstance(attack_count, int) or attack_count < 1:
        raise InvalidAttackCount("Invalid attackCount: must be a positive integer")

    roller = roller or DiceRoller()
    attacks: list[NumberedAttack] = []
    hit_count = 0
    critical_hits = 0
    total_damage = 0

    for number in range(1, attack_count + 1):
        result = _resolve(request, notation, roller)
        attacks.append(NumberedAttack(
            number=number,
            attack_roll=result.attack_roll,
            damage_roll=result.damage_roll,
            combat=result.combat,
        ))
        if result.combat.is_hit:
            hit_count += 1
            if result.combat.is_critical:
                critical_hits += 1
        total_damage += result.combat.damage_dealt

    logger.debug(f"Combination of {attack_count}: {hit_count} hits, {total_damage} damage")
    return CombinationSummary(
        attack_count=attack_count,
        attacks=attacks,
        hit_count=hit_count,
        miss_count=attack_count - hit_count,
        total_damage=total_damage,
        average_damage_per_attack=total_damage / attack_count,
        critical_hits=critical_hits,
    )
