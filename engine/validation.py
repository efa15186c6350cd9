"""Pre-flight checks for attack requests. Nothing here rolls dice."""

from __future__ import annotations

from config import (
    BASE_HIT_CHANCE,
    DIFFICULTY_MARGIN,
    HIT_CHANCE_PER_POINT,
    MAX_HIT_CHANCE,
    MIN_HIT_CHANCE,
)
from engine.errors import AttackError, NegativeSkillTotal, NonPositiveDefense
from engine.notation import damage_range, parse_notation
from models.attacks import AttackRequest, AttackSummary, DamageNotation, ValidationResult


def ensure_valid(request: AttackRequest) -> DamageNotation:
    """Check an attack request, stopping at the first failed rule.

    Rules run in order: damage notation parses, skill total is
    non-negative, target defense is positive.

    Args:
        request: The attack parameters.

    Returns:
        The parsed damage notation, so callers need not parse it again.

    Raises:
        InvalidNotation, NegativeSkillTotal, NonPositiveDefense
    """
    notation = parse_notation(request.damage_notation)
    if request.skill_total < 0:
        raise NegativeSkillTotal("skillTotal cannot be negative")
    if request.target_defense < 1:
        raise NonPositiveDefense("targetDefense must be a positive number")
    return notation


def validate_attack(request: AttackRequest) -> ValidationResult:
    """Dry-run validation. Never raises and never mutates the request.

    This is the non-raising entry point for in-process callers. The HTTP
    layer calls :func:`ensure_valid` instead, because it needs the parsed
    notation and lets the app's exception handlers build the failure body.
    """
    try:
        ensure_valid(request)
    except AttackError as e:
        return ValidationResult(is_valid=False, error=e.message, code=e.code)
    return ValidationResult(is_valid=True)


def summarize_attack(request: AttackRequest, notation: DamageNotation) -> AttackSummary:
    """Estimate how an attack is likely to go against its target.

    Args:
        request: A request that has already passed validation.
        notation: Its parsed damage notation.
    """
    attack_power = request.skill_total + request.bonus_modifiers
    defense = request.target_defense

    if defense > attack_power + DIFFICULTY_MARGIN:
        difficulty = "hard"
    elif defense < attack_power - DIFFICULTY_MARGIN:
        difficulty = "easy"
    else:
        difficulty = "medium"

    chance = BASE_HIT_CHANCE + (attack_power - defense) * HIT_CHANCE_PER_POINT
    chance = min(MAX_HIT_CHANCE, max(MIN_HIT_CHANCE, chance))

    low, high = damage_range(notation, request.damage_bonus)
    return AttackSummary(
        attack_power=attack_power,
        expected_damage_range=f"{low}-{high}",
        defense_difficulty=difficulty,
        hit_probability=chance,
    )
