"""Attack execution, combination, and validation endpoints.

Every operation accepts a JSON body on POST or query parameters on GET.
Invalid requests raise an AttackError, which the app turns into a
``{"success": false, "error": ...}`` response before any die is rolled.
"""

from fastapi import APIRouter, Depends, Query, Request

from engine.combat import execute_attack, run_combination
from engine.dice import DiceRoller
from engine.validation import ensure_valid, summarize_attack
from models.attacks import (
    AdvantageMode,
    AttackRequest,
    AttackResult,
    AttackSummary,
    CombinationRequest,
    NumberedAttack,
)
from models.base import CamelModel

router = APIRouter()


class ExecuteResponse(CamelModel):
    """Response for a single attack."""
    success: bool = True
    attack: AttackResult


class CombinationTotals(CamelModel):
    hit_count: int
    miss_count: int
    total_damage: int
    average_damage_per_attack: float
    critical_hits: int


class CombinationPayload(CamelModel):
    attack_count: int
    attacks: list[NumberedAttack]
    summary: CombinationTotals


class CombinationResponse(CamelModel):
    """Response for a multi-attack combination."""
    success: bool = True
    combination: CombinationPayload


class ValidationPayload(CamelModel):
    is_valid: bool = True
    summary: AttackSummary


class ValidateResponse(CamelModel):
    """Response for a dry validation that passed."""
    success: bool = True
    validation: ValidationPayload


def _get_roller(request: Request) -> DiceRoller:
    """Get the shared dice roller from app state."""
    return request.app.state.roller


def _attack_query(
    skill_total: int = Query(..., alias="skillTotal"),
    bonus_modifiers: int = Query(0, alias="bonusModifiers"),
    damage_notation: str = Query(..., alias="damageNotation"),
    damage_bonus: int = Query(0, alias="damageBonus"),
    target_defense: int = Query(..., alias="targetDefense"),
    advantage_mode: AdvantageMode = Query(AdvantageMode.NORMAL, alias="advantageMode"),
) -> AttackRequest:
    """Build an AttackRequest from query parameters."""
    return AttackRequest(
        skill_total=skill_total,
        bonus_modifiers=bonus_modifiers,
        damage_notation=damage_notation,
        damage_bonus=damage_bonus,
        target_defense=target_defense,
        advantage_mode=advantage_mode,
    )


def _combination_query(
    attack_count: int = Query(..., alias="attackCount"),
    base: AttackRequest = Depends(_attack_query),
) -> CombinationRequest:
    """Build a CombinationRequest from query parameters."""
    return CombinationRequest(attack_count=attack_count, **base.model_dump())


def _execute(body: AttackRequest, request: Request) -> ExecuteResponse:
    attack = execute_attack(body, roller=_get_roller(request))
    return ExecuteResponse(attack=attack)


def _combination(body: CombinationRequest, request: Request) -> CombinationResponse:
    summary = run_combination(body, body.attack_count, roller=_get_roller(request))
    return CombinationResponse(
        combination=CombinationPayload(
            attack_count=summary.attack_count,
            attacks=summary.attacks,
            summary=CombinationTotals(
                hit_count=summary.hit_count,
                miss_count=summary.miss_count,
                total_damage=summary.total_damage,
                average_damage_per_attack=summary.average_damage_per_attack,
                critical_hits=summary.critical_hits,
            ),
        ),
    )


def _validate(body: AttackRequest) -> ValidateResponse:
    notation = ensure_valid(body)
    return ValidateResponse(validation=ValidationPayload(summary=summarize_attack(body, notation)))


@router.post("/execute", response_model=ExecuteResponse)
def execute_attack_post(body: AttackRequest, request: Request) -> ExecuteResponse:
    """Execute a single attack: attack roll, damage roll, and verdict."""
    return _execute(body, request)


@router.get("/execute", response_model=ExecuteResponse)
def execute_attack_get(
    request: Request,
    query: AttackRequest = Depends(_attack_query),
) -> ExecuteResponse:
    """Execute a single attack from query parameters."""
    return _execute(query, request)


@router.post("/combination", response_model=CombinationResponse)
def combination_post(body: CombinationRequest, request: Request) -> CombinationResponse:
    """Execute several independent attacks (e.g. a full attack action)."""
    return _combination(body, request)


@router.get("/combination", response_model=CombinationResponse)
def combination_get(
    request: Request,
    query: CombinationRequest = Depends(_combination_query),
) -> CombinationResponse:
    """Execute several independent attacks from query parameters."""
    return _combination(query, request)


@router.post("/validate", response_model=ValidateResponse)
def validate_post(body: AttackRequest) -> ValidateResponse:
    """Validate attack parameters without rolling anything."""
    return _validate(body)


@router.get("/validate", response_model=ValidateResponse)
def validate_get(query: AttackRequest = Depends(_attack_query)) -> ValidateResponse:
    """Validate attack parameters from query parameters."""
    return _validate(query)
