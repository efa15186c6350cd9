"""Tests for attack request validation and the pre-roll summary."""

import pytest

from engine.errors import InvalidNotation, NegativeSkillTotal, NonPositiveDefense
from engine.notation import parse_notation
from engine.validation import ensure_valid, summarize_attack, validate_attack
from models.attacks import AttackRequest


def _request(**overrides) -> AttackRequest:
    """Helper to create a valid attack request."""
    params = dict(
        skill_total=8,
        bonus_modifiers=2,
        damage_notation="d6+1",
        damage_bonus=0,
        target_defense=12,
    )
    params.update(overrides)
    return AttackRequest(**params)


class TestEnsureValid:
    """Tests for ensure_valid()."""

    def test_returns_parsed_notation(self):
        notation = ensure_valid(_request(damage_notation="2d6+3"))
        assert (notation.dice_count, notation.die_size, notation.flat_bonus) == (2, 6, 3)

    def test_bad_notation(self):
        with pytest.raises(InvalidNotation):
            ensure_valid(_request(damage_notation="invalid-notation"))

    def test_negative_skill(self):
        with pytest.raises(NegativeSkillTotal):
            ensure_valid(_request(skill_total=-5))

    @pytest.mark.parametrize("defense", [0, -3])
    def test_non_positive_defense(self, defense):
        with pytest.raises(NonPositiveDefense):
            ensure_valid(_request(target_defense=defense))

    def test_zero_skill_allowed(self):
        ensure_valid(_request(skill_total=0))

    def test_negative_bonuses_allowed(self):
        ensure_valid(_request(bonus_modifiers=-4, damage_bonus=-2))

    def test_notation_checked_first(self):
        with pytest.raises(InvalidNotation):
            ensure_valid(_request(damage_notation="nope", skill_total=-1, target_defense=0))

    def test_skill_checked_before_defense(self):
        with pytest.raises(NegativeSkillTotal):
            ensure_valid(_request(skill_total=-1, target_defense=0))


class TestValidateAttack:
    """Tests for validate_attack()."""

    def test_valid(self):
        result = validate_attack(_request())
        assert result.is_valid
        assert result.error is None

    def test_invalid_notation_reported(self):
        result = validate_attack(_request(damage_notation="invalid-notation"))
        assert not result.is_valid
        assert result.code == "InvalidNotation"
        assert "notation" in result.error.lower()

    def test_negative_skill_reported(self):
        result = validate_attack(_request(skill_total=-5))
        assert not result.is_valid
        assert result.code == "NegativeSkillTotal"
        assert result.error == "skillTotal cannot be negative"

    def test_idempotent(self):
        request = _request(target_defense=0)
        assert validate_attack(request) == validate_attack(request)
        assert request.target_defense == 0

    def test_request_is_immutable(self):
        request = _request()
        with pytest.raises(Exception):
            request.skill_total = 3


class TestSummarizeAttack:
    """Tests for summarize_attack()."""

    def _summary(self, **overrides):
        request = _request(**overrides)
        return summarize_attack(request, parse_notation(request.damage_notation))

    def test_attack_power(self):
        assert self._summary().attack_power == 10

    def test_damage_range(self):
        assert self._summary(damage_notation="2d6+3", damage_bonus=1).expected_damage_range == "6-16"

    def test_difficulty_bands(self):
        assert self._summary(target_defense=16).defense_difficulty == "hard"
        assert self._summary(target_defense=15).defense_difficulty == "medium"
        assert self._summary(target_defense=5).defense_difficulty == "medium"
        assert self._summary(target_defense=4).defense_difficulty == "easy"

    def test_hit_probability(self):
        assert self._summary(target_defense=12).hit_probability == 40
        assert self._summary(target_defense=10).hit_probability == 50

    def test_hit_probability_clamped(self):
        assert self._summary(target_defense=40).hit_probability == 5
        assert self._summary(target_defense=1).hit_probability == 95
        assert self._summary(skill_total=30, target_defense=1).hit_probability == 100
