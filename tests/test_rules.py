"""Tests for attack rules: attack rolls, damage rolls, hit resolution."""

import random

import pytest

from engine.dice import DiceRoller
from engine.notation import parse_notation
from engine.rules import (
    advantage_description,
    hit_description,
    resolve_combat,
    roll_attack,
    roll_damage,
)
from models.attacks import AdvantageMode


def _damage(total: int, scripted):
    """Damage roll with a known total from a single d20 face (total 1-20 only)."""
    return roll_damage("d20", roller=scripted(total))


class TestRollAttack:
    """Tests for roll_attack()."""

    def test_normal_rolls_once(self, scripted):
        result = roll_attack(AdvantageMode.NORMAL, 8, 2, roller=scripted(11))
        assert result.rolls_generated == [11]
        assert result.final_roll == 11
        assert result.total == 11 + 8 + 2
        assert result.skill_modifier == 8
        assert result.bonus_modifiers == 2

    def test_advantage_takes_higher(self, scripted):
        result = roll_attack(AdvantageMode.ADVANTAGE, roller=scripted(5, 14))
        assert result.rolls_generated == [5, 14]
        assert result.final_roll == 14

    def test_disadvantage_takes_lower(self, scripted):
        result = roll_attack(AdvantageMode.DISADVANTAGE, roller=scripted(5, 14))
        assert result.rolls_generated == [5, 14]
        assert result.final_roll == 5

    @pytest.mark.parametrize("mode", [AdvantageMode.ADVANTAGE, AdvantageMode.DISADVANTAGE])
    def test_tied_rolls(self, mode, scripted):
        result = roll_attack(mode, roller=scripted(9, 9))
        assert result.final_roll == 9

    def test_natural_twenty_is_critical(self, scripted):
        result = roll_attack(AdvantageMode.NORMAL, roller=scripted(20))
        assert result.is_critical
        assert not result.is_fumble

    def test_natural_one_is_fumble(self, scripted):
        result = roll_attack(AdvantageMode.NORMAL, 30, roller=scripted(1))
        assert result.is_fumble
        assert not result.is_critical
        assert result.total == 31

    def test_critical_uses_kept_roll_only(self, scripted):
        """A 20 discarded by disadvantage is not a critical."""
        result = roll_attack(AdvantageMode.DISADVANTAGE, roller=scripted(20, 7))
        assert result.final_roll == 7
        assert not result.is_critical

    def test_fumble_uses_kept_roll_only(self, scripted):
        result = roll_attack(AdvantageMode.ADVANTAGE, roller=scripted(1, 12))
        assert result.final_roll == 12
        assert not result.is_fumble

    def test_total_not_clamped(self, scripted):
        result = roll_attack(AdvantageMode.NORMAL, 0, -10, roller=scripted(3))
        assert result.total == -7

    def test_mode_echoed(self, scripted):
        result = roll_attack(AdvantageMode.ADVANTAGE, roller=scripted(3, 4))
        assert result.advantage_mode == AdvantageMode.ADVANTAGE

    @pytest.mark.parametrize("mode,count", [
        (AdvantageMode.NORMAL, 1),
        (AdvantageMode.ADVANTAGE, 2),
        (AdvantageMode.DISADVANTAGE, 2),
    ])
    def test_roll_count_and_selection_seeded(self, mode, count):
        roller = DiceRoller(random.Random(42))
        for _ in range(50):
            result = roll_attack(mode, 4, 1, roller=roller)
            assert len(result.rolls_generated) == count
            assert all(1 <= r <= 20 for r in result.rolls_generated)
            if mode == AdvantageMode.DISADVANTAGE:
                assert result.final_roll == min(result.rolls_generated)
            else:
                assert result.final_roll == max(result.rolls_generated)
            assert result.total == result.final_roll + 4 + 1


class TestRollDamage:
    """Tests for roll_damage()."""

    def test_dice_and_bonuses(self, scripted):
        roller = scripted(4, 6)
        result = roll_damage(parse_notation("2d6+3"), damage_bonus=2, roller=roller)
        assert result.dice_rolls == [4, 6]
        assert result.dice_total == 10
        assert result.bonuses == 5
        assert result.total == 15
        assert roller.sides_rolled == [6, 6]

    def test_accepts_string_notation(self, scripted):
        result = roll_damage("d8", roller=scripted(5))
        assert result.dice_notation == "1d8"
        assert result.total == 5

    def test_negative_total_kept(self, scripted):
        result = roll_damage("d4-3", damage_bonus=-2, roller=scripted(1))
        assert result.total == -4

    def test_seeded_rolls_in_range(self):
        roller = DiceRoller(random.Random(3))
        result = roll_damage("4d10", roller=roller)
        assert len(result.dice_rolls) == 4
        assert all(1 <= r <= 10 for r in result.dice_rolls)
        assert result.total == sum(result.dice_rolls)


class TestResolveCombat:
    """Tests for resolve_combat()."""

    def test_hit_when_total_meets_defense(self, scripted):
        attack = roll_attack(AdvantageMode.NORMAL, 2, roller=scripted(10))
        outcome = resolve_combat(attack, _damage(6, scripted), 12)
        assert outcome.is_hit
        assert outcome.hit_margin == 0
        assert outcome.damage_dealt == 6
        assert outcome.vs_defense == 12
        assert outcome.attack_total == 12

    def test_miss_deals_no_damage(self, scripted):
        attack = roll_attack(AdvantageMode.NORMAL, 2, roller=scripted(9))
        outcome = resolve_combat(attack, _damage(6, scripted), 12)
        assert not outcome.is_hit
        assert outcome.hit_margin == -1
        assert outcome.damage_dealt == 0

    def test_fumble_always_misses(self, scripted):
        attack = roll_attack(AdvantageMode.NORMAL, 50, roller=scripted(1))
        outcome = resolve_combat(attack, _damage(6, scripted), 5)
        assert not outcome.is_hit
        assert outcome.damage_dealt == 0
        assert outcome.hit_margin == 46
        assert outcome.hit_description == "FUMBLE (natural 1)"

    def test_critical_doubles_bonused_damage(self, scripted):
        attack = roll_attack(AdvantageMode.NORMAL, roller=scripted(20))
        damage = roll_damage("d6+2", damage_bonus=1, roller=scripted(4))
        outcome = resolve_combat(attack, damage, 15)
        assert outcome.is_hit
        assert outcome.is_critical
        assert outcome.damage_dealt == (4 + 2 + 1) * 2

    def test_natural_twenty_does_not_force_hit(self, scripted):
        attack = roll_attack(AdvantageMode.NORMAL, roller=scripted(20))
        outcome = resolve_combat(attack, _damage(6, scripted), 25)
        assert outcome.is_critical
        assert not outcome.is_hit
        assert outcome.damage_dealt == 0

    def test_negative_damage_clamped(self, scripted):
        attack = roll_attack(AdvantageMode.NORMAL, 5, roller=scripted(15))
        damage = roll_damage("d4-5", roller=scripted(2))
        outcome = resolve_combat(attack, damage, 10)
        assert outcome.is_hit
        assert outcome.damage_dealt == 0


class TestHitDescription:
    """Tests for hit_description()."""

    def test_critical_hit(self):
        assert hit_description(True, 4, True) == "CRITICAL HIT (+4 margin)"

    def test_hit(self):
        assert hit_description(True, 0, False) == "HIT (+0 margin)"

    def test_miss_by_one(self):
        assert hit_description(False, -1, False) == "MISS (off by 1)"

    def test_miss(self):
        assert hit_description(False, -6, False) == "MISS (off by 6)"

    def test_critical_miss_reads_as_miss(self):
        assert hit_description(False, -3, True) == "MISS (off by 3)"


class TestAdvantageDescription:

    def test_descriptions(self):
        assert advantage_description(AdvantageMode.NORMAL) == "Roll 1d20"
        assert advantage_description(AdvantageMode.ADVANTAGE) == "Roll 2d20, take higher"
        assert advantage_description(AdvantageMode.DISADVANTAGE) == "Roll 2d20, take lower"
