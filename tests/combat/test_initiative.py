"""Tests for initiative rolls, turn order and next-turn lookup."""

from unittest.mock import patch

from rpg_supreme.combat.initiative import (
    calculate_initiative,
    check_surprise,
    format_turn_order,
    get_next_turn,
    roll_initiative,
)
from rpg_supreme.models import Attributes, Combatant, StatusEffect


def make(name: str, is_player: bool = False, hp: int = 20, **attrs) -> Combatant:
    return Combatant(
        id=name,
        name=name,
        is_player=is_player,
        current_hp=hp,
        max_hp=20,
        current_stamina=10,
        max_stamina=10,
        current_mana=0,
        max_mana=0,
        attributes=Attributes(**attrs),
    )


# ── roll_initiative ──────────────────────────────────────────


class TestRollInitiative:
    def test_dex_modifier_and_luck(self) -> None:
        c = make("hero", is_player=True, dexterity=14, luck=15)
        with patch("random.randint", return_value=10):
            roll = roll_initiative(c)
        assert roll.base_roll == 10
        assert roll.dex_modifier == 2
        assert roll.bonuses == 1
        assert roll.total == 13

    def test_ambush_bonus_only_for_enemies(self) -> None:
        hero = make("hero", is_player=True)
        rat = make("rat")
        with patch("random.randint", return_value=10):
            assert roll_initiative(hero, is_ambush=True).total == 10
            assert roll_initiative(rat, is_ambush=True).total == 15

    def test_alert_and_slow_effects(self) -> None:
        c = make("hero", is_player=True)
        c.status_effects.append(StatusEffect(name="alert", type="buff", duration=2))
        with patch("random.randint", return_value=10):
            assert roll_initiative(c).total == 15
        c.status_effects = [StatusEffect(name="slow", type="debuff", duration=2)]
        with patch("random.randint", return_value=10):
            assert roll_initiative(c).total == 6

    def test_total_never_below_one(self) -> None:
        c = make("clumsy", dexterity=1, luck=1)
        with patch("random.randint", return_value=1):
            assert roll_initiative(c).total == 1


# ── calculate_initiative ─────────────────────────────────────


def test_order_by_total_descending():
    slow, fast = make("slow"), make("fast")
    with patch("random.randint", side_effect=[5, 15]):
        order = calculate_initiative([slow, fast])
    assert [c.id for c in order] == ["fast", "slow"]
    assert fast.initiative == 15
    assert slow.initiative == 5


def test_ties_broken_by_dexterity():
    # dex 11 and 10 share the same modifier, so totals tie
    a, b = make("a", dexterity=10), make("b", dexterity=11)
    with patch("random.randint", return_value=10):
        order = calculate_initiative([a, b])
    assert [c.id for c in order] == ["b", "a"]


# ── get_next_turn ────────────────────────────────────────────


class TestGetNextTurn:
    def test_simple_advance(self) -> None:
        order = [make("a"), make("b"), make("c")]
        assert get_next_turn(order, 0) == (1, False)

    def test_wraps_into_new_round(self) -> None:
        order = [make("a"), make("b")]
        assert get_next_turn(order, 1) == (0, True)

    def test_skips_dead_and_disabled(self) -> None:
        dead = make("dead", hp=0)
        stuck = make("stuck")
        stuck.can_act = False
        order = [make("a"), dead, stuck, make("d")]
        assert get_next_turn(order, 0) == (3, False)

    def test_nobody_can_act(self) -> None:
        order = [make("a", hp=0), make("b", hp=0)]
        assert get_next_turn(order, 0) == (-1, False)

    def test_stunned_combatants_do_not_count_as_able(self) -> None:
        a = make("a")
        a.status_effects.append(StatusEffect(name="Aturdido", type="cc", duration=1))
        order = [a, make("b", hp=0)]
        assert get_next_turn(order, 0) == (-1, False)


# ── helpers ──────────────────────────────────────────────────


def test_check_surprise():
    attacker, defender = make("sneak"), make("guard")
    with patch("random.randint", side_effect=[20, 1]):
        check = check_surprise(attacker, defender)
    assert check.surprised is True
    assert check.attacker_bonus == 10

    with patch("random.randint", side_effect=[10, 10]):
        check = check_surprise(attacker, defender)
    assert check.surprised is False
    assert check.attacker_bonus == 0


def test_format_turn_order():
    hero = make("Aria", is_player=True)
    hero.initiative = 14
    rat = make("Rata")
    rat.initiative = 9
    text = format_turn_order([hero, rat], 1)
    assert text == " 👤 Aria (14) → ►👾 Rata (9)"
