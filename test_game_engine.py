"""
Yahtzee Rules Test Suite

Covers the shared data model and the scoring engine. Every rule has both
positive tests (what scores) and negative tests (what does not).

Sections:
    1. Dice: values, immutability, rolling, holding
    2. Scoring Rules: every category's formula, positive and negative cases
    3. Joker: fixed lower scores, forced upper fill, free choice
    4. Possible Scores: the table offered for a roll
    5. Scorecard: upper/lower sections, bonuses, grand total
"""
import itertools
import random

import pytest

from game_engine import (
    Category, DieState, Player, Scorecard,
    NUM_DICE, UPPER_CATEGORIES, LOWER_CATEGORIES, DEFAULT_DIE_VALUE,
    count_values, dice_values, earns_yahtzee_bonus, forced_joker_category,
    fresh_dice, has_full_house, has_large_straight, has_n_of_kind,
    has_small_straight, has_yahtzee, is_joker_active, longest_run,
    possible_scores, score_category, selectable_categories,
)


# ── Helpers ──────────────────────────────────────────────────────────────────

def card_with(**scores):
    """Scorecard with categories filled by enum name, e.g. YAHTZEE=50."""
    card = Scorecard()
    for name, score in scores.items():
        card = card.with_score(Category[name], score)
    return card


# ═══════════════════════════════════════════════════════════════════════════════
# 1. DICE
#    Rule: Each die has a value from 1 to 6 and a held/unheld status.
#    Rule: Held dice never change on a roll.
# ═══════════════════════════════════════════════════════════════════════════════

class TestDieState:

    def test_die_defaults_to_unheld(self):
        assert DieState(value=4).held is False

    def test_die_is_immutable(self):
        die = DieState(value=3)
        with pytest.raises(AttributeError):
            die.value = 6

    def test_rolling_unheld_die_produces_every_face(self):
        rng = random.Random(0)
        die = DieState(value=1)
        seen = {die.roll(rng).value for _ in range(200)}
        assert seen == {1, 2, 3, 4, 5, 6}

    def test_rolling_held_die_preserves_value(self):
        rng = random.Random(1)
        for v in range(1, 7):
            die = DieState(value=v, held=True)
            assert die.roll(rng) is die

    def test_toggle_held_preserves_value(self):
        die = DieState(value=6).toggle_held()
        assert die.held is True
        assert die.value == 6
        assert die.toggle_held().held is False

    def test_fresh_dice_are_five_unheld_defaults(self):
        dice = fresh_dice()
        assert len(dice) == NUM_DICE
        assert all(d.value == DEFAULT_DIE_VALUE and not d.held for d in dice)

    def test_dice_values_keeps_order(self):
        dice = tuple(DieState(v) for v in (6, 1, 4, 1, 2))
        assert dice_values(dice) == (6, 1, 4, 1, 2)

    def test_player_other(self):
        assert Player.USER.other is Player.AI
        assert Player.AI.other is Player.USER


# ═══════════════════════════════════════════════════════════════════════════════
# 2. SCORING RULES
# ═══════════════════════════════════════════════════════════════════════════════

class TestUpperSection:

    @pytest.mark.parametrize("face,category", list(enumerate(UPPER_CATEGORIES, start=1)))
    def test_upper_is_face_times_count(self, face, category):
        for count in range(NUM_DICE + 1):
            other = 1 if face != 1 else 2
            values = [face] * count + [other] * (NUM_DICE - count)
            assert score_category(category, values) == face * count

    def test_ones(self):
        assert score_category(Category.ONES, [1, 2, 1, 4, 5]) == 2
        assert score_category(Category.ONES, [2, 3, 4, 5, 6]) == 0

    def test_threes_five_of_a_kind(self):
        assert score_category(Category.THREES, [3, 3, 3, 3, 3]) == 15


class TestNOfAKind:

    def test_three_of_a_kind_sums_all_dice(self):
        assert score_category(Category.THREE_OF_KIND, [3, 3, 3, 4, 5]) == 18

    def test_three_of_a_kind_needs_three(self):
        assert score_category(Category.THREE_OF_KIND, [3, 3, 2, 4, 5]) == 0

    def test_three_of_a_kind_accepts_four(self):
        assert score_category(Category.THREE_OF_KIND, [6, 6, 6, 6, 1]) == 25

    def test_four_of_a_kind(self):
        assert score_category(Category.FOUR_OF_KIND, [5, 5, 5, 5, 2]) == 22
        assert score_category(Category.FOUR_OF_KIND, [5, 5, 5, 2, 2]) == 0

    def test_four_of_a_kind_accepts_five(self):
        assert score_category(Category.FOUR_OF_KIND, [2, 2, 2, 2, 2]) == 10

    def test_has_n_of_kind(self):
        assert has_n_of_kind([4, 4, 4, 1, 2], 3)
        assert not has_n_of_kind([4, 4, 4, 1, 2], 4)


class TestFullHouse:

    def test_three_and_two(self):
        assert score_category(Category.FULL_HOUSE, [2, 2, 3, 3, 3]) == 25

    def test_two_pair_is_not_full_house(self):
        assert score_category(Category.FULL_HOUSE, [2, 2, 3, 3, 4]) == 0

    def test_five_of_a_kind_is_natural_full_house(self):
        assert score_category(Category.FULL_HOUSE, [5, 5, 5, 5, 5]) == 25

    def test_four_and_one_is_not_full_house(self):
        assert not has_full_house([5, 5, 5, 5, 2])

    def test_joker_gives_full_house_on_anything(self):
        assert score_category(Category.FULL_HOUSE, [1, 2, 3, 4, 6], joker_active=True) == 25


class TestStraights:

    def test_small_straight_with_gap_die(self):
        assert score_category(Category.SMALL_STRAIGHT, [1, 2, 3, 4, 6]) == 30

    def test_small_straight_with_duplicate(self):
        assert score_category(Category.SMALL_STRAIGHT, [2, 3, 4, 5, 2]) == 30

    def test_small_straight_high_run(self):
        assert score_category(Category.SMALL_STRAIGHT, [1, 3, 4, 5, 6]) == 30

    def test_small_straight_broken_run(self):
        assert score_category(Category.SMALL_STRAIGHT, [1, 2, 3, 5, 6]) == 0

    def test_large_straight_counts_as_small(self):
        assert has_small_straight([1, 2, 3, 4, 5])

    def test_large_straight_low_and_high(self):
        assert score_category(Category.LARGE_STRAIGHT, [1, 2, 3, 4, 5]) == 40
        assert score_category(Category.LARGE_STRAIGHT, [6, 5, 4, 3, 2]) == 40

    def test_large_straight_needs_five(self):
        assert score_category(Category.LARGE_STRAIGHT, [1, 2, 3, 4, 6]) == 0
        assert not has_large_straight([1, 2, 3, 4, 4])

    def test_longest_run(self):
        assert longest_run([1, 2, 3, 5, 6]) == [1, 2, 3]
        assert longest_run([6, 4, 5, 3, 3]) == [3, 4, 5, 6]
        assert longest_run([2, 2, 2, 2, 2]) == [2]

    def test_joker_gives_both_straights(self):
        values = [4, 4, 4, 4, 4]
        assert score_category(Category.SMALL_STRAIGHT, values, joker_active=True) == 30
        assert score_category(Category.LARGE_STRAIGHT, values, joker_active=True) == 40


class TestYahtzeeAndChance:

    def test_yahtzee(self):
        assert score_category(Category.YAHTZEE, [6, 6, 6, 6, 6]) == 50

    def test_almost_yahtzee(self):
        assert score_category(Category.YAHTZEE, [6, 6, 6, 6, 5]) == 0
        assert not has_yahtzee([6, 6, 6, 6, 5])

    def test_chance_sums(self):
        assert score_category(Category.CHANCE, [1, 2, 3, 4, 5]) == 15
        assert score_category(Category.CHANCE, [6, 6, 6, 6, 6]) == 30

    def test_joker_does_not_change_sum_categories(self):
        values = [3, 3, 3, 3, 3]
        assert score_category(Category.CHANCE, values, joker_active=True) == 15
        assert score_category(Category.THREE_OF_KIND, values, joker_active=True) == 15
        assert score_category(Category.THREES, values, joker_active=True) == 15


class TestScoringIsPure:

    @pytest.mark.parametrize("values", [
        (1, 2, 3, 4, 6), (2, 2, 3, 3, 3), (5, 5, 5, 5, 2), (6, 1, 6, 1, 6),
    ])
    def test_order_of_dice_does_not_matter(self, values):
        for category in Category:
            expected = score_category(category, values)
            for perm in itertools.permutations(values):
                assert score_category(category, perm) == expected

    def test_rejects_wrong_dice_count(self):
        with pytest.raises(ValueError):
            score_category(Category.CHANCE, [1, 2, 3, 4])

    def test_rejects_out_of_range_face(self):
        with pytest.raises(ValueError):
            score_category(Category.CHANCE, [1, 2, 3, 4, 7])

    def test_count_values(self):
        assert count_values([1, 1, 6, 6, 6]) == {1: 2, 6: 3}


# ═══════════════════════════════════════════════════════════════════════════════
# 3. JOKER
#    Rule: A Yahtzee rolled with the Yahtzee box already filled is a Joker.
#    Rule: The matching upper box must be filled first if it is open.
# ═══════════════════════════════════════════════════════════════════════════════

class TestJoker:

    def test_not_active_without_yahtzee_box(self):
        assert not is_joker_active([4, 4, 4, 4, 4], Scorecard())

    def test_active_after_scratched_yahtzee(self):
        assert is_joker_active([4, 4, 4, 4, 4], card_with(YAHTZEE=0))

    def test_not_active_without_five_of_a_kind(self):
        assert not is_joker_active([4, 4, 4, 4, 3], card_with(YAHTZEE=50))

    def test_forced_category_is_matching_upper(self):
        card = card_with(YAHTZEE=50)
        assert forced_joker_category([4, 4, 4, 4, 4], card) == Category.FOURS

    def test_no_forced_category_when_upper_filled(self):
        card = card_with(YAHTZEE=50, FOURS=8)
        assert forced_joker_category([4, 4, 4, 4, 4], card) is None

    def test_bonus_only_with_fifty_in_box(self):
        values = [2, 2, 2, 2, 2]
        assert earns_yahtzee_bonus(values, card_with(YAHTZEE=50))
        assert not earns_yahtzee_bonus(values, card_with(YAHTZEE=0))
        assert not earns_yahtzee_bonus(values, Scorecard())
        assert not earns_yahtzee_bonus([2, 2, 2, 2, 3], card_with(YAHTZEE=50))


# ═══════════════════════════════════════════════════════════════════════════════
# 4. POSSIBLE SCORES
# ═══════════════════════════════════════════════════════════════════════════════

class TestPossibleScores:

    def test_all_categories_in_order(self):
        scores = possible_scores([1, 2, 3, 4, 6], Scorecard())
        assert list(scores) == list(Category)

    def test_four_of_a_kind_hand(self):
        scores = possible_scores([5, 5, 5, 5, 2], Scorecard())
        assert scores[Category.FOUR_OF_KIND] == 22
        assert scores[Category.FULL_HOUSE] == 0
        assert scores[Category.YAHTZEE] == 0
        assert scores[Category.FIVES] == 20

    def test_mandatory_joker_fill_offers_only_upper(self):
        card = card_with(YAHTZEE=50)
        assert possible_scores([4, 4, 4, 4, 4], card) == {Category.FOURS: 20}

    def test_joker_free_choice_uses_fixed_scores(self):
        card = card_with(YAHTZEE=50, FOURS=12)
        scores = possible_scores([4, 4, 4, 4, 4], card)
        assert len(scores) == 13
        assert scores[Category.FULL_HOUSE] == 25
        assert scores[Category.SMALL_STRAIGHT] == 30
        assert scores[Category.LARGE_STRAIGHT] == 40
        assert scores[Category.CHANCE] == 20
        assert scores[Category.THREE_OF_KIND] == 20

    def test_first_yahtzee_is_not_a_joker(self):
        scores = possible_scores([3, 3, 3, 3, 3], Scorecard())
        assert scores[Category.YAHTZEE] == 50
        assert scores[Category.SMALL_STRAIGHT] == 0
        assert scores[Category.LARGE_STRAIGHT] == 0

    def test_filled_categories_still_computed(self):
        card = card_with(CHANCE=12)
        scores = possible_scores([6, 6, 5, 5, 4], card)
        assert scores[Category.CHANCE] == 26
        assert Category.CHANCE not in selectable_categories(scores, card)

    def test_selectable_excludes_every_filled(self):
        card = card_with(ONES=1, TWOS=4, YAHTZEE=0)
        scores = possible_scores([1, 2, 3, 4, 5], card)
        selectable = selectable_categories(scores, card)
        assert len(selectable) == 10
        assert not any(card.is_filled(c) for c in selectable)


# ═══════════════════════════════════════════════════════════════════════════════
# 5. SCORECARD
# ═══════════════════════════════════════════════════════════════════════════════

class TestScorecard:

    def test_empty_card(self):
        card = Scorecard()
        assert card.get_grand_total() == 0
        assert not card.is_complete()
        assert card.open_categories() == list(Category)

    def test_upper_bonus_at_63(self):
        card = card_with(ONES=3, TWOS=6, THREES=9, FOURS=12, FIVES=15, SIXES=18)
        assert card.get_upper_section_total() == 63
        assert card.get_upper_section_bonus() == 35

    def test_no_upper_bonus_at_62(self):
        card = card_with(ONES=2, TWOS=6, THREES=9, FOURS=12, FIVES=15, SIXES=18)
        assert card.get_upper_section_total() == 62
        assert card.get_upper_section_bonus() == 0

    def test_upper_bonus_from_partial_section(self):
        # Unfilled upper boxes count as 0, not as missing
        card = card_with(FOURS=20, FIVES=25, SIXES=30)
        assert card.get_upper_section_bonus() == 35

    def test_filled_category_is_never_overwritten(self):
        card = card_with(CHANCE=22)
        assert card.with_score(Category.CHANCE, 5).scores[Category.CHANCE] == 22

    def test_with_score_does_not_mutate(self):
        card = Scorecard()
        card.with_score(Category.ONES, 3)
        assert not card.is_filled(Category.ONES)

    def test_grand_total_includes_everything(self):
        card = card_with(ONES=3, TWOS=6, THREES=9, FOURS=12, FIVES=15, SIXES=18,
                         YAHTZEE=50, CHANCE=20)
        card = card.with_yahtzee_bonus().with_yahtzee_bonus()
        assert card.yahtzee_bonuses() == 200
        assert card.get_lower_section_total() == 70
        assert card.get_grand_total() == 63 + 35 + 70 + 200

    def test_complete_card(self):
        card = Scorecard()
        for cat in UPPER_CATEGORIES + LOWER_CATEGORIES:
            card = card.with_score(cat, 0)
        assert card.is_complete()
        assert card.filled_categories() == list(Category)
