"""
Yahtzee Game Engine - Rules and scoring without any UI dependencies

This module holds the shared data model (categories, dice, scorecards, players)
and the scoring engine. Everything here is a pure function of its inputs or an
immutable value, so the rules can be unit tested without a front end.
"""
from dataclasses import dataclass, replace
from typing import Dict, Optional, Sequence, Tuple
from enum import Enum
from collections import Counter


NUM_DICE = 5
MAX_ROLLS = 3
DEFAULT_DIE_VALUE = 1

UPPER_BONUS = 35
UPPER_BONUS_THRESHOLD = 63
YAHTZEE_BONUS = 100

FULL_HOUSE_SCORE = 25
SMALL_STRAIGHT_SCORE = 30
LARGE_STRAIGHT_SCORE = 40
YAHTZEE_SCORE = 50


class Category(Enum):
    """Yahtzee score categories, in scorecard order"""
    ONES = "Ones"
    TWOS = "Twos"
    THREES = "Threes"
    FOURS = "Fours"
    FIVES = "Fives"
    SIXES = "Sixes"
    THREE_OF_KIND = "3 of a Kind"
    FOUR_OF_KIND = "4 of a Kind"
    FULL_HOUSE = "Full House"
    SMALL_STRAIGHT = "Small Straight"
    LARGE_STRAIGHT = "Large Straight"
    YAHTZEE = "Yahtzee"
    CHANCE = "Chance"


UPPER_CATEGORIES = (
    Category.ONES, Category.TWOS, Category.THREES,
    Category.FOURS, Category.FIVES, Category.SIXES,
)

LOWER_CATEGORIES = (
    Category.THREE_OF_KIND, Category.FOUR_OF_KIND,
    Category.FULL_HOUSE, Category.SMALL_STRAIGHT,
    Category.LARGE_STRAIGHT, Category.YAHTZEE, Category.CHANCE,
)

FACE_TO_UPPER = {face: cat for face, cat in enumerate(UPPER_CATEGORIES, start=1)}
UPPER_TO_FACE = {cat: face for face, cat in FACE_TO_UPPER.items()}

# Lower categories whose fixed score is granted outright by a Joker
JOKER_CATEGORIES = {
    Category.FULL_HOUSE: FULL_HOUSE_SCORE,
    Category.SMALL_STRAIGHT: SMALL_STRAIGHT_SCORE,
    Category.LARGE_STRAIGHT: LARGE_STRAIGHT_SCORE,
}


class Player(Enum):
    """The two seats at the table"""
    USER = "user"
    AI = "ai"

    @property
    def other(self) -> 'Player':
        """The player who moves after this one"""
        return Player.AI if self is Player.USER else Player.USER


class Scorecard:
    """Manages one player's Yahtzee scorecard"""

    def __init__(self):
        """Initialize an empty scorecard"""
        # Dictionary to store scores for each category (None = not filled)
        self.scores: Dict[Category, Optional[int]] = {category: None for category in Category}
        self.yahtzee_bonus_count = 0

    def is_filled(self, category):
        """Check if a category has been filled"""
        return self.scores[category] is not None

    def filled_categories(self):
        """Categories that already hold a score, in scorecard order"""
        return [cat for cat in Category if self.is_filled(cat)]

    def open_categories(self):
        """Categories still waiting for a score, in scorecard order"""
        return [cat for cat in Category if not self.is_filled(cat)]

    def yahtzee_bonuses(self):
        """Calculate total Yahtzee bonus points (+100 per additional Yahtzee)."""
        return self.yahtzee_bonus_count * YAHTZEE_BONUS

    def get_upper_section_total(self):
        """Calculate total for upper section, counting unfilled boxes as 0"""
        return sum(self.scores[cat] or 0 for cat in UPPER_CATEGORIES)

    def get_upper_section_bonus(self):
        """Calculate bonus (35 points if upper section >= 63)"""
        return UPPER_BONUS if self.get_upper_section_total() >= UPPER_BONUS_THRESHOLD else 0

    def get_lower_section_total(self):
        """Calculate total for lower section, counting unfilled boxes as 0"""
        return sum(self.scores[cat] or 0 for cat in LOWER_CATEGORIES)

    def get_grand_total(self):
        """Calculate grand total including both bonuses"""
        return (self.get_upper_section_total() +
                self.get_upper_section_bonus() +
                self.get_lower_section_total() +
                self.yahtzee_bonuses())

    def is_complete(self):
        """Check if all categories are filled"""
        return all(score is not None for score in self.scores.values())

    def copy(self):
        """Create a deep copy of the scorecard"""
        new_card = Scorecard()
        new_card.scores = self.scores.copy()
        new_card.yahtzee_bonus_count = self.yahtzee_bonus_count
        return new_card

    def with_score(self, category, score):
        """Return new Scorecard with score set for category.

        A filled category is never overwritten; the copy is returned unchanged.
        """
        new_card = self.copy()
        if not new_card.is_filled(category):
            new_card.scores[category] = score
        return new_card

    def with_yahtzee_bonus(self):
        """Return new Scorecard with one more Yahtzee bonus recorded"""
        new_card = self.copy()
        new_card.yahtzee_bonus_count += 1
        return new_card


# ── Dice ─────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class DieState:
    """Pure representation of a single die's state - immutable.

    A die's identity is its position (0-4) in the dice tuple.
    """
    value: int  # 1-6
    held: bool = False

    def roll(self, rng) -> 'DieState':
        """Return new DieState with a random face from rng (if not held)"""
        if self.held:
            return self
        return replace(self, value=rng.randint(1, 6))

    def toggle_held(self) -> 'DieState':
        """Return new DieState with held status toggled"""
        return replace(self, held=not self.held)


def fresh_dice() -> Tuple[DieState, ...]:
    """Five unheld dice showing the default face, as at the start of a turn"""
    return tuple(DieState(value=DEFAULT_DIE_VALUE) for _ in range(NUM_DICE))


def dice_values(dice) -> Tuple[int, ...]:
    """Face values of a dice tuple, in die order"""
    return tuple(die.value for die in dice)


# ── Pattern helpers ──────────────────────────────────────────────────────────

def _check_values(values: Sequence[int]) -> None:
    if len(values) != NUM_DICE:
        raise ValueError(f"expected {NUM_DICE} dice, got {len(values)}")
    for v in values:
        if not 1 <= v <= 6:
            raise ValueError(f"die value out of range: {v}")


def count_values(values):
    """
    Count occurrences of each die value

    Args:
        values: Sequence of die face values

    Returns:
        Counter object with die values as keys
    """
    return Counter(values)


def has_n_of_kind(values, n):
    """True if at least n dice show the same value"""
    return max(count_values(values).values()) >= n


def has_yahtzee(values):
    """True if all five dice match"""
    return has_n_of_kind(values, NUM_DICE)


def has_full_house(values):
    """
    Check if dice form a full house

    Three of one value plus two of a different value. Five of a kind also
    counts as a natural full house.

    Args:
        values: Sequence of die face values

    Returns:
        True if dice form a full house
    """
    counts = sorted(count_values(values).values(), reverse=True)
    return counts == [3, 2] or counts == [5]


def longest_run(values):
    """Return the longest run of consecutive distinct faces, as a sorted list"""
    unique = sorted(set(values))
    best = []
    current = unique[:1]
    for v in unique[1:]:
        if v == current[-1] + 1:
            current.append(v)
        else:
            if len(current) > len(best):
                best = current
            current = [v]
    if len(current) > len(best):
        best = current
    return best


def has_small_straight(values):
    """True if the distinct faces contain a run of at least 4"""
    return len(longest_run(values)) >= 4


def has_large_straight(values):
    """True if the distinct faces are exactly 1-5 or 2-6"""
    unique = sorted(set(values))
    return unique in ([1, 2, 3, 4, 5], [2, 3, 4, 5, 6])


# ── Scoring engine ───────────────────────────────────────────────────────────

def score_category(category, values, joker_active=False):
    """
    Calculate the score for a given category and dice

    Args:
        category: Category enum value
        values: Sequence of five die face values
        joker_active: When True, Full House and both straights score their
            fixed value regardless of the dice pattern

    Returns:
        Integer score for the category (0 if doesn't qualify)

    Raises:
        ValueError: if values is not five faces in 1-6
    """
    _check_values(values)
    total = sum(values)
    counts = count_values(values)

    # Upper section - sum of matching dice
    if category in UPPER_TO_FACE:
        face = UPPER_TO_FACE[category]
        return counts[face] * face

    if joker_active and category in JOKER_CATEGORIES:
        return JOKER_CATEGORIES[category]

    if category == Category.THREE_OF_KIND:
        return total if has_n_of_kind(values, 3) else 0
    elif category == Category.FOUR_OF_KIND:
        return total if has_n_of_kind(values, 4) else 0
    elif category == Category.FULL_HOUSE:
        return FULL_HOUSE_SCORE if has_full_house(values) else 0
    elif category == Category.SMALL_STRAIGHT:
        return SMALL_STRAIGHT_SCORE if has_small_straight(values) else 0
    elif category == Category.LARGE_STRAIGHT:
        return LARGE_STRAIGHT_SCORE if has_large_straight(values) else 0
    elif category == Category.YAHTZEE:
        return YAHTZEE_SCORE if has_yahtzee(values) else 0
    elif category == Category.CHANCE:
        return total

    return 0


def is_joker_active(values, scorecard):
    """A Yahtzee rolled after the Yahtzee box is filled (with 50 or a scratch)"""
    return has_yahtzee(values) and scorecard.is_filled(Category.YAHTZEE)


def forced_joker_category(values, scorecard):
    """Return the upper category a Joker roll must fill, or None.

    Only set while the Joker is active and the upper box matching the rolled
    face is still open.
    """
    if not is_joker_active(values, scorecard):
        return None
    matching_upper = FACE_TO_UPPER[values[0]]
    if scorecard.is_filled(matching_upper):
        return None
    return matching_upper


def earns_yahtzee_bonus(values, scorecard):
    """True if committing these dice adds a +100 Yahtzee bonus"""
    return has_yahtzee(values) and scorecard.scores[Category.YAHTZEE] == YAHTZEE_SCORE


def possible_scores(values, scorecard):
    """Table of what each category would score with these dice.

    Under the mandatory Joker fill the table holds only the forced upper
    category. Otherwise all 13 categories are present, including filled ones
    (for display); callers must still refuse filled categories.

    Args:
        values: Sequence of five die face values
        scorecard: The scoring player's Scorecard

    Returns:
        Dict of Category -> score, in scorecard order
    """
    _check_values(values)
    forced = forced_joker_category(values, scorecard)
    if forced is not None:
        return {forced: score_category(forced, values)}

    joker = is_joker_active(values, scorecard)
    return {cat: score_category(cat, values, joker) for cat in Category}


def selectable_categories(scores, scorecard):
    """Categories from a possible-scores table that may actually be committed"""
    return [cat for cat in scores if not scorecard.is_filled(cat)]
