"""
Yahtzee AI - the bot's hold and scoring heuristics, and a synchronous turn driver.

Contains:
- Action types (RollAction, ScoreAction)
- Hold rules and choose_hold()
- Category weight rules and choose_category()
- choose_action(), play_turn() and play_game()
- The pool of bot names
"""
import logging
from dataclasses import dataclass
from typing import Optional, Tuple, Union

from collections import Counter

from game_engine import (
    Category, NUM_DICE, UPPER_TO_FACE, FACE_TO_UPPER, YAHTZEE_SCORE,
    FULL_HOUSE_SCORE, dice_values, longest_run, possible_scores,
)
from game_session import (
    GameState, roll_dice, select_category, set_holds, start_game,
)

logger = logging.getLogger(__name__)

AI_NAMES = (
    "Titan", "Behemoth", "Vanguard", "Strider", "Nemesis",
    "Apex", "Quantum", "Cipher", "Alpha", "Omega",
    "Sentinel", "Maverick", "Vortex", "Zenith", "Goliath",
    "Phantom", "Thunder", "Blaze", "Warlord", "Shadow",
)


def random_ai_name(rng) -> str:
    """Draw the bot's name from the shared random source."""
    return rng.choice(AI_NAMES)


# ── Action Types ────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class RollAction:
    """Hold specific dice and re-roll the rest."""
    hold: Tuple[int, ...]  # dice indices (0-4) to hold; rest get rolled
    reason: str = ""


@dataclass(frozen=True)
class ScoreAction:
    """Lock in a score for a category."""
    category: Category
    reason: str = ""


# ── Hold rules ──────────────────────────────────────────────────────────────
#
# Each rule looks at the dice values and scorecard and either returns
# (hold_indices, reason) or None to pass to the next rule. The first rule
# that answers wins.

def _indices_showing(values, faces):
    return tuple(i for i, v in enumerate(values) if v in faces)


def format_run(run):
    return "-".join(str(v) for v in run)


def hold_n_of_a_kind(values, scorecard, rolls_left):
    """Four or five of a kind: keep them and push for Yahtzee."""
    for face, count in Counter(values).items():
        if count >= 4:
            return _indices_showing(values, {face}), f"Holding the {face}s, going for Yahtzee"
    return None


def hold_straight(values, scorecard, rolls_left):
    """A run of four or more with a straight still open: keep the run."""
    if (scorecard.is_filled(Category.SMALL_STRAIGHT)
            and scorecard.is_filled(Category.LARGE_STRAIGHT)):
        return None
    run = longest_run(values)
    if len(run) >= 4:
        return _indices_showing(values, set(run)), f"Holding {format_run(run)}, going for a straight"
    return None


def face_priority(face, count, scorecard):
    """How attractive it is to keep every die showing this face."""
    priority = 0
    if count >= 3:
        priority += 10
    if count == 2:
        priority += 5
    if not scorecard.is_filled(FACE_TO_UPPER[face]):
        priority += 2
        # 4s, 5s and 6s carry the upper bonus
        if face >= 4:
            priority += 3
    if count >= 2 and (not scorecard.is_filled(Category.THREE_OF_KIND)
                       or not scorecard.is_filled(Category.FOUR_OF_KIND)):
        priority += 2
    return priority


def hold_best_value(values, scorecard, rolls_left):
    """Keep the face with the best priority, if it scores at least 5."""
    best_face = 0
    best_priority = 0
    for face, count in sorted(Counter(values).items()):
        priority = face_priority(face, count, scorecard)
        if priority > best_priority:
            best_priority = priority
            best_face = face
        elif priority == best_priority and face > best_face:
            best_face = face

    if best_priority >= 5 and best_face > 0:
        return _indices_showing(values, {best_face}), f"Holding the {best_face}s"
    return None


def hold_high_fallback(values, scorecard, rolls_left):
    """Keep 6s and 5s whose upper boxes are open; otherwise re-roll everything."""
    faces = set()
    if not scorecard.is_filled(Category.SIXES):
        faces.add(6)
    if not scorecard.is_filled(Category.FIVES):
        faces.add(5)
    hold = _indices_showing(values, faces)
    if hold:
        return hold, "Nothing promising, keeping the high dice"
    return (), "Nothing worth keeping, rolling everything"


HOLD_RULES = (
    hold_n_of_a_kind,
    hold_straight,
    hold_best_value,
    hold_high_fallback,
)


def choose_hold_with_reason(values, scorecard, rolls_left):
    """Run the hold rules in order; return (hold_indices, reason)."""
    for rule in HOLD_RULES:
        result = rule(values, scorecard, rolls_left)
        if result is not None:
            hold, reason = result
            logger.debug("%s -> hold %s", rule.__name__, hold)
            return hold, reason
    return (), ""


def choose_hold(values, scorecard, rolls_left) -> Tuple[int, ...]:
    """
    Decide which dice to keep before the next roll.

    Args:
        values: Current face values, in die order
        scorecard: The bot's Scorecard
        rolls_left: Rolls remaining this turn

    Returns:
        Tuple of die indices (0-4) to hold, ascending
    """
    hold, _ = choose_hold_with_reason(values, scorecard, rolls_left)
    return hold


# ── Category weight rules ───────────────────────────────────────────────────
#
# Each rule returns an adjustment added to the raw score. Rules run in this
# order over every candidate category.

def yahtzee_adjustment(category, score):
    if category != Category.YAHTZEE:
        return 0
    if score == YAHTZEE_SCORE:
        return 1000
    if score == 0:
        return -100
    return 0


def upper_section_adjustment(category, score):
    if category not in UPPER_TO_FACE:
        return 0
    face = UPPER_TO_FACE[category]
    target = face * 3
    if score >= target:
        return 20
    if score == 0:
        # Ones and Twos are cheap to scratch; higher faces feed the bonus
        return -5 if face <= 2 else -20 * face
    return -5


def straight_scratch_adjustment(category, score):
    if category in (Category.SMALL_STRAIGHT, Category.LARGE_STRAIGHT) and score == 0:
        return -15
    return 0


def full_house_adjustment(category, score):
    if category == Category.FULL_HOUSE and score == FULL_HOUSE_SCORE:
        return 15
    return 0


def chance_adjustment(category, score):
    if category == Category.CHANCE and score < 20:
        return -10
    return 0


def n_of_a_kind_adjustment(category, score):
    if category not in (Category.THREE_OF_KIND, Category.FOUR_OF_KIND):
        return 0
    if score == 0:
        return -10
    if score < 15:
        return -5
    return 0


CATEGORY_WEIGHT_RULES = (
    yahtzee_adjustment,
    upper_section_adjustment,
    straight_scratch_adjustment,
    full_house_adjustment,
    chance_adjustment,
    n_of_a_kind_adjustment,
)


def category_weight(category, score):
    """Raw score plus every weight rule's adjustment."""
    return score + sum(rule(category, score) for rule in CATEGORY_WEIGHT_RULES)


def choose_category(scores, scorecard) -> Category:
    """
    Pick the category to commit from a possible-scores table.

    Args:
        scores: Category -> score table from possible_scores()
        scorecard: The bot's Scorecard

    Returns:
        The unfilled category with the highest weight; the first one wins ties

    Raises:
        LookupError: if the scorecard has no unfilled category
    """
    candidates = [cat for cat in scores if not scorecard.is_filled(cat)]
    if len(scores) == 1 and candidates:
        # Mandatory Joker fill
        return candidates[0]

    best_cat: Optional[Category] = None
    best_weight = None
    for cat in candidates:
        weight = category_weight(cat, scores[cat])
        if best_weight is None or weight > best_weight:
            best_weight = weight
            best_cat = cat

    if best_cat is None:
        open_cats = scorecard.open_categories()
        if not open_cats:
            raise LookupError("no unfilled category to score")
        logger.warning("No weighted category found, falling back to %s", open_cats[0].value)
        return open_cats[0]

    logger.debug("Choosing %s (weight %d)", best_cat.value, best_weight)
    return best_cat


# ── Turn driver ─────────────────────────────────────────────────────────────

def choose_action(state: GameState) -> Union[RollAction, ScoreAction]:
    """Given state (after at least 1 roll), decide: roll again or score.

    The bot scores when it is out of rolls or when it would hold all five
    dice anyway.
    """
    values = dice_values(state.dice)
    scorecard = state.current_scorecard

    if state.rolls_left > 0:
        hold, reason = choose_hold_with_reason(values, scorecard, state.rolls_left)
        if len(hold) < NUM_DICE:
            return RollAction(hold=hold, reason=reason)

    scores = possible_scores(values, scorecard)
    category = choose_category(scores, scorecard)
    return ScoreAction(category=category,
                       reason=f"Scoring {scores.get(category, 0)} in {category.value}")


def play_turn(state: GameState, rng) -> GameState:
    """Play the current player's turn with the heuristic, with no delays.

    Args:
        state: Game state at the start of a turn
        rng: Random source for dice

    Returns:
        Game state after the category is committed and the turn handed over
    """
    # Mandatory first roll
    if not state.has_rolled:
        state = roll_dice(state, rng)
    if not state.has_rolled:
        # Not started, or the game is already over
        return state

    while True:
        action = choose_action(state)
        if isinstance(action, ScoreAction):
            return select_category(state, action.category)
        state = set_holds(state, action.hold)
        state = roll_dice(state, rng)


def play_game(rng, names=("Bot", None)) -> GameState:
    """Play a complete game with the heuristic driving both seats.

    Args:
        rng: Random source for dice and the bot's name
        names: (user seat name, bot name); a None bot name is drawn at random

    Returns:
        Final game state with game_over == True
    """
    user_name, ai_name = names
    if ai_name is None:
        ai_name = random_ai_name(rng)
    state = start_game(GameState.create_initial(), user_name, ai_name)
    while not state.game_over:
        state = play_turn(state, rng)
    return state
