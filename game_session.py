"""
Yahtzee Game Session - two-player turn state machine

A human and the bot share one set of dice and take alternating turns. The
whole session is an immutable GameState; every action is a pure function
from (state, event) to a new state. An action whose preconditions fail
returns the state unchanged, so every input is handled even when ignored.
"""
import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Optional, Tuple

from game_engine import (
    Category, DieState, Player, Scorecard,
    MAX_ROLLS, NUM_DICE, UPPER_CATEGORIES, LOWER_CATEGORIES,
    dice_values, earns_yahtzee_bonus, fresh_dice,
    is_joker_active, possible_scores, score_category,
)
from game_log import GameLog

logger = logging.getLogger(__name__)

DEFAULT_USER_NAME = "You"
DEFAULT_AI_NAME = "Computer"
MAX_NAME_LENGTH = 12

PLAYERS = (Player.USER, Player.AI)


class TurnPhase(Enum):
    """Where the current turn stands.

    Committing a category ends the turn at once, so there is no lasting
    "committed" phase: the next player's AWAITING_ROLL follows directly.
    """
    NOT_STARTED = "not_started"
    AWAITING_ROLL = "awaiting_roll"
    ROLLING = "rolling"
    AWAITING_DECISION = "awaiting_decision"
    AWAITING_COMMIT = "awaiting_commit"
    GAME_OVER = "game_over"


@dataclass(frozen=True)
class GameState:
    """Immutable two-player game state"""
    dice: Tuple[DieState, ...]
    scorecards: Tuple[Scorecard, Scorecard]  # indexed in PLAYERS order
    rolls_left: int = MAX_ROLLS
    current_player: Player = Player.USER
    turn_number: int = 1                      # 1-13, advances after the AI moves
    log: GameLog = field(default_factory=GameLog)
    player_names: Tuple[str, str] = (DEFAULT_USER_NAME, DEFAULT_AI_NAME)
    last_selections: Tuple[Optional[Category], Optional[Category]] = (None, None)
    started: bool = False

    @staticmethod
    def create_initial() -> 'GameState':
        """Create a fresh, not yet started session"""
        return GameState(dice=fresh_dice(), scorecards=(Scorecard(), Scorecard()))

    def scorecard_for(self, player: Player) -> Scorecard:
        return self.scorecards[PLAYERS.index(player)]

    def name_of(self, player: Player) -> str:
        return self.player_names[PLAYERS.index(player)]

    def last_selection(self, player: Player) -> Optional[Category]:
        return self.last_selections[PLAYERS.index(player)]

    @property
    def current_scorecard(self) -> Scorecard:
        return self.scorecard_for(self.current_player)

    @property
    def has_rolled(self) -> bool:
        """At least one roll has happened this turn"""
        return self.rolls_left < MAX_ROLLS

    @property
    def game_over(self) -> bool:
        """True iff both scorecards have all 13 categories filled"""
        return all(card.is_complete() for card in self.scorecards)


def _replace_for(pair, player, value):
    items = list(pair)
    items[PLAYERS.index(player)] = value
    return tuple(items)


def normalize_player_name(name: Optional[str]) -> str:
    """Trim a typed name, cap its length, and fall back to the default."""
    name = (name or "").strip()[:MAX_NAME_LENGTH]
    return name or DEFAULT_USER_NAME


# ── Session lifecycle ───────────────────────────────────────────────────────

def start_game(state: GameState, player_name: Optional[str], ai_name: str) -> GameState:
    """
    Seat the players and open the first turn.

    Args:
        state: A session that has not been started yet
        player_name: Name typed by the human (blank means the default)
        ai_name: Name drawn for the bot

    Returns:
        New started GameState, or state unchanged if already started
    """
    if state.started:
        return state
    return replace(GameState.create_initial(),
                   player_names=(normalize_player_name(player_name), ai_name),
                   started=True)


def play_again(state: GameState) -> GameState:
    """Restart with the same names: scorecards, dice, turn and log reset."""
    return replace(GameState.create_initial(),
                   player_names=state.player_names,
                   started=True)


def new_game() -> GameState:
    """Full reset, names included; the session waits for start_game()."""
    return GameState.create_initial()


# ── Queries ─────────────────────────────────────────────────────────────────

def _is_turn_of(state: GameState, player: Optional[Player]) -> bool:
    return player is None or player == state.current_player


def can_roll(state: GameState, player: Optional[Player] = None) -> bool:
    """Rolls remain, the game is live, and it is player's turn (if given)"""
    return (state.started and not state.game_over and state.rolls_left > 0
            and _is_turn_of(state, player))


def can_toggle_hold(state: GameState, die_index: int, player: Optional[Player] = None) -> bool:
    """Holding is allowed only after the first roll of the turn"""
    return (state.started and not state.game_over and state.has_rolled
            and 0 <= die_index < NUM_DICE and _is_turn_of(state, player))


def current_possible_scores(state: GameState):
    """Possible scores for the current player, or {} before the first roll."""
    if not state.started or state.game_over or not state.has_rolled:
        return {}
    return possible_scores(dice_values(state.dice), state.current_scorecard)


def human_possible_scores(state: GameState):
    """Possible scores shown to the human.

    Empty unless it is the human's turn, they have rolled, and the game is on.
    """
    if state.current_player != Player.USER:
        return {}
    return current_possible_scores(state)


def can_select_category(state: GameState, category: Category,
                        player: Optional[Player] = None) -> bool:
    """
    Check if category may be committed now.

    Requires a roll this turn, an unfilled category, and (under a mandatory
    Joker fill) the forced category.
    """
    if not _is_turn_of(state, player):
        return False
    scores = current_possible_scores(state)
    return category in scores and not state.current_scorecard.is_filled(category)


def turn_phase(state: GameState, is_rolling: bool = False) -> TurnPhase:
    """Phase of the current turn; is_rolling comes from the presentation layer"""
    if not state.started:
        return TurnPhase.NOT_STARTED
    if state.game_over:
        return TurnPhase.GAME_OVER
    if is_rolling:
        return TurnPhase.ROLLING
    if not state.has_rolled:
        return TurnPhase.AWAITING_ROLL
    if state.rolls_left == 0:
        return TurnPhase.AWAITING_COMMIT
    return TurnPhase.AWAITING_DECISION


# ── Turn actions ────────────────────────────────────────────────────────────

def roll_dice(state: GameState, rng, player: Optional[Player] = None) -> GameState:
    """
    Roll all unheld dice and use up one roll.

    Args:
        state: Current game state
        rng: Random source with a randint(a, b) method
        player: Acting player; a roll out of turn is ignored

    Returns:
        New GameState with rolled dice, or state unchanged if not allowed
    """
    if not can_roll(state, player):
        return state
    new_dice = tuple(die.roll(rng) for die in state.dice)
    return replace(state, dice=new_dice, rolls_left=state.rolls_left - 1)


def toggle_die_hold(state: GameState, die_index: int, player: Optional[Player] = None) -> GameState:
    """Flip the held flag of one die; the face value is untouched."""
    if not can_toggle_hold(state, die_index, player):
        return state
    dice_list = list(state.dice)
    dice_list[die_index] = dice_list[die_index].toggle_held()
    return replace(state, dice=tuple(dice_list))


def set_holds(state: GameState, hold_indices, player: Optional[Player] = None) -> GameState:
    """Hold exactly the dice in hold_indices and release the rest."""
    for i in range(NUM_DICE):
        if (i in hold_indices) != state.dice[i].held:
            state = toggle_die_hold(state, i, player)
    return state


def select_category(state: GameState, category: Category,
                    player: Optional[Player] = None) -> GameState:
    """
    Commit the current dice to a category and hand the turn over.

    1. Validates the commit (see can_select_category)
    2. Scores with Joker rules, adds a +100 bonus for a repeat Yahtzee
    3. Logs the move with a snapshot of the dice
    4. Resets dice and rolls and passes the turn to the other player
    """
    if not can_select_category(state, category, player):
        return state

    mover = state.current_player
    values = dice_values(state.dice)
    scorecard = state.current_scorecard

    score = score_category(category, values, is_joker_active(values, scorecard))
    new_scorecard = scorecard.with_score(category, score)

    bonus = earns_yahtzee_bonus(values, scorecard)
    if bonus:
        new_scorecard = new_scorecard.with_yahtzee_bonus()
        logger.debug("%s earned a Yahtzee bonus", state.name_of(mover))

    logger.debug("%s scored %d in %s", state.name_of(mover), score, category.value)

    new_log = state.log.with_score(state.turn_number, mover, state.name_of(mover),
                                   category, score, values, yahtzee_bonus=bonus)
    new_state = replace(state,
                        scorecards=_replace_for(state.scorecards, mover, new_scorecard),
                        log=new_log,
                        last_selections=_replace_for(state.last_selections, mover, category))

    if new_state.game_over:
        logger.debug("Game over after turn %d", state.turn_number)
        return replace(new_state, dice=fresh_dice(), rolls_left=MAX_ROLLS)

    next_turn = state.turn_number + 1 if mover == Player.AI else state.turn_number
    return replace(new_state,
                   dice=fresh_dice(),
                   rolls_left=MAX_ROLLS,
                   current_player=mover.other,
                   turn_number=next_turn)


# ── Final tally ─────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class PlayerTotals:
    """One player's end-of-game arithmetic"""
    upper: int
    upper_bonus: int
    lower: int
    yahtzee_bonus: int
    grand_total: int

    @staticmethod
    def from_scorecard(card: Scorecard) -> 'PlayerTotals':
        return PlayerTotals(
            upper=card.get_upper_section_total(),
            upper_bonus=card.get_upper_section_bonus(),
            lower=card.get_lower_section_total(),
            yahtzee_bonus=card.yahtzee_bonuses(),
            grand_total=card.get_grand_total(),
        )


@dataclass(frozen=True)
class TallyRow:
    """One line of the final scoring breakdown"""
    label: str
    user: int
    ai: int


@dataclass(frozen=True)
class FinalTally:
    user: PlayerTotals
    ai: PlayerTotals
    winner: Optional[Player]                  # None on a tie
    rows: Tuple[TallyRow, ...]

    def totals_for(self, player: Player) -> PlayerTotals:
        return self.user if player == Player.USER else self.ai


def final_tally(state: GameState) -> FinalTally:
    """
    Compute totals, winner, and the row-by-row breakdown for both players.

    The breakdown lists the six upper boxes, the upper bonus, then the seven
    lower boxes; the Yahtzee row includes any Yahtzee bonus. Unfilled boxes
    count as 0.
    """
    user_card = state.scorecard_for(Player.USER)
    ai_card = state.scorecard_for(Player.AI)
    user = PlayerTotals.from_scorecard(user_card)
    ai = PlayerTotals.from_scorecard(ai_card)

    rows = [TallyRow(cat.value, user_card.scores[cat] or 0, ai_card.scores[cat] or 0)
            for cat in UPPER_CATEGORIES]
    rows.append(TallyRow("Upper Bonus", user.upper_bonus, ai.upper_bonus))
    for cat in LOWER_CATEGORIES:
        u = user_card.scores[cat] or 0
        a = ai_card.scores[cat] or 0
        if cat == Category.YAHTZEE:
            u += user.yahtzee_bonus
            a += ai.yahtzee_bonus
        rows.append(TallyRow(cat.value, u, a))

    if user.grand_total > ai.grand_total:
        winner = Player.USER
    elif ai.grand_total > user.grand_total:
        winner = Player.AI
    else:
        winner = None
    return FinalTally(user=user, ai=ai, winner=winner, rows=tuple(rows))


def category_leader(state: GameState, category: Category) -> Optional[Player]:
    """Player with the higher score in a category once both have filled it."""
    user_score = state.scorecard_for(Player.USER).scores[category]
    ai_score = state.scorecard_for(Player.AI).scores[category]
    if user_score is None or ai_score is None or user_score == ai_score:
        return None
    return Player.USER if user_score > ai_score else Player.AI
