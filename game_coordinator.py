"""
GameCoordinator - presentation pacing around the two-player game session.

Owns the game state, the random source, frame timers, and the per-frame
AI state machine. The front end (tui.py) delegates to this and only handles
rendering and key input. Pacing never changes outcomes: with the "instant"
preset every step runs without waiting, and the same seed gives the same game.
"""
from __future__ import annotations

import argparse
import logging
import random

from ai import RollAction, ScoreAction, choose_action, random_ai_name
from game_engine import Category, DieState, Player, Scorecard, dice_values
from game_log import GameLog
from game_session import (
    FinalTally,
    GameState,
    TurnPhase,
    final_tally,
    human_possible_scores,
    new_game,
    play_again,
    set_holds,
    start_game,
    turn_phase,
)
from game_session import (
    can_roll as session_can_roll,
)
from game_session import (
    can_select_category as session_can_select,
)
from game_session import (
    roll_dice as session_roll_dice,
)
from game_session import (
    select_category as session_select_category,
)
from game_session import (
    toggle_die_hold as session_toggle_die,
)

logger = logging.getLogger(__name__)

# Speed presets for AI playback: (ai_delay, roll_duration, hold_show_duration) in frames
SPEED_PRESETS = {
    "slow":    (60, 36, 30),
    "normal":  (30, 18, 20),
    "fast":    (10, 8, 8),
    "instant": (0, 0, 0),
}
SPEED_NAMES = ["slow", "normal", "fast", "instant"]


class GameCoordinator:
    """Coordinates the session, AI decisions, and pacing without any UI dependency.

    The front end reads coordinator properties to decide what to render, and
    calls coordinator action methods in response to user input.
    """

    def __init__(self, rng: random.Random | None = None, speed: str = "normal") -> None:
        """Initialize the coordinator.

        Args:
            rng: Random source for dice and the bot's name. Tests pass a
                 seeded or scripted instance.
            speed: Speed preset name ("slow", "normal", "fast", "instant").
        """
        self.rng = rng if rng is not None else random.Random()
        self.state = GameState.create_initial()

        self.speed_name = speed
        self.ai_delay, self.roll_duration, self.ai_hold_show_duration = SPEED_PRESETS[self.speed_name]

        self.message = "Enter your name to start"
        self._reset_pacing()

    def _reset_pacing(self) -> None:
        # AI state
        self.ai_timer = 0
        self.ai_needs_first_roll = True
        self.ai_reason = ""
        self.ai_showing_holds = False
        self.ai_hold_timer = 0

        # AI score choice preview: highlight the chosen category before committing
        self.ai_showing_score_choice = False
        self.ai_score_choice_category: Category | None = None
        self.ai_score_choice_timer = 0

        # Roll animation lifecycle (coordinator owns timing; front end owns display)
        self.is_rolling = False
        self.roll_timer = 0
        self._pending_state: GameState | None = None

        # Score animation signal: set when a category is scored, consumed by the front end
        self.last_scored_category: Category | None = None

    # ── Properties ────────────────────────────────────────────────────────

    @property
    def started(self) -> bool:
        return self.state.started

    @property
    def dice(self) -> tuple[DieState, ...]:
        return self.state.dice

    @property
    def rolls_left(self) -> int:
        return self.state.rolls_left

    @property
    def current_player(self) -> Player:
        return self.state.current_player

    @property
    def is_human_turn(self) -> bool:
        return self.state.current_player == Player.USER

    @property
    def game_over(self) -> bool:
        return self.state.game_over

    @property
    def turn_number(self) -> int:
        return self.state.turn_number

    @property
    def game_log(self) -> GameLog:
        return self.state.log

    @property
    def phase(self) -> TurnPhase:
        return turn_phase(self.state, self.is_rolling)

    def scorecard_for(self, player: Player) -> Scorecard:
        return self.state.scorecard_for(player)

    def name_of(self, player: Player) -> str:
        return self.state.name_of(player)

    @property
    def possible_scores(self) -> dict:
        """Scores the human may pick from; empty outside their post-roll turn."""
        if self.is_rolling:
            return {}
        return human_possible_scores(self.state)

    @property
    def can_roll_now(self) -> bool:
        """Whether the human may roll right now."""
        return not self.is_rolling and session_can_roll(self.state, Player.USER)

    def can_select(self, category: Category) -> bool:
        return not self.is_rolling and session_can_select(self.state, category, Player.USER)

    @property
    def final_tally(self) -> FinalTally | None:
        """End-of-game totals and winner, once the game is over."""
        if not self.game_over:
            return None
        return final_tally(self.state)

    # ── Action methods (called by the front end on input) ────────────────

    def start_game(self, player_name: str | None) -> None:
        """Seat the human under player_name and draw the bot's name."""
        if self.started:
            return
        self.state = start_game(self.state, player_name, random_ai_name(self.rng))
        self._reset_pacing()
        self.message = f"Game Started! {self.name_of(Player.USER)}'s turn."
        logger.debug("Game started: %s vs %s", *self.state.player_names)

    def roll_dice(self) -> None:
        """Start a human roll. The roll lands after roll_duration ticks."""
        if self.can_roll_now:
            self.message = "Rolling..."
            self._begin_roll(Player.USER)

    def toggle_hold(self, die_index: int) -> None:
        """Toggle hold on a die (for the human player)."""
        if self.is_rolling:
            return
        self.state = session_toggle_die(self.state, die_index, Player.USER)

    def select_category(self, category: Category) -> bool:
        """Score a category for the human. Returns True if it was committed."""
        if not self.can_select(category):
            return False
        self._commit(category)
        return True

    def play_again(self) -> None:
        """New game with the same names."""
        if not self.started:
            return
        self.state = play_again(self.state)
        self._reset_pacing()
        self.message = f"Game Restarted! {self.name_of(Player.USER)}'s turn."

    def new_game(self) -> None:
        """Full reset back to name entry."""
        self.state = new_game()
        self._reset_pacing()
        self.message = "New Game!"

    def change_speed(self, direction: int) -> bool:
        """Change AI speed. direction=+1 for faster, -1 for slower.

        Returns True if speed actually changed, False if already at limit.
        """
        idx = SPEED_NAMES.index(self.speed_name)
        new_idx = idx + direction
        if 0 <= new_idx < len(SPEED_NAMES):
            self.speed_name = SPEED_NAMES[new_idx]
            self.ai_delay, self.roll_duration, self.ai_hold_show_duration = SPEED_PRESETS[self.speed_name]
            return True
        return False

    # ── Frame update ─────────────────────────────────────────────────────

    def tick(self) -> None:
        """Advance one frame of the state machine.

        Handles: roll timer, AI hold-show pause, AI score preview, AI decisions.
        """
        if not self.started or self.game_over:
            return

        # Commit the pending roll once the animation duration is reached
        if self.is_rolling:
            self.roll_timer += 1
            if self.roll_timer >= self.roll_duration:
                self._finish_roll()
            return

        # AI hold-showing pause: briefly display held dice before rolling
        if self.ai_showing_holds:
            self.ai_hold_timer += 1
            if self.ai_hold_timer >= self.ai_hold_show_duration:
                self.ai_showing_holds = False
                self._begin_roll(Player.AI)
            return

        # AI score choice preview: highlight the chosen category before committing
        if self.ai_showing_score_choice:
            self.ai_score_choice_timer += 1
            if self.ai_score_choice_timer >= self.ai_hold_show_duration:
                category = self.ai_score_choice_category
                self.ai_showing_score_choice = False
                self.ai_score_choice_category = None
                self._commit(category)
            return

        if self.is_human_turn:
            return

        # AI controller: paces decisions with a timer
        self.ai_timer += 1
        if self.ai_timer < self.ai_delay:
            return
        self.ai_timer = 0

        # First roll of the turn (mandatory)
        if self.ai_needs_first_roll:
            self.ai_needs_first_roll = False
            self.message = f"{self.name_of(Player.AI)} is rolling..."
            self._begin_roll(Player.AI)
            return

        action = choose_action(self.state)
        self.ai_reason = action.reason
        logger.debug("AI action: %s", action)

        if isinstance(action, ScoreAction):
            self.message = f"{self.name_of(Player.AI)} is scoring..."
            self.ai_showing_score_choice = True
            self.ai_score_choice_category = action.category
            self.ai_score_choice_timer = 0
        elif isinstance(action, RollAction):
            self.message = f"{self.name_of(Player.AI)} is thinking..."
            self.state = set_holds(self.state, action.hold, Player.AI)
            self.ai_showing_holds = True
            self.ai_hold_timer = 0

    def run_until_idle(self, max_ticks: int = 100000) -> None:
        """Tick until the human has to act or the game ends."""
        for _ in range(max_ticks):
            if self.game_over or not self.started:
                return
            if self.is_human_turn and not self.is_rolling:
                return
            self.tick()
        raise TimeoutError(f"Coordinator still busy after {max_ticks} ticks")

    # ── Internal ─────────────────────────────────────────────────────────

    def _begin_roll(self, player: Player) -> None:
        new_state = session_roll_dice(self.state, self.rng, player)
        if new_state is self.state:
            return
        self._pending_state = new_state
        self.is_rolling = True
        self.roll_timer = 0
        if self.roll_duration == 0:
            self._finish_roll()

    def _finish_roll(self) -> None:
        self.state = self._pending_state
        self._pending_state = None
        self.is_rolling = False
        logger.debug("%s rolled %s (%d left)", self.name_of(self.current_player),
                     dice_values(self.dice), self.rolls_left)
        if self.is_human_turn:
            self.message = "Select dice to hold or pick a score!"

    def _commit(self, category: Category) -> None:
        mover = self.current_player
        name = self.name_of(mover)
        state = session_select_category(self.state, category, mover)
        if state is self.state:
            return
        self.state = state
        entry = state.log.last_entry()
        self.last_scored_category = category

        if entry.yahtzee_bonus:
            self.message = f"{name} scored {entry.score} in {category.value} + 100 Bonus!"
        else:
            self.message = f"{name} scored {entry.score} in {category.value}!"

        # Hand-off: the next turn starts from a fresh roll
        self.ai_needs_first_roll = True
        self.ai_timer = 0
        self.ai_showing_holds = False
        if mover == Player.AI:
            self.ai_reason = ""

        if self.game_over:
            self.message = "Game Over! Final Scores..."
            logger.debug("Final totals: %d - %d",
                         self.scorecard_for(Player.USER).get_grand_total(),
                         self.scorecard_for(Player.AI).get_grand_total())


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Args:
        argv: Optional list of args (for testing). None uses sys.argv.

    Returns:
        Parsed argparse.Namespace.
    """
    parser = argparse.ArgumentParser(description="Yahtzee: you against the bot")
    parser.add_argument("--speed", choices=SPEED_NAMES, default=None,
                        help="Bot playback speed (default: from settings, else normal)")
    parser.add_argument("--name", default=None,
                        help="Your player name (skips the name prompt)")
    parser.add_argument("--seed", type=int, default=None,
                        help="Seed the dice for a repeatable game")
    parser.add_argument("--log-file", default=None,
                        help="Write debug logging to this file")
    return parser.parse_args(argv)
