#!/usr/bin/env python3
"""
Yahtzee TUI - terminal front end using Textual.

You against the bot: name prompt, box-art dice, a two-column scorecard,
the move log, and the final tally. All game rules live in the coordinator;
this module only renders it and turns keys into coordinator calls.
"""
import logging
import random

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Center, Horizontal, Vertical
from textual.screen import ModalScreen
from textual.widgets import Button, Footer, Header, Input, Static
from textual import on

from game_engine import MAX_ROLLS, UPPER_CATEGORIES, LOWER_CATEGORIES, Player
from game_coordinator import GameCoordinator, parse_args
from game_log import format_entry
from game_session import MAX_NAME_LENGTH, category_leader
from settings import load_settings, remember_player_name, remember_speed

logger = logging.getLogger(__name__)


# ── Box-art dice ─────────────────────────────────────────────────────────────

# Pip rows for each face, three rows of three cells
_PIPS = {
    1: ("   ", " ● ", "   "),
    2: ("●  ", "   ", "  ●"),
    3: ("●  ", " ● ", "  ●"),
    4: ("● ●", "   ", "● ●"),
    5: ("● ●", " ● ", "● ●"),
    6: ("● ●", "● ●", "● ●"),
}


def die_art(value, held=False):
    """Five lines of box art for one die; held dice get a double border.

    A value of None draws a blank cup face.
    """
    h, v, tl, tr, bl, br = ("═", "║", "╔", "╗", "╚", "╝") if held else ("─", "│", "┌", "┐", "└", "┘")
    rows = _PIPS[value] if value is not None else ("   ", " ? ", "   ")
    lines = [tl + h * 7 + tr]
    for row in rows:
        lines.append(f"{v} {' '.join(row)} {v}")
    lines.append(bl + h * 7 + br)
    return lines


def render_dice_box(dice, rolls_left, is_rolling):
    """Render 5 dice side by side with their key labels."""
    faces = []
    for die in dice:
        if rolls_left == MAX_ROLLS or (is_rolling and not die.held):
            faces.append(die_art(None, die.held))
        else:
            faces.append(die_art(die.value, die.held))
    lines = ["  ".join(face[row] for face in faces) for row in range(5)]
    labels = [f"  [{i + 1}]{' HELD' if die.held else ''}".ljust(11) for i, die in enumerate(dice)]
    lines.append("".join(labels))
    return "\n".join(lines)


# ── Text builders ────────────────────────────────────────────────────────────

def render_status(coord):
    """Whose turn it is, rolls left, and the latest message."""
    if not coord.started:
        return "[bold]Welcome to Yahtzee![/bold]"
    lines = [f"[bold]{coord.message}[/bold]"]
    if not coord.game_over:
        name = coord.name_of(coord.current_player)
        lines.append(f"Turn {coord.turn_number}/13 | {name} | rolls left: {coord.rolls_left}")
    if not coord.is_human_turn and coord.ai_reason:
        lines.append(f"[dim]{coord.ai_reason}[/dim]")
    return "\n".join(lines)


def _cell(score, possible, leader, is_last, is_selected, is_ai_choice):
    """Format one scorecard cell."""
    if score is not None:
        # * marks the player's most recent pick
        text = f"{score:>4}{'*' if is_last else ' '}"
        return f"[green]{text}[/green]" if leader else text
    if is_ai_choice:
        return "[bold cyan]  ?? [/bold cyan]"
    if possible is not None:
        text = f"({possible:>2}) "
        if is_selected:
            return f"[reverse]{text}[/reverse]"
        return f"[green]{text}[/green]" if possible > 0 else f"[dim]{text}[/dim]"
    return "   - "


def format_score_row(coord, category, selected=None):
    """One scorecard line: label, human column, bot column."""
    possible = coord.possible_scores
    user_card = coord.scorecard_for(Player.USER)
    ai_card = coord.scorecard_for(Player.AI)
    leader = category_leader(coord.state, category)

    user_possible = possible.get(category) if not user_card.is_filled(category) else None
    user_cell = _cell(user_card.scores[category], user_possible,
                      leader == Player.USER,
                      coord.state.last_selection(Player.USER) == category,
                      selected == category, False)
    ai_cell = _cell(ai_card.scores[category], None,
                    leader == Player.AI,
                    coord.state.last_selection(Player.AI) == category,
                    False, coord.ai_score_choice_category == category)
    marker = ">>" if selected == category else "  "
    return f"{marker}{category.value:<16} {user_cell}  {ai_cell}"


def render_scorecard(coord, selected=None):
    """The full two-column scorecard with section totals."""
    user_card = coord.scorecard_for(Player.USER)
    ai_card = coord.scorecard_for(Player.AI)
    user_name = coord.name_of(Player.USER)[:6]
    ai_name = coord.name_of(Player.AI)[:6]

    lines = [f"[bold]  {'Category':<16} {user_name:>5}  {ai_name:>5}[/bold]"]
    lines.append("[bold]── UPPER SECTION ──[/bold]")
    for cat in UPPER_CATEGORIES:
        lines.append(format_score_row(coord, cat, selected))
    lines.append(f"  {'Upper Total':<16} {user_card.get_upper_section_total():>4}   "
                 f"{ai_card.get_upper_section_total():>4}")
    lines.append(f"  {'Bonus (63+)':<16} {user_card.get_upper_section_bonus():>4}   "
                 f"{ai_card.get_upper_section_bonus():>4}")
    lines.append("[bold]── LOWER SECTION ──[/bold]")
    for cat in LOWER_CATEGORIES:
        lines.append(format_score_row(coord, cat, selected))
    lines.append(f"  {'Yahtzee Bonus':<16} {user_card.yahtzee_bonuses():>4}   "
                 f"{ai_card.yahtzee_bonuses():>4}")
    lines.append(f"[bold]  {'GRAND TOTAL':<16} {user_card.get_grand_total():>4}   "
                 f"{ai_card.get_grand_total():>4}[/bold]")
    return "\n".join(lines)


def render_log(game_log, limit=10):
    """Newest moves first."""
    entries = game_log.newest_first()[:limit]
    if not entries:
        return "[bold]Game Log[/bold]\n[dim]No moves yet[/dim]"
    return "[bold]Game Log[/bold]\n" + "\n".join(format_entry(e) for e in entries)


def render_final_tally(tally, user_name, ai_name):
    """Row-by-row final scoring and the winner."""
    lines = ["[bold]FINAL SCORING[/bold]", "",
             f"{'Category':<16} {user_name[:8]:>8} {ai_name[:8]:>8}"]
    for row in tally.rows:
        lines.append(f"{row.label:<16} {row.user:>8} {row.ai:>8}")
    lines.append("─" * 34)
    lines.append(f"{'Total':<16} {tally.user.grand_total:>8} {tally.ai.grand_total:>8}")
    lines.append("")
    if tally.winner is None:
        lines.append("[bold]It's a Tie![/bold]")
    elif tally.winner == Player.USER:
        lines.append(f"[bold]{user_name} Wins![/bold]")
    else:
        lines.append(f"[bold]{ai_name} Wins![/bold]")
    lines.append("")
    lines.append("[dim]P: play again   N: new game   Esc: close[/dim]")
    return "\n".join(lines)


# ── Modal Screens ────────────────────────────────────────────────────────────

class NameEntryScreen(ModalScreen[str]):
    """Asks for the human's name before the first game."""

    def __init__(self, default_name: str = ""):
        super().__init__()
        self.default_name = default_name

    def compose(self) -> ComposeResult:
        with Center():
            with Vertical(id="name-panel"):
                yield Static("[bold]Welcome to Yahtzee![/bold]\n\nPlease enter your name to begin:")
                yield Input(value=self.default_name, placeholder="type in your name",
                            max_length=MAX_NAME_LENGTH, id="name-input")
                yield Button("Start Game", id="start-btn", variant="primary")

    @on(Input.Submitted, "#name-input")
    def on_name_submitted(self, event: Input.Submitted):
        self.dismiss(event.value)

    @on(Button.Pressed, "#start-btn")
    def on_start_pressed(self):
        self.dismiss(self.query_one("#name-input", Input).value)


class FinalTallyScreen(ModalScreen[str]):
    """End-of-game breakdown; dismisses with the chosen follow-up."""

    BINDINGS = [
        Binding("p", "choose('play_again')", "Play again"),
        Binding("n", "choose('new_game')", "New game"),
        Binding("escape", "choose('close')", "Close"),
    ]

    def __init__(self, text: str):
        super().__init__()
        self.text = text

    def compose(self) -> ComposeResult:
        yield Center(Static(self.text, id="tally-panel"))

    def action_choose(self, choice: str):
        self.dismiss(choice)


class HelpScreen(ModalScreen):
    """Help overlay showing key bindings."""

    BINDINGS = [
        Binding("escape", "dismiss", "Close"),
        Binding("question_mark", "dismiss", "Close"),
    ]

    def compose(self) -> ComposeResult:
        controls = [
            ("Space", "Roll dice"),
            ("1-5", "Toggle die hold"),
            ("↑ / ↓", "Choose category"),
            ("Enter", "Score selected category"),
            ("+/-", "Bot speed"),
            ("N", "New game (after game over)"),
            ("Esc", "Close overlay / Quit"),
        ]
        text = "[bold]CONTROLS[/bold]\n\n"
        for key, desc in controls:
            text += f"  {key:<12} {desc}\n"
        text += "\n[dim]Press Esc or ? to close[/dim]"
        yield Center(Static(text, id="help-panel"))


# ── Main App ─────────────────────────────────────────────────────────────────

class YahtzeeApp(App):
    """Yahtzee terminal UI application."""

    CSS = """
    #game-area {
        layout: horizontal;
        height: 1fr;
    }

    #dice-panel {
        width: 62;
        padding: 1 2;
    }

    #scorecard-panel {
        width: 1fr;
        padding: 1 2;
    }

    #dice-display, #status-display, #log-display {
        height: auto;
        margin-bottom: 1;
    }

    #roll-btn {
        width: 20;
        margin-bottom: 1;
    }

    #name-panel, #tally-panel, #help-panel {
        padding: 2 4;
        border: thick $accent;
        background: $surface;
        width: 50;
        height: auto;
    }
    """

    BINDINGS = [
        Binding("space", "roll", "Roll", show=True),
        Binding("1", "hold(0)", "Hold 1"),
        Binding("2", "hold(1)", "Hold 2"),
        Binding("3", "hold(2)", "Hold 3"),
        Binding("4", "hold(3)", "Hold 4"),
        Binding("5", "hold(4)", "Hold 5"),
        Binding("down", "move_selection(1)", "Next category"),
        Binding("up", "move_selection(-1)", "Prev category"),
        Binding("enter", "score", "Score", show=True),
        Binding("plus", "speed(1)", "+Speed"),
        Binding("minus", "speed(-1)", "-Speed"),
        Binding("n", "new_game", "New game"),
        Binding("question_mark", "help", "Help"),
        Binding("escape", "quit_or_close", "Quit"),
    ]

    def __init__(self, coordinator: GameCoordinator, settings_path=None):
        super().__init__()
        self.coordinator = coordinator
        self.settings_path = settings_path
        self.settings = load_settings(settings_path)
        self.selected_category = None
        self._tally_shown = False

    def compose(self) -> ComposeResult:
        yield Header()
        with Horizontal(id="game-area"):
            with Vertical(id="dice-panel"):
                yield Static(id="dice-display")
                yield Button("ROLL", id="roll-btn", variant="primary")
                yield Static(id="status-display")
                yield Static(id="log-display")
            with Vertical(id="scorecard-panel"):
                yield Static(id="scorecard-display")
        yield Footer()

    def on_mount(self):
        self.title = "Yahtzee"
        self.theme = "textual-dark" if self.settings["dark_mode"] else "textual-light"
        self.set_interval(1 / 20, self._game_tick)
        if not self.coordinator.started:
            self._ask_name()
        self._refresh_display()

    def _ask_name(self):
        def on_name(name: str):
            self.coordinator.start_game(remember_player_name(name, self.settings_path))
            self._refresh_display()
        self.push_screen(NameEntryScreen(self.settings["player_name"]), on_name)

    def _game_tick(self):
        """Per-frame game update at ~20 FPS."""
        coord = self.coordinator
        coord.tick()
        if coord.game_over and not self._tally_shown:
            self._tally_shown = True
            self._show_tally()
        self._refresh_display()

    def _show_tally(self):
        coord = self.coordinator
        text = render_final_tally(coord.final_tally, coord.name_of(Player.USER),
                                  coord.name_of(Player.AI))

        def on_choice(choice: str):
            if choice == "play_again":
                self._restart(coord.play_again)
            elif choice == "new_game":
                self.action_new_game()
        self.push_screen(FinalTallyScreen(text), on_choice)

    def _restart(self, reset):
        reset()
        self._tally_shown = False
        self.selected_category = None
        self._refresh_display()

    def _refresh_display(self):
        """Refresh all display widgets."""
        coord = self.coordinator
        try:
            self.query_one("#dice-display", Static).update(
                render_dice_box(coord.dice, coord.rolls_left, coord.is_rolling))
            self.query_one("#status-display", Static).update(render_status(coord))
            self.query_one("#log-display", Static).update(render_log(coord.game_log))
            self.query_one("#scorecard-display", Static).update(
                render_scorecard(coord, self.selected_category))
            self.query_one("#roll-btn", Button).disabled = not coord.can_roll_now
        except Exception:
            logger.debug("Refresh error", exc_info=True)

    # ── Actions ──────────────────────────────────────────────────────────

    def action_roll(self):
        self.coordinator.roll_dice()
        self.selected_category = None
        self._refresh_display()

    @on(Button.Pressed, "#roll-btn")
    def on_roll_button(self):
        self.action_roll()

    def action_hold(self, index: int):
        self.coordinator.toggle_hold(index)
        self._refresh_display()

    def action_move_selection(self, step: int):
        coord = self.coordinator
        card = coord.scorecard_for(Player.USER)
        options = [cat for cat in coord.possible_scores if not card.is_filled(cat)]
        if not options:
            return
        if self.selected_category not in options:
            self.selected_category = options[0] if step > 0 else options[-1]
        else:
            idx = options.index(self.selected_category)
            self.selected_category = options[(idx + step) % len(options)]
        self._refresh_display()

    def action_score(self):
        category = self.selected_category
        if category is not None and self.coordinator.select_category(category):
            self.selected_category = None
        self._refresh_display()

    def action_speed(self, direction: int):
        if self.coordinator.change_speed(direction):
            remember_speed(self.coordinator.speed_name, self.settings_path)
            self.notify(f"Bot speed: {self.coordinator.speed_name}")

    def action_new_game(self):
        if self.coordinator.game_over:
            self._restart(self.coordinator.new_game)
            self._ask_name()

    def action_help(self):
        self.push_screen(HelpScreen())

    def action_quit_or_close(self):
        # If any screen is stacked, pop it
        if len(self.screen_stack) > 1:
            self.pop_screen()
        else:
            self.exit()


def main(argv=None):
    """Entry point for the TUI."""
    args = parse_args(argv)
    if args.log_file:
        logging.basicConfig(filename=args.log_file, level=logging.DEBUG,
                            format="%(asctime)s %(name)s %(levelname)s %(message)s")

    settings = load_settings()
    speed = args.speed or settings["speed"]
    rng = random.Random(args.seed)
    coordinator = GameCoordinator(rng=rng, speed=speed)
    if args.name is not None:
        coordinator.start_game(args.name)

    app = YahtzeeApp(coordinator=coordinator)
    app.run()


if __name__ == "__main__":
    main()
