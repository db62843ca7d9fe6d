"""Move log for Yahtzee, one entry per committed category.

Pure Python, no UI dependency. The log is append-only and immutable: adding
an entry returns a new GameLog, so it can live inside a frozen game state.
Entries are stored oldest first; newest_first() gives display order.
"""
from __future__ import annotations

from dataclasses import dataclass

from game_engine import Category, Player


@dataclass(frozen=True)
class LogEntry:
    """A single committed move."""
    turn: int                                   # 1-13
    player: Player
    player_name: str
    category: Category
    score: int
    dice_values: tuple[int, ...]
    yahtzee_bonus: bool = False                 # commit also earned +100


@dataclass(frozen=True)
class GameLog:
    """Ordered, append-only record of committed moves."""

    entries: tuple[LogEntry, ...] = ()

    def __len__(self) -> int:
        return len(self.entries)

    def with_score(self, turn: int, player: Player, player_name: str, category: Category,
                   score: int, dice_values, yahtzee_bonus: bool = False) -> GameLog:
        """Return a new log with a scoring decision appended.

        The dice values are copied into a tuple so later dice changes never
        reach the logged snapshot.
        """
        entry = LogEntry(
            turn=turn,
            player=player,
            player_name=player_name,
            category=category,
            score=score,
            dice_values=tuple(dice_values),
            yahtzee_bonus=yahtzee_bonus,
        )
        return GameLog(entries=self.entries + (entry,))

    def newest_first(self) -> list[LogEntry]:
        """Entries with the most recent commit first."""
        return list(reversed(self.entries))

    def get_turn_entries(self, turn: int) -> list[LogEntry]:
        """Return all entries for a specific turn, both players."""
        return [e for e in self.entries if e.turn == turn]

    def get_player_entries(self, player: Player) -> list[LogEntry]:
        """Return one player's entries, oldest first."""
        return [e for e in self.entries if e.player == player]

    def last_entry(self, player: Player | None = None) -> LogEntry | None:
        """Most recent entry, optionally restricted to one player."""
        for entry in reversed(self.entries):
            if player is None or entry.player == player:
                return entry
        return None


def format_entry(entry: LogEntry) -> str:
    """One-line description of a log entry, dice sorted ascending."""
    dice = " ".join(str(v) for v in sorted(entry.dice_values))
    line = f"#{entry.turn} {entry.player_name}: {entry.category.value} +{entry.score} [{dice}]"
    if entry.yahtzee_bonus:
        line += " +100 bonus"
    return line
