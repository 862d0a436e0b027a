"""Game log for Generala — records all actions for post-game replay.

Pure Python, no frontend dependency. Captures rolls, holds and scoring
decisions for each turn of both players, along with the computer's
expected-value estimates.
"""
from __future__ import annotations

from dataclasses import dataclass

from game_engine import Category, Player


@dataclass
class LogEntry:
    """A single logged game event."""
    turn: int                                   # round, 1-10
    player: Player
    event_type: str                             # "roll", "hold", "score"
    dice_values: tuple[int, ...]
    held_indices: tuple[int, ...] | None = None
    category: Category | None = None
    score: int | None = None
    roll_number: int = 0                        # 1-3 for rolls
    expected_value: float | None = None         # computer decisions only


class GameLog:
    """Accumulates LogEntry records during a game."""

    def __init__(self) -> None:
        self.entries: list[LogEntry] = []

    def log_roll(self, turn: int, player: Player, roll_number: int, dice_values: list[int]) -> None:
        """Record a dice roll."""
        self.entries.append(LogEntry(
            turn=turn,
            player=player,
            event_type="roll",
            dice_values=tuple(dice_values),
            roll_number=roll_number,
        ))

    def log_hold_change(self, turn: int, player: Player, held_indices: list[int] | tuple[int, ...],
                        dice_values: list[int], expected_value: float | None = None) -> None:
        """Record which dice are kept for the next roll."""
        self.entries.append(LogEntry(
            turn=turn,
            player=player,
            event_type="hold",
            dice_values=tuple(dice_values),
            held_indices=tuple(held_indices),
            expected_value=expected_value,
        ))

    def log_score(self, turn: int, player: Player, category: Category, score: int,
                  dice_values: list[int], expected_value: float | None = None) -> None:
        """Record a scoring decision."""
        self.entries.append(LogEntry(
            turn=turn,
            player=player,
            event_type="score",
            dice_values=tuple(dice_values),
            category=category,
            score=score,
            expected_value=expected_value,
        ))

    def get_turn_entries(self, turn: int, player: Player) -> list[LogEntry]:
        """Return all entries for a specific turn and player."""
        return [e for e in self.entries
                if e.turn == turn and e.player == player]

    def get_score_entries(self, player: Player | None = None) -> list[LogEntry]:
        """Return scoring entries, optionally for one player only."""
        return [e for e in self.entries
                if e.event_type == "score" and (player is None or e.player == player)]

    def clear(self) -> None:
        """Remove all entries."""
        self.entries = []
