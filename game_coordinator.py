"""
GameCoordinator — All non-UI game coordination logic.

Owns the game state, the computer player's pacing and the game log.
A frontend delegates to this and only handles rendering + input.

The computer's decisions are blocking Monte Carlo searches. The coordinator
exposes them as ai_step() so a frontend can run each step off its UI thread.
"""
from __future__ import annotations

import argparse
import logging

from ai import (
    GreedyStrategy,
    MonteCarloStrategy,
    RandomStrategy,
    RollAction,
    GeneralaStrategy,
    apply_holds,
    greedy_category,
)
from game_engine import (
    Category,
    DieState,
    GameState,
    Player,
    Scorecard,
    can_roll,
    can_select_category,
    dice_values,
    is_first_roll,
    score_for_category,
    TOTAL_ROUNDS,
)
from game_engine import (
    roll_dice as engine_roll_dice,
)
from game_engine import (
    select_category as engine_select_category,
)
from game_engine import (
    toggle_die_hold as engine_toggle_die,
)
from game_log import GameLog
from settings import DEFAULTS

logger = logging.getLogger(__name__)

# Frames (at the frontend's ~20 FPS tick) between two computer steps
SPEED_PRESETS = {
    "slow":   40,
    "normal": 20,
    "fast":   5,
}
SPEED_NAMES = ["slow", "normal", "fast"]

OPPONENTS = ["montecarlo", "greedy", "random"]


class GameCoordinator:
    """Coordinates a human vs computer game without any frontend dependency.

    The frontend reads coordinator properties to decide what to render, calls
    the action methods in response to user input, and calls tick() every
    frame. When tick() returns True the computer is due for its next step,
    which the frontend runs with ai_step().
    """

    def __init__(self, computer_strategy: GeneralaStrategy | None = None,
                 speed: str = "normal", settings: dict | None = None) -> None:
        """Initialize the coordinator.

        Args:
            computer_strategy: Strategy for the computer seat. Built from the
                               settings' "opponent" when None.
            speed: Speed preset name ("slow", "normal", "fast").
            settings: Settings dict (see settings.DEFAULTS).
        """
        self.settings = dict(DEFAULTS)
        if settings:
            self.settings.update(settings)
        if computer_strategy is None:
            computer_strategy = make_strategy(self.settings["opponent"], self.settings)
        self.computer_strategy = computer_strategy

        self.state = GameState.create_initial()

        # Computer pacing
        self.speed_name = speed if speed in SPEED_PRESETS else "normal"
        self.ai_delay = SPEED_PRESETS[self.speed_name]
        self.ai_timer = 0
        self.ai_reason = ""
        self.ai_thinking = False

        # Records all actions for the post-game replay
        self.game_log = GameLog()

        # Set when a category is scored, read by the frontend
        self.last_scored_category = None

    # ── Properties ────────────────────────────────────────────────────────

    @property
    def dice(self) -> tuple[DieState, ...]:
        """Current dice tuple."""
        return self.state.dice

    @property
    def rolls_used(self) -> int:
        return self.state.rolls_used

    @property
    def game_over(self) -> bool:
        return self.state.game_over

    @property
    def current_round(self) -> int:
        """Current round number (1-10)."""
        return self.state.current_round

    @property
    def current_player(self) -> Player:
        return self.state.current_player

    @property
    def is_human_turn(self) -> bool:
        return not self.state.game_over and self.state.current_player == Player.HUMAN

    @property
    def winner(self) -> Player | None:
        return self.state.winner

    @property
    def instant_win(self) -> bool:
        return self.state.instant_win

    @property
    def can_roll_now(self) -> bool:
        """Whether the human may roll right now."""
        return self.is_human_turn and can_roll(self.state)

    def scorecard(self, player: Player) -> Scorecard:
        """Scorecard column for a player."""
        return self.state.scorecard_for(player)

    def total(self, player: Player) -> int:
        """Total Score row for a player."""
        return self.state.scorecard_for(player).total()

    # ── Human actions ─────────────────────────────────────────────────────

    def roll_dice(self) -> bool:
        """Roll the unheld dice for the human. Returns True if a roll happened."""
        if not self.can_roll_now:
            return False
        self._roll()
        return True

    def toggle_hold(self, die_index: int) -> bool:
        """Toggle a die's hold for the human. Returns True if it changed."""
        if not self.is_human_turn:
            return False
        new_state = engine_toggle_die(self.state, die_index)
        if new_state is self.state:
            return False
        self.state = new_state
        held = tuple(i for i, die in enumerate(self.dice) if die.held)
        self.game_log.log_hold_change(self.current_round, Player.HUMAN, held,
                                      dice_values(self.dice))
        return True

    def select_category(self, category: Category) -> bool:
        """Score a category for the human. Returns True if it was scored."""
        if not self.is_human_turn or not can_select_category(self.state, category):
            return False
        self._score(category)
        return True

    # ── Computer turn ─────────────────────────────────────────────────────

    def tick(self) -> bool:
        """Advance computer pacing by one frame.

        Returns:
            True when the computer should take its next step now.
        """
        if self.game_over or self.is_human_turn or self.ai_thinking:
            return False
        self.ai_timer += 1
        if self.ai_timer < self.ai_delay:
            return False
        self.ai_timer = 0
        return True

    def ai_step(self) -> None:
        """Take one computer step: the first roll, a re-roll, or scoring.

        Blocks while the strategy searches. Safe to run on a worker thread:
        the game state is only ever replaced, never mutated in place.
        """
        if self.game_over or self.is_human_turn:
            return
        self.ai_thinking = True
        try:
            if self.state.rolls_used == 0:
                self.ai_reason = "Rolling all five dice"
                self._roll()
                if self.instant_win:
                    self.ai_reason = "GENERALA on the first roll!"
                return

            action = self.computer_strategy.choose_action(self.state)
            self.ai_reason = action.reason

            if isinstance(action, RollAction):
                held = apply_holds(self.state, action.hold)
                if can_roll(held):
                    self.game_log.log_hold_change(
                        self.current_round, Player.COMPUTER, action.hold,
                        dice_values(self.dice), expected_value=action.expected_value)
                    self.state = held
                    self._roll()
                    return
                # Strategy asked for a roll it cannot make: score greedily instead
                self._score(greedy_category(dice_values(self.dice),
                                            self.scorecard(Player.COMPUTER),
                                            is_first_roll(self.state)))
                return

            if action.category is None:
                logger.warning("Computer found no open category in round %d", self.current_round)
                return
            self._score(action.category, expected_value=action.expected_value)
        finally:
            self.ai_thinking = False
            self.ai_timer = 0

    # ── Game management ───────────────────────────────────────────────────

    def reset_game(self) -> None:
        """Start a new game, keeping the opponent and speed."""
        self.state = GameState.create_initial()
        self.ai_timer = 0
        self.ai_reason = ""
        self.ai_thinking = False
        self.last_scored_category = None
        self.game_log.clear()

    def change_speed(self, direction: int) -> bool:
        """Step the speed preset up (+1) or down (-1). Returns True if it changed."""
        idx = SPEED_NAMES.index(self.speed_name)
        new_idx = idx + direction
        if 0 <= new_idx < len(SPEED_NAMES):
            self.speed_name = SPEED_NAMES[new_idx]
            self.ai_delay = SPEED_PRESETS[self.speed_name]
            return True
        return False

    def result_message(self) -> str:
        """End-of-game message, or "" while the game is running."""
        if not self.game_over:
            return ""
        if self.instant_win:
            if self.winner == Player.HUMAN:
                return "GENERALA! You won on the very first roll!"
            return "GENERALA! The computer won on the very first roll!"

        human = self.total(Player.HUMAN)
        computer = self.total(Player.COMPUTER)
        if self.winner == Player.HUMAN:
            verdict = "You win!"
        elif self.winner == Player.COMPUTER:
            verdict = "The computer wins!"
        else:
            verdict = "It's a tie!"
        return f"Your score: {human}\nComputer's score: {computer}\n\n{verdict}"

    def last_turn_summary(self) -> tuple[str, str, int] | None:
        """(player label, category name, score) of the most recent scoring."""
        score_entries = self.game_log.get_score_entries()
        if not score_entries:
            return None
        last = score_entries[-1]
        return (last.player.label, last.category.value, last.score)

    # ── Internal ─────────────────────────────────────────────────────────

    def _roll(self) -> None:
        self.state = engine_roll_dice(self.state)
        self.game_log.log_roll(
            turn=self.current_round,
            player=self.current_player,
            roll_number=self.rolls_used,
            dice_values=dice_values(self.dice),
        )
        if self.instant_win:
            logger.info("Game over in round %d: %s rolled Generala",
                        self.current_round, self.winner.label)

    def _score(self, category: Category, expected_value: float | None = None) -> None:
        player = self.current_player
        turn = self.current_round
        values = dice_values(self.dice)
        score = score_for_category(category, values, is_first_roll(self.state))

        self.state = engine_select_category(self.state, category)
        self.last_scored_category = category
        self.game_log.log_score(turn, player, category, score, values,
                                expected_value=expected_value)
        logger.debug("%s scored %s for %d in round %d", player.label, category.value, score, turn)

        if self.game_over:
            winner = self.winner.label if self.winner is not None else "nobody (tie)"
            logger.info("Game over after round %d: %d-%d, winner %s", TOTAL_ROUNDS,
                        self.total(Player.HUMAN), self.total(Player.COMPUTER), winner)


def positive_int(value: str) -> int:
    """argparse type for counts that must be at least 1."""
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid int value: {value!r}")
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {number}")
    return number


def make_strategy(token: str, settings: dict | None = None) -> GeneralaStrategy:
    """Create the computer's strategy from an opponent token.

    Unrecognised tokens (e.g. from a hand-edited settings file) fall back
    to the Monte Carlo opponent.
    """
    settings = settings or DEFAULTS
    if token == "greedy":
        return GreedyStrategy()
    elif token == "random":
        return RandomStrategy()
    elif token != "montecarlo":
        logger.warning("Unknown opponent %r, using montecarlo", token)
    return MonteCarloStrategy(
        hold_trials=settings.get("hold_trials", DEFAULTS["hold_trials"]),
        category_trials=settings.get("category_trials", DEFAULTS["category_trials"]),
    )


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Options left unset (None) fall back to the saved settings.

    Args:
        argv: Optional list of args (for testing). None uses sys.argv.

    Returns:
        Parsed argparse.Namespace.
    """
    parser = argparse.ArgumentParser(description="Generala — play against the computer")
    parser.add_argument("--opponent", choices=OPPONENTS,
                        help="Computer strategy (default: montecarlo)")
    parser.add_argument("--speed", choices=SPEED_NAMES,
                        help="Computer playback speed (default: normal)")
    parser.add_argument("--seed", type=int,
                        help="Seed the random number generator for a reproducible game")
    parser.add_argument("--hold-trials", type=positive_int, metavar="N",
                        help="Reroll samples per hold mask (default: 500)")
    parser.add_argument("--category-trials", type=positive_int, metavar="N",
                        help="Forward simulations per open category (default: 2000)")
    parser.add_argument("--log-level", default="WARNING",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
                        help="Logging level (default: WARNING)")
    return parser.parse_args(argv)


def apply_args(settings: dict, args: argparse.Namespace) -> dict:
    """Return settings with any options given on the command line applied."""
    result = dict(settings)
    overrides = {
        "opponent": args.opponent,
        "speed": args.speed,
        "hold_trials": args.hold_trials,
        "category_trials": args.category_trials,
    }
    for key, value in overrides.items():
        if value is not None:
            result[key] = value
    return result
