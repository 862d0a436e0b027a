"""
Generala AI — Monte Carlo decision engine, strategies and headless game loop.

Contains:
- The decision engine: greedy single-step policy, hold-set optimizer,
  category commitment optimizer and the forward simulator behind it
- Action types (RollAction, ScoreAction)
- GeneralaStrategy abstract base class
- MonteCarloStrategy (the computer opponent), GreedyStrategy, RandomStrategy
- play_turn() and play_game() game loop functions

Every engine function is blocking and works on its own copies of the
scorecard it is given. Running them off the UI thread is up to the caller.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional, Tuple, Union
import logging
import random

from game_engine import (
    Category, GameState, Player, Scorecard,
    TOTAL_ROUNDS, MAX_ROLLS,
    can_roll, current_scorecard, dice_values, is_first_roll,
    roll_dice, score_for_category, select_category, toggle_die_hold,
    validate_hand,
)

logger = logging.getLogger(__name__)

HOLD_TRIALS = 500
CATEGORY_TRIALS = 2000

# Expected value reported when there is nothing left to score. Below any real total.
NO_CATEGORY_VALUE = -1.0


# ── Greedy Single-Step Policy ───────────────────────────────────────────────

def best_greedy_score(hand, board: Scorecard, is_first_roll: bool) -> int:
    """Highest score the hand can take in any open category (0 if none)."""
    best = 0
    for cat in board.open_categories():
        score = score_for_category(cat, hand, is_first_roll)
        if score > best:
            best = score
    return best


def greedy_category(hand, board: Scorecard, is_first_roll: bool) -> Optional[Category]:
    """Open category the greedy policy would fill with this hand.

    First open category reaching the best greedy score. When everything
    scores 0 that is simply the first open category, so a turn is always
    spent. None only when the board is full.
    """
    available = board.open_categories()
    if not available:
        return None
    best = best_greedy_score(hand, board, is_first_roll)
    for cat in available:
        if score_for_category(cat, hand, is_first_roll) == best:
            return cat
    return available[0]


# ── Hold-Set Optimizer ──────────────────────────────────────────────────────

def evaluate_hold(hand, mask: int, board: Scorecard,
                  trials: int = HOLD_TRIALS, rng=None) -> float:
    """Estimate the average greedy score after rerolling the dice not in mask.

    Bit i of mask set means die i is held. Rerolled hands are never scored
    as a first roll.
    """
    rng = rng or random
    held = [hand[i] for i in range(5) if mask & (1 << i)]
    num_reroll = 5 - len(held)

    total = 0
    for _ in range(trials):
        candidate = held + [rng.randint(1, 6) for _ in range(num_reroll)]
        total += best_greedy_score(candidate, board, False)
    return total / trials


def find_best_hold(hand, board: Scorecard, round: int, rolls_left: int,
                   trials: int = HOLD_TRIALS, rng=None) -> Tuple[list, float]:
    """Pick the dice to keep before the next roll.

    Evaluates all 32 hold masks with evaluate_hold(). The strictly best
    average wins, so ties keep the lower mask.

    round and rolls_left are accepted for symmetry with the turn state and
    are not used by the estimate.

    Args:
        hand: The 5 current die values
        board: The deciding player's scorecard
        round: Current round (1-10)
        rolls_left: Rolls remaining this turn
        trials: Reroll samples per mask
        rng: Source with randint(); defaults to the random module

    Returns:
        (held_values, expected_value) with held values in die order
    """
    validate_hand(hand)
    best_mask = 0
    best_ev = -1.0

    for mask in range(32):
        ev = evaluate_hold(hand, mask, board, trials, rng)
        if ev > best_ev:
            best_ev = ev
            best_mask = mask

    held = [hand[i] for i in range(5) if best_mask & (1 << i)]
    logger.debug("Best hold for %s: %s (EV %.2f)", list(hand), held, best_ev)
    return held, best_ev


def hold_indices(hand, held_values) -> Tuple[int, ...]:
    """Convert held values back to die positions.

    Matches values against positions left to right, so duplicates are
    each claimed once.
    """
    indices = []
    remaining = list(held_values)
    for i, value in enumerate(hand):
        if value in remaining:
            indices.append(i)
            remaining.remove(value)
    return tuple(indices)


# ── Category Commitment Optimizer ───────────────────────────────────────────

def simulate_to_end(board: Scorecard, start_round: int, rng=None) -> int:
    """Play the remaining rounds greedily and return the final total.

    Each simulated round is a single roll of all five dice (no holds),
    scored as a first roll and committed to the greedy category. Stops as
    soon as nothing is open, before rolling.

    The board is filled in place: always pass a copy you own.
    """
    rng = rng or random
    for _ in range(start_round, TOTAL_ROUNDS + 1):
        if not board.open_categories():
            break
        sim_hand = [rng.randint(1, 6) for _ in range(5)]
        cat = greedy_category(sim_hand, board, True)
        board.set_score(cat, score_for_category(cat, sim_hand, True))
    return board.total()


def find_best_category(final_hand, board: Scorecard, round: int, is_first_roll: bool,
                       trials: int = CATEGORY_TRIALS, rng=None) -> Tuple[Optional[Category], float]:
    """Choose which open category to commit the final hand to.

    For every open category the hand's score is committed on a copy of the
    board, the rest of the game is simulated from the next round, and the
    final totals are averaged over the trials. Highest average wins; the
    first category seen keeps a tie.

    Returns:
        (category, expected_value), or (None, NO_CATEGORY_VALUE) when the
        board has no open category left
    """
    validate_hand(final_hand)
    best_cat = None
    best_ev = NO_CATEGORY_VALUE

    available = board.open_categories()
    if not available:
        return None, best_ev

    for cat in available:
        potential = score_for_category(cat, final_hand, is_first_roll)
        total = 0
        for _ in range(trials):
            total += simulate_to_end(board.with_score(cat, potential), round + 1, rng)
        ev = total / trials
        if ev > best_ev:
            best_ev = ev
            best_cat = cat

    logger.debug("Best category for %s: %s (EV %.2f)",
                 list(final_hand), best_cat.value, best_ev)
    return best_cat, best_ev


# ── Action Types ────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class RollAction:
    """Hold specific dice and re-roll the rest."""
    hold: Tuple[int, ...]  # dice indices (0-4) to hold; rest get rolled
    reason: str = ""
    expected_value: Optional[float] = None


@dataclass(frozen=True)
class ScoreAction:
    """Lock in a score for a category."""
    category: Optional[Category]  # None only when nothing is left to score
    reason: str = ""
    expected_value: Optional[float] = None


# ── Strategy Interface ──────────────────────────────────────────────────────

class GeneralaStrategy(ABC):
    """Abstract base class for Generala AI strategies."""

    @abstractmethod
    def choose_action(self, state: GameState) -> Union[RollAction, ScoreAction]:
        """Given state (after at least 1 roll), decide: roll again or score.

        Args:
            state: Current game state with rolls_used >= 1

        Returns:
            RollAction to hold dice and re-roll, or ScoreAction to lock in a category
        """
        ...


# ── MonteCarloStrategy ──────────────────────────────────────────────────────

class MonteCarloStrategy(GeneralaStrategy):
    """The computer opponent.

    While rolls remain, compares the best score available right now with
    the expected value of the best hold; rolls again only if the hold is
    strictly better. When it stops, the category is picked by full-game
    forward simulation.
    """

    def __init__(self, hold_trials: int = HOLD_TRIALS,
                 category_trials: int = CATEGORY_TRIALS, rng=None):
        self.hold_trials = hold_trials
        self.category_trials = category_trials
        self.rng = rng

    def choose_action(self, state: GameState) -> Union[RollAction, ScoreAction]:
        hand = dice_values(state.dice)
        card = current_scorecard(state)
        first_roll = is_first_roll(state)

        if state.rolls_used < MAX_ROLLS:
            stop_value = best_greedy_score(hand, card, first_roll)
            held, roll_value = find_best_hold(
                hand, card, state.current_round, MAX_ROLLS - state.rolls_used,
                trials=self.hold_trials, rng=self.rng)
            if roll_value > stop_value and len(held) < 5:
                return RollAction(
                    hold=hold_indices(hand, held),
                    reason=f"Holding {sorted(held)} and rolling (EV {roll_value:.1f} vs {stop_value} now)",
                    expected_value=roll_value)

        category, ev = find_best_category(
            hand, card, state.current_round, first_roll,
            trials=self.category_trials, rng=self.rng)
        if category is None:
            return ScoreAction(category=None, reason="No open category left",
                               expected_value=ev)
        score = score_for_category(category, hand, first_roll)
        return ScoreAction(
            category=category,
            reason=f"Scoring {category.value} for {score} (projected total {ev:.1f})",
            expected_value=ev)


# ── GreedyStrategy ─────────────────────────────────────────────────────────

class GreedyStrategy(GeneralaStrategy):
    """Baseline: scores the greedy category straight after the first roll."""

    def choose_action(self, state: GameState) -> Union[RollAction, ScoreAction]:
        hand = dice_values(state.dice)
        card = current_scorecard(state)
        cat = greedy_category(hand, card, is_first_roll(state))
        score = score_for_category(cat, hand, is_first_roll(state))
        return ScoreAction(category=cat, reason=f"Taking {cat.value} for {score}")


# ── RandomStrategy ──────────────────────────────────────────────────────────

class RandomStrategy(GeneralaStrategy):
    """Baseline strategy: random holds, random category selection."""

    def choose_action(self, state: GameState) -> Union[RollAction, ScoreAction]:
        if state.rolls_used < MAX_ROLLS and random.random() < 0.5:
            hold = tuple(i for i in range(5) if random.random() < 0.5)
            if len(hold) < 5:
                return RollAction(hold=hold, reason="Feeling lucky — random hold and re-roll")

        cat = random.choice(current_scorecard(state).open_categories())
        return ScoreAction(category=cat, reason=f"Randomly picking {cat.value}")


# ── Game Loop ───────────────────────────────────────────────────────────────

def apply_holds(state: GameState, hold: Tuple[int, ...]) -> GameState:
    """Set hold status on dice: hold those in hold, unhold the rest."""
    for i in range(5):
        if (i in hold) != state.dice[i].held:
            state = toggle_die_hold(state, i)
    return state


def play_turn(state: GameState, strategy: GeneralaStrategy) -> GameState:
    """Play one turn for the current player.

    Args:
        state: Game state at the start of a turn (rolls_used == 0)
        strategy: The AI strategy to use for decisions

    Returns:
        Game state after the turn (scored, or game over on an instant win)
    """
    state = roll_dice(state)

    while not state.game_over:
        action = strategy.choose_action(state)

        if isinstance(action, ScoreAction):
            if action.category is None:
                return state
            return select_category(state, action.category)

        held = apply_holds(state, action.hold)
        if not can_roll(held):
            # Out of rolls: take the first open category
            return select_category(state, current_scorecard(state).open_categories()[0])
        state = roll_dice(held)

    return state


def play_game(human_strategy: GeneralaStrategy,
              computer_strategy: GeneralaStrategy) -> GameState:
    """Play a complete game with both seats driven by strategies.

    Returns:
        Final game state with game_over == True
    """
    strategies = {Player.HUMAN: human_strategy, Player.COMPUTER: computer_strategy}
    state = GameState.create_initial()
    while not state.game_over:
        state = play_turn(state, strategies[state.current_player])
    return state

