"""
Generala Game Engine - Pure game logic without GUI dependencies

This module contains the scoring rules, the scorecard and the two-player
(human vs computer) game state. It uses immutable data structures and pure
functions so that everything can be unit tested without a frontend.
"""
from dataclasses import dataclass, replace
from enum import Enum, IntEnum
from typing import Optional, Tuple
from collections import Counter
import logging
import random

logger = logging.getLogger(__name__)

TOTAL_ROUNDS = 10
MAX_ROLLS = 3
FIRST_ROLL_BONUS = 5
TOTAL_LABEL = "Total Score"


class Category(Enum):
    """Generala score categories"""
    ONES = "Ones"
    TWOS = "Twos"
    THREES = "Threes"
    FOURS = "Fours"
    FIVES = "Fives"
    SIXES = "Sixes"
    STRAIGHT = "Straight"
    FULL_HOUSE = "Full House"
    FOUR_OF_KIND = "Four of a kind"
    GENERALA = "Generala"


class Player(IntEnum):
    """Seats at the table. Also the index into GameState.scorecards."""
    HUMAN = 0
    COMPUTER = 1

    @property
    def label(self) -> str:
        return self.name.capitalize()


_CATEGORY_BY_NAME = {cat.value: cat for cat in Category}

_UPPER_FACES = {
    Category.ONES: 1, Category.TWOS: 2, Category.THREES: 3,
    Category.FOURS: 4, Category.FIVES: 5, Category.SIXES: 6,
}


# ── Hands ───────────────────────────────────────────────────────────────────

def validate_hand(hand):
    """Fail fast on a hand that is not exactly 5 dice valued 1-6.

    Raises:
        ValueError: if the hand is malformed (a caller bug, not a game state)
    """
    if len(hand) != 5:
        raise ValueError(f"A hand has exactly 5 dice, got {len(hand)}: {list(hand)}")
    for value in hand:
        if not isinstance(value, int) or not 1 <= value <= 6:
            raise ValueError(f"Die values must be integers 1-6, got {value!r}")


def group_dice(hand):
    """
    Reduce a hand to (face value, count) pairs

    For example [1, 1, 3, 3, 3] -> [(1, 2), (3, 3)]. Pairs come out in the
    order each face is first seen.

    Args:
        hand: Sequence of die values

    Returns:
        List of (value, count) tuples
    """
    return list(Counter(hand).items())


# ── Scoring Rules ───────────────────────────────────────────────────────────

def score_numbered(hand, face):
    """Sum of all dice showing face"""
    return sum(value for value in hand if value == face)


def score_straight(hand, is_first_roll):
    """
    Score the Straight category

    The distinct faces must be exactly 1-2-3-4-5 or 2-3-4-5-6.
    20 points, 25 when made on the first roll of the turn.
    """
    distinct = sorted(set(hand))
    if distinct == [1, 2, 3, 4, 5] or distinct == [2, 3, 4, 5, 6]:
        return 20 + (FIRST_ROLL_BONUS if is_first_roll else 0)
    return 0


def score_full_house(hand, is_first_roll):
    """
    Score the Full House category

    Needs a group of exactly 3 and a group of exactly 2, so five of a kind
    does not count. 30 points, 35 on the first roll.
    """
    counts = [count for _, count in group_dice(hand)]
    if 3 in counts and 2 in counts:
        return 30 + (FIRST_ROLL_BONUS if is_first_roll else 0)
    return 0


def score_four_of_kind(hand, is_first_roll):
    """
    Score the Four of a kind category

    Any group of 4 or more (five of a kind counts too).
    40 points, 45 on the first roll.
    """
    if any(count >= 4 for _, count in group_dice(hand)):
        return 40 + (FIRST_ROLL_BONUS if is_first_roll else 0)
    return 0


def score_generala(hand, is_first_roll=False):
    """Score the Generala category: 50 for five of a kind, no first-roll bonus"""
    if any(count == 5 for _, count in group_dice(hand)):
        return 50
    return 0


def is_instant_win(hand):
    """
    Check for an instant win (all five dice the same)

    Only meaningful straight after a player's first roll of a turn; the
    turn driver ends the game when this is True.

    Args:
        hand: Sequence of 5 die values

    Returns:
        True if every die shows the same face
    """
    validate_hand(hand)
    return any(count == 5 for _, count in group_dice(hand))


def score_for_category(category, hand, is_first_roll):
    """
    Calculate the score for a given category and hand

    Args:
        category: Category enum value, or its display name ("Full House")
        hand: Sequence of 5 die values
        is_first_roll: True if the hand came from the first roll of the turn

    Returns:
        Integer score for the category (0 if it doesn't qualify or the
        category is not recognised)
    """
    if not isinstance(category, Category):
        name = category
        category = _CATEGORY_BY_NAME.get(name)
        if category is None:
            logger.debug("No scoring rule for category %r", name)
            return 0

    if category in _UPPER_FACES:
        return score_numbered(hand, _UPPER_FACES[category])
    elif category == Category.STRAIGHT:
        return score_straight(hand, is_first_roll)
    elif category == Category.FULL_HOUSE:
        return score_full_house(hand, is_first_roll)
    elif category == Category.FOUR_OF_KIND:
        return score_four_of_kind(hand, is_first_roll)
    elif category == Category.GENERALA:
        return score_generala(hand, is_first_roll)

    return 0


# ── Scorecard ───────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class CategoryState:
    """One cell of a player's column - immutable"""
    final_score: Optional[int] = None
    potential_score: int = 0  # display only, never read by the AI


class Scorecard:
    """One player's column of the scoreboard"""

    def __init__(self):
        """Initialize an empty scorecard"""
        self.entries = {category: CategoryState() for category in Category}

    def is_filled(self, category):
        """Check if a category has a final score"""
        return self.entries[category].final_score is not None

    def final_score(self, category):
        """Final score for a category, or None while it is open"""
        return self.entries[category].final_score

    def open_categories(self):
        """Categories without a final score, in Category order"""
        return [cat for cat, entry in self.entries.items() if entry.final_score is None]

    def set_score(self, category, score):
        """Set the final score for a category (once only)"""
        if not self.is_filled(category):
            self.entries[category] = replace(self.entries[category], final_score=score)

    def total(self):
        """The Total Score row: sum of final scores, open categories count 0"""
        return sum(entry.final_score or 0 for entry in self.entries.values())

    def is_complete(self):
        """Check if all categories are filled"""
        return all(entry.final_score is not None for entry in self.entries.values())

    def copy(self):
        """Create an independent copy of the scorecard"""
        new_card = Scorecard()
        # CategoryState is frozen, so sharing the values is safe
        new_card.entries = dict(self.entries)
        return new_card

    def with_score(self, category, score):
        """Return new Scorecard with score set for category"""
        new_card = self.copy()
        new_card.set_score(category, score)
        return new_card

    def with_potential_scores(self, hand, is_first_roll):
        """Return new Scorecard showing what each open category would score"""
        new_card = self.copy()
        for cat in new_card.open_categories():
            potential = score_for_category(cat, hand, is_first_roll)
            new_card.entries[cat] = replace(new_card.entries[cat], potential_score=potential)
        return new_card

    def cleared_potentials(self):
        """Return new Scorecard with every potential score reset to 0"""
        new_card = self.copy()
        for cat, entry in new_card.entries.items():
            new_card.entries[cat] = replace(entry, potential_score=0)
        return new_card

    def __eq__(self, other):
        if not isinstance(other, Scorecard):
            return NotImplemented
        return self.entries == other.entries

    def __repr__(self):
        scores = {cat.value: entry.final_score for cat, entry in self.entries.items()}
        return f"Scorecard({scores})"


# ── Dice and Game State ─────────────────────────────────────────────────────

@dataclass(frozen=True)
class DieState:
    """Pure representation of a single die's state - immutable"""
    value: int  # 1-6
    held: bool = False

    def roll(self) -> 'DieState':
        """Return new DieState with random value (if not held)"""
        if self.held:
            return self
        return replace(self, value=random.randint(1, 6))

    def toggle_held(self) -> 'DieState':
        """Return new DieState with held status toggled"""
        return replace(self, held=not self.held)


def dice_values(dice):
    """Plain list of values from a tuple of DieState"""
    return [die.value for die in dice]


@dataclass(frozen=True)
class GameState:
    """Immutable two-player game state at a point in time"""
    dice: Tuple[DieState, ...]  # 5 dice
    scorecards: Tuple[Scorecard, Scorecard]  # indexed by Player
    current_player: Player
    rolls_used: int  # 0-3
    current_round: int  # 1-10
    game_over: bool = False
    winner: Optional[Player] = None  # None while playing, or on a tie
    instant_win: bool = False

    @staticmethod
    def create_initial():
        """Create a fresh game state"""
        dice = tuple(DieState(value=random.randint(1, 6)) for _ in range(5))
        return GameState(
            dice=dice,
            scorecards=(Scorecard(), Scorecard()),
            current_player=Player.HUMAN,
            rolls_used=0,
            current_round=1,
        )

    def scorecard_for(self, player: Player) -> Scorecard:
        return self.scorecards[player]


def current_scorecard(state: GameState) -> Scorecard:
    """Scorecard of the player whose turn it is"""
    return state.scorecards[state.current_player]


def is_first_roll(state: GameState) -> bool:
    """True when the dice on the table come from the turn's first roll"""
    return state.rolls_used == 1


def _replace_scorecard(state: GameState, player: Player, scorecard: Scorecard):
    cards = list(state.scorecards)
    cards[player] = scorecard
    return tuple(cards)


def determine_winner(scorecards) -> Optional[Player]:
    """Player with the higher total, or None on a tie"""
    human = scorecards[Player.HUMAN].total()
    computer = scorecards[Player.COMPUTER].total()
    if human > computer:
        return Player.HUMAN
    if computer > human:
        return Player.COMPUTER
    return None


# Game Action Functions

def can_roll(state: GameState) -> bool:
    """
    Check if the current player can roll dice.

    Rolling needs rolls left, a game in progress and at least one unheld die.
    """
    if state.game_over or state.rolls_used >= MAX_ROLLS:
        return False
    return any(not die.held for die in state.dice)


def roll_dice(state: GameState) -> GameState:
    """
    Roll all unheld dice and increment the roll counter.

    Refreshes the current player's potential scores. Five of a kind on the
    first roll of a turn ends the game with the roller as winner.
    Returns state unchanged if rolling is not allowed.

    Args:
        state: Current game state

    Returns:
        New GameState with rolled dice
    """
    if not can_roll(state):
        return state

    new_dice = tuple(die.roll() for die in state.dice)
    rolls_used = state.rolls_used + 1
    first_roll = rolls_used == 1
    values = dice_values(new_dice)

    card = current_scorecard(state).with_potential_scores(values, first_roll)
    new_state = replace(state,
                        dice=new_dice,
                        rolls_used=rolls_used,
                        scorecards=_replace_scorecard(state, state.current_player, card))

    if first_roll and is_instant_win(values):
        logger.info("%s rolled Generala on the first roll", state.current_player.label)
        return replace(new_state,
                       game_over=True,
                       winner=state.current_player,
                       instant_win=True)
    return new_state


def toggle_die_hold(state: GameState, die_index: int) -> GameState:
    """
    Toggle hold status of a specific die.

    Dice can only be held after the first roll of a turn.
    Returns state unchanged if index is invalid, the game is over or
    nothing has been rolled yet.
    """
    if not (0 <= die_index < 5) or state.game_over or state.rolls_used == 0:
        return state

    dice_list = list(state.dice)
    dice_list[die_index] = dice_list[die_index].toggle_held()
    return replace(state, dice=tuple(dice_list))


def can_select_category(state: GameState, category: Category) -> bool:
    """
    Check if category is available to the current player.

    Category is available if the game is running, the player has rolled
    at least once and the category has no final score yet.
    """
    return (not state.game_over and state.rolls_used > 0
            and not current_scorecard(state).is_filled(category))


def select_category(state: GameState, category: Category) -> GameState:
    """
    Lock in a score for a category and pass the turn.

    The human's turn hands over to the computer in the same round; the
    computer's turn starts the next round. After the computer scores in
    round 10 the game is over and the higher total wins.

    Args:
        state: Current game state
        category: Category to score

    Returns:
        New GameState with category scored and turn advanced
    """
    if not can_select_category(state, category):
        return state

    player = state.current_player
    score = score_for_category(category, dice_values(state.dice), is_first_roll(state))
    card = current_scorecard(state).with_score(category, score).cleared_potentials()
    scorecards = _replace_scorecard(state, player, card)
    new_dice = tuple(replace(die, held=False) for die in state.dice)

    if player == Player.HUMAN:
        return replace(state,
                       dice=new_dice,
                       scorecards=scorecards,
                       current_player=Player.COMPUTER,
                       rolls_used=0)

    if state.current_round >= TOTAL_ROUNDS:
        return replace(state,
                       dice=new_dice,
                       scorecards=scorecards,
                       rolls_used=0,
                       game_over=True,
                       winner=determine_winner(scorecards))

    return replace(state,
                   dice=new_dice,
                   scorecards=scorecards,
                   current_player=Player.HUMAN,
                   rolls_used=0,
                   current_round=state.current_round + 1)


def reset_game() -> GameState:
    """
    Create a fresh game state (equivalent to starting over).

    Returns:
        New GameState with initial values
    """
    return GameState.create_initial()
