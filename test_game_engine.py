"""
Generala Rules Test Suite

Every rule has both positive tests (what IS allowed) and negative tests
(what is NOT allowed).

Sections:
    1. Dice — values, immutability, rolling, holding
    2. Game Setup — initial state, reset
    3. Rolling — when allowed, limits, potential scores
    4. Instant Win — five of a kind on the first roll
    5. Scoring Rules — every category's formula, first-roll bonus
    6. Scorecard — totals, copies, open categories
    7. Turn Flow — human then computer, rounds, game over, winner
"""
import pytest
import random
from dataclasses import replace

from game_engine import (
    DieState, GameState, Category, Player, Scorecard,
    roll_dice, toggle_die_hold, select_category,
    can_roll, can_select_category, reset_game, current_scorecard,
    determine_winner, is_first_roll, is_instant_win, validate_hand, group_dice,
    score_for_category, score_numbered, score_straight, score_full_house,
    score_four_of_kind, score_generala,
    TOTAL_ROUNDS,
)


# ── Helpers ──────────────────────────────────────────────────────────────────

def make_dice(*values, held=()):
    """Create a tuple of DieState from integer values, holding the given indices."""
    return tuple(DieState(value=v, held=i in held) for i, v in enumerate(values))


def state_with_dice(*values, rolls_used=2, player=Player.HUMAN, round_number=1):
    """Create a GameState with specific dice values.
    Defaults to rolls_used=2 so that scoring is legal and carries no first-roll bonus."""
    state = GameState.create_initial()
    return replace(state, dice=make_dice(*values), rolls_used=rolls_used,
                   current_player=player, current_round=round_number)


def score_turn(state, category, values=(1, 2, 3, 4, 6)):
    """Score category for whoever is on turn with a fixed, non-first-roll hand."""
    state = replace(state, dice=make_dice(*values), rolls_used=2)
    return select_category(state, category)


def all_scores(hand, first_roll):
    return {cat: score_for_category(cat, hand, first_roll) for cat in Category}


# ═══════════════════════════════════════════════════════════════════════════════
# 1. DICE
# ═══════════════════════════════════════════════════════════════════════════════

class TestDieState:

    def test_die_defaults_to_unheld(self):
        assert DieState(value=4).held is False

    def test_die_is_immutable(self):
        die = DieState(value=3)
        with pytest.raises(AttributeError):
            die.value = 6

    def test_rolling_unheld_die_produces_value_1_through_6(self):
        die = DieState(value=1)
        seen = set()
        for seed in range(200):
            random.seed(seed)
            seen.add(die.roll().value)
        assert seen == {1, 2, 3, 4, 5, 6}

    def test_rolling_held_die_preserves_value(self):
        for v in range(1, 7):
            die = DieState(value=v, held=True)
            assert die.roll() == die

    def test_toggle_held_returns_new_instance(self):
        die = DieState(value=4)
        toggled = die.toggle_held()
        assert toggled.held is True
        assert toggled.value == 4
        assert die.held is False


# ═══════════════════════════════════════════════════════════════════════════════
# 2. GAME SETUP
# ═══════════════════════════════════════════════════════════════════════════════

class TestGameSetup:

    def test_initial_state(self):
        state = GameState.create_initial()
        assert len(state.dice) == 5
        assert all(1 <= die.value <= 6 and not die.held for die in state.dice)
        assert state.rolls_used == 0
        assert state.current_round == 1
        assert state.current_player == Player.HUMAN
        assert state.game_over is False
        assert state.winner is None
        assert state.instant_win is False

    def test_both_scorecards_start_empty(self):
        state = GameState.create_initial()
        for player in Player:
            card = state.scorecard_for(player)
            assert card.open_categories() == list(Category)
            assert card.total() == 0

    def test_reset_game_returns_fresh_state(self):
        state = score_turn(GameState.create_initial(), Category.SIXES)
        fresh = reset_game()
        assert fresh.rolls_used == 0
        assert fresh.current_round == 1
        assert fresh.current_player == Player.HUMAN
        assert fresh.scorecard_for(Player.HUMAN).total() == 0
        assert state.scorecard_for(Player.HUMAN).is_filled(Category.SIXES)


# ═══════════════════════════════════════════════════════════════════════════════
# 3. ROLLING
#    Rule: up to 3 rolls per turn, only unheld dice change.
# ═══════════════════════════════════════════════════════════════════════════════

class TestRolling:

    def test_roll_increments_rolls_used(self):
        state = state_with_dice(1, 2, 3, 4, 6, rolls_used=1)
        assert roll_dice(state).rolls_used == 2

    def test_first_roll_with_held_dice_keeps_them(self):
        random.seed(3)
        state = replace(GameState.create_initial(), dice=make_dice(1, 2, 3, 4, 5, held=(0, 1)))
        rolled = roll_dice(state)
        assert rolled.rolls_used == 1
        assert rolled.dice[0] == DieState(1, held=True)
        assert rolled.dice[1] == DieState(2, held=True)
        assert rolled.game_over is False

    def test_cannot_roll_after_3_rolls(self):
        state = state_with_dice(1, 2, 3, 4, 6, rolls_used=3)
        assert can_roll(state) is False
        assert roll_dice(state) is state

    def test_cannot_roll_with_every_die_held(self):
        state = replace(state_with_dice(1, 2, 3, 4, 6, rolls_used=1),
                        dice=make_dice(1, 2, 3, 4, 6, held=range(5)))
        assert can_roll(state) is False

    def test_cannot_roll_when_game_over(self):
        state = replace(GameState.create_initial(), game_over=True)
        assert can_roll(state) is False

    def test_roll_updates_potential_scores(self, monkeypatch):
        state = replace(state_with_dice(1, 2, 3, 4, 6, rolls_used=1),
                        dice=make_dice(6, 6, 6, 6, 1, held=(0, 1, 2, 3)))
        monkeypatch.setattr(random, "randint", lambda a, b: 2)
        rolled = roll_dice(state)
        card = current_scorecard(rolled)
        assert card.entries[Category.SIXES].potential_score == 24
        assert card.entries[Category.FOUR_OF_KIND].potential_score == 40
        assert card.entries[Category.TWOS].potential_score == 2

    def test_cannot_hold_before_first_roll(self):
        state = GameState.create_initial()
        assert toggle_die_hold(state, 0) is state

    def test_hold_after_rolling(self):
        state = state_with_dice(1, 2, 3, 4, 6, rolls_used=1)
        held = toggle_die_hold(state, 2)
        assert held.dice[2].held is True
        assert toggle_die_hold(held, 2).dice[2].held is False

    def test_hold_invalid_index_is_no_op(self):
        state = state_with_dice(1, 2, 3, 4, 6, rolls_used=1)
        assert toggle_die_hold(state, 5) is state


# ═══════════════════════════════════════════════════════════════════════════════
# 4. INSTANT WIN
#    Rule: five of a kind on a player's first roll ends the game at once.
# ═══════════════════════════════════════════════════════════════════════════════

class TestInstantWin:

    def test_is_instant_win(self):
        assert is_instant_win([4, 4, 4, 4, 4]) is True
        assert is_instant_win([4, 4, 4, 4, 3]) is False

    def test_is_instant_win_rejects_bad_hand(self):
        with pytest.raises(ValueError):
            is_instant_win([4, 4, 4, 4])

    def test_first_roll_generala_ends_game(self, monkeypatch):
        monkeypatch.setattr(random, "randint", lambda a, b: 4)
        state = roll_dice(GameState.create_initial())
        assert state.game_over is True
        assert state.instant_win is True
        assert state.winner == Player.HUMAN

    def test_computer_first_roll_generala_wins_for_computer(self, monkeypatch):
        state = replace(GameState.create_initial(), current_player=Player.COMPUTER)
        monkeypatch.setattr(random, "randint", lambda a, b: 6)
        state = roll_dice(state)
        assert state.winner == Player.COMPUTER
        assert state.instant_win is True

    def test_later_generala_is_not_instant_win(self, monkeypatch):
        state = state_with_dice(4, 4, 4, 4, 1, rolls_used=1)
        state = replace(state, dice=make_dice(4, 4, 4, 4, 1, held=(0, 1, 2, 3)))
        monkeypatch.setattr(random, "randint", lambda a, b: 4)
        state = roll_dice(state)
        assert state.game_over is False
        assert state.instant_win is False
        assert score_for_category(Category.GENERALA, [d.value for d in state.dice], False) == 50


# ═══════════════════════════════════════════════════════════════════════════════
# 5. SCORING RULES
# ═══════════════════════════════════════════════════════════════════════════════

class TestScoringRules:

    def test_numbered_categories_sum_matching_faces(self):
        assert score_numbered([3, 3, 1, 3, 6], 3) == 9
        assert score_for_category(Category.SIXES, [3, 3, 1, 3, 6], False) == 6
        assert score_for_category(Category.FIVES, [3, 3, 1, 3, 6], False) == 0

    def test_five_identical_dice(self):
        for v in range(1, 7):
            hand = [v] * 5
            assert score_for_category(Category.GENERALA, hand, True) == 50
            assert score_for_category(Category.GENERALA, hand, False) == 50
            assert score_for_category(Category.FOUR_OF_KIND, hand, True) == 45
            assert score_for_category(Category.FOUR_OF_KIND, hand, False) == 40
            assert score_for_category(Category.FULL_HOUSE, hand, True) == 0

    def test_straight(self):
        scores = all_scores([1, 2, 3, 4, 5], True)
        assert scores[Category.STRAIGHT] == 25
        assert score_straight([5, 4, 3, 2, 1], False) == 20
        for cat in (Category.FULL_HOUSE, Category.FOUR_OF_KIND, Category.GENERALA):
            assert scores[cat] == 0

    def test_high_straight(self):
        assert score_straight([6, 2, 5, 3, 4], False) == 20

    def test_broken_straight_scores_zero(self):
        assert score_straight([1, 2, 3, 4, 6], True) == 0
        assert score_straight([1, 2, 3, 4, 4], True) == 0

    def test_full_house(self):
        scores = all_scores([2, 2, 2, 3, 3], True)
        assert scores[Category.FULL_HOUSE] == 35
        assert scores[Category.FOUR_OF_KIND] == 0
        assert scores[Category.TWOS] == 6
        assert scores[Category.THREES] == 6
        assert score_full_house([3, 2, 3, 2, 2], False) == 30

    def test_four_of_a_kind(self):
        scores = all_scores([6, 6, 6, 6, 2], True)
        assert scores[Category.FOUR_OF_KIND] == 45
        assert scores[Category.FULL_HOUSE] == 0
        assert score_four_of_kind([6, 2, 6, 6, 6], False) == 40

    def test_three_of_a_kind_is_not_four(self):
        assert score_four_of_kind([6, 6, 6, 1, 2], True) == 0

    def test_generala_has_no_first_roll_bonus(self):
        assert score_generala([2, 2, 2, 2, 2], True) == 50
        assert score_generala([2, 2, 2, 2, 3], True) == 0

    def test_scores_do_not_depend_on_dice_order(self):
        rng = random.Random(11)
        for _ in range(100):
            hand = [rng.randint(1, 6) for _ in range(5)]
            shuffled = list(hand)
            rng.shuffle(shuffled)
            for first_roll in (True, False):
                assert all_scores(hand, first_roll) == all_scores(shuffled, first_roll)

    def test_category_by_display_name(self):
        assert score_for_category("Full House", [2, 2, 2, 3, 3], False) == 30
        assert score_for_category("Four of a kind", [5, 5, 5, 5, 1], True) == 45

    def test_unknown_category_scores_zero(self):
        assert score_for_category("Chance", [6, 6, 6, 6, 6], True) == 0

    def test_group_dice(self):
        assert sorted(group_dice([1, 1, 3, 3, 3])) == [(1, 2), (3, 3)]

    def test_validate_hand(self):
        validate_hand([1, 2, 3, 4, 5])
        with pytest.raises(ValueError):
            validate_hand([1, 2, 3, 4, 5, 6])
        with pytest.raises(ValueError):
            validate_hand([0, 2, 3, 4, 5])
        with pytest.raises(ValueError):
            validate_hand([1, 2, 3, 4, 7])


# ═══════════════════════════════════════════════════════════════════════════════
# 6. SCORECARD
# ═══════════════════════════════════════════════════════════════════════════════

class TestScorecard:

    def test_total_counts_open_categories_as_zero(self):
        card = Scorecard().with_score(Category.SIXES, 18).with_score(Category.STRAIGHT, 20)
        assert card.total() == 38

    def test_set_score_only_once(self):
        card = Scorecard()
        card.set_score(Category.ONES, 3)
        card.set_score(Category.ONES, 5)
        assert card.final_score(Category.ONES) == 3

    def test_zero_score_fills_category(self):
        card = Scorecard().with_score(Category.GENERALA, 0)
        assert card.is_filled(Category.GENERALA)
        assert Category.GENERALA not in card.open_categories()

    def test_copy_is_independent(self):
        card = Scorecard().with_score(Category.TWOS, 4)
        copy = card.copy()
        copy.set_score(Category.THREES, 9)
        assert not card.is_filled(Category.THREES)
        assert copy.is_filled(Category.TWOS)
        assert card.total() == 4

    def test_with_score_leaves_original_untouched(self):
        card = Scorecard()
        card.with_score(Category.FIVES, 15)
        assert card.total() == 0

    def test_open_categories_in_category_order(self):
        card = Scorecard().with_score(Category.TWOS, 4).with_score(Category.STRAIGHT, 0)
        assert card.open_categories() == [c for c in Category
                                          if c not in (Category.TWOS, Category.STRAIGHT)]

    def test_complete(self):
        card = Scorecard()
        for cat in Category:
            card.set_score(cat, 0)
        assert card.is_complete()

    def test_equality(self):
        assert Scorecard().with_score(Category.ONES, 2) == Scorecard().with_score(Category.ONES, 2)
        assert Scorecard() != Scorecard().with_score(Category.ONES, 2)


# ═══════════════════════════════════════════════════════════════════════════════
# 7. TURN FLOW
#    Rule: the human plays first each round, then the computer.
#    Rule: after the computer scores in round 10 the higher total wins.
# ═══════════════════════════════════════════════════════════════════════════════

class TestTurnFlow:

    def test_cannot_score_before_rolling(self):
        state = GameState.create_initial()
        assert can_select_category(state, Category.ONES) is False
        assert select_category(state, Category.ONES) is state

    def test_cannot_score_filled_category(self):
        state = score_turn(GameState.create_initial(), Category.ONES)
        state = score_turn(state, Category.ONES)  # computer
        assert state.current_player == Player.HUMAN
        state = replace(state, rolls_used=1)
        assert can_select_category(state, Category.ONES) is False

    def test_human_passes_to_computer_in_same_round(self):
        state = score_turn(GameState.create_initial(), Category.SIXES)
        assert state.current_player == Player.COMPUTER
        assert state.current_round == 1
        assert state.rolls_used == 0
        assert state.scorecard_for(Player.HUMAN).final_score(Category.SIXES) == 6

    def test_computer_starts_next_round(self):
        state = score_turn(GameState.create_initial(), Category.SIXES)
        state = score_turn(state, Category.FOURS)
        assert state.current_player == Player.HUMAN
        assert state.current_round == 2
        assert state.scorecard_for(Player.COMPUTER).final_score(Category.FOURS) == 4

    def test_scoring_releases_held_dice(self):
        state = state_with_dice(1, 2, 3, 4, 6, rolls_used=1)
        state = toggle_die_hold(state, 0)
        state = select_category(state, Category.ONES)
        assert not any(die.held for die in state.dice)

    def test_first_roll_bonus_applies_when_scoring(self):
        state = state_with_dice(2, 2, 2, 3, 3, rolls_used=1)
        assert is_first_roll(state)
        state = select_category(state, Category.FULL_HOUSE)
        assert state.scorecard_for(Player.HUMAN).final_score(Category.FULL_HOUSE) == 35

    def test_no_bonus_after_reroll(self):
        state = state_with_dice(2, 2, 2, 3, 3, rolls_used=3)
        state = select_category(state, Category.FULL_HOUSE)
        assert state.scorecard_for(Player.HUMAN).final_score(Category.FULL_HOUSE) == 30

    def test_scoring_clears_potentials(self):
        state = state_with_dice(6, 6, 6, 6, 1, rolls_used=1)
        card = current_scorecard(state).with_potential_scores([6, 6, 6, 6, 1], True)
        state = replace(state, scorecards=(card, state.scorecards[1]))
        state = select_category(state, Category.SIXES)
        entries = state.scorecard_for(Player.HUMAN).entries
        assert all(entry.potential_score == 0 for entry in entries.values())

    def test_full_game_ends_after_round_10(self):
        state = GameState.create_initial()
        categories = list(Category)
        for round_number in range(1, TOTAL_ROUNDS + 1):
            assert state.current_round == round_number
            state = score_turn(state, categories[round_number - 1], values=(6, 6, 6, 6, 1))
            assert not state.game_over
            state = score_turn(state, categories[round_number - 1], values=(1, 1, 2, 3, 5))
        assert state.game_over
        assert state.current_round == TOTAL_ROUNDS
        assert state.scorecard_for(Player.HUMAN).is_complete()
        assert state.scorecard_for(Player.COMPUTER).is_complete()
        # Ones 1 + Sixes 24 + Four of a kind 40 against Ones 2 + Twos 2 + Threes 3 + Fives 5
        assert state.scorecard_for(Player.HUMAN).total() == 65
        assert state.scorecard_for(Player.COMPUTER).total() == 12
        assert state.winner == Player.HUMAN
        assert state.instant_win is False

    def test_nothing_happens_after_game_over(self):
        state = replace(state_with_dice(1, 2, 3, 4, 6), game_over=True)
        assert select_category(state, Category.ONES) is state
        assert toggle_die_hold(state, 0) is state


class TestDetermineWinner:

    def test_higher_total_wins(self):
        cards = (Scorecard().with_score(Category.ONES, 3), Scorecard().with_score(Category.ONES, 4))
        assert determine_winner(cards) == Player.COMPUTER

    def test_tie_has_no_winner(self):
        cards = (Scorecard().with_score(Category.SIXES, 12), Scorecard().with_score(Category.FOURS, 12))
        assert determine_winner(cards) is None

    def test_human_wins(self):
        cards = (Scorecard().with_score(Category.GENERALA, 50), Scorecard())
        assert determine_winner(cards) == Player.HUMAN
