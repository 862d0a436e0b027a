#!/usr/bin/env python3
"""
Generala TUI — Terminal frontend using Textual.

Keyboard-driven human vs computer game with box-art dice, a two-column
scoreboard, and help and replay overlays. The computer's Monte Carlo
decisions run in a worker thread so the interface stays responsive.
"""
import logging
import random

from textual import on, work
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.logging import TextualHandler
from textual.containers import Horizontal, Vertical, Center
from textual.screen import ModalScreen
from textual.widgets import Button, Footer, Header, Static

from game_engine import Category, Player, TOTAL_LABEL, TOTAL_ROUNDS, MAX_ROLLS
from game_coordinator import GameCoordinator, apply_args, parse_args
from settings import load_settings, update_setting

logger = logging.getLogger(__name__)

CATEGORY_ORDER = list(Category)

CATEGORY_TOOLTIPS = {
    Category.ONES: "Sum of all dice showing 1",
    Category.TWOS: "Sum of all dice showing 2",
    Category.THREES: "Sum of all dice showing 3",
    Category.FOURS: "Sum of all dice showing 4",
    Category.FIVES: "Sum of all dice showing 5",
    Category.SIXES: "Sum of all dice showing 6",
    Category.STRAIGHT: "1-2-3-4-5 or 2-3-4-5-6 = 20 (25 on the first roll)",
    Category.FULL_HOUSE: "3 of one + 2 of another = 30 (35 on the first roll)",
    Category.FOUR_OF_KIND: "4 or 5 of the same = 40 (45 on the first roll)",
    Category.GENERALA: "All 5 dice the same = 50. On the first roll it wins the game!",
}


# ── Box-art die faces ─────────────────────────────────────────────────────────

_PIPS = {
    1: ["       ", "   ●   ", "       "],
    2: [" ●     ", "       ", "     ● "],
    3: [" ●     ", "   ●   ", "     ● "],
    4: [" ●   ● ", "       ", " ●   ● "],
    5: [" ●   ● ", "   ●   ", " ●   ● "],
    6: [" ●   ● ", " ●   ● ", " ●   ● "],
}

BOX_ART = {
    v: ["┌───────┐"] + [f"│{row}│" for row in rows] + ["└───────┘"]
    for v, rows in _PIPS.items()
}

BOX_ART_HELD = {
    v: ["╔═══════╗"] + [f"║{row}║" for row in rows] + ["╚═══════╝"]
    for v, rows in _PIPS.items()
}

BOX_ART_CUP = ["┌───────┐", "│       │", "│   ?   │", "│       │", "└───────┘"]


def render_dice_box(dice, rolls_used):
    """Render 5 dice as box art, side by side."""
    lines = []
    for row in range(5):
        parts = []
        for die in dice:
            if rolls_used == 0:
                parts.append(BOX_ART_CUP[row])
            elif die.held:
                parts.append(BOX_ART_HELD[die.value][row])
            else:
                parts.append(BOX_ART[die.value][row])
        lines.append("  ".join(parts))

    label_parts = []
    for i, die in enumerate(dice):
        held_label = " HELD" if die.held and rolls_used > 0 else ""
        label_parts.append(f"  [{i+1}]{held_label}".ljust(11))
    lines.append("".join(label_parts))
    return "\n".join(lines)


def format_cell(card, cat, show_potential):
    """One scoreboard cell: final score, (potential) or blank."""
    final = card.final_score(cat)
    if final is not None:
        return f"{final:>4}"
    if show_potential:
        potential = card.entries[cat].potential_score
        return f"({potential:>2})"
    return "   ·"


# ── Widgets ──────────────────────────────────────────────────────────────────

class DiceDisplay(Static):
    """Renders the 5 dice using box art."""

    def render(self):
        coord = self.app.coordinator
        return render_dice_box(coord.dice, coord.rolls_used)


class StatusDisplay(Static):
    """Shows whose turn it is, rolls left and the computer's reasoning."""

    def render(self):
        coord = self.app.coordinator
        lines = []

        if coord.game_over:
            lines.append("[bold]GAME OVER![/bold]")
        elif coord.is_human_turn:
            if coord.rolls_used == 0:
                lines.append("[bold]Your turn — roll the dice![/bold]")
            else:
                lines.append(f"Your turn — rolls left: {MAX_ROLLS - coord.rolls_used}")
        else:
            thinking = " (thinking...)" if coord.ai_thinking else ""
            lines.append(f"[bold]Computer's turn[/bold]{thinking}")

        if coord.ai_reason:
            lines.append(f"[dim]{coord.ai_reason}[/dim]")

        summary = coord.last_turn_summary()
        if summary is not None:
            name, category, score = summary
            lines.append(f"[dim]Last: {name} scored {category} for {score}[/dim]")

        return "\n".join(lines)


class ScoreboardDisplay(Static):
    """Renders both players' columns and the Total row."""

    def render(self):
        app = self.app
        coord = app.coordinator
        human = coord.scorecard(Player.HUMAN)
        computer = coord.scorecard(Player.COMPUTER)
        show_human = coord.is_human_turn and coord.rolls_used > 0
        show_computer = (not coord.game_over and not coord.is_human_turn
                         and coord.rolls_used > 0)

        lines = [f"[bold]{'':2}{'Category':<16} {'You':>5} {'CPU':>5}[/bold]"]
        for idx, cat in enumerate(CATEGORY_ORDER):
            marker = ">>" if idx == app.selected_index and coord.is_human_turn else "  "
            row = (f"{marker}{cat.value:<16} {format_cell(human, cat, show_human):>5} "
                   f"{format_cell(computer, cat, show_computer):>5}")
            if not human.is_filled(cat) and show_human:
                potential = human.entries[cat].potential_score
                row = f"[green]{row}[/green]" if potential > 0 else f"[dim]{row}[/dim]"
            lines.append(row)

        lines.append("─" * 30)
        lines.append(f"[bold]  {TOTAL_LABEL:<16} {human.total():>5} {computer.total():>5}[/bold]")

        tooltip_cat = CATEGORY_ORDER[app.selected_index]
        if coord.is_human_turn and not human.is_filled(tooltip_cat):
            lines.append(f"\n[dim]{CATEGORY_TOOLTIPS[tooltip_cat]}[/dim]")

        return "\n".join(lines)


class GameOverDisplay(Static):
    """Shows the end-of-game result."""

    def render(self):
        coord = self.app.coordinator
        if not coord.game_over:
            return ""
        lines = ["", "[bold]═══ GAME OVER ═══[/bold]", ""]
        lines.append(coord.result_message())
        lines.append("")
        lines.append("[dim]Press N for new game, R for replay[/dim]")
        return "\n".join(lines)


# ── Modal Screens ────────────────────────────────────────────────────────────

class HelpScreen(ModalScreen):
    """Help overlay showing key bindings and rules."""

    BINDINGS = [
        Binding("escape", "dismiss", "Close"),
        Binding("question_mark", "dismiss", "Close"),
        Binding("f1", "dismiss", "Close"),
    ]

    def compose(self) -> ComposeResult:
        controls = [
            ("Space", "Roll dice"),
            ("1-5", "Toggle die hold"),
            ("Tab / ↓", "Next category"),
            ("Shift+Tab / ↑", "Previous category"),
            ("Enter", "Score selected category"),
            ("+/-", "Computer speed"),
            ("D", "Dark mode"),
            ("R", "Game replay (after game)"),
            ("N", "New game (after game)"),
            ("Esc", "Close overlay / Quit"),
            ("? / F1", "This help screen"),
        ]
        text = "[bold]CONTROLS[/bold]\n\n"
        for key, desc in controls:
            text += f"  {key:<20} {desc}\n"
        text += f"\n[bold]RULES[/bold]\n\n  {TOTAL_ROUNDS} rounds, up to {MAX_ROLLS} rolls per turn.\n"
        text += "  Straight, Full House and Four of a kind get +5 on the first roll.\n"
        text += "  Five of a kind on the first roll wins the game outright.\n"
        text += "\n[dim]Press Esc or ? to close[/dim]"
        yield Center(Static(text, id="help-panel"))


class ReplayScreen(ModalScreen):
    """Post-game replay overlay."""

    BINDINGS = [
        Binding("escape", "dismiss", "Close"),
        Binding("r", "dismiss", "Close"),
    ]

    def compose(self) -> ComposeResult:
        yield Center(Static(self._build_text(), id="replay-panel"))

    def _build_text(self):
        game_log = self.app.coordinator.game_log
        text = "[bold]GAME REPLAY[/bold]\n\n"

        score_entries = game_log.get_score_entries()
        if not score_entries:
            text += "  No replay data available.\n"
        for entry in score_entries:
            rolls = [e for e in game_log.get_turn_entries(entry.turn, entry.player)
                     if e.event_type == "roll"]
            dice_str = " → ".join(
                f"[{','.join(str(v) for v in r.dice_values)}]" for r in rolls)
            line = f"R{entry.turn} {entry.player.label}: {dice_str} → {entry.category.value}: {entry.score}"
            if len(line) > 70:
                line = line[:67] + "..."
            text += f"  {line}\n"

        text += "\n[dim]R or Esc to close[/dim]"
        return text


# ── Main App ─────────────────────────────────────────────────────────────────

class GeneralaApp(App):
    """Generala terminal UI application."""

    CSS = """
    Screen {
        layout: vertical;
    }

    #game-area {
        layout: horizontal;
        height: 1fr;
    }

    #dice-panel {
        width: 60;
        padding: 1 2;
    }

    #scoreboard-panel {
        width: 1fr;
        padding: 1 2;
    }

    #round-display {
        height: auto;
        padding: 0 2;
    }

    #dice-display, #status-display, #game-over-display {
        height: auto;
    }

    #status-display {
        margin-top: 1;
    }

    #roll-btn {
        margin-top: 1;
        width: 20;
    }

    #help-panel, #replay-panel {
        padding: 2 4;
        border: thick $accent;
        background: $surface;
        width: 76;
        height: auto;
        max-height: 80vh;
    }
    """

    BINDINGS = [
        Binding("space", "roll", "Roll", show=True),
        Binding("1", "hold(0)", "Hold 1"),
        Binding("2", "hold(1)", "Hold 2"),
        Binding("3", "hold(2)", "Hold 3"),
        Binding("4", "hold(3)", "Hold 4"),
        Binding("5", "hold(4)", "Hold 5"),
        Binding("tab", "next_cat", "Next category", show=True),
        Binding("shift+tab", "prev_cat", "Prev category"),
        Binding("down", "next_cat", "Next"),
        Binding("up", "prev_cat", "Prev"),
        Binding("enter", "score", "Score", show=True),
        Binding("question_mark", "help", "Help"),
        Binding("f1", "help", "Help"),
        Binding("r", "replay", "Replay"),
        Binding("d", "dark", "Dark mode"),
        Binding("plus", "speed(1)", "+Speed"),
        Binding("equals_sign", "speed(1)", "+Speed"),
        Binding("minus", "speed(-1)", "-Speed"),
        Binding("n", "new_game", "New game"),
        Binding("escape", "quit_or_close", "Quit"),
    ]

    def __init__(self, coordinator=None, settings=None, settings_path=None):
        super().__init__()
        self.settings = settings if settings is not None else load_settings(settings_path)
        self.settings_path = settings_path
        if coordinator is None:
            coordinator = GameCoordinator(speed=self.settings["speed"], settings=self.settings)
        self.coordinator = coordinator
        self.selected_index = 0
        self._tick_timer = None

    def compose(self) -> ComposeResult:
        yield Header()
        yield Static("", id="round-display")
        with Horizontal(id="game-area"):
            with Vertical(id="dice-panel"):
                yield DiceDisplay(id="dice-display")
                yield Button("ROLL", id="roll-btn", variant="primary")
                yield StatusDisplay(id="status-display")
                yield GameOverDisplay(id="game-over-display")
            with Vertical(id="scoreboard-panel"):
                yield ScoreboardDisplay(id="scoreboard-display")
        yield Footer()

    def on_mount(self):
        self.title = "Generala"
        self._apply_theme()
        self._tick_timer = self.set_interval(1 / 20, self._game_tick)

    def _apply_theme(self):
        self.theme = "textual-dark" if self.settings["dark_mode"] else "textual-light"

    def _game_tick(self):
        """Per-frame update at ~20 FPS: paces the computer's steps."""
        if self.coordinator.tick():
            self.coordinator.ai_thinking = True
            self._run_computer_step()
        self._refresh_display()

    @work(thread=True, exclusive=True, group="computer")
    def _run_computer_step(self):
        """One blocking computer step, off the UI thread."""
        self.coordinator.ai_step()
        self.call_from_thread(self._refresh_display)

    def _refresh_display(self):
        """Refresh all display widgets."""
        try:
            self.query_one("#dice-display", DiceDisplay).refresh()
            self.query_one("#status-display", StatusDisplay).refresh()
            self.query_one("#scoreboard-display", ScoreboardDisplay).refresh()
            self.query_one("#round-display", Static).update(self._round_text())
            self.query_one("#game-over-display", GameOverDisplay).refresh()
            self.query_one("#roll-btn", Button).disabled = not self.coordinator.can_roll_now
        except Exception:
            logger.debug("Refresh error", exc_info=True)

    def _round_text(self):
        """Build round/score bar text."""
        coord = self.coordinator
        return (f"Round {coord.current_round}/{TOTAL_ROUNDS} | "
                f"You: {coord.total(Player.HUMAN)}  Computer: {coord.total(Player.COMPUTER)} | "
                f"Speed: {coord.speed_name.capitalize()}")

    # ── Actions ──────────────────────────────────────────────────────────

    def action_roll(self):
        if self.coordinator.roll_dice():
            self._refresh_display()

    @on(Button.Pressed, "#roll-btn")
    def on_roll_button(self):
        self.action_roll()

    def action_hold(self, index: int):
        if self.coordinator.toggle_hold(index):
            self._refresh_display()

    def action_next_cat(self):
        self._move_selection(+1)

    def action_prev_cat(self):
        self._move_selection(-1)

    def _move_selection(self, direction):
        """Move the category cursor, skipping filled categories."""
        card = self.coordinator.scorecard(Player.HUMAN)
        if card.is_complete():
            return
        idx = self.selected_index
        for _ in range(len(CATEGORY_ORDER)):
            idx = (idx + direction) % len(CATEGORY_ORDER)
            if not card.is_filled(CATEGORY_ORDER[idx]):
                break
        self.selected_index = idx
        self._refresh_display()

    def action_score(self):
        cat = CATEGORY_ORDER[self.selected_index]
        if self.coordinator.select_category(cat):
            if not self.coordinator.scorecard(Player.HUMAN).is_complete():
                self._move_selection(+1)
            self._refresh_display()

    def action_help(self):
        self.push_screen(HelpScreen())

    def action_replay(self):
        if self.coordinator.game_over:
            self.push_screen(ReplayScreen())

    def action_dark(self):
        self.settings["dark_mode"] = not self.settings["dark_mode"]
        update_setting("dark_mode", self.settings["dark_mode"], self.settings_path)
        self._apply_theme()

    def action_speed(self, direction: int):
        if self.coordinator.change_speed(direction):
            self.settings["speed"] = self.coordinator.speed_name
            update_setting("speed", self.coordinator.speed_name, self.settings_path)
            self._refresh_display()

    def action_new_game(self):
        if self.coordinator.game_over:
            self.coordinator.reset_game()
            self.selected_index = 0
            self._refresh_display()

    def action_quit_or_close(self):
        # If any screen is stacked, pop it
        if len(self.screen_stack) > 1:
            self.pop_screen()
        else:
            self.exit()


def main(argv=None):
    """Entry point for the TUI."""
    args = parse_args(argv)
    # Log records go to the textual devtools console, not over the UI
    logging.basicConfig(level=getattr(logging, args.log_level), handlers=[TextualHandler()])
    if args.seed is not None:
        random.seed(args.seed)

    settings = apply_args(load_settings(), args)
    coordinator = GameCoordinator(speed=settings["speed"], settings=settings)
    app = GeneralaApp(coordinator=coordinator, settings=settings)
    app.run()


if __name__ == "__main__":
    main()
