"""tegratop - Main Textual application."""

import json
import logging
import sys
from collections.abc import Sequence

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.widgets import Footer, Static

from tegratop.board import is_jetson
from tegratop.config import Settings, configure_logging, parse_settings
from tegratop.control import Action, ControlSurface, SetCoolingDuty, SetPerformanceProfile, ToggleBoost
from tegratop.errors import ControlError
from tegratop.loop import InteractiveLoop
from tegratop.monitor import SampleAggregator
from tegratop.render import render_view
from tegratop.state import ScreenState, ViewData

logger = logging.getLogger(__name__)


class ScreenView(Static):
    """Body widget showing the current screen's markup."""

    DEFAULT_CSS = """
    ScreenView {
        height: 1fr;
        padding: 1;
        background: $surface;
    }
    """


class TegratopApp(App):
    """Main tegratop application."""

    TITLE = "tegratop"
    SUB_TITLE = "Jetson Monitor"

    CSS = """
    Screen {
        layout: vertical;
    }

    #screen-title {
        dock: top;
        height: 1;
        background: $primary;
        padding-left: 1;
    }
    """

    # Every key is forwarded to the interactive loop, which owns their meaning.
    BINDINGS = [
        Binding("q,Q,escape", "forward_key('q')", "Quit"),
        Binding("n", "forward_key('n')", "Next"),
        Binding("p", "forward_key('p')", "Previous"),
        *(Binding(str(screen.value), f"forward_key('{screen.value}')", screen.title, show=False) for screen in ScreenState),
        *(
            Binding(key, f"forward_key('{key}')", key, show=False)
            for key in ("up", "down", "left", "right", "minus", "plus", "enter")
        ),
    ]

    def __init__(
        self,
        settings: Settings | None = None,
        aggregator: SampleAggregator | None = None,
        control: ControlSurface | None = None,
    ) -> None:
        """Initialize the TegratopApp."""
        super().__init__()
        self._settings = settings or Settings()
        self._aggregator = aggregator or SampleAggregator(self._settings.root)
        self._interactive_loop = InteractiveLoop(
            self._aggregator,
            self._show,
            tick_interval=self._settings.interval,
            control=control or ControlSurface(self._settings.root),
            on_teardown=self._teardown,
        )

    @property
    def loop(self) -> InteractiveLoop:
        return self._interactive_loop

    def compose(self) -> ComposeResult:
        """Compose the application layout."""
        yield Static(self._title_for(ScreenState.OVERVIEW), id="screen-title")
        yield ScreenView("Loading...", id="screen-view")
        yield Footer()

    def on_mount(self) -> None:
        """Start the interactive loop when the app is mounted."""
        self.run_worker(self._interactive_loop.run(), name="interactive-loop", exclusive=True)

    @staticmethod
    def _title_for(current: ScreenState) -> str:
        tabs = []
        for screen in ScreenState:
            label = f"{screen.value} {screen.title}"
            tabs.append(f"[reverse]{label}[/reverse]" if screen is current else label)
        return "  ".join(tabs)

    def _show(self, screen: ScreenState, view: ViewData) -> None:
        """Render callback for the interactive loop."""
        self.query_one("#screen-title", Static).update(self._title_for(screen))
        self.query_one("#screen-view", ScreenView).update(render_view(view))

    def _teardown(self, error: str | None) -> None:
        """Hand the terminal back; Textual prints the message once it is restored."""
        self._aggregator.close()
        if error is None:
            self.exit(return_code=0)
        else:
            self.exit(return_code=1, message=f"tegratop: {error}")

    def action_forward_key(self, key: str) -> None:
        """Forward a key to the interactive loop."""
        self._interactive_loop.feed_key(key)


def run_stats(settings: Settings) -> int:
    """Print one Sample as JSON."""
    aggregator = SampleAggregator(settings.root)
    try:
        sample = aggregator.snapshot()
    finally:
        aggregator.close()
    print(json.dumps(sample.to_dict(), indent=2))
    return 0


def run_control(settings: Settings, surface: ControlSurface | None = None) -> int:
    """Carry out the control action named on the command line."""
    action: Action
    if settings.fan is not None:
        action = SetCoolingDuty(settings.fan)
    elif settings.nvpmodel is not None:
        action = SetPerformanceProfile(settings.nvpmodel)
    else:
        action = ToggleBoost()

    surface = surface or ControlSurface(settings.root)
    try:
        print(surface.apply(action))
    except ControlError as exc:
        print(f"tegratop: {exc}", file=sys.stderr)
        return 1
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point for tegratop application."""
    settings = parse_settings(argv)
    configure_logging(settings)
    if not is_jetson(settings.root):
        logger.warning("%s does not look like a Jetson board; most readings will be empty", settings.root)

    if settings.stats:
        return run_stats(settings)
    if settings.one_shot:
        return run_control(settings)

    app = TegratopApp(settings)
    app.run()
    return app.return_code or 0


if __name__ == "__main__":
    sys.exit(main())
