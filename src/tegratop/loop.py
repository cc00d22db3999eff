"""The interactive loop: input, sampling cadence, screen dispatch and teardown."""

import asyncio
import logging
import queue
import time
from collections.abc import Callable

from tegratop.control import Action, ControlSurface
from tegratop.errors import ControlError
from tegratop.models import Sample
from tegratop.monitor import SampleAggregator
from tegratop.state import (
    ControlMessage,
    Error,
    Exit,
    ScreenMachine,
    ScreenState,
    SetScreen,
    Update,
    ViewData,
)

logger = logging.getLogger(__name__)

RenderCallback = Callable[[ScreenState, ViewData], None]
TeardownCallback = Callable[[str | None], None]

QUIT_KEYS = frozenset({"q", "Q", "shift+q", "escape"})
SCREEN_KEYS = {str(screen.value): screen for screen in ScreenState}


class InteractiveLoop:
    """
    Drives sampling and drawing on a fixed cadence.

    Each cycle dispatches queued ControlMessages (stopping on Exit or Error
    before any wait), ticks and renders when the interval has elapsed or the
    screen changed, then waits for a key until the next tick is due. That
    wait is the only suspension point. The teardown callback runs exactly
    once whichever way the loop ends.
    """

    def __init__(
        self,
        aggregator: SampleAggregator,
        render: RenderCallback,
        tick_interval: float = 1.0,
        control: ControlSurface | None = None,
        on_teardown: TeardownCallback | None = None,
        machine: ScreenMachine | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """
        Initialize the InteractiveLoop.

        Args:
            aggregator: Source of Samples; anything with a tick() method.
            render: Called as render(screen, view) on every draw.
            tick_interval: Seconds between ticks.
            control: Surface that Control screen Actions are applied to.
            on_teardown: Called once on exit with the fatal error message,
                or None on a clean exit.
            machine: Screen state, created if omitted.
            clock: Monotonic time source.
        """
        self._aggregator = aggregator
        self._render = render
        self._interval = tick_interval
        self._control = control
        self._on_teardown = on_teardown
        self.machine = machine or ScreenMachine()
        self._clock = clock

        self._messages: queue.SimpleQueue[ControlMessage] = queue.SimpleQueue()
        self._keys: asyncio.Queue[str] = asyncio.Queue()
        self._sample: Sample | None = None
        self._last_tick: float | None = None
        self._screen_changed = False
        self._redraw = False
        self._torn_down = False
        self.exit_error: str | None = None

    @property
    def sample(self) -> Sample | None:
        """The most recently drawn Sample."""
        return self._sample

    def post(self, message: ControlMessage) -> None:
        """Enqueue a message for the next dispatch step. Safe from any thread."""
        self._messages.put(message)

    def feed_key(self, key: str) -> None:
        """Deliver a key press to the loop."""
        self._keys.put_nowait(key)

    def stop(self) -> None:
        self.post(Exit())

    def handle_key(self, key: str) -> None:
        """Translate a key into messages or Control panel changes; unknown keys do nothing."""
        current = self.machine.current
        if key in QUIT_KEYS:
            self.post(Exit())
        elif key in SCREEN_KEYS:
            self.post(SetScreen(SCREEN_KEYS[key]))
        elif key == "n":
            self.post(SetScreen(current.next()))
        elif key == "p":
            self.post(SetScreen(current.previous()))
        elif current is ScreenState.CONTROL:
            self._handle_control_key(key)

    def _handle_control_key(self, key: str) -> None:
        panel = self.machine.control
        if key == "up":
            panel.move(-1)
        elif key == "down":
            panel.move(1)
        elif key in ("left", "minus"):
            panel.adjust(-1)
        elif key in ("right", "plus"):
            panel.adjust(1)
        elif key == "enter":
            panel.status = self._apply(panel.handle_select())
        else:
            return
        self.post(Update())

    def _apply(self, action: Action) -> str:
        if self._control is None:
            return "Control is not available"
        try:
            return self._control.apply(action)
        except ControlError as exc:
            logger.warning("Control action failed: %s", exc)
            return f"Failed: {exc}"

    def _dispatch(self) -> bool:
        """Consume every queued message. Returns False once the loop must stop."""
        while True:
            try:
                message = self._messages.get_nowait()
            except queue.Empty:
                return True
            match message:
                case Exit():
                    return False
                case Error(message=text):
                    self.exit_error = text
                    return False
                case SetScreen(screen=screen):
                    if screen is not self.machine.current:
                        self.machine.select(screen.value)
                        self._screen_changed = True
                case Update():
                    self._redraw = True

    def _due(self) -> bool:
        if self._last_tick is None:
            return True
        return self._clock() - self._last_tick >= self._interval

    def _remaining(self) -> float:
        if self._last_tick is None:
            return 0.0
        return max(0.0, self._interval - (self._clock() - self._last_tick))

    def _draw(self) -> None:
        if self._sample is None:
            return
        screen = self.machine.current
        self._render(screen, self.machine.view(self._sample))

    def _step(self) -> None:
        """Tick and render if a tick is due or the screen changed; otherwise redraw if asked."""
        if self._due() or self._screen_changed:
            self._last_tick = self._clock()
            self._sample = self._aggregator.tick()
            self._screen_changed = False
            self._redraw = False
            self._draw()
        elif self._redraw:
            self._redraw = False
            self._draw()

    async def _next_key(self, timeout: float) -> str | None:
        if timeout <= 0:
            # A tick that overran the interval must still let the event loop run.
            await asyncio.sleep(0)
            try:
                return self._keys.get_nowait()
            except asyncio.QueueEmpty:
                return None
        try:
            return await asyncio.wait_for(self._keys.get(), timeout)
        except asyncio.TimeoutError:
            return None

    def _teardown(self) -> None:
        if self._torn_down:
            return
        self._torn_down = True
        if self._on_teardown is not None:
            self._on_teardown(self.exit_error)

    async def run(self) -> str | None:
        """
        Run until an Exit or Error message is dispatched.

        Returns:
            The fatal error message, or None on a clean exit.
        """
        try:
            while self._dispatch():
                try:
                    self._step()
                except Exception as exc:
                    logger.exception("Tick failed")
                    self.post(Error(str(exc) or type(exc).__name__))
                    continue

                key = await self._next_key(self._remaining())
                if key is not None:
                    self.handle_key(key)
        finally:
            self._teardown()
        return self.exit_error
