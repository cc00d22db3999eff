"""Screen state machine and loop control messages."""

from dataclasses import dataclass, field
from enum import IntEnum

from tegratop.control import Action, SetCoolingDuty, SetPerformanceProfile, ToggleBoost
from tegratop.models import Sample


class ScreenState(IntEnum):
    """The dashboard's views, ordered by their selection key."""

    OVERVIEW = 1
    CPU = 2
    ACCELERATOR = 3
    MEMORY = 4
    POWER = 5
    TEMPERATURE = 6
    CONTROL = 7
    INFO = 8

    @classmethod
    def from_index(cls, index: int) -> "ScreenState | None":
        """Return the screen with this index, or None if there is none."""
        try:
            return cls(index)
        except ValueError:
            return None

    def next(self) -> "ScreenState":
        """The following screen, wrapping around."""
        members = list(ScreenState)
        return members[(members.index(self) + 1) % len(members)]

    def previous(self) -> "ScreenState":
        """The preceding screen, wrapping around."""
        members = list(ScreenState)
        return members[(members.index(self) - 1) % len(members)]

    @property
    def title(self) -> str:
        """Heading shown above the screen."""
        if self is ScreenState.CPU:
            return "CPU"
        return self.name.capitalize()


# Messages consumed by the interactive loop's dispatch step.


@dataclass(slots=True, frozen=True)
class SetScreen:
    """Switch to another screen."""

    screen: ScreenState


@dataclass(slots=True, frozen=True)
class Update:
    """Redraw the last Sample without taking a new one."""


@dataclass(slots=True, frozen=True)
class Exit:
    """Leave the loop cleanly."""


@dataclass(slots=True, frozen=True)
class Error:
    """Terminate with a diagnostic."""

    message: str


ControlMessage = SetScreen | Update | Exit | Error


class ControlItem(IntEnum):
    """Rows of the Control screen."""

    FAN = 0
    BOOST = 1
    PROFILE = 2


FAN_STEP = 10


@dataclass(slots=True)
class ControlPanel:
    """
    Selection and pending values of the Control screen.

    Nothing here touches the board. handle_select() turns the selected row
    into an Action for the control surface to carry out.
    """

    selected: ControlItem = ControlItem.FAN
    duty: int = 50
    profile_id: int = 0
    status: str = ""
    seeded: bool = False

    def move(self, step: int) -> None:
        """Move the selection up or down, wrapping around."""
        self.selected = ControlItem((self.selected + step) % len(ControlItem))

    def adjust(self, step: int) -> None:
        """Change the pending value of the selected row."""
        if self.selected is ControlItem.FAN:
            self.duty = max(0, min(100, self.duty + step * FAN_STEP))
        elif self.selected is ControlItem.PROFILE:
            self.profile_id = max(0, min(15, self.profile_id + step))

    def sync(self, sample: Sample) -> None:
        """Seed the pending profile from the board the first time it is known."""
        if not self.seeded and sample.profile.profile_id >= 0:
            self.profile_id = sample.profile.profile_id
            self.seeded = True

    def handle_select(self, selected_item: ControlItem | None = None) -> Action:
        """Build the Action for a row; defaults to the selected row."""
        item = self.selected if selected_item is None else ControlItem(selected_item)
        if item is ControlItem.FAN:
            return SetCoolingDuty(self.duty)
        if item is ControlItem.BOOST:
            return ToggleBoost()
        return SetPerformanceProfile(self.profile_id)


@dataclass(slots=True, frozen=True)
class ViewData:
    """Everything a renderer needs to draw one screen."""

    screen: ScreenState
    sample: Sample
    control: ControlPanel | None = None


@dataclass(slots=True)
class ScreenMachine:
    """Holds the current screen; only explicit selection changes it."""

    current: ScreenState = ScreenState.OVERVIEW
    control: ControlPanel = field(default_factory=ControlPanel)

    def select(self, index: int) -> bool:
        """
        Switch to the screen with this index.

        Returns:
            True if the index named a screen. Out-of-range indices leave the
            state unchanged.
        """
        screen = ScreenState.from_index(index)
        if screen is None:
            return False
        self.current = screen
        return True

    def view(self, sample: Sample) -> ViewData:
        """Produce the render instruction for the current screen."""
        if self.current is ScreenState.CONTROL:
            self.control.sync(sample)
            return ViewData(self.current, sample, self.control)
        return ViewData(self.current, sample)
