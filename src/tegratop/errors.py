"""Exceptions raised by tegratop."""


class TegratopError(Exception):
    """Base class for all tegratop errors."""


class ControlError(TegratopError):
    """A control action could not be carried out."""


class ValidationError(ControlError):
    """A control argument is outside its accepted range.

    Raised before any write is attempted.
    """


class ControlWriteError(ControlError):
    """A privileged write or helper invocation failed."""

    def __init__(self, action: str, reason: str) -> None:
        """
        Initialize the ControlWriteError.

        Args:
            action: Short description of what was being attempted.
            reason: The underlying failure, as reported by the OS or helper.
        """
        super().__init__(f"{action}: {reason}")
        self.action = action
        self.reason = reason
