"""Exceptions raised by the telework engine and its stores."""


class TeleworkError(Exception):
    """Base class for all telework engine errors."""


class StoreError(TeleworkError):
    """A profile, override or team rule store could not be accessed.

    Raised by store implementations and propagated unchanged by the engine
    so callers can retry or show an error state.
    """


class ProfileNotFoundError(TeleworkError):
    """An operation that requires a telework profile found none."""

    def __init__(self, user_id: str):
        super().__init__(f"Telework profile not found for user {user_id}")
        self.user_id = user_id


class OverrideNotFoundError(TeleworkError):
    """No override exists with the given id."""

    def __init__(self, override_id: str):
        super().__init__(f"Telework override {override_id} not found")
        self.override_id = override_id


class TeamRuleNotFoundError(TeleworkError):
    """No team rule exists with the given id."""

    def __init__(self, rule_id: str):
        super().__init__(f"Team telework rule {rule_id} not found")
        self.rule_id = rule_id


class InvalidTransitionError(TeleworkError):
    """An override approval transition was attempted from a non-pending state."""


class OverrideRejectedError(TeleworkError):
    """A strict override request failed validation and was not persisted."""

    def __init__(self, message: str, validation=None):
        super().__init__(message)
        self.validation = validation
