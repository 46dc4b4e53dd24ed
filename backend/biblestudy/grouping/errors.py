from __future__ import annotations


class GroupingError(Exception):
    """Base class for every failure raised by the partitioner."""


class EmptyRosterError(GroupingError):
    def __init__(self, message: str = "Roster is empty; nothing to partition"):
        super().__init__(message)


class InvalidGroupSizeError(GroupingError):
    def __init__(self, value: object):
        self.value = value
        super().__init__(f"target_group_size must be a positive integer, got {value!r}")


class InvariantViolationError(GroupingError):
    """A produced partition failed its postcondition check."""


class DuplicateRegistrantError(InvariantViolationError):
    def __init__(self, phones: list[str]):
        self.phones = list(phones)
        super().__init__(f"Roster contains duplicate phone numbers: {', '.join(self.phones)}")
