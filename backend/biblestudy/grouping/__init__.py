"""
Residence-aware Bible-study group partitioning.
"""

from biblestudy.grouping.errors import (
    DuplicateRegistrantError,
    EmptyRosterError,
    GroupingError,
    InvalidGroupSizeError,
    InvariantViolationError,
)
from biblestudy.grouping.partitioner import partition, partition_request, reshuffle
from biblestudy.grouping.types import Group, GroupingRequest, GroupingResult, Registrant

__all__ = [
    "partition",
    "partition_request",
    "reshuffle",
    "Registrant",
    "GroupingRequest",
    "Group",
    "GroupingResult",
    "GroupingError",
    "EmptyRosterError",
    "InvalidGroupSizeError",
    "InvariantViolationError",
    "DuplicateRegistrantError",
]
