"""
Balanced small-group partitioning for Bible-study rosters.

A roster is split into ``ceil(N / target_group_size)`` groups in four passes:

1. residence blocking: residences (sorted by label) each reserve a contiguous
   run of ``ceil(residents / target_group_size)`` group indices;
2. diversity ordering: inside a residence, non-pastor members are interleaved
   across (year, gender) buckets and dealt round-robin over that residence's
   groups, then flattened back into one fill queue;
3. pastor seating: pastors first take their own residence's groups, leftovers
   go to pastor-less groups near their residence, then to any group;
4. sequential fill: the fill queue is poured into the seated skeleton, every
   group topped up to the target size and the last group taking the rest.

Every pass returns new tuples; the caller's roster is never mutated.
"""

from __future__ import annotations

import logging
import math
import random
from collections import Counter
from dataclasses import dataclass
from types import MappingProxyType
from typing import Optional, Sequence

from biblestudy.grouping.errors import (
    DuplicateRegistrantError,
    EmptyRosterError,
    InvalidGroupSizeError,
    InvariantViolationError,
)
from biblestudy.grouping.types import Group, GroupingRequest, GroupingResult, Registrant

logger = logging.getLogger(__name__)

_GENDER_ORDER = {"M": 0, "F": 1}
_SEED_UPPER_BOUND = 2**31 - 1

Seats = tuple[tuple[Registrant, ...], ...]


@dataclass(frozen=True)
class ResidenceBlock:
    residence: str
    members: tuple[Registrant, ...]
    groups: range

    @property
    def groups_needed(self) -> int:
        return len(self.groups)

    @property
    def pastors(self) -> tuple[Registrant, ...]:
        return tuple(m for m in self.members if m.is_pastor)

    @property
    def followers(self) -> tuple[Registrant, ...]:
        return tuple(m for m in self.members if not m.is_pastor)


def _year_key(year: str) -> tuple:
    text = str(year).strip()
    if text.isdecimal():
        return (0, int(text), text)
    return (1, 0, text)


def _gender_key(gender: str) -> tuple:
    return (_GENDER_ORDER.get(gender, len(_GENDER_ORDER)), str(gender))


def expected_group_count(roster_size: int, target_group_size: int) -> int:
    return math.ceil(roster_size / target_group_size)


def group_capacities(roster_size: int, target_group_size: int) -> tuple[int, ...]:
    count = expected_group_count(roster_size, target_group_size)
    return tuple(
        min(target_group_size, roster_size - i * target_group_size) for i in range(count)
    )


# Pass 1


def block_by_residence(
    roster: Sequence[Registrant], target_group_size: int
) -> tuple[ResidenceBlock, ...]:
    by_residence: dict[str, list[Registrant]] = {}
    for registrant in roster:
        by_residence.setdefault(registrant.residence, []).append(registrant)

    blocks: list[ResidenceBlock] = []
    start = 0
    for residence in sorted(by_residence):
        members = tuple(by_residence[residence])
        needed = math.ceil(len(members) / target_group_size)
        blocks.append(ResidenceBlock(residence, members, range(start, start + needed)))
        start += needed
    return tuple(blocks)


# Pass 2


def interleave_by_profile(
    members: Sequence[Registrant], rng: random.Random
) -> tuple[Registrant, ...]:
    """Round-robin one member at a time over (year, gender) buckets.

    Buckets are visited year by year, male before female within a year. The
    year cycle starts at a random year and each bucket is shuffled, so a new
    seed yields a new queue without breaking the interleave.
    """
    buckets: dict[tuple[str, str], list[Registrant]] = {}
    for member in members:
        buckets.setdefault((member.year_of_study, member.gender), []).append(member)
    if not buckets:
        return ()

    for bucket in buckets.values():
        rng.shuffle(bucket)

    years = sorted({year for year, _ in buckets}, key=_year_key)
    offset = rng.randrange(len(years))
    years = years[offset:] + years[:offset]

    lanes = [
        buckets[key]
        for year in years
        for key in sorted(
            (k for k in buckets if k[0] == year), key=lambda k: _gender_key(k[1])
        )
    ]
    depth = max(len(lane) for lane in lanes)
    return tuple(lane[i] for i in range(depth) for lane in lanes if i < len(lane))


def spread_across_groups(
    queue: Sequence[Registrant], groups_needed: int
) -> tuple[tuple[Registrant, ...], ...]:
    local: list[list[Registrant]] = [[] for _ in range(groups_needed)]
    for i, member in enumerate(queue):
        local[i % groups_needed].append(member)
    return tuple(tuple(group) for group in local)


def build_fill_queue(
    blocks: Sequence[ResidenceBlock], rng: random.Random
) -> tuple[Registrant, ...]:
    queue: list[Registrant] = []
    for block in blocks:
        interleaved = interleave_by_profile(block.followers, rng)
        for local in spread_across_groups(interleaved, block.groups_needed):
            queue.extend(local)
    return tuple(queue)


# Pass 3


def project_residences(
    queue: Sequence[Registrant], capacities: Sequence[int], seats: Sequence[Sequence[Registrant]]
) -> list[Counter]:
    """Residence counts per group if the fill queue were poured in right now."""
    counts = [Counter(p.residence for p in seated) for seated in seats]
    position = 0
    for index, capacity in enumerate(capacities):
        free = max(capacity - len(seats[index]), 0)
        for member in queue[position : position + free]:
            counts[index][member.residence] += 1
        position += free
    return counts


def assign_pastors(
    blocks: Sequence[ResidenceBlock],
    queue: Sequence[Registrant],
    capacities: Sequence[int],
) -> Seats:
    group_count = len(capacities)
    seats: list[list[Registrant]] = [[] for _ in range(group_count)]

    # Phase A: pastors serve their own residence's groups first.
    unassigned: list[Registrant] = []
    for block in blocks:
        pastors = list(block.pastors)
        own = [g for g in block.groups if g < group_count and not seats[g]]
        for pastor, index in zip(pastors, own):
            seats[index].append(pastor)
        unassigned.extend(pastors[len(own):])

    needing = [g for g in range(group_count) if not seats[g]]

    # Phase B: proximity first, then index order, then oversupply.
    for pastor in unassigned:
        projected = project_residences(queue, capacities, seats)
        if needing:
            target = next(
                (g for g in needing if projected[g][pastor.residence]), needing[0]
            )
            needing.remove(target)
        else:
            open_groups = [g for g in range(group_count) if len(seats[g]) < capacities[g]]
            target = max(
                open_groups,
                key=lambda g: (projected[g][pastor.residence], -len(seats[g]), -g),
            )
        seats[target].append(pastor)

    if needing:
        logger.info(
            f"{len(needing)} of {group_count} groups without a pastor "
            f"(not enough pastors on the roster)"
        )
    return tuple(tuple(seated) for seated in seats)


# Pass 4


def fill_groups(
    queue: Sequence[Registrant], seats: Seats, target_group_size: int
) -> tuple[Group, ...]:
    groups: list[Group] = []
    position = 0
    last = len(seats) - 1
    for index, seated in enumerate(seats):
        members = list(seated)
        if index == last:
            take = len(queue) - position
        else:
            take = max(target_group_size - len(members), 0)
        members.extend(queue[position : position + take])
        position += take
        members.sort(key=lambda m: not m.is_pastor)
        groups.append(Group(members=tuple(members)))
    return tuple(groups)


def verify_partition(
    roster: Sequence[Registrant], groups: Sequence[Group], target_group_size: int
) -> None:
    """Raise InvariantViolationError unless ``groups`` is a valid partition of ``roster``."""
    placed = [m for g in groups for m in g.members]
    if len(placed) != len(roster):
        raise InvariantViolationError(
            f"Placed {len(placed)} registrants but roster has {len(roster)}"
        )
    if Counter(placed) != Counter(roster):
        raise InvariantViolationError("Placed registrants differ from the roster")
    if len({m.phone for m in placed}) != len(placed):
        raise InvariantViolationError("A phone number appears in more than one group")

    expected = expected_group_count(len(roster), target_group_size)
    if len(groups) != expected:
        raise InvariantViolationError(f"Produced {len(groups)} groups, expected {expected}")

    for index, group in enumerate(groups):
        if group.size == 0:
            raise InvariantViolationError(f"Group {index + 1} is empty")
        if group.size > target_group_size:
            raise InvariantViolationError(
                f"Group {index + 1} has {group.size} members, above {target_group_size}"
            )
        if index < len(groups) - 1 and group.size != target_group_size:
            raise InvariantViolationError(
                f"Group {index + 1} has {group.size} members, expected {target_group_size}"
            )

    total_pastors = sum(1 for m in roster if m.is_pastor)
    pastorless = sum(1 for g in groups if not g.has_pastor)
    if pastorless != max(len(groups) - total_pastors, 0):
        raise InvariantViolationError(
            f"{pastorless} groups lack a pastor with {total_pastors} pastors "
            f"over {len(groups)} groups"
        )
    if pastorless and any(g.pastor_count > 1 for g in groups):
        raise InvariantViolationError(
            "A group holds several pastors while another group has none"
        )


def _validate(roster: Sequence[Registrant], target_group_size: object) -> None:
    if not roster:
        raise EmptyRosterError()
    if isinstance(target_group_size, bool) or not isinstance(target_group_size, int):
        raise InvalidGroupSizeError(target_group_size)
    if target_group_size <= 0:
        raise InvalidGroupSizeError(target_group_size)

    seen: Counter = Counter(r.phone for r in roster)
    duplicates = sorted(phone for phone, count in seen.items() if count > 1)
    if duplicates:
        raise DuplicateRegistrantError(duplicates)


def partition(
    roster: Sequence[Registrant],
    target_group_size: int,
    random_seed: Optional[int] = None,
) -> GroupingResult:
    roster = tuple(roster)
    _validate(roster, target_group_size)
    rng = random.Random(random_seed)

    blocks = block_by_residence(roster, target_group_size)
    logger.debug(
        "Residence blocks: "
        + ", ".join(f"{b.residence}={b.groups.start}..{b.groups.stop - 1}" for b in blocks)
    )

    queue = build_fill_queue(blocks, rng)
    capacities = group_capacities(len(roster), target_group_size)
    seats = assign_pastors(blocks, queue, capacities)
    groups = fill_groups(queue, seats, target_group_size)

    verify_partition(roster, groups, target_group_size)
    logger.debug(
        f"Partitioned {len(roster)} registrants into {len(groups)} groups "
        f"(target size {target_group_size}, seed {random_seed})"
    )
    return GroupingResult(
        groups=groups,
        target_group_size=target_group_size,
        seed=random_seed,
        residence_blocks=MappingProxyType({b.residence: b.groups for b in blocks}),
    )


def partition_request(request: GroupingRequest) -> GroupingResult:
    return partition(request.roster, request.target_group_size, request.random_seed)


def new_seed(exclude: Optional[int] = None) -> int:
    seed = random.SystemRandom().randrange(_SEED_UPPER_BOUND)
    while seed == exclude:
        seed = random.SystemRandom().randrange(_SEED_UPPER_BOUND)
    return seed


def reshuffle(
    roster: Sequence[Registrant],
    target_group_size: int,
    previous: Optional[GroupingResult] = None,
) -> GroupingResult:
    """Partition again under a fresh seed, never reusing the previous one."""
    return partition(
        roster,
        target_group_size,
        new_seed(exclude=previous.seed if previous else None),
    )
