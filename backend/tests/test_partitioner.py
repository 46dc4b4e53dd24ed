from __future__ import annotations

import math

import pytest

from biblestudy.grouping import (
    DuplicateRegistrantError,
    EmptyRosterError,
    InvalidGroupSizeError,
    GroupingRequest,
    InvariantViolationError,
    Registrant,
    partition,
    partition_request,
    reshuffle,
)


def _person(phone: str, residence: str, gender: str, year: str, pastor: bool = False) -> Registrant:
    return Registrant(
        name=f"Member {phone}",
        phone=phone,
        residence=residence,
        year_of_study=year,
        gender=gender,
        is_pastor=pastor,
    )


def _roster(count: int, *, pastor_every: int = 0, residences=("Fanta", "Kisumu ndogo", "Nyamage")):
    return [
        _person(
            phone=f"07{i:08d}",
            residence=residences[i % len(residences)],
            gender="M" if i % 2 == 0 else "F",
            year=str(i % 4 + 1),
            pastor=bool(pastor_every) and i % pastor_every == 0,
        )
        for i in range(count)
    ]


def _scenario_roster() -> list[Registrant]:
    roster = []
    for residence in ("A", "B"):
        prefix = residence.lower()
        for i, (gender, year) in enumerate(
            [("M", "1"), ("M", "2"), ("M", "3"), ("F", "1"), ("F", "2"), ("F", "3")], start=1
        ):
            roster.append(_person(f"{prefix}{i}", residence, gender, year, pastor=(i == 1)))
    return roster


def _layout(result) -> list[tuple[str, ...]]:
    return [g.phones for g in result.groups]


@pytest.mark.parametrize("size", [1, 2, 3, 4, 5, 7, 10, 40])
@pytest.mark.parametrize("count", [1, 6, 17, 23, 40])
def test_partition_places_everyone_once(count, size):
    roster = _roster(count, pastor_every=5)
    result = partition(roster, size, random_seed=7)

    phones = [p for g in result.groups for p in g.phones]
    assert len(phones) == count
    assert len(set(phones)) == count
    assert sorted(phones) == sorted(r.phone for r in roster)


@pytest.mark.parametrize("size", [1, 3, 4, 6, 9])
def test_partition_group_count_and_sizes(size):
    roster = _roster(23, pastor_every=4)
    result = partition(roster, size, random_seed=3)

    assert result.group_count == math.ceil(23 / size)
    sizes = [g.size for g in result.groups]
    assert all(s == size for s in sizes[:-1])
    assert 1 <= sizes[-1] <= size


def test_partition_target_larger_than_roster_gives_one_group():
    roster = _roster(4)
    result = partition(roster, 10, random_seed=1)
    assert [g.size for g in result.groups] == [4]


@pytest.mark.parametrize("pastor_every", [1, 2, 3, 5, 11])
def test_partition_pastor_coverage(pastor_every):
    roster = _roster(30, pastor_every=pastor_every)
    total_pastors = sum(1 for r in roster if r.is_pastor)
    result = partition(roster, 4, random_seed=11)
    group_count = result.group_count

    pastorless = [g for g in result.groups if not g.has_pastor]
    if total_pastors >= group_count:
        assert pastorless == []
    else:
        assert len(pastorless) == group_count - total_pastors
        assert max(g.pastor_count for g in result.groups) == 1


def test_partition_pastors_sorted_first():
    roster = _roster(20, pastor_every=3)
    result = partition(roster, 6, random_seed=5)
    for group in result.groups:
        flags = [m.is_pastor for m in group.members]
        assert flags == sorted(flags, reverse=True)


def test_partition_single_residence_stays_local():
    roster = _roster(18, pastor_every=6, residences=("Nyamage",))
    result = partition(roster, 4, random_seed=2)
    for group in result.groups:
        assert group.residences == frozenset({"Nyamage"})


def test_partition_mixes_gender_within_a_residence():
    roster = [_person(f"m{i}", "Fanta", "M", "1") for i in range(8)]
    roster += [_person(f"f{i}", "Fanta", "F", "1") for i in range(7)]

    result = partition(roster, 5, random_seed=9)

    assert [g.size for g in result.groups] == [5, 5, 5]
    for group in result.groups:
        counts = group.gender_counts
        assert counts.get("M", 0) >= 2
        assert counts.get("F", 0) >= 2


def test_partition_is_deterministic_with_seed():
    roster = _roster(31, pastor_every=4)
    first = partition(roster, 5, random_seed=42)
    second = partition(roster, 5, random_seed=42)
    assert _layout(first) == _layout(second)
    assert first.groups == second.groups


def test_partition_new_seed_gives_new_arrangement():
    roster = _roster(40, pastor_every=9)
    assert _layout(partition(roster, 5, random_seed=1)) != _layout(
        partition(roster, 5, random_seed=2)
    )


def test_partition_does_not_mutate_roster():
    roster = _roster(12, pastor_every=3)
    snapshot = list(roster)
    result = partition(roster, 5, random_seed=4)

    assert roster == snapshot
    originals = {id(r) for r in roster}
    assert all(id(m) in originals for g in result.groups for m in g.members)


def test_scenario_two_residences_two_pastors():
    roster = _scenario_roster()
    result = partition(roster, 5, random_seed=1)

    assert result.group_count == 3
    assert [g.size for g in result.groups] == [5, 5, 2]
    assert dict(result.residence_blocks) == {"A": range(0, 2), "B": range(2, 4)}

    first, middle, last = result.groups
    assert first.members[0].phone == "a1"
    assert first.residences == frozenset({"A"})
    assert middle.residences == frozenset({"A", "B"})
    assert not middle.has_pastor
    assert last.members[0].phone == "b1"
    assert last.residences == frozenset({"B"})
    assert result.pastorless_groups == [1]
    assert max(g.pastor_count for g in result.groups) == 1


def test_scenario_reshuffle_varies_across_seeds():
    roster = _scenario_roster()
    layouts = {tuple(_layout(partition(roster, 5, random_seed=seed))) for seed in range(1, 11)}
    assert len(layouts) > 1


def test_reshuffle_uses_a_fresh_seed():
    roster = _roster(15, pastor_every=5)
    previous = partition(roster, 4, random_seed=123)
    result = reshuffle(roster, 4, previous)

    assert result.seed is not None
    assert result.seed != previous.seed
    assert result.group_count == previous.group_count


def test_partition_empty_roster_raises():
    with pytest.raises(EmptyRosterError):
        partition([], 5)


@pytest.mark.parametrize("size", [0, -3, 2.5, "5", True, None])
def test_partition_invalid_group_size_raises(size):
    with pytest.raises(InvalidGroupSizeError):
        partition(_roster(1), size)


def test_partition_duplicate_phone_raises():
    roster = [_person("0711", "Fanta", "M", "1"), _person("0711", "Nyamage", "F", "2")]
    with pytest.raises(DuplicateRegistrantError) as excinfo:
        partition(roster, 2)
    assert isinstance(excinfo.value, InvariantViolationError)
    assert excinfo.value.phones == ["0711"]


def test_partition_request_matches_direct_call():
    roster = tuple(_roster(14, pastor_every=4))
    result = partition_request(GroupingRequest(roster=roster, target_group_size=4, random_seed=5))
    assert _layout(result) == _layout(partition(roster, 4, random_seed=5))
    assert result.seed == 5


def test_scenario_seed_one_and_two_differ():
    roster = _scenario_roster()

    def membership(seed):
        return [frozenset(g.phones) for g in partition(roster, 5, random_seed=seed).groups]

    assert membership(1) != membership(2)


def test_partition_recorded_seed_reproduces_layout():
    roster = _roster(19, pastor_every=6)
    result = partition(roster, 4, random_seed=77)
    assert result.seed == 77
    assert _layout(partition(roster, 4, random_seed=result.seed)) == _layout(result)


def test_partition_residence_blocks_are_read_only():
    result = partition(_scenario_roster(), 5, random_seed=1)
    with pytest.raises(TypeError):
        result.residence_blocks["C"] = range(4, 5)


def test_partition_accepts_non_decimal_digit_years():
    roster = [
        _person("1", "A", "M", "²"),
        _person("2", "A", "F", "1"),
        _person("3", "A", "F", "①"),
    ]
    result = partition(roster, 2, random_seed=1)

    assert result.group_count == 2
    assert sorted(p for g in result.groups for p in g.phones) == ["1", "2", "3"]
