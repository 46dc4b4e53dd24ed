from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Optional


@dataclass(frozen=True)
class Registrant:
    name: str
    phone: str
    residence: str
    year_of_study: str
    gender: str
    is_pastor: bool = False


@dataclass(frozen=True)
class GroupingRequest:
    roster: tuple[Registrant, ...]
    target_group_size: int
    random_seed: Optional[int] = None


@dataclass(frozen=True)
class Group:
    members: tuple[Registrant, ...]

    @property
    def size(self) -> int:
        return len(self.members)

    @property
    def pastor_count(self) -> int:
        return sum(1 for m in self.members if m.is_pastor)

    @property
    def has_pastor(self) -> bool:
        return self.pastor_count > 0

    @property
    def gender_counts(self) -> dict[str, int]:
        return dict(Counter(m.gender for m in self.members))

    @property
    def year_counts(self) -> dict[str, int]:
        return dict(Counter(m.year_of_study for m in self.members))

    @property
    def residences(self) -> frozenset[str]:
        return frozenset(m.residence for m in self.members)

    @property
    def phones(self) -> tuple[str, ...]:
        return tuple(m.phone for m in self.members)


@dataclass(frozen=True)
class GroupingResult:
    groups: tuple[Group, ...]
    target_group_size: int
    seed: Optional[int] = None
    residence_blocks: Mapping[str, range] = field(
        default_factory=lambda: MappingProxyType({}), compare=False
    )

    @property
    def group_count(self) -> int:
        return len(self.groups)

    @property
    def member_count(self) -> int:
        return sum(g.size for g in self.groups)

    @property
    def pastorless_groups(self) -> list[int]:
        """Zero-based indices of groups that ended up without a pastor."""
        return [i for i, g in enumerate(self.groups) if not g.has_pastor]

    def label(self, index: int) -> str:
        return f"Group {index + 1}"
