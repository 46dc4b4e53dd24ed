from __future__ import annotations

import csv
import io

CSV_HEADER = ["Group", "Name", "Phone", "Residence", "Year of Study", "Gender", "Role"]


def render_group_set_csv(group_set: dict | None, groups: list[dict]) -> str:
    """Tabular export of a stored group set, one row per member."""
    buffer = io.StringIO()
    writer = csv.writer(buffer)
    writer.writerow(CSV_HEADER)
    if not group_set:
        return buffer.getvalue()

    for group in sorted(groups, key=lambda g: g.get("index", 0)):
        for member in group.get("members") or []:
            writer.writerow(
                [
                    group.get("name") or "",
                    member.get("name") or "",
                    member.get("phone") or "",
                    member.get("residence") or "",
                    member.get("year_of_study") or "",
                    member.get("gender") or "",
                    "Pastor" if member.get("is_pastor") else "Member",
                ]
            )
    return buffer.getvalue()


def export_filename(group_set: dict | None) -> str:
    created_at = (group_set or {}).get("created_at")
    stamp = created_at.strftime("%Y%m%d") if created_at else "empty"
    return f"bible-study-groups-{stamp}.csv"
