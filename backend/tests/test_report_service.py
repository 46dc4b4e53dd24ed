from __future__ import annotations

import csv
import io
from datetime import datetime

from biblestudy.services.report_service import CSV_HEADER, export_filename, render_group_set_csv


def _member(phone: str, pastor: bool = False) -> dict:
    return {
        "name": f"Member {phone}",
        "phone": phone,
        "residence": "Fanta",
        "year_of_study": "3",
        "gender": "M",
        "is_pastor": pastor,
    }


def test_render_group_set_csv_follows_group_order():
    group_set = {"_id": "set", "created_at": datetime(2026, 3, 1)}
    groups = [
        {"index": 1, "name": "Group 2", "members": [_member("3")]},
        {"index": 0, "name": "Group 1", "members": [_member("1", pastor=True), _member("2")]},
    ]

    rows = list(csv.reader(io.StringIO(render_group_set_csv(group_set, groups))))

    assert rows[0] == CSV_HEADER
    assert [(r[0], r[2], r[6]) for r in rows[1:]] == [
        ("Group 1", "1", "Pastor"),
        ("Group 1", "2", "Member"),
        ("Group 2", "3", "Member"),
    ]
    assert export_filename(group_set) == "bible-study-groups-20260301.csv"


def test_render_group_set_csv_without_groups():
    rows = list(csv.reader(io.StringIO(render_group_set_csv(None, []))))
    assert rows == [CSV_HEADER]
    assert export_filename(None) == "bible-study-groups-empty.csv"
