from __future__ import annotations

import csv
import io
from typing import Optional

import pandas as pd

from ..updates.model import UpdateSlot
from .model import AttendanceGrid

GRID_FIELDS = [
    "work_date",
    "user_id",
    "name",
    "email",
    "role",
    "morning_update_id",
    "morning_time",
    "morning_status",
    "evening_update_id",
    "evening_time",
    "evening_status",
    "present",
]


def _time(slot: Optional[UpdateSlot]) -> str:
    return slot.timestamp.strftime("%H:%M") if slot else ""


def grid_rows(grid: AttendanceGrid) -> list[dict]:
    """Flatten the grid into one row per day and member."""

    rows: list[dict] = []
    for day in grid.days:
        for member, cell in zip(grid.members, day.cells):
            rows.append(
                {
                    "work_date": day.day.strftime("%Y-%m-%d"),
                    "user_id": member.user_id,
                    "name": member.name,
                    "email": member.email,
                    "role": member.role.value,
                    "morning_update_id": cell.morning.update_id if cell.morning else "",
                    "morning_time": _time(cell.morning),
                    "morning_status": cell.morning.status if cell.morning else "",
                    "evening_update_id": cell.evening.update_id if cell.evening else "",
                    "evening_time": _time(cell.evening),
                    "evening_status": cell.evening.status if cell.evening else "",
                    "present": "yes" if cell.is_present else "no",
                }
            )
    return rows


def grid_to_csv(grid: AttendanceGrid) -> bytes:
    out = io.StringIO()
    writer = csv.DictWriter(out, fieldnames=GRID_FIELDS)
    writer.writeheader()
    for row in grid_rows(grid):
        writer.writerow(row)

    # BOM so spreadsheet apps pick UTF-8 for member names
    return out.getvalue().encode("utf-8-sig")


def grid_to_xlsx(grid: AttendanceGrid) -> bytes:
    df = pd.DataFrame(grid_rows(grid), columns=GRID_FIELDS)
    output = io.BytesIO()
    with pd.ExcelWriter(output, engine="openpyxl") as writer:
        df.to_excel(writer, index=False, sheet_name="Attendance")
    return output.getvalue()


def export_filename(grid: AttendanceGrid, extension: str) -> str:
    return (
        f"project_{grid.project.project_id}_attendance_"
        f"{grid.start_date.strftime('%Y%m%d')}_{grid.end_date.strftime('%Y%m%d')}.{extension}"
    )
