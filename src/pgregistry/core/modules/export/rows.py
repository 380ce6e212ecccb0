"""Formatting of residents into list and spreadsheet rows."""

from datetime import datetime

from pgregistry.core.modules.export.models import ResidentRow
from pgregistry.core.modules.resident.models import Resident

CURRENCY_SYMBOL = "₹"
NOTES_PLACEHOLDER = "No notes"


def format_date_only(value: datetime | None) -> str:
    """Date portion of a timestamp, time of day dropped."""
    if value is None:
        return ""
    return value.date().isoformat()


def format_currency(amount: float | None) -> str:
    """Currency label without a trailing .0 for whole amounts: 4500.0 -> ₹4500."""
    amount = amount or 0
    if float(amount).is_integer():
        return f"{CURRENCY_SYMBOL}{int(amount)}"
    return f"{CURRENCY_SYMBOL}{amount}"


def build_row(resident: Resident) -> ResidentRow:
    return ResidentRow(
        display_id=resident.get_display_id(),
        name=resident.name,
        phone=resident.phone or "",
        college=resident.college or "",
        section=resident.section or "",
        room=resident.room,
        join_date=format_date_only(resident.join_date),
        fee_due=format_currency(resident.fee_due),
        notes=resident.notes or NOTES_PLACEHOLDER,
        fees_paid="Yes" if resident.fees_paid else "No",
    )


def build_rows(residents: list[Resident]) -> list[ResidentRow]:
    return [build_row(resident) for resident in residents]
