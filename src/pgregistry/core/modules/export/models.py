from pydantic import BaseModel, Field


class ResidentRow(BaseModel):
    """One resident as shown in the list view and the spreadsheet export."""

    display_id: str = Field(..., description="Resolved display id, e.g. SMA-00042")
    name: str
    phone: str
    college: str
    section: str
    room: str
    join_date: str = Field(..., description="Join date as YYYY-MM-DD")
    fee_due: str = Field(..., description="Fee due with currency symbol, e.g. ₹4500")
    notes: str
    fees_paid: str = Field(..., description="Yes or No")


# (attribute, header, column width); order defines spreadsheet columns
EXPORT_COLUMNS: list[tuple[str, str, int]] = [
    ("display_id", "ID", 15),
    ("name", "Name", 25),
    ("phone", "Phone", 15),
    ("college", "College", 30),
    ("section", "Section", 20),
    ("room", "Room", 10),
    ("join_date", "Join Date", 15),
    ("fee_due", "Fee Due", 12),
    ("notes", "Notes", 30),
    ("fees_paid", "Fees Paid", 10),
]
