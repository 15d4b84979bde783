# app/models.py
from sqlmodel import SQLModel, Field
from typing import Optional
from datetime import datetime, timezone

class ReviewRecord(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    case_id: str = Field(index=True)
    x_url: str
    verdict: str
    confidence: float
    report_hash: str
    payload: str  # Report as JSON
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
