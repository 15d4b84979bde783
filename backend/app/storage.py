# app/storage.py (report archive)
from typing import Optional

from sqlmodel import Session, select

from .models import ReviewRecord
from .schema import Report

def save_report(session: Session, x_url: str, report: Report) -> ReviewRecord:
    rec = ReviewRecord(
        case_id=report.case_id,
        x_url=x_url,
        verdict=report.verdict,
        confidence=report.confidence,
        report_hash=report.hash,
        payload=report.model_dump_json(),
    )
    session.add(rec); session.commit()
    session.refresh(rec)
    return rec

def get_latest_report(session: Session, case_id: str) -> Optional[Report]:
    stmt = select(ReviewRecord).where(ReviewRecord.case_id == case_id).order_by(ReviewRecord.id.desc())
    rec = session.exec(stmt).first()
    if not rec:
        return None
    return Report.model_validate_json(rec.payload)
