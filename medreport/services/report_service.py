"""Report store - append-only insight records per user."""
from __future__ import annotations

from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError

from medreport import db
from medreport.errors import EmptyContent, StorageError
from medreport.models import Report


def save_report(user_id: int, content: Optional[str]) -> Report:
    if content is None or not str(content).strip():
        raise EmptyContent()
    report = Report(user_id=user_id, content=str(content))
    db.session.add(report)
    try:
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        raise StorageError(f"Could not save report: {type(e).__name__}") from e
    return report


def list_reports(user_id: int) -> List[Report]:
    """Reports owned by user_id, newest first."""
    try:
        return (
            Report.query.filter_by(user_id=user_id)
            .order_by(Report.created_at.desc(), Report.id.desc())
            .all()
        )
    except SQLAlchemyError as e:
        db.session.rollback()
        raise StorageError(f"Could not load reports: {type(e).__name__}") from e
