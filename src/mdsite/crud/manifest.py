"""Build manifest persistence: lookup and upsert of the last build per source path"""

from datetime import datetime
from pathlib import Path

from sqlmodel import Session, select

from mdsite.crud.models import BuildRecord


def get_record(session: Session, path: str) -> BuildRecord | None:
    """Return the BuildRecord for a source path, or None if it was never built."""
    return session.exec(select(BuildRecord).where(BuildRecord.path == path)).one_or_none()


def upsert_record(
    session: Session,
    path: str,
    hash: str,
    output: Path,
    layout_hash: str = "",
    built_at: datetime = None,
    ) -> BuildRecord:
    """Insert or update the record for path. Caller commits."""
    record = get_record(session, path) or BuildRecord(path=path, hash=hash, output=str(output))
    record.hash = hash
    record.layout_hash = layout_hash
    record.output = str(output)
    record.built_at = built_at or datetime.now()
    session.add(record)
    return record


def list_records(session: Session) -> list[BuildRecord]:
    return list(session.exec(select(BuildRecord).order_by(BuildRecord.path)).all())
