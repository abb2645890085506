"""Document metadata persistence.

Every query here is scoped by the owner's user id. ``find_document`` is the
only unscoped lookup; it exists for the ownership check and the admin path.
"""

from datetime import datetime, timedelta, timezone
from sqlalchemy import delete, func, or_
from sqlalchemy.orm import Session
from securevault.models.document import Document, DocumentCategory

RECENT_WINDOW = timedelta(days=7)


def find_document(db: Session, doc_id: str) -> Document | None:
    return db.get(Document, doc_id)


def create_document(db: Session, **fields) -> Document:
    doc = Document(**fields)
    db.add(doc)
    db.commit()
    db.refresh(doc)
    return doc


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def list_documents(
    db: Session,
    user_id: str,
    page: int = 1,
    limit: int = 20,
    category: str | None = None,
    search: str | None = None,
) -> tuple[list[Document], int]:
    q = db.query(Document).filter(Document.user_id == user_id)
    if category and category != "all":
        q = q.filter(Document.category == DocumentCategory(category))
    if search:
        pattern = f"%{_escape_like(search.lower())}%"
        q = q.filter(or_(
            func.lower(Document.title).like(pattern, escape="\\"),
            func.lower(Document.original_name).like(pattern, escape="\\"),
            func.lower(func.coalesce(Document.description, "")).like(pattern, escape="\\"),
        ))

    total = q.count()
    rows = (
        q.order_by(Document.created_at.desc(), Document.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return rows, total


def document_statistics(db: Session, user_id: str, now: datetime | None = None) -> dict:
    since = (now or datetime.now(timezone.utc)) - RECENT_WINDOW
    base = db.query(func.count(Document.id)).filter(Document.user_id == user_id)
    return {
        "total_docs": base.scalar() or 0,
        "pdf_count": base.filter(Document.mime_type == "application/pdf").scalar() or 0,
        "recent_count": base.filter(Document.created_at > since).scalar() or 0,
    }


def category_counts(db: Session, user_id: str) -> list[dict]:
    count = func.count(Document.id).label("count")
    rows = (
        db.query(Document.category, count)
        .filter(Document.user_id == user_id)
        .group_by(Document.category)
        .order_by(count.desc(), Document.category)
        .all()
    )
    return [{"category": category, "count": int(n)} for category, n in rows]


def recent_documents(db: Session, user_id: str, limit: int = 5) -> list[Document]:
    return (
        db.query(Document)
        .filter(Document.user_id == user_id)
        .order_by(Document.created_at.desc(), Document.id.desc())
        .limit(limit)
        .all()
    )


def list_owned_keys(db: Session, user_id: str) -> list[str]:
    return [key for (key,) in db.query(Document.storage_key).filter(Document.user_id == user_id)]


def update_document(db: Session, doc: Document, changes: dict) -> Document:
    for field, value in changes.items():
        setattr(doc, field, value)
    db.commit()
    db.refresh(doc)
    return doc


def delete_document(db: Session, user_id: str, doc_id: str) -> bool:
    """Delete-if-exists. False when no row matched (already gone)."""
    result = db.execute(
        delete(Document)
        .where(Document.id == doc_id, Document.user_id == user_id)
        .execution_options(synchronize_session=False)
    )
    db.commit()
    return result.rowcount > 0
