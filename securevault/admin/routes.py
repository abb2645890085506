
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from securevault.auth.deps import get_db, require_admin
from securevault.documents.store import find_document
from securevault.errors import NotFoundError
from securevault.models.user import User
from securevault.schemas.document import DocumentEnvelope, DocumentOut

# The only routes that skip the ownership check; every one requires an admin.
router = APIRouter(prefix="/api/admin", tags=["admin"])

@router.get("/documents/{doc_id}", response_model=DocumentEnvelope)
def read_any_document(doc_id: str, db: Session = Depends(get_db), admin: User = Depends(require_admin)):
    doc = find_document(db, doc_id)
    if doc is None:
        raise NotFoundError("Document not found.")
    return DocumentEnvelope(document=DocumentOut.model_validate(doc))
