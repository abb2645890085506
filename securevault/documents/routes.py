
import json
import logging
from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from sqlalchemy.orm import Session
from securevault.auth.deps import get_current_user, get_db, get_owned_document
from securevault.config import settings
from securevault.documents import store
from securevault.documents.lifecycle import check_upload, remove_document, upload_document
from securevault.errors import ValidationError
from securevault.models.document import Document, DocumentCategory
from securevault.models.user import User
from securevault.schemas.document import (
    CategoriesOut,
    DeleteOut,
    DocumentEnvelope,
    DocumentListOut,
    DocumentMessageOut,
    DocumentOut,
    DocumentUpdate,
    DownloadOut,
    Pagination,
    Statistics,
)
from securevault.storage.s3 import S3Storage, get_storage

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/documents", tags=["documents"])

def _parse_tags(raw: str | None) -> list[str]:
    if not raw:
        return []
    try:
        tags = json.loads(raw)
    except ValueError:
        raise ValidationError("Tags must be a JSON array of strings")
    if not isinstance(tags, list) or not all(isinstance(t, str) for t in tags):
        raise ValidationError("Tags must be a JSON array of strings")
    return tags

def _pagination(page: int, limit: int, total: int) -> Pagination:
    return Pagination(
        current_page=page,
        total_pages=(total + limit - 1) // limit,
        total_items=total,
        items_per_page=limit,
    )

@router.post("/upload", response_model=DocumentMessageOut, status_code=201)
def upload(
    file: UploadFile | None = File(None),
    title: str | None = Form(None, max_length=255),
    category: DocumentCategory = Form(DocumentCategory.personal),
    description: str | None = Form(None),
    tags: str | None = Form(None),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    storage: S3Storage = Depends(get_storage),
):
    if file is None or not file.filename:
        raise ValidationError("No file uploaded")

    check_upload(file.content_type, file.size, file.filename)
    tag_list = _parse_tags(tags)
    data = file.file.read()

    doc = upload_document(
        db, storage, user,
        filename=file.filename,
        content_type=file.content_type,
        data=data,
        title=title,
        category=category,
        description=description,
        tags=tag_list,
    )
    return DocumentMessageOut(message="Document uploaded successfully", document=DocumentOut.model_validate(doc))

@router.get("", response_model=DocumentListOut)
def list_documents(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    category: str | None = Query(None),
    search: str | None = Query(None, max_length=255),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    if category and category != "all" and category not in DocumentCategory.__members__:
        raise ValidationError("Unknown category", details=[{"field": "category", "message": f"'{category}' is not a category"}])

    rows, total = store.list_documents(db, user.id, page=page, limit=limit, category=category, search=search)
    return DocumentListOut(
        documents=[DocumentOut.model_validate(d) for d in rows],
        pagination=_pagination(page, limit, total),
        statistics=Statistics(**store.document_statistics(db, user.id)),
    )

@router.get("/categories/list", response_model=CategoriesOut)
def list_categories(db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    return CategoriesOut(categories=store.category_counts(db, user.id))

@router.get("/{doc_id}", response_model=DocumentEnvelope)
def get_document(doc: Document = Depends(get_owned_document)):
    return DocumentEnvelope(document=DocumentOut.model_validate(doc))

@router.put("/{doc_id}", response_model=DocumentMessageOut)
def update_document(
    body: DocumentUpdate,
    doc: Document = Depends(get_owned_document),
    db: Session = Depends(get_db),
):
    changes = body.model_dump(exclude_unset=True)
    # only description may be cleared
    changes = {k: v for k, v in changes.items() if v is not None or k == "description"}
    if not changes:
        raise ValidationError("No valid fields to update")
    doc = store.update_document(db, doc, changes)
    return DocumentMessageOut(message="Document updated successfully", document=DocumentOut.model_validate(doc))

@router.delete("/{doc_id}", response_model=DeleteOut)
def delete_document(
    doc: Document = Depends(get_owned_document),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    storage: S3Storage = Depends(get_storage),
):
    blob_deleted = remove_document(db, storage, user.id, doc)
    return DeleteOut(message="Document deleted successfully", storage_deleted=blob_deleted)

@router.get("/{doc_id}/download", response_model=DownloadOut)
def download(doc: Document = Depends(get_owned_document), storage: S3Storage = Depends(get_storage)):
    ttl = settings.download_url_ttl_seconds
    url = storage.signed_url(doc.storage_key, "get_object", ttl)
    return DownloadOut(download_url=url, file_name=doc.original_name, expires_in=ttl)
