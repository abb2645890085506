"""Upload and delete flows spanning object storage and the metadata store.

There is no transaction across the two stores. Upload writes the blob first
and only then the record; delete removes the blob first and then the record
even if the blob delete failed.
"""

import logging
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from securevault.config import settings
from securevault.documents import store
from securevault.errors import (
    DependencyError,
    MetadataWriteError,
    NotFoundError,
    StoreUnavailable,
    ValidationError,
)
from securevault.models.document import Document, DocumentCategory
from securevault.models.user import User
from securevault.storage.s3 import S3Storage, build_storage_key, file_extension

logger = logging.getLogger(__name__)

ALLOWED_CONTENT_TYPES = frozenset({
    "application/pdf",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "text/plain",
    "image/jpeg",
    "image/png",
    "image/gif",
    "image/webp",
})


def max_upload_bytes() -> int:
    return settings.max_upload_mb * 1024 * 1024


MAX_FILENAME_LENGTH = 255


def check_upload(content_type: str | None, size: int | None, filename: str | None = None) -> None:
    """Reject a file by name, declared type and size before its bytes are read."""
    if filename is not None and len(filename) > MAX_FILENAME_LENGTH:
        raise ValidationError(f"File name must be at most {MAX_FILENAME_LENGTH} characters")
    if content_type not in ALLOWED_CONTENT_TYPES:
        raise ValidationError("File type not allowed. Please upload a valid document or image.")
    if size is not None:
        if size <= 0:
            raise ValidationError("Uploaded file is empty")
        if size > max_upload_bytes():
            raise ValidationError(f"File exceeds the {settings.max_upload_mb}MB upload limit")


def upload_document(
    db: Session,
    storage: S3Storage,
    owner: User,
    *,
    filename: str,
    content_type: str,
    data: bytes,
    title: str | None = None,
    category: DocumentCategory = DocumentCategory.personal,
    description: str | None = None,
    tags: list[str] | None = None,
) -> Document:
    check_upload(content_type, len(data), filename)

    key = build_storage_key(owner.id, filename)
    stored = storage.put(data, key, content_type)

    try:
        doc = store.create_document(
            db,
            user_id=owner.id,
            title=title or filename,
            file_name=key,
            original_name=filename,
            file_size=len(data),
            file_type=file_extension(filename),
            mime_type=content_type,
            category=category,
            storage_key=stored.key,
            storage_bucket=stored.bucket,
            storage_region=stored.region,
            description=description or "",
            tags=list(tags or []),
        )
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Orphaned blob %s: metadata write failed for user %s: %s", stored.key, owner.id, e)
        raise MetadataWriteError(details=str(e))

    logger.info("Stored document %s (%d bytes) for user %s", doc.id, doc.file_size, owner.id)
    return doc


def remove_document(db: Session, storage: S3Storage, user_id: str, doc: Document) -> bool:
    """Delete a document's blob, then its record.

    Returns whether the blob delete succeeded. A failed blob delete is
    logged and does not stop the record from being removed.
    """
    blob_deleted = True
    try:
        storage.delete(doc.storage_key)
    except StoreUnavailable as e:
        blob_deleted = False
        logger.error("Blob delete failed for document %s (%s); removing record anyway: %s",
                     doc.id, doc.storage_key, e.details)

    try:
        removed = store.delete_document(db, user_id, doc.id)
    except SQLAlchemyError as e:
        db.rollback()
        raise DependencyError(details=str(e))
    if not removed:
        raise NotFoundError("Document not found.")
    return blob_deleted


def purge_user_blobs(db: Session, storage: S3Storage, user_id: str) -> int:
    """Best-effort blob cleanup before an account is deleted. Returns failures."""
    failures = 0
    for key in store.list_owned_keys(db, user_id):
        try:
            storage.delete(key)
        except StoreUnavailable:
            failures += 1
    if failures:
        logger.error("%d blob(s) could not be deleted for user %s", failures, user_id)
    return failures
