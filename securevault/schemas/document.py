
from datetime import datetime
from pydantic import ConfigDict, Field
from pydantic.alias_generators import to_camel
from securevault.models.document import DocumentCategory
from securevault.schemas.auth import CamelModel


class DocumentUpdate(CamelModel):
    title: str | None = Field(default=None, min_length=1, max_length=255)
    category: DocumentCategory | None = None
    description: str | None = None
    tags: list[str] | None = None

class DocumentOut(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    id: str
    user_id: str
    title: str
    file_name: str
    original_name: str
    file_size: int
    file_type: str
    mime_type: str
    category: DocumentCategory
    storage_key: str
    storage_bucket: str
    storage_region: str
    is_public: bool
    tags: list[str] = []
    description: str | None = None
    formatted_size: str
    is_image: bool
    is_pdf: bool
    created_at: datetime | None = None
    updated_at: datetime | None = None

class DocumentEnvelope(CamelModel):
    document: DocumentOut

class DocumentMessageOut(CamelModel):
    message: str
    document: DocumentOut

class DeleteOut(CamelModel):
    message: str
    storage_deleted: bool

class DownloadOut(CamelModel):
    download_url: str
    file_name: str
    expires_in: int

class Pagination(CamelModel):
    current_page: int
    total_pages: int
    total_items: int
    items_per_page: int

class Statistics(CamelModel):
    total_docs: int
    pdf_count: int
    recent_count: int

class DocumentListOut(CamelModel):
    documents: list[DocumentOut]
    pagination: Pagination
    statistics: Statistics

class CategoryCount(CamelModel):
    category: DocumentCategory
    count: int

class CategoriesOut(CamelModel):
    categories: list[CategoryCount]
