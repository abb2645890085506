
from datetime import datetime
from securevault.models.document import DocumentCategory
from securevault.schemas.auth import CamelModel
from securevault.schemas.document import CategoryCount, DocumentOut, Pagination, Statistics


class DashboardOut(CamelModel):
    statistics: Statistics
    categories: list[CategoryCount]
    recent_documents: list[DocumentOut]

class ActivityItem(CamelModel):
    id: str
    type: str = "document_upload"
    title: str
    category: DocumentCategory
    timestamp: datetime
    details: str

class ActivityOut(CamelModel):
    activity: list[ActivityItem]
    pagination: Pagination
