
from fastapi import APIRouter, Body, Depends, Query
from sqlalchemy.orm import Session
from securevault.auth.deps import get_current_user, get_db
from securevault.auth.routes import edit_profile, read_profile, update_password
from securevault.auth.service import confirm_password, delete_user
from securevault.documents import store
from securevault.documents.lifecycle import purge_user_blobs
from securevault.models.user import User
from securevault.schemas.auth import DeleteAccountIn, MessageOut, ProfileOut, UserEnvelope
from securevault.schemas.document import DocumentOut, Pagination, Statistics
from securevault.schemas.user import ActivityItem, ActivityOut, DashboardOut
from securevault.storage.s3 import S3Storage, get_storage

router = APIRouter(prefix="/api/users", tags=["users"])

router.add_api_route("/profile", read_profile, methods=["GET"], response_model=UserEnvelope)
router.add_api_route("/profile", edit_profile, methods=["PUT"], response_model=ProfileOut)
router.add_api_route("/change-password", update_password, methods=["PUT"], response_model=MessageOut)

@router.get("/dashboard", response_model=DashboardOut)
def dashboard(db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    return DashboardOut(
        statistics=Statistics(**store.document_statistics(db, user.id)),
        categories=store.category_counts(db, user.id),
        recent_documents=[DocumentOut.model_validate(d) for d in store.recent_documents(db, user.id)],
    )

@router.get("/activity", response_model=ActivityOut)
def activity(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    rows, total = store.list_documents(db, user.id, page=page, limit=limit)
    items = [
        ActivityItem(
            id=d.id,
            title=d.title,
            category=d.category,
            timestamp=d.created_at,
            details=f"Uploaded {d.original_name}",
        )
        for d in rows
    ]
    return ActivityOut(
        activity=items,
        pagination=Pagination(
            current_page=page,
            total_pages=(total + limit - 1) // limit,
            total_items=total,
            items_per_page=limit,
        ),
    )

@router.delete("/account", response_model=MessageOut)
def delete_account(
    body: DeleteAccountIn = Body(...),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    storage: S3Storage = Depends(get_storage),
):
    confirm_password(user, body.password)
    purge_user_blobs(db, storage, user.id)
    delete_user(db, user)
    return MessageOut(message="Account deleted successfully")
