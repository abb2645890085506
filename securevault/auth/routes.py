
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from securevault.auth.deps import get_db, get_current_user
from securevault.auth.service import (
    authenticate_user,
    change_password,
    record_login,
    register_user,
    update_profile,
)
from securevault.models.user import User
from securevault.schemas.auth import (
    AuthOut,
    ChangePasswordIn,
    LoginIn,
    MessageOut,
    ProfileOut,
    ProfileUpdate,
    RegisterIn,
    UserEnvelope,
    UserOut,
)
from securevault.utils.security import create_access_token

router = APIRouter(prefix="/api/auth", tags=["auth"])

@router.post("/register", response_model=AuthOut, status_code=201)
def register(body: RegisterIn, db: Session = Depends(get_db)):
    user = register_user(db, body.name, body.email, body.password)
    user = record_login(db, user)
    token = create_access_token(user.id)
    return AuthOut(message="User registered successfully", user=UserOut.model_validate(user), token=token)

@router.post("/login", response_model=AuthOut)
def login(body: LoginIn, db: Session = Depends(get_db)):
    user = authenticate_user(db, body.email, body.password)
    user = record_login(db, user)
    token = create_access_token(user.id)
    return AuthOut(message="Login successful", user=UserOut.model_validate(user), token=token)

@router.post("/logout", response_model=MessageOut)
def logout(user: User = Depends(get_current_user)):
    # tokens are stateless; the client discards its copy
    return MessageOut(message="Logged out successfully")

def read_profile(user: User = Depends(get_current_user)):
    return UserEnvelope(user=UserOut.model_validate(user))

def edit_profile(body: ProfileUpdate, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    user = update_profile(db, user, name=body.name, email=body.email)
    return ProfileOut(message="Profile updated successfully", user=UserOut.model_validate(user))

def update_password(body: ChangePasswordIn, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    change_password(db, user, body.current_password, body.new_password)
    return MessageOut(message="Password changed successfully")

router.add_api_route("/profile", read_profile, methods=["GET"], response_model=UserEnvelope)
router.add_api_route("/profile", edit_profile, methods=["PUT"], response_model=ProfileOut)
router.add_api_route("/change-password", update_password, methods=["PUT"], response_model=MessageOut)
