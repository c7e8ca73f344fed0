import logging

from fastapi import APIRouter, Depends, HTTPException, Response, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from shoppos.api.deps import get_current_user, get_settings, require_system_owner
from shoppos.core.config import Settings
from shoppos.core.security import create_access_token, hash_password, verify_password
from shoppos.db.database import get_db
from shoppos.models.inventory import Shop
from shoppos.models.user import User, UserRole
from shoppos.schemas.auth import LoginRequest, TokenResponse
from shoppos.schemas.user import UserCreate, UserOut, UserUpdate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])


def authenticate_user(db: Session, username: str, password: str) -> User:
    user = db.scalar(select(User).where(func.lower(User.username) == username.lower()))
    if not user or not verify_password(password, user.password_hash):
        logger.info("login failed for %r", username)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is banned. Contact administrator.",
        )
    return user


def _token_for(user: User, app_settings: Settings) -> TokenResponse:
    return TokenResponse(
        access_token=create_access_token(app_settings, user.id, user.role.value),
        expires_in=app_settings.access_token_expire_minutes * 60,
    )


def _validate_assigned_shop(db: Session, role: UserRole, shop_id: int | None) -> None:
    if role == UserRole.EMPLOYEE and shop_id is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Employees must be assigned to a shop")
    if shop_id is not None and not db.get(Shop, shop_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Shop not found")


@router.post("/login", response_model=TokenResponse)
def login(
    payload: LoginRequest,
    app_settings: Settings = Depends(get_settings),
    db: Session = Depends(get_db),
):
    user = authenticate_user(db, payload.username, payload.password)
    logger.info("user %s logged in", user.id)
    return _token_for(user, app_settings)


@router.post("/token", response_model=TokenResponse)
def login_for_access_token(
    form_data: OAuth2PasswordRequestForm = Depends(),
    app_settings: Settings = Depends(get_settings),
    db: Session = Depends(get_db),
):
    user = authenticate_user(db, form_data.username.strip(), form_data.password)
    return _token_for(user, app_settings)


@router.get("/me", response_model=UserOut)
def get_me(current_user: User = Depends(get_current_user)):
    return current_user


@router.get("/users", response_model=list[UserOut])
def list_users(
    _: User = Depends(require_system_owner),
    db: Session = Depends(get_db),
):
    return list(db.scalars(select(User).order_by(User.created_at.asc(), User.id.asc())).all())


@router.post("/users", response_model=UserOut, status_code=status.HTTP_201_CREATED)
def create_user(
    payload: UserCreate,
    admin_user: User = Depends(require_system_owner),
    db: Session = Depends(get_db),
):
    existing = db.scalar(select(User).where(func.lower(User.username) == payload.username.lower()))
    if existing:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Username already exists")
    _validate_assigned_shop(db, payload.role, payload.shop_id)

    user = User(
        username=payload.username,
        name=payload.name,
        password_hash=hash_password(payload.password),
        role=payload.role,
        shop_id=payload.shop_id,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("user %s created by %s", user.id, admin_user.id)
    return user


@router.patch("/users/{user_id}", response_model=UserOut)
def update_user(
    user_id: int,
    payload: UserUpdate,
    admin_user: User = Depends(require_system_owner),
    db: Session = Depends(get_db),
):
    user = db.get(User, user_id)
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    updates = payload.model_dump(exclude_unset=True)
    password = updates.pop("password", None)
    if password:
        user.password_hash = hash_password(password)
    for field, value in updates.items():
        setattr(user, field, value)
    _validate_assigned_shop(db, user.role, user.shop_id)
    if user.id == admin_user.id and (user.role != UserRole.SYSTEM_OWNER or not user.is_active):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Cannot demote or ban yourself")

    db.commit()
    db.refresh(user)
    return user


@router.delete("/users/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_user(
    user_id: int,
    admin_user: User = Depends(require_system_owner),
    db: Session = Depends(get_db),
):
    user = db.get(User, user_id)
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    if user.id == admin_user.id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Cannot delete yourself")
    db.delete(user)
    db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
