from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError
from sqlalchemy import select
from sqlalchemy.orm import Session

from shoppos.core.config import Settings
from shoppos.core.security import ACCESS_TOKEN_TYPE, decode_access_token
from shoppos.db.database import get_db
from shoppos.models.inventory import Shop
from shoppos.models.user import User, UserRole
from shoppos.services.checkout import CheckoutService
from shoppos.services.reporting import ReportingService
from shoppos.services.storage import SqlStorage

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/token", auto_error=False)

ROLE_PERMISSIONS: dict[UserRole, set[str]] = {
    UserRole.SYSTEM_OWNER: {
        "users:manage",
        "shops:manage",
        "inventory:manage",
        "inventory:view",
        "sales:create",
        "sales:view",
        "sales:view_profit",
    },
    UserRole.BUSINESS_OWNER: {
        "shops:manage",
        "inventory:manage",
        "inventory:view",
        "sales:create",
        "sales:view",
        "sales:view_profit",
    },
    UserRole.EMPLOYEE: {"inventory:view", "sales:create", "sales:view"},
}


def has_permission(user: User, permission: str) -> bool:
    return permission in ROLE_PERMISSIONS.get(user.role, set())


def can_view_profit(user: User) -> bool:
    return has_permission(user, "sales:view_profit")


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_current_user(
    token: str | None = Depends(oauth2_scheme),
    app_settings: Settings = Depends(get_settings),
    db: Session = Depends(get_db),
) -> User:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Invalid authentication credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    if not token:
        raise credentials_exception

    try:
        payload = decode_access_token(app_settings, token.strip())
    except JWTError:
        raise credentials_exception
    subject = payload.get("sub")
    if subject is None or payload.get("type") != ACCESS_TOKEN_TYPE:
        raise credentials_exception

    user = db.scalar(select(User).where(User.id == int(subject)))
    if not user:
        raise credentials_exception
    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is banned. Contact administrator.",
        )
    return user


def require_system_owner(current_user: User = Depends(get_current_user)) -> User:
    if current_user.role != UserRole.SYSTEM_OWNER:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="System owner role required",
        )
    return current_user


def require_permission(permission: str):
    def checker(current_user: User = Depends(get_current_user)) -> User:
        if not has_permission(current_user, permission):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Permission required: {permission}",
            )
        return current_user

    return checker


def user_can_access_shop(user: User, shop: Shop) -> bool:
    if user.role == UserRole.SYSTEM_OWNER:
        return True
    if user.role == UserRole.BUSINESS_OWNER:
        return shop.owner_id == user.id
    return shop.id == user.shop_id


def get_scoped_shop(db: Session, current_user: User, shop_id: int) -> Shop:
    shop = db.get(Shop, shop_id)
    if not shop:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Shop not found")
    if not user_can_access_shop(current_user, shop):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Cross-shop access is not allowed")
    return shop


def get_storage(db: Session = Depends(get_db)) -> SqlStorage:
    return SqlStorage(db)


def get_checkout_service(
    app_settings: Settings = Depends(get_settings),
    storage: SqlStorage = Depends(get_storage),
) -> CheckoutService:
    return CheckoutService(storage, invoice_prefix=app_settings.invoice_prefix)


def get_reporting_service(storage: SqlStorage = Depends(get_storage)) -> ReportingService:
    return ReportingService(storage)
