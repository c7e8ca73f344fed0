from fastapi import APIRouter, Depends, Response, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from shoppos.api.deps import get_current_user, get_scoped_shop, require_permission
from shoppos.db.database import get_db
from shoppos.models.inventory import Shop
from shoppos.models.user import User, UserRole
from shoppos.schemas.inventory import ShopCreate, ShopOut, ShopUpdate

router = APIRouter(prefix="/shops", tags=["Shops"])


@router.get("", response_model=list[ShopOut])
def list_shops(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    query = select(Shop).order_by(Shop.created_at.asc(), Shop.id.asc())
    if current_user.role == UserRole.BUSINESS_OWNER:
        query = query.where(Shop.owner_id == current_user.id)
    elif current_user.role == UserRole.EMPLOYEE:
        query = query.where(Shop.id == current_user.shop_id)
    return list(db.scalars(query).all())


@router.post("", response_model=ShopOut, status_code=status.HTTP_201_CREATED)
def create_shop(
    payload: ShopCreate,
    current_user: User = Depends(require_permission("shops:manage")),
    db: Session = Depends(get_db),
):
    shop = Shop(**payload.model_dump(), owner_id=current_user.id)
    db.add(shop)
    db.commit()
    db.refresh(shop)
    return shop


@router.get("/{shop_id}", response_model=ShopOut)
def get_shop(
    shop_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return get_scoped_shop(db, current_user, shop_id)


@router.put("/{shop_id}", response_model=ShopOut)
def update_shop(
    shop_id: int,
    payload: ShopUpdate,
    current_user: User = Depends(require_permission("shops:manage")),
    db: Session = Depends(get_db),
):
    shop = get_scoped_shop(db, current_user, shop_id)
    for field, value in payload.model_dump(exclude_unset=True).items():
        if value is not None:
            setattr(shop, field, value)
    db.commit()
    db.refresh(shop)
    return shop


@router.delete("/{shop_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_shop(
    shop_id: int,
    current_user: User = Depends(require_permission("shops:manage")),
    db: Session = Depends(get_db),
):
    shop = get_scoped_shop(db, current_user, shop_id)
    db.delete(shop)
    db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
