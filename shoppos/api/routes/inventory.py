import logging

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from shoppos.api.deps import can_view_profit, get_scoped_shop, get_settings, require_permission
from shoppos.core.config import Settings
from shoppos.db.database import get_db
from shoppos.models.inventory import InventoryItem
from shoppos.models.user import User
from shoppos.schemas.inventory import InventoryItemCreate, InventoryItemUpdate
from shoppos.services.reporting import project_inventory_item

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Inventory"])


def _get_scoped_item(db: Session, current_user: User, item_id: int) -> InventoryItem:
    item = db.get(InventoryItem, item_id)
    if not item:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Inventory item not found")
    get_scoped_shop(db, current_user, item.shop_id)
    return item


def _commit_item(db: Session, item: InventoryItem) -> None:
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="SKU already exists in this shop") from exc
    db.refresh(item)


@router.get("/shops/{shop_id}/inventory", response_model=None)
def list_inventory(
    shop_id: int,
    search: str | None = Query(default=None, max_length=100),
    brand: str | None = Query(default=None, max_length=80),
    low_stock: bool = False,
    current_user: User = Depends(require_permission("inventory:view")),
    db: Session = Depends(get_db),
):
    get_scoped_shop(db, current_user, shop_id)
    query = (
        select(InventoryItem)
        .where(InventoryItem.shop_id == shop_id)
        .order_by(InventoryItem.created_at.desc(), InventoryItem.id.desc())
    )
    if search:
        pattern = f"%{search.strip().lower()}%"
        query = query.where(
            or_(
                func.lower(InventoryItem.brand).like(pattern),
                func.lower(InventoryItem.model).like(pattern),
                func.lower(InventoryItem.name).like(pattern),
                func.lower(InventoryItem.sku).like(pattern),
            )
        )
    if brand:
        query = query.where(func.lower(InventoryItem.brand) == brand.strip().lower())
    if low_stock:
        query = query.where(InventoryItem.quantity <= InventoryItem.low_stock_threshold)
    items = db.scalars(query).all()
    show_cost = can_view_profit(current_user)
    return [project_inventory_item(item, show_cost) for item in items]


@router.get("/shops/{shop_id}/inventory/low-stock", response_model=None)
def low_stock_alerts(
    shop_id: int,
    current_user: User = Depends(require_permission("inventory:view")),
    db: Session = Depends(get_db),
):
    get_scoped_shop(db, current_user, shop_id)
    items = db.scalars(
        select(InventoryItem)
        .where(
            InventoryItem.shop_id == shop_id,
            InventoryItem.quantity <= InventoryItem.low_stock_threshold,
        )
        .order_by(InventoryItem.quantity.asc(), InventoryItem.id.asc())
    ).all()
    show_cost = can_view_profit(current_user)
    return [project_inventory_item(item, show_cost) for item in items]


@router.post("/shops/{shop_id}/inventory", response_model=None, status_code=status.HTTP_201_CREATED)
def create_inventory_item(
    shop_id: int,
    payload: InventoryItemCreate,
    current_user: User = Depends(require_permission("inventory:manage")),
    app_settings: Settings = Depends(get_settings),
    db: Session = Depends(get_db),
):
    get_scoped_shop(db, current_user, shop_id)
    values = payload.model_dump()
    if values["low_stock_threshold"] is None:
        values["low_stock_threshold"] = app_settings.default_low_stock_threshold
    item = InventoryItem(shop_id=shop_id, **values)
    db.add(item)
    _commit_item(db, item)
    logger.info("inventory item %s created in shop %s", item.id, shop_id)
    return project_inventory_item(item, can_view_profit(current_user))


@router.put("/inventory/{item_id}", response_model=None)
def update_inventory_item(
    item_id: int,
    payload: InventoryItemUpdate,
    current_user: User = Depends(require_permission("inventory:manage")),
    db: Session = Depends(get_db),
):
    item = db.scalar(select(InventoryItem).where(InventoryItem.id == item_id).with_for_update())
    if not item:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Inventory item not found")
    get_scoped_shop(db, current_user, item.shop_id)

    for field, value in payload.model_dump(exclude_unset=True).items():
        if value is None and field not in {"storage", "ram", "color", "sku"}:
            continue
        setattr(item, field, value)
    if not (item.brand and item.model) and not item.name:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Either brand and model or a product name is required",
        )
    _commit_item(db, item)
    return project_inventory_item(item, can_view_profit(current_user))


@router.delete("/inventory/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_inventory_item(
    item_id: int,
    current_user: User = Depends(require_permission("inventory:manage")),
    db: Session = Depends(get_db),
):
    item = _get_scoped_item(db, current_user, item_id)
    db.delete(item)
    db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
