from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from shoppos.api.deps import (
    can_view_profit,
    get_checkout_service,
    get_reporting_service,
    get_scoped_shop,
    require_permission,
)
from shoppos.db.database import get_db
from shoppos.models.user import User
from shoppos.schemas.sales import SaleCreateRequest
from shoppos.services.checkout import CheckoutService
from shoppos.services.reporting import ReportingService, project_sale

router = APIRouter(prefix="/shops/{shop_id}", tags=["Sales"])


def _check_range(start_date: date | None, end_date: date | None) -> None:
    if start_date is not None and end_date is not None and start_date > end_date:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="start_date must not be after end_date")


@router.post("/sales", response_model=None, status_code=status.HTTP_201_CREATED)
def create_sale(
    shop_id: int,
    payload: SaleCreateRequest,
    current_user: User = Depends(require_permission("sales:create")),
    db: Session = Depends(get_db),
    checkout: CheckoutService = Depends(get_checkout_service),
):
    get_scoped_shop(db, current_user, shop_id)
    sale = checkout.create_sale(shop_id, payload, sold_by_user_id=current_user.id)
    return project_sale(sale, can_view_profit(current_user))


@router.get("/sales", response_model=None)
def list_sales(
    shop_id: int,
    start_date: date | None = Query(default=None),
    end_date: date | None = Query(default=None),
    current_user: User = Depends(require_permission("sales:view")),
    db: Session = Depends(get_db),
    reporting: ReportingService = Depends(get_reporting_service),
):
    get_scoped_shop(db, current_user, shop_id)
    _check_range(start_date, end_date)
    return reporting.list_sales(shop_id, start_date, end_date, can_view_profit=can_view_profit(current_user))


@router.get("/sales/{sale_id}", response_model=None)
def get_sale(
    shop_id: int,
    sale_id: int,
    current_user: User = Depends(require_permission("sales:view")),
    db: Session = Depends(get_db),
    reporting: ReportingService = Depends(get_reporting_service),
):
    get_scoped_shop(db, current_user, shop_id)
    return reporting.get_sale(shop_id, sale_id, can_view_profit=can_view_profit(current_user))


@router.get("/reports/summary", response_model=None)
def sales_summary(
    shop_id: int,
    start_date: date | None = Query(default=None),
    end_date: date | None = Query(default=None),
    current_user: User = Depends(require_permission("sales:view")),
    db: Session = Depends(get_db),
    reporting: ReportingService = Depends(get_reporting_service),
):
    get_scoped_shop(db, current_user, shop_id)
    _check_range(start_date, end_date)
    return reporting.sales_summary(shop_id, start_date, end_date, can_view_profit=can_view_profit(current_user))
