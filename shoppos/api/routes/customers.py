from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from shoppos.api.deps import get_scoped_shop, require_permission
from shoppos.db.database import get_db
from shoppos.models.inventory import Customer
from shoppos.models.user import User
from shoppos.schemas.inventory import CustomerCreate, CustomerOut

router = APIRouter(prefix="/shops/{shop_id}/customers", tags=["Customers"])

SEARCH_LIMIT = 10


@router.get("", response_model=list[CustomerOut])
def list_customers(
    shop_id: int,
    search: str | None = Query(default=None, max_length=100),
    current_user: User = Depends(require_permission("sales:view")),
    db: Session = Depends(get_db),
):
    get_scoped_shop(db, current_user, shop_id)
    query = select(Customer).where(Customer.shop_id == shop_id)
    if search and search.strip():
        pattern = f"%{search.strip().lower()}%"
        query = (
            query.where(or_(func.lower(Customer.name).like(pattern), func.lower(Customer.mobile).like(pattern)))
            .order_by(Customer.name.asc())
            .limit(SEARCH_LIMIT)
        )
    else:
        query = query.order_by(Customer.created_at.desc(), Customer.id.desc())
    return list(db.scalars(query).all())


@router.post("", response_model=CustomerOut, status_code=status.HTTP_201_CREATED)
def create_customer(
    shop_id: int,
    payload: CustomerCreate,
    current_user: User = Depends(require_permission("sales:create")),
    db: Session = Depends(get_db),
):
    get_scoped_shop(db, current_user, shop_id)
    customer = Customer(
        shop_id=shop_id,
        name=payload.name.strip(),
        mobile=payload.mobile.strip(),
        address=payload.address,
    )
    db.add(customer)
    db.commit()
    db.refresh(customer)
    return customer


@router.get("/{customer_id}", response_model=CustomerOut)
def get_customer(
    shop_id: int,
    customer_id: int,
    current_user: User = Depends(require_permission("sales:view")),
    db: Session = Depends(get_db),
):
    get_scoped_shop(db, current_user, shop_id)
    customer = db.scalar(select(Customer).where(Customer.id == customer_id, Customer.shop_id == shop_id))
    if not customer:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Customer not found")
    return customer
