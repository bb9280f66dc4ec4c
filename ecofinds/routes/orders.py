# ecofinds/routes/orders.py
import csv
import io
import json
import logging
from datetime import datetime, timedelta
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Request, Query, status
from fastapi.responses import Response
from sqlalchemy import func, or_
from sqlalchemy.orm import Session, selectinload

from ecofinds.database import get_db
from ecofinds.models.cart import Cart
from ecofinds.models.order import Order, OrderItem
from ecofinds.models.product import Product
from ecofinds.models.users import User
from ecofinds.schemas.order import (
    OrderResponse, OrdersPage, OrderStatusPatch, OrderItemOut,
    OrderCreatePayload, OrderCancel, ShippingAddress, SellerAnalytics,
)
from ecofinds.utils.audit import write_log, client_ip
from ecofinds.utils.pdf import generate_purchase_report_pdf
from ecofinds.utils.tokenJWT import get_current_user

router = APIRouter(prefix="/orders", tags=["Orders"])
logger = logging.getLogger(__name__)

# Seller-driven status transitions
ALLOWED_TRANSITIONS = {
    "processing": {"shipped", "cancelled"},
    "shipped": {"delivered"},
}

ORDER_SORTS = {
    "newest": (Order.created_at.desc(), Order.id.desc()),
    "oldest": (Order.created_at.asc(), Order.id.asc()),
    "price-high": (Order.total_amount.desc(), Order.id.desc()),
    "price-low": (Order.total_amount.asc(), Order.id.desc()),
}

EXPORT_COLUMNS = [
    "order_number", "ordered_at", "status", "title", "category",
    "quantity", "unit_price", "line_total", "payment_method", "tracking_number",
]


def _order_to_out(order: Order) -> OrderResponse:
    items: List[OrderItemOut] = []
    for it in order.items:
        items.append(OrderItemOut(
            product_id=it.product_id,
            seller_id=it.seller_id,
            title=it.title,
            category=it.category,
            image_url=it.image_url,
            quantity=it.quantity,
            unit_price=it.unit_price,
            line_total=round(it.unit_price * it.quantity, 2),
        ))
    return OrderResponse(
        id=order.id,
        order_number=order.order_number,
        buyer_id=order.buyer_id,
        status=order.status,
        payment_method=order.payment_method,
        total_amount=round(order.total_amount, 2),
        tracking_number=order.tracking_number,
        notes=order.notes,
        created_at=order.created_at,
        delivered_at=order.delivered_at,
        shipping_address=ShippingAddress(
            name=order.shipping_name,
            street=order.shipping_street,
            city=order.shipping_city,
            zip_code=order.shipping_zip,
            country=order.shipping_country,
            phone=order.shipping_phone,
        ),
        items=items,
    )


def _next_order_number(db: Session) -> str:
    # EF + yymmdd + 4-digit sequence within the day
    prefix = "EF" + datetime.now().strftime("%y%m%d")
    count = db.query(Order).filter(Order.order_number.like(f"{prefix}%")).count()
    return f"{prefix}{count + 1:04d}"


def _restore_stock(db: Session, order: Order):
    for item in order.items:
        if item.product_id is None:
            continue
        product = db.query(Product).filter(Product.id == item.product_id).first()
        if product:
            product.quantity += item.quantity
            if product.status == "sold":
                product.status = "active"


def _load_order(db: Session, order_id: int) -> Order:
    order = db.query(Order).options(selectinload(Order.items)).filter(Order.id == order_id).first()
    if not order:
        raise HTTPException(status_code=404, detail="Order not found")
    return order


def _is_seller(order: Order, user: User) -> bool:
    return any(it.seller_id == user.id for it in order.items)


def _parse_iso(value: str) -> datetime:
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Bad datetime format: {value}")


def _purchase_query(db: Session, user: User, status_filter: Optional[str], search: Optional[str], sort_by: Optional[str]):
    q = db.query(Order).options(selectinload(Order.items)).filter(Order.buyer_id == user.id)
    if status_filter and status_filter != "all":
        q = q.filter(Order.status == status_filter)
    if search:
        like = f"%{search.strip()}%"
        q = q.filter(or_(Order.order_number.ilike(like), Order.items.any(OrderItem.title.ilike(like))))
    return q.order_by(*ORDER_SORTS.get(sort_by or "newest", ORDER_SORTS["newest"]))


# Place an order from the current cart
@router.post("", response_model=OrderResponse, status_code=status.HTTP_201_CREATED)
def create_order(
    payload: OrderCreatePayload,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    cart = db.query(Cart).filter(Cart.user_id == current_user.id).first()
    if not cart or not cart.items:
        raise HTTPException(status_code=400, detail="Cart is empty")

    # Verify every product is still available
    total = 0.0
    for ci in cart.items:
        product = ci.product
        if not product or product.status != "active":
            title = product.title if product else f"#{ci.product_id}"
            raise HTTPException(status_code=400, detail=f"Product {title} is no longer available")
        if product.quantity < ci.quantity:
            raise HTTPException(status_code=400, detail=f"Insufficient stock for {product.title}")
        total += ci.unit_price_snapshot * ci.quantity

    address = payload.shipping_address
    order = Order(
        order_number=_next_order_number(db),
        buyer_id=current_user.id,
        status="processing",
        payment_method=payload.payment_method,
        total_amount=round(total, 2),
        notes=payload.notes,
        shipping_name=address.name,
        shipping_street=address.street,
        shipping_city=address.city,
        shipping_zip=address.zip_code,
        shipping_country=address.country,
        shipping_phone=address.phone,
    )

    for ci in cart.items:
        product = ci.product
        order.items.append(OrderItem(
            product_id=product.id,
            seller_id=product.seller_id,
            title=product.title,
            category=product.category,
            image_url=product.image_url,
            unit_price=ci.unit_price_snapshot,
            quantity=ci.quantity,
        ))
        product.quantity -= ci.quantity
        if product.quantity == 0:
            product.status = "sold"

    db.add(order)
    cart.items.clear()
    db.commit()
    db.refresh(order)

    write_log(db, user_id=current_user.id, action="ORDER_CREATE", resource="orders", status="SUCCESS",
              ip=client_ip(request),
              meta={"order_id": order.id, "order_number": order.order_number, "total": order.total_amount})
    logger.info("Order %s placed by user %s", order.order_number, current_user.id)
    return _order_to_out(order)


# Purchase history of the current user
@router.get("", response_model=OrdersPage)
def list_my_orders(
    status_filter: Optional[str] = Query(None, alias="status"),
    search: Optional[str] = Query(None),
    sort_by: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    q = _purchase_query(db, current_user, status_filter, search, sort_by)
    total = q.count()
    rows = q.offset((page - 1) * page_size).limit(page_size).all()
    return {"items": [_order_to_out(o) for o in rows], "total": total, "page": page, "page_size": page_size}


# Orders containing the current user's listings
@router.get("/sales", response_model=OrdersPage)
def list_my_sales(
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    q = db.query(Order).options(selectinload(Order.items)).filter(
        Order.items.any(OrderItem.seller_id == current_user.id)
    ).order_by(Order.created_at.desc(), Order.id.desc())
    total = q.count()
    rows = q.offset((page - 1) * page_size).limit(page_size).all()
    return {"items": [_order_to_out(o) for o in rows], "total": total, "page": page, "page_size": page_size}


# Download purchase history as CSV, JSON or PDF
@router.get("/export")
def export_orders(
    format: str = Query("csv", pattern="^(csv|json|pdf)$"),
    status_filter: Optional[str] = Query(None, alias="status"),
    search: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    orders = _purchase_query(db, current_user, status_filter, search, "newest").all()
    stamp = datetime.now().strftime("%Y%m%d%H%M%S")
    filename = f"purchases_{stamp}.{format}"
    headers = {"Content-Disposition": f'attachment; filename="{filename}"'}

    if format == "json":
        body = json.dumps([_order_to_out(o).model_dump(mode="json") for o in orders], indent=2)
        return Response(content=body, media_type="application/json", headers=headers)

    if format == "pdf":
        pdf_bytes = generate_purchase_report_pdf(orders, current_user)
        return Response(content=pdf_bytes, media_type="application/pdf", headers=headers)

    buffer = io.StringIO()
    writer = csv.writer(buffer)
    writer.writerow(EXPORT_COLUMNS)
    for o in orders:
        for it in o.items:
            writer.writerow([
                o.order_number,
                o.created_at.isoformat() if o.created_at else "",
                o.status,
                it.title,
                it.category or "",
                it.quantity,
                f"{it.unit_price:.2f}",
                f"{it.unit_price * it.quantity:.2f}",
                o.payment_method,
                o.tracking_number or "",
            ])
    return Response(content=buffer.getvalue(), media_type="text/csv", headers=headers)


# Revenue, volume and status counts over the caller's sold lines
@router.get("/analytics/seller", response_model=SellerAnalytics)
def seller_analytics(
    period: str = Query("30d", pattern=r"^\d+d$"),
    start_date: Optional[str] = Query(None),
    end_date: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    if start_date and end_date:
        since, until = _parse_iso(start_date), _parse_iso(end_date)
    else:
        since, until = datetime.utcnow() - timedelta(days=int(period[:-1])), None

    filters = [OrderItem.seller_id == current_user.id, Order.created_at >= since]
    if until:
        filters.append(Order.created_at <= until)

    orders, items, revenue = (
        db.query(
            func.count(func.distinct(Order.id)),
            func.coalesce(func.sum(OrderItem.quantity), 0),
            func.coalesce(func.sum(OrderItem.unit_price * OrderItem.quantity), 0.0),
        )
        .select_from(OrderItem)
        .join(Order, OrderItem.order_id == Order.id)
        .filter(*filters)
        .one()
    )

    breakdown = (
        db.query(Order.status, func.count(func.distinct(Order.id)))
        .select_from(OrderItem)
        .join(Order, OrderItem.order_id == Order.id)
        .filter(*filters)
        .group_by(Order.status)
        .all()
    )

    return SellerAnalytics(
        start_date=since,
        end_date=until,
        total_orders=orders,
        total_items=items,
        total_revenue=round(revenue, 2),
        average_order_value=round(revenue / orders, 2) if orders else 0.0,
        status_breakdown={s: n for s, n in breakdown},
    )


# Order details, visible to the buyer and to sellers in the order
@router.get("/{order_id}", response_model=OrderResponse)
def get_order_detail(
    order_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    order = _load_order(db, order_id)
    if order.buyer_id != current_user.id and not _is_seller(order, current_user):
        raise HTTPException(status_code=404, detail="Order not found")
    return _order_to_out(order)


# Seller moves the order along processing -> shipped -> delivered
@router.patch("/{order_id}/status", response_model=OrderResponse)
def update_order_status(
    order_id: int,
    payload: OrderStatusPatch,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    order = _load_order(db, order_id)
    if not _is_seller(order, current_user):
        raise HTTPException(status_code=403, detail="Unauthorized to update this order")

    old_status, new_status = order.status, payload.status
    if new_status not in ALLOWED_TRANSITIONS.get(old_status, set()):
        raise HTTPException(status_code=400, detail=f"Cannot change status from {old_status} to {new_status}")

    order.status = new_status
    if payload.tracking_number:
        order.tracking_number = payload.tracking_number
    if new_status == "delivered":
        order.delivered_at = datetime.utcnow()
    if new_status == "cancelled":
        _restore_stock(db, order)

    db.commit()
    db.refresh(order)

    write_log(db, user_id=current_user.id, action="ORDER_STATUS_CHANGE", resource="orders", status="SUCCESS",
              ip=client_ip(request), meta={"order_id": order.id, "old": old_status, "new": new_status})
    return _order_to_out(order)


# Buyer cancels while the order is still processing
@router.post("/{order_id}/cancel", response_model=OrderResponse)
def cancel_order(
    order_id: int,
    request: Request,
    payload: Optional[OrderCancel] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    order = _load_order(db, order_id)
    if order.buyer_id != current_user.id:
        raise HTTPException(status_code=403, detail="Only the buyer can cancel the order")
    if order.status != "processing":
        raise HTTPException(status_code=400, detail="Order cannot be cancelled at this stage")

    order.status = "cancelled"
    _restore_stock(db, order)
    db.commit()
    db.refresh(order)

    reason = payload.reason if payload and payload.reason else "Cancelled by buyer"
    write_log(db, user_id=current_user.id, action="ORDER_CANCEL", resource="orders", status="SUCCESS",
              ip=client_ip(request), meta={"order_id": order.id, "reason": reason})
    return _order_to_out(order)
