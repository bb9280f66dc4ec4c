# ecofinds/routes/products.py
import math
from typing import Optional, List

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy import or_
from sqlalchemy.orm import Session, joinedload, selectinload

from ecofinds.database import get_db
from ecofinds.models.cart import CartItem, SavedItem
from ecofinds.models.product import Product, ProductImage, CATEGORIES
from ecofinds.models.users import User
from ecofinds.schemas import product as product_schemas
from ecofinds.utils.audit import write_log, client_ip
from ecofinds.utils.tokenJWT import get_current_user

router = APIRouter(tags=["Products"])

# Catalog and "my listings" sort keys
SORT_COLUMNS = {
    "newest": (Product.created_at.desc(), Product.id.desc()),
    "oldest": (Product.created_at.asc(), Product.id.asc()),
    "price-low": (Product.price.asc(), Product.id.desc()),
    "price-high": (Product.price.desc(), Product.id.desc()),
    "most-viewed": (Product.views.desc(), Product.id.desc()),
}
DEFAULT_SORT = "newest"

# Bulk actions that only change the status
BULK_STATUS = {
    "activate": "active",
    "deactivate": "inactive",
    "mark-sold": "sold",
}


# ---- HELPERS ----
def _order_by(query, sort_by: Optional[str]):
    key = (sort_by or DEFAULT_SORT).lower()
    columns = SORT_COLUMNS.get(key, SORT_COLUMNS[DEFAULT_SORT])
    # Second column breaks ties on id so pagination is stable
    return query.order_by(*columns)


def _with_relations(query):
    return query.options(selectinload(Product.images), joinedload(Product.seller))


def _get_owned_product(db: Session, product_id: int, user: User) -> Product:
    product = db.query(Product).filter(Product.id == product_id, Product.seller_id == user.id).first()
    if not product:
        raise HTTPException(status_code=404, detail="Product not found or unauthorized")
    return product


def _replace_images(product: Product, images: List[product_schemas.ImageIn]):
    product.images = [
        ProductImage(url=img.url, public_id=img.public_id, position=pos)
        for pos, img in enumerate(images)
    ]


def _delete_product(db: Session, product: Product):
    # Drop cart and saved lines pointing at the listing before removing it
    db.query(CartItem).filter(CartItem.product_id == product.id).delete(synchronize_session=False)
    db.query(SavedItem).filter(SavedItem.product_id == product.id).delete(synchronize_session=False)
    db.delete(product)


# =========================
# CATEGORIES
# =========================
@router.get("/categories", response_model=List[product_schemas.CategoryOut])
def list_categories():
    return [{"value": value, "label": label} for value, label in CATEGORIES.items()]


# =========================
# CATALOG
# =========================
@router.get("/products", response_model=product_schemas.ProductListPage)
def list_products(
    search: Optional[str] = Query(None, description="Search in title and description"),
    category: Optional[str] = Query(None),
    condition: Optional[str] = Query(None),
    min_price: Optional[float] = Query(None, ge=0),
    max_price: Optional[float] = Query(None, ge=0),
    seller_id: Optional[int] = Query(None),
    sort_by: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
):
    query = db.query(Product).filter(Product.status == "active")

    if search:
        like = f"%{search.strip()}%"
        query = query.filter(or_(Product.title.ilike(like), Product.description.ilike(like)))
    if category:
        query = query.filter(Product.category == category)
    if condition:
        query = query.filter(Product.condition == condition)
    if min_price is not None:
        query = query.filter(Product.price >= min_price)
    if max_price is not None:
        query = query.filter(Product.price <= max_price)
    if seller_id is not None:
        query = query.filter(Product.seller_id == seller_id)

    total = query.count()
    items = _with_relations(_order_by(query, sort_by)).offset((page - 1) * limit).limit(limit).all()

    return {
        "items": items,
        "total": total,
        "page": page,
        "limit": limit,
        "pages": math.ceil(total / limit),
        "has_next": page * limit < total,
    }


# =========================
# MY LISTINGS
# =========================
@router.get("/products/mine", response_model=List[product_schemas.ProductOut])
def list_my_products(
    status_filter: str = Query("all", alias="status", pattern="^(all|active|inactive|sold)$"),
    sort_by: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    query = db.query(Product).filter(Product.seller_id == current_user.id)
    if status_filter != "all":
        query = query.filter(Product.status == status_filter)
    return _with_relations(_order_by(query, sort_by)).all()


@router.post("/products/bulk", response_model=product_schemas.BulkResult)
def bulk_update_products(
    payload: product_schemas.BulkAction,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    # Only the caller's own listings are touched; other ids are ignored
    products = db.query(Product).filter(
        Product.id.in_(payload.ids), Product.seller_id == current_user.id
    ).all()
    ids = sorted(p.id for p in products)

    if payload.action == "delete":
        for p in products:
            _delete_product(db, p)
    else:
        new_status = BULK_STATUS[payload.action]
        for p in products:
            p.status = new_status
    db.commit()

    write_log(db, user_id=current_user.id, action="PRODUCT_BULK", resource="products",
              status="SUCCESS", ip=client_ip(request),
              meta={"action": payload.action, "ids": ids})
    return {"action": payload.action, "affected": len(ids), "ids": ids}


# =========================
# SINGLE LISTING
# =========================
@router.get("/products/{product_id}", response_model=product_schemas.ProductOut)
def get_product(product_id: int, db: Session = Depends(get_db)):
    product = _with_relations(db.query(Product)).filter(Product.id == product_id).first()
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")

    product.views = (product.views or 0) + 1
    db.commit()
    db.refresh(product)
    return product


@router.get("/products/{product_id}/related", response_model=List[product_schemas.ProductOut])
def get_related_products(product_id: int, db: Session = Depends(get_db)):
    product = db.query(Product).filter(Product.id == product_id).first()
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")

    query = db.query(Product).filter(
        Product.id != product.id,
        Product.status == "active",
        Product.category == product.category,
    )
    return _with_relations(_order_by(query, "newest")).limit(8).all()


@router.post("/products", response_model=product_schemas.ProductOut, status_code=status.HTTP_201_CREATED)
def create_product(
    payload: product_schemas.ProductCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    data = payload.model_dump(exclude={"images"})
    product = Product(seller_id=current_user.id, views=0, **data)
    _replace_images(product, payload.images)

    db.add(product)
    db.commit()
    db.refresh(product)

    write_log(db, user_id=current_user.id, action="PRODUCT_CREATE", resource="products",
              status="SUCCESS", ip=client_ip(request), meta={"id": product.id, "title": product.title})
    return product


@router.put("/products/{product_id}", response_model=product_schemas.ProductOut)
def update_product(
    product_id: int,
    payload: product_schemas.ProductUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    product = _get_owned_product(db, product_id, current_user)

    changes = payload.model_dump(exclude_unset=True, exclude={"images"})
    for key, value in changes.items():
        if value is None:
            continue
        setattr(product, key, value)
    if payload.images is not None:
        _replace_images(product, payload.images)

    if not (product.local_pickup or product.shipping_available):
        db.rollback()
        raise HTTPException(status_code=400, detail="Please select at least one delivery option")

    db.commit()
    db.refresh(product)

    write_log(db, user_id=current_user.id, action="PRODUCT_UPDATE", resource="products",
              status="SUCCESS", ip=client_ip(request), meta={"id": product.id, "fields": sorted(changes)})
    return product


@router.patch("/products/{product_id}/status", response_model=product_schemas.ProductOut)
def update_product_status(
    product_id: int,
    payload: product_schemas.StatusUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    product = _get_owned_product(db, product_id, current_user)
    old_status = product.status
    product.status = payload.status
    db.commit()
    db.refresh(product)

    write_log(db, user_id=current_user.id, action="PRODUCT_STATUS", resource="products",
              status="SUCCESS", ip=client_ip(request),
              meta={"id": product.id, "old": old_status, "new": product.status})
    return product


@router.delete("/products/{product_id}")
def delete_product(
    product_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    product = _get_owned_product(db, product_id, current_user)
    pid, title = product.id, product.title
    _delete_product(db, product)
    db.commit()

    write_log(db, user_id=current_user.id, action="PRODUCT_DELETE", resource="products",
              status="SUCCESS", ip=client_ip(request), meta={"id": pid})
    return {"detail": f"Product '{title}' deleted"}
