# ecofinds/routes/cart.py
from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from ecofinds.database import get_db
from ecofinds.models.cart import Cart, CartItem, SavedItem
from ecofinds.models.product import Product
from ecofinds.models.users import User
from ecofinds.schemas.cart import (
    CartAddItem, CartUpdateItem, CartOut, CartItemOut, CartCount, CartSummary, SavedItemOut,
)
from ecofinds.utils.audit import write_log, client_ip
from ecofinds.utils.tokenJWT import get_current_user

router = APIRouter(prefix="/cart", tags=["Cart"])


def _get_cart(db: Session, user_id: int) -> Cart:
    # Retrieve the user's cart or create it on first use
    cart = db.query(Cart).filter(Cart.user_id == user_id).first()
    if not cart:
        cart = Cart(user_id=user_id)
        db.add(cart)
        db.commit()
        db.refresh(cart)
    return cart


def _find_item(db: Session, cart: Cart, product_id: int) -> CartItem:
    return db.query(CartItem).filter(
        CartItem.cart_id == cart.id, CartItem.product_id == product_id
    ).first()


def _find_saved(db: Session, cart: Cart, product_id: int) -> SavedItem:
    return db.query(SavedItem).filter(
        SavedItem.cart_id == cart.id, SavedItem.product_id == product_id
    ).first()


def _cart_to_out(cart: Cart) -> CartOut:
    items_out = []
    subtotal = 0.0
    total_items = 0

    for it in cart.items:
        product = it.product
        line_total = it.unit_price_snapshot * it.quantity
        subtotal += line_total
        total_items += it.quantity

        items_out.append(CartItemOut(
            id=it.id,
            product_id=it.product_id,
            title=product.title if product else "",
            image_url=product.image_url if product else None,
            seller_id=product.seller_id if product else None,
            quantity=it.quantity,
            unit_price=round(it.unit_price_snapshot, 2),
            line_total=round(line_total, 2),
            available_quantity=product.quantity if product else 0,
        ))

    saved_out = [
        SavedItemOut(
            id=s.id,
            product_id=s.product_id,
            title=s.product.title if s.product else "",
            image_url=s.product.image_url if s.product else None,
            seller_id=s.product.seller_id if s.product else None,
            quantity=s.quantity,
            price=round(s.product.price, 2) if s.product else 0.0,
            available=bool(s.product and s.product.status == "active" and s.product.quantity > 0),
        )
        for s in cart.saved
    ]

    return CartOut(items=items_out, total_items=total_items, subtotal=round(subtotal, 2),
                   saved_for_later=saved_out)


def _log(db: Session, request: Request, user: User, action: str, out: CartOut, **meta):
    write_log(
        db,
        user_id=user.id,
        action=action,
        resource="cart",
        status="SUCCESS",
        ip=client_ip(request),
        meta={**meta, "cart_items": len(out.items), "subtotal": out.subtotal},
    )


@router.get("", response_model=CartOut)
def get_cart(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return _cart_to_out(_get_cart(db, current_user.id))


@router.get("/count", response_model=CartCount)
def get_cart_count(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    out = _cart_to_out(_get_cart(db, current_user.id))
    return {"count": out.total_items}


# Totals only; shipping is not priced so total equals subtotal
@router.get("/summary", response_model=CartSummary)
def get_cart_summary(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    out = _cart_to_out(_get_cart(db, current_user.id))
    return {"item_count": out.total_items, "subtotal": out.subtotal, "total": out.subtotal}


@router.post("/add", response_model=CartOut)
def add_to_cart(
    payload: CartAddItem,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    product = db.query(Product).filter(Product.id == payload.product_id).first()
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    if product.status != "active":
        raise HTTPException(status_code=400, detail="Product is not available")

    cart = _get_cart(db, current_user.id)
    item = _find_item(db, cart, product.id)
    new_qty = payload.quantity + (item.quantity if item else 0)

    # Validate stock for the accumulated quantity
    if new_qty > product.quantity:
        raise HTTPException(status_code=400, detail="Insufficient stock")

    if item:
        item.quantity = new_qty
    else:
        db.add(CartItem(
            cart_id=cart.id,
            product_id=product.id,
            quantity=payload.quantity,
            unit_price_snapshot=product.price,
        ))

    db.commit()
    db.refresh(cart)

    out = _cart_to_out(cart)
    _log(db, request, current_user, "CART_ADD", out, product_id=product.id, quantity=payload.quantity)
    return out


@router.put("/update", response_model=CartOut)
def update_cart_item(
    payload: CartUpdateItem,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    cart = _get_cart(db, current_user.id)
    item = _find_item(db, cart, payload.product_id)
    if not item:
        raise HTTPException(status_code=404, detail="Item not found in cart")

    if payload.quantity == 0:
        db.delete(item)
    else:
        product = item.product
        if product is None or payload.quantity > product.quantity:
            raise HTTPException(status_code=400, detail="Insufficient stock")
        item.quantity = payload.quantity

    db.commit()
    db.refresh(cart)

    out = _cart_to_out(cart)
    _log(db, request, current_user, "CART_UPDATE", out, product_id=payload.product_id, quantity=payload.quantity)
    return out


@router.delete("/remove/{product_id}", response_model=CartOut)
def remove_cart_item(
    product_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    cart = _get_cart(db, current_user.id)
    item = _find_item(db, cart, product_id)
    if not item:
        raise HTTPException(status_code=404, detail="Item not found in cart")

    db.delete(item)
    db.commit()
    db.refresh(cart)

    out = _cart_to_out(cart)
    _log(db, request, current_user, "CART_REMOVE", out, product_id=product_id)
    return out


@router.delete("/clear", response_model=CartOut)
def clear_cart(
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    cart = _get_cart(db, current_user.id)
    cart.items.clear()
    db.commit()
    db.refresh(cart)

    out = _cart_to_out(cart)
    _log(db, request, current_user, "CART_CLEAR", out)
    return out


# =========================
# SAVED FOR LATER
# =========================

@router.post("/save-for-later/{product_id}", response_model=CartOut)
def save_for_later(
    product_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    cart = _get_cart(db, current_user.id)
    item = _find_item(db, cart, product_id)
    if not item:
        raise HTTPException(status_code=404, detail="Item not found in cart")

    saved = _find_saved(db, cart, product_id)
    if saved:
        saved.quantity += item.quantity
    else:
        db.add(SavedItem(cart_id=cart.id, product_id=product_id, quantity=item.quantity))
    db.delete(item)

    db.commit()
    db.refresh(cart)

    out = _cart_to_out(cart)
    _log(db, request, current_user, "CART_SAVE_FOR_LATER", out, product_id=product_id)
    return out


@router.post("/move-to-cart/{product_id}", response_model=CartOut)
def move_to_cart(
    product_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    cart = _get_cart(db, current_user.id)
    saved = _find_saved(db, cart, product_id)
    if not saved:
        raise HTTPException(status_code=404, detail="Saved item not found")

    product = saved.product
    if product is None or product.status != "active":
        raise HTTPException(status_code=400, detail="Product is no longer available")

    item = _find_item(db, cart, product_id)
    new_qty = saved.quantity + (item.quantity if item else 0)
    if new_qty > product.quantity:
        raise HTTPException(status_code=400, detail="Insufficient stock")

    # The line is re-priced at the current listing price
    if item:
        item.quantity = new_qty
        item.unit_price_snapshot = product.price
    else:
        db.add(CartItem(
            cart_id=cart.id,
            product_id=product_id,
            quantity=saved.quantity,
            unit_price_snapshot=product.price,
        ))
    db.delete(saved)

    db.commit()
    db.refresh(cart)

    out = _cart_to_out(cart)
    _log(db, request, current_user, "CART_MOVE_TO_CART", out, product_id=product_id, quantity=new_qty)
    return out


@router.delete("/saved-for-later/{product_id}", response_model=CartOut)
def remove_saved_item(
    product_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    cart = _get_cart(db, current_user.id)
    saved = _find_saved(db, cart, product_id)
    if not saved:
        raise HTTPException(status_code=404, detail="Saved item not found")

    db.delete(saved)
    db.commit()
    db.refresh(cart)

    out = _cart_to_out(cart)
    _log(db, request, current_user, "CART_SAVED_REMOVE", out, product_id=product_id)
    return out
