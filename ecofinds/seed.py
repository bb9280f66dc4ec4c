# ecofinds/seed.py
"""Fill an empty database with demo accounts and listings: python -m ecofinds.seed"""
import argparse

from ecofinds.database import SessionLocal, init_db
from ecofinds.models.cart import Cart, CartItem, SavedItem
from ecofinds.models.log import Log
from ecofinds.models.order import Order, OrderItem
from ecofinds.models.product import Product, ProductImage
from ecofinds.models.users import User
from ecofinds.utils.hashing import get_password_hash

DEMO_PASSWORD = "Password123"
DEMO_IMAGE_BASE = "https://res.cloudinary.com/demo/image/upload"

SAMPLE_USERS = [
    {
        "email": "john.doe@example.com",
        "first_name": "John",
        "last_name": "Doe",
        "bio": "Sustainable fashion for the modern conscious consumer",
        "website": "https://ecostyle.com",
        "location": "San Francisco, CA",
        "is_verified": True,
        "avatar_url": f"{DEMO_IMAGE_BASE}/v1234567890/avatar1.jpg",
    },
    {
        "email": "sarah.green@example.com",
        "first_name": "Sarah",
        "last_name": "Green",
        "bio": "Refurbished electronics with warranty",
        "website": "https://greenelectronics.com",
        "location": "Austin, TX",
        "is_verified": True,
        "avatar_url": f"{DEMO_IMAGE_BASE}/v1234567890/avatar2.jpg",
    },
    {
        "email": "mike.miller@example.com",
        "first_name": "Mike",
        "last_name": "Miller",
        "location": "Portland, OR",
        "avatar_url": f"{DEMO_IMAGE_BASE}/v1234567890/avatar3.jpg",
    },
]

# (seller index, listing fields, image names)
SAMPLE_PRODUCTS = [
    (0, {
        "title": "Organic Cotton T-Shirt",
        "description": "Made from 100% organic cotton, this t-shirt is perfect for everyday wear. "
                       "Soft, comfortable, and sustainably produced.",
        "price": 25.99, "category": "clothing", "condition": "excellent", "quantity": 50,
        "local_pickup": True, "shipping_available": True,
    }, ["tshirt1.jpg", "tshirt2.jpg"]),
    (1, {
        "title": "Refurbished iPhone 12",
        "description": "Fully tested and refurbished iPhone 12 in excellent condition. Comes with 1-year warranty.",
        "price": 499.99, "category": "electronics", "condition": "excellent", "quantity": 5,
        "shipping_available": True, "accept_offers": True,
    }, ["iphone1.jpg"]),
    (0, {
        "title": "Bamboo Kitchen Utensil Set",
        "description": "Complete set of kitchen utensils made from sustainable bamboo. Includes spatula, spoons, and tongs.",
        "price": 15.99, "category": "kitchen", "condition": "excellent", "quantity": 30,
        "local_pickup": True, "shipping_available": True,
    }, ["bamboo1.jpg"]),
    (2, {
        "title": "Classic Literature Collection",
        "description": "Set of 10 classic literature books in good condition. Perfect for any book lover.",
        "price": 35.00, "category": "books", "condition": "good", "quantity": 1,
        "local_pickup": True, "shipping_available": True, "accept_offers": True,
    }, ["books1.jpg"]),
    (2, {
        "title": "Used Mountain Bike",
        "description": "Well-maintained mountain bike, perfect for trails and outdoor adventures. Recently serviced.",
        "price": 299.99, "category": "sports", "condition": "good", "quantity": 1,
        "local_pickup": True, "accept_offers": True,
    }, ["bike1.jpg", "bike2.jpg"]),
]


def clear_data(session):
    # Children first to satisfy foreign keys
    for model in (Log, OrderItem, Order, CartItem, SavedItem, Cart, ProductImage, Product, User):
        session.query(model).delete()
    session.commit()


def seed(session, reset: bool = False):
    if reset:
        clear_data(session)
    elif session.query(User).count():
        print("Database already contains users, skipping (use --reset to start over).")
        return

    users = []
    for data in SAMPLE_USERS:
        user = User(password_hash=get_password_hash(DEMO_PASSWORD), role="user", **data)
        session.add(user)
        users.append(user)
    session.flush()

    for seller_idx, fields, images in SAMPLE_PRODUCTS:
        product = Product(seller_id=users[seller_idx].id, status="active", views=0, **fields)
        product.images = [
            ProductImage(url=f"{DEMO_IMAGE_BASE}/v1234567890/{name}", public_id=f"ecofinds/demo/{name.rsplit('.', 1)[0]}", position=pos)
            for pos, name in enumerate(images)
        ]
        session.add(product)

    session.commit()

    print(f"Seeded {len(users)} users and {len(SAMPLE_PRODUCTS)} listings.")
    for user in users:
        print(f"   {user.email} / {DEMO_PASSWORD}")


def main():
    parser = argparse.ArgumentParser(description="Seed the EcoFinds database with demo data")
    parser.add_argument("--reset", action="store_true", help="delete existing rows before seeding")
    args = parser.parse_args()

    init_db()
    session = SessionLocal()
    try:
        seed(session, reset=args.reset)
    finally:
        session.close()


if __name__ == "__main__":
    main()
