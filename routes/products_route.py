import logging

from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException

from database import Store, get_store
from models import ErrorMessage, Product, ProductPayload

logger = logging.getLogger(__name__)

SELECT_ALL = "SELECT * FROM products"
SELECT_BY_ID = "SELECT * FROM products WHERE id = $1"
INSERT = "INSERT INTO products (name, price, description) VALUES ($1, $2, $3) RETURNING *"

# columns a PUT may touch; never taken from the request
UPDATABLE_FIELDS = ("name", "price", "description")

NOT_FOUND = "Product not found"
DATABASE_ERROR = "Database error"

products_router = APIRouter(
    tags=["Products"],
    responses={500: {"model": ErrorMessage}},
)

@products_router.get("/products", response_model=None, responses={200: {"model": list[Product]}})
def get_products(store: Store = Depends(get_store)):
    """
    Retrieves all products.

    Returns:
        list: The rows of the products table in the store's order.
    """
    try:
        return store.query(SELECT_ALL)
    except Exception:
        logger.exception("Listing products failed")
        raise HTTPException(status_code=500, detail=DATABASE_ERROR)

@products_router.get(
    "/products/{id}",
    response_model=None,
    responses={200: {"model": Product}, 404: {"model": ErrorMessage}},
)
def get_product(id: str, store: Store = Depends(get_store)):
    """
    Retrieves a single product by its ID.

    Args:
        id (str): The product ID exactly as given in the path.

    Returns:
        dict: The product row.
    """
    try:
        rows = store.query(SELECT_BY_ID, [id])
    except Exception:
        logger.exception("Loading product %s failed", id)
        raise HTTPException(status_code=500, detail=DATABASE_ERROR)

    if not rows:
        raise HTTPException(status_code=404, detail=NOT_FOUND)
    return rows[0]

@products_router.post(
    "/products",
    status_code=201,
    response_model=None,
    responses={201: {"model": Product}},
)
def create_product(body: Any = Body(default=None), store: Store = Depends(get_store)):
    """
    Creates a new product. The store assigns the ID.

    Args:
        body: JSON object with name, price and description; missing ones are stored as NULL.

    Returns:
        dict: The created row including its ID.
    """
    product = ProductPayload.from_body(body)
    try:
        rows = store.query(INSERT, [product.name, product.price, product.description])
        created = rows[0]
    except Exception:
        logger.exception("Creating product failed")
        raise HTTPException(status_code=500, detail=DATABASE_ERROR)

    logger.info("Created product %s", created.get("id"))
    return created

@products_router.put(
    "/products/{id}",
    response_model=None,
    responses={200: {"model": Product}, 404: {"model": ErrorMessage}},
)
def update_product(id: str, body: Any = Body(default=None), store: Store = Depends(get_store)):
    """
    Updates the fields present in the request body and leaves the others untouched.

    Args:
        id (str): The product ID exactly as given in the path.
        body: JSON object with the fields to change.

    Returns:
        dict: The product row after the update.
    """
    product = ProductPayload.from_body(body)
    sql, params = build_update(id, product.model_dump(exclude_unset=True))
    try:
        rows = store.query(sql, params)
    except Exception:
        logger.exception("Updating product %s failed", id)
        raise HTTPException(status_code=500, detail=DATABASE_ERROR)

    if not rows:
        raise HTTPException(status_code=404, detail=NOT_FOUND)
    logger.info("Updated product %s", id)
    return rows[0]

def build_update(id, changes: dict):
    fields = [field for field in UPDATABLE_FIELDS if field in changes]
    if not fields:
        return SELECT_BY_ID, [id]

    assignments = ", ".join(f"{field} = ${i}" for i, field in enumerate(fields, start=2))
    sql = f"UPDATE products SET {assignments} WHERE id = $1 RETURNING *"
    return sql, [id] + [changes[field] for field in fields]
