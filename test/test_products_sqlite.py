import pytest
from fastapi.testclient import TestClient
from sqlalchemy import select

from app import create_app
from database import create_store
from models import ProductDB

# ---------------------------------------------------------
# DB Setup Fixture
# ---------------------------------------------------------
@pytest.fixture
def store():
    store = create_store("sqlite://")
    yield store
    store.dispose()

@pytest.fixture
def client(store):
    return TestClient(create_app(store))

# ---------------------------------------------------------
# Helper: Produkt anlegen
# ---------------------------------------------------------
def create_test_product(client, name="Chicken", price=5.0, description=None):
    response = client.post("/products", json={"name": name, "price": price, "description": description})
    assert response.status_code == 201
    return response.json()

# =========================================================
# TEST: GET /products
# =========================================================
def test_get_products(client):
    create_test_product(client, "Chicken", 5.0)
    create_test_product(client, "Fries", 2.0)

    response = client.get("/products")
    assert response.status_code == 200

    data = response.json()
    assert len(data) == 2
    assert data[0]["name"] == "Chicken"
    assert data[1]["name"] == "Fries"

def test_get_products_empty(client):
    response = client.get("/products")
    assert response.status_code == 200
    assert response.json() == []

# =========================================================
# TEST: GET /products/{id}
# =========================================================
def test_get_product_by_id(client):
    product = create_test_product(client, "Nuggets", 3.0, "Crispy")

    response = client.get(f"/products/{product['id']}")
    assert response.status_code == 200
    assert response.json() == {"id": product["id"], "name": "Nuggets", "price": 3.0, "description": "Crispy"}

def test_get_product_not_found(client):
    response = client.get("/products/999")
    assert response.status_code == 404
    assert response.json() == {"error": "Product not found"}

# =========================================================
# TEST: POST /products
# =========================================================
def test_create_product(client):
    response = client.post("/products", json={"name": "New Product", "price": 15.99, "description": "New test product"})
    assert response.status_code == 201

    data = response.json()
    assert isinstance(data["id"], int)
    assert data["name"] == "New Product"
    assert data["price"] == 15.99
    assert data["description"] == "New test product"

def test_create_product_missing_fields(client):
    response = client.post("/products", json={"name": "Incomplete Product"})
    assert response.status_code == 201
    assert response.json()["price"] is None
    assert response.json()["description"] is None

def test_create_is_not_idempotent(client):
    first = create_test_product(client, "Burger", 6.5)
    second = create_test_product(client, "Burger", 6.5)

    assert first["id"] != second["id"]
    assert len(client.get("/products").json()) == 2

def test_create_stores_hostile_input_literally(client, store):
    name = "Robert'); DROP TABLE products; --"
    product = create_test_product(client, name, 1.0, "it's \"quoted\"; really")

    assert client.get(f"/products/{product['id']}").json()["name"] == name
    with store.engine.connect() as conn:
        row = conn.execute(select(ProductDB.name, ProductDB.description)).one()
    assert row.name == name
    assert row.description == "it's \"quoted\"; really"

def test_hostile_id_matches_nothing(client):
    create_test_product(client)

    response = client.get("/products/1 OR 1=1")
    assert response.status_code == 404

# =========================================================
# TEST: PUT /products/{id}
# =========================================================
def test_update_product(client):
    product = create_test_product(client, "OldName", 1.0, "Old")

    response = client.put(f"/products/{product['id']}", json={"name": "NewName", "price": 9.99})
    assert response.status_code == 200
    assert response.json() == {"id": product["id"], "name": "NewName", "price": 9.99, "description": "Old"}

    assert client.get(f"/products/{product['id']}").json()["name"] == "NewName"

def test_update_product_without_fields_returns_row(client):
    product = create_test_product(client, "Same", 2.0)

    response = client.put(f"/products/{product['id']}", json={})
    assert response.status_code == 200
    assert response.json() == product

def test_update_product_not_found(client):
    response = client.put("/products/999", json={"name": "DoesNotExist"})
    assert response.status_code == 404
    assert response.json() == {"error": "Product not found"}

# =========================================================
# TEST: Store failures
# =========================================================
def test_database_error_when_table_missing(client, store):
    ProductDB.__table__.drop(bind=store.engine)

    for response in (
        client.get("/products"),
        client.get("/products/1"),
        client.post("/products", json={"name": "X"}),
        client.put("/products/1", json={"name": "X"}),
    ):
        assert response.status_code == 500
        assert response.json() == {"error": "Database error"}

def test_database_error_on_unstorable_value(client):
    response = client.post("/products", json={"name": {"nested": "object"}})
    assert response.status_code == 500
    assert response.json() == {"error": "Database error"}
