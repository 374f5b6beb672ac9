"""Tests for catalogue browsing, reviews and categories."""

from __future__ import annotations

from flask.testing import FlaskClient

from models import db
from models.review import Review


def test_catalog_only_lists_available_products_of_approved_bakers(
    client: FlaskClient, create_baker, create_product
):
    approved = create_baker("approved@example.com", bakery_name="Approved Oven")
    pending = create_baker("pending@example.com", status="pending", bakery_name="Pending")
    visible = create_product(approved, "Plum Cake", "300.00")
    create_product(approved, "Sold Out Tart", "150.00", available=False)
    hidden = create_product(pending, "Secret Loaf", "90.00")

    response = client.get("/api/user/products")

    assert response.status_code == 200
    products = response.get_json()["products"]
    assert [product["id"] for product in products] == [visible]
    assert products[0]["bakery_name"] == "Approved Oven"
    assert products[0]["baker_city"] == "Pune"

    assert client.get(f"/api/user/products/{visible}").status_code == 200
    assert client.get(f"/api/user/products/{hidden}").status_code == 404


def test_catalog_filters(
    client: FlaskClient, create_baker, create_product, create_category
):
    first = create_baker("first@example.com", bakery_name="First")
    second = create_baker("second@example.com", bakery_name="Second")
    cakes = create_category("Cakes")
    cookies = create_category("Cookies")
    cake = create_product(first, "Chocolate Truffle", "500.00", category_id=cakes)
    cookie = create_product(
        second, "Oat Cookie", "40.00", category_id=cookies, description="chewy chocolate chips"
    )

    def ids(query):
        return {p["id"] for p in client.get(f"/api/user/products?{query}").get_json()["products"]}

    assert ids(f"category={cookies}") == {cookie}
    assert ids(f"baker_id={first}") == {cake}
    assert ids("search=chocolate") == {cake, cookie}
    assert ids("search=truffle") == {cake}


def test_bakers_lists_only_approved(client: FlaskClient, create_baker):
    create_baker("approved@example.com", bakery_name="Approved Oven")
    create_baker("rejected@example.com", status="rejected", bakery_name="Rejected")

    bakers = client.get("/api/user/bakers").get_json()["bakers"]

    assert [baker["bakery_name"] for baker in bakers] == ["Approved Oven"]


def test_review_lifecycle(
    client: FlaskClient, create_baker, create_product, create_user, auth_headers, app
):
    baker = create_baker("baker@example.com")
    product_id = create_product(baker)
    customer = create_user("customer@example.com", name="Asha")
    headers = auth_headers(customer)

    response = client.post(
        "/api/user/reviews",
        json={"product_id": product_id, "rating": 5, "comment": "Lovely"},
        headers=headers,
    )
    assert response.status_code == 201
    review_id = response.get_json()["review"]["id"]

    duplicate = client.post(
        "/api/user/reviews",
        json={"product_id": product_id, "rating": 4},
        headers=headers,
    )
    assert duplicate.status_code == 400
    assert duplicate.get_json()["error"] == "You have already reviewed this product"

    reviews = client.get(f"/api/user/products/{product_id}/reviews").get_json()["reviews"]
    assert len(reviews) == 1
    assert reviews[0]["reviewer_name"] == "Asha"
    assert reviews[0]["rating"] == 5

    other = create_user("other@example.com")
    forbidden = client.delete(f"/api/user/reviews/{review_id}", headers=auth_headers(other))
    assert forbidden.status_code == 404

    deleted = client.delete(f"/api/user/reviews/{review_id}", headers=headers)
    assert deleted.status_code == 200
    with app.app_context():
        assert db.session.get(Review, review_id) is None


def test_review_validation(
    client: FlaskClient, create_baker, create_product, create_user, auth_headers
):
    product_id = create_product(create_baker("baker@example.com"))
    headers = auth_headers(create_user("customer@example.com"))

    too_high = client.post(
        "/api/user/reviews", json={"product_id": product_id, "rating": 6}, headers=headers
    )
    zero = client.post(
        "/api/user/reviews", json={"product_id": product_id, "rating": 0}, headers=headers
    )
    unknown = client.post(
        "/api/user/reviews", json={"product_id": "missing", "rating": 3}, headers=headers
    )

    assert too_high.status_code == 400
    assert zero.status_code == 400
    assert unknown.status_code == 404


def test_categories_admin_only_and_unique(client: FlaskClient, create_user, auth_headers):
    admin = create_user("admin@example.com", role="admin", verified=True)
    customer = create_user("customer@example.com")

    denied = client.post(
        "/api/categories", json={"name": "Cakes"}, headers=auth_headers(customer)
    )
    assert denied.status_code == 403

    created = client.post(
        "/api/categories", json={"name": "Cakes"}, headers=auth_headers(admin)
    )
    assert created.status_code == 201

    duplicate = client.post(
        "/api/categories", json={"name": "cakes"}, headers=auth_headers(admin)
    )
    assert duplicate.status_code == 400
    assert duplicate.get_json()["error"] == "Category already exists"

    listed = client.get("/api/categories").get_json()["categories"]
    assert [category["name"] for category in listed] == ["Cakes"]
