from sqlmodel import Session

from app.models.category import Category
from app.models.product import Product
from conftest import auth


def _product_payload(category_id, **overrides):
    payload = {
        "name": "Jua Kali Sandal",
        "price": 1200,
        "category_id": category_id,
        "brand": "Muli",
        "sku": "JKS-001",
        "sizes": [{"size": "40", "stock": 6}, {"size": "41", "stock": 0}],
        "images": [{"url": "https://cdn.example.com/sandal.jpg", "view_type": "FRONT"}],
        "details": [{"label": "Material", "value": "Recycled tyre"}],
    }
    payload.update(overrides)
    return payload


def test_create_product(client, admin, category):
    response = client.post(
        "/api/admin/products", json=_product_payload(category.id), headers=auth(admin)
    )

    assert response.status_code == 201
    product = response.json()
    assert product["slug"] == "jua-kali-sandal"
    assert product["in_stock"] is True
    assert product["category"] == "Work Boots"
    assert {s["size"]: s["stock"] for s in product["sizes"]} == {"40": 6, "41": 0}
    assert product["details"] == [{"label": "Material", "value": "Recycled tyre", "sort_order": 0}]


def test_create_product_rules(client, admin, category, product):
    no_images = client.post(
        "/api/admin/products",
        json=_product_payload(category.id, images=[]),
        headers=auth(admin),
    )
    assert no_images.status_code == 400

    bad_category = client.post(
        "/api/admin/products", json=_product_payload(999), headers=auth(admin)
    )
    assert bad_category.json()["detail"] == "Category not found"

    taken_sku = client.post(
        "/api/admin/products",
        json=_product_payload(category.id, sku=product.sku),
        headers=auth(admin),
    )
    assert taken_sku.status_code == 400


def test_customers_cannot_manage_catalog(client, customer, category):
    response = client.post(
        "/api/admin/products", json=_product_payload(category.id), headers=auth(customer)
    )
    assert response.status_code == 403


def test_update_product_replaces_sizes(client, engine, admin, product):
    response = client.put(
        f"/api/admin/products/{product.id}",
        json={"price": 5500, "sizes": [{"size": "11", "stock": 2}]},
        headers=auth(admin),
    )

    assert response.status_code == 200
    body = response.json()
    assert body["price"] == 5500
    assert body["sizes"] == [{"size": "11", "stock": 2}]


def test_set_size_stock(client, admin, product):
    response = client.put(
        f"/api/admin/products/{product.id}/sizes/9", json={"stock": 12}, headers=auth(admin)
    )
    assert response.json() == {"product_id": product.id, "size": "9", "stock": 12}


def test_ordered_product_cannot_be_deleted(client, admin, product, place_order):
    place_order()

    response = client.delete(f"/api/admin/products/{product.id}", headers=auth(admin))
    assert response.status_code == 400


def test_list_products_with_filters(client, session, category, product):
    cheap = Product(name="Canvas Slip-on", slug="canvas-slip-on", price=900, category_id=category.id)
    session.add(cheap)
    session.commit()

    response = client.get("/api/products?sort=price_asc")
    assert [p["name"] for p in response.json()["results"]] == [
        "Canvas Slip-on",
        "Safari Leather Boot",
    ]

    response = client.get("/api/products?price_min=1000")
    assert [p["name"] for p in response.json()["results"]] == ["Safari Leather Boot"]

    response = client.get("/api/products?size=10")
    assert [p["name"] for p in response.json()["results"]] == ["Safari Leather Boot"]

    response = client.get("/api/products?q=canvas")
    assert response.json()["total_items"] == 1


def test_category_filter_includes_subcategories(client, session, category, product):
    child = Category(name="Steel Toe", slug="steel-toe", parent_id=category.id)
    session.add(child)
    session.commit()
    session.add(Product(name="Steel Toe Boot", slug="steel-toe-boot", price=7000, category_id=child.id))
    session.commit()

    response = client.get("/api/products?category=work-boots")
    assert response.json()["total_items"] == 2

    response = client.get("/api/products?category=steel-toe")
    assert response.json()["total_items"] == 1

    assert client.get("/api/products?category=nope").status_code == 404


def test_product_detail(client, product):
    response = client.get(f"/api/products/{product.id}")

    assert response.status_code == 200
    body = response.json()
    assert body["sku"] == "SLB-001"
    assert body["rating"] == {"average": 0.0, "count": 0}
    assert client.get("/api/products/999").status_code == 404


def test_shipping_fees(client, session, category, product):
    heavy = Product(
        name="Steel Toe Boot",
        slug="steel-toe-boot",
        price=7000,
        category_id=category.id,
        shipping_fee=350,
    )
    session.add(heavy)
    session.commit()

    response = client.get(f"/api/products/shipping?ids={product.id},{heavy.id},999")

    assert response.status_code == 200
    assert response.json() == {
        "shipping_fees": {str(product.id): 0, str(heavy.id): 350}
    }


def test_shipping_fees_needs_ids(client):
    assert client.get("/api/products/shipping").status_code == 400
    assert client.get("/api/products/shipping?ids=,").status_code == 400
    assert client.get("/api/products/shipping?ids=abc").status_code == 400


def test_category_tree(client, session, category, product):
    session.add(Category(name="Steel Toe", slug="steel-toe", parent_id=category.id))
    session.commit()

    response = client.get("/api/categories")

    roots = response.json()["categories"]
    assert len(roots) == 1
    assert roots[0]["product_count"] == 1
    assert [c["slug"] for c in roots[0]["children"]] == ["steel-toe"]


def test_category_with_products_cannot_be_deleted(client, admin, category, product):
    response = client.delete(f"/api/admin/categories/{category.id}", headers=auth(admin))

    assert response.status_code == 400
    assert response.json()["detail"] == (
        "Cannot delete category with 0 subcategories and 1 products. Move or delete them first."
    )


def test_category_with_children_cannot_be_deleted(client, engine, admin, category):
    client.post(
        "/api/admin/categories",
        json={"name": "Steel Toe", "parent_id": category.id},
        headers=auth(admin),
    )

    response = client.delete(f"/api/admin/categories/{category.id}", headers=auth(admin))

    assert response.status_code == 400
    with Session(engine) as session:
        assert session.get(Category, category.id) is not None


def test_empty_category_is_deleted(client, admin):
    created = client.post("/api/admin/categories", json={"name": "Sandals"}, headers=auth(admin))
    assert created.status_code == 201
    assert created.json()["slug"] == "sandals"

    response = client.delete(f"/api/admin/categories/{created.json()['id']}", headers=auth(admin))
    assert response.status_code == 200


def test_category_cannot_become_its_own_descendant(client, admin, category):
    child = client.post(
        "/api/admin/categories",
        json={"name": "Steel Toe", "parent_id": category.id},
        headers=auth(admin),
    ).json()

    response = client.put(
        f"/api/admin/categories/{category.id}",
        json={"parent_id": child["id"]},
        headers=auth(admin),
    )

    assert response.status_code == 400


def test_reviews_upsert(client, customer, other_customer, product):
    first = client.post(
        f"/api/products/{product.id}/reviews",
        json={"rating": 4, "comment": "Solid boot"},
        headers=auth(customer),
    )
    again = client.post(
        f"/api/products/{product.id}/reviews",
        json={"rating": 2, "comment": "Sole came off"},
        headers=auth(customer),
    )
    client.post(
        f"/api/products/{product.id}/reviews",
        json={"rating": 5},
        headers=auth(other_customer),
    )

    assert first.json()["message"] == "Review added"
    assert again.json()["message"] == "Review updated"

    listing = client.get(f"/api/products/{product.id}/reviews").json()
    assert listing["total_reviews"] == 2
    assert listing["average_rating"] == 3.5


def test_review_rating_bounds(client, customer, product):
    response = client.post(
        f"/api/products/{product.id}/reviews", json={"rating": 6}, headers=auth(customer)
    )
    assert response.status_code == 422


def test_wishlist(client, customer, product):
    assert client.post(f"/api/wishlist/{product.id}", headers=auth(customer)).json() == {
        "message": "Added to wishlist"
    }
    assert client.post(f"/api/wishlist/{product.id}", headers=auth(customer)).json() == {
        "message": "Already in wishlist"
    }

    items = client.get("/api/wishlist", headers=auth(customer)).json()["items"]
    assert [i["product"]["id"] for i in items] == [product.id]
    assert client.get(f"/api/wishlist/check/{product.id}", headers=auth(customer)).json() == {
        "in_wishlist": True
    }

    client.delete(f"/api/wishlist/{product.id}", headers=auth(customer))
    assert client.get("/api/wishlist", headers=auth(customer)).json()["items"] == []


def test_recently_viewed(client, customer, product):
    client.post(f"/api/products/{product.id}/viewed", headers=auth(customer))
    client.post(f"/api/products/{product.id}/viewed", headers=auth(customer))

    products = client.get("/api/recently-viewed", headers=auth(customer)).json()["products"]
    assert [p["id"] for p in products] == [product.id]
