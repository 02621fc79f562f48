def test_create_product_trims_and_coerces(client, admin_headers):
    resp = client.post(
        "/products",
        json={"name": "  Lamp  ", "price": "19.99", "stock": "7", "description": "  ", "imageUrl": " http://img/x.png "},
        headers=admin_headers,
    )
    assert resp.status_code == 201
    product = resp.json()["data"]
    assert product["name"] == "Lamp"
    assert product["price"] == 19.99
    assert product["stock"] == 7
    assert product["description"] is None
    assert product["imageUrl"] == "http://img/x.png"
    assert product["createdAt"]


def test_create_product_requires_fields(client, admin_headers):
    resp = client.post("/products", json={"name": "NoPrice", "stock": 1}, headers=admin_headers)
    assert resp.status_code == 400
    assert resp.json()["success"] is False

    blank = client.post("/products", json={"name": "   ", "price": 1, "stock": 1}, headers=admin_headers)
    assert blank.status_code == 400


def test_create_product_rejects_negative_values(client, admin_headers):
    resp = client.post("/products", json={"name": "Neg", "price": -1, "stock": 1}, headers=admin_headers)
    assert resp.status_code == 400
    resp = client.post("/products", json={"name": "Neg", "price": 1, "stock": -1}, headers=admin_headers)
    assert resp.status_code == 400


def test_create_product_rejects_stock_beyond_integer_column(client, admin_headers):
    resp = client.post("/products", json={"name": "Huge", "price": 1, "stock": 10**20}, headers=admin_headers)
    assert resp.status_code == 400
    assert [e["field"] for e in resp.json()["errors"]] == ["stock"]


def test_zero_price_and_stock_are_allowed(make_product):
    product = make_product(name="Freebie", price=0, stock=0)
    assert product["price"] == 0
    assert product["stock"] == 0


def test_create_requires_authentication(client):
    resp = client.post("/products", json={"name": "X", "price": 1, "stock": 1})
    assert resp.status_code == 401


def test_get_product_and_not_found(client, make_product):
    product = make_product(name="Chair")
    resp = client.get(f"/products/{product['id']}")
    assert resp.status_code == 200
    assert resp.json()["data"]["name"] == "Chair"

    missing = client.get("/products/9999")
    assert missing.status_code == 404
    assert missing.json()["message"] == "Product not found"


def test_pagination_page_two_of_three(client, make_product):
    for i in range(12):
        make_product(name=f"P{i:02d}", price=i + 1)

    resp = client.get("/products", params={"page": 2, "limit": 5})
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert len(data["items"]) == 5
    assert data["totalCount"] == 12
    assert data["totalPages"] == 3
    assert data["currentPage"] == 2
    assert data["hasNextPage"] is True
    assert data["hasPreviousPage"] is True
    assert [p["name"] for p in data["items"]] == ["P05", "P06", "P07", "P08", "P09"]

    pagination = resp.json()["meta"]["pagination"]
    assert pagination["itemCount"] == 5
    assert pagination["itemsPerPage"] == 5


def test_pagination_defaults(client, make_product):
    for i in range(11):
        make_product(name=f"D{i}")
    data = client.get("/products").json()["data"]
    assert data["currentPage"] == 1
    assert len(data["items"]) == 10
    assert data["totalPages"] == 2
    assert data["hasPreviousPage"] is False


def test_limit_is_not_capped(client, make_product):
    for i in range(3):
        make_product(name=f"U{i}")
    resp = client.get("/products", params={"limit": 500})
    assert resp.status_code == 200
    assert resp.json()["data"]["totalPages"] == 1


def test_price_filter_and_sorting(client, make_product):
    make_product(name="Cheap", price=5)
    make_product(name="Mid", price=50)
    make_product(name="Pricey", price=500)

    resp = client.get("/products", params={"minPrice": 10, "maxPrice": 600, "sortBy": "price", "sortOrder": "desc"})
    body = resp.json()
    assert [p["name"] for p in body["data"]["items"]] == ["Pricey", "Mid"]
    assert body["meta"]["filters"] == {"minPrice": 10.0, "maxPrice": 600.0, "sortBy": "price", "sortOrder": "desc"}


def test_unknown_sort_field_is_400(client):
    resp = client.get("/products", params={"sortBy": "password"})
    assert resp.status_code == 400


def test_update_product(client, admin_headers, make_product):
    product = make_product(name="Old", price=1, stock=1)
    resp = client.put(
        f"/products/{product['id']}",
        json={"name": " New ", "price": "2.50", "stock": 3},
        headers=admin_headers,
    )
    assert resp.status_code == 200
    updated = resp.json()["data"]
    assert (updated["name"], updated["price"], updated["stock"]) == ("New", 2.5, 3)

    missing = client.put("/products/9999", json={"name": "X", "price": 1, "stock": 1}, headers=admin_headers)
    assert missing.status_code == 404


def test_update_requires_same_fields_as_create(client, admin_headers, make_product):
    product = make_product()
    resp = client.put(f"/products/{product['id']}", json={"name": "Only name"}, headers=admin_headers)
    assert resp.status_code == 400


def test_delete_product_removes_cart_and_wishlist_references(client, admin_headers, user_headers, make_product):
    product = make_product()
    client.post("/cart", json={"productId": product["id"]}, headers=user_headers)
    client.post(f"/wishlist/{product['id']}", headers=user_headers)

    resp = client.delete(f"/products/{product['id']}", headers=admin_headers)
    assert resp.status_code == 200
    assert client.get(f"/products/{product['id']}").status_code == 404
    assert client.get("/cart", headers=user_headers).json()["data"]["items"] == []
    assert client.get("/wishlist", headers=user_headers).json()["data"]["products"] == []


def test_delete_product_referenced_by_order_is_refused(client, admin_headers, user_headers, make_product):
    product = make_product()
    client.post("/cart", json={"productId": product["id"]}, headers=user_headers)
    assert client.post("/orders", headers=user_headers).status_code == 201

    resp = client.delete(f"/products/{product['id']}", headers=admin_headers)
    assert resp.status_code == 409
    assert client.get(f"/products/{product['id']}").status_code == 200


def test_delete_requires_admin(client, user_headers, make_product):
    product = make_product()
    assert client.delete(f"/products/{product['id']}", headers=user_headers).status_code == 403
