from showmart.database import models


def test_categories_are_sorted_and_filterable(client, make_user, make_category):
    top = make_category("Vegetables")
    make_category("Apparel")
    make_category("Leafy", parent_id=top.id)

    names = [c["name"] for c in client.get("/api/shop/categories").json()]
    assert names == ["Apparel", "Leafy", "Vegetables"]

    top_level = client.get("/api/shop/categories", params={"top_level_only": True}).json()
    assert [c["name"] for c in top_level] == ["Apparel", "Vegetables"]


def test_create_category_rules(client, make_user, make_category):
    _, retailer = make_user("retailer")
    _, customer = make_user("customer")
    make_category("Dairy")

    assert client.post("/api/shop/categories", json={"name": "Snacks"}, headers=customer).status_code == 403
    assert client.post("/api/shop/categories", json={"name": "  "}, headers=retailer).status_code == 400
    assert client.post("/api/shop/categories", json={"name": "dairy"}, headers=retailer).status_code == 409
    assert client.post(
        "/api/shop/categories", json={"name": "Cheese", "parent_id": 999}, headers=retailer
    ).status_code == 404

    resp = client.post("/api/shop/categories", json={"name": " Snacks "}, headers=retailer)
    assert resp.status_code == 201
    assert resp.json()["name"] == "Snacks"


def test_category_counts_only_in_stock_retailer_products(client, make_user, make_product, make_category):
    retailer, _ = make_user("retailer")
    wholesaler, _ = make_user("wholesaler")
    fruit = make_category("Fruit")
    empty = make_category("Empty")
    make_product(retailer, category=fruit, stock=5)
    make_product(retailer, category=fruit, stock=3)
    make_product(retailer, category=empty, stock=0)
    make_product(wholesaler, category=empty, stock=100)

    counts = client.get("/api/shop/categories/counts").json()
    assert counts == [{"id": fruit.id, "name": "Fruit", "product_count": 2}]


def test_browse_enriches_with_seller_city(client, make_user, make_product):
    _, headers = make_user("customer", city="pune")
    local, _ = make_user("retailer", city="Pune")
    remote, _ = make_user("retailer", city="Delhi")
    wholesaler, _ = make_user("wholesaler")
    near = make_product(local, name="Local Mango", price=50)
    far = make_product(remote, name="Far Apple", price=30)
    make_product(local, name="Sold out", stock=0)
    make_product(wholesaler, name="Bulk rice")

    products = client.get("/api/shop/products", headers=headers).json()
    by_id = {p["id"]: p for p in products}
    assert set(by_id) == {near.id, far.id}
    assert by_id[near.id]["is_local"] is True
    assert by_id[near.id]["seller_city"] == "Pune"
    assert by_id[far.id]["is_local"] is False

    fast = client.get("/api/shop/products", params={"fast_delivery": True}, headers=headers).json()
    assert [p["id"] for p in fast] == [near.id]


def test_fast_delivery_without_city_is_empty(client, make_user, make_product):
    _, headers = make_user("customer")
    retailer, _ = make_user("retailer", city="Pune")
    make_product(retailer)
    resp = client.get("/api/shop/products", params={"fast_delivery": True}, headers=headers)
    assert resp.json() == []


def test_browse_filters_and_sorting(client, make_user, make_product, make_category):
    _, headers = make_user("customer")
    retailer, _ = make_user("retailer")
    snacks = make_category("Snacks")
    make_product(retailer, name="Banana chips", price=40, category=snacks, description="crispy")
    make_product(retailer, name="Apple juice", price=120)
    make_product(retailer, name="Cherry jam", price=80, description="Crispy toast topping")

    def names(**params):
        return [p["name"] for p in client.get("/api/shop/products", params=params, headers=headers).json()]

    assert names(sort="price-low") == ["Banana chips", "Cherry jam", "Apple juice"]
    assert names(sort="price-high") == ["Apple juice", "Cherry jam", "Banana chips"]
    assert names(sort="name") == ["Apple juice", "Banana chips", "Cherry jam"]
    assert names(sort="newest") == ["Cherry jam", "Apple juice", "Banana chips"]
    assert sorted(names(search="CRISPY")) == ["Banana chips", "Cherry jam"]
    assert names(category_id=snacks.id) == ["Banana chips"]
    assert names(min_price=50, max_price=100) == ["Cherry jam"]

    assert client.get("/api/shop/products", params={"sort": "random"}, headers=headers).status_code == 400


def test_product_detail_visibility_and_rating(client, db, make_user, make_product):
    customer, customer_headers = make_user("customer", full_name="Asha")
    wholesaler, wholesaler_headers = make_user("wholesaler", full_name="Bulk Co")
    _, retailer_headers = make_user("retailer")
    retailer, _ = make_user("retailer", full_name="Corner Shop")
    bulk = make_product(wholesaler, mrp=None)
    shelf = make_product(retailer, price=80, mrp=100)
    db.add(models.Feedback(user_id=customer.id, product_id=shelf.id, rating=4))
    db.add(models.Feedback(user_id=customer.id, product_id=shelf.id, rating=5))
    db.commit()

    detail = client.get(f"/api/shop/products/{shelf.id}", headers=customer_headers).json()
    assert detail["seller_name"] == "Corner Shop"
    assert detail["discount_percentage"] == 20.0
    assert detail["average_rating"] == 4.5
    assert detail["review_count"] == 2

    assert client.get(f"/api/shop/products/{bulk.id}", headers=customer_headers).status_code == 404
    assert client.get(f"/api/shop/products/{bulk.id}", headers=retailer_headers).status_code == 200
    assert client.get(f"/api/shop/products/{bulk.id}", headers=wholesaler_headers).status_code == 200


def test_wholesale_market_shows_minimum_order_quantity(client, make_user, make_product):
    _, retailer = make_user("retailer")
    _, customer = make_user("customer")
    wholesaler, _ = make_user("wholesaler", full_name="Bulk Co")
    make_product(wholesaler, price=1500)

    assert client.get("/api/seller/wholesale", headers=customer).status_code == 403
    market = client.get("/api/seller/wholesale", headers=retailer).json()
    assert len(market) == 1
    assert market[0]["minimum_order_quantity"] == 10
    assert market[0]["wholesaler_name"] == "Bulk Co"


def test_delivery_check(client):
    resp = client.post("/api/shop/delivery-check", json={"pincode": "400001"})
    assert resp.status_code == 200
    assert 2 <= resp.json()["days"] <= 6
    assert client.post("/api/shop/delivery-check", json={"pincode": "4000"}).status_code == 400
