from datetime import date, timedelta

from showmart.database import models

CUSTOMER_FORM = {
    "address": "221B Baker Street, Block A",
    "city": "Pune",
    "state": "Maharashtra",
    "pincode": "411001",
    "phone": "9876543210",
    "payment_method": "cod",
}

RETAILER_FORM = {
    "address": "Unit 4, Market Yard Road",
    "city": "Pune",
    "state": "Maharashtra",
    "pincode": "411037",
    "payment_method": "online",
}


def test_customer_add_increments_and_caps_at_five(client, make_user, make_product):
    _, headers = make_user("customer")
    retailer, _ = make_user("retailer")
    product = make_product(retailer, stock=10)

    for expected in range(1, 6):
        resp = client.post("/api/cart", json={"product_id": product.id}, headers=headers)
        assert resp.status_code == 201
        assert resp.json()["quantity"] == expected

    resp = client.post("/api/cart", json={"product_id": product.id}, headers=headers)
    assert resp.status_code == 400
    assert "Maximum 5" in resp.json()["detail"]


def test_customer_quantity_limited_by_stock(client, make_user, make_product):
    _, headers = make_user("customer")
    retailer, _ = make_user("retailer")
    product = make_product(retailer, stock=2)
    item_id = client.post("/api/cart", json={"product_id": product.id}, headers=headers).json()["id"]

    assert client.put(f"/api/cart/{item_id}", json={"quantity": 3}, headers=headers).status_code == 400
    assert client.put(f"/api/cart/{item_id}", json={"quantity": 0}, headers=headers).status_code == 400
    assert client.put(f"/api/cart/{item_id}", json={"quantity": 2}, headers=headers).json()["quantity"] == 2


def test_out_of_stock_cannot_be_added(client, make_user, make_product):
    _, headers = make_user("customer")
    retailer, _ = make_user("retailer")
    product = make_product(retailer, stock=0)
    resp = client.post("/api/cart", json={"product_id": product.id}, headers=headers)
    assert resp.status_code == 400


def test_retailer_first_add_uses_minimum_order_quantity(client, make_user, make_product):
    _, headers = make_user("retailer")
    wholesaler, _ = make_user("wholesaler")
    cheap = make_product(wholesaler, price=50, stock=500)
    scarce = make_product(wholesaler, price=50, stock=40)

    resp = client.post("/api/cart", json={"product_id": cheap.id}, headers=headers)
    assert resp.json()["quantity"] == 100
    resp = client.post("/api/cart", json={"product_id": cheap.id}, headers=headers)
    assert resp.json()["quantity"] == 101

    item_id = resp.json()["id"]
    resp = client.put(f"/api/cart/{item_id}", json={"quantity": 99}, headers=headers)
    assert resp.status_code == 400
    assert "Minimum order quantity" in resp.json()["detail"]

    assert client.post("/api/cart", json={"product_id": scarce.id}, headers=headers).status_code == 400


def test_customer_cannot_cart_wholesale_products(client, make_user, make_product):
    _, headers = make_user("customer")
    wholesaler, _ = make_user("wholesaler")
    bulk = make_product(wholesaler, price=50, stock=1000)

    assert client.get(f"/api/shop/products/{bulk.id}", headers=headers).status_code == 404
    assert client.post("/api/cart", json={"product_id": bulk.id}, headers=headers).status_code == 404
    assert client.get("/api/cart", headers=headers).json()["items"] == []


def test_retailer_only_carts_wholesale_products(client, make_user, make_product):
    retailer, headers = make_user("retailer")
    other_retailer, _ = make_user("retailer")
    own = make_product(retailer)
    competitor = make_product(other_retailer)

    assert client.post("/api/cart", json={"product_id": own.id}, headers=headers).status_code == 404
    assert client.post("/api/cart", json={"product_id": competitor.id}, headers=headers).status_code == 404


def test_checkout_rejects_products_the_buyer_cannot_purchase(client, db, make_user, make_product):
    customer, headers = make_user("customer")
    wholesaler, _ = make_user("wholesaler")
    bulk = make_product(wholesaler, name="Bulk Sugar", price=50, stock=1000)
    db.add(models.CartItem(user_id=customer.id, product_id=bulk.id, quantity=1))
    db.commit()

    resp = client.post("/api/cart/checkout", json=CUSTOMER_FORM, headers=headers)
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Bulk Sugar is not available for purchase"

    db.expire_all()
    assert db.query(models.Order).count() == 0
    assert db.get(models.Product, bulk.id).stock_quantity == 1000


def test_cart_listing_and_ownership(client, make_user, make_product):
    _, headers = make_user("customer")
    _, other = make_user("customer")
    retailer, _ = make_user("retailer")
    a = make_product(retailer, price=25.5)
    b = make_product(retailer, price=100)
    client.post("/api/cart", json={"product_id": a.id}, headers=headers)
    client.post("/api/cart", json={"product_id": a.id}, headers=headers)
    item_b = client.post("/api/cart", json={"product_id": b.id}, headers=headers).json()["id"]

    cart = client.get("/api/cart", headers=headers).json()
    assert cart["total"] == 151.0
    assert cart["count"] == 3
    assert [line["line_total"] for line in cart["items"]] == [51.0, 100.0]

    assert client.delete(f"/api/cart/{item_b}", headers=other).status_code == 404
    assert client.delete(f"/api/cart/{item_b}", headers=headers).status_code == 200
    assert client.get("/api/cart", headers=headers).json()["count"] == 2


def test_customer_checkout_splits_orders_by_seller(client, db, make_user, make_product):
    customer, headers = make_user("customer")
    shop_a, _ = make_user("retailer")
    shop_b, _ = make_user("retailer")
    a1 = make_product(shop_a, price=10, stock=5)
    a2 = make_product(shop_a, price=20, stock=5)
    b1 = make_product(shop_b, price=100, stock=1)
    for product in (a1, a1, a2, b1):
        client.post("/api/cart", json={"product_id": product.id}, headers=headers)

    resp = client.post("/api/cart/checkout", json=CUSTOMER_FORM, headers=headers)
    assert resp.status_code == 201
    orders = {o["seller_id"]: o for o in resp.json()}
    assert set(orders) == {shop_a.id, shop_b.id}
    assert orders[shop_a.id]["total_amount"] == 40.0
    assert orders[shop_b.id]["total_amount"] == 100.0
    assert len(orders[shop_a.id]["items"]) == 2
    for order in orders.values():
        assert order["status"] == "pending"
        assert order["payment_status"] == "pending"
        assert order["estimated_delivery_date"] == (date.today() + timedelta(days=7)).isoformat()

    db.expire_all()
    assert db.get(models.Product, a1.id).stock_quantity == 3
    assert db.get(models.Product, a2.id).stock_quantity == 4
    assert db.get(models.Product, b1.id).stock_quantity == 0
    assert client.get("/api/cart", headers=headers).json()["items"] == []
    assert db.get(models.Profile, customer.id).phone == "9876543210"


def test_prepaid_checkout_is_marked_paid(client, make_user, make_product):
    _, headers = make_user("customer")
    retailer, _ = make_user("retailer")
    product = make_product(retailer)
    client.post("/api/cart", json={"product_id": product.id}, headers=headers)
    resp = client.post("/api/cart/checkout", json={**CUSTOMER_FORM, "payment_method": "upi"}, headers=headers)
    assert resp.json()[0]["payment_status"] == "paid"


def test_checkout_rechecks_stock_and_changes_nothing(client, db, make_user, make_product):
    _, headers = make_user("customer")
    retailer, _ = make_user("retailer")
    plenty = make_product(retailer, stock=10)
    scarce = make_product(retailer, name="Saffron", stock=3)
    client.post("/api/cart", json={"product_id": plenty.id}, headers=headers)
    for _ in range(3):
        client.post("/api/cart", json={"product_id": scarce.id}, headers=headers)

    scarce.stock_quantity = 1
    db.commit()

    resp = client.post("/api/cart/checkout", json=CUSTOMER_FORM, headers=headers)
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Insufficient stock for Saffron. Available: 1"

    db.expire_all()
    assert db.get(models.Product, plenty.id).stock_quantity == 10
    assert db.query(models.Order).count() == 0
    assert len(client.get("/api/cart", headers=headers).json()["items"]) == 2


def test_checkout_validation(client, make_user):
    _, headers = make_user("customer")
    assert client.post("/api/cart/checkout", json=CUSTOMER_FORM, headers=headers).status_code == 400

    for field, value in [("pincode", "12345"), ("phone", "98765"), ("address", "short"),
                         ("city", "P"), ("payment_method", "bitcoin")]:
        resp = client.post("/api/cart/checkout", json={**CUSTOMER_FORM, field: value}, headers=headers)
        assert resp.status_code == 422, field


def test_retailer_checkout_restocks_with_markup(client, db, make_user, make_product, make_category):
    retailer, headers = make_user("retailer")
    wholesaler, _ = make_user("wholesaler")
    grains = make_category("Grains")
    rice = make_product(wholesaler, name="Basmati Rice", price=1500, stock=50, mrp=1500,
                        category=grains, is_local=True, image_url="http://img/rice.png")
    existing = make_product(retailer, name="Toor Dal", price=200, stock=4)
    dal = make_product(wholesaler, name="Toor Dal", price=900, stock=100)

    client.post("/api/cart", json={"product_id": rice.id}, headers=headers)
    client.post("/api/cart", json={"product_id": dal.id}, headers=headers)

    resp = client.post("/api/cart/retailer-checkout", json=RETAILER_FORM, headers=headers)
    assert resp.status_code == 201
    order = resp.json()[0]
    assert order["seller_id"] == wholesaler.id
    assert order["payment_status"] == "paid"
    assert order["total_amount"] == 1500 * 10 + 900 * 20

    db.expire_all()
    assert db.get(models.Product, rice.id).stock_quantity == 40
    assert db.get(models.Product, dal.id).stock_quantity == 80

    mine = db.query(models.Product).filter_by(seller_id=retailer.id, name="Basmati Rice").one()
    assert mine.price == 1800.0
    assert mine.purchase_price == 1500
    assert mine.stock_quantity == 10
    assert mine.mrp == 1500
    assert mine.category_id == grains.id
    assert mine.is_local is True
    assert mine.image_url == "http://img/rice.png"

    assert db.get(models.Product, existing.id).stock_quantity == 24
    assert db.get(models.Product, existing.id).price == 200


def test_buy_from_wholesaler(client, db, make_user, make_product, make_category):
    retailer, headers = make_user("retailer")
    wholesaler, _ = make_user("wholesaler")
    oil = make_category("Oil")
    product = make_product(wholesaler, name="Mustard Oil", price=100, stock=30, category=oil)

    resp = client.post("/api/seller/wholesale/buy", json={"product_id": product.id, "quantity": 10}, headers=headers)
    assert resp.status_code == 201
    body = resp.json()
    assert body["order"]["status"] == "completed"
    assert body["order"]["payment_method"] == "cod"
    assert body["order"]["payment_status"] == "paid"
    assert body["order"]["delivery_address"] == "Retailer warehouse"
    assert body["order"]["total_amount"] == 1000.0
    assert body["product"]["price"] == 130.0
    assert body["product"]["stock_quantity"] == 10

    resp = client.post("/api/seller/wholesale/buy", json={"product_id": product.id, "quantity": 5}, headers=headers)
    assert resp.json()["product"]["id"] == body["product"]["id"]
    assert resp.json()["product"]["stock_quantity"] == 15

    db.expire_all()
    assert db.get(models.Product, product.id).stock_quantity == 15

    too_many = client.post("/api/seller/wholesale/buy", json={"product_id": product.id, "quantity": 16}, headers=headers)
    assert too_many.status_code == 400
    zero = client.post("/api/seller/wholesale/buy", json={"product_id": product.id, "quantity": 0}, headers=headers)
    assert zero.status_code == 400


def test_buy_from_wholesaler_rejects_retail_products(client, make_user, make_product):
    _, headers = make_user("retailer")
    other_retailer, _ = make_user("retailer")
    product = make_product(other_retailer)
    resp = client.post("/api/seller/wholesale/buy", json={"product_id": product.id, "quantity": 1}, headers=headers)
    assert resp.status_code == 404
