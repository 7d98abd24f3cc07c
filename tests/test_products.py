from bson import ObjectId
import pytest

from schemas import DEFAULT_CATEGORY


def test_create_and_list_roundtrip(client, make_product):
    r = make_product()
    assert r.status_code == 201
    created = r.json()
    assert created["createdAt"] and created["updatedAt"]

    listed = client.get("/api/products").json()
    assert len(listed) == 1
    item = listed[0]
    assert item["id"] == created["id"]
    assert {k: item[k] for k in ("name", "price", "imageUrl", "stock", "description", "category")} == {
        "name": "Ring",
        "price": 10,
        "imageUrl": "x.jpg",
        "stock": 5,
        "description": "",
        "category": DEFAULT_CATEGORY,
    }


def test_create_trims_text(make_product):
    body = make_product(name="  Opal Ring ", description=" shiny ", category=" Rings ").json()
    assert (body["name"], body["description"], body["category"]) == ("Opal Ring", "shiny", "Rings")


@pytest.mark.parametrize("override", [
    {"price": -1},
    {"stock": -3},
    {"price": None},
    {"imageUrl": None},
    {"name": "   "},
])
def test_create_validation(client, db, override):
    body = {"name": "Ring", "price": 10, "imageUrl": "x.jpg"}
    body.update(override)
    body = {k: v for k, v in body.items() if v is not None}
    r = client.post("/api/products", json=body)
    assert r.status_code == 400
    assert r.json()["message"] == "Validation failed"
    assert db["product"].count_documents({}) == 0


def test_listing_hides_out_of_stock(client, make_product):
    visible = make_product(name="Pendant").json()["id"]
    hidden = make_product(name="Brooch", stock=0).json()["id"]
    default_stock = make_product(name="Bangle", stock=None).json()
    assert default_stock["stock"] == 0

    ids = [p["id"] for p in client.get("/api/products").json()]
    assert ids == [visible]

    client.put(f"/api/products/{visible}", json={"stock": 0})
    client.put(f"/api/products/{hidden}", json={"stock": 2})
    ids = [p["id"] for p in client.get("/api/products").json()]
    assert ids == [hidden]

    # still retrievable directly
    assert client.get(f"/api/products/{visible}").status_code == 200


def test_update_product(client, make_product):
    created = make_product().json()
    r = client.put(f"/api/products/{created['id']}", json={"price": 12.5, "category": " Rings "})
    assert r.status_code == 200
    body = r.json()
    assert body["price"] == 12.5
    assert body["category"] == "Rings"
    assert body["name"] == "Ring"


def test_update_product_empty_patch(client, make_product):
    pid = make_product().json()["id"]
    r = client.put(f"/api/products/{pid}", json={})
    assert r.status_code == 200
    assert r.json()["name"] == "Ring"


@pytest.mark.parametrize("body", [{"price": -5}, {"stock": -1}, {"owner": "mallory"}])
def test_update_product_rejects_bad_patch(client, db, make_product, body):
    pid = make_product().json()["id"]
    assert client.put(f"/api/products/{pid}", json=body).status_code == 400
    stored = db["product"].find_one({"_id": ObjectId(pid)})
    assert "owner" not in stored
    assert stored["price"] == 10 and stored["stock"] == 5


def test_unknown_and_malformed_product(client):
    missing = str(ObjectId())
    assert client.get(f"/api/products/{missing}").status_code == 404
    assert client.put(f"/api/products/{missing}", json={"stock": 1}).status_code == 404
    r = client.delete(f"/api/products/{missing}")
    assert r.status_code == 404
    assert r.json() == {"message": "Product not found."}

    r = client.put("/api/products/zzz", json={"stock": 1})
    assert r.status_code == 400
    assert r.json() == {"message": "Invalid Product ID format."}
    assert client.delete("/api/products/zzz").status_code == 400


def test_delete_product(client, make_product):
    pid = make_product().json()["id"]
    r = client.delete(f"/api/products/{pid}")
    assert r.status_code == 200
    assert r.json() == {"message": "Product deleted successfully", "id": pid}
    assert client.get(f"/api/products/{pid}").status_code == 404
    assert client.get("/api/products").json() == []


@pytest.mark.parametrize("kwargs", [{}, {"json": {"price": -1}}, {"json": {"owner": "mallory"}}])
def test_malformed_product_id_checked_before_body(client, kwargs):
    r = client.put("/api/products/zzz", **kwargs)
    assert r.status_code == 400
    assert r.json() == {"message": "Invalid Product ID format."}
