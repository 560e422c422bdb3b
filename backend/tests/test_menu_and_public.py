from decimal import Decimal


def test_create_menu_item_with_category(client, make_user, login_as, seed_menu):
    login_as(make_user(role="manager"))

    r = client.post("/api/menu-items", json={
        "name": "Garlic Bread",
        "price": "5.99",
        "category_id": seed_menu["mains"],
        "preparation_time": 5,
    })
    assert r.status_code == 201
    item = r.json()["menu_item"]
    assert Decimal(item["price"]) == Decimal("5.99")
    assert item["category_name"] == "Main Course"
    assert item["available"] is True


def test_menu_item_validation(client, make_user, login_as, seed_menu):
    login_as(make_user(role="manager"))

    r = client.post("/api/menu-items", json={"name": "Free Lunch", "price": "-1"})
    assert r.status_code == 400
    assert r.json()["message"].startswith("price")

    r = client.post("/api/menu-items", json={"name": "Orphan", "price": "1.00", "category_id": 999})
    assert r.status_code == 400
    assert r.json()["message"] == "Category not found"


def test_list_update_and_delete_menu_item(client, make_user, login_as, seed_menu):
    login_as(make_user(role="manager"))

    names = [i["name"] for i in client.get("/api/menu-items").json()["menu_items"]]
    assert names == ["Iced Tea", "Soup of the Day", "Spaghetti Bolognese"]

    r = client.put(f"/api/menu-items/{seed_menu['tea']}", json={
        "name": "Iced Tea", "price": "3.49", "category_id": seed_menu["drinks"], "available": False,
    })
    assert r.status_code == 200
    assert Decimal(r.json()["menu_item"]["price"]) == Decimal("3.49")
    assert r.json()["menu_item"]["available"] is False

    r = client.delete(f"/api/menu-items/{seed_menu['tea']}")
    assert r.json()["message"] == "Menu item deleted successfully"
    assert client.get(f"/api/menu-items/{seed_menu['tea']}").status_code == 404


def test_server_cannot_edit_menu(client, make_user, login_as, seed_menu):
    login_as(make_user(role="server"))
    assert client.get(f"/api/menu-items/{seed_menu['pasta']}").status_code == 200
    assert client.delete(f"/api/menu-items/{seed_menu['pasta']}").status_code == 403


def test_public_menu_without_login(client, seed_menu):
    r = client.get("/api/public/menu")
    assert r.status_code == 200
    menu = r.json()["menu"]

    # the empty category is left out, the unavailable soup is hidden
    assert [c["name"] for c in menu] == ["Main Course", "Beverages"]
    assert [i["name"] for i in menu[0]["menu_items"]] == ["Spaghetti Bolognese"]
    assert [i["name"] for i in menu[1]["menu_items"]] == ["Iced Tea"]


def test_public_menu_drops_category_when_its_items_go(client, make_user, login_as, seed_menu):
    login_as(make_user(role="manager"))
    client.delete(f"/api/menu-items/{seed_menu['tea']}")
    client.cookies.clear()

    names = [c["name"] for c in client.get("/api/public/menu").json()["menu"]]
    assert names == ["Main Course"]
