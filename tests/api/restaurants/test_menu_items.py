async def test_list_menu_items_with_filters(client, restaurant, menu_items, foreign_menu_item):
    response = await client.get("/api/menu-items", params={"restaurantId": restaurant.id, "isFeatured": "true"})

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["count"] == 1
    assert data["menu_items"][0]["name"] == "Beef Pho"
    assert data["menu_items"][0]["price"] == 12.99


async def test_list_menu_items_search_and_category(client, menu_items, foreign_menu_item):
    by_category = await client.get("/api/menu-items", params={"category": "Starters"})
    by_query = await client.get("/api/menu-items", params={"q": "banh"})

    assert [i["name"] for i in by_category.json()["data"]["menu_items"]] == ["Spring Rolls"]
    assert [i["id"] for i in by_query.json()["data"]["menu_items"]] == [foreign_menu_item.id]


async def test_list_menu_items_default_page(client, menu_items):
    response = await client.get("/api/menu-items")

    assert response.json()["data"]["pagination"] == {"limit": 50, "offset": 0}


async def test_get_menu_item(client, menu_items):
    response = await client.get(f"/api/menu-items/{menu_items[1].id}")

    assert response.status_code == 200
    assert response.json()["data"]["menu_item"]["slug"] == "spring-rolls"


async def test_get_unknown_menu_item(client):
    response = await client.get("/api/menu-items/4040")

    assert response.status_code == 404
    assert response.json()["message"] == "Menu item not found"


async def test_create_menu_item(client, admin_headers, restaurant):
    response = await client.post("/api/menu-items", headers=admin_headers, json={
        "restaurant_id": restaurant.id,
        "name": "Bun Bo Hue",
        "price": 11.5,
        "discounted_price": 10,
        "image_url": "https://cdn.example.com/bunbo.jpg"
    })

    assert response.status_code == 201
    item = response.json()["data"]["menu_item"]
    assert item["price"] == 11.5
    assert item["discounted_price"] == 10.0
    assert item["preparation_time"] == 15


async def test_create_menu_item_negative_price(client, admin_headers, restaurant):
    response = await client.post("/api/menu-items", headers=admin_headers, json={
        "restaurant_id": restaurant.id,
        "name": "Free Lunch",
        "price": -1
    })

    assert response.status_code == 400


async def test_create_menu_item_requires_admin(client, customer_headers, restaurant):
    response = await client.post("/api/menu-items", headers=customer_headers, json={
        "restaurant_id": restaurant.id,
        "name": "Bun Bo Hue",
        "price": 11.5
    })

    assert response.status_code == 403


async def test_update_menu_item(client, admin_headers, menu_items):
    response = await client.put(f"/api/menu-items/{menu_items[0].id}", headers=admin_headers, json={
        "is_available": False
    })

    assert response.status_code == 200
    assert response.json()["data"]["menu_item"]["is_available"] is False


async def test_delete_menu_item(client, admin_headers, menu_items):
    response = await client.delete(f"/api/menu-items/{menu_items[1].id}", headers=admin_headers)

    assert response.status_code == 200
    assert (await client.get(f"/api/menu-items/{menu_items[1].id}")).status_code == 404
