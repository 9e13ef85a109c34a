async def _review(client, headers, **body):
    return await client.post("/api/reviews", headers=headers, json=body)


async def test_create_review(client, customer, customer_headers, restaurant):
    response = await _review(client, customer_headers, restaurant_id=restaurant.id, rating=5, comment="Great broth")

    assert response.status_code == 201
    review = response.json()["data"]["review"]
    assert review["rating"] == 5
    assert review["user_name"] == customer.full_name
    assert review["restaurant_name"] == "Pho Corner"


async def test_create_review_requires_target(client, customer_headers):
    response = await _review(client, customer_headers, rating=5)

    assert response.status_code == 400
    assert response.json()["message"] == "restaurant_id or menu_item_id is required"


async def test_create_review_rating_range(client, customer_headers, restaurant):
    response = await _review(client, customer_headers, restaurant_id=restaurant.id, rating=6)

    assert response.status_code == 400
    assert response.json()["errors"][0]["field"] == "rating"


async def test_duplicate_review(client, customer_headers, restaurant):
    await _review(client, customer_headers, restaurant_id=restaurant.id, rating=5)
    response = await _review(client, customer_headers, restaurant_id=restaurant.id, rating=3)

    assert response.status_code == 409
    assert response.json()["message"] == "You have already reviewed this item"


async def test_review_unknown_restaurant(client, customer_headers):
    response = await _review(client, customer_headers, restaurant_id=999, rating=5)

    assert response.status_code == 404


async def test_restaurant_reviews_are_public(client, customer_headers, other_headers, restaurant):
    await _review(client, customer_headers, restaurant_id=restaurant.id, rating=5)
    await _review(client, other_headers, restaurant_id=restaurant.id, rating=2)

    response = await client.get(f"/api/reviews/restaurant/{restaurant.id}")
    filtered = await client.get(f"/api/reviews/restaurant/{restaurant.id}", params={"rating": 2})

    assert response.status_code == 200
    data = response.json()["data"]
    assert len(data["reviews"]) == 2
    assert data["rating_stats"]["average_rating"] == 3.5
    assert data["rating_stats"]["review_count"] == 2
    assert [r["rating"] for r in filtered.json()["data"]["reviews"]] == [2]


async def test_restaurant_stats_without_reviews(client, restaurant):
    response = await client.get(f"/api/reviews/restaurant/{restaurant.id}/stats")

    assert response.status_code == 200
    assert response.json()["data"]["stats"] == {
        "average_rating": 0,
        "review_count": 0,
        "rating_distribution": {
            "five_star": 0,
            "four_star": 0,
            "three_star": 0,
            "two_star": 0,
            "one_star": 0,
        },
    }


async def test_stats_unknown_restaurant(client):
    response = await client.get("/api/reviews/restaurant/999/stats")

    assert response.status_code == 404


async def test_menu_item_reviews(client, customer_headers, restaurant, menu_items):
    await _review(client, customer_headers, restaurant_id=restaurant.id, menu_item_id=menu_items[0].id, rating=4)

    response = await client.get(f"/api/reviews/menu-item/{menu_items[0].id}")

    data = response.json()["data"]
    assert data["reviews"][0]["menu_item_name"] == "Beef Pho"
    assert data["rating_stats"] == {"average_rating": 4.0, "review_count": 1}


async def test_my_reviews(client, customer_headers, other_headers, restaurant):
    await _review(client, customer_headers, restaurant_id=restaurant.id, rating=5)
    await _review(client, other_headers, restaurant_id=restaurant.id, rating=1)

    response = await client.get("/api/reviews/my-reviews", headers=customer_headers)

    assert [r["rating"] for r in response.json()["data"]["reviews"]] == [5]


async def test_update_review(client, customer_headers, restaurant):
    created = await _review(client, customer_headers, restaurant_id=restaurant.id, rating=2)
    review_id = created.json()["data"]["review"]["id"]

    response = await client.put(f"/api/reviews/{review_id}", headers=customer_headers,
                                json={"rating": 4, "comment": "Better the second time"})

    assert response.status_code == 200
    review = response.json()["data"]["review"]
    assert review["rating"] == 4
    assert review["comment"] == "Better the second time"


async def test_update_review_empty_body(client, customer_headers, restaurant):
    created = await _review(client, customer_headers, restaurant_id=restaurant.id, rating=2)
    review_id = created.json()["data"]["review"]["id"]

    response = await client.put(f"/api/reviews/{review_id}", headers=customer_headers, json={})

    assert response.status_code == 400
    assert response.json()["message"] == "No fields to update"


async def test_update_review_of_other_user(client, customer_headers, other_headers, restaurant):
    created = await _review(client, customer_headers, restaurant_id=restaurant.id, rating=2)
    review_id = created.json()["data"]["review"]["id"]

    response = await client.put(f"/api/reviews/{review_id}", headers=other_headers, json={"rating": 5})

    assert response.status_code == 404
    assert response.json()["message"] == "Review not found or unauthorized"


async def test_delete_review(client, customer_headers, restaurant):
    created = await _review(client, customer_headers, restaurant_id=restaurant.id, rating=2)
    review_id = created.json()["data"]["review"]["id"]

    response = await client.delete(f"/api/reviews/{review_id}", headers=customer_headers)

    assert response.status_code == 200
    stats = await client.get(f"/api/reviews/restaurant/{restaurant.id}/stats")
    assert stats.json()["data"]["stats"]["review_count"] == 0
