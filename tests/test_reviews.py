from conftest import auth_header

REVIEW = {"title": "Learned a ton!", "text": "Great instructors", "rating": 8}


def _add(client, bootcamp, user, **overrides):
    return client.post(f"/api/v1/bootcamps/{bootcamp['id']}/reviews",
                       json={**REVIEW, **overrides}, headers=auth_header(user))


def _average_rating(client, bootcamp):
    return client.get(f"/api/v1/bootcamps/{bootcamp['id']}").json()["data"]["average_rating"]


def test_reviews_drive_average_rating(client, make_user, bootcamp):
    assert _add(client, bootcamp, make_user("user"), rating=8).status_code == 201
    assert _average_rating(client, bootcamp) == 8
    _add(client, bootcamp, make_user("user"), rating=10)
    assert _average_rating(client, bootcamp) == 9


def test_one_review_per_user_per_bootcamp(client, make_user, bootcamp):
    user = make_user("user")
    assert _add(client, bootcamp, user).status_code == 201
    second = _add(client, bootcamp, user, title="Again")
    assert second.status_code == 400
    assert second.json() == {"success": False, "error": "Duplicate field value entered"}


def test_publisher_cannot_review(client, publisher, bootcamp):
    assert _add(client, bootcamp, publisher).status_code == 403


def test_rating_bounds(client, make_user, bootcamp):
    assert _add(client, bootcamp, make_user("user"), rating=11).status_code == 400
    assert _add(client, bootcamp, make_user("user"), title="x" * 101).status_code == 400


def test_only_author_or_admin_may_change(client, make_user, bootcamp):
    author = make_user("user")
    review = _add(client, bootcamp, author).json()["data"]

    other = client.put(f"/api/v1/reviews/{review['id']}", json={"rating": 1}, headers=auth_header(make_user("user")))
    assert other.status_code == 403

    own = client.put(f"/api/v1/reviews/{review['id']}", json={"rating": 9}, headers=auth_header(author))
    assert own.json()["data"]["rating"] == 9

    admin = client.delete(f"/api/v1/reviews/{review['id']}", headers=auth_header(make_user("admin")))
    assert admin.status_code == 200


def test_deleting_last_review_resets_average_rating(client, make_user, bootcamp):
    user = make_user("user")
    review = _add(client, bootcamp, user).json()["data"]
    client.delete(f"/api/v1/reviews/{review['id']}", headers=auth_header(user))
    assert _average_rating(client, bootcamp) is None


def test_blank_title_is_rejected(client, make_user, bootcamp):
    author = make_user("user")
    assert _add(client, bootcamp, author, title="   ").status_code == 400

    review = _add(client, bootcamp, author, title="  Solid  ").json()["data"]
    assert review["title"] == "Solid"
    resp = client.put(f"/api/v1/reviews/{review['id']}", json={"title": "   "}, headers=auth_header(author))
    assert resp.status_code == 400


def test_review_missing_bootcamp(client, make_user):
    resp = client.post("/api/v1/bootcamps/5d713995b721c3bb38c1f5d0/reviews",
                       json=REVIEW, headers=auth_header(make_user("user")))
    assert resp.status_code == 404


def test_list_and_get(client, make_user, bootcamp):
    review = _add(client, bootcamp, make_user("user")).json()["data"]

    all_reviews = client.get("/api/v1/reviews", params={"rating[gte]": "5"}).json()
    assert all_reviews["count"] == 1
    assert all_reviews["data"][0]["bootcamp"]["name"] == bootcamp["name"]

    nested = client.get(f"/api/v1/bootcamps/{bootcamp['id']}/reviews").json()
    assert nested["count"] == 1

    single = client.get(f"/api/v1/reviews/{review['id']}").json()
    assert single["data"]["title"] == REVIEW["title"]
