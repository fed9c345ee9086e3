import pytest

from main import parse_limit


@pytest.fixture
def ranked_posts(api):
    """Posts A, B, C with 3, 1 and 0 likes."""
    for post_str_id in ("C", "B", "A"):
        api.create_post(post_str_id)
    for user in ("u1", "u2", "u3"):
        api.like("A", user)
    api.like("B", "u1")


def test_top_posts_with_limit(client, ranked_posts):
    r = client.get("/posts/top", params={"limit": 2})

    assert r.status_code == 200
    assert r.json() == [
        {"post_str_id": "A", "like_count": 3},
        {"post_str_id": "B", "like_count": 1},
    ]


def test_top_posts_include_posts_without_likes(client, ranked_posts):
    r = client.get("/posts/top")

    assert [p["post_str_id"] for p in r.json()] == ["A", "B", "C"]
    assert r.json()[-1]["like_count"] == 0


def test_top_posts_default_limit(client, api):
    for i in range(7):
        api.create_post(f"p{i}")

    r = client.get("/posts/top")

    assert r.status_code == 200
    assert len(r.json()) == 5


@pytest.mark.parametrize("limit", ["abc", "0", "-3", "", "  ", "x2", ".5"])
def test_top_posts_unusable_limit_falls_back(client, api, limit):
    for i in range(7):
        api.create_post(f"p{i}")

    r = client.get("/posts/top", params={"limit": limit})

    assert r.status_code == 200
    assert len(r.json()) == 5


def test_top_posts_ties_follow_creation_order(client, api):
    for post_str_id in ("x", "y", "z"):
        api.create_post(post_str_id)
    api.like("z", "u1")
    api.like("y", "u1")

    r = client.get("/posts/top", params={"limit": 3})

    assert [p["post_str_id"] for p in r.json()] == ["y", "z", "x"]


def test_top_posts_empty_store(client):
    r = client.get("/posts/top")

    assert r.status_code == 200
    assert r.json() == []


@pytest.mark.parametrize("limit", ["2.5", "2abc", " 2x", "+2", "02"])
def test_top_posts_limit_reads_leading_integer(client, api, limit):
    for i in range(4):
        api.create_post(f"p{i}")

    r = client.get("/posts/top", params={"limit": limit})

    assert r.status_code == 200
    assert len(r.json()) == 2


def test_top_posts_oversized_limit(client, api):
    api.create_post("p1")

    r = client.get("/posts/top", params={"limit": "99999999999999999999"})

    assert r.status_code == 200
    assert r.json() == [{"post_str_id": "p1", "like_count": 0}]


@pytest.mark.parametrize("raw, expected", [
    (None, 5),
    ("7", 7),
    ("3.9", 3),
    ("-1", 5),
    ("99999999999999999999", 2 ** 63 - 1),
])
def test_parse_limit(raw, expected):
    assert parse_limit(raw) == expected
