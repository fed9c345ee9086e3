import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from init_db import init_db
from main import app, create_db_engine, get_db


@pytest.fixture
def engine():
    engine = create_db_engine("sqlite://")
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autoflush=False, bind=engine)


@pytest.fixture
def client(session_factory):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture
def quiet_client(client):
    """Client that returns the 500 response instead of re-raising the error."""
    with TestClient(app, raise_server_exceptions=False) as quiet_client:
        yield quiet_client


@pytest.fixture
def api(client):
    """Helpers for the calls most tests repeat."""
    class API:
        def create_post(self, post_str_id, content="hello"):
            return client.post(
                "/posts", json={"post_str_id": post_str_id, "content": content})

        def like(self, post_str_id, user_id_str):
            return client.post(
                f"/posts/{post_str_id}/like", json={"user_id_str": user_id_str})

        def unlike(self, post_str_id, user_id_str):
            return client.request(
                "DELETE", f"/posts/{post_str_id}/like",
                json={"user_id_str": user_id_str})

        def like_count(self, post_str_id):
            r = client.get(f"/posts/{post_str_id}/likes")
            assert r.status_code == 200, r.text
            return r.json()["like_count"]

    return API()
