import logging
import uuid

import pytest

from helphub.app import create_app
from helphub.config import Config
from helphub.errors import NO_RECORD_FOUND
from helphub.logger import Logger
from helphub.models import User
from helphub.storage import UserStorage


class MemoryStorage(UserStorage):
    def __init__(self):
        self.users = {}

    def create(self, ctx, param):
        user = User(
            id=uuid.uuid4(),
            first_name=param.first_name,
            middle_name=param.middle_name,
            last_name=param.last_name,
            email=param.email,
            status="active",
        )
        self.users[user.id] = user
        return user

    def update(self, ctx, user_id, param):
        user = self.get(ctx, user_id)
        user.first_name = param.first_name
        user.middle_name = param.middle_name
        user.last_name = param.last_name
        return user

    def check_user_exists(self, ctx, param):
        return any(user.email == param.email for user in self.users.values())

    def get_all(self, ctx):
        return list(self.users.values())

    def get(self, ctx, user_id):
        if user_id not in self.users:
            raise NO_RECORD_FOUND.new("user not found")
        return self.users[user_id]

    def delete_user(self, ctx, user_id):
        if self.users.pop(user_id, None) is None:
            raise NO_RECORD_FOUND.new("user not found")


BODY = {
    "first_name": "Ada",
    "middle_name": "B",
    "last_name": "Lovelace",
    "email": "ada@example.com",
}


def make_client(settings=None):
    config = Config(settings or {"server": {"timeout": "5s"}})
    app = create_app(config, MemoryStorage(), Logger(logging.getLogger("test-app")))
    return app.test_client()


@pytest.fixture
def client():
    return make_client()


def test_create_then_fetch(client):
    created = client.post("/v1/users", json=BODY)
    assert created.status_code == 201
    user_id = created.get_json()["data"]["id"]
    fetched = client.get(f"/v1/users/{user_id}")
    assert fetched.get_json()["data"]["email"] == "ada@example.com"


def test_invalid_body_gives_field_errors(client):
    response = client.post("/v1/users", json={**BODY, "email": "not-an-email"})
    assert response.status_code == 400
    error = response.get_json()["error"]
    assert error["message"] == "invalid input"
    assert error["field_error"] == [{"name": "email", "description": "email is not valid"}]


def test_bad_id_is_bad_request(client):
    response = client.get("/v1/users/not-a-uuid")
    assert response.status_code == 400
    assert response.get_json()["error"]["message"] == "invalid user id"


def test_delete_then_missing(client):
    user_id = client.post("/v1/users", json=BODY).get_json()["data"]["id"]
    assert client.delete(f"/v1/users/{user_id}").status_code == 200
    missing = client.get(f"/v1/users/{user_id}")
    assert missing.status_code == 404
    assert missing.get_json()["ok"] is False


def test_duplicate_email_rejected(client):
    client.post("/v1/users", json=BODY)
    response = client.post("/v1/users", json=BODY)
    assert response.status_code == 400
    assert response.get_json()["error"]["message"] == "user with this email already exists"


def test_debug_mode_adds_description():
    client = make_client({"debug": True, "server": {"timeout": "5s"}})
    error = client.get("/v1/users/not-a-uuid").get_json()["error"]
    assert error["description"].startswith("Error: ")
    assert "stack_trace" in error


def test_list_users(client):
    client.post("/v1/users", json=BODY)
    response = client.get("/v1/users")
    assert [user["email"] for user in response.get_json()["data"]] == ["ada@example.com"]