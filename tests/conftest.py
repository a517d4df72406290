import pytest
from django.contrib.auth import get_user_model


@pytest.fixture
def user(db):
    return get_user_model().objects.create_user(username="alice", password="pw-alice")


@pytest.fixture
def other_user(db):
    return get_user_model().objects.create_user(username="bob", password="pw-bob")


@pytest.fixture
def api(client, user):
    """Django test client logged in as `user`."""
    client.force_login(user)
    return client
