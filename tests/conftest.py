"""
Shared fixtures for django-blog-trust tests.
"""
import pytest

from blog_trust.models import Post, Role
from tests.gateways import FakeGateway
from tests.helpers import make_user


@pytest.fixture(autouse=True)
def fake_gateway():
    """Start every test with no registered transactions or checkouts."""
    FakeGateway.reset()
    yield FakeGateway
    FakeGateway.reset()


@pytest.fixture
def user(db):
    """Create a regular user."""
    return make_user("testuser")


@pytest.fixture
def other_user(db):
    """Create a second regular user."""
    return make_user("other")


@pytest.fixture
def admin_user(db):
    """Create an ADMIN user."""
    return make_user("moderator", role=Role.ADMIN)


@pytest.fixture
def post(db, user):
    """Create a test post owned by `user`."""
    return Post.objects.create(title="Test Post", body="This is a test post body.", author=user)


@pytest.fixture
def readers(db):
    """Five users who can like posts."""
    return [make_user(f"reader{i}") for i in range(5)]
