"""Shared test fixtures — blog schemas, nested sample data, a fresh store."""

from __future__ import annotations

import copy
from typing import Any

import pytest

from graphnorm.domain.models import EntitySchema
from graphnorm.services.schema import create_schema, has_many, has_one
from graphnorm.services.store import EntityStore


SAMPLE_BLOG_DATA: list[dict[str, Any]] = [
    {
        "id": "post1",
        "author": {"username": "user1", "name": "User 1"},
        "body": "This is the first post content.",
        "comments": [
            {
                "id": "comment1",
                "author": {"username": "user2", "name": "User 2"},
                "comment": "Great post!",
            },
            {
                "id": "comment2",
                "author": {"username": "user3", "name": "User 3"},
                "comment": "I learned a lot from this.",
            },
        ],
    },
    {
        "id": "post2",
        "author": {"username": "user2", "name": "User 2"},
        "body": "This is the second post content.",
        "comments": [
            {
                "id": "comment3",
                "author": {"username": "user3", "name": "User 3"},
                "comment": "Interesting perspective!",
            },
            {
                "id": "comment4",
                "author": {"username": "user1", "name": "User 1"},
                "comment": "I disagree with some points.",
            },
            {
                "id": "comment5",
                "author": {"username": "user3", "name": "User 3"},
                "comment": "Could you elaborate more?",
            },
        ],
    },
]


def make_blog_schemas() -> dict[str, EntitySchema]:
    return {
        "users": create_schema("username"),
        "comments": create_schema("id", {"author": has_one("users")}),
        "posts": create_schema(
            "id",
            {"author": has_one("users"), "comments": has_many("comments")},
        ),
    }


# ── Fixtures ──


@pytest.fixture
def blog_schemas():
    return make_blog_schemas()


@pytest.fixture
def blog_data():
    """Deep copy so tests can't leak edits into each other."""
    return copy.deepcopy(SAMPLE_BLOG_DATA)


@pytest.fixture
def store(blog_schemas):
    return EntityStore(blog_schemas)


@pytest.fixture
def loaded_store(store, blog_data):
    store.add_normalized_data(blog_data, "posts")
    return store
