import json
import uuid
from typing import Iterable, List, Optional

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from recipe_manager.app.db import models  # noqa: F401
from recipe_manager.app.db.base import Base
from recipe_manager.app.schemas.recipe import ImageRead, IngredientRead, RecipeRead


def make_recipe(
    title: str,
    ingredients: Iterable[str] = (),
    tags: Iterable[str] = (),
    images: Optional[List[ImageRead]] = None,
    recipe_id: Optional[uuid.UUID] = None,
) -> RecipeRead:
    return RecipeRead(
        id=recipe_id or uuid.uuid4(),
        title=title,
        ingredients=[IngredientRead(name=name) for name in ingredients],
        tags=list(tags),
        images=images or [],
    )


class FakeResponse:
    def __init__(self, status_code: int, payload):
        self.status_code = status_code
        self.text = payload if isinstance(payload, str) else json.dumps(payload)


def fake_async_client(response=None, exc: Optional[Exception] = None, calls: Optional[list] = None):
    """Build a stand-in for httpx.AsyncClient that answers every POST with `response` or raises `exc`."""

    class FakeAsyncClient:
        def __init__(self, *args, **kwargs):
            self.kwargs = kwargs

        async def __aenter__(self):
            return self

        async def __aexit__(self, exc_type, exc, tb):
            return False

        async def post(self, url, json=None, headers=None, **kwargs):
            if calls is not None:
                calls.append({"url": url, "json": json, "headers": headers})
            if exc is not None:
                raise exc
            return response

    return FakeAsyncClient


@pytest.fixture
def recipe_factory():
    return make_recipe


@pytest.fixture
def provider_client():
    """Factory for fake httpx.AsyncClient classes answering with (status_code, payload) or raising `exc`."""

    def _build(status_code: int = 200, payload=None, exc: Optional[Exception] = None, calls: Optional[list] = None):
        response = FakeResponse(status_code, payload if payload is not None else {})
        return fake_async_client(response=response, exc=exc, calls=calls)

    return _build


@pytest.fixture
def engine():
    engine = create_engine("sqlite+pysqlite:///:memory:", connect_args={"check_same_thread": False})
    Base.metadata.create_all(bind=engine)
    return engine


@pytest.fixture
def session_factory(engine):
    connection = engine.connect()
    transaction = connection.begin()
    factory = sessionmaker(bind=connection, autoflush=False)
    try:
        yield factory
    finally:
        transaction.rollback()
        connection.close()


@pytest.fixture
def db_session(session_factory):
    db = session_factory()
    try:
        yield db
    finally:
        db.close()
