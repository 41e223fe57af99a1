"""Shared fixtures: in-memory SQLite database and a fake functions backend."""
from __future__ import annotations

import json
import os

os.environ.setdefault("DB_URL", "sqlite+aiosqlite://")
os.environ.setdefault("FUNCTIONS_BASE_URL", "http://functions.test/functions/v1")

import httpx
import pytest
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from ai.functions import FunctionsClient, get_functions_client
from matchwise import models
from matchwise.api import app
from matchwise.db import get_session

SAMPLE_ANALYSIS = {
    "personalInfo": {
        "name": "Anna Berg",
        "email": "anna.berg@example.com",
        "phone": "+46 70 123 45 67",
        "location": "Stockholm",
    },
    "experience": {"years": "8 years", "currentRole": "Senior Developer"},
    "skills": {
        "technical": ["React", "Node.js", "Not specified"],
        "languages": ["TypeScript", "react"],
        "tools": ["Docker"],
    },
    "workHistory": [{"role": "Senior Developer"}, {"role": "Developer"}],
    "softSkills": {"values": ["Transparency"], "communicationStyle": "Direct"},
}


class FakeFunctions:
    """Records calls to the hosted functions and replies with canned bodies."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, dict | None]] = []
        self.responses: dict[str, tuple[int, object]] = {}

    def respond(self, name: str, body: object, status_code: int = 200) -> None:
        self.responses[name] = (status_code, body)

    def handler(self, request: httpx.Request) -> httpx.Response:
        name = request.url.path.rsplit("/", 1)[-1]
        payload = None
        if request.headers.get("content-type", "").startswith("application/json"):
            payload = json.loads(request.content)
        self.calls.append((name, payload))

        status_code, body = self.responses.get(name, (200, {"success": True}))
        if isinstance(body, Exception):
            raise body
        return httpx.Response(status_code, json=body)

    def names(self) -> list[str]:
        return [name for name, _ in self.calls]

    def client(self) -> FunctionsClient:
        return FunctionsClient(
            "http://functions.test/functions/v1",
            api_key="test-key",
            retry_attempts=1,
            transport=httpx.MockTransport(self.handler),
        )


@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(models.Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_maker(engine):
    return async_sessionmaker(bind=engine, expire_on_commit=False)


@pytest.fixture
async def session(session_maker):
    async with session_maker() as session:
        yield session


@pytest.fixture
def fake_functions() -> FakeFunctions:
    return FakeFunctions()


@pytest.fixture
async def functions(fake_functions):
    async with fake_functions.client() as client:
        yield client


@pytest.fixture
async def client(session_maker, fake_functions):
    async def override_session():
        async with session_maker() as session:
            yield session

    async def override_functions():
        async with fake_functions.client() as functions_client:
            yield functions_client

    app.dependency_overrides[get_session] = override_session
    app.dependency_overrides[get_functions_client] = override_functions
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as http:
        yield http
    app.dependency_overrides.clear()


async def add_consultant(session, **overrides) -> models.Consultant:
    data = {
        "name": "Erik Lund",
        "email": "erik@example.com",
        "location": "Stockholm",
        "skills": ["React", "TypeScript"],
        "experience": "5 years",
        "availability": "Available",
        "is_published": True,
    }
    data.update(overrides)
    consultant = models.Consultant(**data)
    session.add(consultant)
    await session.commit()
    await session.refresh(consultant)
    return consultant


async def add_assignment(session, **overrides) -> models.Assignment:
    data = {
        "title": "Frontend Developer",
        "description": "Build the customer portal",
        "company": "Acme AB",
        "required_skills": ["React", "TypeScript"],
        "location": "Stockholm",
        "remote_type": "On-site",
    }
    data.update(overrides)
    assignment = models.Assignment(**data)
    session.add(assignment)
    await session.commit()
    await session.refresh(assignment)
    return assignment
