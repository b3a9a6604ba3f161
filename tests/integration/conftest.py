import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from rsvp.api.server import create_app
from rsvp.config.settings import Settings


@pytest.fixture()
def app(settings: Settings) -> FastAPI:
    return create_app(settings)


@pytest.fixture()
def client(app: FastAPI) -> TestClient:
    return TestClient(app)
