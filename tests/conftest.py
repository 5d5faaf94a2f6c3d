"""Shared fixtures for the chart data engine tests."""

import pytest
from fastapi.testclient import TestClient

from chart_api.credentials import StaticCredentialProvider
from chart_api.main import create_app
from chart_core.datasets import DatasetStore


@pytest.fixture
def sales_rows():
    return [
        {"region": "east", "sales": 10},
        {"region": "east", "sales": 20},
        {"region": "west", "sales": 5},
    ]


@pytest.fixture
def orders_rows():
    """Dirty, heterogeneous rows the way uploads usually look."""
    return [
        {"month": "Jan", "region": "east", "product": "A", "units": "3", "price": 2.5},
        {"month": "Jan", "region": "west", "product": "B", "units": 7, "price": "n/a"},
        {"month": "Feb", "region": "east", "product": "A", "units": "abc", "price": 4},
        {"month": "Feb", "region": "east", "product": "B", "units": 1.5},
        {"month": "Mar", "product": "A", "units": 4, "price": None},
        {"month": "Mar", "region": "west", "product": "A", "units": " 10 ", "price": 1},
    ]


@pytest.fixture
def store(sales_rows, orders_rows):
    s = DatasetStore()
    s.create("sales", sales_rows)
    s.create("orders", orders_rows)
    s.create("private", [{"k": "x", "v": 1}], owner="alice")
    return s


@pytest.fixture
def client(store):
    return TestClient(create_app(store, StaticCredentialProvider(None)))
