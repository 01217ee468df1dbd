"""Integration fixtures: a stub payment API app built from a test catalog."""

import pytest

from iap_client.stub_api.main import create_app

CATALOG_YAML = """
app_origin: "app://stub-app"
api_version_prefix: "/api/v1"
initial_statuses:
  - "pending"
  - "completed"
products:
  - guid: "some-guid"
    name: "Magic Cheese"
    logo_url: "http://site/cheese.png"
    price_point: "10"
  - guid: "extra-lives"
    name: "Five Extra Lives"
    price_point: "1"
"""


@pytest.fixture
def catalog_path(tmp_path):
    """Write the test catalog and return its path."""
    path = tmp_path / "stub_products.yaml"
    path.write_text(CATALOG_YAML)
    return str(path)


@pytest.fixture
def stub_app(catalog_path, monkeypatch):
    """Stub payment API application."""
    monkeypatch.setenv("LOG_FORMAT", "console")
    return create_app(catalog_path)
