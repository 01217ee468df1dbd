"""Stub catalog - loads stub_products.yaml and provides product lookup."""

import os
from pathlib import Path
from typing import Dict, List, Optional

import yaml
from pydantic import ValidationError

from iap_client.errors import ConfigurationError
from iap_client.models import StubCatalogConfig, StubProductDefinition


class StubProductNotFoundError(Exception):
    """Raised when a product is not in the stub catalog."""

    pass


class StubCatalog:
    """Stub product catalog loaded from YAML.

    Loads product definitions and provides lookup by guid.
    """

    def __init__(self, config_path: Optional[str] = None):
        """Initialize catalog loader.

        Args:
            config_path: Path to stub_products.yaml. If not provided, uses the
                STUB_CATALOG_PATH env var or defaults to ./config/stub_products.yaml
        """
        self._config_path = self._resolve_config_path(config_path)
        self._config: Optional[StubCatalogConfig] = None
        self._products_by_id: Dict[str, StubProductDefinition] = {}
        self._load_config()

    def _resolve_config_path(self, config_path: Optional[str]) -> Path:
        """Resolve catalog file path from argument, env var, or default."""
        if config_path:
            return Path(config_path)

        env_path = os.getenv("STUB_CATALOG_PATH")
        if env_path:
            return Path(env_path)

        return Path("config/stub_products.yaml")

    def _load_config(self) -> None:
        """Load and validate the catalog file."""
        if not self._config_path.exists():
            raise ConfigurationError(
                f"Stub catalog not found: {self._config_path}\n"
                f"Please create config/stub_products.yaml or set STUB_CATALOG_PATH environment variable"
            )

        try:
            with open(self._config_path, encoding="utf-8") as f:
                raw_config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Failed to parse YAML catalog: {e}")

        if not raw_config:
            raise ConfigurationError(f"Stub catalog is empty: {self._config_path}")

        try:
            self._config = StubCatalogConfig(**raw_config)
        except ValidationError as e:
            raise ConfigurationError(f"Stub catalog validation failed:\n{e}")

        self._products_by_id = {product.guid: product for product in self._config.products}

    @property
    def config(self) -> StubCatalogConfig:
        """Get validated catalog configuration."""
        if self._config is None:
            raise ConfigurationError("Stub catalog not loaded")
        return self._config

    @property
    def config_path(self) -> Path:
        return self._config_path

    @property
    def app_origin(self) -> str:
        return self.config.app_origin

    def get_by_id(self, product_id: str) -> StubProductDefinition:
        """Get product by guid.

        Raises:
            StubProductNotFoundError: If product_id is not in the catalog
        """
        product = self._products_by_id.get(product_id)
        if product is None:
            raise StubProductNotFoundError(
                f"Product not found: {product_id}. "
                f"Available products: {list(self._products_by_id.keys())}"
            )
        return product

    def find_by_id(self, product_id: str) -> Optional[StubProductDefinition]:
        """Find product by guid (returns None if not found)."""
        return self._products_by_id.get(product_id)

    def get_all(self) -> List[StubProductDefinition]:
        return list(self._products_by_id.values())

    def reload(self) -> None:
        """Reload catalog from disk."""
        self._load_config()
