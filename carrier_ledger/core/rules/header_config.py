"""
Expected-header configuration per provider.

Loads the raw column headers each provider's export must carry from a YAML
file and checks uploaded files against them before ingestion.
"""

from pathlib import Path
from typing import Any, Iterable

import yaml

from carrier_ledger.core.carriers import Domain, provider_key
from carrier_ledger.core.exceptions import MissingHeadersError, UnsupportedProviderError

DEFAULT_CONFIG_PATH = Path(__file__).resolve().parents[2] / "config" / "provider_headers.yaml"


def _header_token(header: str) -> str:
    return header.replace("\ufeff", "").strip().lower()


class ProviderHeaderConfig:
    """
    Expected headers loaded from YAML.

    Expected YAML format:
    ```yaml
    providers:
      AT&T Mobility:
        invoice:
          - Account Number
          - Invoice Date
        inventory:
          - Billing Account Number
    ```
    """

    def __init__(self, config_path: str | Path = DEFAULT_CONFIG_PATH):
        """
        Args:
            config_path: Path to the YAML configuration file

        Raises:
            FileNotFoundError: If the file does not exist
            ValueError: If the file has no 'providers' section
        """
        self.config_path = Path(config_path)
        if not self.config_path.exists():
            raise FileNotFoundError(f"Provider header configuration not found: {config_path}")

        with open(self.config_path) as f:
            config = yaml.safe_load(f)

        if not config or "providers" not in config:
            raise ValueError("Configuration file must contain 'providers' section")

        self._headers: dict[str, dict[str, list[str]]] = {}
        for provider, domains in config["providers"].items():
            if not isinstance(domains, dict):
                raise ValueError(f"Headers for provider '{provider}' must be a mapping")
            self._headers[provider_key(provider)] = {
                domain: list(headers or []) for domain, headers in domains.items()
            }

    def expected_headers(self, provider_name: str, domain: Domain) -> list[str]:
        """
        Raises:
            UnsupportedProviderError: If the provider is not configured
        """
        if provider_name is None or not provider_name.strip():
            raise UnsupportedProviderError(provider_name, "header configuration")
        domains = self._headers.get(provider_key(provider_name))
        if domains is None:
            raise UnsupportedProviderError(provider_name, "header configuration")
        return domains.get(domain.value, [])

    def validate_headers(self, provider_name: str, domain: Domain, headers: Iterable[Any]) -> None:
        """
        Check that every expected header is present (trimmed, case-insensitive).

        Raises:
            MissingHeadersError: Listing every missing header
        """
        present = {_header_token(h) for h in headers if isinstance(h, str)}
        missing = [
            h for h in self.expected_headers(provider_name, domain)
            if _header_token(h) not in present
        ]
        if missing:
            raise MissingHeadersError(provider_name, missing)
