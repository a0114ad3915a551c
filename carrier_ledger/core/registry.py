"""
Provider registry: case-insensitive lookup from provider name to the
component (processor or approval strategy) serving that provider.
"""

from types import MappingProxyType
from typing import Any, Iterable

from carrier_ledger.core.carriers import provider_key
from carrier_ledger.core.exceptions import UnsupportedProviderError


class ProviderRegistry:
    """
    Read-only map of provider name -> component, built once.

    Components must expose ``provider_name()``.
    """

    def __init__(self, kind: str, components: Iterable[Any]):
        """
        Args:
            kind: What the registry holds, used in error messages
            components: One component per supported provider

        Raises:
            ValueError: If two components claim the same provider
        """
        self.kind = kind
        entries: dict[str, Any] = {}
        for component in components:
            key = provider_key(component.provider_name())
            if key in entries:
                raise ValueError(f"Duplicate {kind} for provider '{component.provider_name()}'")
            entries[key] = component
        self._entries = MappingProxyType(entries)

    def resolve(self, provider_name: str | None):
        """
        Find the component for a provider, ignoring case and surrounding whitespace.

        Raises:
            UnsupportedProviderError: If the name is null, blank or not registered
        """
        if provider_name is None or not provider_name.strip():
            raise UnsupportedProviderError(provider_name, self.kind)
        component = self._entries.get(provider_key(provider_name))
        if component is None:
            raise UnsupportedProviderError(provider_name, self.kind)
        return component

    def providers(self) -> list[str]:
        return [c.provider_name() for c in self._entries.values()]

    def __contains__(self, provider_name: object) -> bool:
        return isinstance(provider_name, str) and provider_key(provider_name) in self._entries

    def __len__(self) -> int:
        return len(self._entries)
