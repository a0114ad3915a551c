"""
Unit tests for processor and approval strategy registries.
"""

import pytest

from carrier_ledger.approval.strategy import build_strategy_registry
from carrier_ledger.batch.processors import (
    ATTInvoiceProcessor,
    VerizonWirelessInventoryProcessor,
    build_processor_registry,
)
from carrier_ledger.core.carriers import Carrier, Domain
from carrier_ledger.core.exceptions import UnsupportedProviderError
from carrier_ledger.core.registry import ProviderRegistry

ALL_CARRIERS = [c.value for c in Carrier]


@pytest.fixture
def invoice_processors(record_repository):
    return build_processor_registry(Domain.INVOICE, record_repository)


@pytest.fixture
def inventory_processors(record_repository):
    return build_processor_registry(Domain.INVENTORY, record_repository)


@pytest.mark.unit
class TestProcessorRegistry:
    def test_one_processor_per_carrier(self, invoice_processors, inventory_processors):
        assert sorted(invoice_processors.providers()) == sorted(ALL_CARRIERS)
        assert sorted(inventory_processors.providers()) == sorted(ALL_CARRIERS)

    @pytest.mark.parametrize("name", ["AT&T Mobility", "at&t mobility", "AT&T MOBILITY", "  At&t Mobility "])
    def test_resolve_ignores_case(self, invoice_processors, name):
        assert isinstance(invoice_processors.resolve(name), ATTInvoiceProcessor)

    def test_domains_not_interchangeable(self, invoice_processors, inventory_processors):
        assert inventory_processors.resolve("verizon wireless").domain == "inventory"
        assert isinstance(inventory_processors.resolve("Verizon Wireless"), VerizonWirelessInventoryProcessor)
        assert invoice_processors.resolve("Verizon Wireless").domain == "invoice"

    @pytest.mark.parametrize("name", ["T-Mobile", "AT&T", "verizon", "FIRSTNET2"])
    def test_unsupported_provider(self, invoice_processors, name):
        with pytest.raises(UnsupportedProviderError) as exc_info:
            invoice_processors.resolve(name)
        assert name in str(exc_info.value)
        assert exc_info.value.provider_name == name

    @pytest.mark.parametrize("name", [None, "", "   "])
    def test_null_or_blank_provider(self, invoice_processors, name):
        with pytest.raises(UnsupportedProviderError) as exc_info:
            invoice_processors.resolve(name)
        assert str(exc_info.value) == "Provider name cannot be null or empty."

    def test_contains_and_len(self, invoice_processors):
        assert "firstnet" in invoice_processors
        assert "sprint" not in invoice_processors
        assert None not in invoice_processors
        assert len(invoice_processors) == 3

    def test_duplicate_provider_rejected(self, record_repository):
        processor = ATTInvoiceProcessor(record_repository(ATTInvoiceProcessor.staged_model))
        with pytest.raises(ValueError):
            ProviderRegistry("invoice processor", [processor, processor])


@pytest.mark.unit
class TestStrategyRegistry:
    def test_one_strategy_per_carrier(self, record_repository, memory_db):
        strategies = build_strategy_registry(Domain.INVOICE, record_repository, memory_db)
        assert sorted(strategies.providers()) == sorted(ALL_CARRIERS)

    def test_strategy_pairs_staged_and_permanent_models(self, record_repository, memory_db):
        strategies = build_strategy_registry(Domain.INVENTORY, record_repository, memory_db)
        strategy = strategies.resolve("FIRSTNET")
        assert strategy.staged_model.table_name == "temp_firstnet_inventory"
        assert strategy.permanent_model.table_name == "firstnet_inventory"

    def test_unsupported_strategy_names_kind(self, record_repository, memory_db):
        strategies = build_strategy_registry(Domain.INVOICE, record_repository, memory_db)
        with pytest.raises(UnsupportedProviderError) as exc_info:
            strategies.resolve("Sprint")
        assert "approval strategy" in str(exc_info.value)
