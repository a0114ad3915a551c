"""
carrier-ledger: staged ingestion and approval of telecom carrier billing
and inventory exports.
"""

__version__ = "0.1.0"
