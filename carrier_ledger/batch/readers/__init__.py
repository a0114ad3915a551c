"""
File readers producing ordered raw rows for ingestion.
"""

from carrier_ledger.batch.readers.csv_reader import CSVReader
from carrier_ledger.batch.readers.file_reader import FileReader, RawFile

__all__ = ["CSVReader", "FileReader", "RawFile"]
