"""
Generic file reader for carrier uploads (CSV, JSON).
"""

import os
from dataclasses import dataclass, field

from pyspark.sql import SparkSession

from carrier_ledger.batch.readers.csv_reader import CSVReader, dataframe_rows


@dataclass
class RawFile:
    """An uploaded file as ordered raw rows."""

    filename: str
    file_type: str
    file_size: int
    headers: list[str] = field(default_factory=list)
    rows: list[dict[str, str | None]] = field(default_factory=list)


class FileReader:
    """
    Reads an upload into a RawFile.
    """

    def __init__(self, spark: SparkSession):
        self.spark = spark
        self.csv_reader = CSVReader(spark)

    def read(self, file_path: str, file_format: str = "csv", **options) -> RawFile:
        """
        Args:
            file_path: Path to file
            file_format: csv or json
            **options: Passed to the CSV reader

        Returns:
            RawFile with rows in file order

        Raises:
            FileNotFoundError: If the file does not exist
            ValueError: If the format is unsupported
        """
        if not os.path.exists(file_path):
            raise FileNotFoundError(f"Input file not found: {file_path}")

        file_format = file_format.lower()
        if file_format == "csv":
            df = self.csv_reader.read(file_path, **options)
        elif file_format == "json":
            df = self.spark.read \
                .option("primitivesAsString", "true") \
                .option("multiLine", "true") \
                .json(file_path)
        else:
            raise ValueError(f"Unsupported file format: {file_format}")

        headers, rows = dataframe_rows(df)
        return RawFile(
            filename=os.path.basename(file_path),
            file_type=file_format,
            file_size=os.path.getsize(file_path),
            headers=headers,
            rows=rows,
        )
