"""
CSV reader using Spark for carrier exports.
"""

from pyspark.sql import DataFrame, SparkSession

BOM = "\ufeff"


def clean_header(header: str) -> str:
    return header.replace(BOM, "").strip()


def clean_cell(value) -> str | None:
    """
    Undo spreadsheet quoting on a cell.

    '="00123"' -> '00123', '"Public Works"' -> 'Public Works'. Non-string
    values are rendered with str().
    """
    if value is None:
        return None
    text = str(value).strip()
    if text.startswith('="') and text.endswith('"'):
        text = text[2:-1]
    if len(text) >= 2 and text.startswith('"') and text.endswith('"'):
        text = text[1:-1]
    return text


class CSVReader:
    """
    Reads carrier CSV exports with every column as a string.
    """

    def __init__(self, spark: SparkSession):
        self.spark = spark

    def read(self, file_path: str, delimiter: str = ",", encoding: str = "UTF-8") -> DataFrame:
        """
        Read a CSV file into a DataFrame of string columns.

        Args:
            file_path: Path to CSV file
            delimiter: Field delimiter
            encoding: File encoding

        Returns:
            Spark DataFrame
        """
        return self.spark.read \
            .option("header", "true") \
            .option("inferSchema", "false") \
            .option("delimiter", delimiter) \
            .option("encoding", encoding) \
            .option("multiLine", "true") \
            .option("escape", '"') \
            .option("mode", "PERMISSIVE") \
            .csv(file_path)


def dataframe_rows(df: DataFrame) -> tuple[list[str], list[dict[str, str | None]]]:
    """
    Collect a DataFrame into ordered header -> value rows.

    Returns:
        (headers, rows) with headers cleaned of BOM and surrounding spaces
    """
    headers = [clean_header(c) for c in df.columns]
    rows = [
        {header: clean_cell(value) for header, value in zip(headers, row)}
        for row in df.collect()
    ]
    return headers, rows
