"""Extractor: reads the raw UCI bank marketing export into a DataFrame.

Everything is read as text. Typing and sentinel handling belong to the
Cleaner, so a malformed number never aborts the read.
"""

import pandas as pd

from backend.etl.config import ETLConfig, RAW_COLUMNS, RAW_DATA_FILENAME

UCI_DATASET_URL = "https://archive.ics.uci.edu/dataset/222/bank+marketing"


class Extractor:
    """Reads the semicolon-separated campaign file named in ETLConfig."""

    def __init__(self, config: ETLConfig):
        self._config = config

    def extract_campaigns(self) -> pd.DataFrame:
        """Return the raw rows with the file's own (dotted) column names.

        Raises:
            FileNotFoundError: The file is not at config.raw_data_path.
            ValueError: The header lacks one of the RAW_COLUMNS names.
        """
        path = self._config.raw_data_path
        if not path.exists():
            raise FileNotFoundError(
                f"Campaign file not found: {path}\n"
                f"Get {RAW_DATA_FILENAME} from {UCI_DATASET_URL} and place it there, "
                f"or point RAW_DATA_PATH at it."
            )

        print(f"  Reading {path.name} (sep={self._config.separator!r})")
        df = pd.read_csv(path, sep=self._config.separator, dtype=str, keep_default_na=False)
        print(f"    {len(df):,} raw rows, {len(df.columns)} columns")

        self._check_header(df)
        return df

    def _check_header(self, df: pd.DataFrame) -> None:
        missing = sorted(set(RAW_COLUMNS.values()) - set(df.columns))
        if missing:
            raise ValueError(
                f"Missing expected columns: {missing}. "
                f"Header was: {list(df.columns)}"
            )
