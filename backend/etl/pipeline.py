"""Pipeline: loads the raw bank marketing file into campaign_data.

Steps: apply schema, extract, clean, load, validate. Re-running replaces the
table contents, so the command can be repeated after fixing the input.

Usage:
    python -m backend.etl.pipeline

RAW_DATA_PATH and DATABASE_URL (environment or .env) override the defaults
in backend/etl/config.py.
"""

import time
from dataclasses import dataclass, field

from backend.etl.clean import Cleaner
from backend.etl.config import ETLConfig
from backend.etl.extract import Extractor
from backend.etl.load import Loader


@dataclass
class ValidationCheck:
    name: str
    passed: bool
    details: str = ""


@dataclass
class PipelineResult:
    """What a run did, for the CLI summary and for tests."""
    success: bool = False
    table: str = ""
    rows_loaded: int = 0
    cleaning_report: dict = field(default_factory=dict)
    checks: list[ValidationCheck] = field(default_factory=list)
    duration_seconds: float = 0.0
    error: str | None = None


class Pipeline:
    """Runs the ETL steps in order against one ETLConfig."""

    STEP_COUNT = 5

    def __init__(self, config: ETLConfig | None = None):
        self._config = config or ETLConfig()
        self._extractor = Extractor(self._config)
        self._cleaner = Cleaner(self._config)
        self._loader = Loader(self._config)

    def run(self) -> PipelineResult:
        """Execute every step. Exceptions are recorded on the result and re-raised."""
        result = PipelineResult(table=self._config.table_name)
        start = time.time()

        try:
            self._announce(1, "Applying schema")
            self._loader.execute_sql_file()

            self._announce(2, "Extracting raw campaign file")
            raw = self._extractor.extract_campaigns()

            self._announce(3, "Cleaning")
            records = self._cleaner.clean_campaigns(raw)
            result.cleaning_report = self._cleaner.get_cleaning_report()

            self._announce(4, f"Loading into {result.table}")
            result.rows_loaded = self._loader.load_table(records)

            self._announce(5, "Validating")
            result.checks = self._validate(result.rows_loaded)
            result.success = all(c.passed for c in result.checks)

            failed = [c for c in result.checks if not c.passed]
            if failed:
                print(f"\n⚠️  Finished with {len(failed)} failed check(s)")
            else:
                print("\n✅ Pipeline completed successfully!")

        except Exception as e:
            result.error = str(e)
            print(f"\n❌ Pipeline failed: {e}")
            raise

        finally:
            result.duration_seconds = round(time.time() - start, 2)
            print(f"\nDuration: {result.duration_seconds}s")

        return result

    def _announce(self, step: int, label: str) -> None:
        print(f"\n[{step}/{self.STEP_COUNT}] {label}...")

    def _validate(self, rows_loaded: int) -> list[ValidationCheck]:
        actual = self._loader.verify_row_count()
        invalid_targets = self._loader.count_invalid_targets()
        checks = [
            ValidationCheck(
                "row_count",
                actual == rows_loaded,
                f"expected={rows_loaded:,}, actual={actual:,}",
            ),
            # Every record must count as either converted or not converted
            ValidationCheck(
                "target_is_yes_or_no",
                invalid_targets == 0,
                f"unexpected_target_rows={invalid_targets:,}",
            ),
        ]
        for c in checks:
            print(f"  {'✓' if c.passed else '✗'} {c.name}: {c.details}")
        return checks


# ── CLI entry point ────────────────────────────────────────────

def main() -> PipelineResult:
    print("=" * 60)
    print("Bank Marketing ETL Pipeline")
    print("=" * 60)

    result = Pipeline(ETLConfig()).run()

    report = result.cleaning_report
    print("\n" + "=" * 60)
    print(f"Success:  {result.success}")
    print(f"Table:    {result.table} ({result.rows_loaded:,} rows)")
    print(f"Cleaning: {report.get('initial_rows', 0):,} raw -> "
          f"{report.get('final_rows', 0):,} records "
          f"({report.get('pct_dropped', '?')}% dropped)")
    print("=" * 60)
    return result


if __name__ == "__main__":
    main()
