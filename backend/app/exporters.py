"""CSV and Excel renderings of a filtered record set."""

import csv
from io import BytesIO

import pandas as pd
from openpyxl.styles import Font, PatternFill

from backend.analysis.models import RECORD_COLUMNS

EXPORT_BASENAME = "bankmarketing_export_filtered"
SHEET_NAME = "Filtered Data"
HEADER_FILL = "CB3CFF"

EXPORT_HEADERS = {
    "age": "Age",
    "job": "Job",
    "marital": "Marital",
    "education": "Education",
    "default": "Default",
    "housing": "Housing",
    "loan": "Loan",
    "contact": "Contact",
    "month": "Month",
    "day_of_week": "DayOfWeek",
    "duration": "Duration",
    "campaign": "Campaign",
    "pdays": "Pdays",
    "previous": "Previous",
    "poutcome": "Poutcome",
    "emp_var_rate": "EmpVarRate",
    "cons_price_idx": "ConsPriceIdx",
    "cons_conf_idx": "ConsConfIdx",
    "euribor3m": "Euribor3m",
    "nr_employed": "NrEmployed",
    "y": "Y",
}


def _export_frame(df: pd.DataFrame) -> pd.DataFrame:
    return df[RECORD_COLUMNS].rename(columns=EXPORT_HEADERS)


def to_csv_bytes(df: pd.DataFrame) -> bytes:
    """Every field quoted, UTF-8 with BOM so Excel detects the encoding."""
    text = _export_frame(df).to_csv(index=False, quoting=csv.QUOTE_ALL)
    return text.encode("utf-8-sig")


def to_xlsx_bytes(df: pd.DataFrame) -> bytes:
    buffer = BytesIO()
    with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
        _export_frame(df).to_excel(writer, sheet_name=SHEET_NAME, index=False)
        sheet = writer.sheets[SHEET_NAME]

        for cell in sheet[1]:
            cell.font = Font(bold=True, color="FFFFFF")
            cell.fill = PatternFill(fill_type="solid", fgColor=HEADER_FILL)

        for column_cells in sheet.columns:
            width = max(len(str(c.value)) for c in column_cells if c.value is not None)
            sheet.column_dimensions[column_cells[0].column_letter].width = width + 2

    return buffer.getvalue()
