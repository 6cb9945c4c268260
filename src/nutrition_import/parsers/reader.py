"""CSV tokenization for uploaded export files."""

import csv
import io
from dataclasses import dataclass

UTF8_BOM = "\ufeff"


@dataclass(frozen=True)
class CsvTable:
    """Header row plus data rows keyed by header."""

    headers: list[str]
    rows: list[dict[str, str]]


def strip_bom(content: str) -> str:
    return content[1:] if content.startswith(UTF8_BOM) else content


def read_csv(content: str) -> CsvTable:
    """Tokenize CSV text, dropping blank lines and trimming header names."""
    reader = csv.reader(io.StringIO(strip_bom(content)))
    header_row: list[str] | None = None
    rows: list[dict[str, str]] = []
    for record in reader:
        if not any(cell.strip() for cell in record):
            continue
        if header_row is None:
            header_row = [cell.strip() for cell in record]
            continue
        rows.append(
            {
                header: record[index] if index < len(record) else ""
                for index, header in enumerate(header_row)
                if header
            }
        )
    return CsvTable(headers=[h for h in header_row or [] if h], rows=rows)
