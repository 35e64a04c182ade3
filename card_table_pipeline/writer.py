# card_table_pipeline/writer.py

from __future__ import annotations
import json
from pathlib import Path
from typing import Union
from .models import ExtractionResult, result_from_dict


def write_report_json(
    result: ExtractionResult,
    output_path: Union[str, Path],
) -> Path:
    """
    Write one ExtractionReport (or ExtractionFailure) to a pretty-printed
    JSON file, creating parent directories as needed.

    - Uses to_serializable_dict() so datetimes become ISO strings.

    Returns:
        Path to the written JSON file.
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    with output_path.open("w", encoding="utf-8") as f:
        json.dump(result.to_serializable_dict(), f, ensure_ascii=False, indent=2)
        f.write("\n")

    return output_path


def load_report_json(input_path: Union[str, Path]) -> ExtractionResult:
    """
    Read a file written by write_report_json() back into model objects.
    """
    with Path(input_path).open("r", encoding="utf-8") as f:
        return result_from_dict(json.load(f))
