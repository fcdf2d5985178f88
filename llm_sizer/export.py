"""
Export quantization matrices as JSON, CSV or YAML
"""

import csv
import io
import json
import logging
from typing import Dict, List

import yaml

from .matrix import QuantMatrixRow

logger = logging.getLogger(__name__)

EXPORT_FORMATS = ("json", "csv", "yaml")


def matrix_to_records(rows: List[QuantMatrixRow]) -> List[Dict]:
    """Convert matrix rows to plain nested dictionaries"""
    records = []
    for row in rows:
        records.append({
            "params_b": row.params_b,
            "label": row.label,
            "cells": {
                quant: {
                    "verdict": cell.verdict.value,
                    "size_gb": round(cell.size_gb, 2),
                    "total_memory_gb": round(cell.total_memory_gb, 2),
                    "headroom_gb": round(cell.headroom_gb, 2) if cell.headroom_gb is not None else None,
                }
                for quant, cell in row.cells.items()
            },
        })
    return records


def export_matrix(rows: List[QuantMatrixRow], format: str = "json") -> str:
    """Export matrix rows in the given format"""
    data = matrix_to_records(rows)

    if format == "json":
        return json.dumps(data, indent=2)
    elif format == "csv":
        return _export_csv(data)
    elif format == "yaml":
        return yaml.dump(data, default_flow_style=False, sort_keys=False)
    else:
        raise ValueError(f"Unsupported format: {format}")


def _export_csv(data: List[Dict]) -> str:
    """Export as CSV, one line per row with flattened cell columns"""
    if not data:
        return ""

    flat_rows = []
    for record in data:
        flat_row = {"params_b": record["params_b"], "label": record["label"]}
        for quant, cell in record["cells"].items():
            for key, value in cell.items():
                flat_row[f"{quant}_{key}"] = "" if value is None else value
        flat_rows.append(flat_row)

    output = io.StringIO()
    writer = csv.DictWriter(output, fieldnames=list(flat_rows[0].keys()))
    writer.writeheader()
    writer.writerows(flat_rows)

    logger.debug(f"Exported {len(flat_rows)} matrix rows as CSV")
    return output.getvalue()
