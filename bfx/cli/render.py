"""
Terminal rendering of API results with rich.
"""

import json
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Iterable, Optional, Sequence

from pydantic import BaseModel
from rich import box
from rich.console import Console
from rich.table import Table


def format_value(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, datetime):
        return value.astimezone().isoformat(timespec="seconds")
    if isinstance(value, Enum):
        return str(value.value)
    if isinstance(value, float):
        return f"{value:g}" if abs(value) < 1e16 else str(value)
    if isinstance(value, (list, dict)):
        return json.dumps(value, default=str)
    return str(value)


def print_models(
    console: Console,
    models: Sequence[BaseModel],
    columns: Sequence[str],
    title: Optional[str] = None,
) -> None:
    """Print one row per model, showing the given fields as columns."""
    table = Table(title=title, box=box.ROUNDED)
    for column in columns:
        table.add_column(column.replace("_", "-"))

    for model in models:
        table.add_row(*(format_value(getattr(model, column)) for column in columns))

    console.print(table)


def print_record(
    console: Console, model: BaseModel, title: Optional[str] = None
) -> None:
    """Print a single model as a two-column field/value table."""
    print_mapping(console, model.model_dump(), title=title)


def print_mapping(
    console: Console, values: Dict[str, Any], title: Optional[str] = None
) -> None:
    table = Table(title=title, box=box.SQUARE, show_header=False)
    table.add_column("Field", style="bold")
    table.add_column("Value")

    for key, value in values.items():
        table.add_row(key.replace("_", "-"), format_value(value))

    console.print(table)


def print_json(console: Console, data: Any) -> None:
    """Print any value (models included) as indented JSON."""
    console.print_json(json.dumps(_jsonable(data), default=str))


def _jsonable(data: Any) -> Any:
    if isinstance(data, BaseModel):
        return data.model_dump(mode="json")
    if isinstance(data, dict):
        return {key: _jsonable(value) for key, value in data.items()}
    if isinstance(data, Iterable) and not isinstance(data, (str, bytes)):
        return [_jsonable(item) for item in data]
    return data
