"""General Utility Functions."""

from __future__ import annotations

import math
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from datetime import date, datetime
from enum import Enum
from typing import Callable, Dict, List, TypeVar, Union

from pydantic import BaseModel

__all__ = ["call_with_timeout", "convert_to_json_safe"]

R = TypeVar("R")

JsonSafeType = Union[
    None,
    str,
    int,
    bool,
    float,
    Dict[str, "JsonSafeType"],
    List["JsonSafeType"],
]
"""The set of types that are natively representable in JSON."""


def call_with_timeout(func: Callable[[], R], timeout_s: float, *, name: str = "call") -> R:
    """Run *func* on a worker thread and wait at most *timeout_s* seconds.

    The worker is abandoned, not killed, when the deadline passes; its
    eventual result is dropped.

    Raises:
        TimeoutError: If *func* has not returned in time.
        Exception: Whatever *func* raised.
    """
    executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix=name)
    future = executor.submit(func)
    try:
        return future.result(timeout=timeout_s)
    except FutureTimeoutError as exc:
        future.cancel()
        raise TimeoutError(f"{name} did not finish within {timeout_s:.1f}s") from exc
    finally:
        executor.shutdown(wait=False)


def convert_to_json_safe(data: object) -> JsonSafeType:
    """Recursively convert a data structure to JSON-safe types.

    Handles:
    - ``datetime`` / ``date`` objects -> ISO-format strings
    - ``Enum`` members -> their values
    - ``float`` NaN / Inf -> ``None``
    - Nested dicts, lists and tuples
    - Pydantic models (via ``.model_dump()``)
    """
    if data is None:
        return None

    if isinstance(data, Enum):
        return convert_to_json_safe(data.value)

    if isinstance(data, (str, int, bool)):
        return data

    if isinstance(data, float):
        if math.isnan(data) or math.isinf(data):
            return None
        return data

    if isinstance(data, (datetime, date)):
        return data.isoformat()

    if isinstance(data, BaseModel):
        return convert_to_json_safe(data.model_dump())

    if isinstance(data, dict):
        return {str(key): convert_to_json_safe(value) for key, value in data.items()}

    if isinstance(data, (list, tuple)):
        return [convert_to_json_safe(item) for item in data]

    return str(data)
