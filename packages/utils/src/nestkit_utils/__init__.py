"""General purpose helpers used across nestkit.

- :mod:`nestkit_utils.nested`: dot/bracket path access into nested data
- :mod:`nestkit_utils.timing`: async wait, debounce, throttle and timing
"""

from nestkit_utils.nested import (
    find_object_path,
    find_objects_by_key_values,
    get_nested_value,
    set_nested_value,
)
from nestkit_utils.timing import debounce, measure_time, throttle, wait_until

__version__ = "0.1.0"

__all__ = [
    "debounce",
    "find_object_path",
    "find_objects_by_key_values",
    "get_nested_value",
    "measure_time",
    "set_nested_value",
    "throttle",
    "wait_until",
]
