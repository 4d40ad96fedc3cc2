from roadside.utils.geo import (
    calculate_distance,
    round_distance,
    calculate_eta,
    is_valid_coordinate,
    get_bounds,
    format_fallback_address,
)

__all__ = [
    "calculate_distance",
    "round_distance",
    "calculate_eta",
    "is_valid_coordinate",
    "get_bounds",
    "format_fallback_address",
]
