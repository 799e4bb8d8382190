def overlaps(start_a: int, end_a: int, start_b: int, end_b: int) -> bool:
    """Half-open [start, end) overlap: touching endpoints do not overlap."""
    return max(start_a, start_b) < min(end_a, end_b)


def overlaps_any(start: int, end: int, windows: list[tuple[int, int]]) -> bool:
    return any(overlaps(start, end, busy_start, busy_end) for busy_start, busy_end in windows)
