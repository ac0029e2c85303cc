TAI_THRESHOLD = 11

def is_valid_dice(d: int) -> bool:
    return isinstance(d, int) and not isinstance(d, bool) and 1 <= d <= 6

def is_tai(total: int) -> bool:
    return total >= TAI_THRESHOLD
