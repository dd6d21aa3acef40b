"""Human-readable formatting helpers."""

_UNITS = ["B", "KB", "MB", "GB", "TB"]


def format_size(size: int) -> str:
    """Format a byte count with binary units.

    Example:
        >>> format_size(1536)
        '1.50 KB'
    """
    if size <= 0:
        return "0 B"

    value = float(size)
    exponent = 0
    while value >= 1024 and exponent < len(_UNITS) - 1:
        value /= 1024
        exponent += 1

    if exponent == 0:
        return f"{size} B"
    return f"{value:.2f} {_UNITS[exponent]}"
