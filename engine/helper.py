from engine.calculator import ROI_DISPLAY_CAP


def _group_indian(digits: str) -> str:
    # Lakh/crore grouping: last three digits, then pairs.
    if len(digits) <= 3:
        return digits
    head, tail = digits[:-3], digits[-3:]
    pairs = []
    while len(head) > 2:
        pairs.insert(0, head[-2:])
        head = head[:-2]
    if head:
        pairs.insert(0, head)
    return ",".join(pairs + [tail])


def format_currency(amount: float) -> str:
    """Format rupees as ``Rs. 5,91,710`` (no decimals, Indian grouping)."""
    rounded = int(round(amount))
    sign = "-" if rounded < 0 else ""
    return f"Rs. {sign}{_group_indian(str(abs(rounded)))}"


def format_percent(value: float) -> str:
    return f"{value * 100:.1f}%"


def format_roi(years: float) -> str:
    if years >= ROI_DISPLAY_CAP:
        return "N/A (No Usage)"
    return f"{years:.1f} Years"
