"""Display formatting for amounts."""


def format_amount(value: float, currency: str = "Ft") -> str:
    """
    Whole units with space-separated thousands, e.g. "1 234 567 Ft".

    Halves round away from zero. An empty currency drops the suffix.
    """
    rounded = int(abs(value) + 0.5)
    sign = "-" if value < 0 and rounded else ""
    grouped = f"{rounded:,}".replace(",", " ")
    text = f"{sign}{grouped}"
    return f"{text} {currency}" if currency else text
