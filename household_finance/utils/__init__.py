from .normalize import coerce_amount, coerce_number, normalize_date

__all__ = ["coerce_amount", "coerce_number", "normalize_date"]
