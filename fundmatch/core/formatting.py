"""Korean display formatting helpers."""


def format_krw(amount: int) -> str:
    """Format a KRW amount in 억원/만원 units (integer arithmetic, truncating)."""
    if amount >= 100_000_000:
        return f"{amount // 100_000_000}억원"
    if amount >= 10_000:
        return f"{amount // 10_000}만원"
    return f"{amount}원"
