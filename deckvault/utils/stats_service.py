"""
Collection statistics — read-only aggregates over the holdings.

Grouping by colour uses the stored colour string exactly: "R", "UR" and
"" (colorless) are three separate groups.
"""
from collections import defaultdict

from deckvault.models.inventory import Holding


def compute_stats(store) -> dict:
    """Return {totalCards, uniqueCards, totalValue, byColor} for the whole collection."""
    holdings = store.query(Holding)

    total_cards = 0
    total_value = 0.0
    by_color: dict[str, int] = defaultdict(int)

    # Python loop is fine at personal-collection scale
    for h in holdings:
        total_cards += h.quantity
        total_value += (h.unit_price or 0) * h.quantity
        by_color[h.colors or ""] += h.quantity

    return {
        "totalCards":  total_cards,
        "uniqueCards": len(holdings),
        "totalValue":  round(total_value, 2),
        "byColor": [
            {"colors": colors, "count": count}
            for colors, count in sorted(by_color.items())
        ],
    }
