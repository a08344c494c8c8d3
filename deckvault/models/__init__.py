# Import all models so SQLAlchemy can discover them for db.create_all()
# Holding before DeckCard (FK dependency)
from deckvault.models.inventory import Holding, CardCondition
from deckvault.models.deck import (
    Deck, DeckCard, FormatRules, FORMAT_RULES, MTG_FORMATS, CATEGORIES, rules_for,
)

__all__ = [
    "Holding", "CardCondition",
    "Deck", "DeckCard",
    "FormatRules", "FORMAT_RULES", "MTG_FORMATS", "CATEGORIES", "rules_for",
]
