from dataclasses import dataclass
from datetime import datetime, timezone
from deckvault.extensions import db

# Deck categories a card link can belong to
CATEGORIES = ("mainboard", "sideboard")


@dataclass(frozen=True)
class FormatRules:
    """Deck-construction limits for one format. None means unbounded."""
    min_mainboard: int = 0
    max_mainboard: int | None = None
    max_sideboard: int | None = None
    max_copies: int | None = None

    def to_dict(self) -> dict:
        return {
            "minMainboard": self.min_mainboard,
            "maxMainboard": self.max_mainboard,
            "maxSideboard": self.max_sideboard,
            "maxCopies":    self.max_copies,
        }


_CONSTRUCTED = FormatRules(min_mainboard=60, max_sideboard=15, max_copies=4)

FORMAT_RULES: dict[str, FormatRules] = {
    "Standard":  _CONSTRUCTED,
    "Pioneer":   _CONSTRUCTED,
    "Modern":    _CONSTRUCTED,
    "Legacy":    _CONSTRUCTED,
    "Vintage":   _CONSTRUCTED,
    "Pauper":    _CONSTRUCTED,
    "Historic":  _CONSTRUCTED,
    "Alchemy":   _CONSTRUCTED,
    "Commander": FormatRules(min_mainboard=100, max_mainboard=100, max_sideboard=0, max_copies=1),
    "Casual":    FormatRules(),
}

MTG_FORMATS = list(FORMAT_RULES)


def rules_for(format_name: str | None) -> FormatRules:
    """Look up the rule row for a format; anything unrecognised plays as Casual."""
    return FORMAT_RULES.get(format_name or "", FORMAT_RULES["Casual"])


class Deck(db.Model):
    """A named deck built from holdings in the collection.

    Membership lives in DeckCard rows; deleting a deck deletes its links but
    never the holdings they point at.
    """
    __tablename__ = "decks"

    id          = db.Column(db.Integer, primary_key=True)
    name        = db.Column(db.String(100), nullable=False)
    format      = db.Column(db.String(30), default="Casual")
    description = db.Column(db.Text, default="")
    created_at  = db.Column(
        db.DateTime, default=lambda: datetime.now(timezone.utc)
    )
    updated_at  = db.Column(
        db.DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    # ── Relationships ────────────────────────────────────────────────────────
    cards = db.relationship(
        "DeckCard", back_populates="deck",
        cascade="all, delete-orphan", order_by="DeckCard.id",
    )

    # ── Computed properties ──────────────────────────────────────────────────
    @property
    def rules(self) -> FormatRules:
        return rules_for(self.format)

    def count(self, category: str) -> int:
        """Sum of link quantities in one category."""
        return sum(link.quantity for link in self.cards if link.category == category)

    @property
    def mainboard_count(self) -> int:
        return self.count("mainboard")

    @property
    def sideboard_count(self) -> int:
        return self.count("sideboard")

    @property
    def total_value(self) -> float:
        """Approximate deck value in USD from the linked holdings' prices."""
        total = 0.0
        for link in self.cards:
            price = link.holding.unit_price if link.holding else None
            if price is not None:
                total += price * link.quantity
        return round(total, 2)

    def touch(self) -> None:
        """Bump last-updated; membership changes don't modify the deck row itself."""
        self.updated_at = datetime.now(timezone.utc)

    def to_dict(self) -> dict:
        return {
            "id":           self.id,
            "name":         self.name,
            "format":       self.format,
            "description":  self.description,
            "created_date": self.created_at.isoformat() if self.created_at else None,
            "updated_date": self.updated_at.isoformat() if self.updated_at else None,
        }

    def __repr__(self) -> str:
        return f"<Deck {self.name!r} ({self.format})>"


class DeckCard(db.Model):
    """Membership of a holding in a deck's mainboard or sideboard."""
    __tablename__ = "deck_cards"
    __table_args__ = (
        db.UniqueConstraint(
            "deck_id", "inventory_id", "category", name="uq_deck_cards_slot"
        ),
    )

    id           = db.Column(db.Integer, primary_key=True)
    deck_id      = db.Column(
        db.Integer, db.ForeignKey("decks.id", ondelete="CASCADE"), nullable=False, index=True
    )
    inventory_id = db.Column(
        db.Integer, db.ForeignKey("inventory.id", ondelete="CASCADE"), nullable=False, index=True
    )
    quantity     = db.Column(db.Integer, default=1, nullable=False)
    category     = db.Column(db.String(20), default="mainboard", nullable=False)

    deck    = db.relationship("Deck", back_populates="cards")
    holding = db.relationship("Holding", back_populates="deck_links")

    def to_dict(self) -> dict:
        """Link joined with the display attributes of its holding."""
        data = {
            "id":           self.id,
            "deck_id":      self.deck_id,
            "inventory_id": self.inventory_id,
            "quantity":     self.quantity,
            "category":     self.category,
        }
        h = self.holding
        if h is not None:
            data.update({
                "name":             h.name,
                "set_code":         h.set_code,
                "set_name":         h.set_name,
                "collector_number": h.collector_number,
                "foil":             h.is_foil,
                "condition":        h.condition_label,
                "colors":           h.colors,
                "mana_cost":        h.mana_cost,
                "type_line":        h.type_line,
                "rarity":           h.rarity,
                "image_url":        h.image_url,
                "scryfall_id":      h.scryfall_id,
                "price_usd":        h.price_usd,
                "price_usd_foil":   h.price_usd_foil,
            })
        return data

    def __repr__(self) -> str:
        return f"<DeckCard {self.quantity}x inv={self.inventory_id} deck={self.deck_id} [{self.category}]>"
