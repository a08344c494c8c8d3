import enum
from datetime import datetime, timezone
from deckvault.extensions import db


class CardCondition(enum.Enum):
    NM  = "NM"    # Near Mint
    LP  = "LP"    # Lightly Played
    MP  = "MP"    # Moderately Played
    HP  = "HP"    # Heavily Played
    DMG = "DMG"   # Damaged

    @property
    def label(self) -> str:
        labels = {
            "NM":  "Near Mint",
            "LP":  "Lightly Played",
            "MP":  "Moderately Played",
            "HP":  "Heavily Played",
            "DMG": "Damaged",
        }
        return labels[self.value]

    @classmethod
    def parse(cls, value) -> "CardCondition":
        """Accept an enum member, a code ("LP") or a label ("Lightly Played").

        Raises ValueError for anything else.
        """
        if isinstance(value, cls):
            return value
        text = str(value or "").strip()
        for member in cls:
            if text.upper() == member.value or text.lower() == member.label.lower():
                return member
        raise ValueError(f"Unknown card condition: {value!r}")


class Holding(db.Model):
    """One owned quantity of a specific printing in one finish.

    (scryfall_id, is_foil) is the natural key: a second acquisition of the
    same printing and finish raises quantity on the existing row instead of
    adding another one.
    """
    __tablename__ = "inventory"
    __table_args__ = (
        db.UniqueConstraint("scryfall_id", "is_foil", name="uq_inventory_printing_finish"),
    )

    id               = db.Column(db.Integer, primary_key=True)
    name             = db.Column(db.String(200), nullable=False, index=True)
    set_code         = db.Column(db.String(10))
    set_name         = db.Column(db.String(100))
    collector_number = db.Column(db.String(20))
    quantity         = db.Column(db.Integer, default=1, nullable=False)
    is_foil          = db.Column(db.Boolean, default=False, nullable=False)
    condition        = db.Column(
        db.Enum(CardCondition), default=CardCondition.NM, nullable=False
    )
    colors           = db.Column(db.String(20), default="", nullable=False)  # "" = colorless
    mana_cost        = db.Column(db.String(100))
    type_line        = db.Column(db.String(200))
    rarity           = db.Column(db.String(20))
    image_url        = db.Column(db.String(400))
    scryfall_id      = db.Column(db.String(40), nullable=False, index=True)

    # Prices (USD), refreshed by the price sync
    price_usd        = db.Column(db.Float, nullable=True)
    price_usd_foil   = db.Column(db.Float, nullable=True)
    price_updated_at = db.Column(db.DateTime)
    added_at         = db.Column(
        db.DateTime, default=lambda: datetime.now(timezone.utc)
    )

    # ── Relationships ────────────────────────────────────────────────────────
    deck_links = db.relationship(
        "DeckCard", back_populates="holding", cascade="all, delete-orphan",
    )

    # ── Helpers ─────────────────────────────────────────────────────────────
    @property
    def unit_price(self) -> float | None:
        """Price of one copy in this row's finish."""
        return self.price_usd_foil if self.is_foil else self.price_usd

    @property
    def current_value(self) -> float | None:
        """Market value of the whole row (quantity × unit price)."""
        unit = self.unit_price
        if unit is None:
            return None
        return round(unit * self.quantity, 2)

    @property
    def condition_label(self) -> str:
        return self.condition.label if self.condition else "Unknown"

    def to_dict(self) -> dict:
        return {
            "id":               self.id,
            "name":             self.name,
            "set_code":         self.set_code,
            "set_name":         self.set_name,
            "collector_number": self.collector_number,
            "quantity":         self.quantity,
            "foil":             self.is_foil,
            "condition":        self.condition_label,
            "colors":           self.colors,
            "mana_cost":        self.mana_cost,
            "type_line":        self.type_line,
            "rarity":           self.rarity,
            "image_url":        self.image_url,
            "scryfall_id":      self.scryfall_id,
            "price_usd":        self.price_usd,
            "price_usd_foil":   self.price_usd_foil,
            "current_value":    self.current_value,
            "last_price_update": _iso(self.price_updated_at),
            "added_date":       _iso(self.added_at),
        }

    def __repr__(self) -> str:
        finish = "foil" if self.is_foil else "nonfoil"
        return f"<Holding {self.quantity}x {self.name} [{self.scryfall_id} {finish}]>"


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value else None
