"""
Deck service — deck CRUD, card-link merging and format validation.

Card link rules:
  - A holding appears at most once per (deck, category); adding it again
    raises the link's quantity.
  - Every membership change bumps the deck's last-updated timestamp,
    merges included.
  - Deleting a deck deletes its links in the same commit; holdings are
    never touched by deck operations.

Format validation is advisory: it is computed when a deck is read and
never blocks a write. Unknown formats validate as Casual.
"""
import logging
from collections import Counter
from dataclasses import dataclass, field

from deckvault.errors import NotFoundError, ValidationError
from deckvault.models.deck import CATEGORIES, Deck, DeckCard
from deckvault.models.inventory import Holding
from deckvault.utils.helpers import as_int

log = logging.getLogger(__name__)


@dataclass
class DeckValidation:
    """Read-time legality summary of a deck against its format rules."""
    mainboard_count: int
    sideboard_count: int
    mainboard_valid: bool
    sideboard_valid: bool
    over_copy_limit: list = field(default_factory=list)

    @property
    def copy_limit_valid(self) -> bool:
        return not self.over_copy_limit

    def to_dict(self) -> dict:
        return {
            "mainboardValid": self.mainboard_valid,
            "sideboardValid": self.sideboard_valid,
            "copyLimitValid": self.copy_limit_valid,
            "overCopyLimit":  self.over_copy_limit,
        }


def validate_deck(deck: Deck) -> DeckValidation:
    """Check mainboard size, sideboard size and per-card copies against the format."""
    rules = deck.rules
    main = deck.mainboard_count
    side = deck.sideboard_count

    mainboard_valid = main >= rules.min_mainboard and (
        rules.max_mainboard is None or main <= rules.max_mainboard
    )
    sideboard_valid = rules.max_sideboard is None or side <= rules.max_sideboard

    over = []
    if rules.max_copies is not None:
        copies = Counter()
        for link in deck.cards:
            h = link.holding
            # Basic lands are exempt from the copy limit
            if h is None or (h.type_line or "").startswith("Basic"):
                continue
            copies[h.name] += link.quantity
        over = sorted(name for name, n in copies.items() if n > rules.max_copies)

    return DeckValidation(
        mainboard_count=main,
        sideboard_count=side,
        mainboard_valid=mainboard_valid,
        sideboard_valid=sideboard_valid,
        over_copy_limit=over,
    )


def deck_detail(deck: Deck) -> dict:
    """Deck metadata plus resolved card links and derived properties."""
    validation = validate_deck(deck)
    data = deck.to_dict()
    data.update({
        "cards":          [link.to_dict() for link in deck.cards if link.holding is not None],
        "mainboardCount": validation.mainboard_count,
        "sideboardCount": validation.sideboard_count,
        "rules":          deck.rules.to_dict(),
        "validation":     validation.to_dict(),
        "totalValue":     deck.total_value,
    })
    return data


class DeckService:

    def __init__(self, store):
        self.store = store

    # ── Reads ────────────────────────────────────────────────────────────────

    def list_decks(self) -> list[Deck]:
        """All decks, most recently updated first."""
        return self.store.query(Deck, order_by=(Deck.updated_at.desc(), Deck.id.desc()))

    def get_deck(self, deck_id: int) -> Deck:
        deck = self.store.get(Deck, deck_id)
        if deck is None:
            raise NotFoundError("Deck not found")
        return deck

    # ── Deck CRUD ────────────────────────────────────────────────────────────

    def create_deck(self, name: str, format: str | None = None, description: str | None = None) -> Deck:
        """Create an empty deck. Any format string is accepted."""
        name = (name or "").strip()
        if not name:
            raise ValidationError("Deck name is required")

        deck = Deck(
            name=name,
            format=(format or "").strip() or "Casual",
            description=description or "",
        )
        with self.store.mutation() as session:
            session.add(deck)
        log.info("Created deck %s (%s, %s)", deck.id, deck.name, deck.format)
        return deck

    def update_deck(self, deck_id: int, name=None, format=None, description=None) -> Deck:
        """Apply the provided fields; the rest keep their values. Bumps last-updated."""
        deck = self.get_deck(deck_id)
        if name is not None and not name.strip():
            raise ValidationError("Deck name cannot be blank")

        with self.store.mutation():
            if name is not None:
                deck.name = name.strip()
            if format is not None:
                deck.format = format.strip() or "Casual"
            if description is not None:
                deck.description = description
            deck.touch()
        return deck

    def delete_deck(self, deck_id: int) -> None:
        """Delete a deck and all of its links in one commit."""
        deck = self.get_deck(deck_id)
        name, links = deck.name, len(deck.cards)
        with self.store.mutation() as session:
            session.delete(deck)   # cascades to DeckCard rows
        log.info("Deleted deck %s (%s) with %d card link(s)", deck_id, name, links)

    # ── Card links ───────────────────────────────────────────────────────────

    def add_card(self, deck_id: int, holding_id: int, quantity=1, category: str = "mainboard") -> DeckCard:
        """Merge `quantity` into the (deck, holding, category) link, creating it if needed."""
        quantity = as_int(quantity, "quantity", minimum=1)
        category = (category or "mainboard").strip().lower()
        if category not in CATEGORIES:
            raise ValidationError(f"category must be one of: {', '.join(CATEGORIES)}")
        if holding_id is None:
            raise ValidationError("inventory_id is required")

        deck = self.get_deck(deck_id)
        if self.store.get(Holding, holding_id) is None:
            raise NotFoundError("Card not found in inventory")

        with self.store.mutation():
            link = self.store.upsert(
                DeckCard,
                key={"deck_id": deck.id, "inventory_id": holding_id, "category": category},
                values={"quantity": quantity},
                increment="quantity",
                amount=quantity,
            )
            deck.touch()
        return link

    def remove_card(self, deck_id: int, link_id: int) -> None:
        """Delete one link of this deck. A link belonging to another deck is NotFound."""
        deck = self.get_deck(deck_id)
        matches = self.store.query(DeckCard, DeckCard.id == link_id, DeckCard.deck_id == deck.id)
        if not matches:
            raise NotFoundError("Card not found in deck")

        with self.store.mutation() as session:
            session.delete(matches[0])
            deck.touch()
