"""
Inventory service — owns the collection's holdings.

This module owns all logic for:
  - Acquiring cards: resolve the printing through the catalog, then
    merge into the existing (scryfall_id, foil) holding or insert a new one
  - Partial edits of quantity / foil / condition
  - Removing holdings (deck links to the holding are removed with it)

Callers (blueprints, the price sync) never write holdings directly; they
go through this service so validation and snapshotting are applied
consistently.
"""
import logging
from datetime import datetime, timezone

from sqlalchemy import or_

from deckvault.errors import NotFoundError, ValidationError
from deckvault.models.inventory import CardCondition, Holding
from deckvault.utils import scryfall
from deckvault.utils.helpers import as_int

log = logging.getLogger(__name__)


class InventoryService:

    def __init__(self, store, catalog=scryfall):
        """
        Args:
            store:   CollectionStore holding the relations.
            catalog: Card catalog exposing get_card_by_id(); the Scryfall
                     module by default.
        """
        self.store = store
        self.catalog = catalog

    # ── Reads ────────────────────────────────────────────────────────────────

    def list_holdings(self, search: str | None = None, foil: bool | None = None) -> list[Holding]:
        """All holdings ordered by name, optionally filtered by name/type text or finish."""
        criteria = []
        if search:
            pattern = f"%{search.strip()}%"
            criteria.append(or_(Holding.name.ilike(pattern), Holding.type_line.ilike(pattern)))
        if foil is not None:
            criteria.append(Holding.is_foil.is_(bool(foil)))
        return self.store.query(Holding, *criteria, order_by=(Holding.name.asc(), Holding.id.asc()))

    def get_holding(self, holding_id: int) -> Holding:
        holding = self.store.get(Holding, holding_id)
        if holding is None:
            raise NotFoundError("Card not found")
        return holding

    # ── Writes ───────────────────────────────────────────────────────────────

    def acquire(
        self,
        scryfall_id: str,
        quantity: int = 1,
        foil: bool = False,
        condition="Near Mint",
    ) -> Holding:
        """
        Add `quantity` copies of a printing/finish to the collection.

        The catalog is consulted first; if it fails nothing is written.
        An existing holding with the same (scryfall_id, foil) has its
        quantity raised; otherwise a new holding is created from the
        catalog data with added/price-updated timestamps set to now.

        Raises:
            ValidationError:     Missing id, bad quantity or condition.
            ExternalLookupError: Catalog could not resolve the id.
        """
        if not scryfall_id:
            raise ValidationError("scryfall_id is required")
        quantity = as_int(quantity, "quantity", minimum=1)
        cond = _parse_condition(condition)

        card = self.catalog.get_card_by_id(scryfall_id)

        now = datetime.now(timezone.utc)
        with self.store.mutation():
            holding = self.store.upsert(
                Holding,
                key={"scryfall_id": card["scryfall_id"], "is_foil": bool(foil)},
                values={
                    "name":             card["name"],
                    "set_code":         card.get("set_code"),
                    "set_name":         card.get("set_name"),
                    "collector_number": card.get("collector_number"),
                    "quantity":         quantity,
                    "condition":        cond,
                    "colors":           card.get("colors") or "",
                    "mana_cost":        card.get("mana_cost") or "",
                    "type_line":        card.get("type_line"),
                    "rarity":           card.get("rarity"),
                    "image_url":        card.get("image_url") or "",
                    "price_usd":        card.get("usd"),
                    "price_usd_foil":   card.get("usd_foil"),
                    "price_updated_at": now,
                    "added_at":         now,
                },
                increment="quantity",
                amount=quantity,
            )
            holding_id, total = holding.id, holding.quantity

        log.info(
            "Acquired %dx %s (%s, %s): holding %s now at %d",
            quantity, card["name"], card["scryfall_id"],
            "foil" if foil else "nonfoil", holding_id, total,
        )
        return holding

    def edit_holding(self, holding_id: int, quantity=None, foil=None, condition=None) -> Holding:
        """Update only the provided fields of a holding.

        Raises:
            ValidationError: No fields given, bad values, or the finish
                             change would collide with the other-finish row.
            NotFoundError:   Unknown holding.
        """
        if quantity is None and foil is None and condition is None:
            raise ValidationError("No updates provided")

        holding = self.get_holding(holding_id)

        if quantity is not None:
            quantity = as_int(quantity, "quantity", minimum=0)
        if condition is not None:
            condition = _parse_condition(condition)
        if foil is not None and bool(foil) != holding.is_foil:
            twin = self.store.query(
                Holding,
                Holding.scryfall_id == holding.scryfall_id,
                Holding.is_foil.is_(bool(foil)),
            )
            if twin:
                raise ValidationError(
                    f"A {'foil' if foil else 'nonfoil'} holding of this printing "
                    f"already exists (id {twin[0].id})"
                )

        with self.store.mutation():
            if quantity is not None:
                holding.quantity = quantity
            if foil is not None:
                holding.is_foil = bool(foil)
            if condition is not None:
                holding.condition = condition

        return holding

    def remove_holding(self, holding_id: int) -> None:
        """Delete a holding together with any deck links that reference it."""
        holding = self.get_holding(holding_id)
        name = holding.name
        with self.store.mutation() as session:
            for link in holding.deck_links:
                link.deck.touch()
            unlinked = len(holding.deck_links)
            session.delete(holding)
        log.info("Removed holding %s (%s), %d deck link(s) dropped", holding_id, name, unlinked)


# ── Internal helpers ──────────────────────────────────────────────────────────

def _parse_condition(value) -> CardCondition:
    try:
        return CardCondition.parse(value)
    except ValueError as exc:
        raise ValidationError(str(exc)) from None
