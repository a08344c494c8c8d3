"""
Price service — batch price refresh for every holding in the collection.

Public API:
  refresh_all_prices(inventory, delay=0.1) -> PriceRefreshResult
      Walk every holding, fetch its current prices from the catalog and
      write them back. Best effort: a failed lookup is logged and the
      holding is left untouched while the batch carries on.

Each successful update is committed to the in-memory store right away;
one snapshot is written at the end. A crash mid-batch therefore leaves a
loadable collection with some prices refreshed and the rest as they were.
If the final write fails, the batch is undone in memory as well and
PersistenceError propagates.
"""
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone

from deckvault.errors import ExternalLookupError

log = logging.getLogger(__name__)


@dataclass
class PriceRefreshResult:
    """Outcome of one batch: how many holdings were refreshed and which were skipped."""
    total: int = 0
    updated: int = 0
    failed: list = field(default_factory=list)

    @property
    def failed_count(self) -> int:
        return len(self.failed)

    def to_dict(self) -> dict:
        if self.total == 0:
            message = "No cards to update"
        else:
            message = f"Updated prices for {self.updated} cards"
        return {
            "message":      message,
            "updatedCount": self.updated,
            "failedCount":  self.failed_count,
            "failed":       self.failed,
            "total":        self.total,
        }


def refresh_all_prices(inventory, delay: float = 0.1) -> PriceRefreshResult:
    """Refresh non-foil/foil prices of every holding from the catalog.

    Args:
        inventory: InventoryService; its listing, catalog and store are used.
        delay:     Seconds to wait before each lookup after the first.

    Returns:
        PriceRefreshResult (updated count plus ids of skipped holdings).
    """
    store   = inventory.store
    catalog = inventory.catalog
    result  = PriceRefreshResult()

    holdings = inventory.list_holdings()
    result.total = len(holdings)
    if not holdings:
        log.info("Price refresh: no cards in collection, skipping.")
        return result

    for index, holding in enumerate(holdings):
        if index and delay > 0:
            time.sleep(delay)   # honour Scryfall's ≤ 10 req/s guideline

        holding_id  = holding.id
        scryfall_id = holding.scryfall_id
        try:
            card = catalog.get_card_by_id(scryfall_id)
        except ExternalLookupError as exc:
            log.warning(
                "Price refresh: lookup failed for holding %s (%s), skipping: %s",
                holding_id, scryfall_id, exc,
            )
            result.failed.append(holding_id)
            continue

        with store.mutation(snapshot=False):
            holding.price_usd        = card.get("usd")
            holding.price_usd_foil   = card.get("usd_foil")
            holding.price_updated_at = datetime.now(timezone.utc)
        result.updated += 1

    store.save()
    log.info(
        "Price refresh: %d of %d holdings updated, %d failed.",
        result.updated, result.total, result.failed_count,
    )
    return result
