"""
Card catalog client for the Scryfall REST API (HTTP only, never touches the store).

This is the card catalog the collection depends on. Every request waits
until at least 0.1 s has passed since the previous one (Scryfall asks for
50–100 ms between calls) and carries a per-call timeout, so a hung
connection cannot stall a batch. Functions raise ScryfallError on any
non-200 response or network failure.

Scryfall API reference: https://scryfall.com/docs/api
"""
import logging
import threading
import time

import requests

from deckvault.errors import ExternalLookupError

log = logging.getLogger(__name__)

_BASE = "https://api.scryfall.com"
_SESSION = requests.Session()
_SESSION.headers.update({
    "Accept": "application/json;q=0.9,*/*;q=0.8",
    "User-Agent": "deckvault/1.0",
})
_RATE_SLEEP = 0.1   # seconds between requests (Scryfall ToS)
_TIMEOUT = 10.0

_last_request = 0.0
_throttle_lock = threading.Lock()


class ScryfallError(ExternalLookupError):
    """A catalog lookup failed: HTTP error status, bad payload or network trouble.

    http_status carries the upstream status (None for network errors);
    status_code stays the 502 used for our own responses.
    """
    def __init__(self, message: str, http_status: int = None, not_found: bool = False):
        super().__init__(message)
        self.http_status = http_status
        self.not_found = not_found


def configure(timeout: float | None = None) -> None:
    """Apply settings from the app config (called by create_app)."""
    global _TIMEOUT
    if timeout is not None:
        _TIMEOUT = float(timeout)


# ── Internal helpers ──────────────────────────────────────────────────────────

def _throttle() -> None:
    global _last_request
    with _throttle_lock:
        wait = _RATE_SLEEP - (time.monotonic() - _last_request)
        if wait > 0:
            time.sleep(wait)
        _last_request = time.monotonic()


def _get(url: str, params: dict = None) -> dict:
    """Throttled GET; returns the decoded JSON body or raises ScryfallError."""
    _throttle()
    try:
        resp = _SESSION.get(url, params=params, timeout=_TIMEOUT)
    except requests.RequestException as exc:
        raise ScryfallError(f"Network error contacting Scryfall: {exc}") from exc

    if resp.status_code == 404:
        raise ScryfallError("Card not found", http_status=404, not_found=True)
    if resp.status_code == 429:
        raise ScryfallError("Scryfall rate limit hit, try again shortly", http_status=429)
    if not resp.ok:
        raise ScryfallError(
            f"Scryfall returned {resp.status_code}: {resp.text[:200]}",
            http_status=resp.status_code,
        )

    try:
        return resp.json()
    except ValueError as exc:
        raise ScryfallError("Scryfall returned malformed JSON") from exc


def _image_uris(data: dict) -> dict:
    """Image URIs of the card, or of its front face for multi-faced layouts."""
    uris = data.get("image_uris")
    if not uris and data.get("card_faces"):
        uris = data["card_faces"][0].get("image_uris", {})
    return uris or {}


def _to_float(val) -> float | None:
    """Convert Scryfall price string ('1.23', None) to float or None."""
    try:
        return float(val) if val is not None else None
    except (TypeError, ValueError):
        return None


def normalize_card(data: dict) -> dict:
    """Flatten a Scryfall card object into the fields a Holding is built from.

    Colours are joined into one string ("RW", "" for colourless); prices
    become floats or None. Absent or null text fields become "". A payload
    without an id and name, or of the wrong shape, raises ScryfallError.
    """
    try:
        card = _flatten(data)
    except (AttributeError, IndexError, KeyError, TypeError) as exc:
        raise ScryfallError("Scryfall returned malformed card data") from exc
    if not card["scryfall_id"] or not card["name"]:
        raise ScryfallError("Scryfall returned malformed card data")
    return card


def _flatten(data: dict) -> dict:
    uris = _image_uris(data)
    prices = data.get("prices") or {}
    colors = data.get("colors")
    if colors is None and data.get("card_faces"):
        colors = data["card_faces"][0].get("colors")

    return {
        "scryfall_id":      data["id"],
        "name":             data["name"],
        "set_code":         (data.get("set") or "").upper(),
        "set_name":         data.get("set_name") or "",
        "collector_number": data.get("collector_number") or "",
        "colors":           "".join(colors or []),
        "mana_cost":        data.get("mana_cost") or "",
        "type_line":        data.get("type_line") or "",
        "rarity":           data.get("rarity") or "",
        "image_url":        uris.get("normal"),
        "image_small":      uris.get("small"),
        "usd":              _to_float(prices.get("usd")),
        "usd_foil":         _to_float(prices.get("usd_foil")),
    }


# ── Lookups ───────────────────────────────────────────────────────────────────

def get_card_by_id(scryfall_id: str) -> dict:
    """Resolve one printing by Scryfall id. Unknown ids raise ScryfallError(not_found=True)."""
    return normalize_card(_get(f"{_BASE}/cards/{scryfall_id}"))


def get_card_by_name(name: str, fuzzy: bool = False) -> dict:
    """Look a card up by name.

    Exact matching by default; with fuzzy=True Scryfall tolerates typos and
    partial names and picks the most likely card.
    """
    mode = "fuzzy" if fuzzy else "exact"
    return normalize_card(_get(f"{_BASE}/cards/named", params={mode: name}))


def search_cards(query: str) -> list[dict]:
    """First page of results for a Scryfall search query (e.g. "t:goblin c:r").

    A query with no matches returns []; a malformed query raises ScryfallError.
    """
    try:
        data = _get(f"{_BASE}/cards/search", params={"q": query})
    except ScryfallError as exc:
        if exc.not_found:
            return []
        raise
    return [normalize_card(raw) for raw in data.get("data") or []]
