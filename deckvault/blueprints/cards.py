"""
Cards blueprint.

Scryfall proxy used when picking a printing to add to the collection.

URLs:
  GET  /api/cards/search?q=...           – Scryfall search, normalized card dicts
  GET  /api/cards/named?name=...&fuzzy=  – single card by (fuzzy) name
"""
from flask import Blueprint, jsonify, request

from deckvault.errors import ValidationError
from deckvault.utils.helpers import get_inventory, parse_bool

cards_bp = Blueprint("cards", __name__)


@cards_bp.route("/api/cards/search")
def search():
    q = request.args.get("q", "").strip()
    if not q:
        raise ValidationError("Query parameter required")
    return jsonify(get_inventory().catalog.search_cards(q))


@cards_bp.route("/api/cards/named")
def named():
    name = request.args.get("name", "").strip()
    if not name:
        raise ValidationError("Name parameter required")
    fuzzy = parse_bool(request.args.get("fuzzy"))
    card = get_inventory().catalog.get_card_by_name(name, fuzzy=True if fuzzy is None else fuzzy)
    return jsonify(card)
