"""
Decks blueprint.

Handles deck CRUD and card membership. Cards stay in the collection; a
deck only links to holdings (mainboard or sideboard).

URLs:
  GET    /api/decks                               – deck list, most recently updated first
  GET    /api/decks/<id>                          – deck + resolved cards + format validation
  POST   /api/decks                               – create deck
  PUT    /api/decks/<id>                          – edit name / format / description
  DELETE /api/decks/<id>                          – delete deck and its card links
  POST   /api/decks/<id>/cards                    – add (or merge) a holding into the deck
  DELETE /api/decks/<deck_id>/cards/<card_id>     – remove one card link
"""
import logging

from flask import Blueprint, jsonify

from deckvault.utils.deck_service import deck_detail
from deckvault.utils.decorators import serialized
from deckvault.utils.helpers import get_decks, json_body

log = logging.getLogger(__name__)
decks_bp = Blueprint("decks", __name__)


# ── Deck list / detail ────────────────────────────────────────────────────────

@decks_bp.route("/api/decks")
def index():
    decks = get_decks().list_decks()
    return jsonify([
        dict(deck.to_dict(), cardCount=deck.mainboard_count + deck.sideboard_count)
        for deck in decks
    ])


@decks_bp.route("/api/decks/<int:deck_id>")
def view_deck(deck_id):
    return jsonify(deck_detail(get_decks().get_deck(deck_id)))


# ── Create / edit / delete ────────────────────────────────────────────────────

@decks_bp.route("/api/decks", methods=["POST"])
@serialized
def new_deck():
    data = json_body()
    deck = get_decks().create_deck(
        data.get("name"),
        format=data.get("format"),
        description=data.get("description"),
    )
    return jsonify(deck.to_dict()), 201


@decks_bp.route("/api/decks/<int:deck_id>", methods=["PUT"])
@serialized
def edit_deck(deck_id):
    data = json_body()
    deck = get_decks().update_deck(
        deck_id,
        name=data.get("name"),
        format=data.get("format"),
        description=data.get("description"),
    )
    return jsonify(deck.to_dict())


@decks_bp.route("/api/decks/<int:deck_id>", methods=["DELETE"])
@serialized
def delete_deck(deck_id):
    get_decks().delete_deck(deck_id)
    return jsonify(message="Deck deleted")


# ── Card membership ───────────────────────────────────────────────────────────

@decks_bp.route("/api/decks/<int:deck_id>/cards", methods=["POST"])
@serialized
def add_card(deck_id):
    data = json_body()
    link = get_decks().add_card(
        deck_id,
        data.get("inventory_id"),
        quantity=data.get("quantity", 1),
        category=data.get("category") or "mainboard",
    )
    return jsonify(message="Card added to deck", card=link.to_dict())


@decks_bp.route("/api/decks/<int:deck_id>/cards/<int:card_id>", methods=["DELETE"])
@serialized
def remove_card(deck_id, card_id):
    get_decks().remove_card(deck_id, card_id)
    return jsonify(message="Card removed from deck")
