"""
Inventory blueprint.

JSON API over the collection's holdings. All writes go through
InventoryService while holding the store lock.

URLs:
  GET    /api/inventory                 – list holdings (?q=text, ?foil=1)
  GET    /api/inventory/<id>            – one holding
  POST   /api/inventory                 – acquire: merge into existing printing/finish or insert
  PUT    /api/inventory/<id>            – partial edit (quantity, foil, condition)
  DELETE /api/inventory/<id>            – remove holding (and its deck links)
  POST   /api/inventory/update-prices   – refresh every holding's prices from Scryfall
"""
import logging

from flask import Blueprint, current_app, jsonify, request

from deckvault.extensions import limiter
from deckvault.utils.decorators import serialized
from deckvault.utils.helpers import get_inventory, json_body, parse_bool

log = logging.getLogger(__name__)
inventory_bp = Blueprint("inventory", __name__)


@inventory_bp.route("/api/inventory")
def list_inventory():
    search = request.args.get("q", "").strip() or None
    foil = parse_bool(request.args.get("foil"))
    holdings = get_inventory().list_holdings(search=search, foil=foil)
    return jsonify([h.to_dict() for h in holdings])


@inventory_bp.route("/api/inventory/<int:holding_id>")
def get_inventory_item(holding_id):
    return jsonify(get_inventory().get_holding(holding_id).to_dict())


@inventory_bp.route("/api/inventory", methods=["POST"])
@serialized
def add_inventory_item():
    data = json_body()
    holding = get_inventory().acquire(
        data.get("scryfall_id"),
        quantity=data.get("quantity", 1),
        foil=bool(parse_bool(data.get("foil"))),
        condition=data.get("condition") or "Near Mint",
    )
    return jsonify(holding.to_dict())


@inventory_bp.route("/api/inventory/<int:holding_id>", methods=["PUT"])
@serialized
def update_inventory_item(holding_id):
    data = json_body()
    holding = get_inventory().edit_holding(
        holding_id,
        quantity=data.get("quantity"),
        foil=parse_bool(data.get("foil")),
        condition=data.get("condition"),
    )
    return jsonify(holding.to_dict())


@inventory_bp.route("/api/inventory/<int:holding_id>", methods=["DELETE"])
@serialized
def delete_inventory_item(holding_id):
    get_inventory().remove_holding(holding_id)
    return jsonify(message="Card deleted")


@inventory_bp.route("/api/inventory/update-prices", methods=["POST"])
@limiter.limit(lambda: current_app.config["PRICE_REFRESH_RATE_LIMIT"])
@serialized
def update_prices():
    from deckvault.utils.price_service import refresh_all_prices

    result = refresh_all_prices(
        get_inventory(), delay=current_app.config["PRICE_REFRESH_DELAY"],
    )
    return jsonify(result.to_dict())
