"""
Miscellaneous helpers used across services and blueprints.
"""
from flask import current_app, request

from deckvault.errors import ValidationError


# ── Service lookup (objects are built once in create_app) ─────────────────────

def get_store():
    return current_app.extensions["deckvault.store"]


def get_inventory():
    return current_app.extensions["deckvault.inventory"]


def get_decks():
    return current_app.extensions["deckvault.decks"]


# ── Input coercion ────────────────────────────────────────────────────────────

def json_body() -> dict:
    """Return the request's JSON object, or {} when there is no body."""
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def as_int(value, field: str, minimum: int = 0) -> int:
    """Coerce a quantity-like input to int, rejecting bools, fractions and values below minimum."""
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be an integer")
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field} must be an integer") from None
    if isinstance(value, float) and number != value:
        raise ValidationError(f"{field} must be an integer")
    if number < minimum:
        raise ValidationError(f"{field} must be at least {minimum}")
    return number


def parse_bool(value) -> bool | None:
    """Interpret a JSON or query-string flag (true, 1, "yes", "0"…). None/blank → None."""
    if value is None or isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return bool(value)
    text = str(value).strip().lower()
    if text == "":
        return None
    return text in ("1", "true", "yes", "on")
