"""
Shared fixtures.

Every test gets its own app with an in-memory collection and a snapshot
file under tmp_path. The Scryfall client is replaced by FakeCatalog, so no
test touches the network.
"""
import pytest

from deckvault import create_app
from deckvault.utils.scryfall import ScryfallError, normalize_card


def raw_card(
    scryfall_id: str,
    name: str,
    colors=("R",),
    usd="1.50",
    usd_foil="3.00",
    type_line="Instant",
    set_code="m11",
    double_faced: bool = False,
) -> dict:
    """A Scryfall-shaped card object."""
    data = {
        "id":               scryfall_id,
        "name":             name,
        "set":              set_code,
        "set_name":         "Magic 2011",
        "collector_number": "149",
        "mana_cost":        "{R}",
        "type_line":        type_line,
        "rarity":           "common",
        "colors":           list(colors),
        "prices":           {"usd": usd, "usd_foil": usd_foil},
    }
    images = {
        "small":  f"https://cards.scryfall.io/small/{scryfall_id}.jpg",
        "normal": f"https://cards.scryfall.io/normal/{scryfall_id}.jpg",
    }
    if double_faced:
        del data["colors"]
        data["card_faces"] = [
            {"name": name.split(" // ")[0], "colors": list(colors), "image_uris": images},
            {"name": name.split(" // ")[-1], "colors": list(colors), "image_uris": {
                "normal": f"https://cards.scryfall.io/normal/{scryfall_id}-back.jpg",
            }},
        ]
    else:
        data["image_uris"] = images
    return data


class FakeCatalog:
    """Stands in for deckvault.utils.scryfall in tests."""

    def __init__(self):
        self.cards = {}
        self.failing = set()
        self.calls = []

    def add(self, data: dict) -> None:
        self.cards[data["id"]] = data

    def get_card_by_id(self, scryfall_id: str) -> dict:
        self.calls.append(scryfall_id)
        if scryfall_id in self.failing:
            raise ScryfallError("Network error contacting Scryfall: read timed out")
        if scryfall_id not in self.cards:
            raise ScryfallError("Card not found", http_status=404, not_found=True)
        return normalize_card(self.cards[scryfall_id])

    def get_card_by_name(self, name: str, fuzzy: bool = False) -> dict:
        for data in self.cards.values():
            matches = name.lower() in data["name"].lower() if fuzzy else name == data["name"]
            if matches:
                return normalize_card(data)
        raise ScryfallError("Card not found", http_status=404, not_found=True)

    def search_cards(self, query: str) -> list[dict]:
        return [
            normalize_card(d) for d in self.cards.values()
            if query.lower() in d["name"].lower()
        ]


@pytest.fixture
def catalog():
    cat = FakeCatalog()
    cat.add(raw_card("bolt", "Lightning Bolt"))
    cat.add(raw_card("counterspell", "Counterspell", colors=("U",), usd="0.75", usd_foil=None))
    cat.add(raw_card("helix", "Lightning Helix", colors=("R", "W"), usd="0.40", usd_foil="1.10"))
    cat.add(raw_card("sol-ring", "Sol Ring", colors=(), usd="2.00", usd_foil="9.00",
                     type_line="Artifact"))
    cat.add(raw_card("mountain", "Mountain", colors=(), usd="0.05", usd_foil=None,
                     type_line="Basic Land — Mountain"))
    cat.add(raw_card("delver", "Delver of Secrets // Insectile Aberration", colors=("U",),
                     usd=None, usd_foil=None, type_line="Creature — Human Wizard",
                     double_faced=True))
    return cat


@pytest.fixture
def snapshot_path(tmp_path):
    return str(tmp_path / "collection.db")


@pytest.fixture
def make_app(catalog, snapshot_path):
    """Factory so a test can build a second app over the same snapshot."""
    def _make(**overrides):
        cfg = {"SNAPSHOT_PATH": snapshot_path}
        cfg.update(overrides)
        return create_app("testing", catalog=catalog, config_overrides=cfg)
    return _make


@pytest.fixture
def app(make_app):
    app = make_app()
    with app.app_context():
        yield app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def store(app):
    return app.extensions["deckvault.store"]


@pytest.fixture
def inventory(app):
    return app.extensions["deckvault.inventory"]


@pytest.fixture
def decks(app):
    return app.extensions["deckvault.decks"]


@pytest.fixture
def card_data():
    """The raw_card builder, for tests that change what the catalog answers."""
    return raw_card
