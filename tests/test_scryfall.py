"""
Tests for the Scryfall client: card normalization and HTTP error mapping.

requests is never allowed to reach the network; the module session's
get() is replaced with a stub returning canned responses.
"""
import pytest
import requests

from deckvault.errors import ExternalLookupError
from deckvault.utils import scryfall
from deckvault.utils.scryfall import ScryfallError, normalize_card


class _Response:
    def __init__(self, status_code=200, payload=None, text=""):
        self.status_code = status_code
        self._payload = payload
        self.text = text

    @property
    def ok(self):
        return self.status_code < 400

    def json(self):
        if self._payload is None:
            raise ValueError("No JSON object could be decoded")
        return self._payload


@pytest.fixture
def http(monkeypatch):
    """Queue of responses (or exceptions) handed out by the stubbed session."""
    queue = []
    seen = []

    def fake_get(url, params=None, timeout=None):
        seen.append((url, params, timeout))
        item = queue.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    monkeypatch.setattr(scryfall, "_RATE_SLEEP", 0)
    monkeypatch.setattr(scryfall._SESSION, "get", fake_get)
    return queue, seen


# ── normalize_card ────────────────────────────────────────────────────────────

class TestNormalizeCard:

    def test_single_faced(self, card_data):
        card = normalize_card(card_data("helix", "Lightning Helix", colors=("R", "W"),
                                        usd="0.40", usd_foil=None))
        assert card["scryfall_id"] == "helix"
        assert card["set_code"] == "M11"
        assert card["colors"] == "RW"
        assert card["image_url"] == "https://cards.scryfall.io/normal/helix.jpg"
        assert card["image_small"] == "https://cards.scryfall.io/small/helix.jpg"
        assert card["usd"] == pytest.approx(0.40)
        assert card["usd_foil"] is None

    def test_double_faced_falls_back_to_front_face(self, card_data):
        card = normalize_card(card_data("delver", "Delver of Secrets // Insectile Aberration",
                                        colors=("U",), double_faced=True))
        assert card["image_url"] == "https://cards.scryfall.io/normal/delver.jpg"
        assert card["colors"] == "U"

    def test_bad_price_string_is_none(self, card_data):
        card = normalize_card(card_data("bolt", "Lightning Bolt", usd="n/a"))
        assert card["usd"] is None

    def test_missing_optional_fields(self):
        card = normalize_card({"id": "x", "name": "Mystery"})
        assert card["set_code"] == ""
        assert card["colors"] == ""
        assert card["image_url"] is None
        assert card["usd"] is None

    def test_null_text_fields_become_empty(self, card_data):
        data = card_data("bolt", "Lightning Bolt")
        data.update({"set": None, "set_name": None, "mana_cost": None, "colors": None})
        card = normalize_card(data)
        assert card["set_code"] == ""
        assert card["set_name"] == ""
        assert card["mana_cost"] == ""
        assert card["colors"] == ""

    @pytest.mark.parametrize("payload", [
        {"name": "No Id"},
        {"id": "x"},
        {"id": "x", "name": None},
        {"id": "x", "name": "Bad Prices", "prices": "free"},
        ["not", "a", "card"],
    ])
    def test_malformed_payload_is_lookup_error(self, payload):
        with pytest.raises(ScryfallError, match="malformed card data"):
            normalize_card(payload)


# ── HTTP ──────────────────────────────────────────────────────────────────────

class TestRequests:

    def test_get_card_by_id(self, http, card_data):
        queue, seen = http
        queue.append(_Response(payload=card_data("bolt", "Lightning Bolt")))
        card = scryfall.get_card_by_id("bolt")
        assert card["name"] == "Lightning Bolt"
        url, _, timeout = seen[0]
        assert url.endswith("/cards/bolt")
        assert timeout == scryfall._TIMEOUT

    def test_get_card_by_name_exact_and_fuzzy(self, http, card_data):
        queue, seen = http
        queue.extend([
            _Response(payload=card_data("bolt", "Lightning Bolt")),
            _Response(payload=card_data("bolt", "Lightning Bolt")),
        ])
        scryfall.get_card_by_name("Lightning Bolt")
        scryfall.get_card_by_name("lightnin bolt", fuzzy=True)
        assert seen[0][1] == {"exact": "Lightning Bolt"}
        assert seen[1][1] == {"fuzzy": "lightnin bolt"}

    def test_not_found(self, http):
        queue, _ = http
        queue.append(_Response(status_code=404))
        with pytest.raises(ScryfallError) as exc:
            scryfall.get_card_by_id("nope")
        assert exc.value.not_found is True
        assert exc.value.http_status == 404
        assert exc.value.status_code == 502

    def test_rate_limited(self, http):
        queue, _ = http
        queue.append(_Response(status_code=429))
        with pytest.raises(ScryfallError) as exc:
            scryfall.get_card_by_id("bolt")
        assert exc.value.not_found is False
        assert exc.value.http_status == 429

    def test_server_error(self, http):
        queue, _ = http
        queue.append(_Response(status_code=503, text="maintenance"))
        with pytest.raises(ExternalLookupError, match="503"):
            scryfall.get_card_by_id("bolt")

    def test_network_error(self, http):
        queue, _ = http
        queue.append(requests.ConnectionError("connection refused"))
        with pytest.raises(ExternalLookupError, match="Network error"):
            scryfall.get_card_by_id("bolt")

    def test_timeout(self, http):
        queue, _ = http
        queue.append(requests.Timeout("read timed out"))
        with pytest.raises(ExternalLookupError):
            scryfall.get_card_by_id("bolt")

    def test_malformed_json(self, http):
        queue, _ = http
        queue.append(_Response(payload=None))
        with pytest.raises(ScryfallError, match="malformed"):
            scryfall.get_card_by_id("bolt")

    def test_malformed_card_body(self, http):
        queue, _ = http
        queue.append(_Response(payload={"object": "card", "set": None}))
        with pytest.raises(ExternalLookupError, match="malformed card data"):
            scryfall.get_card_by_id("bolt")

    def test_search(self, http, card_data):
        queue, seen = http
        queue.append(_Response(payload={"data": [
            card_data("bolt", "Lightning Bolt"),
            card_data("helix", "Lightning Helix", colors=("R", "W")),
        ]}))
        results = scryfall.search_cards("lightning")
        assert [c["name"] for c in results] == ["Lightning Bolt", "Lightning Helix"]
        assert seen[0][1] == {"q": "lightning"}

    def test_search_no_match_is_empty(self, http):
        queue, _ = http
        queue.append(_Response(status_code=404))
        assert scryfall.search_cards("xyzzy") == []

    def test_search_bad_query_raises(self, http):
        queue, _ = http
        queue.append(_Response(status_code=400, text="bad query"))
        with pytest.raises(ScryfallError):
            scryfall.search_cards("c:")
