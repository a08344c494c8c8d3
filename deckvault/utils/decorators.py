from functools import wraps

from deckvault.utils.helpers import get_store


def serialized(f):
    """Run the view while holding the store's writer lock.

    The store has no internal concurrency control, so every endpoint that
    mutates the collection goes through here; reads are not serialized.
    """
    @wraps(f)
    def decorated(*args, **kwargs):
        with get_store().lock:
            return f(*args, **kwargs)
    return decorated
