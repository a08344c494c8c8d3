"""
Exception taxonomy shared by the service layer and the HTTP blueprints.

Services raise these; the application factory turns them into JSON error
responses using each class's status_code.
"""


class DeckVaultError(Exception):
    """Base class for every error the collection engine reports to callers."""
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(DeckVaultError):
    """Missing or invalid caller input (empty update payload, bad quantity…)."""
    status_code = 400


class NotFoundError(DeckVaultError):
    """Referenced holding, deck or deck-card link does not exist."""
    status_code = 404


class ExternalLookupError(DeckVaultError):
    """The card catalog could not be reached or did not know the card."""
    status_code = 502


class PersistenceError(DeckVaultError):
    """The snapshot could not be written; the operation did not complete."""
    status_code = 500
