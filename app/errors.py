"""Exceptions métier du service."""


class SearchValidationError(ValueError):
    """Critères de recherche invalides fournis par l'appelant."""


class InvalidCoordinate(SearchValidationError):
    """Latitude/longitude absente, non finie ou hors bornes."""


class InvalidRadius(SearchValidationError):
    """Rayon de recherche négatif ou non fini."""


class InvalidCategory(SearchValidationError):
    """Catégorie inconnue."""


class CatalogUnavailableError(RuntimeError):
    """Le catalogue n'a pas pu être chargé depuis le stockage."""


class AuthenticationError(Exception):
    """Identifiants invalides."""


class DuplicateUserError(Exception):
    """Email déjà enregistré."""


class AssistantUnavailableError(RuntimeError):
    """L'appel au modèle génératif a échoué."""
