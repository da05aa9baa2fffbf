"""
Exception hierarchy for towerfall.

The rule engine absorbs bad document entries itself (warn and skip).
These exceptions only surface at the loading boundaries: reading catalog
files, parsing raw documents into models, and reading saved snapshots.
"""


class TowerfallError(Exception):
    """Base exception for towerfall."""
    pass


class DocumentError(TowerfallError):
    """Raised when a raw document cannot be parsed into its model."""

    def __init__(self, kind: str, detail: str):
        self.kind = kind
        self.detail = detail
        super().__init__(f"Invalid {kind} document: {detail}")


class CatalogLoadError(TowerfallError):
    """Raised when a catalog file is missing or unreadable."""

    def __init__(self, path: str, detail: str):
        self.path = path
        self.detail = detail
        super().__init__(f"Could not load catalog {path}: {detail}")
