"""Exception taxonomy for template ingestion and deck export.

Package-level and mandatory-structure failures propagate to the caller as
one of these types so an outer layer (CLI, HTTP handler) can map them to an
exit code or status.  Per-slide and per-style failures never surface here;
the parser absorbs them with logged fallbacks.
"""


class DeckplateError(Exception):
    """Base class for every error raised by deckplate."""


class ArchiveError(DeckplateError):
    """The upload is not a zip package, or an entry could not be extracted."""


class XmlParseError(DeckplateError):
    """An OOXML part contains malformed markup."""

    def __init__(self, message: str, part: str | None = None):
        super().__init__(message)
        self.part = part


class TemplateStructureError(DeckplateError):
    """A part the package cannot be interpreted without is missing."""


class VariableBindingError(DeckplateError):
    """Reserved: unresolved placeholders are left in the output, not raised."""


class ExportError(DeckplateError):
    """Serializing or writing a presentation failed."""


class NotFoundError(DeckplateError):
    """A template or exported file does not exist."""
