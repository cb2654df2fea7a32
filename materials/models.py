"""
materials/models.py -- Domain dataclasses for the study-material catalog.

These are pure data containers with zero logic. Id assignment, type and
size derivation, and reconciliation with the upload directory all live in
materials/registry.py.
"""

from dataclasses import dataclass
from datetime import date

LINK_TYPE = "LINK"
FILE_TYPE = "FILE"  # uploaded file with no extension
LINK_SIZE = "-"


@dataclass(frozen=True)
class Material:
    """A catalogued study resource: an uploaded file or an external link.

    type   -- uppercased file extension ("PDF", "DOCX"), "FILE" when the
              filename has none, or "LINK".
    size   -- "<MiB, 2 decimals> MB" for files, "-" for links.
    url    -- "/uploads/<stored filename>" for files, the raw link for links.
    """

    id: int
    title: str
    type: str
    date_added: date
    size: str
    url: str

    @property
    def is_link(self) -> bool:
        return self.type == LINK_TYPE
