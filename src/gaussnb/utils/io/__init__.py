"""Model archives and on-disk persistence."""

from .archive import FIELD_ORDER, Archive, DictArchive

__all__ = ["FIELD_ORDER", "Archive", "DictArchive"]
