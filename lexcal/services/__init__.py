"""Application services built on the recurrence expander."""

from .expansion_service import ExpansionService

__all__ = ["ExpansionService"]
