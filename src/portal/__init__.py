"""Query interface of the reefer risk portal."""

from .service import ReeferPortal

__all__ = ["ReeferPortal"]
