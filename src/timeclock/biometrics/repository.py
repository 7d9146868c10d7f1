from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import Template, TemplateEntry


class TemplateRepository(Protocol):
    """Durable store of enrolled face templates (source of truth for the cache)."""

    def list_enrolled(self) -> Sequence[TemplateEntry]:
        """All identities that have a template, regardless of activity status."""

        raise NotImplementedError

    def get_entry(self, employee_id: int) -> Optional[TemplateEntry]:
        raise NotImplementedError

    def save_template(self, employee_id: int, template: Template) -> Optional[TemplateEntry]:
        """Replace the template of ``employee_id``.

        Returns the refreshed entry, or None when the employee does not exist.
        """

        raise NotImplementedError

    def clear_template(self, employee_id: int) -> bool:
        raise NotImplementedError
