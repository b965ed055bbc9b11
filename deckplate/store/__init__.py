"""Template store package - persistence of parsed templates."""

from .template_store import DEFAULT_MAX_AGE_MS, TemplateStore

__all__ = ["DEFAULT_MAX_AGE_MS", "TemplateStore"]
