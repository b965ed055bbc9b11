"""Runtime settings, read from ``DECKPLATE_*`` environment variables."""

from pathlib import Path
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Directory layout and housekeeping knobs."""

    model_config = SettingsConfigDict(env_prefix="DECKPLATE_")

    data_dir: Path = Path("./data")
    templates_dir: Path | None = None
    exports_dir: Path | None = None
    template_max_age_hours: float = 24.0
    slide_order: Literal["relationships", "filename"] = "relationships"

    @property
    def template_root(self) -> Path:
        """Where parsed-template records and working dirs live."""
        return self.templates_dir or self.data_dir / "templates"

    @property
    def export_root(self) -> Path:
        """Where exported decks are written."""
        return self.exports_dir or self.data_dir / "exports"

    @property
    def template_max_age_ms(self) -> int:
        return int(self.template_max_age_hours * 3600 * 1000)


def get_settings(**overrides) -> Settings:
    """Build settings from the environment, with explicit overrides on top."""
    return Settings(**overrides)
