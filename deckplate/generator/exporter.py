"""Exporter - writes rendered decks into the export directory.

File names follow ``{slug}_{epoch-ms}.pptx``.  A deck is written to a
temporary file in the same directory and hard-linked into place, so a failed
export never leaves a file behind that could be mistaken for a result.  The
link never replaces an existing export; on a name clash the timestamp is
bumped by one millisecond and the link retried.
"""

import logging
import os
import re
import tempfile
import time
from dataclasses import dataclass
from pathlib import Path

from deckplate.errors import ExportError, NotFoundError
from deckplate.generator.pptx_builder import PPTXBuilder
from deckplate.schema.models import ExportTheme, Presentation, TemplateStyles

logger = logging.getLogger(__name__)

PPTX_CONTENT_TYPE = (
    "application/vnd.openxmlformats-officedocument.presentationml.presentation"
)
PPTX_EXTENSION = ".pptx"

_SLUG_MAX_CHARS = 50
_NAME_ATTEMPTS = 1000


@dataclass
class ExportResult:
    """A successfully written deck."""
    file_path: Path
    file_name: str
    size: int
    content_type: str = PPTX_CONTENT_TYPE

    def to_dict(self) -> dict:
        return {
            "file_path": str(self.file_path),
            "file_name": self.file_name,
            "size": self.size,
            "content_type": self.content_type,
        }


def slugify_title(title: str) -> str:
    """Filesystem-safe stem: letters and digits kept, runs of anything else -> '_'."""
    slug = re.sub(r"[\W_]+", "_", title or "").strip("_")
    return slug[:_SLUG_MAX_CHARS].rstrip("_") or "presentation"


def export_file_name(title: str, timestamp_ms: int | None = None) -> str:
    if timestamp_ms is None:
        timestamp_ms = int(time.time() * 1000)
    return f"{slugify_title(title)}_{timestamp_ms}{PPTX_EXTENSION}"


class PresentationExporter:
    """Renders Presentations and stores them for download.

    Parameters
    ----------
    output_dir : str | Path
        Export directory; created on first use.
    """

    def __init__(self, output_dir: str | Path) -> None:
        self.output_dir = Path(output_dir)

    def export(self, presentation: Presentation,
               theme: ExportTheme | None = None,
               template_styles: TemplateStyles | None = None) -> ExportResult:
        """Render and write one deck.

        ``theme`` wins over ``template_styles``; with neither, default
        colors are used.

        Raises
        ------
        ExportError
            If rendering or writing fails.  No file is left behind.
        """
        if theme is None and template_styles is not None:
            theme = ExportTheme.from_styles(template_styles)
        data = PPTXBuilder(theme).build(presentation)
        return self.write(presentation.title, data)

    def write(self, title: str, data: bytes) -> ExportResult:
        """Store already rendered deck bytes under a name derived from ``title``."""
        timestamp_ms = int(time.time() * 1000)
        try:
            self.output_dir.mkdir(parents=True, exist_ok=True)
            target = self._write_exclusive(title, timestamp_ms, data)
        except OSError as exc:
            raise ExportError(f"Failed to write export of {title!r}: {exc}") from exc

        size = target.stat().st_size
        logger.info("Exported %s (%d bytes)", target, size)
        return ExportResult(file_path=target, file_name=target.name, size=size)

    def _write_exclusive(self, title: str, timestamp_ms: int, data: bytes) -> Path:
        fd, tmp_name = tempfile.mkstemp(dir=self.output_dir, prefix=".tmp_",
                                        suffix=PPTX_EXTENSION)
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(data)
            for _ in range(_NAME_ATTEMPTS):
                target = self.output_dir / export_file_name(title, timestamp_ms)
                try:
                    os.link(tmp_name, target)
                    return target
                except FileExistsError:
                    timestamp_ms += 1
            raise FileExistsError(f"no free export name for {title!r}")
        finally:
            Path(tmp_name).unlink(missing_ok=True)

    def resolve(self, file_name: str) -> Path:
        """Path of a previously exported deck.

        Raises NotFoundError for unknown names and for anything that is not
        a plain file name inside the export directory.
        """
        if (not file_name or Path(file_name).name != file_name
                or file_name.startswith(".")):
            raise NotFoundError(f"Export not found: {file_name!r}")
        path = self.output_dir / file_name
        if not path.is_file():
            raise NotFoundError(f"Export not found: {file_name}")
        return path

    def list_exports(self) -> list[str]:
        if not self.output_dir.is_dir():
            return []
        return sorted(p.name for p in self.output_dir.glob(f"*{PPTX_EXTENSION}")
                      if not p.name.startswith("."))
