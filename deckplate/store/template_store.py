"""Template store - durable JSON records of parsed templates.

Directory layout::

    root/
    ├── template_1718000000000_ab12cd34e.json   # ParsedTemplate record
    └── template_1718000000000_ab12cd34e/       # extracted package
        ├── [Content_Types].xml
        └── ppt/...

Records are written to a temporary file and renamed into place, so
concurrent saves of different templates never see each other's partial
writes.  Concurrent save/delete of the *same* id is last-writer-wins.
"""

import json
import logging
import os
import shutil
import tempfile
import time
from pathlib import Path

from deckplate.schema.models import ParsedTemplate

logger = logging.getLogger(__name__)

RECORD_SUFFIX = ".json"
DEFAULT_MAX_AGE_MS = 24 * 60 * 60 * 1000


def is_valid_template_id(template_id: str) -> bool:
    """A plain, non-hidden file name that cannot point outside the store."""
    return (bool(template_id) and Path(template_id).name == template_id
            and not template_id.startswith("."))


class TemplateStore:
    """Persists, loads, lists and purges ParsedTemplate records."""

    def __init__(self, root: str | Path):
        self.root = Path(root)
        self.root.mkdir(parents=True, exist_ok=True)

    def record_path(self, template_id: str) -> Path:
        _check_id(template_id)
        return self.root / f"{template_id}{RECORD_SUFFIX}"

    def working_dir(self, template_id: str) -> Path:
        """Where the package of ``template_id`` is extracted."""
        _check_id(template_id)
        return self.root / template_id

    def save(self, template: ParsedTemplate) -> Path:
        """Insert or replace the record for ``template.template_id``."""
        path = self.record_path(template.template_id)
        fd, tmp_name = tempfile.mkstemp(dir=self.root, prefix=".tmp_",
                                        suffix=RECORD_SUFFIX)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(template.to_dict(), f, ensure_ascii=False, indent=2)
            os.replace(tmp_name, path)
        except Exception:
            Path(tmp_name).unlink(missing_ok=True)
            raise
        logger.debug("Saved template record %s", path)
        return path

    def load(self, template_id: str) -> ParsedTemplate | None:
        """The stored template, or None if there is no readable record."""
        if not is_valid_template_id(template_id):
            return None
        path = self.record_path(template_id)
        if not path.is_file():
            return None
        try:
            with open(path, encoding="utf-8") as f:
                return ParsedTemplate.from_dict(json.load(f))
        except (OSError, ValueError, KeyError, TypeError) as exc:
            logger.error("Failed to load template %s: %s", template_id, exc)
            return None

    def exists(self, template_id: str) -> bool:
        if not is_valid_template_id(template_id):
            return False
        return self.record_path(template_id).is_file()

    def list(self) -> list[ParsedTemplate]:
        """Every readable record, ordered by template id."""
        templates = []
        for path in sorted(self.root.glob(f"*{RECORD_SUFFIX}")):
            if path.name.startswith(".tmp_"):
                continue
            template = self.load(path.stem)
            if template is not None:
                templates.append(template)
        return templates

    def delete(self, template_id: str) -> bool:
        """Remove the record and working dir.  False if neither existed."""
        if not is_valid_template_id(template_id):
            logger.warning("Refusing to delete invalid template id %r", template_id)
            return False
        removed = False
        record = self.record_path(template_id)
        if record.is_file():
            record.unlink()
            removed = True
        work_dir = self.working_dir(template_id)
        if work_dir.is_dir():
            shutil.rmtree(work_dir)
            removed = True
        if removed:
            logger.info("Deleted template %s", template_id)
        return removed

    def cleanup(self, max_age_ms: int = DEFAULT_MAX_AGE_MS) -> int:
        """Remove entries last modified strictly before ``now - max_age_ms``.

        Returns
        -------
        int
            Number of template records removed.  Stale working dirs without
            a record are removed too but not counted.
        """
        cutoff = time.time() - max_age_ms / 1000.0
        removed = 0
        for entry in sorted(self.root.iterdir()):
            try:
                stale = entry.stat().st_mtime < cutoff
            except FileNotFoundError:
                continue
            if entry.is_file() and entry.suffix == RECORD_SUFFIX:
                if stale and is_valid_template_id(entry.stem):
                    self.delete(entry.stem)
                    removed += 1
                elif stale:
                    entry.unlink(missing_ok=True)
            elif entry.is_dir() and stale and not self.exists(entry.name):
                shutil.rmtree(entry, ignore_errors=True)
        if removed:
            logger.info("Cleaned up %d stale template(s)", removed)
        return removed


def _check_id(template_id: str) -> None:
    if not is_valid_template_id(template_id):
        raise ValueError(f"Invalid template id: {template_id!r}")
