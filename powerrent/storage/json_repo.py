from __future__ import annotations

import glob
import json
import logging
import shutil
import threading
from datetime import date, datetime
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Union

from powerrent.config import Settings

logger = logging.getLogger(__name__)


def _json_default(o: Any) -> Any:
    if isinstance(o, (date, datetime)):
        return o.isoformat()
    if isinstance(o, Decimal):
        return str(o)
    raise TypeError(f"Object of type {o.__class__.__name__} is not JSON serializable")


class JsonStore:
    """
    Store JSON : un fichier <collection>.json par collection dans data_dir.
    - Rotation de backups (backup_enabled, backup_keep)
    - N'écrit pas si le contenu ne change pas (réduction du bruit et des .bak)
    """

    def __init__(
        self,
        data_dir: Union[str, Path],
        *,
        backup_enabled: bool = True,
        backup_keep: int = 5,
    ) -> None:
        self.data_dir = Path(data_dir)
        self.backup_enabled = backup_enabled
        self.backup_keep = max(0, int(backup_keep))
        self._lock = threading.Lock()
        self.data_dir.mkdir(parents=True, exist_ok=True)

    @classmethod
    def from_settings(cls, settings: Settings) -> "JsonStore":
        return cls(
            settings.data_dir,
            backup_enabled=settings.backup_enabled,
            backup_keep=settings.backup_keep,
        )

    def path_for(self, collection: str) -> Path:
        return self.data_dir / f"{collection}.json"

    # ---------------- I/O bas niveau ---------------- #

    def load(self, collection: str) -> List[Dict[str, Any]]:
        path = self.path_for(collection)
        try:
            with path.open("r", encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            return []
        except json.JSONDecodeError:
            # Fichier corrompu → sauvegarde et repart sur liste vide
            backup = path.with_suffix(".corrupt.json")
            logger.error("Collection %s illisible, copie vers %s", collection, backup.name)
            try:
                shutil.copy2(path, backup)
            except OSError as e:
                logger.warning("Copie de %s impossible: %s", path.name, e)
            return []
        if not isinstance(data, list):
            logger.warning("Collection %s: liste attendue, %s trouvé", collection, type(data).__name__)
            return []
        return data

    def _rotate_backups(self, path: Path) -> None:
        if not self.backup_enabled or self.backup_keep <= 0:
            return
        pattern = str(path.with_suffix(".*.bak.json"))
        files = sorted(glob.glob(pattern))
        # garde les plus récents
        if len(files) > self.backup_keep:
            for old in files[: len(files) - self.backup_keep]:
                try:
                    Path(old).unlink(missing_ok=True)
                except OSError as e:
                    logger.warning("Suppression du backup %s impossible: %s", old, e)

    def save(self, collection: str, records: Iterable[Mapping[str, Any]]) -> None:
        path = self.path_for(collection)
        with self._lock:
            new_dump = json.dumps([dict(r) for r in records], ensure_ascii=False, indent=2, default=_json_default)

            # si contenu identique → ne rien faire
            if path.exists() and path.read_text(encoding="utf-8") == new_dump:
                return

            # backup
            if self.backup_enabled and path.exists():
                ts = datetime.now().strftime("%Y%m%d-%H%M%S-%f")
                backup = path.with_suffix(f".{ts}.bak.json")
                try:
                    shutil.copy2(path, backup)
                except OSError as e:
                    logger.warning("Backup de %s impossible: %s", path.name, e)
                self._rotate_backups(path)

            # write
            with path.open("w", encoding="utf-8") as f:
                f.write(new_dump)
            logger.debug("Collection %s écrite (%s)", collection, path)
