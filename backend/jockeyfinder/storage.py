"""
Stockage objet des justificatifs de licence.

Le noyau ne conserve que le chemin retourné par `upload` ; le stockage
lui-même est un service externe. `LocalObjectStorage` écrit sur disque sous
`settings.upload_dir/<bucket>`.
"""
import logging
from pathlib import Path
from typing import Protocol

from jockeyfinder.config import settings
from jockeyfinder.errors import ValidationError

logger = logging.getLogger(__name__)


class ObjectStorage(Protocol):
    def upload(self, path: str, data: bytes) -> str: ...

    def delete(self, path: str) -> None: ...


class LocalObjectStorage:
    def __init__(self, root: str | Path | None = None, bucket: str | None = None):
        self.root = Path(root or settings.upload_dir) / (bucket or settings.verification_bucket)

    def _target(self, path: str) -> Path:
        target = (self.root / path).resolve()
        if self.root.resolve() not in target.parents:
            raise ValidationError(f"Invalid storage path: {path}", field="licence")
        return target

    def upload(self, path: str, data: bytes) -> str:
        target = self._target(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(data)
        logger.info("Justificatif stocké : %s (%d octets)", path, len(data))
        return path

    def delete(self, path: str) -> None:
        self._target(path).unlink(missing_ok=True)
        logger.info("Justificatif supprimé : %s", path)


def get_storage() -> ObjectStorage:
    return LocalObjectStorage()
