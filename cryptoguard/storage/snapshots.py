import hashlib
import json
import os
import time
from pathlib import Path
from typing import Optional

from ..logging_utils import get_logger
from ..models import ScanResult
from ..utils.address import is_evm_address

logger = get_logger(__name__)

SNAPSHOT_DIR = Path(os.getenv("SNAPSHOT_DIR", "/tmp/cryptoguard_snapshots"))
TTL_MIN = int(os.getenv("SNAPSHOT_TTL_MINUTES", "120"))  # 2h por defecto


def _fname(target: str) -> Path:
    # archivo sólo por hash: las URLs traen caracteres no válidos en rutas
    key = target.strip()
    # el hex de una dirección no distingue mayúsculas; la ruta de una URL sí
    if is_evm_address(key):
        key = key.lower()
    h = hashlib.sha256(key.encode("utf-8")).hexdigest()
    return SNAPSHOT_DIR / f"{h}.json"


def save_snapshot(target: str, result: ScanResult) -> str:
    SNAPSHOT_DIR.mkdir(parents=True, exist_ok=True)
    path = _fname(target)
    tmp = path.with_suffix(".tmp")
    with open(tmp, "w", encoding="utf-8") as f:
        f.write(result.model_dump_json())
    os.replace(tmp, path)  # atómico
    return str(path)


def _is_fresh(path: Path) -> bool:
    if TTL_MIN <= 0:
        return True
    try:
        age = time.time() - path.stat().st_mtime
        return age <= TTL_MIN * 60
    except FileNotFoundError:
        return False


def load_snapshot(target: str) -> Optional[ScanResult]:
    path = _fname(target)
    if not path.exists():
        return None
    if not _is_fresh(path):
        path.unlink(missing_ok=True)
        return None
    try:
        with open(path, "r", encoding="utf-8") as f:
            return ScanResult.model_validate(json.load(f))
    except (OSError, ValueError) as e:
        logger.warning("Discarding unreadable snapshot %s: %s", path.name, e)
        return None


def clear_snapshot(target: str) -> None:
    _fname(target).unlink(missing_ok=True)
