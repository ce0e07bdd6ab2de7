import json
import os
from typing import Optional

from solders.keypair import Keypair

from .config import get_settings
from .errors import KeypairError


def load_keypair(path: Optional[str] = None) -> Keypair:
    """Read a JSON keypair file: a 64-byte integer array, or an object with ``secretKey``."""
    path = path or get_settings().keypair_path
    if not path:
        raise KeypairError("KEYPAIR_PATH not configured")
    path = os.path.expanduser(path)
    if not os.path.exists(path):
        raise KeypairError(f"Keypair file not found: {path}")
    try:
        with open(path, "r", encoding="utf-8") as fh:
            data = json.load(fh)
    except (OSError, ValueError) as exc:
        raise KeypairError(f"Failed to read keypair {path}: {exc}") from exc
    if isinstance(data, list):
        values = data
    elif isinstance(data, dict) and "secretKey" in data:
        values = data["secretKey"]
    else:
        raise KeypairError(f"Unsupported keypair format in {path}")
    try:
        return Keypair.from_bytes(bytes(values))
    except Exception as exc:  # noqa: BLE001
        raise KeypairError(f"Failed to parse keypair {path}: {exc}") from exc
