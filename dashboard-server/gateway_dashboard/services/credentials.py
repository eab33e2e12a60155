from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Optional

from gateway_dashboard.core.config import settings

logger = logging.getLogger(__name__)


class CredentialStore:
    """Persisted API key for the gateway's send endpoint.

    The key lives in a small JSON file (``{"<key name>": "<api key>"}``) so it
    survives restarts. Nothing here expires or revokes it.
    """

    def __init__(self, path: Path | str | None = None, key_name: str | None = None) -> None:
        self.path = Path(path or settings.credential_file).expanduser()
        self.key_name = key_name or settings.credential_key

    def _load(self) -> dict:
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return {}
        except (OSError, ValueError) as exc:
            logger.warning("Ignoring unreadable credential file %s: %s", self.path, exc)
            return {}
        return data if isinstance(data, dict) else {}

    def get(self) -> Optional[str]:
        value = self._load().get(self.key_name)
        return value if isinstance(value, str) and value else None

    def set(self, api_key: str) -> None:
        data = self._load()
        data[self.key_name] = api_key
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp.write_text(json.dumps(data), encoding="utf-8")
        os.chmod(tmp, 0o600)
        tmp.replace(self.path)

    def present(self) -> bool:
        return self.get() is not None
