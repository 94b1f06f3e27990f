from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from cmdroute.core.errors import ValidationError


DEFAULT_HISTORY_LIMIT = 1000


@dataclass(frozen=True)
class RouterConfig:
    """
    Startup configuration for the routing service.

    - catalog_path: YAML catalog; None means the catalog shipped with the package.
    - history_limit: in-memory history cap (0 = unbounded).
    - history_path: optional JSONL mirror of every history entry.
    """

    catalog_path: Optional[Path] = None
    history_limit: int = DEFAULT_HISTORY_LIMIT
    history_path: Optional[Path] = None
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "RouterConfig":
        env = os.environ if environ is None else environ

        catalog = (env.get("CMDROUTE_CATALOG") or "").strip()
        history_path = (env.get("CMDROUTE_HISTORY_PATH") or "").strip()
        raw_limit = (env.get("CMDROUTE_HISTORY_LIMIT") or "").strip()
        log_level = (env.get("CMDROUTE_LOG_LEVEL") or "INFO").strip().upper() or "INFO"

        limit = DEFAULT_HISTORY_LIMIT
        if raw_limit:
            try:
                limit = int(raw_limit)
            except ValueError as e:
                raise ValidationError(
                    code="config.invalid",
                    message="CMDROUTE_HISTORY_LIMIT must be an integer",
                    data={"value": raw_limit},
                ) from e
            if limit < 0:
                raise ValidationError(code="config.invalid", message="CMDROUTE_HISTORY_LIMIT must be >= 0")

        return cls(
            catalog_path=Path(catalog).expanduser() if catalog else None,
            history_limit=limit,
            history_path=Path(history_path).expanduser() if history_path else None,
            log_level=log_level,
        )
