"""Runtime settings, read from the environment.

    CYLINDER_LEDGER_DATA_DIR           directory holding the JSON data files
    CYLINDER_LEDGER_MAX_ATTEMPTS       tries per ledger write on version conflict
    CYLINDER_LEDGER_OPERATION_TIMEOUT  seconds a command may run (0 = no limit)
    CYLINDER_LEDGER_ACTOR              name recorded on movements and history
    CYLINDER_LEDGER_LOG_LEVEL          DEBUG, INFO, WARNING, ...
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

ENV_PREFIX = "CYLINDER_LEDGER_"


@dataclass(frozen=True)
class Settings:
    data_dir: Path
    max_attempts: int = 3
    operation_timeout: float | None = 10.0
    actor: str = "system"
    log_level: str = "WARNING"

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> Settings:
        env = os.environ if environ is None else environ

        def get(name: str, default: str) -> str:
            return env.get(ENV_PREFIX + name, default)

        try:
            max_attempts = int(get("MAX_ATTEMPTS", "3"))
            timeout = float(get("OPERATION_TIMEOUT", "10"))
        except ValueError as exc:
            raise ValueError(f"Invalid {ENV_PREFIX}* setting: {exc}") from exc
        if max_attempts < 1:
            raise ValueError(f"{ENV_PREFIX}MAX_ATTEMPTS must be at least 1")

        return cls(
            data_dir=Path(get("DATA_DIR", "data")).expanduser(),
            max_attempts=max_attempts,
            operation_timeout=timeout if timeout > 0 else None,
            actor=get("ACTOR", env.get("USER", "system")),
            log_level=get("LOG_LEVEL", "WARNING").upper(),
        )
