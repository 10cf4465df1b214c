"""Runtime settings for the wordquiz CLI."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

ENV_DATA_DIR = "WORDQUIZ_DATA_DIR"
ENV_WORD_LIST = "WORDQUIZ_WORD_LIST"
ENV_LOG_LEVEL = "WORDQUIZ_LOG_LEVEL"


@dataclass(frozen=True)
class Settings:
    """Settings resolved from defaults and the environment."""

    data_dir: Path = Path(".wordquiz")
    word_list: Path | None = None
    log_level: str = "WARNING"
    default_save_name: str = "quiz.xml"

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> Settings:
        """Build settings, letting `WORDQUIZ_*` variables override defaults."""
        env = os.environ if environ is None else environ
        defaults = cls()
        data_dir = env.get(ENV_DATA_DIR, "").strip()
        word_list = env.get(ENV_WORD_LIST, "").strip()
        log_level = env.get(ENV_LOG_LEVEL, "").strip()
        return cls(
            data_dir=Path(data_dir) if data_dir else defaults.data_dir,
            word_list=Path(word_list) if word_list else None,
            log_level=log_level.upper() if log_level else defaults.log_level,
        )

    @property
    def default_save_path(self) -> Path:
        return self.data_dir / self.default_save_name
