import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

DEFAULT_MODEL = "claude-sonnet-4-20250514"
DEFAULT_MAX_TOKENS = 4096
DEFAULT_DATA_DIR = ".shopscope"


@dataclass(frozen=True)
class Settings:
    api_key: str | None
    model: str
    max_tokens: int
    data_dir: Path


def load_settings() -> Settings:
    load_dotenv()
    raw_max_tokens = os.getenv("SHOPSCOPE_MAX_TOKENS", "")
    try:
        max_tokens = int(raw_max_tokens) if raw_max_tokens else DEFAULT_MAX_TOKENS
    except ValueError as exc:
        raise ValueError(f"SHOPSCOPE_MAX_TOKENS must be an integer, got '{raw_max_tokens}'") from exc
    return Settings(
        api_key=os.getenv("ANTHROPIC_API_KEY") or None,
        model=os.getenv("SHOPSCOPE_MODEL") or DEFAULT_MODEL,
        max_tokens=max_tokens,
        data_dir=Path(os.getenv("SHOPSCOPE_DATA_DIR") or DEFAULT_DATA_DIR),
    )
