import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

ROOT_DIR = Path(__file__).resolve().parent
RESOURCES_DIR = ROOT_DIR / "resources"

_TRUTHY = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    output_dir: Path
    flatten_before_overlay: bool
    checkbox_checked_image: str
    log_level: str


def _env_flag(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in _TRUTHY


def load_settings() -> Settings:
    # Values already present in the environment win over the .env file.
    load_dotenv()
    output_dir = os.environ.get("PDF_OUTPUT_DIR", "").strip()
    return Settings(
        output_dir=Path(output_dir) if output_dir else Path.cwd() / "filled-pdfs",
        flatten_before_overlay=_env_flag("PDF_FLATTEN_BEFORE_OVERLAY", True),
        checkbox_checked_image=os.environ.get("PDF_CHECKBOX_CHECKED_IMAGE", "").strip(),
        log_level=os.environ.get("LOG_LEVEL", "INFO").strip().upper() or "INFO",
    )
