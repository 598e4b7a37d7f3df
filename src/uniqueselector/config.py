from __future__ import annotations

from dataclasses import asdict, dataclass, field, fields
import json
from pathlib import Path
import tempfile
from typing import Any

from .selector_rules import GENERIC_CLASS_TERMS, TEST_ATTR_PRIORITY, TEXT_LENGTH_LIMIT

CONFIG_DIR = Path.home() / ".uniqueselector"
CONFIG_PATH = CONFIG_DIR / "config.json"


@dataclass(slots=True)
class InspectorConfig:
    start_url: str = "https://www.saucedemo.com/"
    headless: bool = False
    slow_mo_ms: int = 300
    viewport_width: int = 1920
    viewport_height: int = 1080
    wait_timeout_ms: int = 5000
    screenshot_dir: str = "screenshots"
    full_page_screenshot: bool = True
    text_length_limit: int = TEXT_LENGTH_LIMIT
    generic_class_terms: list[str] = field(default_factory=lambda: list(GENERIC_CLASS_TERMS))
    test_id_attributes: list[str] = field(default_factory=lambda: list(TEST_ATTR_PRIORITY))
    verification_attempts: int = 2


def _coerce(name: str, raw: Any, default: Any) -> Any:
    if isinstance(default, bool):
        return bool(raw)
    if isinstance(default, int):
        try:
            value = int(raw)
        except (TypeError, ValueError):
            return default
        return value if value >= 0 else default
    if isinstance(default, list):
        if not isinstance(raw, list):
            return default
        items = [str(item).strip() for item in raw if str(item).strip()]
        # An empty attribute list would disable the first rule entirely.
        if name == "test_id_attributes" and not items:
            return default
        return items
    return str(raw or default)


def load_config(config_path: Path | None = None) -> InspectorConfig:
    path = config_path or CONFIG_PATH
    defaults = InspectorConfig()
    if not path.exists() or not path.is_file():
        return defaults

    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError, TypeError):
        return defaults

    if not isinstance(payload, dict):
        return defaults

    values: dict[str, Any] = {}
    for item in fields(InspectorConfig):
        default = getattr(defaults, item.name)
        if item.name in payload:
            values[item.name] = _coerce(item.name, payload[item.name], default)
    return InspectorConfig(**values)


def save_config(config: InspectorConfig, config_path: Path | None = None) -> tuple[bool, str | None]:
    path = config_path or CONFIG_PATH

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        return False, f"Could not create config folder: {exc}"

    payload = json.dumps(asdict(config), ensure_ascii=True, indent=2, sort_keys=True)
    temp_path: Path | None = None
    try:
        with tempfile.NamedTemporaryFile(
            mode="w",
            encoding="utf-8",
            dir=str(path.parent),
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
        ) as handle:
            handle.write(payload)
            handle.flush()
            temp_path = Path(handle.name)

        if temp_path is None:
            return False, "Could not create temporary config file."
        temp_path.replace(path)
    except OSError as exc:
        if temp_path and temp_path.exists():
            temp_path.unlink(missing_ok=True)
        return False, f"Could not write config: {exc}"

    return True, None


def remember_start_url(url: str, config_path: Path | None = None) -> tuple[bool, str | None]:
    """Store ``url`` as the next session's default start page."""
    url = url.strip()
    if not url:
        return True, None
    stored = load_config(config_path)
    if stored.start_url == url:
        return True, None
    stored.start_url = url
    return save_config(stored, config_path)
