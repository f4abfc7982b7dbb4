import logging
from typing import Any, Optional

from leadcrawl.domain.config import CrawlSettings
from leadcrawl.exceptions import SettingsError

logger = logging.getLogger(__name__)


class SettingsParser:
    """Parse a YAML dict into CrawlSettings.

    Responsibility: schema/validation for settings files. It does NOT
    perform filesystem IO.

    Keys are CrawlSettings field names. Fetch options may also be nested
    the same way crawler configs do it:

        fetch:
          mode: headless_chromium
          headless_chromium:
            settle_ms: 1500
    """

    def _flatten(self, data: dict, source: str) -> dict:
        flat = {k: v for k, v in data.items() if k != "fetch"}
        fetch = data.get("fetch")
        if fetch is None:
            return flat
        if not isinstance(fetch, dict):
            raise SettingsError(source, "'fetch' must be a mapping")
        mode = fetch.get("mode")
        if mode is not None:
            flat["fetch_mode"] = mode
            mode_options = fetch.get(mode) or {}
            if not isinstance(mode_options, dict):
                raise SettingsError(source, f"'fetch.{mode}' must be a mapping")
            flat.update(mode_options)
        return flat

    def _coerce(self, key: str, value: Any, current: Any, source: str) -> Any:
        try:
            if isinstance(current, tuple):
                if isinstance(value, str):
                    return (value,)
                if not isinstance(value, (list, tuple)):
                    raise TypeError("expected a string or a list of strings")
                return tuple(str(v) for v in value)
            if isinstance(current, bool):
                if not isinstance(value, bool):
                    raise TypeError("expected true or false")
                return value
            if isinstance(current, int):
                return int(value)
            if isinstance(current, float):
                return float(value)
            return str(value).strip()
        except (TypeError, ValueError) as e:
            raise SettingsError(source, f"{key}: {e}") from e

    def parse(self, data: Optional[dict], base: Optional[CrawlSettings] = None, source: str = "<mapping>") -> CrawlSettings:
        base = base or CrawlSettings()
        if not data:
            return base
        if not isinstance(data, dict):
            raise SettingsError(source, "top level must be a mapping")

        known = CrawlSettings.field_names()
        overrides = {}
        for key, value in self._flatten(data, source).items():
            if key not in known:
                logger.warning("Ignoring unknown setting %r in %s", key, source)
                continue
            overrides[key] = self._coerce(key, value, getattr(base, key), source)

        try:
            return base.with_overrides(**overrides)
        except ValueError as e:
            raise SettingsError(source, str(e)) from e
