import logging
import os
from typing import Optional

import yaml

from leadcrawl.domain.config import CrawlSettings
from leadcrawl.exceptions import SettingsError
from leadcrawl.services.settings_parser import SettingsParser

logger = logging.getLogger(__name__)


def load_settings_file(path: Optional[str], base: Optional[CrawlSettings] = None) -> CrawlSettings:
    """Load a YAML settings file on top of `base` (default: CrawlSettings()).

    A missing path or an empty file leaves `base` unchanged. Unreadable or
    malformed YAML raises SettingsError.
    """
    base = base or CrawlSettings()
    if not path:
        return base
    if not os.path.isfile(path):
        logger.warning("Settings file %s not found; using defaults", path)
        return base

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        raise SettingsError(path, str(e)) from e

    settings = SettingsParser().parse(data, base=base, source=os.path.basename(path))
    logger.info("Loaded settings from %s", path)
    return settings
