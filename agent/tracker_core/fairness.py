"""
Policy gates applied when a new run header appears.

  is_random_speedrun_world() → world name looks like "Random Speedrun #123"
  are_atum_settings_good()   → Atum (world reset mod) uses fair, default settings

Violations are warnings, not errors: the run simply never gets reported.
"""

import json
import re
from pathlib import Path

from .config import log
from .constants import RANDOM_WORLD_PATTERN

_RANDOM_WORLD_RE = re.compile(RANDOM_WORLD_PATTERN)


def is_random_speedrun_world(world_name):
    return bool(_RANDOM_WORLD_RE.match(world_name or ""))


def atum_config_paths(world_path):
    """(old atum.properties, new atum.json) for the instance holding this world."""
    # .minecraft/saves/x -> .minecraft/config
    config_dir = Path(world_path).parent.parent / "config"
    return (
        config_dir / "atum" / "atum.properties",
        config_dir / "mcsr" / "atum.json",
    )


def are_old_atum_settings_good(text):
    for line in text.split("\n"):
        args = line.strip().split("=")
        if len(args) < 2:
            continue
        key, value = args[0].strip(), args[1].strip()
        if key == "generatorType" and value != "0":
            return False
        if key == "bonusChest" and value == "true":
            return False
    return True


def are_new_atum_settings_good(text):
    data = json.loads(text)
    if not isinstance(data, dict):
        raise ValueError("atum.json is not an object")
    return (
        data.get("hasLegalSettings") is True
        and data.get("seed") == ""
        and "difficulty" in data
        and str(data["difficulty"]).lower() != "peaceful"
    )


def are_atum_settings_good(world_path):
    """Check whichever Atum config files exist. At least one must."""
    old_path, new_path = atum_config_paths(world_path)
    old_exists = old_path.exists()
    new_exists = new_path.exists()

    if not (old_exists or new_exists):
        log.warning("You must use the Atum mod %s", old_path)
        return False

    if old_exists:
        try:
            good = are_old_atum_settings_good(old_path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError):
            log.warning("Invalid/Corrupted Atum settings found in %s", old_path)
            log.warning("If you are using the newer Atum with more world generation options, "
                        "you should delete the old config file.")
            return False
        if not good:
            log.warning("Illegal Atum settings found in %s", old_path)
            log.warning("Make sure your Atum settings are set to defaults with no set seed "
                        "and above peaceful difficulty.")
            log.warning("If you are using the newer Atum with more world generation options, "
                        "you should delete the old config file.")
            return False

    if new_exists:
        try:
            good = are_new_atum_settings_good(new_path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, ValueError):
            log.warning("Invalid/Corrupted Atum settings found in %s", new_path)
            log.warning("If you are using the older Atum with less world generation options, "
                        "you should delete the new config file.")
            return False
        if not good:
            log.warning("Illegal Atum settings found in %s", new_path)
            log.warning("Make sure your Atum settings are set to defaults with no set seed "
                        "and above peaceful difficulty.")
            log.warning("If you are using the older Atum with less world generation options, "
                        "you should delete the new config file.")
            return False

    return True
