"""
Profile Autodiscovery Utility

This module provides autodiscover_profiles(), which loads every YAML file in the
profile directory, validates it as a FormatProfile and registers it. Use this in
the CLI, tests, or any integration before parsing.

Usage:
    from statementrecon.parsers_core.autodiscover import autodiscover_profiles
    autodiscover_profiles()  # Populates ProfileRegistry

    # List all registered profile codes:
    from statementrecon.parsers_core.registry import ProfileRegistry
    print(ProfileRegistry.list_profiles())
"""

import logging
import pathlib

import yaml
from pydantic import ValidationError

from statementrecon.parsers_core.errors import ProfileConfigurationError
from statementrecon.parsers_core.models import FormatProfile
from statementrecon.parsers_core.registry import ProfileRegistry
from statementrecon.utils.config import COMMON_CONFIG

logger = logging.getLogger(__name__)


def load_profile(path) -> FormatProfile:
    """
    Read and validate one profile file.

    Raises
    ------
    ProfileConfigurationError
        If the file is not valid YAML or does not describe a valid profile.
    """
    path = pathlib.Path(path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ProfileConfigurationError(f"{path.name}: invalid YAML: {e}") from e
    if not isinstance(data, dict):
        raise ProfileConfigurationError(f"{path.name}: expected a mapping")
    try:
        return FormatProfile.model_validate(data)
    except ValidationError as e:
        raise ProfileConfigurationError(f"{path.name}: {e}") from e


def autodiscover_profiles(profile_dir=None):
    """
    Load every *.yaml / *.yml file in ``profile_dir`` (default: the configured
    profile directory) in file-name order and register it.
    Returns the registered profile codes.
    """
    package_dir = pathlib.Path(profile_dir or COMMON_CONFIG["profile_dir"])
    files = sorted(list(package_dir.glob("*.yaml")) + list(package_dir.glob("*.yml")))
    for path in files:
        logger.debug("Loading profile file: %s", path)
        ProfileRegistry.register_profile(load_profile(path))
    logger.debug("Registered profiles: %s", ProfileRegistry.list_profiles())
    return ProfileRegistry.list_profiles()


def ensure_profiles_loaded():
    """Populate the registry on first use; a no-op once profiles exist."""
    if not ProfileRegistry.snapshot():
        autodiscover_profiles()
    return ProfileRegistry.snapshot()
