import logging
import re
from typing import Iterable, List, Optional, Tuple

from statementrecon.parsers_core.errors import (
    ProfileConfigurationError,
    WarningCode,
    format_warning,
)
from statementrecon.parsers_core.models import FormatProfile
from statementrecon.parsers_core.registry import ProfileRegistry
from statementrecon.utils.config import COMMON_CONFIG

logger = logging.getLogger(__name__)


class FormatClassifier:
    """
    Picks the FormatProfile for a statement by trying every signature pattern
    in (priority, profile code) order. Document-ID style signatures carry low
    priority values so they win over bank-name substrings.
    """

    def __init__(self, profiles: Optional[Iterable[FormatProfile]] = None):
        if profiles is None:
            profiles = ProfileRegistry.snapshot()
        self.profiles = tuple(profiles)
        self.generic_code = COMMON_CONFIG["generic_profile"]
        self._ordered = self._order_signatures()

    def _order_signatures(self) -> List[Tuple[int, str, "re.Pattern", FormatProfile]]:
        ordered = []
        for profile in self.profiles:
            if profile.code == self.generic_code:
                continue
            for signature in profile.signatures:
                ordered.append(
                    (
                        signature.priority,
                        profile.code,
                        re.compile(signature.pattern),
                        profile,
                    )
                )
        ordered.sort(key=lambda item: (item[0], item[1]))
        return ordered

    def generic_profile(self) -> FormatProfile:
        for profile in self.profiles:
            if profile.code == self.generic_code:
                return profile
        raise ProfileConfigurationError(
            f"No '{self.generic_code}' profile registered; cannot fall back"
        )

    def classify(self, text: str) -> Tuple[FormatProfile, List[str]]:
        """
        Returns (profile, warnings). Warnings hold a FORMAT_UNRECOGNIZED entry
        when no signature matched and the generic profile was used.
        """
        for priority, code, pattern, profile in self._ordered:
            if pattern.search(text):
                logger.info(
                    "Classified statement as %s (signature %r, priority %s)",
                    code,
                    pattern.pattern,
                    priority,
                )
                return profile, []

        warning = format_warning(
            WarningCode.FORMAT_UNRECOGNIZED,
            "No bank signature matched; using the generic profile",
        )
        logger.warning(warning)
        return self.generic_profile(), [warning]
