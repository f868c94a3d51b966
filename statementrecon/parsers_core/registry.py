import logging
import threading
from typing import Dict, List, Optional, Tuple

from .models import FormatProfile

logger = logging.getLogger(__name__)


class ProfileRegistry:
    """
    Process-wide table of FormatProfiles.

    The table is an immutable tuple swapped under a lock on registration, so a
    parse that took a snapshot keeps seeing the same profiles even if another
    thread registers a new one.
    """

    _profiles: Tuple[FormatProfile, ...] = ()
    _lock = threading.Lock()

    @classmethod
    def register_profile(cls, profile: FormatProfile):
        logger.debug(
            "Registering profile: %s (v%s) -> %s",
            profile.code,
            profile.version,
            profile.bank_name,
        )
        with cls._lock:
            kept = tuple(p for p in cls._profiles if p.code != profile.code)
            cls._profiles = kept + (profile,)

    @classmethod
    def get_profile(cls, code: str) -> Optional[FormatProfile]:
        for profile in cls._profiles:
            if profile.code == code:
                return profile
        return None

    @classmethod
    def list_profiles(cls) -> List[str]:
        return [p.code for p in cls._profiles]

    @classmethod
    def snapshot(cls) -> Tuple[FormatProfile, ...]:
        return cls._profiles

    @classmethod
    def clear(cls):
        with cls._lock:
            cls._profiles = ()

    @classmethod
    def detect_profile_for_text(cls, text: str) -> str:
        """
        Returns the code of the profile the classifier picks for ``text``.
        Falls back to the generic profile code when nothing matches.
        """
        from statementrecon.parsers.classifier import FormatClassifier

        profile, _ = FormatClassifier(cls.snapshot()).classify(text)
        return profile.code

    @classmethod
    def batch_detect_profiles(cls, texts: Dict[str, str]) -> Dict[str, str]:
        """
        Returns a dict mapping source name -> detected profile code.
        """
        return {name: cls.detect_profile_for_text(text) for name, text in texts.items()}
