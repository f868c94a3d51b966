import re
from typing import Dict, List, Optional

from statementrecon.parsers.fields import cut_tokens
from statementrecon.parsers_core.models import FormatProfile, MoneyToken
from statementrecon.utils.config import RECONCILIATION_CONFIG


class DescriptionCleaner:
    """Turns a chunk body into the transaction narrative."""

    def __init__(self, profile: FormatProfile, placeholder: Optional[str] = None):
        self.profile = profile
        self.placeholder = placeholder or RECONCILIATION_CONFIG["placeholder_description"]
        self._noise = [re.compile(p) for p in profile.description_noise]

    def clean(
        self,
        body: str,
        tokens: List[MoneyToken],
        remnants: Optional[Dict[int, str]] = None,
    ) -> str:
        text = " ".join(cut_tokens(body, tokens, remnants).split())
        for pattern in self._noise:
            text = pattern.sub(" ", text)
        text = " ".join(text.split())
        return text or self.placeholder
