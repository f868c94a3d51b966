from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from statementrecon.normalizers.money import find_money_tokens
from statementrecon.parsers_core.models import (
    FormatProfile,
    MoneyToken,
    TransactionCandidateChunk,
)


class ChunkFields(BaseModel):
    # Money tokens of the chunk body, left to right
    tokens: List[MoneyToken] = Field(default_factory=list)


def cut_tokens(
    body: str, tokens: List[MoneyToken], replacements: Optional[Dict[int, str]] = None
) -> str:
    """
    Remove ``tokens`` from ``body`` by offset. A token whose index is in
    ``replacements`` is replaced by that text instead of a space.
    """
    replacements = replacements or {}
    parts = []
    pos = 0
    for i, token in enumerate(tokens):
        parts.append(body[pos:token.start])
        parts.append(replacements.get(i, " "))
        pos = token.end
    parts.append(body[pos:])
    return "".join(parts)


class FieldExtractor:
    def __init__(self, profile: FormatProfile):
        self.profile = profile

    def extract(self, chunk: TransactionCandidateChunk) -> ChunkFields:
        return ChunkFields(tokens=find_money_tokens(chunk.body, self.profile.money))
