"""
Splits statement text into transaction-candidate chunks.

Every date token of the profile's grammars starts a chunk; the chunk runs up to
the next date token. Lines without a date are continuation lines of the chunk
before them (wrapped descriptions), until the chunk has a money token and a
page-furniture line (``noise_lines``) shows up. From that line up to the next
date the text is dropped as an ``interstitial`` span.

Every character of the transaction section ends up in exactly one emitted
chunk or one dropped span.
"""

import logging
import re
from typing import List, Optional, Tuple

from statementrecon.normalizers.dates import compile_date_grammar, date_parts
from statementrecon.normalizers.money import build_money_pattern
from statementrecon.parsers_core.errors import DateFormatError
from statementrecon.parsers_core.models import (
    FormatProfile,
    SegmentationResult,
    Span,
    TransactionCandidateChunk,
)

logger = logging.getLogger(__name__)


def _first_match(patterns: List["re.Pattern"], text: str, pos: int = 0):
    best = None
    for pattern in patterns:
        match = pattern.search(text, pos)
        if match and (best is None or match.start() < best.start()):
            best = match
    return best


class Segmenter:
    def __init__(self, profile: FormatProfile):
        self.profile = profile
        self._dates = [compile_date_grammar(g) for g in profile.date_formats]
        self._money = build_money_pattern(profile.money)
        self._section_start = [re.compile(p) for p in profile.section.start]
        self._section_end = [re.compile(p) for p in profile.section.end]
        self._skip = [re.compile(p) for p in profile.skip_rows]
        self._noise = [re.compile(p) for p in profile.noise_lines]

    def section_bounds(self, text: str) -> Tuple[int, int]:
        """(start, end) of the transaction section inside ``text``."""
        start = 0
        match = _first_match(self._section_start, text)
        if match:
            start = match.end()
        end = len(text)
        match = _first_match(self._section_end, text, start)
        if match:
            end = match.start()
        return start, end

    def date_tokens(self, section: str) -> List[Tuple[int, int, str]]:
        """
        Valid date tokens as (start, end, token) in document order.
        Overlapping candidates keep the earliest, then the longest.
        """
        found = []
        for pattern in self._dates:
            for match in pattern.finditer(section):
                try:
                    date_parts(match)
                except DateFormatError:
                    continue
                found.append((match.start("token"), match.end("token"), match.group("token")))
        found.sort(key=lambda t: (t[0], -(t[1] - t[0])))

        tokens = []
        last_end = 0
        for start, end, token in found:
            if start < last_end:
                continue
            tokens.append((start, end, token))
            last_end = end
        return tokens

    def _is_noise_line(self, line: str) -> bool:
        return any(p.search(line) for p in self._noise)

    def _chunk_end(self, section: str, body_start: int, limit: int) -> int:
        offset = body_start
        has_money = False
        for i, line in enumerate(section[body_start:limit].splitlines(keepends=True)):
            if i > 0 and has_money and self._is_noise_line(line):
                return offset
            if self._money.search(line):
                has_money = True
            offset += len(line)
        return limit

    def _head(self, body: str) -> str:
        """The body up to the end of the line holding its first money token."""
        match = self._money.search(body)
        if not match:
            return body
        newline = body.find("\n", match.end())
        return body if newline == -1 else body[:newline]

    def _is_skip_row(self, body: str) -> Optional[str]:
        head = self._head(body)
        for pattern in self._skip:
            if pattern.search(head):
                return pattern.pattern
        return None

    def segment(self, text: str) -> SegmentationResult:
        section_start, section_end = self.section_bounds(text)
        section = text[section_start:section_end]
        result = SegmentationResult(
            section=section, section_start=section_start, section_end=section_end
        )

        tokens = self.date_tokens(section)
        first = tokens[0][0] if tokens else len(section)
        if first > 0:
            result.dropped.append(Span(start=0, end=first, reason="preamble"))

        for i, (start, body_start, token) in enumerate(tokens):
            limit = tokens[i + 1][0] if i + 1 < len(tokens) else len(section)
            end = self._chunk_end(section, body_start, limit)
            body = section[body_start:end]

            skip = self._is_skip_row(body)
            if skip:
                logger.debug("Dropping %r row as noise (matched %r)", token, skip)
                result.dropped.append(Span(start=start, end=end, reason="noise"))
            else:
                result.chunks.append(
                    TransactionCandidateChunk(
                        date_token=token,
                        body=body,
                        chunk_index=len(result.chunks),
                        start=start,
                        end=end,
                        body_start=body_start,
                    )
                )
            if end < limit:
                result.dropped.append(Span(start=end, end=limit, reason="interstitial"))

        logger.debug(
            "Segmented %s chars into %s chunks, %s dropped spans",
            len(section),
            len(result.chunks),
            len(result.dropped),
        )
        return result
