"""
Line classification and routing
"""

import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .decoders.base import ProtocolDecoder
from .errors import DecodeFailureError, MalformedLineError
from .models import LineOutcome, LineResult, ProtocolFamily
from .normalizer import MessageNormalizer

logger = logging.getLogger(__name__)

# Evaluation order matters: a FLEX or EAS pattern can also match a POCSAG line
FAMILY_PRECEDENCE = (ProtocolFamily.POCSAG, ProtocolFamily.FLEX, ProtocolFamily.EAS)

class LineDispatcher:
    """Routes each raw line to the first decoder whose pattern matches it"""

    def __init__(self, decoders: Sequence[ProtocolDecoder], normalizer: MessageNormalizer):
        self.normalizer = normalizer
        for decoder in decoders:
            if decoder.family not in FAMILY_PRECEDENCE:
                raise TypeError(
                    f"{type(decoder).__name__} must set family to one of "
                    f"{[family.value for family in FAMILY_PRECEDENCE]}, got {decoder.family.value!r}"
                )
        self.matchers: List[Tuple[ProtocolFamily, ProtocolDecoder]] = sorted(
            ((decoder.family, decoder) for decoder in decoders),
            key=lambda pair: FAMILY_PRECEDENCE.index(pair[0])
        )
        self.line_count = 0
        self.outcomes: Dict[str, int] = {outcome.value: 0 for outcome in LineOutcome}
        self.families: Dict[str, int] = {family.value: 0 for family in ProtocolFamily}

    def match(self, line: str) -> Tuple[ProtocolFamily, Optional[ProtocolDecoder]]:
        for family, decoder in self.matchers:
            if decoder.matches(line):
                return family, decoder
        return ProtocolFamily.UNKNOWN, None

    def classify(self, line: str) -> ProtocolFamily:
        """Protocol family of a raw line"""
        return self.match(line)[0]

    def process_line(self, line: str) -> LineResult:
        """Decode and normalize one line

        Never raises for bad input: every failure comes back as a LineResult
        with a non-EMITTED outcome.
        """
        self.line_count += 1
        family = ProtocolFamily.UNKNOWN
        try:
            family, decoder = self.match(line)
            if decoder is None:
                result = LineResult(line, family, LineOutcome.PASSTHROUGH)
            else:
                decoded = decoder.decode(line)
                message = self.normalizer.normalize(decoded)
                if message is None:
                    result = LineResult(line, family, LineOutcome.REJECTED,
                                        reason="not a message")
                else:
                    result = LineResult(line, family, LineOutcome.EMITTED, message=message)
        except MalformedLineError as e:
            result = LineResult(line, family, LineOutcome.MALFORMED, reason=str(e), error=e)
        except DecodeFailureError as e:
            result = LineResult(line, family, LineOutcome.DECODE_FAILED, reason=str(e), error=e)
        except Exception as e:
            result = LineResult(line, family, LineOutcome.ERROR, reason=repr(e), error=e)

        self.families[result.family.value] += 1
        self.outcomes[result.outcome.value] += 1
        return result

    def get_statistics(self) -> Dict[str, Any]:
        """Get dispatcher and decoder statistics"""
        return {
            'total_lines': self.line_count,
            'outcomes': dict(self.outcomes),
            'families': dict(self.families),
            'normalizer': self.normalizer.get_statistics(),
            'decoders': {
                family.value: decoder.get_statistics()
                for family, decoder in self.matchers
            }
        }
