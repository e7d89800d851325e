"""
Boundary-Seeking Text Splitter

Splits long text into slices of at most ``max_length`` characters, cutting
at the most natural boundary available inside each window.

Boundary priority
-----------------
1. Paragraph break (``"\\n\\n"``)
2. Sentence terminator (``". "``)
3. Word boundary (``" "``)
4. Hard cut at the window end

The cut is always placed *after* the boundary marker, so the untrimmed
spans returned by :meth:`BoundarySplitter.spans` concatenate back to the
original text exactly.
"""

from __future__ import annotations

from typing import Iterator, List, Tuple


PARAGRAPH_BREAK = "\n\n"
SENTENCE_BREAK = ". "
WORD_BREAK = " "

BOUNDARIES: Tuple[str, ...] = (PARAGRAPH_BREAK, SENTENCE_BREAK, WORD_BREAK)


class BoundarySplitter:
    """
    Greedy splitter with a fixed character budget per slice.
    """

    def __init__(self, max_length: int = 10000) -> None:
        if max_length <= 0:
            raise ValueError("max_length must be positive")
        self.max_length = max_length

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def spans(self, text: str) -> Iterator[Tuple[int, int]]:
        """
        Yield ``(start, end)`` offsets of consecutive untrimmed slices.

        Offsets are contiguous: each span starts where the previous one
        ended, the first starts at 0 and the last ends at ``len(text)``.
        """
        current = 0
        length = len(text)

        while current < length:
            window_end = current + self.max_length
            if window_end >= length:
                end = length
            else:
                end = self._find_cut(text, current, window_end)
            yield current, end
            current = end

    def split(self, text: str) -> List[str]:
        """
        Split text into trimmed, non-empty slices in reading order.
        """
        slices = (text[start:end].strip() for start, end in self.spans(text))
        return [piece for piece in slices if piece]

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _find_cut(text: str, current: int, window_end: int) -> int:
        # The marker must start after `current` and fit inside the window.
        for marker in BOUNDARIES:
            position = text.rfind(marker, current + 1, window_end)
            if position > current:
                return position + len(marker)
        return window_end


def split_text(text: str, max_length: int = 10000) -> List[str]:
    """Convenience wrapper around :class:`BoundarySplitter`."""
    return BoundarySplitter(max_length).split(text)
