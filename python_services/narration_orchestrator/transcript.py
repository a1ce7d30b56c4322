"""Running buffer of finalized speech segments."""

from __future__ import annotations


class TranscriptAccumulator:
    def __init__(self) -> None:
        self._buffer = ""
        self._last_segment = ""

    def is_repeat(self, text: str) -> bool:
        """True when `text` exactly repeats the previous finalized segment."""
        return text == self._last_segment

    def note_segment(self, text: str) -> bool:
        """Remember `text` as the latest finalized segment. False if it was a repeat."""
        if self.is_repeat(text):
            return False
        self._last_segment = text
        return True

    def append_final_segment(self, text: str) -> bool:
        """Add a finalized segment with a single space separator, skipping exact repeats."""
        if not self.note_segment(text):
            return False
        self._buffer = f"{self._buffer} {text}" if self._buffer else text
        return True

    def snapshot(self) -> str:
        return self._buffer

    def clear(self) -> None:
        """Empty the buffer; the repeat guard still remembers the last segment."""
        self._buffer = ""

    def reset(self) -> None:
        self._buffer = ""
        self._last_segment = ""

    def __len__(self) -> int:
        return len(self._buffer)
