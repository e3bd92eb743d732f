"""MidiExporter: renders an ABC tune to a practice MIDI file via music21."""

from __future__ import annotations

import logging
from typing import Any

logger = logging.getLogger(__name__)


class MidiExporter:
    """
    Writes a single-track MIDI file from ABC text.

    music21 parses the ABC (headers, key signature, repeats written out as
    played) and writes a Standard MIDI File. When ``tempo`` is given it
    replaces any ``Q:`` tempo in the tune, so a slow practice version can be
    produced from the same notation.
    """

    DEFAULT_TEMPO = None  # keep the tune's own Q: field, or music21's default
    MIN_TEMPO = 20
    MAX_TEMPO = 300

    def __init__(self, tempo: int | None = DEFAULT_TEMPO) -> None:
        """
        Args:
            tempo: Playback tempo in quarter-note beats per minute, or None.

        Raises:
            ValueError: If ``tempo`` is outside 20-300 BPM.
        """
        if tempo is not None and not self.MIN_TEMPO <= tempo <= self.MAX_TEMPO:
            raise ValueError(f"Tempo must be between {self.MIN_TEMPO} and {self.MAX_TEMPO} BPM.")
        self.tempo = tempo

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _parse_abc_score(self, abc_text: str) -> Any:
        from music21 import converter

        return converter.parseData(abc_text, format="abc")

    def _apply_tempo(self, score: Any) -> None:
        from music21 import tempo

        existing = list(score.recurse().getElementsByClass("MetronomeMark"))
        if existing:
            score.remove(existing, recurse=True)

        target = score.parts[0] if hasattr(score, "parts") and score.parts else score
        measures = list(target.getElementsByClass("Measure"))
        anchor = measures[0] if measures else target
        anchor.insert(0, tempo.MetronomeMark(number=self.tempo))

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def export(self, abc_text: str, output_path: str) -> None:
        """
        Parse ABC text and write it as MIDI.

        Raises:
            ValueError: If the ABC text is empty or cannot be parsed.
            OSError: If the output file cannot be written.
        """
        if not abc_text.strip():
            raise ValueError("ABC text is empty.")

        try:
            score = self._parse_abc_score(abc_text)
        except Exception as exc:
            raise ValueError(f"music21 could not parse the ABC data: {exc}") from exc

        if self.tempo is not None:
            self._apply_tempo(score)

        logger.info("Writing MIDI to %s", output_path)
        score.write("midi", fp=output_path)
