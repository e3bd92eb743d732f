"""Data models for tunes, settings and sets returned by The Session."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class SessionSetting:
    """One transcription ("setting") of a tune."""

    id: int
    abc: str
    key: str = ""
    meter: str = ""
    date: str = ""


@dataclass(frozen=True)
class SessionTune:
    """A tune summary or detail record; ``settings`` is empty for search hits."""

    id: int
    name: str
    type: str = ""
    settings: list[SessionSetting] = field(default_factory=list)


@dataclass(frozen=True)
class SessionSet:
    """A set (medley) that includes a given tune."""

    id: int
    name: str
    url: str = ""
    date: str = ""


@dataclass(frozen=True)
class ImportedTune:
    """
    A tune ready to be stored in the collection.

    Attributes:
        session_id: The Session's tune id.
        title:      Tune name.
        tune_type:  "reel", "jig", ... as reported by The Session.
        key:        Key exactly as The Session spells it ("Dmixolydian").
        key_name:   Best-effort display form of ``key`` ("D Mixolydian"), or None.
        meter:      Time signature, inferred when the setting has none.
        abc:        Cleaned ABC with a complete header block.
    """

    session_id: int
    title: str
    tune_type: str
    key: str
    key_name: str | None
    meter: str
    abc: str

    @property
    def notes(self) -> str:
        """Provenance note stored alongside the imported tune."""
        text = f"Imported from The Session (tune #{self.session_id})"
        if self.key:
            text += f"\nOriginal key: {self.key}"
        return text
