"""SessionClient: search and import tunes from thesession.org."""

from __future__ import annotations

import logging
import random
import re
from typing import Any, Final

import httpx

from tunebook.abc_cleaner import clean_and_complete
from tunebook.pitch_model import canonical_key_name
from tunebook.session_models import ImportedTune, SessionSet, SessionSetting, SessionTune

logger = logging.getLogger(__name__)

#: Meter implied by each tune type when a setting does not give one.
TUNE_TYPE_METERS: Final[dict[str, str]] = {
    "jig": "6/8",
    "reel": "4/4",
    "hornpipe": "4/4",
    "polka": "4/4",
    "slip jig": "9/8",
    "waltz": "3/4",
}

_METER_IN_ABC_RE = re.compile(r"M:\s*(\d+/\d+)", re.IGNORECASE)


class SessionAPIError(RuntimeError):
    """Raised when The Session cannot be reached or answers with an error."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


def infer_meter(setting: SessionSetting, tune_type: str = "") -> str:
    """
    Work out a setting's time signature.

    The explicit meter wins, then an ``M:`` line inside the ABC, then the
    conventional meter for the tune type. Returns "" when none applies.
    """
    if setting.meter:
        return setting.meter

    match = _METER_IN_ABC_RE.search(setting.abc or "")
    if match:
        return match.group(1)

    return TUNE_TYPE_METERS.get(tune_type.strip().lower(), "")


def _parse_setting(data: dict[str, Any]) -> SessionSetting:
    return SessionSetting(
        id=int(data.get("id", 0)),
        abc=str(data.get("abc") or ""),
        key=str(data.get("key") or ""),
        meter=str(data.get("meter") or ""),
        date=str(data.get("date") or ""),
    )


def _parse_tune(data: dict[str, Any]) -> SessionTune:
    settings = data.get("settings")
    return SessionTune(
        id=int(data["id"]),
        name=str(data.get("name") or "Unknown"),
        type=str(data.get("type") or ""),
        settings=[_parse_setting(item) for item in settings] if isinstance(settings, list) else [],
    )


class SessionClient:
    """
    Thin synchronous client for The Session's JSON API.

    Every request adds ``format=json``. There is no retry: a failed request
    raises :class:`SessionAPIError`. Use as a context manager so the
    underlying connection pool is closed:

        with SessionClient() as client:
            tune = client.import_tune(1)
    """

    BASE_URL: Final[str] = "https://thesession.org"
    USER_AGENT: Final[str] = "tunebook (Irish tune tracker)"
    TIMEOUT: Final[float] = 15.0

    def __init__(
        self,
        base_url: str = BASE_URL,
        timeout: float = TIMEOUT,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """
        Args:
            base_url:  Root URL of the API, without a trailing slash.
            timeout:   Per-request timeout in seconds.
            transport: Optional httpx transport (used by tests to fake responses).
        """
        self.base_url = base_url.rstrip("/")
        self._client = httpx.Client(
            base_url=self.base_url,
            headers={"User-Agent": self.USER_AGENT},
            timeout=timeout,
            transport=transport,
        )

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _get_json(self, path: str, **params: Any) -> dict[str, Any]:
        query = {"format": "json", **params}
        logger.debug("GET %s%s %s", self.base_url, path, query)
        try:
            response = self._client.get(path, params=query)
        except httpx.HTTPError as exc:
            raise SessionAPIError(f"Could not reach The Session: {exc}") from exc

        if response.status_code != 200:
            raise SessionAPIError(
                f"The Session answered {response.status_code} for {path}",
                status_code=response.status_code,
            )

        try:
            payload = response.json()
        except ValueError as exc:
            raise SessionAPIError(f"The Session returned invalid JSON for {path}") from exc
        if not isinstance(payload, dict):
            raise SessionAPIError(f"Unexpected payload for {path}")
        return payload

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def search_tunes(self, query: str) -> list[SessionTune]:
        """Return tunes whose name matches ``query``."""
        payload = self._get_json("/tunes/search", q=query)
        return [_parse_tune(item) for item in payload.get("tunes") or []]

    def popular_tunes(self, page: int = 1, per_page: int = 50) -> list[SessionTune]:
        """Return a page of the most-bookmarked tunes."""
        payload = self._get_json("/tunes/popular", page=page, perpage=per_page)
        return [_parse_tune(item) for item in payload.get("tunes") or []]

    def get_tune(self, tune_id: int) -> SessionTune:
        """Return a tune with all of its settings."""
        return _parse_tune(self._get_json(f"/tunes/{tune_id}"))

    def tune_sets(self, tune_id: int) -> list[SessionSet]:
        """Return the sets that include ``tune_id``."""
        payload = self._get_json(f"/tunes/{tune_id}/sets")
        sets = payload.get("sets")
        if not isinstance(sets, list):
            return []
        return [
            SessionSet(
                id=int(item["id"]),
                name=str(item.get("name") or ""),
                url=str(item.get("url") or ""),
                date=str(item.get("date") or ""),
            )
            for item in sets
        ]

    def import_tune(self, tune_id: int, setting_index: int = 0) -> ImportedTune:
        """
        Fetch a tune and turn one of its settings into complete ABC.

        Raises:
            SessionAPIError: If the request fails or the tune has no such setting.
        """
        tune = self.get_tune(tune_id)
        if not tune.settings:
            raise SessionAPIError(f"Tune {tune_id} has no settings")
        if not 0 <= setting_index < len(tune.settings):
            raise SessionAPIError(
                f"Tune {tune_id} has {len(tune.settings)} setting(s), "
                f"no setting #{setting_index + 1}"
            )

        setting = tune.settings[setting_index]
        meter = infer_meter(setting, tune.type)
        key_name = canonical_key_name(setting.key)
        logger.info(
            "Importing '%s' (#%d): key %r -> %r, meter %r",
            tune.name, tune.id, setting.key, key_name, meter,
        )

        return ImportedTune(
            session_id=tune.id,
            title=tune.name,
            tune_type=tune.type,
            key=setting.key,
            key_name=key_name,
            meter=meter,
            abc=clean_and_complete(setting.abc, tune.name, setting.key, meter),
        )

    def random_set(self, size: int = 3, rng: random.Random | None = None) -> list[ImportedTune]:
        """
        Build a set from ``size`` random popular tunes.

        Tunes whose details cannot be fetched are skipped with a warning.
        """
        chooser = rng or random.Random()
        popular = self.popular_tunes(per_page=100)
        if not popular:
            raise SessionAPIError("No popular tunes available")

        imported: list[ImportedTune] = []
        for tune in chooser.sample(popular, min(size, len(popular))):
            try:
                imported.append(self.import_tune(tune.id))
            except SessionAPIError as exc:
                logger.warning("Skipping tune %d: %s", tune.id, exc)
        return imported

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "SessionClient":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
