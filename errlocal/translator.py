"""
Localization of analyses via Lingo.dev.

Translation is a best-effort feature: callers fall back to the English
analysis on any TranslationError.
"""

import logging
import uuid
from typing import Any, Protocol

import requests
from pydantic import ValidationError

from errlocal.exceptions import TranslationError
from errlocal.state import Analysis

logger = logging.getLogger(__name__)

DEFAULT_LINGO_URL = "https://engine.lingo.dev"
SOURCE_LOCALE = "en"


class Translator(Protocol):
    def localize(
        self, obj: dict[str, Any], source_locale: str, target_locale: str
    ) -> dict[str, Any]: ...


class LingoTranslator:
    """Translates JSON-like objects with the Lingo.dev localization engine."""

    def __init__(self, api_key: str, api_url: str | None = None, timeout: float = 30.0):
        if not api_key:
            raise TranslationError("LINGO_API_KEY not found.")
        self.api_key = api_key
        self.api_url = (api_url or DEFAULT_LINGO_URL).rstrip("/")
        self.timeout = timeout

    def localize(
        self, obj: dict[str, Any], source_locale: str, target_locale: str
    ) -> dict[str, Any]:
        payload = {
            "params": {"workflowId": uuid.uuid4().hex, "fast": False},
            "locale": {"source": source_locale, "target": target_locale},
            "data": obj,
        }
        try:
            response = requests.post(
                f"{self.api_url}/i18n",
                json=payload,
                headers={
                    "Content-Type": "application/json",
                    "Authorization": f"Bearer {self.api_key}",
                },
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise TranslationError(f"Translation request failed: {e}") from e

        if not response.ok:
            raise TranslationError(
                f"Translation failed ({response.status_code}): {response.text[:200]}"
            )

        try:
            body = response.json()
        except ValueError as e:
            raise TranslationError(f"Invalid translation response: {e}") from e
        data = body.get("data") if isinstance(body, dict) else None
        if not isinstance(data, dict):
            raise TranslationError("Translation response did not contain an object")
        return data


def localize_analysis(analysis: Analysis, target_locale: str, translator: Translator) -> Analysis:
    """
    Translate the human-readable parts of an analysis.

    The fix action is code, not prose: it is removed before translation and
    re-attached unchanged afterwards.

    Raises:
        TranslationError: If translation fails or returns a different shape.
    """
    if not target_locale or target_locale.lower() == SOURCE_LOCALE:
        return analysis

    payload = analysis.model_dump(by_alias=True, exclude={"fix_action"}, exclude_none=True)
    translated = translator.localize(payload, SOURCE_LOCALE, target_locale)

    try:
        localized = Analysis.model_validate(translated)
    except ValidationError as e:
        raise TranslationError(f"Translated analysis is malformed: {e}") from e
    if len(localized.hints) != len(analysis.hints):
        raise TranslationError("Translated analysis has a different number of hints")

    localized.fix_action = analysis.fix_action
    return localized
