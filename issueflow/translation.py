"""Issue title -> English -> branch-safe slug."""

import html
import re

import httpx

from issueflow.errors import TranslationError
from issueflow.settings import IssueflowSettings


def slugify(text: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", text.lower()).strip("-")


class Translator:
    """Google Cloud Translation v2 over an async httpx client."""

    def __init__(self, api_key: str, settings: IssueflowSettings, client: httpx.AsyncClient | None = None) -> None:
        self._api_key = api_key
        self._endpoint = settings.translate_endpoint
        self._source = settings.translate_source_lang
        self._target = settings.translate_target_lang
        self._client = client

    async def _post(self, params: dict) -> httpx.Response:
        if self._client is not None:
            return await self._client.post(self._endpoint, params=params)
        async with httpx.AsyncClient(timeout=30) as client:
            return await client.post(self._endpoint, params=params)

    async def translate(self, text: str) -> str:
        params = {
            "q": text,
            "source": self._source,
            "target": self._target,
            "format": "text",
            "key": self._api_key,
        }
        try:
            response = await self._post(params)
        except httpx.HTTPError as exc:
            raise TranslationError(f"Translation request failed: {exc}") from exc

        if response.status_code != 200:
            raise TranslationError(f"Translation API error: {response.status_code} {response.reason_phrase}")

        try:
            translations = response.json()["data"]["translations"]
        except (ValueError, KeyError, TypeError) as exc:
            raise TranslationError("Malformed translation API response (expected data.translations)") from exc
        if not isinstance(translations, list) or not translations:
            raise TranslationError("Translation API returned no translations")

        translated = translations[0].get("translatedText") if isinstance(translations[0], dict) else None
        if not translated:
            raise TranslationError("Translation API returned an empty translation")
        return html.unescape(translated)

    async def generate_slug(self, title: str) -> str:
        slug = slugify(await self.translate(title))
        if not slug:
            raise TranslationError(f"Title '{title}' produced an empty slug")
        return slug
