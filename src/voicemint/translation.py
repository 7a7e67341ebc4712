"""
Translation of voice-over scripts into the dubbing language.
"""

import logging
from collections.abc import Awaitable, Callable

from google import genai
from openai import AsyncOpenAI

from .errors import ServiceError
from .models import LANGUAGE_OPTIONS

logger = logging.getLogger("voicemint")

DEFAULT_GEMINI_MODEL = "gemini-2.5-flash"
DEFAULT_OPENAI_MODEL = "gpt-4o-mini"

TranslateFunc = Callable[[str, str], Awaitable[str]]


def _translation_prompt(script: str, language: str) -> str:
    return (
        f"Translate the following text to {language}. "
        "Provide only the translation, without any additional comments or formatting. "
        f'Text to translate: "{script}"'
    )


def _require_text(text: str | None, script: str) -> str:
    translated = (text or "").strip()
    if not translated:
        raise ServiceError("Translation returned no text.")
    logger.info(f"Translation completed: {len(script)} -> {len(translated)} characters")
    return translated


async def translate_script_gemini(
    client: genai.Client, script: str, language: str, model: str = DEFAULT_GEMINI_MODEL
) -> str:
    """Translate a script with Gemini."""
    if not script.strip():
        return script
    try:
        logger.info(f"Translating script to {language} using {model}...")
        response = await client.aio.models.generate_content(
            model=model,
            contents=_translation_prompt(script, language),
        )
    except Exception as e:
        logger.error(f"Translation failed: {e}")
        raise ServiceError(f"Translation failed: {e}") from e
    return _require_text(response.text, script)


async def translate_script_openai(
    client: AsyncOpenAI, script: str, language: str, model: str = DEFAULT_OPENAI_MODEL
) -> str:
    """Translate a script with OpenAI GPT."""
    if not script.strip():
        return script
    try:
        logger.info(f"Translating script to {language} using {model}...")
        response = await client.chat.completions.create(
            model=model,
            messages=[
                {
                    "role": "system",
                    "content": "You are a professional translator for video voice-overs. "
                    "Always provide accurate, natural translations.",
                },
                {"role": "user", "content": _translation_prompt(script, language)},
            ],
            temperature=0.1,  # Low temperature for consistent translation
        )
    except Exception as e:
        logger.error(f"Translation failed: {e}")
        raise ServiceError(f"Translation failed: {e}") from e
    return _require_text(response.choices[0].message.content, script)


def make_translator_gemini(client: genai.Client, model: str = DEFAULT_GEMINI_MODEL) -> TranslateFunc:
    async def _translate(script: str, language: str) -> str:
        return await translate_script_gemini(client, script, language, model=model)

    return _translate


def make_translator_openai(client: AsyncOpenAI, model: str = DEFAULT_OPENAI_MODEL) -> TranslateFunc:
    async def _translate(script: str, language: str) -> str:
        return await translate_script_openai(client, script, language, model=model)

    return _translate


def get_language_name(language_code: str) -> str:
    """Get human-readable language name from language code."""
    language_names = {opt.code: opt.label for opt in LANGUAGE_OPTIONS}
    return language_names.get(language_code.lower(), language_code)
