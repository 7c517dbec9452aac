# src/pipeline/imagery.py - v2
"""Marketing image generation with result caching.

Flow per image: fingerprint -> cache lookup (hit returns immediately) ->
reference colour hint -> retry(executor) -> cache store -> data URI.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Iterable, NamedTuple, Sequence

from pmdesigner.cache.fingerprint import compute_fingerprint
from pmdesigner.core.language import LanguageMode
from pmdesigner.core.models import ContentItem
from pmdesigner.llm.errors import ClassifiedError, classify_error
from pmdesigner.llm.executor import EmptyResponseError, RequestExecutor
from pmdesigner.llm.models import GenerationRequest, InlinePart
from pmdesigner.llm.retry import with_retry
from pmdesigner.logging.context import stage_context
from pmdesigner.media.colors import ColorExtractionError, color_prompt_fragment, extract_palette
from pmdesigner.media.encoding import parse_data_uri
from pmdesigner.pipeline.base_stage import empty_response_error
from pmdesigner.pipeline.prompts import enhance_image_prompt

if TYPE_CHECKING:
    from pmdesigner.cache.result_cache import ResultCache
    from pmdesigner.config.settings import Settings

logger = logging.getLogger(__name__)

STAGE_NAME = "imagery"

_TYPE_DESCRIPTIONS = {
    "main_white": "產品主圖（白底商品圖）",
    "main_lifestyle": "產品情境圖（生活場景）",
}
_DEFAULT_DESCRIPTION = "產品圖片"


class ImageJob(NamedTuple):
    """One image to generate."""

    prompt: str
    aspect_ratio: str | None = None
    reference_image: str | None = None


async def reference_color_hint(part: InlinePart, language: LanguageMode) -> str:
    """Palette fragment for a reference image, "" when it cannot be analysed."""
    try:
        palette = await asyncio.to_thread(extract_palette, part.data)
    except ColorExtractionError as e:
        logger.warning("Colour extraction failed, using plain reference rules: %s", e)
        return ""
    return color_prompt_fragment(palette, language)


class ImageGenerator:
    """Generate images through the executor, memoized by request fingerprint."""

    def __init__(
        self,
        executor: RequestExecutor,
        settings: Settings,
        cache: ResultCache | None = None,
    ) -> None:
        self._executor = executor
        self._settings = settings
        self._cache = cache

    @property
    def cache(self) -> ResultCache | None:
        return self._cache

    async def generate(
        self,
        prompt: str,
        aspect_ratio: str | None = None,
        reference_image: str | None = None,
    ) -> str:
        """Generate one image and return it as a data URI.

        Args:
            prompt: English image prompt.
            aspect_ratio: Target ratio; defaults to the configured ratio.
            reference_image: Optional product photo (data URI) used as a
                style guide. A malformed URI is ignored for the request but
                still part of the fingerprint.

        Raises:
            ClassifiedError: On any generation failure.
        """
        language = LanguageMode(self._settings.language_mode)
        ratio = aspect_ratio or self._settings.default_aspect_ratio
        fingerprint = compute_fingerprint(
            prompt,
            ratio,
            reference_image,
            model=self._settings.image_model,
            image_size=self._settings.image_size,
            language=language.value,
        )

        if self._cache is not None:
            cached = self._cache.lookup(fingerprint)
            if cached is not None:
                logger.info("Serving image %s from cache", fingerprint.digest[:12])
                return cached.payload

        reference_part = parse_data_uri(reference_image) if reference_image else None
        color_hint = ""
        if reference_part is not None:
            color_hint = await reference_color_hint(reference_part, language)
        request = GenerationRequest(
            model=self._settings.image_model,
            prompt=enhance_image_prompt(
                prompt,
                has_reference=reference_part is not None,
                language=language,
                color_hint=color_hint,
            ),
            parts=[reference_part] if reference_part is not None else [],
            aspect_ratio=ratio,
            image_size=self._settings.image_size,
        )

        with stage_context(STAGE_NAME, request.model):
            try:
                data_uri = await with_retry(
                    lambda: self._executor.execute_image(request),
                    self._settings.image_retry_policy,
                    label=STAGE_NAME,
                )
            except ClassifiedError:
                raise
            except EmptyResponseError as e:
                logger.error("%s: %s", STAGE_NAME, e)
                raise empty_response_error(e, language) from e
            except Exception as e:
                classify_error(e, language)

        if self._cache is not None:
            self._cache.store(fingerprint, data_uri, prompt=prompt)
        return data_uri

    async def generate_many(
        self, jobs: Sequence[ImageJob]
    ) -> list[str | ClassifiedError]:
        """Generate images concurrently.

        Results keep the order of ``jobs``; a failed image yields its
        ClassifiedError in place instead of cancelling the others.
        """
        results = await asyncio.gather(
            *(self.generate(*job) for job in jobs), return_exceptions=True
        )
        out: list[str | ClassifiedError] = []
        for result in results:
            if isinstance(result, ClassifiedError):
                out.append(result)
            elif isinstance(result, BaseException):
                raise result
            else:
                out.append(result)
        failed = sum(1 for r in out if isinstance(r, ClassifiedError))
        if failed:
            logger.warning("%d of %d images failed", failed, len(jobs))
        return out


def image_file_name(item: ContentItem) -> str:
    return f"{item.id}.png"


def describe_item(item: ContentItem) -> str:
    """Purpose of a generated image, for the content strategy prompt."""
    if item.type in _TYPE_DESCRIPTIONS:
        return _TYPE_DESCRIPTIONS[item.type]
    return item.visual_summary_zh or item.title_zh or _DEFAULT_DESCRIPTION


def image_description_map(
    items: Iterable[ContentItem], generated_ids: Iterable[str]
) -> dict[str, str]:
    """File name -> purpose for every item whose image was generated."""
    generated = set(generated_ids)
    return {
        image_file_name(item): describe_item(item)
        for item in items
        if item.id in generated
    }
