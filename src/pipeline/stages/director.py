# src/pipeline/stages/director.py - v1
"""Phase 1: product photo analysis and marketing routes."""

from __future__ import annotations

from pmdesigner.core.language import LanguageMode
from pmdesigner.core.models import DirectorOutput
from pmdesigner.llm.errors import validation_error
from pmdesigner.llm.models import InlinePart
from pmdesigner.media.encoding import parse_data_uri
from pmdesigner.pipeline.base_stage import StructuredStage, reject_invalid_input
from pmdesigner.pipeline.prompts import DIRECTOR_SYSTEM_PROMPT, director_prompt
from pmdesigner.validation.inputs import validate_brand_context, validate_product_name
from pmdesigner.validation.validators import validate_director_output

_BAD_IMAGE = {
    LanguageMode.ZH_TW: "無法讀取產品圖片，請重新上傳。",
    LanguageMode.EN: "The product image could not be read. Please upload it again.",
}
_IMAGE_TOO_LARGE = {
    LanguageMode.ZH_TW: "檔案大小超過限制（最大 {limit}MB）",
    LanguageMode.EN: "The file exceeds the size limit ({limit}MB max)",
}


class DirectorStage(StructuredStage[DirectorOutput]):
    """Visual marketing director: one photo in, marketing routes out."""

    @property
    def name(self) -> str:
        return "director"

    @property
    def system_prompt(self) -> str:
        return DIRECTOR_SYSTEM_PROMPT

    @property
    def model(self) -> str:
        return self._settings.director_model

    def validate(self, data: object, language: LanguageMode) -> DirectorOutput:
        return validate_director_output(data, language)

    def _image_part(self, image: str | InlinePart) -> InlinePart:
        part = parse_data_uri(image) if isinstance(image, str) else image
        language = self.language
        if part is None:
            raise validation_error(
                "Product image is not a base64 data URI",
                language=language,
                user_message=_BAD_IMAGE[language],
            )
        if part.size_bytes > self._settings.max_image_size_bytes:
            raise validation_error(
                f"Product image is {part.size_bytes} bytes, over the upload limit",
                language=language,
                user_message=_IMAGE_TOO_LARGE[language].format(
                    limit=self._settings.max_image_size_mb
                ),
            )
        return part

    async def analyze(
        self,
        image: str | InlinePart,
        product_name: str = "",
        brand_context: str = "",
    ) -> DirectorOutput:
        """Analyze a product photo and propose marketing routes.

        Args:
            image: Product photo as a data URI or an inline part.
            product_name: Optional product name.
            brand_context: Optional free-form brand information.

        Returns:
            Validated DirectorOutput.

        Raises:
            ClassifiedError: Invalid input, or any generation failure.
        """
        language = self.language
        checks = [
            validate_brand_context(brand_context, self._settings.brand_context_max, language)
        ]
        if product_name:
            checks.append(
                validate_product_name(product_name, self._settings.product_name_max, language)
            )
        reject_invalid_input(checks, language)

        part = self._image_part(image)
        return await self.run(director_prompt(product_name, brand_context), [part])
