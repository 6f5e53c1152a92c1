import base64
import json
import logging
from typing import Optional

from pydantic import ValidationError

from app.core import prompts
from app.core.config import settings
from app.core.exceptions import AppException, ExtractionError
from app.schemas.analysis import ExtractedAnalysis, response_format
from app.services.openrouter_client import OpenRouterClient

logger = logging.getLogger(__name__)


class StructuredExtractor:
    """
    Sends the resume file and the extraction instruction to the model in a
    single schema-constrained request and parses the reply verbatim.
    """

    def __init__(self, client: OpenRouterClient, model: Optional[str] = None, locale: Optional[str] = None):
        self.client = client
        self.model = model or settings.ai.extraction_model
        self.locale = locale or settings.jobs.locale

    def build_messages(self, content: bytes, mime_type: str, filename: str):
        encoded = base64.b64encode(content).decode("ascii")
        instruction = prompts.get_prompt(prompts.RESUME_EXTRACTION_INSTRUCTION, locale=self.locale)
        return [
            {
                "role": "user",
                "content": [
                    {
                        "type": "file",
                        "file": {
                            "filename": filename,
                            "file_data": f"data:{mime_type};base64,{encoded}",
                        },
                    },
                    {"type": "text", "text": instruction},
                ],
            }
        ]

    async def extract(self, content: bytes, mime_type: str, filename: str = "resume") -> ExtractedAnalysis:
        logger.info(f"Extracting structured analysis from {filename} ({mime_type}, {len(content)} bytes)")

        try:
            reply = await self.client.complete(
                self.build_messages(content, mime_type, filename),
                model=self.model,
                response_format=response_format(),
            )
        except AppException as e:
            logger.error(f"Resume extraction request failed: {e.message}")
            raise ExtractionError(f"AI analysis failed: {e.message}") from e

        try:
            data = json.loads(reply.strip())
        except json.JSONDecodeError as e:
            logger.error(f"Extraction reply is not valid JSON: {e}")
            raise ExtractionError("AI analysis returned malformed JSON.") from e

        if not isinstance(data, dict):
            raise ExtractionError("AI analysis did not return a JSON object.")

        try:
            analysis = ExtractedAnalysis.model_validate(data)
        except ValidationError as e:
            raise ExtractionError(f"AI analysis did not match the expected schema: {e.error_count()} error(s).") from e

        logger.info(
            f"Extraction complete: {len(analysis.skills)} skills, "
            f"{len(analysis.feedback)} suggestions, {len(analysis.job_titles)} job titles"
        )
        return analysis
