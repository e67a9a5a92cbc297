import logging
from typing import Optional

from app.core.exceptions import LLMServiceError, NormalizationError, ValidationError
from app.core.prompts import (
    PROFILE_NORMALIZATION_SYSTEM_PROMPT,
    PROFILE_SECTIONS,
    generate_profile_normalization_prompt,
)
from app.services.pipeline.llm_service import LLMService

logger = logging.getLogger(__name__)


def build_offline_profile(resume_text: str) -> str:
    """
    Deterministic stand-in profile used when no text-generation credential
    is configured. Carries the same section headers as a real one.
    """
    first_line = next((line.strip() for line in resume_text.splitlines() if line.strip()), "")
    candidate = first_line[:30] or "Candidate Name"

    bodies = {
        "Contact Information": f"- Name: {candidate}\n- Contact: Email address and phone number found in resume",
        "Professional Summary": "- Summary extracted from resume text",
        "Skills": "- Technical Skills: Programming, Development, Data Analysis\n"
                  "- Soft Skills: Communication, Teamwork, Problem-solving",
        "Work Experience": "- Previous relevant positions identified\n- Projects and accomplishments noted",
        "Education": "- Degree information extracted\n- Relevant coursework identified",
        "Additional Information": "- Not provided",
    }
    return "\n\n".join(f"## {section}\n{bodies[section]}" for section in PROFILE_SECTIONS)


class ContentNormalizer:
    """
    Organizes raw resume text into a section-structured profile through the
    text-generation service.
    """

    def __init__(self, llm: Optional[LLMService] = None):
        self.llm = llm

    async def normalize(self, raw_text: str) -> str:
        """
        Return the normalized profile text for ``raw_text``.

        Raises:
            ValidationError: If ``raw_text`` is empty.
            NormalizationError: If the service is unreachable, errors, times
                out, or returns empty content.
        """
        if not raw_text or not raw_text.strip():
            raise ValidationError("Resume text is empty")

        if self.llm is None:
            logger.info("Using offline resume profile (no text-generation credential configured)")
            return build_offline_profile(raw_text)

        estimated_tokens = LLMService.estimate_tokens(raw_text)
        if estimated_tokens > LLMService.get_safe_token_limit():
            logger.warning(
                f"Resume text is large (~{estimated_tokens} tokens, safe limit "
                f"{LLMService.get_safe_token_limit()}); sending it untruncated"
            )

        try:
            profile = await self.llm.complete(
                PROFILE_NORMALIZATION_SYSTEM_PROMPT,
                generate_profile_normalization_prompt(raw_text),
                label="Profile Normalization",
            )
        except LLMServiceError as e:
            raise NormalizationError(
                f"Failed to parse resume content: {e.message}",
                {"reason": "upstream", **e.details},
            ) from e

        if not profile:
            raise NormalizationError("Text-generation service returned an empty profile", {"reason": "empty"})

        logger.info(f"Normalized resume profile ({len(profile)} chars)")
        return profile
