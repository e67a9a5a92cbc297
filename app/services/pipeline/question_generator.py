"""
Interview question generation.

Combines a normalized candidate profile with a job specification and asks
the text-generation service for a categorized set of questions. The
5-10 question target and the category mix are guidance in the prompt only:
whatever non-empty set comes back is returned as-is.
"""
import logging
from typing import List, Optional, Sequence

from app.core.exceptions import GenerationError, LLMResponseFormatError, LLMServiceError, ValidationError
from app.core.prompts import QUESTION_GENERATION_SYSTEM_PROMPT, generate_interview_questions_prompt
from app.schemas.interview import GeneratedQuestions, InterviewQuestion
from app.services.pipeline.llm_service import LLMService

logger = logging.getLogger(__name__)


def build_offline_questions(job_title: str, required_skills: Sequence[str]) -> List[InterviewQuestion]:
    """
    Fixed example set used when no text-generation credential is configured.
    Deterministic for a given title and skill list.
    """
    lead_skill = required_skills[0] if required_skills else "relevant technologies"
    return [
        InterviewQuestion(
            type="Technical",
            question=f"Could you explain your experience with {lead_skill}?",
            rationale=f"This question directly addresses the candidate's proficiency with a key skill "
                      f"required for the {job_title} position.",
        ),
        InterviewQuestion(
            type="Behavioral",
            question="Describe a challenging project you worked on and how you overcame obstacles.",
            rationale="This reveals problem-solving abilities and resilience, which are important for any position.",
        ),
        InterviewQuestion(
            type="Situational",
            question=f"How would you handle a situation where project requirements for a {job_title} "
                     f"role changed significantly mid-development?",
            rationale="Tests adaptability and change management skills, crucial for modern work environments.",
        ),
        InterviewQuestion(
            type="Technical",
            question=f"What methodologies do you use to ensure code quality as a {job_title}?",
            rationale="Evaluates the candidate's commitment to quality and knowledge of best practices.",
        ),
        InterviewQuestion(
            type="Behavioral",
            question="Tell me about a time when you had to learn a new technology quickly.",
            rationale="Assesses learning agility and self-motivation, important traits for growing in the role.",
        ),
    ]


class QuestionGenerator:
    """Generates categorized interview questions for a candidate/job pair."""

    def __init__(self, llm: Optional[LLMService] = None):
        self.llm = llm

    async def generate(
        self,
        profile: str,
        job_title: str,
        job_description: str,
        required_skills: Sequence[str],
        responsibilities: Optional[Sequence[str]] = None,
    ) -> List[InterviewQuestion]:
        """
        Generate questions for ``profile`` against the given job.

        Raises:
            ValidationError: If the profile is empty.
            GenerationError: ``details['reason']`` is ``upstream`` (service
                error or timeout), ``malformed`` (unparseable structured
                output) or ``empty`` (zero questions).
        """
        if not profile or not profile.strip():
            raise ValidationError("Cannot generate questions from an empty profile")

        if self.llm is None:
            logger.info("Using offline interview questions (no text-generation credential configured)")
            return build_offline_questions(job_title, list(required_skills))

        prompt = generate_interview_questions_prompt(
            profile, job_title, job_description, required_skills, responsibilities
        )

        try:
            result = await self.llm.complete_json(
                QUESTION_GENERATION_SYSTEM_PROMPT,
                prompt,
                GeneratedQuestions,
                label="Question Generation",
            )
        except LLMResponseFormatError as e:
            raise GenerationError(
                "Failed to generate interview questions: malformed response",
                {"reason": "malformed", **e.details},
            ) from e
        except LLMServiceError as e:
            raise GenerationError(
                f"Failed to generate interview questions: {e.message}",
                {"reason": "upstream", **e.details},
            ) from e

        if not result.questions:
            raise GenerationError("Text-generation service returned no questions", {"reason": "empty"})

        categories = sorted({question.type for question in result.questions})
        logger.info(f"Generated {len(result.questions)} questions for '{job_title}' (categories: {categories})")
        return list(result.questions)
