from datetime import datetime, timezone
from typing import Optional
import logging

from app.schemas.records import InterviewQuestionSet, JobSpec, Resume

logger = logging.getLogger(__name__)

SEPARATOR = "=" * 50


class ReportGenerator:
    """
    Service responsible for generating formatted reports from stored question sets.
    Handles only formatting logic.
    """

    @staticmethod
    def generate_txt_report(
        question_set: InterviewQuestionSet,
        job_spec: Optional[JobSpec] = None,
        resume: Optional[Resume] = None,
    ) -> str:
        """
        Generate a human-readable text report of a question set.

        Args:
            question_set: The stored question set.
            job_spec: Job spec the questions were generated for (optional, adds a header line).
            resume: Source resume (optional, adds a header line).

        Returns:
            Formatted string content of the report.
        """
        lines = [
            "INTERVIEW QUESTIONS",
            SEPARATOR,
            f"Generated on: {question_set.created_at.astimezone(timezone.utc).strftime('%Y-%m-%d %H:%M:%S')} UTC",
        ]
        if job_spec is not None:
            lines.append(f"Position:     {job_spec.title}")
        if resume is not None:
            lines.append(f"Resume:       {resume.file_name}")
        lines.extend([SEPARATOR, ""])

        for idx, item in enumerate(question_set.questions, 1):
            lines.append(f"{idx}. [{item.type}] {item.question}")
            lines.append(f"   Why: {item.rationale}")
            lines.append("")

        lines.append(SEPARATOR)
        return "\n".join(lines)

    @staticmethod
    def report_filename(question_set: InterviewQuestionSet, now: Optional[datetime] = None) -> str:
        timestamp = (now or datetime.now(timezone.utc)).strftime("%Y%m%d_%H%M%S")
        return f"interview_questions_{question_set.id}_{timestamp}.txt"
