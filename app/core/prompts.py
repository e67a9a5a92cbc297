from typing import Iterable, Optional

# Section headers requested from (and produced by) profile normalization, in order
PROFILE_SECTIONS = (
    "Contact Information",
    "Professional Summary",
    "Skills",
    "Work Experience",
    "Education",
    "Additional Information",
)

PROFILE_NORMALIZATION_SYSTEM_PROMPT = (
    "You are an expert resume parser. Extract and organize the key information "
    "from the provided resume text into a clean, structured profile that is easy "
    "to read and analyze."
)

QUESTION_GENERATION_SYSTEM_PROMPT = (
    "You are an expert recruiter specializing in generating tailored interview questions. "
    "Based on the resume content and job details provided, generate 5-10 relevant interview questions. "
    "For each question, include the type (Technical, Behavioral, Situational, General, etc.), "
    "the question itself, and a brief rationale explaining why this question is important "
    "for this candidate and position.\n\n"
    "Return ONLY a JSON object with this structure:\n"
    "{\"questions\": [{\"type\": \"...\", \"question\": \"...\", \"rationale\": \"...\"}]}"
)


def generate_profile_normalization_prompt(resume_text: str) -> str:
    """
    Generate the user prompt for organizing raw resume text into a profile.

    Args:
        resume_text: The full text content of the resume.

    Returns:
        The formatted prompt string.
    """
    sections = "\n".join(f"{idx}. {section}" for idx, section in enumerate(PROFILE_SECTIONS, 1))
    return (
        "Format the resume below using exactly these section headers, in this order, "
        "each written as a markdown heading (## Header):\n"
        f"{sections}\n\n"
        "Keep the wording factual. Use 'Not provided' for a section with no information.\n\n"
        f"Resume Text:\n{resume_text}"
    )


def generate_interview_questions_prompt(
    profile: str,
    job_title: str,
    job_description: str,
    required_skills: Iterable[str],
    responsibilities: Optional[Iterable[str]] = None,
) -> str:
    """
    Generate the user prompt for interview question generation.

    Args:
        profile: The normalized candidate profile.
        job_title: Title of the position.
        job_description: Free-text description of the position.
        required_skills: Skills the position requires.
        responsibilities: Optional responsibilities of the position.

    Returns:
        The formatted prompt string.
    """
    skills_text = ", ".join(required_skills) or "Not specified"
    parts = [
        "Generate interview questions based on this information:\n",
        f"Resume Content:\n{profile}\n",
        f"Job Title: {job_title}\n",
        f"Job Description:\n{job_description}\n",
        f"Required Skills:\n{skills_text}\n",
    ]
    responsibilities = list(responsibilities or [])
    if responsibilities:
        parts.append(f"Responsibilities:\n{', '.join(responsibilities)}\n")
    parts.append(
        "Generate a mix of technical questions to assess skills, behavioral questions to "
        "evaluate past experiences, and situational questions to understand problem-solving approaches."
    )
    return "\n".join(parts)
