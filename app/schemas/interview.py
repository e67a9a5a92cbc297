from pydantic import BaseModel, ConfigDict, Field


# --- LLM Extraction Models ---

class InterviewQuestion(BaseModel):
    """A single generated question with its category and rationale."""
    model_config = ConfigDict(str_strip_whitespace=True)

    type: str = Field(
        ...,
        min_length=1,
        description="Question category as returned by the model (e.g., 'Technical', 'Behavioral')."
    )
    question: str = Field(..., min_length=1, description="The interview question.")
    rationale: str = Field(
        ...,
        min_length=1,
        description="Why this question matters for this candidate and position."
    )


class GeneratedQuestions(BaseModel):
    """Schema for the structured question-generation response."""
    questions: list[InterviewQuestion] = Field(
        ...,
        description="Ordered interview questions. Empty lists are rejected by the generator, not here."
    )
