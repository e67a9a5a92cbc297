"""
Tests for interview question generation.
"""
import json

import pytest

from app.core.exceptions import GenerationError, ValidationError
from app.services.pipeline.question_generator import QuestionGenerator, build_offline_questions

PROFILE = "## Skills\nGo, SQL\n\n## Work Experience\nAcme Corp"


def questions_reply(*items):
    return json.dumps({
        "questions": [
            {"type": kind, "question": question, "rationale": "Relevant to the role."}
            for kind, question in items
        ]
    })


async def test_offline_set_is_deterministic():
    generator = QuestionGenerator(None)

    first = await generator.generate(PROFILE, "Backend Engineer", "Build APIs", ["Go", "SQL"])
    second = await generator.generate(PROFILE, "Backend Engineer", "Build APIs", ["Go", "SQL"])

    assert first == second
    assert [q.type for q in first] == ["Technical", "Behavioral", "Situational", "Technical", "Behavioral"]
    assert "Go" in first[0].question
    assert "Backend Engineer" in first[0].rationale
    assert "Backend Engineer" in first[2].question


def test_offline_set_without_skills_uses_generic_wording():
    questions = build_offline_questions("Data Analyst", [])

    assert "relevant technologies" in questions[0].question


async def test_returns_service_questions_unchanged(llm_factory):
    reply = questions_reply(
        ("Technical", "How do Go goroutines differ from threads?"),
        ("Behavioral", "Tell me about a production incident you led."),
        ("Culture", "What kind of team do you thrive in?"),
    )
    generator = QuestionGenerator(llm_factory(reply))

    questions = await generator.generate(PROFILE, "Backend Engineer", "Build APIs", ["Go", "SQL"])

    # Neither padded to five nor filtered by category
    assert [q.type for q in questions] == ["Technical", "Behavioral", "Culture"]
    assert questions[0].question == "How do Go goroutines differ from threads?"


async def test_prompt_includes_job_details_and_responsibilities(llm_factory):
    llm = llm_factory(questions_reply(("Technical", "Explain SQL indexes.")))

    await QuestionGenerator(llm).generate(
        PROFILE, "Backend Engineer", "Build APIs", ["Go", "SQL"], ["Own the billing service"]
    )

    messages, kwargs = llm.chat_model.calls[0]
    prompt = messages[1].content
    assert "Job Title: Backend Engineer" in prompt
    assert "Go, SQL" in prompt
    assert "Own the billing service" in prompt
    assert PROFILE in prompt
    assert kwargs == {"response_format": {"type": "json_object"}}


async def test_prompt_marks_missing_skills(llm_factory):
    llm = llm_factory(questions_reply(("Technical", "Explain SQL indexes.")))

    await QuestionGenerator(llm).generate(PROFILE, "Backend Engineer", "Build APIs", [])

    messages, _ = llm.chat_model.calls[0]
    assert "Not specified" in messages[1].content
    assert "Responsibilities:" not in messages[1].content


async def test_empty_profile_is_rejected(llm_factory):
    with pytest.raises(ValidationError):
        await QuestionGenerator(llm_factory()).generate("  ", "Backend Engineer", "Build APIs", ["Go"])


@pytest.mark.parametrize("reply, reason", [
    ("Sorry, here are some thoughts instead of JSON.", "malformed"),
    ('{"questions": [{"type": "Technical"}]}', "malformed"),
    ('{"questions": []}', "empty"),
    (TimeoutError("read timed out"), "upstream"),
])
async def test_failures_carry_reason(llm_factory, reply, reason):
    generator = QuestionGenerator(llm_factory(reply))

    with pytest.raises(GenerationError) as exc_info:
        await generator.generate(PROFILE, "Backend Engineer", "Build APIs", ["Go"])

    assert exc_info.value.details["reason"] == reason


async def test_service_timeout_is_upstream_failure(llm_factory):
    generator = QuestionGenerator(llm_factory("late", delay=0.5, timeout=0.05))

    with pytest.raises(GenerationError) as exc_info:
        await generator.generate(PROFILE, "Backend Engineer", "Build APIs", ["Go"])

    assert exc_info.value.details["reason"] == "upstream"
    assert exc_info.value.details["retryable"] is True
