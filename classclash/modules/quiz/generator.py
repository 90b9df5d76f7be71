"""Quiz question generator built on pydantic-ai.

Provides:
- async generate_questions(grade, category, n) -> list[Question]  (raises)
- fallback_questions(grade, category, n) -> list[Question]
- GeminiQuestionSource: the question source used by sessions; never raises

Provider selection follows MODEL_PROVIDER ("google" or "openrouter").
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field, ValidationError
from pydantic_ai import Agent

from classclash.core.config import settings
from classclash.core.logging import get_logger
from classclash.modules.quiz.models import Question


logger = get_logger(__name__)


class QuestionGenerationError(RuntimeError):
    pass


class DraftQuestion(BaseModel):
    """Unvalidated question as produced by the model."""

    text: str
    options: list[str] = Field(default_factory=list)
    correct_answer: str


class QuestionSet(BaseModel):
    """Structured output for MCQ generation."""

    questions: list[DraftQuestion] = Field(default_factory=list)


def _build_google_model():
    """Build Google Gemini model for pydantic-ai (lazy import)."""
    from pydantic_ai.models.google import GoogleModel
    from pydantic_ai.providers.google import GoogleProvider

    provider = GoogleProvider(api_key=settings.gemini_api_key)
    return GoogleModel(settings.gemini_model, provider=provider)


def _build_openrouter_model():
    """Build OpenRouter model via OpenAI-compatible provider (lazy import)."""
    from pydantic_ai.models.openai import OpenAIChatModel
    from pydantic_ai.providers.openai import OpenAIProvider

    provider = OpenAIProvider(
        api_key=settings.openrouter_api_key,
        base_url="https://openrouter.ai/api/v1",
    )
    return OpenAIChatModel(settings.openrouter_model, provider=provider)


def _provider_name() -> str:
    return (settings.model_provider or "google").lower()


def is_configured() -> bool:
    if _provider_name() == "openrouter":
        return bool(settings.openrouter_api_key)
    return bool(settings.gemini_api_key)


def _build_model_by_settings():
    if _provider_name() == "openrouter":
        return _build_openrouter_model()
    return _build_google_model()


SYSTEM_PROMPT = (
    "You are an expert quiz author for school classrooms. Generate educational, "
    "age-appropriate MULTIPLE-CHOICE questions. "
    "Return a JSON object that validates as QuestionSet: {questions}. "
    "Each question has: {text, options, correct_answer}. Rules: "
    "- Create exactly N questions (provided in the instruction). "
    "- Each question must have EXACTLY 4 distinct, concise options (plain text). "
    "- correct_answer is the exact string of the correct option. "
    "- Avoid markdown; do not include code fences."
)


def _build_instruction(grade: str, category: str, n: int) -> str:
    return (
        f"Generate N multiple-choice quiz questions for Grade {grade} students "
        f'in the category "{category}". Return only the JSON object.\n\n'
        f"N: {int(n)}"
    )


async def _run_agent(grade: str, category: str, n: int) -> QuestionSet:
    agent: Agent[None, QuestionSet] = Agent[None, QuestionSet](
        model=_build_model_by_settings(),
        output_type=QuestionSet,
        system_prompt=SYSTEM_PROMPT,
        retries=2,
    )
    res = await agent.run(_build_instruction(grade, category, n))
    return res.output


def clean_questions(drafts: list[DraftQuestion]) -> list[Question]:
    """Strip whitespace and drop drafts that are not valid questions."""
    out: list[Question] = []
    for d in drafts:
        options = tuple(str(o).strip() for o in d.options)
        try:
            out.append(
                Question(
                    text=d.text.strip(),
                    options=options,
                    correct_answer=d.correct_answer.strip(),
                )
            )
        except ValidationError:
            logger.debug(f"Dropping malformed question: {d.text!r}")
    return out


async def generate_questions(
    grade: str, category: str, n: Optional[int] = None
) -> list[Question]:
    """Generate exactly ``n`` questions or raise QuestionGenerationError."""
    n = n or settings.game.question_count
    if not is_configured():
        raise QuestionGenerationError(
            f"No API key configured for provider '{_provider_name()}'"
        )
    try:
        result = await _run_agent(grade, category, n)
    except Exception as e:
        raise QuestionGenerationError(f"Question generation failed: {e}") from e
    questions = clean_questions(result.questions)
    if len(questions) < n:
        raise QuestionGenerationError(
            f"Expected {n} valid questions, got {len(questions)}"
        )
    return questions[:n]


def fallback_questions(
    grade: str, category: str, n: Optional[int] = None
) -> list[Question]:
    n = n or settings.game.question_count
    return [
        Question(
            text=f"Sample Question {i + 1} for Grade {grade} ({category})",
            options=("Option A", "Option B", "Option C", "Option D"),
            correct_answer="Option A",
        )
        for i in range(n)
    ]


class GeminiQuestionSource:
    """Question source for sessions: AI questions, or the placeholder set."""

    def __init__(self, *, count: Optional[int] = None) -> None:
        self.count = count or settings.game.question_count

    async def get_questions(self, grade: str, category: str) -> list[Question]:
        try:
            return await generate_questions(grade, category, self.count)
        except QuestionGenerationError as e:
            logger.warning(f"Using fallback questions for grade {grade} ({category}): {e}")
            return fallback_questions(grade, category, self.count)
