"""
Learning content generated by the LLM.

Three generators, each returning validated pydantic objects:
- generate_roadmap(): title, description and ordered modules for a job role
- generate_assessment(): multiple-choice quiz for one module
- generate_resource_recommendations(): videos/articles/docs for one module

Any failure (provider error, no JSON, JSON of the wrong shape) raises
ContentGenerationError. Nothing is retried here.
"""

import json
import logging
from typing import Literal

from langchain_core.messages import HumanMessage, SystemMessage
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from skillroad.services.llm import get_llm

logger = logging.getLogger(__name__)


class ContentGenerationError(Exception):
    """The LLM gave us nothing usable."""


# ─── Generated shapes (camelCase, exactly as the prompts ask for) ───

class GeneratedModule(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    title: str
    description: str = ""
    estimated_hours: float = Field(default=0, alias="estimatedHours")
    skills: list[str] = Field(default_factory=list)


class GeneratedRoadmap(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    title: str
    description: str = ""
    total_estimated_hours: float = Field(default=0, alias="totalEstimatedHours")
    modules: list[GeneratedModule] = Field(min_length=1)


class QuestionOption(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    option: str
    is_correct: bool = Field(default=False, alias="isCorrect")


class AssessmentQuestion(BaseModel):
    question: str
    options: list[QuestionOption] = Field(min_length=2)
    explanation: str = ""


class GeneratedAssessment(BaseModel):
    title: str
    description: str = ""
    questions: list[AssessmentQuestion] = Field(min_length=1)


class ResourceRecommendation(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    title: str
    type: Literal["video", "article", "documentation"] = "video"
    search_query: str = Field(alias="searchQuery")
    provider: str = ""
    estimated_duration: str = Field(default="", alias="estimatedDuration")


class _ResourceList(BaseModel):
    resources: list[ResourceRecommendation]


# ─── Prompts ─────────────────────────────────────────────────────────

ROADMAP_SYSTEM = (
    "You are an expert career advisor and curriculum designer. Create detailed, "
    "practical learning roadmaps that prepare students for real-world jobs."
)

ROADMAP_PROMPT = """Create a comprehensive learning roadmap for becoming a {job_role} at {experience_level} level.

Requirements:
- Provide 6-12 learning modules in logical progression order
- Each module should have a clear title, description, and estimated hours
- Include key skills that will be learned in each module
- Focus on practical, job-relevant skills
- Total roadmap should be realistic (50-200 hours depending on experience level)
- Prioritize foundational skills first, then advanced topics

Experience level considerations:
- Beginner: Start with absolute basics, more foundational modules
- Intermediate: Assume some basic knowledge, focus on practical application
- Advanced: Focus on specialized skills, best practices, and advanced concepts

Respond with JSON in this exact format:
{{
  "title": "Complete roadmap title",
  "description": "Brief description of what this roadmap covers",
  "totalEstimatedHours": number,
  "modules": [
    {{
      "title": "Module title",
      "description": "What this module covers and why it's important",
      "estimatedHours": number,
      "skills": ["skill1", "skill2", "skill3"]
    }}
  ]
}}"""

ASSESSMENT_SYSTEM = (
    "You are an expert educator and assessment designer. Create challenging but fair "
    "assessments that test practical knowledge and job readiness."
)

ASSESSMENT_PROMPT = """Create a comprehensive assessment for the module "{module_title}" in a {job_role} learning path.

Module skills to test: {skills}

Requirements:
- Create 8-12 multiple choice questions
- Questions should test practical understanding, not just memorization
- Include 4 options per question with only one correct answer
- Provide clear explanations for correct answers
- Mix of difficulty levels (easy, medium, hard)

Respond with JSON in this exact format:
{{
  "title": "Assessment title",
  "description": "Brief description of what this assessment covers",
  "questions": [
    {{
      "question": "Question text",
      "options": [
        {{"option": "Option A text", "isCorrect": false}},
        {{"option": "Option B text", "isCorrect": true}},
        {{"option": "Option C text", "isCorrect": false}},
        {{"option": "Option D text", "isCorrect": false}}
      ],
      "explanation": "Explanation of why the correct answer is right"
    }}
  ]
}}"""

RESOURCES_SYSTEM = (
    "You are an expert at finding high-quality educational resources. Recommend "
    "resources that are practical, up-to-date, and from reputable sources."
)

RESOURCES_PROMPT = """Recommend high-quality learning resources for the module "{module_title}" in a {job_role} learning path.

Skills to cover: {skills}

Requirements:
- Suggest 3-5 diverse learning resources
- Include YouTube videos, documentation, and articles
- Provide specific search queries that would find these resources
- Include estimated duration for each resource

Respond with JSON in this exact format:
{{
  "resources": [
    {{
      "title": "Resource title",
      "type": "video|article|documentation",
      "searchQuery": "Specific search query to find this resource",
      "provider": "YouTube|MDN|Medium|etc",
      "estimatedDuration": "duration like '45 minutes' or '2 hours'"
    }}
  ]
}}"""


# ─── Generators ──────────────────────────────────────────────────────

def _ask(system: str, prompt: str, temperature: float) -> dict:
    """Send one prompt, return the JSON object found in the reply."""
    try:
        llm = get_llm(temperature=temperature)
        response = llm.invoke([SystemMessage(content=system), HumanMessage(content=prompt)])
    except Exception as e:
        raise ContentGenerationError(f"LLM call failed: {e}") from e

    response_text = response.content if hasattr(response, "content") else str(response)
    if not isinstance(response_text, str):
        response_text = "".join(
            part.get("text", "") if isinstance(part, dict) else str(part) for part in response_text
        )

    # Extract the JSON object from the response (in case the LLM adds extra text)
    try:
        json_str = response_text[response_text.index("{"):response_text.rindex("}") + 1]
        data = json.loads(json_str)
    except (ValueError, json.JSONDecodeError) as e:
        raise ContentGenerationError("LLM response did not contain a JSON object") from e

    if not isinstance(data, dict):
        raise ContentGenerationError("LLM response was not a JSON object")
    return data


def generate_roadmap(job_role: str, experience_level: str) -> GeneratedRoadmap:
    data = _ask(ROADMAP_SYSTEM, ROADMAP_PROMPT.format(job_role=job_role, experience_level=experience_level), 0.7)
    try:
        return GeneratedRoadmap.model_validate(data)
    except ValidationError as e:
        raise ContentGenerationError(f"Roadmap JSON has the wrong shape: {e}") from e


def generate_assessment(module_title: str, skills: list[str], job_role: str) -> GeneratedAssessment:
    prompt = ASSESSMENT_PROMPT.format(module_title=module_title, job_role=job_role, skills=", ".join(skills))
    data = _ask(ASSESSMENT_SYSTEM, prompt, 0.3)
    try:
        return GeneratedAssessment.model_validate(data)
    except ValidationError as e:
        raise ContentGenerationError(f"Assessment JSON has the wrong shape: {e}") from e


def generate_resource_recommendations(module_title: str, skills: list[str], job_role: str) -> list[ResourceRecommendation]:
    prompt = RESOURCES_PROMPT.format(module_title=module_title, job_role=job_role, skills=", ".join(skills))
    data = _ask(RESOURCES_SYSTEM, prompt, 0.3)
    try:
        return _ResourceList.model_validate(data).resources
    except ValidationError as e:
        raise ContentGenerationError(f"Resource JSON has the wrong shape: {e}") from e
