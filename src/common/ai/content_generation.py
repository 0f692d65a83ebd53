"""
Prompt construction and reply parsing for the AI learning features.

Every helper asks DeepSeek for a JSON object and returns plain dicts together
with the token usage of the call, so callers can log cost analytics.
"""
import json
import logging
import re
from typing import Any, Dict, List, Optional

from src.common.ai.deepseek import DeepSeekClient
from src.models.models import AIModel

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"```(?:json)?\s*(.*?)\s*```", re.DOTALL)
_JSON_OBJECT_RE = re.compile(r"\{.*\}", re.DOTALL)

FLASHCARD_DIFFICULTIES = ("Easy", "Medium", "Hard")

SUMMARY_LENGTH_INSTRUCTIONS = {
    "short": "in 2-3 concise sentences",
    "medium": "in 1-2 paragraphs with key details",
    "long": "in 3-4 detailed paragraphs with comprehensive coverage",
}


class MalformedReplyError(ValueError):
    """The model answered, but not with the JSON object that was asked for."""

    def __init__(self, message: str, tokens: int = 0):
        super().__init__(message)
        self.tokens = tokens


def parse_json_reply(text: str) -> Dict[str, Any]:
    """
    Parse a JSON object out of a model reply.
    Tolerates Markdown code fences and prose around the object.
    """
    fence = _FENCE_RE.search(text)
    candidate = fence.group(1) if fence else text.strip()
    try:
        data = json.loads(candidate)
    except json.JSONDecodeError:
        obj_match = _JSON_OBJECT_RE.search(candidate)
        if not obj_match:
            raise ValueError("No JSON object found in model reply")
        data = json.loads(obj_match.group(0))
    if not isinstance(data, dict):
        raise ValueError("Model reply is not a JSON object")
    return data


async def summarize_content(
    client: DeepSeekClient,
    content: str,
    length: str = "medium",
    focus: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Summarize learning content.

    Returns a dict with `summary`, `key_concepts` and `tokens`. If the reply is
    not valid JSON the raw reply is used as the summary.
    """
    focus_instruction = f"Focus specifically on {focus} aspects." if focus else ""
    length_instruction = SUMMARY_LENGTH_INSTRUCTIONS.get(length, SUMMARY_LENGTH_INSTRUCTIONS["medium"])

    prompt = f"""As an expert Salesforce learning coach, summarize the following content {length_instruction}.
Extract the most important concepts and learning objectives. {focus_instruction}

Content: {content}

Respond with a JSON object containing:
- summary: the main summary text
- key_concepts: array of 3-7 key concepts or terms covered

Keep the summary practical and relevant to certification preparation."""

    messages = [
        {
            "role": "system",
            "content": "You are an expert Salesforce learning coach who writes clear, actionable summaries "
                       "for practical application and certification preparation. Always respond with valid JSON.",
        },
        {"role": "user", "content": prompt},
    ]

    completion = await client.chat_completion(messages, AIModel.CHAT.value, 2000, 0.3)

    try:
        result = parse_json_reply(completion.content)
        key_concepts = result.get("key_concepts")
        return {
            "summary": str(result.get("summary") or ""),
            "key_concepts": [str(concept) for concept in key_concepts] if isinstance(key_concepts, list) else [],
            "tokens": completion.total_tokens,
        }
    except ValueError:
        logger.warning("Summary reply was not valid JSON; using raw text.")
        return {
            "summary": completion.content,
            "key_concepts": [],
            "tokens": completion.total_tokens,
        }


def _string_list(value: Any) -> List[str]:
    if isinstance(value, str):
        return [value] if value.strip() else []
    if isinstance(value, list):
        return [str(item) for item in value if item is not None]
    return []


def normalize_flashcard(card: Any) -> Optional[Dict[str, Any]]:
    """
    Coerce one model-written card into the stored shape.
    Returns None for cards without both a question and an answer.
    """
    if not isinstance(card, dict):
        return None
    question, answer = card.get("question"), card.get("answer")
    if question is None or answer is None or not str(question).strip() or not str(answer).strip():
        return None

    explanation = card.get("explanation")
    difficulty = str(card.get("difficulty") or "").strip().capitalize()
    return {
        "question": str(question),
        "answer": str(answer),
        "explanation": str(explanation) if explanation else None,
        "tags": _string_list(card.get("tags")),
        "difficulty": difficulty if difficulty in FLASHCARD_DIFFICULTIES else "Medium",
        "certification_relevance": _string_list(card.get("certification_relevance")),
    }


async def generate_flashcards(
    client: DeepSeekClient,
    content: str,
    topic: str,
    num_cards: int = 10,
    certification: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Generate certification-oriented flashcards.

    Returns a dict with `flashcards` and `tokens`.
    Raises MalformedReplyError if the reply cannot be parsed.
    """
    cert_focus = f"Focus on {certification} certification requirements." if certification else ""

    prompt = f"""As an expert Salesforce instructor, create {num_cards} high-quality flashcards for the topic "{topic}" from the content below.

{cert_focus}

Content: {content}

The flashcards should test understanding rather than memorization, include practical scenarios where
applicable, cover different difficulty levels and be relevant for certification preparation.

Respond with a JSON object containing a "flashcards" array where each flashcard has:
- question: a clear, specific question
- answer: a comprehensive but concise answer
- explanation: optional additional context
- tags: array of topic tags
- difficulty: "Easy", "Medium" or "Hard"
- certification_relevance: array of certifications this applies to (if any)

Mix definitions, scenarios, best practices and troubleshooting questions."""

    messages = [
        {
            "role": "system",
            "content": "You are an expert Salesforce certification instructor who writes practical flashcards "
                       "for real-world scenarios and certification exams. Always respond with valid JSON.",
        },
        {"role": "user", "content": prompt},
    ]

    completion = await client.chat_completion(messages, AIModel.REASONER.value, 6000, 0.4)

    try:
        result = parse_json_reply(completion.content)
    except ValueError as e:
        logger.error("Failed to parse flashcards JSON reply.")
        raise MalformedReplyError(
            "Failed to generate flashcards in expected format.", completion.total_tokens
        ) from e

    cards = result.get("flashcards")
    if not isinstance(cards, list):
        cards = []
    flashcards = [card for card in map(normalize_flashcard, cards) if card is not None]
    return {"flashcards": flashcards, "tokens": completion.total_tokens}


async def generate_learning_path(
    client: DeepSeekClient,
    user_prompt: str,
    existing_knowledge: str = "",
    preferred_learning_style: Optional[str] = None,
    time_commitment: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Generate a personalized learning path.

    Returns a dict with `path` (the parsed JSON object) and `tokens`.
    Raises MalformedReplyError if the reply cannot be parsed.
    """
    style_note = f"Learning style preference: {preferred_learning_style}." if preferred_learning_style else ""
    time_note = f"Available time commitment: {time_commitment}." if time_commitment else ""

    prompt = f"""As an expert Salesforce learning architect, create a personalized learning path for:

Goal: "{user_prompt}"
Current Knowledge: "{existing_knowledge}"
{style_note}
{time_note}

Progress from fundamentals to advanced concepts, combine Trailhead modules, developer documentation and
hands-on practice, align with certifications and give realistic time estimates. Use real Trailhead
(https://trailhead.salesforce.com/content/learn/modules/...) and developer documentation
(https://developer.salesforce.com/docs/...) URLs where possible.

Respond with a JSON object:
{{
  "title": "Learning Path Title",
  "description": "What the learner will achieve",
  "difficulty_level": "Beginner|Intermediate|Advanced",
  "estimated_total_duration": "X hours/weeks",
  "modules": [
    {{
      "title": "Module name",
      "description": "What this module covers",
      "trailhead_link": "Trailhead URL if applicable",
      "developer_docs_link": "Developer docs URL if applicable",
      "estimated_time": "X hours",
      "difficulty": "Beginner|Intermediate|Advanced",
      "key_concepts": ["concept1", "concept2"],
      "prerequisites": ["prereq1"]
    }}
  ],
  "certification_alignment": ["relevant certifications"],
  "next_steps": ["suggestions for after completion"]
}}"""

    messages = [
        {
            "role": "system",
            "content": "You are an expert Salesforce learning architect with deep knowledge of Salesforce products, "
                       "certifications and learning resources. Always respond with valid JSON and use real "
                       "Salesforce URLs where possible.",
        },
        {"role": "user", "content": prompt},
    ]

    completion = await client.chat_completion(messages, AIModel.REASONER.value, 8000, 0.6)

    try:
        path = parse_json_reply(completion.content)
    except ValueError as e:
        logger.error("Failed to parse learning path JSON reply.")
        raise MalformedReplyError(
            "Failed to generate learning path in expected format.", completion.total_tokens
        ) from e

    return {"path": path, "tokens": completion.total_tokens}


async def enhance_search_results(
    client: DeepSeekClient,
    query: str,
    search_results: List[Dict[str, Any]],
    user_context: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Ask the model for a conversational synthesis of search results.

    Returns a dict with `enhanced_response`, `recommendations` and `tokens`.
    Raises MalformedReplyError when the reply lacks a usable `enhanced_response`.
    """
    context_note = f"User context: {user_context}" if user_context else ""

    prompt = f"""As a Salesforce learning assistant, enhance these search results for the query "{query}".

{context_note}

Search Results: {json.dumps(search_results, default=str)}

Provide a conversational response that synthesizes the results, practical next steps, connections
between the results and learning path suggestions.

Respond with JSON:
{{
  "enhanced_response": "conversational explanation of results",
  "recommendations": ["specific next step recommendations"]
}}"""

    messages = [
        {
            "role": "system",
            "content": "You are a helpful Salesforce learning assistant who provides clear, practical guidance. "
                       "Always respond with valid JSON.",
        },
        {"role": "user", "content": prompt},
    ]

    completion = await client.chat_completion(messages, AIModel.CHAT.value, 2000, 0.7)

    try:
        result = parse_json_reply(completion.content)
    except ValueError as e:
        raise MalformedReplyError("Search enhancement reply was not valid JSON", completion.total_tokens) from e

    enhanced_response = result.get("enhanced_response")
    if not isinstance(enhanced_response, str) or not enhanced_response.strip():
        raise MalformedReplyError("Search enhancement reply has no enhanced_response", completion.total_tokens)

    recommendations = result.get("recommendations") or []
    if not isinstance(recommendations, list):
        recommendations = []

    return {
        "enhanced_response": enhanced_response,
        "recommendations": [str(item) for item in recommendations],
        "tokens": completion.total_tokens,
    }
