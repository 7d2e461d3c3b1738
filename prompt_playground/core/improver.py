"""
Prompt rewriting suggestions.

Cleans up a prompt, works out what kind of answer it asks for, then
offers rewritten variants that append targeted instructions (clarity,
specificity, structure, context and output format).
"""

import re
from dataclasses import dataclass
from typing import List

MIN_PROMPT_CHARS = 5
MAX_IMPROVED_PROMPTS = 5

GENERIC_SPECIFICITY = "Please be specific and include detailed examples."

# Checked in order; the first intent with a matching phrase wins
INTENT_PHRASES = (
    ("how-to", ("how to", "how do i", "steps to", "guide for", "tutorial")),
    ("explanation", ("explain", "what is", "define", "describe", "tell me about", "concept of")),
    ("creative", ("write a story", "create a", "generate a", "poem", "fiction", "imagine")),
    ("comparison", ("compare", "difference between", "versus", " vs ", "similarities", "differences")),
    ("opinion", ("opinion", "thoughts on", "do you think", "what do you think", "perspective on", "view on")),
    ("career", ("resume", "cv", "job application", "cover letter", "interview", "career advice", "linkedin")),
)

SUBJECT_STOPWORDS = frozenset({
    "what", "how", "why", "when", "where", "who", "is", "are", "do", "does",
    "can", "could", "would", "should", "the", "a", "an", "about", "tell",
    "me", "explain", "describe",
})

_NO_ARTICLE_WORDS = ("how", "why", "when", "where", "who", "what")

_EXPLAIN_YOU = re.compile(r"explain you ", re.IGNORECASE)
_EXPLAIN_YOU_WRITE = re.compile(r"explain you write", re.IGNORECASE)
_EXPLAIN_WORD = re.compile(r"explain (\w+)( |\Z)", re.IGNORECASE | re.ASCII)
_QUESTION_START = re.compile(
    r"(what|how|why|when|where|who|can|could|would|should|is|are|do|does)", re.IGNORECASE
)
_REQUEST_START = re.compile(r"(explain|tell me|describe)", re.IGNORECASE)
_WH_START = re.compile(r"(what|how|why|when|where|who)", re.IGNORECASE)

_HOW_TO_EXTRA = re.compile(r"ways? to|tips? for")
_HOW_TO_ACTION = re.compile(r"how to ([\w\s]+)(?:\?|\Z|\.)", re.ASCII)
_EXPLAIN_VERB = re.compile(r"what is|explain|tell me about|describe")
_EXPLAIN_SUBJECT = re.compile(
    r"(?:what is|explain|tell me about|describe) (?:a |an |the )?([\w\s]+)(?:\?|\Z|\.)", re.ASCII
)
_WRITE_SUBJECT = re.compile(r"write a(?:n)? ([\w\s]+)(?:\?|\Z|\.)", re.ASCII)
_COMPARE_SUBJECTS = re.compile(
    r"compare (?:a |an |the )?([\w\s]+) (?:to|and|with) (?:a |an |the )?([\w\s]+)(?:\?|\Z|\.)",
    re.ASCII,
)


@dataclass(frozen=True)
class PromptComponents:
    """What a prompt is about, and what it wants done."""
    subject: str = ""
    action: str = ""


def improve_prompt(
    prompt: str,
    needs_clarity: bool = True,
    needs_specificity: bool = True,
    needs_context: bool = True
) -> List[str]:
    """Suggest rewritten versions of a prompt.

    Structure and format rewrites are always attempted; the others only
    when the prompt is weak in that area.

    Args:
        prompt: Prompt text as typed by the user
        needs_clarity: Offer a clearer question
        needs_specificity: Ask for specific details
        needs_context: Ask for broader context

    Returns:
        Up to five distinct rewrites, each longer than the cleaned prompt.
        Prompts shorter than five characters get none.
    """
    if len(prompt) < MIN_PROMPT_CHARS:
        return []

    cleaned = fix_basic_grammar(prompt)
    intent = detect_intent(cleaned)
    components = extract_components(cleaned)

    candidates = []
    if needs_clarity:
        candidates.append(add_clarity(cleaned, components))
    if needs_specificity:
        candidates.append(add_specificity(cleaned, components, intent))
    candidates.append(add_structure(cleaned, intent))
    if needs_context:
        candidates.append(add_context(cleaned, components, intent))
    candidates.append(add_format(cleaned, intent))

    improved: List[str] = []
    for candidate in candidates:
        if not candidate.strip() or candidate in improved:
            continue
        if is_actual_improvement(cleaned, candidate):
            improved.append(candidate)
    return improved[:MAX_IMPROVED_PROMPTS]


def fix_basic_grammar(prompt: str) -> str:
    """Trim, repair common "explain ..." slips, capitalize, and close questions."""
    fixed = prompt.strip()

    fixed = _EXPLAIN_YOU.sub("explain how you ", fixed, count=1)
    fixed = _EXPLAIN_YOU_WRITE.sub("explain how to write", fixed, count=1)
    fixed = _EXPLAIN_WORD.sub(_add_article, fixed, count=1)

    if fixed:
        fixed = fixed[0].upper() + fixed[1:]

    starts_as_question = _QUESTION_START.match(fixed) or _REQUEST_START.match(fixed)
    if starts_as_question and not fixed.endswith(("?", ".", "!")):
        fixed += "?"

    return fixed


def _add_article(match: "re.Match") -> str:
    word, space = match.group(1), match.group(2)
    if word.lower() in _NO_ARTICLE_WORDS:
        return match.group(0)
    return f"explain a {word}{space}"


def detect_intent(prompt: str) -> str:
    """Classify what kind of answer the prompt asks for.

    Returns:
        One of how-to, explanation, creative, comparison, opinion, career
        or general
    """
    lowered = prompt.lower()
    if _HOW_TO_EXTRA.search(lowered):
        return "how-to"
    for intent, phrases in INTENT_PHRASES:
        if any(phrase in lowered for phrase in phrases):
            return intent
    return "general"


def extract_components(prompt: str) -> PromptComponents:
    """Pull the subject and action out of a prompt."""
    lowered = prompt.lower()

    if "how to" in lowered:
        match = _HOW_TO_ACTION.search(lowered)
        action = match.group(1).strip() if match else ""
        return PromptComponents(subject=action, action=action)

    if _EXPLAIN_VERB.search(lowered):
        match = _EXPLAIN_SUBJECT.search(lowered)
        return PromptComponents(subject=match.group(1).strip() if match else "")

    if "write a" in lowered:
        match = _WRITE_SUBJECT.search(lowered)
        return PromptComponents(subject=match.group(1).strip() if match else "", action="write")

    if "compare" in lowered:
        match = _COMPARE_SUBJECTS.search(lowered)
        if not match:
            return PromptComponents()
        subject = f"{match.group(1).strip()} and {match.group(2).strip()}"
        return PromptComponents(subject=subject, action="compare")

    words = [word for word in prompt.split() if word.lower() not in SUBJECT_STOPWORDS]
    return PromptComponents(subject=" ".join(words[:3]))


def _append(prompt: str, instruction: str) -> str:
    separator = "" if prompt.endswith((".", "!", "?")) else "."
    return f"{prompt}{separator} {instruction}"


def _is_resume_request(prompt: str, intent: str) -> bool:
    return intent == "career" and "resume" in prompt.lower()


def add_clarity(prompt: str, components: PromptComponents) -> str:
    if "?" not in prompt:
        if prompt.lower().startswith("explain"):
            return f"{prompt}? Please provide a clear and comprehensive explanation."
        if components.action:
            return f"What is the best way to {components.action} {components.subject}?"
        if components.subject:
            return f"What exactly is {components.subject} and what are its key characteristics?"
        return f"{prompt}? Please provide a clear and detailed response."

    if _WH_START.match(prompt):
        return f"{prompt[:-1] if prompt.endswith('?') else prompt} exactly?"

    return prompt


def add_specificity(prompt: str, components: PromptComponents, intent: str) -> str:
    if intent == "how-to" and components.action:
        instruction = (
            "Please include specific steps, tools needed, and common pitfalls "
            f"to avoid when {components.action}."
        )
    elif intent == "explanation" and components.subject:
        instruction = (
            "Please include specific examples, key components, and practical "
            f"applications of {components.subject}."
        )
    elif intent == "creative":
        instruction = "Please make it detailed with vivid descriptions and well-developed characters."
    elif intent == "comparison":
        instruction = (
            "Please include specific criteria for comparison, key differences, "
            "and situations where each option is preferable."
        )
    elif _is_resume_request(prompt, intent):
        instruction = (
            "Please include specific sections to include, formatting best "
            "practices, and examples of effective bullet points."
        )
    else:
        instruction = GENERIC_SPECIFICITY
    return _append(prompt, instruction)


def add_structure(prompt: str, intent: str) -> str:
    if intent == "how-to":
        instruction = "Please structure your response as a step-by-step guide."
    elif intent == "explanation":
        instruction = (
            "Please structure your response with clear headings for definition, "
            "key concepts, applications, and limitations."
        )
    elif intent == "comparison":
        instruction = (
            "Please structure your response with clear categories for comparison "
            "and a summary table if possible."
        )
    elif _is_resume_request(prompt, intent):
        instruction = (
            "Please structure your response with sections for each part of the "
            "resume and include before/after examples."
        )
    else:
        instruction = "Please provide a well-structured response with clear headings and logical flow."
    return _append(prompt, instruction)


def add_context(prompt: str, components: PromptComponents, intent: str) -> str:
    if intent == "explanation" and components.subject:
        instruction = (
            "Please include historical context, current applications, and "
            f"future trends related to {components.subject}."
        )
    elif intent == "how-to":
        instruction = "Please consider both beginners and more advanced users in your response."
    elif _is_resume_request(prompt, intent):
        instruction = "Please consider current industry standards and ATS optimization in your response."
    else:
        instruction = "Please consider different perspectives and contexts in your response."
    return _append(prompt, instruction)


def add_format(prompt: str, intent: str) -> str:
    if intent == "how-to":
        instruction = (
            "Please format your response with numbered steps, bullet points for "
            "materials needed, and tips in a separate section."
        )
    elif intent == "explanation":
        instruction = (
            "Please format your response with clear headings, concise paragraphs, "
            "and bullet points for key takeaways."
        )
    elif intent == "comparison":
        instruction = "Please include a comparison table and bullet points highlighting key differences."
    elif _is_resume_request(prompt, intent):
        instruction = "Please include example formats, templates, and bullet point formulas in your response."
    else:
        instruction = "Please format your response with clear headings and bullet points for easy readability."
    return _append(prompt, instruction)


def is_actual_improvement(original: str, improved: str) -> bool:
    """Reject rewrites that add nothing or stack several instructions."""
    if len(improved) <= len(original):
        return False
    if improved == f"{original} {GENERIC_SPECIFICITY}":
        return False
    return improved.replace(original, "", 1).count("Please") <= 1
