"""
Prompt template catalogue and relevance ranking.

Templates are ranked against a prompt by keyword overlap, the prompt's
intent, the suggested categories and the template's own length.
"""

import re
from dataclasses import dataclass
from typing import Iterable, List, Sequence, Tuple

from .improver import PromptComponents, detect_intent, extract_components

MAX_RELEVANT_TEMPLATES = 5
MIN_RELEVANT_TEMPLATES = 3

KEYWORD_WEIGHT = 0.1
INTENT_BOOST = 0.5
CATEGORY_BOOST = 0.2
LENGTH_BOOST = 0.2
LENGTH_PENALTY = 0.1

KEYWORD_STOPWORDS = frozenset({
    "what", "when", "where", "which", "who", "whom", "whose", "why", "how",
    "the", "and", "but", "for", "nor", "yet", "so", "such", "that", "than",
    "this", "these", "those", "with", "from", "about", "into", "upon", "onto",
    "have", "has", "had", "been", "being", "would", "could", "should", "will",
    "shall", "might", "must", "may", "can", "your", "their", "they", "them",
    "some", "many", "much", "most", "more", "please", "provide", "tell", "give",
})

# Phrases a template must contain to match a prompt's intent
INTENT_MARKERS = {
    "how-to": ("how to", "steps", "guide"),
    "explanation": ("explain", "what is"),
    "creative": ("write a", "create"),
    "comparison": ("compare", "versus", "vs"),
    "career": ("resume", "job", "career"),
}

_COMPARED_ITEMS = re.compile(r"\s+and\s+|\s+vs\.?\s+|\s+versus\s+")


@dataclass(frozen=True)
class PromptTemplate:
    """A reusable prompt with [placeholders]."""
    title: str
    prompt: str
    category: str


TEMPLATES: Tuple[PromptTemplate, ...] = (
    PromptTemplate("Basic Question", "What is [topic]?", "general"),
    PromptTemplate(
        "Detailed Explanation",
        "Explain [concept] in detail, including its history, applications, and limitations.",
        "general",
    ),
    PromptTemplate(
        "Short Story",
        "Write a short story about [topic] with the following elements: [element1], [element2], [element3].",
        "creative",
    ),
    PromptTemplate("Poem", "Write a poem about [topic] in the style of [poet].", "creative"),
    PromptTemplate(
        "Code Generation",
        "Write a [language] function that [functionality]. Include comments explaining the code.",
        "technical",
    ),
    PromptTemplate(
        "Data Analysis",
        "Analyze the following data and provide insights: [data]",
        "technical",
    ),
)


def find_relevant_templates(
    prompt: str,
    suggested_categories: Iterable[str],
    catalogue: Sequence[PromptTemplate] = TEMPLATES
) -> List[PromptTemplate]:
    """Rank catalogue templates by relevance to a prompt.

    Args:
        prompt: Prompt text as typed by the user
        suggested_categories: Template categories suggested for the prompt
        catalogue: Templates to rank

    Returns:
        Up to five templates, most relevant first. Equal scores keep
        catalogue order. When fewer than three are found, templates built
        from the prompt's own subject fill the list.
    """
    suggested = set(suggested_categories)
    components = extract_components(prompt)
    intent = detect_intent(prompt)
    keywords = extract_keywords(prompt, components)

    scored = [
        (template, template_relevance(
            template,
            keywords,
            intent,
            CATEGORY_BOOST if template.category in suggested else 0.0
        ))
        for template in catalogue
    ]
    scored.sort(key=lambda item: item[1], reverse=True)
    ranked = [template for template, _ in scored[:MAX_RELEVANT_TEMPLATES]]

    if len(ranked) < MIN_RELEVANT_TEMPLATES and components.subject:
        ranked.extend(custom_templates(components, intent))
    return ranked[:MAX_RELEVANT_TEMPLATES]


def extract_keywords(prompt: str, components: PromptComponents) -> List[str]:
    """Collect the subject, action and meaningful prompt words, in that order."""
    keywords: List[str] = []
    if components.subject:
        keywords.append(components.subject)
        keywords.extend(word.lower() for word in components.subject.split() if len(word) > 3)
    if components.action:
        keywords.append(components.action)

    for word in prompt.lower().split():
        if len(word) > 3 and word not in KEYWORD_STOPWORDS and word not in keywords:
            keywords.append(word)
    return keywords


def template_relevance(
    template: PromptTemplate,
    keywords: Sequence[str],
    intent: str,
    category_boost: float = 0.0
) -> float:
    """Score one template; longer matching keywords weigh more."""
    text = template.prompt.lower()
    score = 0.0
    for keyword in keywords:
        if keyword.lower() in text:
            score += KEYWORD_WEIGHT * len(keyword)

    markers = INTENT_MARKERS.get(intent, ())
    if any(marker in text for marker in markers):
        score += INTENT_BOOST

    score += category_boost

    word_count = len(template.prompt.split())
    if 5 < word_count < 30:
        score += LENGTH_BOOST
    elif word_count >= 30:
        score -= LENGTH_PENALTY
    return score


def _title(text: str) -> str:
    return text[:1].upper() + text[1:]


def custom_templates(components: PromptComponents, intent: str) -> List[PromptTemplate]:
    """Build templates around the prompt's own subject."""
    subject, action = components.subject, components.action

    if intent == "how-to" and action:
        return [
            PromptTemplate(
                f"{_title(action)} Guide",
                f"What are the step-by-step instructions to {action} {subject}? "
                "Please include any necessary tools and common mistakes to avoid.",
                "custom",
            ),
            PromptTemplate(
                f"{_title(subject)} Best Practices",
                f"What are the best practices and expert tips for {action} {subject}? "
                "Please provide examples and case studies.",
                "custom",
            ),
        ]
    if not subject:
        return []

    if intent == "explanation":
        return [
            PromptTemplate(
                f"{_title(subject)} Explanation",
                f"Explain {subject} in detail, including its key components, how it works, "
                "and real-world applications.",
                "custom",
            ),
            PromptTemplate(
                f"{_title(subject)} Comprehensive Guide",
                f"What is {subject}? Please provide a comprehensive explanation with examples, "
                "history, current applications, and future trends.",
                "custom",
            ),
        ]
    if intent == "creative":
        return [PromptTemplate(
            f"Creative {_title(subject)}",
            f"Write a creative piece about {subject} with vivid descriptions, engaging "
            "characters, and an unexpected twist.",
            "custom",
        )]
    if intent == "comparison":
        items = _COMPARED_ITEMS.split(subject)
        if len(items) == 2:
            return [PromptTemplate(
                f"{items[0]} vs {items[1]} Comparison",
                f"Compare and contrast {items[0]} and {items[1]} in terms of their features, "
                "advantages, disadvantages, and ideal use cases.",
                "custom",
            )]
        return [PromptTemplate(
            f"{_title(subject)} Comparison",
            f"What are the key factors to consider when comparing different {subject}? "
            "Please provide a structured analysis.",
            "custom",
        )]
    if intent == "career":
        lowered = subject.lower()
        if "resume" in lowered or "cv" in lowered:
            return [PromptTemplate(
                "Resume Writing Guide",
                "What are the most effective strategies for writing a compelling resume? "
                "Include specific sections, formatting tips, and examples of strong bullet points.",
                "custom",
            )]
        if "interview" in lowered:
            return [PromptTemplate(
                "Interview Preparation",
                "What are the most effective strategies to prepare for a job interview? "
                "Include how to research the company, prepare for common questions, "
                "and demonstrate value.",
                "custom",
            )]
        return [PromptTemplate(
            f"{_title(subject)} Career Advice",
            f"What are the most effective strategies for advancing in a {subject} career? "
            "Include both short-term tactics and long-term planning.",
            "custom",
        )]
    return [PromptTemplate(
        f"{_title(subject)} Insights",
        f"What are the most important things to know about {subject}? "
        "Please provide a comprehensive and structured response.",
        "custom",
    )]
