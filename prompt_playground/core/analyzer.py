"""
Prompt quality analysis.

Scores a prompt with a fixed set of independent heuristic rules. Runs on
every keystroke, so it is pure and never raises.

Scoring:
    score = clamp(50 + 15 * strengths - 10 * weaknesses, 0, 100)

The report also carries rewrite suggestions and ranked templates, which
never affect the score.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Tuple

from .improver import improve_prompt
from .templates import PromptTemplate, find_relevant_templates

BASE_SCORE = 50
STRENGTH_REWARD = 15
WEAKNESS_PENALTY = 10

SHORT_PROMPT_CHARS = 10
GOOD_LENGTH_CHARS = 20
CONTEXT_WORDS = 15

SPECIFIC_WORDS = ("specifically", "exactly", "precisely", "detailed")

# Words whose presence marks a prompt as already asking for detail; fewer
# than MIN_DETAIL_WORDS of them triggers a specificity rewrite
DETAIL_WORDS = (
    "specifically", "exactly", "precisely", "detailed", "particular", "define", "explain",
)
MIN_DETAIL_WORDS = 2
MAX_FOCUSED_QUESTIONS = 3

# Declaration order breaks ties between equally matched categories
PROMPT_CATEGORIES: Dict[str, Tuple[str, ...]] = {
    "creative": (
        "write a story", "poem", "creative", "fiction", "narrative", "tale",
        "novel", "script", "screenplay", "dialogue", "character", "plot",
        "setting", "scene", "write about", "imagine", "fantasy", "sci-fi",
        "science fiction", "horror",
    ),
    "technical": (
        "code", "function", "algorithm", "programming", "software", "develop",
        "technical", "technology", "engineering", "system", "data", "analysis",
        "javascript", "python", "java", "c++", "html", "css", "sql", "database",
        "api", "framework", "library", "debug", "error", "fix", "implement",
    ),
    "business": (
        "business", "company", "corporate", "strategy", "market", "marketing",
        "sales", "customer", "client", "product", "service", "revenue",
        "profit", "startup", "entrepreneur", "management", "leadership",
        "team", "organization", "swot", "analysis", "plan", "proposal",
        "pitch", "presentation",
    ),
    "academic": (
        "research", "study", "academic", "paper", "thesis", "dissertation",
        "essay", "literature", "review", "analysis", "theory", "concept",
        "hypothesis", "experiment", "methodology", "results", "findings",
        "conclusion", "discussion", "citation", "reference", "bibliography",
        "scholarly", "journal", "publication",
    ),
    "healthcare": (
        "health", "medical", "medicine", "patient", "doctor", "nurse",
        "hospital", "clinic", "treatment", "therapy", "diagnosis", "symptom",
        "disease", "condition", "healthcare", "wellness", "prevention",
        "care", "pharmaceutical", "drug",
    ),
    "legal": (
        "legal", "law", "attorney", "lawyer", "court", "judge", "case",
        "lawsuit", "contract", "agreement", "clause", "regulation",
        "compliance", "statute", "legislation", "rights", "liability",
        "plaintiff", "defendant", "jurisdiction",
    ),
    "education": (
        "education", "teaching", "learning", "student", "teacher", "school",
        "classroom", "lesson", "curriculum", "instruction", "assessment",
        "evaluation", "grade", "course", "subject", "topic", "lecture",
        "assignment", "homework", "exam",
    ),
    "marketing": (
        "marketing", "advertisement", "campaign", "brand", "branding",
        "promotion", "social media", "content", "audience", "target",
        "demographic", "consumer", "customer", "engagement", "conversion",
        "funnel", "seo", "analytics", "metrics",
    ),
    "career": (
        "resume", "cv", "curriculum vitae", "job", "career", "interview",
        "employment", "hiring", "recruit", "skill", "experience",
        "qualification", "professional", "work", "position", "application",
        "cover letter", "linkedin", "portfolio",
    ),
}

MIN_CATEGORY_MATCHES = 2
MAX_SUGGESTED_TEMPLATES = 3


@dataclass(frozen=True)
class AnalysisReport:
    """Quality report for a single prompt."""
    score: int
    strengths: List[str] = field(default_factory=list)
    weaknesses: List[str] = field(default_factory=list)
    suggestions: List[str] = field(default_factory=list)
    prompt_type: str = "general"
    suggested_templates: List[str] = field(default_factory=list)
    improved_prompts: List[str] = field(default_factory=list)
    relevant_templates: List[PromptTemplate] = field(default_factory=list)


def analyze(prompt: str) -> AnalysisReport:
    """Analyze a prompt and produce a quality report.

    Blank input returns a neutral report: the base score and no findings.

    Args:
        prompt: Prompt text as typed by the user

    Returns:
        AnalysisReport with score in [0, 100]
    """
    if not prompt or not prompt.strip():
        return AnalysisReport(score=BASE_SCORE, prompt_type="none")

    strengths: List[str] = []
    weaknesses: List[str] = []
    suggestions: List[str] = []

    # Length
    if len(prompt) < SHORT_PROMPT_CHARS:
        weaknesses.append("Prompt is too short")
        suggestions.append("Expand your prompt to provide more context")
    elif len(prompt) > GOOD_LENGTH_CHARS:
        strengths.append("Good prompt length")

    # Interrogative form
    if "?" in prompt:
        strengths.append("Includes a clear question")
    else:
        weaknesses.append("No clear question")
        suggestions.append("Consider framing your prompt as a question")

    # Specificity
    lowered = prompt.lower()
    if any(word in lowered for word in SPECIFIC_WORDS):
        strengths.append("Uses specific language")
    else:
        suggestions.append("Add specific details to get more precise responses")

    # Context richness
    if len(prompt.split()) > CONTEXT_WORDS:
        strengths.append("Provides good context")
    else:
        weaknesses.append("Limited context")
        suggestions.append("Add more context to help the AI understand your request")

    prompt_type, templates = classify_prompt(prompt)

    question_count = prompt.count("?")
    improved = improve_prompt(
        prompt,
        needs_clarity=question_count == 0 or question_count > MAX_FOCUSED_QUESTIONS,
        needs_specificity=sum(1 for word in DETAIL_WORDS if word in lowered) < MIN_DETAIL_WORDS,
        needs_context=len(prompt.split()) <= CONTEXT_WORDS,
    )

    return AnalysisReport(
        score=compute_score(len(strengths), len(weaknesses)),
        strengths=strengths,
        weaknesses=weaknesses,
        suggestions=suggestions,
        prompt_type=prompt_type,
        suggested_templates=templates,
        improved_prompts=improved,
        relevant_templates=find_relevant_templates(prompt, templates),
    )


def compute_score(strength_count: int, weakness_count: int) -> int:
    """Apply the additive scoring law, clamped to [0, 100]."""
    raw = BASE_SCORE + STRENGTH_REWARD * strength_count - WEAKNESS_PENALTY * weakness_count
    return max(0, min(100, raw))


def classify_prompt(prompt: str) -> Tuple[str, List[str]]:
    """Identify the prompt's category and the template categories to suggest.

    Returns:
        Tuple of (prompt type, suggested template categories)
    """
    lowered = prompt.lower()
    matches = {
        category: sum(1 for keyword in keywords if keyword in lowered)
        for category, keywords in PROMPT_CATEGORIES.items()
    }

    best_category = "general"
    best_count = 0
    for category, count in matches.items():
        if count > best_count:
            best_category = category
            best_count = count

    prompt_type = "general"
    templates = ["general"]
    if best_count >= MIN_CATEGORY_MATCHES:
        prompt_type = best_category
        templates = [best_category]
        threshold = max(1, best_count / 2)
        for category, count in matches.items():
            if category != best_category and count >= threshold:
                templates.append(category)

    if len(templates) < 2 and "general" not in templates:
        templates.append("general")

    return prompt_type, templates[:MAX_SUGGESTED_TEMPLATES]
