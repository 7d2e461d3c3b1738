"""
Unit tests for prompt rewriting.

Tests grammar cleanup, intent detection, subject extraction and the
filtering of rewritten prompts.
"""

import pytest

from prompt_playground.core.improver import (
    PromptComponents,
    add_clarity,
    detect_intent,
    extract_components,
    fix_basic_grammar,
    improve_prompt,
    is_actual_improvement,
)


class TestGrammar:
    """Test basic grammar cleanup."""

    @pytest.mark.parametrize("prompt,expected", [
        ("explain you write a poem", "Explain how you write a poem?"),
        ("explain recursion", "Explain a recursion?"),
        ("explain why the sky is blue", "Explain why the sky is blue?"),
        ("  what is dns  ", "What is dns?"),
        ("tell me a joke.", "Tell me a joke."),
        ("summarize this", "Summarize this"),
        ("Does it rain!", "Does it rain!"),
    ])
    def test_fix_basic_grammar(self, prompt, expected):
        """Prompts are trimmed, capitalized and closed as questions."""
        assert fix_basic_grammar(prompt) == expected


class TestIntent:
    """Test intent detection."""

    @pytest.mark.parametrize("prompt,intent", [
        ("Give me tips for running", "how-to"),
        ("Best ways to learn piano", "how-to"),
        ("How do I reset my router", "how-to"),
        ("What is DNS?", "explanation"),
        ("Write a story about a dragon", "creative"),
        ("Python vs Rust for servers", "comparison"),
        ("What do you think about remote work", "opinion"),
        ("Review my CV", "career"),
        ("hello there", "general"),
    ])
    def test_detect_intent(self, prompt, intent):
        """The first matching intent wins."""
        assert detect_intent(prompt) == intent


class TestComponents:
    """Test subject and action extraction."""

    def test_how_to(self):
        """The how-to phrase is both action and subject."""
        assert extract_components("How to bake bread?") == PromptComponents(
            subject="bake bread", action="bake bread"
        )

    def test_explanation(self):
        """Leading articles are dropped from the subject."""
        assert extract_components("Tell me about the black holes") == PromptComponents(subject="black holes")

    def test_write(self):
        """Writing requests use the written thing as subject."""
        assert extract_components("Write a haiku about autumn.") == PromptComponents(
            subject="haiku about autumn", action="write"
        )

    def test_compare(self):
        """Both compared items form the subject."""
        assert extract_components("compare python to rust?") == PromptComponents(
            subject="python and rust", action="compare"
        )

    def test_compare_without_pair(self):
        """A comparison without two items has no components."""
        assert extract_components("compare!") == PromptComponents()

    def test_fallback_takes_first_words(self):
        """Otherwise the first three non-filler words are the subject."""
        assert extract_components("Summarize the French revolution briefly") == PromptComponents(
            subject="Summarize French revolution"
        )

    def test_no_match_leaves_empty_subject(self):
        """Punctuation that breaks the pattern leaves the subject empty."""
        assert extract_components("how to bake, quickly?") == PromptComponents()


class TestClarity:
    """Test clarity rewrites."""

    def test_statement_with_subject(self):
        """Statements become questions about their subject."""
        rewritten = add_clarity("Quantum computing", PromptComponents(subject="Quantum computing"))
        assert rewritten == "What exactly is Quantum computing and what are its key characteristics?"

    def test_explain_statement(self):
        """Explain requests ask for a comprehensive explanation."""
        rewritten = add_clarity("Explain gravity.", PromptComponents(subject="gravity"))
        assert rewritten == "Explain gravity.? Please provide a clear and comprehensive explanation."

    def test_non_wh_question_unchanged(self):
        """Questions not starting with a wh-word are left alone."""
        assert add_clarity("Is it safe?", PromptComponents()) == "Is it safe?"


class TestImprovePrompt:
    """Test the assembled list of rewrites."""

    def test_short_prompt(self):
        """Prompts under five characters get nothing."""
        assert improve_prompt("Why?") == []

    def test_generic_specificity_filtered(self):
        """A bare generic suffix is not offered as an improvement."""
        improved = improve_prompt(
            "Tell me a joke.",
            needs_clarity=False,
            needs_specificity=True,
            needs_context=False
        )
        assert improved == [
            "Tell me a joke. Please provide a well-structured response with clear headings and logical flow.",
            "Tell me a joke. Please format your response with clear headings and bullet points for easy readability.",
        ]

    def test_resume_rewrites(self):
        """Resume prompts get resume-specific instructions."""
        improved = improve_prompt("Improve my resume", needs_clarity=False)
        assert improved == [
            "Improve my resume. Please include specific sections to include, formatting best "
            "practices, and examples of effective bullet points.",
            "Improve my resume. Please structure your response with sections for each part of "
            "the resume and include before/after examples.",
            "Improve my resume. Please consider current industry standards and ATS optimization "
            "in your response.",
            "Improve my resume. Please include example formats, templates, and bullet point "
            "formulas in your response.",
        ]

    def test_results_are_distinct(self):
        """Duplicate rewrites are removed."""
        improved = improve_prompt("compare cats and dogs")
        assert len(improved) == len(set(improved))
        assert len(improved) <= 5


class TestIsActualImprovement:
    """Test the rewrite filter."""

    def test_must_be_longer(self):
        assert is_actual_improvement("Hello there", "Hello") is False

    def test_generic_suffix_rejected(self):
        original = "Hi."
        assert is_actual_improvement(original, "Hi. Please be specific and include detailed examples.") is False

    def test_stacked_instructions_rejected(self):
        assert is_actual_improvement("Hi", "Hi. Please do a. Please do b.") is False

    def test_single_instruction_accepted(self):
        assert is_actual_improvement("Hi", "Hi. Please do a.") is True
