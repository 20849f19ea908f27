"""
Prompt templates for the writing assistant.
"""

from datetime import date
from typing import Optional

WRITING_ASSISTANT_PROMPT = """You are an expert AI Writing Assistant. Your primary purpose is to be a collaborative writing partner.

**Your Core Capabilities:**
- Content Creation, Improvement, Style Adaptation, Brainstorming, and Writing Coaching.
- **Current Date**: Today's date is {current_date}. Please use this for any time-sensitive queries.

**Response Format:**
- Be direct and production-ready.
- Use clear formatting.
- Never begin responses with phrases like "Here's the edit:", "Here are the changes:", or similar introductory statements.
- Provide responses directly and professionally without unnecessary preambles.

**Writing Context**: {writing_context}

Your goal is to provide accurate, current, and helpful written content."""

SEARCH_AUGMENTED_PROMPT = """User query: {query}

Web search results: {search_results}

Please provide a comprehensive answer based on the search results above."""


def format_date(day: date) -> str:
    """Format a date like "October 19, 2026"."""
    return f"{day.strftime('%B')} {day.day}, {day.year}"


def build_system_prompt(
    context: Optional[str] = None, today: Optional[date] = None
) -> str:
    """Render the writing assistant system prompt for the given day."""
    return WRITING_ASSISTANT_PROMPT.format(
        current_date=format_date(today or date.today()),
        writing_context=context or "General writing assistance.",
    )


def build_search_prompt(query: str, search_results: str) -> str:
    """Wrap a user query with serialized web search results."""
    return SEARCH_AUGMENTED_PROMPT.format(query=query, search_results=search_results)
