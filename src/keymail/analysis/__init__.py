"""
AI module.

Email drafting, editing and review through an LLM (Gemini/Groq).
"""

from keymail.analysis.email_generator import (
    EmailGenerator,
    parse_analysis,
    parse_subject_and_body,
)
from keymail.analysis.llm_providers import (
    get_llm_provider,
    BaseLLMProvider,
    GeminiProvider,
    GroqProvider,
    LLMResponse,
)

__all__ = [
    # Emails
    "EmailGenerator",
    "parse_analysis",
    "parse_subject_and_body",
    # LLM providers
    "get_llm_provider",
    "BaseLLMProvider",
    "GeminiProvider",
    "GroqProvider",
    "LLMResponse",
]
