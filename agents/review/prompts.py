"""Idea similarity agent prompt templates."""

from agents.common.prompts import (
    ANALYTICAL_TONE,
    JSON_OUTPUT,
    SIMILARITY_CRITERIA,
    SIMILARITY_SCORING,
)


SIMILARITY_SYSTEM_PROMPT = f"""{ANALYTICAL_TONE}

You are an expert startup analyst. Your role is to decide whether a submitted
startup idea is too similar to companies that already exist.

{SIMILARITY_CRITERIA}

{SIMILARITY_SCORING}

Be strict but fair. Reject only if there is significant overlap in core
business model AND target market.

{JSON_OUTPUT}
"""


SIMILARITY_ANALYSIS_PROMPT = """Analyze whether this startup idea is too similar to existing companies.

USER APPLICATION:
Title: {title}
Description: {description}
Problem: {problem}
Solution: {solution}
Business Model: {business_model}

EXISTING COMPANIES:
{companies}

Respond with JSON of this shape:
{{
  "is_similar": boolean,
  "similarity_score": number (0-1),
  "most_similar_entry": {{"name": "string", "reason": "string"}},
  "recommendation": "APPROVE" | "REJECT" | "NEEDS_DIFFERENTIATION",
  "feedback": "detailed feedback for the applicant",
  "suggestions": ["specific suggestions"]
}}"""


COMPANY_TEMPLATE = """- Company: {name}
  One-liner: {one_liner}
  Description: {description}
  Industry: {industry}
  Tags: {tags}"""
