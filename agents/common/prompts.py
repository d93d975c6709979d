"""Shared prompt templates for agents."""

# System prompts
ANALYTICAL_TONE = """You are an analytical expert who provides detailed, data-driven insights.
Focus on objectivity, fairness, and evidence-based reasoning."""

# Common instructions
JSON_OUTPUT = """Your response must be valid JSON that can be parsed directly.
Do not include any markdown formatting or code blocks.
Ensure all strings are properly escaped."""

# Similarity criteria
SIMILARITY_CRITERIA = """When comparing business ideas, consider:
1. Core business model similarity
2. Target market overlap
3. Value proposition similarity
4. Technology approach similarity
5. Market timing and positioning

Focus on the fundamental business concept, not naming or surface-level
similarities. Two companies can have different names but solve the same
problem in the same way."""

# Scoring guidelines
SIMILARITY_SCORING = """Similarity scale (0.0-1.0):
- 0.8-1.0: Same product for the same market
- 0.6-0.8: Same problem, similar approach
- 0.4-0.6: Related space, clear differentiation possible
- Below 0.4: Different business concept

Provide specific reasoning for your score."""
