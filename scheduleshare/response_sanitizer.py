"""
Response sanitizer for LLM output.
Models sometimes wrap JSON in markdown code blocks or add prose around it;
sanitize() reduces a response to the JSON object it contains.
"""

import re

# Opening fence with an optional language tag, e.g. ``` or ```json
_FENCE_OPEN = re.compile(r'^```[\w-]*[ \t]*\n?')
_FENCE_CLOSE = re.compile(r'\n?```$')


def sanitize(content: str) -> str:
    """
    Strip formatting noise from a raw LLM response.

    Args:
        content: Raw response text

    Returns:
        The span from the first '{' to the last '}' (trimmed), or the trimmed
        text unchanged when it holds no braces. Never raises.
    """
    if content is None:
        return ""

    cleaned = content.strip()

    # Remove markdown code blocks
    cleaned = _FENCE_OPEN.sub('', cleaned, count=1)
    cleaned = _FENCE_CLOSE.sub('', cleaned, count=1)
    cleaned = cleaned.strip()

    # Remove any leading/trailing text, fenced or not
    start = cleaned.find('{')
    end = cleaned.rfind('}')
    if start == -1 or end == -1 or end < start:
        return content.strip()

    return cleaned[start:end + 1].strip()
