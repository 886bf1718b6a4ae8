"""
Embeddability gate.

Pre-flight checks applied to text before it can reach the embedding
provider: minimum length, token estimation and hard truncation.

Dependencies: None
System role: Keeps empty and oversized input away from the network
"""

CHARS_PER_TOKEN = 4
DEFAULT_MAX_TOKENS = 8000
DEFAULT_MIN_CHARS = 10


def is_embeddable(text: str, min_chars: int = DEFAULT_MIN_CHARS) -> bool:
    """
    Check whether text is worth embedding.

    Args:
        text: Candidate text
        min_chars: Minimum length after stripping whitespace

    Returns:
        bool: False for blank text or text shorter than min_chars
    """
    stripped = text.strip()
    return bool(stripped) and len(stripped) >= min_chars


def estimate_tokens(text: str) -> int:
    """
    Rough token count (4 characters per token).

    Args:
        text: Text to estimate

    Returns:
        int: Approximate token count
    """
    return len(text) // CHARS_PER_TOKEN


def truncate_to_limit(text: str, max_tokens: int = DEFAULT_MAX_TOKENS) -> str:
    """
    Cut text so its estimate fits within max_tokens, keeping the prefix.

    Args:
        text: Text to truncate
        max_tokens: Token limit of the embedding model

    Returns:
        str: Original text, or its first max_tokens * 4 characters
    """
    if estimate_tokens(text) <= max_tokens:
        return text
    return text[: max_tokens * CHARS_PER_TOKEN]
