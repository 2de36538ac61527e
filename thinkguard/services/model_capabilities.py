"""Model capability lookup for extended thinking.

THINKING_MODEL_PATTERNS is the single table of model identifiers that
enforce the thinking-block-first rule. Anything else in the application
that needs to know whether a model reasons must import it from here.
"""
from types import MappingProxyType

THINKING_MODEL_PATTERNS = MappingProxyType({
    # Explicit variants, always enabled
    "markers": ("thinking",),
    "suffixes": ("-high",),
    # Thinking-capable families, enabled without an explicit marker
    "families": ("claude-sonnet-4", "claude-opus-4", "claude-3"),
})


def is_extended_thinking_model(model_id: str) -> bool:
    """
    Check whether a model enforces a leading thinking block.

    Matching is case-insensitive. Empty or missing ids never match.

    Args:
        model_id: Raw model identifier from the request

    Returns:
        True if assistant turns sent to this model must start with thinking
    """
    if not model_id or not isinstance(model_id, str):
        return False
    lower = model_id.lower()

    if any(marker in lower for marker in THINKING_MODEL_PATTERNS["markers"]):
        return True
    if lower.endswith(THINKING_MODEL_PATTERNS["suffixes"]):
        return True

    return any(family in lower for family in THINKING_MODEL_PATTERNS["families"])
