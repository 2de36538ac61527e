"""Thinking block validator for outbound conversation payloads.

Models with extended thinking reject any assistant turn that carries text or
tool use without a leading thinking block ("Expected thinking or
redacted_thinking, but found tool_use"). This module repairs such turns
before the payload is sent, so the API error never reaches the user.

Handles:
- Per-message invariant check
- Reuse of the most recent earlier reasoning text
- Synthetic thinking part construction and insertion
- Whole-conversation pass registered as a pre-send transform

Repairs only shape the payload for one send. Stored history is untouched.
"""
from typing import Any, Callable, Dict, Mapping, Optional
import logging

from thinkguard.config import settings
from thinkguard.models.conversation import (
    ContentPart,
    Message,
    ThinkingPart,
    ValidationResult,
    is_thinking_part,
)
from thinkguard.services.model_capabilities import is_extended_thinking_model

logger = logging.getLogger(__name__)

HOOK_NAME = "thinking-block-validator"
MESSAGES_TRANSFORM_HOOK = "experimental.chat.messages.transform"
SYNTHETIC_THINKING_ID_PREFIX = "prt_0000000000_thinking"

TransformHook = Callable[[Dict[str, Any], Dict[str, Any]], None]


def has_content_parts(parts: Optional[list[ContentPart]]) -> bool:
    """Check if any part is tool use, text or another non-thinking part."""
    if not parts:
        return False
    return any(not is_thinking_part(part) for part in parts)


def starts_with_thinking_block(parts: Optional[list[ContentPart]]) -> bool:
    """Check if the first part is a thinking-like block."""
    if not parts:
        return False
    return is_thinking_part(parts[0])


def needs_thinking_block(message: Message) -> bool:
    """
    Check a single message against the thinking-first rule.

    Only assistant messages are checked. Callers decide whether the
    active model enforces the rule.
    """
    if message.info.role != "assistant":
        return False
    return has_content_parts(message.parts) and not starts_with_thinking_block(message.parts)


def find_previous_thinking_content(
    messages: list[Message],
    current_index: int,
    staged: Optional[Mapping[int, ThinkingPart]] = None,
) -> str:
    """
    Find the most recent reasoning text before current_index.

    Walks backward over assistant messages only. System and user turns are
    skipped, and the search never looks past the start or forward.

    Args:
        messages: Conversation in chronological order
        current_index: Index of the message being repaired
        staged: Synthetic parts already planned for earlier messages in
            this pass; they count as the first part of their message

    Returns:
        Reasoning text, or "" if no earlier assistant turn has any
    """
    staged = staged or {}

    for index in range(current_index - 1, -1, -1):
        message = messages[index]
        info = getattr(message, "info", None)
        if getattr(info, "role", None) != "assistant":
            continue

        parts = list(getattr(message, "parts", None) or [])
        if index in staged:
            parts.insert(0, staged[index])

        for part in parts:
            if not isinstance(part, ThinkingPart):
                continue
            thinking = part.content
            if thinking.strip():
                return thinking

    return ""


def build_thinking_part(message: Message, thinking_content: str) -> ThinkingPart:
    """Create a synthetic thinking part owned by message."""
    return ThinkingPart(
        type="thinking",
        id=SYNTHETIC_THINKING_ID_PREFIX,
        session_id=message.info.session_id or "",
        message_id=message.info.id,
        thinking=thinking_content,
        synthetic=True,
    )


def _insert_first(message: Message, thinking_part: ThinkingPart) -> None:
    if message.parts:
        message.parts.insert(0, thinking_part)
    else:
        message.parts = [thinking_part]


def prepend_thinking_block(message: Message, thinking_content: str) -> None:
    """Prepend a synthetic thinking block to the message's parts."""
    _insert_first(message, build_thinking_part(message, thinking_content))


def find_active_model_id(messages: list[Message]) -> str:
    """Return the model id of the last user message, or "" if there is none."""
    for message in reversed(messages):
        info = getattr(message, "info", None)
        if getattr(info, "role", None) == "user":
            model_id = getattr(info, "model_id", None)
            return model_id if isinstance(model_id, str) else ""
    return ""


def enforce_thinking_blocks(messages: list[Message]) -> int:
    """
    Repair every assistant message that lacks a leading thinking block.

    Flow:
    1. Read the model id from the last user message
    2. Stop if the model does not enforce the rule
    3. Scan messages in order, staging one synthetic part per violation
    4. Prepend the staged parts

    Malformed messages are logged and skipped. Staged parts are only applied
    after the scan, so a failure outside per-message handling leaves the
    conversation as it was.

    Args:
        messages: Conversation snapshot, mutated in place

    Returns:
        Number of messages repaired
    """
    if not messages:
        return 0

    model_id = find_active_model_id(messages)
    if not is_extended_thinking_model(model_id):
        return 0

    staged: dict[int, ThinkingPart] = {}
    for index, message in enumerate(messages):
        try:
            if not needs_thinking_block(message):
                continue
            previous_thinking = find_previous_thinking_content(messages, index, staged)
            staged[index] = build_thinking_part(
                message, previous_thinking or settings.DEFAULT_THINKING_CONTENT
            )
        except (AttributeError, TypeError, ValueError) as e:
            logger.warning(f"[{HOOK_NAME}] Skipping malformed message at index {index}: {str(e)}")

    for index, thinking_part in staged.items():
        _insert_first(messages[index], thinking_part)

    if staged:
        log = logger.info if settings.DEBUG_THINKING_VALIDATOR else logger.debug
        log(f"[{HOOK_NAME}] Fixed {len(staged)} message(s) by prepending thinking blocks")

    return len(staged)


def validate_message(
    message: Message,
    messages: list[Message],
    index: int,
    model_id: str,
) -> ValidationResult:
    """
    Validate a single message and repair it in place if needed.

    Args:
        message: Message to check
        messages: Full conversation, used for the backward search
        index: Position of message in messages
        model_id: Model the conversation is being sent to

    Returns:
        ValidationResult with issue and action set when a repair was made
    """
    if message.info.role != "assistant":
        return ValidationResult(valid=True, fixed=False)

    if not is_extended_thinking_model(model_id):
        return ValidationResult(valid=True, fixed=False)

    if not needs_thinking_block(message):
        return ValidationResult(valid=True, fixed=False)

    previous_thinking = find_previous_thinking_content(messages, index)
    thinking_content = previous_thinking or settings.DEFAULT_THINKING_CONTENT
    prepend_thinking_block(message, thinking_content)

    return ValidationResult(
        valid=False,
        fixed=True,
        issue="Assistant message has content but no thinking block",
        action=f'Prepended synthetic thinking block: "{thinking_content[:50]}..."',
    )


def validate_messages(messages: list[Message], model_id: str) -> list[ValidationResult]:
    """
    Validate every message, returning one result per message.

    Malformed messages are left as they are and reported as unfixed issues.
    """
    results = []
    for index, message in enumerate(messages):
        try:
            results.append(validate_message(message, messages, index, model_id))
        except (AttributeError, TypeError, ValueError) as e:
            logger.warning(f"[{HOOK_NAME}] Skipping malformed message at index {index}: {str(e)}")
            results.append(ValidationResult(valid=False, fixed=False, issue="Malformed message skipped"))
    return results


def get_validation_stats(results: list[ValidationResult]) -> Dict[str, int]:
    """Summarize validation results."""
    return {
        "total": len(results),
        "valid": sum(1 for r in results if r.valid and not r.fixed),
        "fixed": sum(1 for r in results if r.fixed),
        "issues": sum(1 for r in results if not r.valid),
    }


def create_thinking_block_validator_hook() -> Dict[str, TransformHook]:
    """
    Create the pre-send transform hook.

    The transform reads output["messages"], repairs them in place and
    adds the repair count to output["fixed_count"].

    Returns:
        Mapping of hook point to transform
    """
    def transform(_input: Dict[str, Any], output: Dict[str, Any]) -> None:
        messages = output.get("messages")
        if not messages:
            return
        fixed_count = enforce_thinking_blocks(messages)
        output["fixed_count"] = output.get("fixed_count", 0) + fixed_count

    return {MESSAGES_TRANSFORM_HOOK: transform}
