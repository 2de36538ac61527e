"""Message transform routes for the outbound send path.

Provides:
- POST /api/messages/transform - Run pre-send transforms on a snapshot
- POST /api/messages/validate - Per-message validation report
- GET /api/models/{model_id}/thinking - Extended thinking capability lookup

Messages are parsed one at a time. A message that does not parse is passed
through as received, and messages the transforms leave alone are returned
exactly as they were sent.
"""
from typing import Any, Dict, Optional, Union
import logging

from fastapi import APIRouter, HTTPException, status
from pydantic import BaseModel, ConfigDict, ValidationError

from thinkguard.api.hooks.registry import create_default_registry
from thinkguard.models.conversation import Message, ValidationResult
from thinkguard.services.model_capabilities import is_extended_thinking_model
from thinkguard.services.thinking_validator import (
    MESSAGES_TRANSFORM_HOOK,
    find_active_model_id,
    get_validation_stats,
    validate_messages,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["messages"])

# Global registry (transforms hold no per-request state)
hook_registry = create_default_registry()


class TransformRequest(BaseModel):
    """Request model for a conversation snapshot. Messages are parsed per item."""
    messages: list[Any]


class TransformResponse(BaseModel):
    """Response model for a transformed snapshot."""
    model_config = ConfigDict(protected_namespaces=())

    messages: list[Any]
    fixed_count: int
    model_id: str


class ValidateRequest(BaseModel):
    """Request model for validation. model_id defaults to the last user turn's."""
    model_config = ConfigDict(protected_namespaces=())

    messages: list[Any]
    model_id: Optional[str] = None


class ValidateResponse(BaseModel):
    """Response model for a validation report."""
    messages: list[Any]
    results: list[ValidationResult]
    stats: Dict[str, int]


class ModelCapabilityResponse(BaseModel):
    """Response model for a capability lookup."""
    model_config = ConfigDict(protected_namespaces=())

    model_id: str
    extended_thinking: bool


def parse_messages(raw_messages: list[Any]) -> list[Union[Message, Any]]:
    """
    Parse each message on its own.

    Args:
        raw_messages: Messages as received in the request body

    Returns:
        Message models in the same order; malformed entries stay raw so the
        validator skips them
    """
    parsed: list[Union[Message, Any]] = []
    for index, raw in enumerate(raw_messages):
        try:
            parsed.append(Message.model_validate(raw))
        except ValidationError as e:
            logger.warning(
                f"Passing through malformed message at index {index}: "
                f"{e.error_count()} validation error(s)"
            )
            parsed.append(raw)
    return parsed


def _part_counts(messages: list[Union[Message, Any]]) -> list[Optional[int]]:
    return [len(m.parts) if isinstance(m, Message) else None for m in messages]


def merge_repairs(
    raw_messages: list[Any],
    messages: list[Union[Message, Any]],
    counts_before: list[Optional[int]],
) -> list[Any]:
    """
    Build response messages from the request body.

    Untouched messages are returned as received. For a repaired message only
    the prepended parts are serialized; the rest of it is the raw input.
    """
    merged = []
    for raw, message, before in zip(raw_messages, messages, counts_before):
        if before is None or len(message.parts) <= before:
            merged.append(raw)
            continue

        added = len(message.parts) - before
        repaired = dict(raw)
        repaired["parts"] = [
            part.model_dump(by_alias=True, exclude_unset=True)
            for part in message.parts[:added]
        ] + list(raw.get("parts") or [])
        merged.append(repaired)
    return merged


@router.post("/messages/transform", response_model=TransformResponse)
def transform_messages(request: TransformRequest) -> TransformResponse:
    """
    Run the pre-send transforms on a conversation snapshot.

    Flow:
    1. Parse messages one by one, keeping malformed ones raw
    2. Run transforms registered on the messages transform point
    3. Return the snapshot with repairs merged into the original messages

    Raises:
        HTTPException: 500 if a transform fails
    """
    messages = parse_messages(request.messages)
    counts_before = _part_counts(messages)
    output = {"messages": messages}

    try:
        hook_registry.run(MESSAGES_TRANSFORM_HOOK, {}, output)
    except Exception as e:
        logger.error(f"Message transform failed: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Message transform failed",
        )

    return TransformResponse(
        messages=merge_repairs(request.messages, messages, counts_before),
        fixed_count=output.get("fixed_count", 0),
        model_id=find_active_model_id(messages),
    )


@router.post("/messages/validate", response_model=ValidateResponse)
def validate_conversation(request: ValidateRequest) -> ValidateResponse:
    """
    Validate each message and report what was repaired.

    Args:
        request: Snapshot and optional model id override

    Returns:
        Repaired messages, one result per message and summary stats
    """
    messages = parse_messages(request.messages)
    counts_before = _part_counts(messages)

    model_id = request.model_id
    if model_id is None:
        model_id = find_active_model_id(messages)

    results = validate_messages(messages, model_id)
    stats = get_validation_stats(results)

    if stats["fixed"]:
        logger.info(f"Validation repaired {stats['fixed']} of {stats['total']} message(s) for model={model_id}")

    return ValidateResponse(
        messages=merge_repairs(request.messages, messages, counts_before),
        results=results,
        stats=stats,
    )


@router.get("/models/{model_id}/thinking", response_model=ModelCapabilityResponse)
def get_model_capability(model_id: str) -> ModelCapabilityResponse:
    """Report whether a model requires a leading thinking block."""
    return ModelCapabilityResponse(
        model_id=model_id,
        extended_thinking=is_extended_thinking_model(model_id),
    )
