"""Registry of pre-send transform hooks."""
from typing import Any, Dict, Mapping
import logging

from thinkguard.services.thinking_validator import (
    TransformHook,
    create_thinking_block_validator_hook,
)

logger = logging.getLogger(__name__)


class HookRegistry:
    """
    Registry for message pipeline hooks.

    Each hook point holds an ordered list of transforms. A transform gets
    the request input and a mutable output dict, and edits output in place.
    """

    def __init__(self):
        """Initialize an empty registry."""
        self.hooks: Dict[str, list[TransformHook]] = {}

    def register(self, hooks: Mapping[str, TransformHook]) -> None:
        """Add transforms keyed by hook point, after any already registered."""
        for hook_point, transform in hooks.items():
            self.hooks.setdefault(hook_point, []).append(transform)

    def run(self, hook_point: str, input: Dict[str, Any], output: Dict[str, Any]) -> Dict[str, Any]:
        """
        Run every transform registered for a hook point.

        Args:
            hook_point: Hook point name (e.g., 'experimental.chat.messages.transform')
            input: Request metadata, read-only for transforms
            output: Payload the transforms edit in place

        Returns:
            The same output dict
        """
        for transform in self.hooks.get(hook_point, []):
            transform(input, output)
        return output

    def hook_points(self) -> list[str]:
        """List hook points with at least one transform."""
        return list(self.hooks)


def create_default_registry() -> HookRegistry:
    """
    Create the registry used by the send path.

    Registers the thinking block validator on the messages transform point.
    """
    registry = HookRegistry()
    registry.register(create_thinking_block_validator_hook())
    logger.debug(f"Registered hook points: {registry.hook_points()}")
    return registry
