"""
Engine module - Element resolution, action playback and replay orchestration.
"""

from bug_replay.engine.resolver import (
    ElementResolver,
    ResolutionStrategy,
    ResolvedElement,
    DEFAULT_STRATEGIES,
    by_id,
    by_selector,
    by_text,
    by_xpath,
)
from bug_replay.engine.player import ActionPlayer
from bug_replay.engine.steps import describe_interaction, describe_steps, replayable_interactions
from bug_replay.engine.orchestrator import (
    OutcomeKind,
    ReplayOrchestrator,
    ReplayOutcome,
    ReplaySession,
    ReplayStatus,
)

__all__ = [
    "ElementResolver",
    "ResolutionStrategy",
    "ResolvedElement",
    "DEFAULT_STRATEGIES",
    "by_id",
    "by_selector",
    "by_text",
    "by_xpath",
    "ActionPlayer",
    "describe_interaction",
    "describe_steps",
    "replayable_interactions",
    "OutcomeKind",
    "ReplayOrchestrator",
    "ReplayOutcome",
    "ReplaySession",
    "ReplayStatus",
]
