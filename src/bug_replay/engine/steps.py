"""
Step extraction - What replay plays, and what a human would redo by hand.
"""

from typing import List, TYPE_CHECKING

from bug_replay.exceptions.replay import EmptyInteractionSet
from bug_replay.models.interaction import InteractionType

if TYPE_CHECKING:
    from bug_replay.models.interaction import InteractionRecord
    from bug_replay.models.report import BugReport, Recording


def replayable_interactions(report: "BugReport") -> List["InteractionRecord"]:
    """
    Click and input interactions of the report's original recording.
    
    Raises:
        EmptyInteractionSet: If there is no recording or nothing to replay
    """
    original = report.original_recording
    if original is None:
        raise EmptyInteractionSet(f"Bug report {report.id} has no recordings", report_id=report.id)
    
    interactions = original.replayable_interactions()
    if not interactions:
        raise EmptyInteractionSet(
            f"Bug report {report.id} has no click or input interactions to replay",
            report_id=report.id,
        )
    return interactions


def describe_interaction(interaction: "InteractionRecord") -> str:
    """
    One-line description, e.g. ``Click "Submit"`` or ``Type in "email"``.
    """
    if interaction.type == InteractionType.CLICK:
        action = "Click"
    elif interaction.type == InteractionType.INPUT:
        action = "Type in"
    else:
        action = interaction.subtype or interaction.type.value
    return f'{action} "{interaction.element.label}"'


def describe_steps(recording: "Recording") -> List[str]:
    """Describe every user interaction of a recording, keypresses included."""
    return [describe_interaction(i) for i in recording.timeline.user_interactions()]
