"""Stage run state machine using transitions library.

Tracks one execution of one stage for one feature. Nothing is persisted:
pipeline progress lives in the artifact files, and this machine only guards
the order of steps inside a single run_stage call.

Usage:
    from devpipe.pipeline.fsm import StageRunFSM

    fsm = StageRunFSM("1-user-auth", "tdd")
    fsm.pass_gate()        # preconditions satisfied
    fsm.start_producing()  # no interview for this stage
    fsm.write_artifact()
"""

import logging
from transitions import Machine

logger = logging.getLogger(__name__)


STATES = [
    "resolved",      # Stage looked up in the registry
    "gated",         # Required predecessor artifacts exist
    "interviewing",  # Waiting on interview answers
    "producing",     # Waiting on the content producer
    "written",       # Artifact on disk
    "failed",
]

TRANSITIONS = [
    {"trigger": "pass_gate", "source": "resolved", "dest": "gated"},
    {"trigger": "start_interview", "source": "gated", "dest": "interviewing"},
    {"trigger": "start_producing", "source": "gated", "dest": "producing"},
    {"trigger": "start_producing", "source": "interviewing", "dest": "producing"},
    {"trigger": "write_artifact", "source": "producing", "dest": "written"},
    {"trigger": "fail", "source": ["resolved", "gated", "interviewing", "producing"], "dest": "failed"},
]

TERMINAL_STATES = ("written", "failed")


class StageRunFSM:
    """State machine for a single stage run.

    Wraps the transitions library with run-specific logic:
    - Logs all transitions with the feature and stage
    - Rejects out-of-order steps (MachineError)
    """

    def __init__(self, feature: str, stage: str):
        """Initialize FSM for one run.

        Args:
            feature: Feature id string, used in log lines
            stage: Stage name
        """
        self.feature = feature
        self.stage = stage

        self.machine = Machine(
            model=self,
            states=STATES,
            transitions=TRANSITIONS,
            initial="resolved",
            auto_transitions=False,
            send_event=True,
            after_state_change="on_state_change",
        )

    @property
    def run_label(self) -> str:
        return f"{self.feature}/{self.stage}"

    def on_state_change(self, event) -> None:
        """Log every transition of this run."""
        t = event.transition
        logger.debug(f"[RUN] {self.run_label}: {t.source} -> {t.dest} ({event.event.name})")

    @property
    def finished(self) -> bool:
        return self.state in TERMINAL_STATES

    def can(self, trigger: str) -> bool:
        """Check if a trigger can be executed in current state."""
        return trigger in self.machine.get_triggers(self.state)
