"""
dp stages - List pipeline stages.
"""

from devpipe.lib.config import PipelineConfig
from devpipe.pipeline.registry import STAGE_ORDER, get_stage


def cmd_stages(args, config: PipelineConfig) -> int:
    """Print the stage table in pipeline order."""
    print(f"{'#':<3} {'STAGE':<14} {'REQUIRES':<14} {'SUFFIX':<10} {'INTERVIEW':<10} DESCRIPTION")
    print("─" * 80)
    for i, name in enumerate(STAGE_ORDER, 1):
        stage = get_stage(name)
        requires = ", ".join(stage.required_predecessors) or "-"
        interview = "yes" if stage.uses_interview else "no"
        print(f"{i:<3} {name:<14} {requires:<14} {stage.artifact_suffix:<10} {interview:<10} {stage.description}")
    return 0
