"""
dp show - Print a stage artifact.
"""

from devpipe.artifacts import ArtifactNotFoundError, ArtifactStore, FeatureId, InvalidFeatureIdError
from devpipe.lib.config import PipelineConfig
from devpipe.pipeline.registry import UnknownStageError, get_stage


def cmd_show(args, config: PipelineConfig) -> int:
    """Print artifact content for a feature and stage."""
    try:
        feature_id = FeatureId.parse(args.feature)
        stage = get_stage(args.stage.lstrip("/"))
    except (InvalidFeatureIdError, UnknownStageError) as e:
        print(f"ERROR: {e}")
        return 2

    store = ArtifactStore(config.docs_dir)
    try:
        content = store.read(feature_id, stage)
    except ArtifactNotFoundError as e:
        print(f"ERROR: {e}")
        return 2

    if args.path:
        print(store.resolve_path(feature_id, stage))
    else:
        print(content, end="" if content.endswith("\n") else "\n")
    return 0
