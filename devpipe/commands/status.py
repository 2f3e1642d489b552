"""
dp status - Show which stage artifacts exist for a feature.
"""

from devpipe.artifacts import ArtifactStore, FeatureId, InvalidFeatureIdError
from devpipe.lib.config import PipelineConfig
from devpipe.pipeline.controller import PipelineController


def _print_feature(controller: PipelineController, feature_id: FeatureId) -> None:
    statuses = controller.status(feature_id)
    done_count = sum(1 for s in statuses if s.done)

    print(f"Feature: {feature_id}")
    print("=" * 60)
    print(f"{'STAGE':<14} {'ARTIFACT':<32} STATE")
    print("─" * 60)
    for s in statuses:
        path = controller.store.resolve_path(feature_id, s.stage)
        if s.done:
            state = "done"
        elif s.runnable:
            state = "ready"
        else:
            state = f"needs {', '.join(s.missing)}"
        print(f"{s.stage.name:<14} {path.name:<32} {state}")
    print("─" * 60)
    print(f"Progress: {done_count}/{len(statuses)} stages")


def cmd_status(args, config: PipelineConfig) -> int:
    """Show status for one feature, or a summary of all features."""
    store = ArtifactStore(config.docs_dir)
    controller = PipelineController(store)

    if getattr(args, "feature", None):
        try:
            feature_id = FeatureId.parse(args.feature)
        except InvalidFeatureIdError as e:
            print(f"ERROR: {e}")
            return 2
        _print_feature(controller, feature_id)
        return 0

    features = store.list_features()
    if not features:
        print(f"No features in {config.docs_dir}")
        print("Start one with: dp new <title>")
        return 0

    print(f"{'FEATURE':<32} {'DONE':<6} NEXT READY")
    print("─" * 60)
    for fid in features:
        statuses = controller.status(fid)
        done = sum(1 for s in statuses if s.done)
        ready = [s.stage.name for s in statuses if s.runnable and not s.done]
        print(f"{str(fid):<32} {done}/{len(statuses):<4} {', '.join(ready) or '-'}")
    print("─" * 60)
    print(f"{len(features)} feature(s)")
    return 0
