"""
dp new - Propose the identifier for a new feature.

Allocates the next free sequence number and derives the slug from the title.
Nothing is written: the feature exists once its feature artifact is.
"""

from devpipe.artifacts import ArtifactStore, FeatureId, InvalidFeatureIdError, normalize_slug
from devpipe.lib.config import PipelineConfig


def cmd_new(args, config: PipelineConfig) -> int:
    """Print the next feature id for a title."""
    store = ArtifactStore(config.docs_dir)

    try:
        slug = normalize_slug(args.title)
        number = args.number if args.number is not None else store.next_sequence_number()
        feature_id = FeatureId(number, slug)
    except InvalidFeatureIdError as e:
        print(f"ERROR: {e}")
        return 2

    existing = store.find_feature(feature_id.sequence_number)
    if existing is not None:
        print(f"ERROR: Sequence number {feature_id.sequence_number} is already used by {existing}")
        return 2

    print(feature_id)
    print(f"Start with: dp run feature {feature_id}")
    return 0
