"""
Artifact store for pipeline documents.

Artifacts are flat markdown files under the docs directory, one per
(feature, stage):

    docs/features/<sequence>-<slug>.<suffix>.md

Path resolution is injective: the sequence number contains no '-', the slug
contains no '.', and every stage has a distinct suffix, so a file name can
only be produced by one (feature, stage) pair and parses back to it.
"""

import logging
import re
from dataclasses import dataclass
from pathlib import Path

from devpipe.lib.constants import ARTIFACT_EXT, MAX_SLUG_LEN, SLUG_PATTERN
from devpipe.pipeline.registry import STAGE_ORDER, Stage, get_stage, stage_for_suffix

logger = logging.getLogger(__name__)

ARTIFACT_NAME_PATTERN = re.compile(r'^([1-9][0-9]*)-([a-z0-9-]+)\.([a-z]+)\.md$')


class InvalidFeatureIdError(ValueError):
    """Sequence number or slug is not valid."""
    pass


class ArtifactNotFoundError(Exception):
    """Requested artifact does not exist."""

    def __init__(self, feature_id: "FeatureId", stage: Stage, path: Path):
        self.feature_id = feature_id
        self.stage = stage
        self.path = path
        super().__init__(f"No {stage.name} artifact for {feature_id} ({path})")


class FeatureConflictError(Exception):
    """Sequence number is already used by a different slug."""

    def __init__(self, feature_id: "FeatureId", existing: "FeatureId"):
        self.feature_id = feature_id
        self.existing = existing
        super().__init__(
            f"Sequence number {feature_id.sequence_number} already belongs to "
            f"'{existing}', cannot write artifacts for '{feature_id}'"
        )


def normalize_slug(text: str) -> str:
    """Turn a free-text title into a slug: lowercase, hyphen-separated.

    Raises:
        InvalidFeatureIdError: if nothing usable remains
    """
    slug = re.sub(r'[^a-z0-9]+', '-', text.lower()).strip('-')
    if len(slug) > MAX_SLUG_LEN:
        cut = slug[:MAX_SLUG_LEN]
        # Cut at a word boundary when the limit falls mid-word
        if slug[MAX_SLUG_LEN] != '-' and '-' in cut:
            cut = cut.rsplit('-', 1)[0]
        slug = cut.rstrip('-')
    if not slug:
        raise InvalidFeatureIdError(f"Cannot derive a slug from {text!r}")
    return slug


@dataclass(frozen=True)
class FeatureId:
    """Identifies one work item across all stages."""
    sequence_number: int
    slug: str

    def __post_init__(self):
        if isinstance(self.sequence_number, bool) or not isinstance(self.sequence_number, int):
            raise InvalidFeatureIdError(f"Sequence number must be an int, got {self.sequence_number!r}")
        if self.sequence_number < 1:
            raise InvalidFeatureIdError(f"Sequence number must be >= 1, got {self.sequence_number}")
        if len(self.slug) > MAX_SLUG_LEN or not SLUG_PATTERN.match(self.slug):
            raise InvalidFeatureIdError(
                f"Invalid slug '{self.slug}': use lowercase letters, digits and single hyphens "
                f"(max {MAX_SLUG_LEN} chars)"
            )

    @classmethod
    def parse(cls, text: str) -> "FeatureId":
        """Parse '<sequence>-<slug>', e.g. '1-user-auth'."""
        seq, sep, slug = text.partition('-')
        if not sep or not re.fullmatch(r'[1-9][0-9]*', seq):
            raise InvalidFeatureIdError(f"Invalid feature id '{text}', expected <number>-<slug>")
        return cls(int(seq), slug)

    def __str__(self) -> str:
        return f"{self.sequence_number}-{self.slug}"


@dataclass(frozen=True)
class Artifact:
    """A persisted stage document."""
    feature_id: FeatureId
    stage: Stage
    content: str
    path: Path


def _as_stage(stage: Stage | str) -> Stage:
    return stage if isinstance(stage, Stage) else get_stage(stage)


def parse_artifact_name(name: str) -> tuple[FeatureId, Stage] | None:
    """Parse an artifact file name back into (feature, stage), or None."""
    match = ARTIFACT_NAME_PATTERN.match(name)
    if not match:
        return None
    stage = stage_for_suffix(match.group(3))
    if stage is None:
        return None
    try:
        feature_id = FeatureId(int(match.group(1)), match.group(2))
    except InvalidFeatureIdError:
        return None
    return feature_id, stage


class ArtifactStore:
    """
    File-backed artifact namespace.

    Usage:
        store = ArtifactStore(Path("docs/features"))
        fid = FeatureId(1, "user-auth")
        store.write(fid, "feature", body)
        store.exists(fid, "feature")  # True
    """

    def __init__(self, docs_dir: Path):
        self.docs_dir = Path(docs_dir)

    def resolve_path(self, feature_id: FeatureId, stage: Stage | str) -> Path:
        """Deterministic path for (feature, stage)."""
        stage = _as_stage(stage)
        return self.docs_dir / f"{feature_id}.{stage.artifact_suffix}{ARTIFACT_EXT}"

    def exists(self, feature_id: FeatureId, stage: Stage | str) -> bool:
        """True iff the artifact file exists and is non-empty."""
        path = self.resolve_path(feature_id, stage)
        try:
            return path.is_file() and path.stat().st_size > 0
        except OSError as e:
            logger.warning(f"[STORE] Cannot stat {path}: {e}")
            return False

    def read(self, feature_id: FeatureId, stage: Stage | str) -> str:
        """Return artifact content.

        Raises:
            ArtifactNotFoundError: if the artifact is absent or empty
        """
        stage = _as_stage(stage)
        path = self.resolve_path(feature_id, stage)
        if not self.exists(feature_id, stage):
            raise ArtifactNotFoundError(feature_id, stage, path)
        return path.read_text(encoding="utf-8")

    def write(self, feature_id: FeatureId, stage: Stage | str, content: str) -> Artifact:
        """Write (or overwrite) an artifact. The only mutating operation.

        Raises:
            FeatureConflictError: if the sequence number belongs to another slug
        """
        stage = _as_stage(stage)
        existing = self.find_feature(feature_id.sequence_number)
        if existing is not None and existing != feature_id:
            raise FeatureConflictError(feature_id, existing)

        path = self.resolve_path(feature_id, stage)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            f.write(content)

        logger.info(f"[STORE] Wrote {path} ({len(content)} chars)")
        return Artifact(feature_id=feature_id, stage=stage, content=content, path=path)

    def _iter_artifacts(self):
        if not self.docs_dir.is_dir():
            return
        for path in sorted(self.docs_dir.iterdir()):
            if not path.is_file():
                continue
            parsed = parse_artifact_name(path.name)
            if parsed is None:
                logger.debug(f"[STORE] Ignoring non-artifact file {path.name}")
                continue
            yield parsed

    def list_features(self) -> list[FeatureId]:
        """All features with at least one artifact, by sequence number."""
        features = {fid for fid, _ in self._iter_artifacts()}
        return sorted(features, key=lambda f: (f.sequence_number, f.slug))

    def find_feature(self, sequence_number: int) -> FeatureId | None:
        """Return the feature that owns sequence_number, if any."""
        for fid, _ in self._iter_artifacts():
            if fid.sequence_number == sequence_number:
                return fid
        return None

    def stages_present(self, feature_id: FeatureId) -> list[Stage]:
        """Stages with a non-empty artifact for feature_id, in pipeline order."""
        return [
            get_stage(name) for name in STAGE_ORDER
            if self.exists(feature_id, name)
        ]

    def next_sequence_number(self) -> int:
        """One past the highest sequence number on disk (1 when empty)."""
        features = self.list_features()
        if not features:
            return 1
        return max(f.sequence_number for f in features) + 1
