"""Domain enums — stage order, event statuses, and run configuration choices."""

from enum import Enum, unique


@unique
class StageName(Enum):
    """Pipeline stages in execution order."""

    SCRIPT = "script"
    NARRATION = "narration"
    FOOTAGE = "footage"
    RENDER = "render"
    PUBLISH = "publish"
    NOTIFY = "notify"


@unique
class EventStatus(Enum):
    """Status carried by every RunEvent."""

    INFO = "info"
    PROGRESS = "progress"
    UPLOADING = "uploading"
    SUCCESS = "success"
    ERROR = "error"


@unique
class Preset(Enum):
    """Named bundle of creative defaults selectable per run."""

    NEWS = "news"
    FACTS = "facts"
    LONGFORM = "longform"


@unique
class Visibility(Enum):
    """Privacy status applied to the uploaded video."""

    PRIVATE = "private"
    PUBLIC = "public"
    UNLISTED = "unlisted"


@unique
class QualityTier(Enum):
    """Stock footage resolution tier, ordered by ``rank``."""

    SD = "sd"
    HD = "hd"
    UHD = "uhd"

    @property
    def rank(self) -> int:
        return _TIER_RANK[self]


_TIER_RANK: dict[QualityTier, int] = {
    QualityTier.SD: 0,
    QualityTier.HD: 1,
    QualityTier.UHD: 2,
}
