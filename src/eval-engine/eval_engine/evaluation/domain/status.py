"""RunStatus — lifecycle states of an evaluation run as persisted in the store."""

from enum import StrEnum


class RunStatus(StrEnum):
    PENDING = "Pending"
    DATA_PREVIEWED = "DataPreviewed"
    PROCESSING = "Processing"
    COMPLETED = "Completed"
    FAILED = "Failed"


class RunType(StrEnum):
    PRODUCT = "Product"
    GROUND_TRUTH = "GroundTruth"
