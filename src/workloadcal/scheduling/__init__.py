"""Availability, segmentation and drag-and-drop assignment."""

from workloadcal.scheduling.availability import AvailabilityResolver, BlockReason
from workloadcal.scheduling.collaborator import (
    InMemorySlotBook,
    SlotCollaborator,
    SlotConflictError,
)
from workloadcal.scheduling.drag_drop import (
    DragDropAssignmentController,
    DragPhase,
    DropOutcome,
    DropStatus,
    PlacementDialog,
    SegmentDialog,
)
from workloadcal.scheduling.segmentation import (
    InvalidDurationError,
    PlacementError,
    PlacementPlan,
    SegmentationPlanner,
    valid_segment_counts,
)

__all__ = [
    # Availability
    "AvailabilityResolver",
    "BlockReason",
    # Segmentation
    "InvalidDurationError",
    "PlacementError",
    "PlacementPlan",
    "SegmentationPlanner",
    "valid_segment_counts",
    # Slot service
    "InMemorySlotBook",
    "SlotCollaborator",
    "SlotConflictError",
    # Drag and drop
    "DragDropAssignmentController",
    "DragPhase",
    "DropOutcome",
    "DropStatus",
    "PlacementDialog",
    "SegmentDialog",
]
