"""Interactive drag-and-drop assignment of tasks into half-day units.

The controller is a small state machine:

    Idle -> Dragging{source} -> Hovering{target} -> (Dropped | Cancelled) -> Idle

A source is either an existing HalfDaySlot (move gesture) or a TaskRef (new
placement gesture). Drops are validated locally against the availability
resolver; legal drops are forwarded to the SlotCollaborator. Tasks longer
than one day open a placement dialog so the operator can pick how the
duration is divided into equal segments.

All collaborator calls are awaited. While one is pending the controller is
busy and ignores further drops and confirmations.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, timedelta
from enum import Enum
from typing import Awaitable, Callable, Optional

from workloadcal.domain.config import CalendarConfig
from workloadcal.domain.models import (
    DropTarget,
    HalfDay,
    HalfDayPosition,
    HalfDaySlot,
    TaskRef,
    ViewLevel,
    is_weekend,
)
from workloadcal.scheduling.availability import AvailabilityResolver
from workloadcal.scheduling.collaborator import SlotCollaborator
from workloadcal.scheduling.segmentation import (
    SegmentationPlanner,
    valid_segment_counts,
)

logger = logging.getLogger(__name__)

# One working day, in half-days
FULL_DAY = 2


class DragPhase(Enum):
    """Phase of the current drag gesture."""

    IDLE = "idle"
    DRAGGING = "dragging"
    HOVERING = "hovering"


class DropStatus(Enum):
    """What a drop (or dialog confirmation) resulted in."""

    PLACED = "placed"
    MOVED = "moved"
    DIALOG_OPENED = "dialog_opened"
    SEGMENTED = "segmented"
    REMOVED = "removed"
    REJECTED = "rejected"  # Invalid gesture, no external call
    IGNORED = "ignored"  # Nothing to drop, a call is pending, or a dialog is open
    FAILED = "failed"  # The collaborator call raised


@dataclass
class DragSource:
    """What is being dragged: an existing slot or a backlog task."""

    slot: Optional[HalfDaySlot] = None
    task: Optional[TaskRef] = None

    @property
    def is_move(self) -> bool:
        return self.slot is not None


@dataclass
class DropOutcome:
    """Result of a drop gesture or a dialog confirmation."""

    status: DropStatus
    target: Optional[DropTarget] = None
    reason: str = ""
    error: Optional[Exception] = None

    @property
    def succeeded(self) -> bool:
        return self.status in (
            DropStatus.PLACED,
            DropStatus.MOVED,
            DropStatus.SEGMENTED,
            DropStatus.REMOVED,
        )


def describe_segments(duration: int, segments: int) -> str:
    """Human label for splitting ``duration`` half-days into ``segments``."""
    per_segment = duration // segments
    if segments == 1:
        days = duration / FULL_DAY
        return f"1 block of {days:g} day{'s' if days > 1 else ''}"
    if per_segment == 1:
        return f"{segments} x half-day"
    days = per_segment / FULL_DAY
    return f"{segments} x {days:g} day{'s' if days > 1 else ''}"


@dataclass
class PlacementDialog:
    """Confirmation dialog for placing a multi-day task.

    Attributes:
        task: Task being placed.
        user_id: Collaborator receiving the task.
        day: Anchor date of the placement.
        half_day: Anchor half-day of the placement.
        duration: Total half-days of the task.
        options: Valid segment counts (divisors of duration).
        selected_segments: Current choice; defaults to one full block.
        is_submitting: True while the confirmation call is pending.
        error: Last failure, kept so the operator can retry or cancel.
    """

    task: TaskRef
    user_id: str
    day: date
    half_day: HalfDay
    duration: int
    options: list[int] = field(default_factory=list)
    selected_segments: int = 1
    is_submitting: bool = False
    error: Optional[Exception] = None

    @property
    def segment_length(self) -> int:
        return self.duration // self.selected_segments

    def option_labels(self) -> dict[int, str]:
        return {n: describe_segments(self.duration, n) for n in self.options}


@dataclass
class SegmentDialog:
    """Dialog for changing the split of an existing placement."""

    slot: HalfDaySlot
    user_id: str
    current_count: int
    duration: int
    options: list[int] = field(default_factory=list)
    selected_segments: int = 1
    is_submitting: bool = False
    error: Optional[Exception] = None

    def option_labels(self) -> dict[int, str]:
        return {n: describe_segments(self.duration, n) for n in self.options}


class DragDropAssignmentController:
    """Mediates placement and moves of tasks into capacity units.

    Example:
        >>> controller = DragDropAssignmentController(book, book.resolver)
        >>> controller.begin_task_drag(task)
        >>> controller.drag_over("U001", monday, HalfDay.MORNING)
        True
        >>> outcome = await controller.drop("U001", monday, HalfDay.MORNING)
    """

    def __init__(
        self,
        collaborator: SlotCollaborator,
        resolver: Optional[AvailabilityResolver] = None,
        planner: Optional[SegmentationPlanner] = None,
        config: Optional[CalendarConfig] = None,
    ):
        """Initialize controller.

        Args:
            collaborator: Slot service receiving mutating calls.
            resolver: Availability predicate. Defaults to one with no calendar
                data whose override is the collaborator's availability check.
            planner: Planner used to resolve week-level drops.
            config: Engine configuration.
        """
        self.collaborator = collaborator
        self.config = config or CalendarConfig()
        self.resolver = resolver or AvailabilityResolver(
            override=collaborator.is_half_day_available,
            leave_policy=self.config.leave_policy,
        )
        self.planner = planner or SegmentationPlanner(self.resolver, self.config)

        self.phase = DragPhase.IDLE
        self.source: Optional[DragSource] = None
        self.drop_target: Optional[DropTarget] = None
        self.placement_dialog: Optional[PlacementDialog] = None
        self.segment_dialog: Optional[SegmentDialog] = None
        self.is_busy = False

    # Gesture lifecycle

    def begin_slot_drag(self, slot: HalfDaySlot) -> None:
        """Start moving an existing slot."""
        self._begin(DragSource(slot=slot))

    def begin_task_drag(self, task: TaskRef) -> None:
        """Start placing a backlog task."""
        self._begin(DragSource(task=task))

    def drag_over(
        self,
        user_id: str,
        day: date,
        half_day: HalfDay,
        view_level: ViewLevel = ViewLevel.WEEK,
    ) -> bool:
        """Hover a cell; returns whether a drop there would be accepted.

        The answer matches what ``drop`` would do at the same resolution:
        half-day cells refuse weekends up front, without consulting the
        resolver; quarter cells accept any week with a free half-day and
        hover the half-day the drop would land on; year cells refuse.
        """
        if self.source is None:
            return False

        target = None
        if view_level in (ViewLevel.QUARTER, ViewLevel.YEAR) or not is_weekend(day):
            target = self._resolve_target(user_id, day, half_day, view_level)

        self.drop_target = target
        self.phase = DragPhase.DRAGGING if target is None else DragPhase.HOVERING
        return target is not None

    def drag_leave(self) -> None:
        self.drop_target = None
        if self.source is not None:
            self.phase = DragPhase.DRAGGING

    def end_drag(self) -> None:
        """Drag ended without a drop (escape or released outside any cell)."""
        if self.source is not None:
            logger.debug("Drag cancelled")
        self._reset_gesture()

    async def drop(
        self,
        user_id: str,
        day: date,
        half_day: HalfDay,
        view_level: ViewLevel = ViewLevel.WEEK,
    ) -> DropOutcome:
        """Drop the dragged source on a cell.

        Args:
            user_id: Collaborator row of the cell.
            day: Date of the cell (the week start at quarter resolution).
            half_day: Half-day of the cell.
            view_level: Resolution the drop happened at. Quarter-level drops
                resolve to the first assignable half-day of the week; year
                cells accept no drops.

        Returns:
            DropOutcome describing what happened. Drops made while a placement
            or segment dialog is still open are ignored so its pending choice
            is kept.
        """
        source = self.source
        self._reset_gesture()

        if source is None:
            return DropOutcome(DropStatus.IGNORED, reason="nothing is being dragged")
        if self.is_busy:
            logger.debug("Drop ignored: a previous call is still pending")
            return DropOutcome(DropStatus.IGNORED, reason="a previous call is still pending")
        if self.placement_dialog is not None or self.segment_dialog is not None:
            logger.debug("Drop ignored: a dialog is awaiting confirmation")
            return DropOutcome(DropStatus.IGNORED, reason="a dialog is awaiting confirmation")

        target = self._resolve_target(user_id, day, half_day, view_level)
        if target is None:
            logger.debug("Drop rejected at %s %s for %s", day, half_day.value, user_id)
            return DropOutcome(DropStatus.REJECTED, reason="target is not available")

        if source.is_move:
            return await self._drop_slot(source.slot, target)
        return await self._drop_task(source.task, target)

    # Placement dialog

    def select_segments(self, segments: int) -> None:
        dialog = self.placement_dialog
        if dialog is None:
            raise RuntimeError("No placement dialog is open")
        if segments not in dialog.options:
            raise ValueError(
                f"{segments} is not a valid split of {dialog.duration} half-days"
            )
        dialog.selected_segments = segments

    async def confirm_placement(self) -> DropOutcome:
        """Apply the open placement dialog's choice.

        On failure the dialog stays open with ``error`` set.
        """
        dialog = self.placement_dialog
        if dialog is None or dialog.is_submitting or self.is_busy:
            return DropOutcome(DropStatus.IGNORED, reason="no dialog ready to confirm")

        # Compatibility mode: always place a single contiguous block
        segments = 1 if self.config.full_block_confirm else dialog.selected_segments
        target = DropTarget(dialog.user_id, dialog.day, dialog.half_day)

        dialog.is_submitting = True
        dialog.error = None
        try:
            error = await self._call(
                self.collaborator.on_multi_slot_add,
                dialog.task.id,
                dialog.user_id,
                dialog.day,
                dialog.half_day,
                dialog.duration,
                segments=segments,
            )
        finally:
            dialog.is_submitting = False

        if error is not None:
            dialog.error = error
            return DropOutcome(DropStatus.FAILED, target=target, error=error)

        self.placement_dialog = None
        return DropOutcome(DropStatus.PLACED, target=target)

    def cancel_placement(self) -> None:
        if self.placement_dialog is not None and not self.placement_dialog.is_submitting:
            self.placement_dialog = None

    # Segmentation of existing placements

    def open_segment_dialog(self, slot: HalfDaySlot, user_id: str) -> SegmentDialog:
        """Open the re-segmentation dialog for the task behind a slot.

        The selection starts at the current slot count when that is a valid
        split of the duration, and at one block otherwise.
        """
        current = self.collaborator.get_task_slots_count(slot.task_id, user_id) or 1
        duration = self.collaborator.get_task_duration(slot.task_id) or current
        options = valid_segment_counts(duration)

        self.segment_dialog = SegmentDialog(
            slot=slot,
            user_id=user_id,
            current_count=current,
            duration=duration,
            options=options,
            selected_segments=current if current in options else 1,
        )
        return self.segment_dialog

    def select_resegmentation(self, segments: int) -> None:
        dialog = self.segment_dialog
        if dialog is None:
            raise RuntimeError("No segment dialog is open")
        if segments not in dialog.options:
            raise ValueError(
                f"{segments} is not a valid split of {dialog.duration} half-days"
            )
        dialog.selected_segments = segments

    async def confirm_segmentation(self) -> DropOutcome:
        dialog = self.segment_dialog
        if dialog is None or dialog.is_submitting or self.is_busy:
            return DropOutcome(DropStatus.IGNORED, reason="no dialog ready to confirm")

        dialog.is_submitting = True
        dialog.error = None
        try:
            error = await self._call(
                self.collaborator.on_segment_slot,
                dialog.slot,
                dialog.user_id,
                dialog.selected_segments,
            )
        finally:
            dialog.is_submitting = False

        if error is not None:
            dialog.error = error
            return DropOutcome(DropStatus.FAILED, error=error)

        self.segment_dialog = None
        return DropOutcome(DropStatus.SEGMENTED)

    def cancel_segmentation(self) -> None:
        if self.segment_dialog is not None and not self.segment_dialog.is_submitting:
            self.segment_dialog = None

    async def remove_slot(self, slot: HalfDaySlot) -> DropOutcome:
        """Remove a slot. Ignored while another call is pending."""
        target = DropTarget(slot.user_id, slot.date, slot.half_day)
        if self.is_busy:
            logger.debug("Removal of %s ignored: a previous call is still pending", slot.id)
            return DropOutcome(
                DropStatus.IGNORED, target=target, reason="a previous call is still pending"
            )

        error = await self._call(self.collaborator.on_slot_remove, slot.id)
        if error is not None:
            return DropOutcome(DropStatus.FAILED, target=target, error=error)
        return DropOutcome(DropStatus.REMOVED, target=target)

    # Internals

    def _begin(self, source: DragSource) -> None:
        self.source = source
        self.drop_target = None
        self.phase = DragPhase.DRAGGING

    def _reset_gesture(self) -> None:
        self.source = None
        self.drop_target = None
        self.phase = DragPhase.IDLE

    def _resolve_target(
        self,
        user_id: str,
        day: date,
        half_day: HalfDay,
        view_level: ViewLevel,
    ) -> Optional[DropTarget]:
        if view_level is ViewLevel.YEAR:
            return None

        if view_level is ViewLevel.QUARTER:
            week_start = day - timedelta(days=day.weekday())
            position = self.planner.first_available(
                user_id, week_start, week_start + timedelta(days=6)
            )
        else:
            position = HalfDayPosition(day, half_day)
            if not self.resolver.is_position_available(user_id, position):
                position = None

        if position is None:
            return None
        return DropTarget(user_id=user_id, date=position.day, half_day=position.half_day)

    async def _drop_slot(self, slot: HalfDaySlot, target: DropTarget) -> DropOutcome:
        if slot.user_id != target.user_id:
            return DropOutcome(
                DropStatus.REJECTED,
                target=target,
                reason="slots can only move within the same collaborator",
            )

        error = await self._call(
            self.collaborator.on_slot_move, slot.id, target.date, target.half_day
        )
        if error is not None:
            return DropOutcome(DropStatus.FAILED, target=target, error=error)
        return DropOutcome(DropStatus.MOVED, target=target)

    async def _drop_task(self, task: TaskRef, target: DropTarget) -> DropOutcome:
        duration = task.duration_half_days
        if duration is None:
            duration = self.collaborator.get_task_duration(task.id)

        if duration is None or duration <= 1:
            error = await self._call(
                self.collaborator.on_slot_add,
                task.id,
                target.user_id,
                target.date,
                target.half_day,
            )
        elif duration == FULL_DAY:
            error = await self._call(
                self.collaborator.on_multi_slot_add,
                task.id,
                target.user_id,
                target.date,
                target.half_day,
                FULL_DAY,
            )
        else:
            self.placement_dialog = PlacementDialog(
                task=task,
                user_id=target.user_id,
                day=target.date,
                half_day=target.half_day,
                duration=duration,
                options=valid_segment_counts(duration),
            )
            logger.debug("Placement dialog opened for task %s (%d half-days)", task.id, duration)
            return DropOutcome(DropStatus.DIALOG_OPENED, target=target)

        if error is not None:
            return DropOutcome(DropStatus.FAILED, target=target, error=error)
        return DropOutcome(DropStatus.PLACED, target=target)

    async def _call(
        self,
        method: Callable[..., Awaitable[None]],
        *args,
        **kwargs,
    ) -> Optional[Exception]:
        """Await a collaborator call under the busy guard; return its error, if any."""
        self.is_busy = True
        logger.info("Calling %s%s", method.__name__, args)
        try:
            await method(*args, **kwargs)
        except Exception as exc:
            logger.exception("%s failed", method.__name__)
            return exc
        finally:
            self.is_busy = False
        return None
