"""Slot-management contract driven by the calendar engine.

The engine never stores slots itself. It calls a SlotCollaborator to place,
move, remove and re-segment assignments. InMemorySlotBook is a reference
implementation, used by the demo and the tests, that enforces at most one
occupant per half-day and runs the placement walk for multi-unit requests.
"""

import itertools
import logging
from abc import ABC, abstractmethod
from datetime import date
from typing import Iterable, Optional

from workloadcal.domain.config import CalendarConfig
from workloadcal.domain.models import (
    HalfDay,
    HalfDayPosition,
    HalfDaySlot,
    Holiday,
    TaskProgress,
    TaskRef,
    UserLeave,
)
from workloadcal.scheduling.availability import AvailabilityResolver
from workloadcal.scheduling.segmentation import PlacementError, SegmentationPlanner

logger = logging.getLogger(__name__)


class SlotConflictError(ValueError):
    """Raised when a half-day is already occupied or otherwise unassignable."""


class SlotCollaborator(ABC):
    """External slot service the engine calls through.

    Mutating calls are coroutines; the read accessors are synchronous.
    """

    def is_half_day_available(self, user_id: str, day: date, half_day: HalfDay) -> bool:
        """Extra availability restriction (e.g. occupancy). Defaults to True."""
        return True

    @abstractmethod
    async def on_slot_add(
        self,
        task_id: str,
        user_id: str,
        day: date,
        half_day: HalfDay,
    ) -> None:
        """Place a single half-day of a task."""
        pass

    @abstractmethod
    async def on_multi_slot_add(
        self,
        task_id: str,
        user_id: str,
        day: date,
        half_day: HalfDay,
        count: int,
        segments: int = 1,
    ) -> None:
        """Place ``count`` half-days of a task following the placement walk.

        Args:
            task_id: Task to place.
            user_id: Collaborator receiving the work.
            day: Anchor date of the walk.
            half_day: Anchor half-day of the walk.
            count: Total half-day units to place.
            segments: Number of equal segments the units are grouped in.
        """
        pass

    @abstractmethod
    async def on_slot_move(self, slot_id: str, new_date: date, new_half_day: HalfDay) -> None:
        """Move an existing slot to another half-day of the same collaborator."""
        pass

    @abstractmethod
    async def on_slot_remove(self, slot_id: str) -> None:
        """Delete a slot."""
        pass

    @abstractmethod
    async def on_segment_slot(
        self,
        slot: HalfDaySlot,
        user_id: str,
        new_segment_count: int,
    ) -> None:
        """Re-segment the placement of ``slot.task_id`` for a collaborator."""
        pass

    @abstractmethod
    def get_task_slots_count(self, task_id: str, user_id: str) -> int:
        pass

    @abstractmethod
    def get_task_duration(self, task_id: str) -> Optional[int]:
        pass

    @abstractmethod
    def get_task_progress(self, task_id: str) -> Optional[TaskProgress]:
        pass


class InMemorySlotBook(SlotCollaborator):
    """Reference slot service holding slots in memory.

    Example:
        >>> book = InMemorySlotBook(holidays=holidays, leaves=leaves, tasks=tasks)
        >>> asyncio.run(book.on_multi_slot_add("T1", "U001", monday, HalfDay.MORNING, 4))
        >>> len(book.slots)
        4
    """

    def __init__(
        self,
        holidays: Iterable[Holiday] = (),
        leaves: Iterable[UserLeave] = (),
        tasks: Iterable[TaskRef] = (),
        config: Optional[CalendarConfig] = None,
    ):
        self.config = config or CalendarConfig()
        self.resolver = AvailabilityResolver(
            holidays=holidays,
            leaves=leaves,
            override=self.is_half_day_available,
            leave_policy=self.config.leave_policy,
        )
        self.planner = SegmentationPlanner(self.resolver, self.config)
        self._tasks = {t.id: t for t in tasks}
        self._slots: dict[str, HalfDaySlot] = {}
        self._occupancy: dict[tuple[str, date, HalfDay], str] = {}
        self._ids = itertools.count(1)

    @property
    def slots(self) -> list[HalfDaySlot]:
        """All slots ordered by user, then calendar position."""
        return sorted(
            self._slots.values(),
            key=lambda s: (s.user_id, s.date, s.half_day.index),
        )

    @property
    def planned_task_ids(self) -> set[str]:
        return {s.task_id for s in self._slots.values()}

    def register_task(self, task: TaskRef) -> None:
        self._tasks[task.id] = task

    def get_slot(self, slot_id: str) -> HalfDaySlot:
        try:
            return self._slots[slot_id]
        except KeyError:
            raise KeyError(f"Unknown slot: {slot_id}") from None

    def task_slots(self, task_id: str, user_id: str) -> list[HalfDaySlot]:
        return [s for s in self.slots if s.task_id == task_id and s.user_id == user_id]

    # Contract

    def is_half_day_available(self, user_id: str, day: date, half_day: HalfDay) -> bool:
        return (user_id, day, half_day) not in self._occupancy

    async def on_slot_add(
        self,
        task_id: str,
        user_id: str,
        day: date,
        half_day: HalfDay,
    ) -> None:
        self._require_available(user_id, HalfDayPosition(day, half_day))
        self._create(task_id, user_id, HalfDayPosition(day, half_day))

    async def on_multi_slot_add(
        self,
        task_id: str,
        user_id: str,
        day: date,
        half_day: HalfDay,
        count: int,
        segments: int = 1,
    ) -> None:
        try:
            plan = self.planner.plan(user_id, day, half_day, count, segments=segments)
        except PlacementError as exc:
            raise SlotConflictError(str(exc)) from exc

        for position in plan.positions:
            self._create(task_id, user_id, position)
        logger.info(
            "Placed %d half-days of task %s for %s in %d segment(s) (%s to %s)",
            count, task_id, user_id, plan.segment_count, plan.start, plan.end,
        )

    async def on_slot_move(self, slot_id: str, new_date: date, new_half_day: HalfDay) -> None:
        slot = self.get_slot(slot_id)
        target = HalfDayPosition(new_date, new_half_day)
        if target == slot.position:
            return
        self._require_available(slot.user_id, target)

        self._delete(slot)
        moved = HalfDaySlot(
            id=slot.id,
            task_id=slot.task_id,
            user_id=slot.user_id,
            date=new_date,
            half_day=new_half_day,
        )
        self._store(moved)

    async def on_slot_remove(self, slot_id: str) -> None:
        self._delete(self.get_slot(slot_id))

    async def on_segment_slot(
        self,
        slot: HalfDaySlot,
        user_id: str,
        new_segment_count: int,
    ) -> None:
        existing = self.task_slots(slot.task_id, user_id)
        duration = self.get_task_duration(slot.task_id) or len(existing)

        try:
            plan = self.planner.replan(
                user_id,
                [s.position for s in existing],
                duration,
                new_segment_count,
            )
        except PlacementError as exc:
            raise SlotConflictError(str(exc)) from exc

        # Plan first so a failed walk leaves the existing layout untouched
        for old in existing:
            self._delete(old)
        for position in plan.positions:
            self._create(slot.task_id, user_id, position)

    def get_task_slots_count(self, task_id: str, user_id: str) -> int:
        return len(self.task_slots(task_id, user_id))

    def get_task_duration(self, task_id: str) -> Optional[int]:
        task = self._tasks.get(task_id)
        return task.duration_half_days if task else None

    def get_task_progress(self, task_id: str) -> Optional[TaskProgress]:
        task = self._tasks.get(task_id)
        return task.progress if task else None

    # Storage helpers

    def _require_available(self, user_id: str, position: HalfDayPosition) -> None:
        reason = self.resolver.block_reason(user_id, position.day, position.half_day)
        if reason is not None:
            raise SlotConflictError(
                f"{position} is not available for {user_id} ({reason.value})"
            )

    def _create(self, task_id: str, user_id: str, position: HalfDayPosition) -> HalfDaySlot:
        slot = HalfDaySlot(
            id=f"S{next(self._ids):05d}",
            task_id=task_id,
            user_id=user_id,
            date=position.day,
            half_day=position.half_day,
        )
        self._store(slot)
        return slot

    def _store(self, slot: HalfDaySlot) -> None:
        if slot.occupancy_key in self._occupancy:
            raise SlotConflictError(f"{slot.position} is already occupied for {slot.user_id}")
        self._slots[slot.id] = slot
        self._occupancy[slot.occupancy_key] = slot.id

    def _delete(self, slot: HalfDaySlot) -> None:
        del self._slots[slot.id]
        del self._occupancy[slot.occupancy_key]
