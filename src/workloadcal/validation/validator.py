"""Validation of planned slots against the calendar.

Slots are created only where the calendar allowed them, but holidays and
leave are recorded after the fact. This module reports slots that now sit on
a non-working or leave half-day, and any half-day with more than one
occupant.
"""

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Iterable, Optional

from workloadcal.domain.models import HalfDay, HalfDaySlot, Holiday, TaskRef, UserLeave
from workloadcal.domain.policies import LeavePolicy
from workloadcal.scheduling.availability import AvailabilityResolver, BlockReason


class ConflictType(Enum):
    """Types of slot conflicts."""

    WEEKEND = "weekend"
    HOLIDAY = "holiday"
    LEAVE = "leave"
    DUPLICATE_OCCUPANT = "duplicate_occupant"


_BLOCK_CONFLICTS = {
    BlockReason.WEEKEND: ConflictType.WEEKEND,
    BlockReason.HOLIDAY: ConflictType.HOLIDAY,
    BlockReason.LEAVE: ConflictType.LEAVE,
}


@dataclass
class ValidationError:
    """A single slot conflict."""

    conflict_type: ConflictType
    message: str
    user_id: Optional[str] = None
    day: Optional[date] = None
    half_day: Optional[HalfDay] = None
    slot_ids: list[str] = field(default_factory=list)

    def __str__(self) -> str:
        parts = [f"[{self.conflict_type.value}]"]
        if self.user_id:
            parts.append(f"User {self.user_id}:")
        parts.append(self.message)
        if self.day is not None:
            half = f" {self.half_day.label}" if self.half_day else ""
            parts.append(f"({self.day.isoformat()}{half})")
        return " ".join(parts)


@dataclass
class ValidationResult:
    """Result of validating a set of slots."""

    is_valid: bool
    errors: list[ValidationError] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def add_error(self, error: ValidationError) -> None:
        """Add an error and mark as invalid."""
        self.errors.append(error)
        self.is_valid = False

    def add_warning(self, warning: str) -> None:
        """Add a warning (doesn't affect validity)."""
        self.warnings.append(warning)

    def count(self, conflict_type: ConflictType) -> int:
        return sum(1 for e in self.errors if e.conflict_type is conflict_type)


class WorkloadValidator:
    """Checks planned slots against holidays, leave and occupancy.

    Example:
        >>> validator = WorkloadValidator(holidays=holidays, leaves=leaves)
        >>> result = validator.validate(book.slots)
        >>> result.count(ConflictType.LEAVE)
    """

    def __init__(
        self,
        holidays: Iterable[Holiday] = (),
        leaves: Iterable[UserLeave] = (),
        leave_policy: Optional[LeavePolicy] = None,
    ):
        self.resolver = AvailabilityResolver(
            holidays=holidays,
            leaves=leaves,
            leave_policy=leave_policy,
        )

    def validate(
        self,
        slots: Iterable[HalfDaySlot],
        tasks: Optional[Iterable[TaskRef]] = None,
    ) -> ValidationResult:
        """Validate slots.

        Args:
            slots: Slots to check.
            tasks: Optional task list; slots of closed or unknown tasks are
                reported as warnings.

        Returns:
            ValidationResult with is_valid flag and any conflicts.
        """
        result = ValidationResult(is_valid=True)
        occupants: dict[tuple[str, date, HalfDay], list[HalfDaySlot]] = defaultdict(list)

        for slot in slots:
            occupants[slot.occupancy_key].append(slot)
            self._check_calendar(slot, result)

        for (user_id, day, half_day), group in occupants.items():
            if len(group) > 1:
                result.add_error(
                    ValidationError(
                        conflict_type=ConflictType.DUPLICATE_OCCUPANT,
                        message=f"{len(group)} slots share one half-day",
                        user_id=user_id,
                        day=day,
                        half_day=half_day,
                        slot_ids=[s.id for s in group],
                    )
                )

        if tasks is not None:
            self._check_tasks(occupants, tasks, result)

        return result

    def conflict_count(self, slots: Iterable[HalfDaySlot]) -> int:
        """Number of slots sitting on leave (the planning board's conflict KPI)."""
        return self.validate(slots).count(ConflictType.LEAVE)

    def _check_calendar(self, slot: HalfDaySlot, result: ValidationResult) -> None:
        reason = self.resolver.calendar_block(slot.user_id, slot.date, slot.half_day)
        if reason is None:
            return

        if reason is BlockReason.HOLIDAY:
            holiday = self.resolver.holiday_on(slot.date)
            message = f"Slot {slot.id} falls on holiday '{holiday.name}'"
        elif reason is BlockReason.LEAVE:
            leave = self.resolver.leave_on(slot.user_id, slot.date, slot.half_day)
            message = f"Slot {slot.id} overlaps {leave.leave_type} {leave.id}"
        else:
            message = f"Slot {slot.id} falls on a weekend"

        result.add_error(
            ValidationError(
                conflict_type=_BLOCK_CONFLICTS[reason],
                message=message,
                user_id=slot.user_id,
                day=slot.date,
                half_day=slot.half_day,
                slot_ids=[slot.id],
            )
        )

    def _check_tasks(
        self,
        occupants: dict[tuple[str, date, HalfDay], list[HalfDaySlot]],
        tasks: Iterable[TaskRef],
        result: ValidationResult,
    ) -> None:
        tasks_by_id = {t.id: t for t in tasks}
        reported = set()
        for group in occupants.values():
            for slot in group:
                if slot.task_id in reported:
                    continue
                task = tasks_by_id.get(slot.task_id)
                if task is None:
                    result.add_warning(f"Slot {slot.id} references unknown task {slot.task_id}")
                    reported.add(slot.task_id)
                elif task.is_closed:
                    result.add_warning(f"Task {task.id} is {task.status} but still planned")
                    reported.add(slot.task_id)
