"""Tests for the drag-and-drop assignment controller."""

import asyncio
from datetime import date, timedelta
from typing import Optional

import pytest

from workloadcal.domain.config import CalendarConfig
from workloadcal.domain.models import (
    DropTarget,
    HalfDay,
    HalfDaySlot,
    Holiday,
    TaskProgress,
    TaskRef,
    ViewLevel,
)
from workloadcal.scheduling.availability import AvailabilityResolver
from workloadcal.scheduling.collaborator import SlotCollaborator
from workloadcal.scheduling.drag_drop import (
    DragDropAssignmentController,
    DragPhase,
    DropStatus,
    describe_segments,
)

MONDAY = date(2025, 6, 2)
TUESDAY = date(2025, 6, 3)
WEDNESDAY = date(2025, 6, 4)
SATURDAY = date(2025, 6, 7)

AM = HalfDay.MORNING
PM = HalfDay.AFTERNOON


class RecordingCollaborator(SlotCollaborator):
    """Fake slot service recording every call."""

    def __init__(self, durations: Optional[dict] = None, slot_counts: Optional[dict] = None):
        self.calls: list[tuple] = []
        self.durations = durations or {}
        self.slot_counts = slot_counts or {}
        self.fail_with: Optional[Exception] = None
        self.gate: Optional[asyncio.Event] = None

    async def _record(self, *call):
        self.calls.append(call)
        if self.gate is not None:
            await self.gate.wait()
        if self.fail_with is not None:
            raise self.fail_with

    async def on_slot_add(self, task_id, user_id, day, half_day):
        await self._record("add", task_id, user_id, day, half_day)

    async def on_multi_slot_add(self, task_id, user_id, day, half_day, count, segments=1):
        await self._record("multi_add", task_id, user_id, day, half_day, count, segments)

    async def on_slot_move(self, slot_id, new_date, new_half_day):
        await self._record("move", slot_id, new_date, new_half_day)

    async def on_slot_remove(self, slot_id):
        await self._record("remove", slot_id)

    async def on_segment_slot(self, slot, user_id, new_segment_count):
        await self._record("segment", slot.id, user_id, new_segment_count)

    def get_task_slots_count(self, task_id, user_id):
        return self.slot_counts.get(task_id, 0)

    def get_task_duration(self, task_id):
        return self.durations.get(task_id)

    def get_task_progress(self, task_id):
        return TaskProgress(1, 2)


@pytest.fixture
def collaborator():
    return RecordingCollaborator()


@pytest.fixture
def resolver():
    return AvailabilityResolver(holidays=[Holiday(WEDNESDAY, "Company Day")])


@pytest.fixture
def controller(collaborator, resolver):
    return DragDropAssignmentController(collaborator, resolver)


def existing_slot(day: date = MONDAY, half_day: HalfDay = AM) -> HalfDaySlot:
    return HalfDaySlot(id="S1", task_id="T1", user_id="U001", date=day, half_day=half_day)


class TestHover:
    """Tests for drag-over feedback."""

    def test_hover_available_sets_target(self, controller):
        controller.begin_task_drag(TaskRef("T1", "Audit"))
        assert controller.drag_over("U001", MONDAY, AM) is True
        assert controller.phase is DragPhase.HOVERING
        assert controller.drop_target.position.day == MONDAY

    def test_hover_weekend_not_droppable(self, controller):
        controller.begin_slot_drag(existing_slot())
        assert controller.drag_over("U001", SATURDAY, AM) is False
        assert controller.drop_target is None
        assert controller.phase is DragPhase.DRAGGING

    def test_hover_weekend_skips_resolver(self, collaborator):
        """Weekend cells are refused before the availability override runs."""
        checked = []

        def override(user_id, day, half_day):
            checked.append(day)
            return True

        controller = DragDropAssignmentController(collaborator, AvailabilityResolver(override=override))
        controller.begin_task_drag(TaskRef("T1", "Audit"))
        controller.drag_over("U001", SATURDAY, PM)
        assert checked == []

    def test_hover_holiday_not_droppable(self, controller):
        controller.begin_task_drag(TaskRef("T1", "Audit"))
        assert controller.drag_over("U001", WEDNESDAY, PM) is False

    def test_hover_without_drag(self, controller):
        assert controller.drag_over("U001", MONDAY, AM) is False

    def test_drag_leave_clears_target(self, controller):
        controller.begin_task_drag(TaskRef("T1", "Audit"))
        controller.drag_over("U001", MONDAY, AM)
        controller.drag_leave()
        assert controller.drop_target is None
        assert controller.phase is DragPhase.DRAGGING

    def test_quarter_hover_matches_drop(self, collaborator):
        """A week whose Monday is a holiday still accepts the drop on Tuesday."""
        resolver = AvailabilityResolver(holidays=[Holiday(MONDAY, "Whit Monday")])
        controller = DragDropAssignmentController(collaborator, resolver)

        controller.begin_task_drag(TaskRef("T1", "Audit"))
        assert controller.drag_over("U001", MONDAY, AM, ViewLevel.QUARTER) is True
        assert controller.drop_target.position.day == TUESDAY

        outcome = asyncio.run(controller.drop("U001", MONDAY, AM, ViewLevel.QUARTER))
        assert outcome.status is DropStatus.PLACED
        assert outcome.target == DropTarget("U001", TUESDAY, AM)

    def test_quarter_hover_weekend_cell_date(self, controller):
        """Quarter cells stand for the whole week, whatever date they carry."""
        controller.begin_task_drag(TaskRef("T1", "Audit"))
        assert controller.drag_over("U001", SATURDAY, PM, ViewLevel.QUARTER) is True
        assert controller.drop_target.position.day == MONDAY

    def test_quarter_hover_blocked_week(self, collaborator):
        resolver = AvailabilityResolver(override=lambda user, day, half: False)
        controller = DragDropAssignmentController(collaborator, resolver)

        controller.begin_task_drag(TaskRef("T1", "Audit"))
        assert controller.drag_over("U001", MONDAY, AM, ViewLevel.QUARTER) is False
        assert controller.phase is DragPhase.DRAGGING

    def test_year_hover_not_droppable(self, controller, collaborator):
        controller.begin_task_drag(TaskRef("T1", "Audit"))
        assert controller.drag_over("U001", TUESDAY, PM, ViewLevel.YEAR) is False
        assert controller.drop_target is None

        outcome = asyncio.run(controller.drop("U001", TUESDAY, PM, ViewLevel.YEAR))
        assert outcome.status is DropStatus.REJECTED
        assert collaborator.calls == []


class TestCancellation:
    def test_end_drag_resets_everything(self, controller, collaborator):
        controller.begin_slot_drag(existing_slot())
        controller.drag_over("U001", TUESDAY, AM)
        controller.end_drag()

        assert controller.phase is DragPhase.IDLE
        assert controller.source is None
        assert controller.drop_target is None
        assert collaborator.calls == []

    def test_drop_without_drag_is_ignored(self, controller, collaborator):
        outcome = asyncio.run(controller.drop("U001", MONDAY, AM))
        assert outcome.status is DropStatus.IGNORED
        assert collaborator.calls == []


class TestMoveSlot:
    """Moving an existing slot."""

    def test_move_to_available(self, controller, collaborator):
        controller.begin_slot_drag(existing_slot())
        outcome = asyncio.run(controller.drop("U001", TUESDAY, PM))

        assert outcome.status is DropStatus.MOVED
        assert collaborator.calls == [("move", "S1", TUESDAY, PM)]
        assert controller.phase is DragPhase.IDLE
        assert controller.drop_target is None

    def test_move_to_holiday_rejected(self, controller, collaborator):
        controller.begin_slot_drag(existing_slot())
        outcome = asyncio.run(controller.drop("U001", WEDNESDAY, AM))

        assert outcome.status is DropStatus.REJECTED
        assert collaborator.calls == []

    def test_no_move_onto_any_weekend(self, controller, collaborator):
        """Dragging a slot over weekend dates never calls on_slot_move."""
        day = MONDAY
        for _ in range(60):
            if day.weekday() >= 5:
                for half_day in HalfDay:
                    controller.begin_slot_drag(existing_slot())
                    controller.drag_over("U001", day, half_day)
                    outcome = asyncio.run(controller.drop("U001", day, half_day))
                    assert outcome.status is DropStatus.REJECTED
            day += timedelta(days=1)

        assert not any(call[0] == "move" for call in collaborator.calls)

    def test_move_to_other_user_rejected(self, controller, collaborator):
        controller.begin_slot_drag(existing_slot())
        outcome = asyncio.run(controller.drop("U002", TUESDAY, AM))
        assert outcome.status is DropStatus.REJECTED
        assert collaborator.calls == []


class TestPlaceTask:
    """Placing backlog tasks."""

    def _drop(self, controller, task, day=MONDAY, half_day=AM, level=ViewLevel.WEEK):
        controller.begin_task_drag(task)
        return asyncio.run(controller.drop("U001", day, half_day, level))

    def test_unknown_duration_places_single_slot(self, controller, collaborator):
        outcome = self._drop(controller, TaskRef("T1", "Audit"))
        assert outcome.status is DropStatus.PLACED
        assert collaborator.calls == [("add", "T1", "U001", MONDAY, AM)]

    def test_single_half_day(self, controller, collaborator):
        self._drop(controller, TaskRef("T1", "Audit", duration_half_days=1))
        assert collaborator.calls == [("add", "T1", "U001", MONDAY, AM)]

    def test_one_day_places_directly(self, controller, collaborator):
        outcome = self._drop(controller, TaskRef("T1", "Audit", duration_half_days=2))

        assert outcome.status is DropStatus.PLACED
        assert controller.placement_dialog is None
        assert collaborator.calls == [("multi_add", "T1", "U001", MONDAY, AM, 2, 1)]

    def test_duration_from_collaborator(self, resolver):
        collaborator = RecordingCollaborator(durations={"T1": 2})
        controller = DragDropAssignmentController(collaborator, resolver)
        self._drop(controller, TaskRef("T1", "Audit"))
        assert collaborator.calls == [("multi_add", "T1", "U001", MONDAY, AM, 2, 1)]

    def test_unavailable_target_rejected(self, controller, collaborator):
        outcome = self._drop(controller, TaskRef("T1", "Audit", duration_half_days=4), day=WEDNESDAY)
        assert outcome.status is DropStatus.REJECTED
        assert controller.placement_dialog is None
        assert collaborator.calls == []

    def test_multi_day_opens_dialog(self, controller, collaborator):
        outcome = self._drop(controller, TaskRef("T1", "Audit", duration_half_days=4))

        assert outcome.status is DropStatus.DIALOG_OPENED
        dialog = controller.placement_dialog
        assert dialog.options == [1, 2, 4]
        assert dialog.selected_segments == 1
        assert dialog.segment_length == 4
        assert collaborator.calls == []

    def test_confirm_full_block(self, controller, collaborator):
        self._drop(controller, TaskRef("T1", "Audit", duration_half_days=4))
        outcome = asyncio.run(controller.confirm_placement())

        assert outcome.status is DropStatus.PLACED
        assert controller.placement_dialog is None
        assert collaborator.calls == [("multi_add", "T1", "U001", MONDAY, AM, 4, 1)]

    def test_blocked_afternoon_still_anchors_monday(self, collaborator):
        """Monday afternoon blocked: one call anchored Monday morning with count 4."""
        resolver = AvailabilityResolver(
            override=lambda user, day, half: not (day == MONDAY and half is PM)
        )
        controller = DragDropAssignmentController(collaborator, resolver)

        self._drop(controller, TaskRef("T1", "Audit", duration_half_days=4))
        asyncio.run(controller.confirm_placement())

        assert collaborator.calls == [("multi_add", "T1", "U001", MONDAY, AM, 4, 1)]
        plan = controller.planner.plan("U001", MONDAY, AM, 4)
        assert [(p.day, p.half_day) for p in plan.positions] == [
            (MONDAY, AM),
            (TUESDAY, AM),
            (TUESDAY, PM),
            (WEDNESDAY, AM),
        ]

    def test_confirm_selected_division(self, controller, collaborator):
        self._drop(controller, TaskRef("T1", "Audit", duration_half_days=6))
        controller.select_segments(3)
        asyncio.run(controller.confirm_placement())

        assert collaborator.calls == [("multi_add", "T1", "U001", MONDAY, AM, 6, 3)]

    def test_full_block_compatibility_mode(self, collaborator, resolver):
        controller = DragDropAssignmentController(
            collaborator, resolver, config=CalendarConfig(full_block_confirm=True)
        )
        self._drop(controller, TaskRef("T1", "Audit", duration_half_days=6))
        controller.select_segments(3)
        asyncio.run(controller.confirm_placement())

        assert collaborator.calls == [("multi_add", "T1", "U001", MONDAY, AM, 6, 1)]

    def test_invalid_selection(self, controller):
        self._drop(controller, TaskRef("T1", "Audit", duration_half_days=6))
        with pytest.raises(ValueError):
            controller.select_segments(4)

    def test_cancel_placement(self, controller, collaborator):
        self._drop(controller, TaskRef("T1", "Audit", duration_half_days=4))
        controller.cancel_placement()
        assert controller.placement_dialog is None
        assert collaborator.calls == []

    def test_drop_ignored_while_dialog_open(self, controller, collaborator):
        """A second drop does not discard the first task's pending choice."""
        self._drop(controller, TaskRef("T1", "Audit", duration_half_days=4))
        controller.select_segments(2)

        second = self._drop(controller, TaskRef("T2", "Report", duration_half_days=6), day=TUESDAY)

        assert second.status is DropStatus.IGNORED
        dialog = controller.placement_dialog
        assert dialog.task.id == "T1"
        assert dialog.selected_segments == 2
        assert collaborator.calls == []

    def test_drop_accepted_after_dialog_closes(self, controller, collaborator):
        self._drop(controller, TaskRef("T1", "Audit", duration_half_days=4))
        controller.cancel_placement()

        outcome = self._drop(controller, TaskRef("T2", "Report"), day=TUESDAY)
        assert outcome.status is DropStatus.PLACED
        assert collaborator.calls == [("add", "T2", "U001", TUESDAY, AM)]

    def test_drop_ignored_while_segment_dialog_open(self, resolver):
        collaborator = RecordingCollaborator(durations={"T1": 4}, slot_counts={"T1": 4})
        controller = DragDropAssignmentController(collaborator, resolver)
        controller.open_segment_dialog(existing_slot(), "U001")

        outcome = self._drop(controller, TaskRef("T2", "Report"), day=TUESDAY)
        assert outcome.status is DropStatus.IGNORED
        assert collaborator.calls == []

    def test_dialog_option_labels(self, controller):
        self._drop(controller, TaskRef("T1", "Audit", duration_half_days=4))
        labels = controller.placement_dialog.option_labels()
        assert labels == {
            1: "1 block of 2 days",
            2: "2 x 1 day",
            4: "4 x half-day",
        }

    def test_describe_segments(self):
        assert describe_segments(6, 1) == "1 block of 3 days"
        assert describe_segments(3, 1) == "1 block of 1.5 days"
        assert describe_segments(6, 2) == "2 x 1.5 days"


class TestResolutionDrops:
    """Drops at coarse resolutions."""

    def test_year_drop_rejected(self, controller, collaborator):
        controller.begin_task_drag(TaskRef("T1", "Audit"))
        outcome = asyncio.run(controller.drop("U001", MONDAY, AM, ViewLevel.YEAR))
        assert outcome.status is DropStatus.REJECTED
        assert collaborator.calls == []

    def test_quarter_drop_resolves_first_free_half_day(self, collaborator):
        resolver = AvailabilityResolver(holidays=[Holiday(MONDAY, "Whit Monday")])
        controller = DragDropAssignmentController(collaborator, resolver)

        controller.begin_task_drag(TaskRef("T1", "Audit"))
        outcome = asyncio.run(controller.drop("U001", MONDAY, AM, ViewLevel.QUARTER))

        assert outcome.status is DropStatus.PLACED
        assert outcome.target.date == TUESDAY
        assert collaborator.calls == [("add", "T1", "U001", TUESDAY, AM)]

    def test_quarter_drop_any_day_of_week(self, collaborator):
        """The drop cell date may be any day of the ISO week."""
        controller = DragDropAssignmentController(collaborator, AvailabilityResolver())
        controller.begin_task_drag(TaskRef("T1", "Audit"))
        asyncio.run(controller.drop("U001", SATURDAY, PM, ViewLevel.QUARTER))
        assert collaborator.calls == [("add", "T1", "U001", MONDAY, AM)]

    def test_quarter_drop_blocked_week(self, collaborator):
        resolver = AvailabilityResolver(override=lambda user, day, half: False)
        controller = DragDropAssignmentController(collaborator, resolver)
        controller.begin_task_drag(TaskRef("T1", "Audit"))
        outcome = asyncio.run(controller.drop("U001", MONDAY, AM, ViewLevel.QUARTER))
        assert outcome.status is DropStatus.REJECTED
        assert collaborator.calls == []


class TestFailures:
    """External call failures."""

    def test_failed_drop_reports_error(self, controller, collaborator):
        collaborator.fail_with = RuntimeError("service down")
        controller.begin_task_drag(TaskRef("T1", "Audit"))
        outcome = asyncio.run(controller.drop("U001", MONDAY, AM))

        assert outcome.status is DropStatus.FAILED
        assert isinstance(outcome.error, RuntimeError)
        assert controller.is_busy is False

    def test_failed_confirm_keeps_dialog_open(self, controller, collaborator):
        controller.begin_task_drag(TaskRef("T1", "Audit", duration_half_days=4))
        asyncio.run(controller.drop("U001", MONDAY, AM))

        collaborator.fail_with = RuntimeError("service down")
        outcome = asyncio.run(controller.confirm_placement())

        dialog = controller.placement_dialog
        assert outcome.status is DropStatus.FAILED
        assert dialog is not None
        assert str(dialog.error) == "service down"
        assert dialog.is_submitting is False

        # Retry succeeds and closes the dialog
        collaborator.fail_with = None
        outcome = asyncio.run(controller.confirm_placement())
        assert outcome.status is DropStatus.PLACED
        assert controller.placement_dialog is None
        assert len(collaborator.calls) == 2

    def test_failure_is_logged(self, controller, collaborator, caplog):
        collaborator.fail_with = RuntimeError("service down")
        controller.begin_task_drag(TaskRef("T1", "Audit"))
        with caplog.at_level("ERROR"):
            asyncio.run(controller.drop("U001", MONDAY, AM))
        assert "on_slot_add failed" in caplog.text


class TestBusyGuard:
    """At most one pending mutating call."""

    def test_drop_ignored_while_call_pending(self, controller, collaborator):
        async def scenario():
            collaborator.gate = asyncio.Event()
            controller.begin_task_drag(TaskRef("T1", "Audit"))
            first = asyncio.create_task(controller.drop("U001", MONDAY, AM))
            await asyncio.sleep(0)
            assert controller.is_busy is True

            controller.begin_task_drag(TaskRef("T2", "Report"))
            second = await controller.drop("U001", MONDAY, PM)

            collaborator.gate.set()
            return await first, second

        first, second = asyncio.run(scenario())
        assert first.status is DropStatus.PLACED
        assert second.status is DropStatus.IGNORED
        assert collaborator.calls == [("add", "T1", "U001", MONDAY, AM)]
        assert controller.is_busy is False

    def test_confirm_ignored_while_submitting(self, controller, collaborator):
        async def scenario():
            controller.begin_task_drag(TaskRef("T1", "Audit", duration_half_days=4))
            await controller.drop("U001", MONDAY, AM)

            collaborator.gate = asyncio.Event()
            first = asyncio.create_task(controller.confirm_placement())
            await asyncio.sleep(0)
            assert controller.placement_dialog.is_submitting is True

            second = await controller.confirm_placement()
            collaborator.gate.set()
            return await first, second

        first, second = asyncio.run(scenario())
        assert first.status is DropStatus.PLACED
        assert second.status is DropStatus.IGNORED
        assert len(collaborator.calls) == 1


class TestSegmentAndRemove:
    """Re-segmentation and removal of existing placements."""

    def test_segment_dialog_seeded_from_collaborator(self, resolver):
        collaborator = RecordingCollaborator(durations={"T1": 6}, slot_counts={"T1": 6})
        controller = DragDropAssignmentController(collaborator, resolver)

        dialog = controller.open_segment_dialog(existing_slot(), "U001")
        assert dialog.current_count == 6
        assert dialog.duration == 6
        assert dialog.options == [1, 2, 3, 6]
        assert dialog.selected_segments == 6

    def test_segment_dialog_falls_back_to_slot_count(self, resolver):
        collaborator = RecordingCollaborator(slot_counts={"T1": 4})
        controller = DragDropAssignmentController(collaborator, resolver)

        dialog = controller.open_segment_dialog(existing_slot(), "U001")
        assert dialog.duration == 4
        assert dialog.options == [1, 2, 4]

    def test_confirm_segmentation(self, resolver):
        collaborator = RecordingCollaborator(durations={"T1": 4}, slot_counts={"T1": 4})
        controller = DragDropAssignmentController(collaborator, resolver)

        controller.open_segment_dialog(existing_slot(), "U001")
        controller.select_resegmentation(2)
        outcome = asyncio.run(controller.confirm_segmentation())

        assert outcome.status is DropStatus.SEGMENTED
        assert controller.segment_dialog is None
        assert collaborator.calls == [("segment", "S1", "U001", 2)]

    def test_failed_segmentation_keeps_dialog(self, resolver):
        collaborator = RecordingCollaborator(durations={"T1": 4}, slot_counts={"T1": 4})
        collaborator.fail_with = ValueError("conflict")
        controller = DragDropAssignmentController(collaborator, resolver)

        controller.open_segment_dialog(existing_slot(), "U001")
        outcome = asyncio.run(controller.confirm_segmentation())

        assert outcome.status is DropStatus.FAILED
        assert controller.segment_dialog.error is outcome.error

        controller.cancel_segmentation()
        assert controller.segment_dialog is None

    def test_segment_dialog_keeps_count_outside_options(self, resolver):
        """A slot count that does not divide the duration starts at one block."""
        collaborator = RecordingCollaborator(durations={"T1": 4}, slot_counts={"T1": 3})
        controller = DragDropAssignmentController(collaborator, resolver)

        dialog = controller.open_segment_dialog(existing_slot(), "U001")
        assert dialog.current_count == 3
        assert dialog.selected_segments == 1

    def test_remove_slot(self, controller, collaborator):
        outcome = asyncio.run(controller.remove_slot(existing_slot()))

        assert outcome.status is DropStatus.REMOVED
        assert outcome.succeeded
        assert outcome.target.position.day == MONDAY
        assert collaborator.calls == [("remove", "S1")]

    def test_remove_ignored_while_call_pending(self, controller, collaborator):
        """A removal during a pending call is reported as ignored, not done."""

        async def scenario():
            collaborator.gate = asyncio.Event()
            controller.begin_task_drag(TaskRef("T2", "Report"))
            pending = asyncio.create_task(controller.drop("U001", TUESDAY, AM))
            await asyncio.sleep(0)

            removal = await controller.remove_slot(existing_slot())
            collaborator.gate.set()
            await pending
            return removal

        outcome = asyncio.run(scenario())
        assert outcome.status is DropStatus.IGNORED
        assert not outcome.succeeded
        assert collaborator.calls == [("add", "T2", "U001", TUESDAY, AM)]

    def test_failed_remove_reports_error(self, controller, collaborator):
        collaborator.fail_with = KeyError("S1")
        outcome = asyncio.run(controller.remove_slot(existing_slot()))

        assert outcome.status is DropStatus.FAILED
        assert isinstance(outcome.error, KeyError)
