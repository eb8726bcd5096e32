"""Testes das máquinas de estado de entrega e de job."""

from __future__ import annotations

import pytest

import fsm.manager.machine as machine_module
from fsm import (
    DeliveryState,
    GuardResult,
    JobState,
    create_delivery_fsm,
    create_job_fsm,
    get_valid_targets,
    is_transition_valid,
    validate_all_transition_maps,
)
from fsm.transitions import DELIVERY_TRANSITIONS, JOB_TRANSITIONS


def test_transition_maps_are_consistent() -> None:
    assert validate_all_transition_maps() == []


class TestDeliveryMachine:
    def test_happy_path_ends_acknowledged(self) -> None:
        machine = create_delivery_fsm("w1")
        for target in (
            DeliveryState.SIZE_CHECKED,
            DeliveryState.SIGNATURE_CHECKED,
            DeliveryState.TIMESTAMP_CHECKED,
            DeliveryState.DEDUP_CHECKED,
            DeliveryState.ENQUEUED,
            DeliveryState.ACKNOWLEDGED,
        ):
            assert machine.transition(target, trigger="guard_passed").success

        assert machine.is_terminal
        assert machine.path() == [
            "received",
            "size_checked",
            "signature_checked",
            "timestamp_checked",
            "dedup_checked",
            "enqueued",
            "acknowledged",
        ]

    def test_duplicate_is_acknowledged_without_enqueue(self) -> None:
        assert is_transition_valid(
            DELIVERY_TRANSITIONS, DeliveryState.DEDUP_CHECKED, DeliveryState.ACKNOWLEDGED
        )

    def test_skipping_a_guard_is_invalid(self) -> None:
        machine = create_delivery_fsm("w1")

        result = machine.transition(DeliveryState.ENQUEUED, trigger="skip")

        assert result.success is False
        assert result.error_reason == "Transição inválida: RECEIVED → ENQUEUED"
        assert machine.current_state == DeliveryState.RECEIVED

    def test_rejected_is_terminal(self) -> None:
        machine = create_delivery_fsm("w1")
        machine.transition(DeliveryState.REJECTED, trigger="ip_blocked")

        result = machine.transition(DeliveryState.SIZE_CHECKED, trigger="retry")

        assert result.success is False
        assert "terminal" in result.error_reason
        assert machine.get_valid_targets() == frozenset()


class TestJobMachine:
    def test_dead_lettered_job_never_runs_again(self) -> None:
        machine = create_job_fsm("job-1")
        machine.transition(JobState.RUNNING, trigger="picked")
        machine.transition(JobState.DEAD_LETTERED, trigger="permanent_failure")

        result = machine.transition(JobState.RUNNING, trigger="picked")

        assert result.success is False
        assert result.error_reason == "Estado DEAD_LETTERED é terminal, não permite transição"
        assert machine.can_transition_to(JobState.RUNNING) is False

    def test_resumes_from_persisted_state(self) -> None:
        machine = create_job_fsm("job-1", initial_state=JobState.RETRYING)

        assert machine.transition(JobState.RUNNING, trigger="picked").success
        assert machine.current_state == JobState.RUNNING

    def test_pending_cannot_complete_directly(self) -> None:
        assert get_valid_targets(JOB_TRANSITIONS, JobState.PENDING) == frozenset(
            {JobState.RUNNING}
        )

    @pytest.mark.parametrize(
        "target", [JobState.COMPLETED, JobState.RETRYING, JobState.DEAD_LETTERED]
    )
    def test_running_outcomes(self, target: JobState) -> None:
        machine = create_job_fsm("job-1", initial_state=JobState.RUNNING)

        assert machine.transition(target, trigger="attempt_finished").success


class TestGuards:
    def test_reflexive_transition_is_denied(self) -> None:
        machine = create_job_fsm("job-1", initial_state=JobState.RUNNING)

        result = machine.transition(JobState.RUNNING, trigger="again")

        assert result.success is False
        assert result.error_reason.startswith("Transição reflexiva não permitida")

    def test_states_from_other_machine_are_denied(self) -> None:
        machine = create_delivery_fsm("w1")

        result = machine.transition(JobState.RUNNING, trigger="mixed")

        assert result.success is False
        assert result.error_reason.startswith("Estados de máquinas diferentes")

    def test_guard_denial_blocks_valid_edge(self, monkeypatch: pytest.MonkeyPatch) -> None:
        def _deny(from_state, to_state, terminal_states, guards=None) -> GuardResult:
            del from_state, to_state, terminal_states, guards
            return GuardResult.deny("blocked_by_guard")

        monkeypatch.setattr(machine_module, "evaluate_guards", _deny)
        machine = create_delivery_fsm("w1")

        result = machine.transition(DeliveryState.SIZE_CHECKED, trigger="test")

        assert result.success is False
        assert result.error_reason == "blocked_by_guard"
        assert machine.current_state == DeliveryState.RECEIVED


class TestObservability:
    def test_state_summary(self) -> None:
        machine = create_job_fsm("job-9")
        machine.transition(JobState.RUNNING, trigger="picked", metadata={"attempt": 1})

        assert machine.get_state_summary() == {
            "machine_id": "job-9",
            "current_state": "running",
            "is_terminal": False,
            "transition_count": 1,
            "path": ["pending", "running"],
        }
        assert machine.history[0].metadata == {"attempt": 1}

    def test_history_is_a_copy(self) -> None:
        machine = create_delivery_fsm("w1")
        machine.transition(DeliveryState.SIZE_CHECKED, trigger="size_ok")

        machine.history.clear()

        assert len(machine.history) == 1

    def test_path_without_transitions(self) -> None:
        assert create_delivery_fsm("w1").path() == ["received"]
