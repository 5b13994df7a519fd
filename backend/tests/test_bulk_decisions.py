"""Tests for bulk approve/reject: per-item failures never abort the batch."""
from expenseflow.models import Approval, ApprovalStatus, Expense, ExpenseStatus
from expenseflow.services.approval import bulk_decide
from expenseflow.services.expenses import create_expense


def _pending_step(world, amount="100") -> str:
    expense = create_expense(world.store, world.expense_payload(amount), world.employee.id, world.company.id)
    return expense.approvals[0].id


def test_bulk_reject_with_missing_id(world):
    world.add_rule(manager_first=True)
    id_a = _pending_step(world)
    id_c = _pending_step(world, "250")

    outcome = bulk_decide(
        world.store, [id_a, "idB-missing", id_c], ApprovalStatus.REJECTED, "policy violation",
    )

    assert [item.id for item in outcome.results] == [id_a, id_c]
    assert all(item.status == "success" for item in outcome.results)
    assert [(e.id, e.error) for e in outcome.errors] == [("idB-missing", "Approval not found")]
    assert outcome.succeeded == 2
    assert outcome.failed == 1

    for approval_id in (id_a, id_c):
        step = world.store.get(Approval, approval_id)
        assert step.status == ApprovalStatus.REJECTED
        assert step.comments == "policy violation"
        assert world.store.get(Expense, step.expense_id).status == ExpenseStatus.REJECTED


def test_bulk_reject_two_steps_of_one_expense(world):
    world.add_rule(manager_first=True, sequential_approvers=[world.finance.id])
    expense = create_expense(world.store, world.expense_payload(), world.employee.id, world.company.id)
    manager_step, finance_step = (a.id for a in expense.approvals)

    outcome = bulk_decide(
        world.store, [manager_step, "idB-missing", finance_step], ApprovalStatus.REJECTED, "policy violation",
    )

    assert [item.id for item in outcome.results] == [manager_step, finance_step]
    assert [(e.id, e.error) for e in outcome.errors] == [("idB-missing", "Approval not found")]
    for approval_id in (manager_step, finance_step):
        assert world.store.get(Approval, approval_id).status == ApprovalStatus.REJECTED
    assert world.store.get(Expense, expense.id).status == ExpenseStatus.REJECTED


def test_bulk_reports_already_processed(world):
    world.add_rule(manager_first=True)
    approval_id = _pending_step(world)

    bulk_decide(world.store, [approval_id], ApprovalStatus.APPROVED)
    outcome = bulk_decide(world.store, [approval_id], ApprovalStatus.APPROVED)

    assert outcome.results == []
    assert [(e.id, e.error) for e in outcome.errors] == [(approval_id, "Already processed")]


def test_bulk_with_actor_rejects_foreign_steps(world):
    world.add_rule(manager_first=True)
    own = _pending_step(world)
    world.store.update_by_id(type(world.employee), world.employee.id, {"manager_id": world.finance.id})
    foreign = _pending_step(world)

    outcome = bulk_decide(world.store, [own, foreign], "APPROVED", actor_id=world.manager.id)

    assert [item.id for item in outcome.results] == [own]
    assert [(e.id, e.error) for e in outcome.errors] == [(foreign, "Not authorized")]
    assert world.store.get(Approval, foreign).status == ApprovalStatus.PENDING


def test_bulk_wire_shape(world):
    world.add_rule(manager_first=True)
    approval_id = _pending_step(world)

    payload = bulk_decide(world.store, [approval_id, "gone"], ApprovalStatus.APPROVED).model_dump(
        by_alias=True, mode="json",
    )

    assert payload["results"][0]["id"] == approval_id
    assert payload["results"][0]["status"] == "success"
    assert payload["results"][0]["approval"]["expenseId"]
    assert payload["errors"] == [{"id": "gone", "error": "Approval not found"}]


def test_bulk_empty_list(world):
    outcome = bulk_decide(world.store, [], ApprovalStatus.REJECTED)
    assert outcome.succeeded == outcome.failed == 0
