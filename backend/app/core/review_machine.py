from __future__ import annotations

from sqlalchemy import and_


# Workflow states for a submission. Forms only move forward:
# unreviewed -> reviewed -> approved.
UNREVIEWED = "unreviewed"
REVIEWED = "reviewed"
APPROVED = "approved"


def review_state(reviewed: bool | None, approved: bool | None) -> str:
    if approved:
        return APPROVED
    if reviewed:
        return REVIEWED
    return UNREVIEWED


def approvable_clause(model):
    """WHERE-clause guard for the reviewed -> approved transition.

    The approve UPDATE must carry this condition itself; checking the state
    first and updating afterwards would let two concurrent approvals both win.
    """
    return and_(model.reviewed.is_(True), model.approved.is_(False))
