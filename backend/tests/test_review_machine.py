from __future__ import annotations

import unittest

from sqlalchemy.dialects import sqlite

from app.core.review_machine import APPROVED, REVIEWED, UNREVIEWED, approvable_clause, review_state
from app.models.surveyor_form import SurveyorForm


class ReviewStateTests(unittest.TestCase):
    def test_state_from_flags(self) -> None:
        self.assertEqual(review_state(False, False), UNREVIEWED)
        self.assertEqual(review_state(None, None), UNREVIEWED)
        self.assertEqual(review_state(True, False), REVIEWED)
        self.assertEqual(review_state(True, True), APPROVED)

    def test_model_status_follows_flags(self) -> None:
        form = SurveyorForm(reviewed=True, approved=False)
        self.assertEqual(form.status, REVIEWED)


class ApprovableClauseTests(unittest.TestCase):
    def test_guard_requires_reviewed_and_not_approved(self) -> None:
        sql = str(approvable_clause(SurveyorForm).compile(dialect=sqlite.dialect()))
        self.assertIn("surveyor_forms.reviewed IS", sql)
        self.assertIn("surveyor_forms.approved IS", sql)
        self.assertIn(" AND ", sql)


if __name__ == "__main__":
    unittest.main()
