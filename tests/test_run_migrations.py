import os
from unittest import TestCase, mock

from quizseed import run_migrations
from quizseed.settings import QUIZ_IDS


def _db(rpc_error=None, update_error=None):
    db = mock.MagicMock()
    if rpc_error:
        db.rpc.return_value.execute.side_effect = rpc_error
    if update_error:
        db.table.return_value.update.return_value.in_.return_value.execute.side_effect = update_error
    return db


class RunMigrationsTest(TestCase):
    def test_applies_both_migrations_in_order(self):
        db = _db()
        results = run_migrations.run_migrations(db, run_migrations.default_migrations())

        self.assertEqual([(r.name, r.status) for r in results],
                         [("add_difficulty_to_questions", "ok"), ("update_total_questions", "ok")])
        db.rpc.assert_called_once_with("exec_sql", {"sql": run_migrations.ADD_DIFFICULTY_SQL})
        self.assertIn("SET NOT NULL", run_migrations.ADD_DIFFICULTY_SQL)
        db.table.assert_called_once_with("quizzes")
        db.table.return_value.update.assert_called_once_with({"total_questions": 2})
        db.table.return_value.update.return_value.in_.assert_called_once_with("id", list(QUIZ_IDS.values()))

    def test_rpc_failure_is_reported_and_next_migration_still_runs(self):
        db = _db(rpc_error=RuntimeError("function exec_sql does not exist"))
        results = run_migrations.run_migrations(db, run_migrations.default_migrations(total_questions=5))

        self.assertEqual(results[0].status, "error")
        self.assertIn("exec_sql", results[0].error)
        self.assertEqual(results[1].status, "ok")
        db.table.return_value.update.assert_called_once_with({"total_questions": 5})

    def test_dry_run_touches_nothing(self):
        db = _db()
        results = run_migrations.run_migrations(db, run_migrations.default_migrations(), dry_run=True)
        self.assertEqual({r.status for r in results}, {"skipped"})
        db.rpc.assert_not_called()
        db.table.assert_not_called()


class MainTest(TestCase):
    def test_exit_code_reflects_failures(self):
        with mock.patch.dict(os.environ, {}, clear=True):
            with mock.patch.object(run_migrations, "get_supabase_client", return_value=_db()):
                run_migrations.main(["--env_file", os.devnull])

            failing = _db(update_error=RuntimeError("permission denied"))
            with mock.patch.object(run_migrations, "get_supabase_client", return_value=failing):
                with self.assertRaises(SystemExit) as ctx:
                    run_migrations.main(["--env_file", os.devnull])
        self.assertEqual(ctx.exception.code, 1)

    def test_dry_run_needs_no_credentials(self):
        with mock.patch.dict(os.environ, {}, clear=True):
            with mock.patch.object(run_migrations, "get_supabase_client") as factory:
                run_migrations.main(["--dry_run", "--env_file", os.devnull])
        factory.assert_not_called()


if __name__ == "__main__":  # pragma: no cover - convenience for local runs
    import unittest

    unittest.main()
