"""Tests for progress analytics."""

from datetime import datetime, timedelta, timezone

from analytics import (
    DAY_LABELS,
    parse_timestamp,
    phase_breakdown,
    phase_progress,
    project_progress,
    user_totals,
    weekly_activity,
)
from contracts import Phase, TaskStatus
from conftest import make_project, make_task

# A Wednesday
NOW = datetime(2024, 5, 15, 12, 0, tzinfo=timezone.utc)


class TestProjectProgress:
    def test_zero_tasks_is_zero(self):
        assert project_progress(make_project()) == 0
        assert project_progress(make_project(Phase(id="ph", title="Empty"))) == 0

    def test_half_up_rounding(self):
        tasks = [make_task("a", TaskStatus.COMPLETED, "2024-05-01"), make_task("b"), make_task("c")]
        # 1/3 -> 33, 2/3 -> 67
        assert project_progress(make_project(Phase(id="ph", title="M1", tasks=tasks))) == 33
        tasks[1] = make_task("b", TaskStatus.COMPLETED, "2024-05-01")
        assert project_progress(make_project(Phase(id="ph", title="M1", tasks=tasks))) == 67

    def test_counts_across_phases(self):
        project = make_project(
            Phase(id="1", title="M1", tasks=[make_task("a", TaskStatus.COMPLETED, "2024-05-01")]),
            Phase(id="2", title="M2", tasks=[make_task("b", TaskStatus.BACKLOG)]),
        )
        assert project_progress(project) == 50

    def test_never_decreases_on_completion(self):
        statuses = [TaskStatus.PENDING, TaskStatus.IN_PROGRESS, TaskStatus.BACKLOG, TaskStatus.PENDING]
        tasks = [make_task(str(i), s) for i, s in enumerate(statuses)]
        previous = 0
        for i in range(len(tasks)):
            tasks[i] = make_task(str(i), TaskStatus.COMPLETED, "2024-05-01")
            current = project_progress(make_project(Phase(id="ph", title="M1", tasks=list(tasks))))
            assert current >= previous
            previous = current
        assert previous == 100

    def test_phase_progress(self):
        phase = Phase(id="ph", title="M1", tasks=[make_task("a", TaskStatus.COMPLETED, "x"), make_task("b")])
        assert phase_progress(phase) == 50
        assert phase_progress(Phase(id="e", title="Empty")) == 0


class TestUserTotals:
    def test_backlog_and_note_counted_once(self):
        tasks = [
            make_task("a", TaskStatus.BACKLOG),
            make_task("b", TaskStatus.COMPLETED, "2024-05-01", blocker="needs review"),
            make_task("c", TaskStatus.COMPLETED, "2024-05-01"),
            make_task("d", TaskStatus.IN_PROGRESS),
        ]
        totals = user_totals([make_project(Phase(id="ph", title="M1", tasks=tasks))])
        assert totals.completed == 2
        assert totals.backlog == 2

    def test_whitespace_note_is_not_a_blocker(self):
        task = make_task("a", TaskStatus.COMPLETED, "2024-05-01", blocker="   ")
        assert user_totals([make_project(Phase(id="ph", title="M1", tasks=[task]))]).backlog == 0

    def test_across_projects(self):
        p1 = make_project(Phase(id="1", title="M1", tasks=[make_task("a", TaskStatus.COMPLETED, "x")]))
        p2 = make_project(Phase(id="2", title="M1", tasks=[make_task("b", TaskStatus.COMPLETED, "x")]), name="Blog")
        assert user_totals([p1, p2]).completed == 2
        assert user_totals([]).completed == 0


class TestWeeklyActivity:
    """Seven Mon..Sun buckets over [now - 6 days, now]."""

    def _project(self, *stamps):
        tasks = [make_task(f"t{i}", TaskStatus.COMPLETED, s) for i, s in enumerate(stamps)]
        return make_project(Phase(id="ph", title="M1", tasks=tasks))

    def test_always_seven_entries_monday_first(self):
        result = weekly_activity([], now=NOW)
        assert [d.label for d in result] == DAY_LABELS == ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]
        assert all(d.count == 0 for d in result)

    def test_shop_example(self):
        """Shop: one of two tasks completed today (Wednesday)."""
        project = make_project(Phase(id="ph", title="Month 1", tasks=[
            make_task("a", TaskStatus.COMPLETED, NOW.isoformat()),
            make_task("b"),
        ]))
        assert project_progress(project) == 50
        counts = [d.count for d in weekly_activity([project], now=NOW)]
        assert counts == [0, 0, 1, 0, 0, 0, 0]

    def test_window_bounds(self):
        inside_start = (NOW - timedelta(days=6)).isoformat()
        just_outside = (NOW - timedelta(days=6, seconds=1)).isoformat()
        eight_days = (NOW - timedelta(days=8)).isoformat()
        future = (NOW + timedelta(seconds=1)).isoformat()
        result = weekly_activity([self._project(inside_start, just_outside, eight_days, future)], now=NOW)
        # now - 6 days is the previous Thursday
        assert [d.count for d in result] == [0, 0, 0, 1, 0, 0, 0]

    def test_sunday_lands_in_last_bucket(self):
        sunday = datetime(2024, 5, 12, 9, 0, tzinfo=timezone.utc)
        result = weekly_activity([self._project(sunday.isoformat())], now=NOW)
        assert result[6].label == "Sun"
        assert result[6].count == 1

    def test_unparseable_timestamps_skipped(self):
        result = weekly_activity([self._project("not a date", NOW.isoformat())], now=NOW)
        assert sum(d.count for d in result) == 1

    def test_zulu_suffix_parsed(self):
        assert parse_timestamp("2024-05-15T10:00:00Z") == datetime(2024, 5, 15, 10, 0, tzinfo=timezone.utc)
        assert parse_timestamp("garbage") is None
        assert parse_timestamp(None) is None

    def test_same_day_accumulates(self):
        result = weekly_activity([self._project(NOW.isoformat(), NOW.isoformat())], now=NOW)
        assert result[2].count == 2

    def test_only_completed_tasks_count(self):
        project = make_project(Phase(id="ph", title="M1", tasks=[make_task("a", TaskStatus.IN_PROGRESS)]))
        assert sum(d.count for d in weekly_activity([project], now=NOW)) == 0


class TestPhaseBreakdown:
    def test_counts_and_short_names(self):
        project = make_project(
            Phase(id="1", title="Month 1: Fundamentals", tasks=[
                make_task("a", TaskStatus.COMPLETED, "x"),
                make_task("b", TaskStatus.IN_PROGRESS),
                make_task("c"),
                make_task("d", TaskStatus.BACKLOG),
            ]),
            Phase(id="2", title="Month 2"),
        )
        rows = phase_breakdown(project)
        assert rows[0].name == "Month 1: Fundam..."
        assert (rows[0].completed, rows[0].pending, rows[0].backlog) == (1, 2, 1)
        assert rows[1].name == "Month 2"
        assert (rows[1].completed, rows[1].pending, rows[1].backlog) == (0, 0, 0)

    def test_custom_limit(self):
        project = make_project(Phase(id="1", title="Foundation"))
        assert phase_breakdown(project, name_limit=4)[0].name == "Foun..."
