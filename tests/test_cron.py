import datetime as dt
from decimal import Decimal

from taskshare.models import OpenTask, OpenTaskDate, OpenTaskStatus, TaskerAvailability
from taskshare.services import cron
from taskshare.utils.time import today


def _open_task(db_session, creator, city, category, days, status=OpenTaskStatus.OPEN):
    task = OpenTask(
        description="Walk the dog",
        budget=Decimal("15.00"),
        duration=1,
        location_id=city.id,
        creator_id=creator.id,
        category_id=category.id,
        status=status,
    )
    task.dates = [OpenTaskDate(date=today() + dt.timedelta(days=offset), time="morning") for offset in days]
    db_session.add(task)
    db_session.commit()
    return task


def test_daily_cleanup(db_session, make_user, city, category):
    creator = make_user("Creator")
    tasker = make_user("Tasker", tasker=True)
    stale = _open_task(db_session, creator, city, category, days=[-2])
    mixed = _open_task(db_session, creator, city, category, days=[-1, 1])
    assigned = _open_task(db_session, creator, city, category, days=[-1], status=OpenTaskStatus.ASSIGNED)
    profile_id = tasker.tasker_profile.id
    db_session.add_all(
        [
            TaskerAvailability(tasker_profile_id=profile_id, date=today() - dt.timedelta(days=1), time_slot="morning"),
            TaskerAvailability(tasker_profile_id=profile_id, date=today(), time_slot="evening"),
        ]
    )
    db_session.commit()
    stale_id, mixed_id, assigned_id = stale.id, mixed.id, assigned.id
    db_session.expunge_all()

    summary = cron.run_daily_cleanup(db_session)

    assert summary == {"expired_dates": 3, "open_tasks_without_dates": 1, "expired_availability": 1}
    db_session.expire_all()
    assert db_session.get(OpenTask, stale_id) is None
    assert len(db_session.get(OpenTask, mixed_id).dates) == 1
    assert db_session.get(OpenTask, assigned_id) is not None
    assert db_session.query(TaskerAvailability).count() == 1


def test_daily_cleanup_once_swallows_errors(monkeypatch):
    def boom(db):
        raise RuntimeError("database unavailable")

    monkeypatch.setattr(cron, "run_daily_cleanup", boom)
    cron.daily_cleanup_once()
