import pytest

from apps.esports.runner import BatchRunner


def _count(items, ctx):
    ctx.counters["skipped_records"] += 1
    return len(items)


@pytest.mark.django_db
def test_runner_pauses_after_every_batch():
    sleeps = []
    runner = BatchRunner(label="teams", pause_seconds=0.25, sleep=sleeps.append)

    runner.process([1, 2], _count)
    runner.process([3], _count)

    assert sleeps == [0.25, 0.25]
    assert runner.report.batches == 2
    assert runner.report.processed == 3
    assert runner.report.skipped_records == 2


@pytest.mark.django_db
def test_runner_without_pause_never_sleeps():
    sleeps = []
    runner = BatchRunner(pause_seconds=0, sleep=sleeps.append)

    runner.process([1], _count)

    assert sleeps == []


@pytest.mark.django_db
def test_pause_comes_from_settings(settings):
    settings.SYNC_BATCH_PAUSE_MS = 1500
    lines = []
    sleeps = []

    runner = BatchRunner.from_settings(label="players", progress=lines.append, sleep=sleeps.append)
    runner.process([1], _count)

    assert runner.pause_seconds == 1.5
    assert sleeps == [1.5]
    assert lines[0].startswith("[players] batch 1: processed=1")
