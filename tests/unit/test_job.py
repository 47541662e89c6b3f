import pytest
from schedsim.job import Job, JobState, job_dict

pytestmark = [
    pytest.mark.unit,
    pytest.mark.nodata,
]


def make_job(id=1, nodes=2, submit_time=5, run_time=10, requested_run_time=20):
    return Job(job_dict(id=id, nodes=nodes, submit_time=submit_time,
                        run_time=run_time, requested_run_time=requested_run_time))


def test_admit_sets_schedule_fields():
    job = make_job()
    assert not job.scheduled
    assert job.schedule_time is None and job.expected_end is None

    job.admit(12)

    assert job.scheduled
    assert job.schedule_time == 12
    assert job.expected_end == 12 + 20  # requested, not actual, run time
    assert job.current_state == JobState.RUNNING


def test_admit_twice_fails():
    job = make_job()
    job.admit(5)
    with pytest.raises(RuntimeError):
        job.admit(6)
    assert job.schedule_time == 5


def test_wait_time():
    job = make_job(submit_time=5)
    assert job.wait_time_from(9) == 4
    with pytest.raises(RuntimeError):
        job.wait_time()
    job.admit(9)
    assert job.wait_time() == 4


def test_complete_requires_running():
    job = make_job()
    with pytest.raises(RuntimeError):
        job.complete(3)
    job.admit(5)
    job.complete(15)
    assert job.end_time == 15
    assert job.current_state == JobState.COMPLETED


def test_identity_is_id_only():
    a = make_job(id=3, nodes=1, run_time=1)
    b = make_job(id=3, nodes=8, run_time=99)
    c = make_job(id=4)
    assert a == b
    assert hash(a) == hash(b)
    assert a < c and c > b
    assert sorted([c, a]) == [a, c]
    assert len({a, b, c}) == 2


@pytest.mark.parametrize("field,value", [
    ("nodes", 0),
    ("nodes", -2),
    ("submit_time", -1),
    ("run_time", -1),
    ("requested_run_time", -5),
])
def test_invalid_job(field, value):
    with pytest.raises(ValueError):
        make_job(**{field: value})


def test_kwargs_construction():
    job = Job(id=7, nodes=1, submit_time=0, run_time=3, requested_run_time=3)
    assert job.id == 7
    assert job.current_state == JobState.PENDING
