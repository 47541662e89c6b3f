import pytest
from tests.util import SAMPLE_TRACE


# Expected results of replaying tests/data/sample.swf, per policy and cluster size.
POLICY_CONFIGS = {
    "fcfs": {
        "marks": [],
        "sample": {
            4: {"jobs": 4, "skipped": 1, "makespan": 15, "total_wait": 22, "median_wait": 8},
            8: {"jobs": 5, "skipped": 0, "makespan": 32, "total_wait": 32, "median_wait": 0},
        },
    },
    "ff": {
        "marks": [],
        "sample": {
            4: {"jobs": 4, "skipped": 1, "makespan": 15, "total_wait": 22, "median_wait": 8},
            8: {"jobs": 5, "skipped": 0, "makespan": 30, "total_wait": 7, "median_wait": 0},
        },
    },
    "sjf": {
        "marks": [],
        "sample": {
            4: {"jobs": 4, "skipped": 1, "makespan": 15, "total_wait": 22, "median_wait": 8},
            8: {"jobs": 5, "skipped": 0, "makespan": 30, "total_wait": 7, "median_wait": 0},
        },
    },
    "fcfs-easy": {
        "marks": [],
        "sample": {
            4: {"jobs": 4, "skipped": 1, "makespan": 15, "total_wait": 22, "median_wait": 8},
            8: {"jobs": 5, "skipped": 0, "makespan": 30, "total_wait": 7, "median_wait": 0},
        },
    },
}


@pytest.fixture(params=[
    pytest.param(k, marks=v.get('marks', [])) for k, v in POLICY_CONFIGS.items()
])
def policy(request):
    return request.param


@pytest.fixture
def policy_config(policy):
    return POLICY_CONFIGS[policy]


@pytest.fixture
def sample_trace():
    assert SAMPLE_TRACE.exists(), \
        f"File `{SAMPLE_TRACE}' does not exist. Is SCHEDSIM_DATA_DIR set correctly?"
    return SAMPLE_TRACE


@pytest.fixture
def sim_output(tmp_path, monkeypatch):
    """ Run in a scratch directory so default outputs never land in the repo """
    monkeypatch.chdir(tmp_path)
    return tmp_path
