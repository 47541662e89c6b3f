import pytest
from datetime import datetime, timezone
from schedsim.dataloaders import load_data, TraceLoadError, TraceReadError, TraceParseError
from schedsim.dataloaders.swf import parse_record
from ..util import SAMPLE_TRACE

pytestmark = [
    pytest.mark.unit,
    pytest.mark.nodata,
]


def swf_line(id, submit=0, run=10, procs=4, requested=10):
    fields = [id, submit, 0, run, procs, -1, -1, procs, requested] + [-1] * 9
    return " ".join(str(f) for f in fields)


@pytest.fixture
def write_trace(tmp_path):
    def write(*lines):
        path = tmp_path / "trace.swf"
        path.write_text("\n".join(lines) + "\n")
        return path
    return write


def test_parse_record():
    info = parse_record(swf_line(7, submit=3, run=12, procs=9, requested=60))
    assert info == {
        'id': 7, 'nodes': 3, 'submit_time': 3, 'run_time': 12, 'requested_run_time': 60,
    }


@pytest.mark.parametrize("procs,procs_per_node,nodes", [
    (1, 4, 1),
    (4, 4, 1),
    (5, 4, 2),
    (16, 4, 4),
    (17, 8, 3),
    (3, 1, 3),
])
def test_processors_rounded_up_to_nodes(procs, procs_per_node, nodes):
    assert parse_record(swf_line(1, procs=procs), procs_per_node)['nodes'] == nodes


def test_sample_trace():
    workload = load_data(SAMPLE_TRACE, 8)
    assert [job.id for job in workload.jobs] == [1, 2, 3, 4, 5]
    assert [job.nodes for job in workload.jobs] == [4, 2, 1, 8, 1]
    assert workload.skipped == 0
    assert workload.header['MaxNodes'] == "8"
    assert workload.header['Computer'] == "Test cluster"
    assert workload.start_date == datetime(2009, 1, 1, 8, tzinfo=timezone.utc)


def test_jobs_larger_than_cluster_skipped():
    workload = load_data(SAMPLE_TRACE, 4)
    assert [job.id for job in workload.jobs] == [1, 2, 3, 5]
    assert workload.skipped == 1


def test_limit_counts_kept_jobs():
    # Job 4 is skipped on 4 nodes and does not count towards the limit
    workload = load_data(SAMPLE_TRACE, 4, limit=4)
    assert [job.id for job in workload.jobs] == [1, 2, 3, 5]
    workload = load_data(SAMPLE_TRACE, 8, limit=2)
    assert [job.id for job in workload.jobs] == [1, 2]


def test_comments_and_blank_lines(write_trace):
    path = write_trace(
        "; Computer: somewhere",
        ";",
        "",
        "   ",
        swf_line(1),
        "; a comment between records",
        swf_line(2),
    )
    workload = load_data(path, 4)
    assert [job.id for job in workload.jobs] == [1, 2]
    assert workload.start_date is None


def test_custom_comment_marker(write_trace):
    path = write_trace("# MaxNodes: 4", swf_line(1))
    workload = load_data(path, 4, comment_marker="#")
    assert len(workload.jobs) == 1
    assert workload.header == {'MaxNodes': "4"}


def test_empty_trace(write_trace):
    workload = load_data(write_trace("; nothing here"), 4)
    assert workload.jobs == []
    assert workload.skipped == 0


def test_missing_file(tmp_path):
    with pytest.raises(TraceReadError):
        load_data(tmp_path / "missing.swf", 4)


def test_not_text(tmp_path):
    path = tmp_path / "binary.swf"
    path.write_bytes(b"\xff\xfe\x00\x81" * 10)
    with pytest.raises(TraceLoadError):
        load_data(path, 4)


@pytest.mark.parametrize("bad_line", [
    "1 0 0 10 4 -1 -1 4 10",                      # too few fields
    swf_line(1) + " -1",                          # too many fields
    swf_line(1).replace(" 10 ", " ten ", 1),      # not a number
    swf_line(1, run=-1),                          # run time unknown
    swf_line(1, requested=-1),
    swf_line(1, procs=0),                         # no processors
    swf_line(1, procs=-1),
])
def test_malformed_record(write_trace, bad_line):
    path = write_trace(swf_line(1), "; comment", bad_line)
    with pytest.raises(TraceParseError) as exc_info:
        load_data(path, 4)
    assert exc_info.value.line_number == 3
    assert exc_info.value.path == path
    assert isinstance(exc_info.value, TraceLoadError)


@pytest.mark.parametrize("kwargs", [
    {"procs_per_node": 0},
    {"limit": 0},
])
def test_invalid_arguments(kwargs):
    with pytest.raises(ValueError):
        load_data(SAMPLE_TRACE, 4, **kwargs)
