"""Tests for the worker pool request/response tasks."""

from ctxbundle.context.archive import read_archive
from ctxbundle.editing.match_locator import MatchStatus
from ctxbundle.editing.patch_parser import PatchRecord
from ctxbundle.workers import (
    ArchiveRequest, LocateRequest, WorkerPool, run_archive, run_locate,
)


FILES = {"proj/a.py": "x = 1\n", "proj/b.py": "y = 1\ny = 1\n"}
RECORDS = [
    PatchRecord("a.py", "x = 1", "x = 2", 0),
    PatchRecord("b.py", "y = 1", "y = 2", 1),
]


class TestRequests:
    def test_locate_request_snapshots_inputs(self):
        files = dict(FILES)
        request = LocateRequest.create(7, files, RECORDS)
        files["proj/a.py"] = "changed"
        assert dict(request.files)["proj/a.py"] == "x = 1\n"
        assert isinstance(request.records, tuple)

    def test_run_locate(self):
        response = run_locate(LocateRequest.create(3, FILES, RECORDS))
        assert response.request_id == 3
        assert [r.status for r in response.results] == [
            MatchStatus.UNIQUE, MatchStatus.AMBIGUOUS,
        ]

    def test_run_archive(self):
        response = run_archive(ArchiveRequest(5, tuple(FILES.items()), "proj"))
        assert response.count == 2
        assert sorted(name for name, _ in read_archive(response.data)) == ["a.py", "b.py"]


class TestWorkerPool:
    def test_submit_locate(self):
        with WorkerPool(2) as pool:
            future = pool.submit_locate(LocateRequest.create(1, FILES, RECORDS))
            response = future.result(timeout=10)
        assert response.request_id == 1
        assert response.results[0].span == (0, 5)

    def test_submit_archive(self):
        with WorkerPool(1) as pool:
            response = pool.submit_archive(ArchiveRequest(2, (("a.txt", "A"),))).result(timeout=10)
        assert read_archive(response.data) == [("a.txt", "A")]

    def test_zero_workers_clamped(self):
        pool = WorkerPool(0)
        try:
            assert pool.submit_archive(ArchiveRequest(1, ())).result(timeout=10).count == 0
        finally:
            pool.shutdown()
