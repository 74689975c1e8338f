"""Tests for the project sync orchestrator."""

import os

import pytest

from backlog_sync.api import BacklogAPI
from backlog_sync.main import SyncOrchestrator
from backlog_sync.models import SyncSummary

from .fakes import FakeResponse, FakeSession, paged_issues


def project_routes(issues, attachments=None, files=None):
    routes = {
        "/api/v2/issues/count": FakeResponse({"count": len(issues)}),
        "/api/v2/issues": paged_issues(issues),
    }
    for key, records in (attachments or {}).items():
        routes[f"/api/v2/issues/{key}/attachments"] = FakeResponse(records)
    for (key, attachment_id), body in (files or {}).items():
        routes[f"/api/v2/issues/{key}/attachments/{attachment_id}"] = body
    return routes


def make_orchestrator(settings, routes):
    session = FakeSession(routes)
    return SyncOrchestrator(BacklogAPI(settings, session=session)), session


class TestSyncProject:
    @pytest.mark.asyncio
    async def test_issue_without_attachments(self, settings, capsys, tmp_path):
        orchestrator, session = make_orchestrator(
            settings,
            project_routes([{"issueKey": "P-1", "summary": "A/B"}], {"P-1": []}),
        )

        summary = await orchestrator.sync_project(1)

        assert capsys.readouterr().out == "no attachments: P-1 - A/B\n"
        assert os.listdir(tmp_path) == []
        assert summary == SyncSummary(issues=1)

    @pytest.mark.asyncio
    async def test_downloads_attachments(self, settings, capsys, tmp_path):
        orchestrator, session = make_orchestrator(
            settings,
            project_routes(
                [{"issueKey": "P-1", "summary": "A/B"}],
                {"P-1": [{"id": 5, "name": "x.png"}, {"id": 6, "name": "x.png"}]},
                {("P-1", 5): FakeResponse(b"five"), ("P-1", 6): FakeResponse(b"six")},
            ),
        )

        summary = await orchestrator.sync_project(1)

        first = os.path.join(str(tmp_path), "example", "P-1-A_B", "5-x.png")
        second = os.path.join(str(tmp_path), "example", "P-1-A_B", "6-x.png")
        assert capsys.readouterr().out.splitlines() == [
            "has attachments: P-1 - A/B",
            f"DL: {first}",
            f"DL: {second}",
        ]
        with open(first, "rb") as f:
            assert f.read() == b"five"
        assert summary.downloaded == 2
        assert summary.issues_with_attachments == 1

    @pytest.mark.asyncio
    async def test_rerun_skips_existing_files(self, settings, capsys, tmp_path):
        routes = project_routes(
            [{"issueKey": "P-1", "summary": "A/B"}],
            {"P-1": [{"id": 5, "name": "x.png"}]},
            {("P-1", 5): FakeResponse(b"five")},
        )
        orchestrator, session = make_orchestrator(settings, routes)
        await orchestrator.sync_project(1)
        capsys.readouterr()
        requests_after_first_run = len(session.requested)

        summary = await orchestrator.sync_project(1)

        path = os.path.join(str(tmp_path), "example", "P-1-A_B", "5-x.png")
        assert capsys.readouterr().out.splitlines() == [
            "has attachments: P-1 - A/B",
            f"SKIP: {path}",
        ]
        assert summary.skipped == 1
        assert summary.downloaded == 0
        assert "/api/v2/issues/P-1/attachments/5" not in session.requested_paths()[
            requests_after_first_run:
        ]

    @pytest.mark.asyncio
    async def test_attachment_list_error_does_not_stop_run(self, settings, capsys):
        routes = project_routes(
            [
                {"issueKey": "P-1", "summary": "broken"},
                {"issueKey": "P-2", "summary": "fine"},
            ],
            {"P-2": []},
        )
        routes["/api/v2/issues/P-1/attachments"] = FakeResponse("<html>")
        orchestrator, session = make_orchestrator(settings, routes)

        summary = await orchestrator.sync_project(1)

        captured = capsys.readouterr()
        assert "Error: Invalid JSON response for attachments of P-1" in captured.err
        assert captured.out == "no attachments: P-2 - fine\n"
        assert summary.failed_issues == 1
        assert summary.issues == 2

    @pytest.mark.asyncio
    async def test_attachment_list_http_error_is_reported(self, settings, capsys):
        routes = project_routes([{"issueKey": "P-1", "summary": "gone"}])
        orchestrator, session = make_orchestrator(settings, routes)

        summary = await orchestrator.sync_project(1)

        captured = capsys.readouterr()
        assert "Error: Failed to fetch attachments of P-1" in captured.err
        assert "no attachments" not in captured.out
        assert summary.failed_issues == 1

    @pytest.mark.asyncio
    async def test_failed_download_continues_with_next_attachment(
        self, settings, capsys, tmp_path
    ):
        orchestrator, session = make_orchestrator(
            settings,
            project_routes(
                [{"issueKey": "P-1", "summary": "s"}],
                {"P-1": [{"id": 1, "name": "a.txt"}, {"id": 2, "name": "b.txt"}]},
                {
                    ("P-1", 1): FakeResponse(b"x", status=500),
                    ("P-1", 2): FakeResponse(b"b"),
                },
            ),
        )

        summary = await orchestrator.sync_project(1)

        captured = capsys.readouterr()
        failed = os.path.join(str(tmp_path), "example", "P-1-s", "1-a.txt")
        succeeded = os.path.join(str(tmp_path), "example", "P-1-s", "2-b.txt")
        assert f"Error: Failed to download {failed}" in captured.err
        assert f"DL: {failed}" not in captured.out
        assert f"DL: {succeeded}" in captured.out
        assert not os.path.exists(failed)
        assert summary.failed_downloads == 1
        assert summary.downloaded == 1

    @pytest.mark.asyncio
    async def test_malformed_count_completes_without_issues(self, settings, capsys):
        orchestrator, session = make_orchestrator(
            settings, {"/api/v2/issues/count": FakeResponse("garbage")}
        )

        summary = await orchestrator.sync_project(1)

        captured = capsys.readouterr()
        assert "Error: Invalid JSON response for issue count" in captured.err
        assert captured.out == ""
        assert summary == SyncSummary()

    @pytest.mark.asyncio
    async def test_status_line_keeps_unsanitized_summary(self, settings, capsys, tmp_path):
        orchestrator, session = make_orchestrator(
            settings,
            project_routes(
                [{"issueKey": "P-9", "summary": 'What? "this" <that>'}],
                {"P-9": [{"id": 3, "name": "f.log"}]},
                {("P-9", 3): FakeResponse(b"log")},
            ),
        )

        await orchestrator.sync_project(1)

        lines = capsys.readouterr().out.splitlines()
        assert lines[0] == 'has attachments: P-9 - What? "this" <that>'
        assert lines[1].endswith(os.path.join("P-9-What_ _this_ _that_", "3-f.log"))


class TestMalformedInputDoesNotStopRun:
    """Each case breaks P-1 and checks P-2 is still processed."""

    ISSUES = [
        {"issueKey": "P-1", "summary": "first"},
        {"issueKey": "P-2", "summary": "second"},
    ]

    @pytest.mark.asyncio
    async def test_fractional_created_timestamp(self, settings, capsys, tmp_path):
        orchestrator, session = make_orchestrator(
            settings,
            project_routes(
                self.ISSUES,
                {
                    "P-1": [{"id": 5, "name": "x", "created": "2024-08-21T09:44:00.123Z"}],
                    "P-2": [],
                },
                {("P-1", 5): FakeResponse(b"x")},
            ),
        )

        summary = await orchestrator.sync_project(1)

        path = os.path.join(str(tmp_path), "example", "P-1-first", "5-x")
        assert capsys.readouterr().out.splitlines() == [
            "has attachments: P-1 - first",
            f"DL: {path}",
            "no attachments: P-2 - second",
        ]
        assert summary.downloaded == 1

    @pytest.mark.asyncio
    async def test_unparseable_created_timestamp(self, settings, capsys):
        orchestrator, session = make_orchestrator(
            settings,
            project_routes(
                self.ISSUES,
                {"P-1": [{"id": 5, "name": "x", "created": "last tuesday"}], "P-2": []},
                {("P-1", 5): FakeResponse(b"x")},
            ),
        )

        summary = await orchestrator.sync_project(1)

        assert "no attachments: P-2 - second" in capsys.readouterr().out
        assert summary.downloaded == 1
        assert summary.issues == 2

    @pytest.mark.asyncio
    async def test_attachment_record_missing_fields(self, settings, capsys):
        orchestrator, session = make_orchestrator(
            settings, project_routes(self.ISSUES, {"P-1": [{"id": 5}], "P-2": []})
        )

        summary = await orchestrator.sync_project(1)

        captured = capsys.readouterr()
        assert "Error: Invalid JSON response for attachments of P-1" in captured.err
        assert captured.out == "no attachments: P-2 - second\n"
        assert summary.failed_issues == 1

    @pytest.mark.asyncio
    async def test_undecodable_attachment_list(self, settings, capsys):
        routes = project_routes(self.ISSUES, {"P-2": []})
        routes["/api/v2/issues/P-1/attachments"] = FakeResponse(b"\x93\xfa\x96\x7b")
        orchestrator, session = make_orchestrator(settings, routes)

        summary = await orchestrator.sync_project(1)

        captured = capsys.readouterr()
        assert "Error: Invalid JSON response for attachments of P-1" in captured.err
        assert captured.out == "no attachments: P-2 - second\n"
        assert summary.issues == 2

    @pytest.mark.asyncio
    async def test_undecodable_download_error_body(self, settings, capsys, tmp_path):
        orchestrator, session = make_orchestrator(
            settings,
            project_routes(
                self.ISSUES,
                {"P-1": [{"id": 5, "name": "x"}], "P-2": []},
                {("P-1", 5): FakeResponse(b"\x93\xfa\x96\x7b", status=404)},
            ),
        )

        summary = await orchestrator.sync_project(1)

        captured = capsys.readouterr()
        path = os.path.join(str(tmp_path), "example", "P-1-first", "5-x")
        assert f"Error: Failed to download {path}" in captured.err
        assert captured.out.splitlines() == [
            "has attachments: P-1 - first",
            "no attachments: P-2 - second",
        ]
        assert not os.path.exists(path)
        assert summary.failed_downloads == 1
        assert summary.issues == 2


class TestSyncProjects:
    @pytest.mark.asyncio
    async def test_summaries_are_combined(self, settings, capsys):
        routes = project_routes([{"issueKey": "P-1", "summary": "s"}], {"P-1": []})
        orchestrator, session = make_orchestrator(settings, routes)

        summary = await orchestrator.sync_projects(["1", "2"])

        assert summary.issues == 2
        assert session.requested_paths().count("/api/v2/issues/count") == 2
