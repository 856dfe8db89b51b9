import sys

import httpx
import pytest

from folio_blog.cli import backup_cli
from folio_blog.cli.backup_cli import BackupCLI
from folio_blog.services.backup_archive import build_archive

ENVELOPE = {
    "version": "1.0.0",
    "exportDate": "2024-05-01T12:00:00+00:00",
    "description": "test",
    "data": {"categories": [{"name": "Tech"}], "articles": []},
}


@pytest.fixture
def api(monkeypatch):
    """Route the CLI's HTTP calls to an in-process handler."""
    calls = []
    responses = {}
    real_client = httpx.AsyncClient

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return responses[(request.method, request.url.path)]

    def client_factory(**kwargs):
        return real_client(transport=httpx.MockTransport(handler), **kwargs)

    monkeypatch.setattr(backup_cli.httpx, "AsyncClient", client_factory)
    return calls, responses


@pytest.mark.asyncio
async def test_validate_reads_archive_offline(tmp_path):
    archive = tmp_path / "site.zip"
    archive.write_bytes(build_archive(ENVELOPE, {}))

    assert await BackupCLI("http://blog").validate(str(archive)) is True


@pytest.mark.asyncio
async def test_validate_rejects_bad_or_missing_archive(tmp_path):
    garbage = tmp_path / "garbage.zip"
    garbage.write_bytes(b"not a zip")

    cli = BackupCLI("http://blog")
    assert await cli.validate(str(garbage)) is False
    assert await cli.validate(str(tmp_path / "missing.zip")) is False


@pytest.mark.asyncio
async def test_export_and_import_need_a_token(tmp_path, api):
    calls, _ = api
    cli = BackupCLI("http://blog")

    assert await cli.export(str(tmp_path / "out.zip")) is False
    assert await cli.import_package(str(tmp_path / "in.zip")) is False
    assert calls == []


@pytest.mark.asyncio
async def test_export_writes_archive(tmp_path, api):
    calls, responses = api
    responses[("GET", "/api/backup/export")] = httpx.Response(200, content=b"PK-archive")
    output = tmp_path / "nested" / "site.zip"

    assert await BackupCLI("http://blog/", api_token="tok").export(str(output)) is True

    assert output.read_bytes() == b"PK-archive"
    assert calls[0].headers["authorization"] == "Bearer tok"


@pytest.mark.asyncio
async def test_export_reports_server_error(tmp_path, api):
    _, responses = api
    responses[("GET", "/api/backup/export")] = httpx.Response(401, json={"detail": "Not authenticated"})

    assert await BackupCLI("http://blog", api_token="tok").export(str(tmp_path / "site.zip")) is False
    assert not (tmp_path / "site.zip").exists()


@pytest.mark.parametrize("failed, expected", [(0, True), (2, False)])
@pytest.mark.asyncio
async def test_import_result_follows_report(tmp_path, api, failed, expected):
    _, responses = api
    report = {
        "version": "1.0.0",
        "results": {"events": {"success": 1, "failed": failed, "errors": [{"name": "events", "error": "No date"}] * failed}},
        "totalSuccess": 1,
        "totalFailed": failed,
    }
    responses[("POST", "/api/backup/import")] = httpx.Response(200, json=report)
    archive = tmp_path / "site.zip"
    archive.write_bytes(build_archive(ENVELOPE, {}))

    assert await BackupCLI("http://blog", api_token="tok").import_package(str(archive)) is expected


@pytest.mark.asyncio
async def test_login_prints_token(api, capsys):
    _, responses = api
    responses[("POST", "/api/auth/login")] = httpx.Response(200, json={"token": "abc.def", "user": {}})

    assert await BackupCLI("http://blog").login("admin", "admin123") is True
    assert capsys.readouterr().out.strip() == "abc.def"


@pytest.mark.asyncio
async def test_login_failure(api):
    _, responses = api
    responses[("POST", "/api/auth/login")] = httpx.Response(401, json={"detail": "Invalid credentials"})

    assert await BackupCLI("http://blog").login("admin", "wrong") is False


def test_main_without_command_exits_with_error(monkeypatch):
    monkeypatch.setattr(sys, "argv", ["folio-blog"])

    with pytest.raises(SystemExit) as excinfo:
        backup_cli.main()

    assert excinfo.value.code == 1


def test_main_validate_exit_code(monkeypatch, tmp_path):
    archive = tmp_path / "site.zip"
    archive.write_bytes(build_archive(ENVELOPE, {}))
    monkeypatch.setattr(sys, "argv", ["folio-blog", "validate", "--input", str(archive)])

    with pytest.raises(SystemExit) as excinfo:
        backup_cli.main()

    assert excinfo.value.code == 0
