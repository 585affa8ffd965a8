from __future__ import annotations

import io
import json
from typing import TYPE_CHECKING

import pytest

from repo_context import tool

if TYPE_CHECKING:
    from pathlib import Path

    from conftest import RepoBuilder
    from pytest_mock import MockerFixture


@pytest.mark.unit
@pytest.mark.parametrize("payload", ["{not json", "[1, 2]", '"text"'])
def test_malformed_requests_are_rejected(payload: str) -> None:
    result = tool.handle_request(payload)

    assert not result.success
    assert result.error is not None
    assert result.error.code == "INVALID_REQUEST"


@pytest.mark.unit
def test_wrongly_typed_path_is_invalid_config() -> None:
    result = tool.handle_request({"path": 12})

    assert result.error is not None
    assert result.error.code == "INVALID_CONFIG"
    assert "path" in result.error.message


@pytest.mark.unit
def test_request_runs_analysis(repo_builder: RepoBuilder) -> None:
    root = repo_builder.write({"src/main.py": "print('x')\n"})

    result = tool.handle_request(json.dumps({"path": str(root), "compress": True, "output_format": "json"}))

    assert result.success
    document = json.loads(result.content or "")
    assert document["files"][0]["path"] == "src/main.py"
    assert "content" not in document["files"][0]


@pytest.mark.unit
def test_main_writes_result_and_exit_code(
    repo_builder: RepoBuilder,
    mocker: MockerFixture,
    capsys: pytest.CaptureFixture[str],
) -> None:
    root = repo_builder.write({"a.py": "print('a')\n"})
    mocker.patch("sys.stdin", io.StringIO(json.dumps({"path": str(root)})))

    assert tool.main() == 0

    out = json.loads(capsys.readouterr().out)
    assert out["success"] is True
    assert out["metadata"]["total_files"] == 1
    assert out["error"] is None


@pytest.mark.unit
def test_main_failure_exit_code(
    tmp_path: Path,
    mocker: MockerFixture,
    capsys: pytest.CaptureFixture[str],
) -> None:
    mocker.patch("sys.stdin", io.StringIO(json.dumps({"path": str(tmp_path / "nope")})))

    assert tool.main() == 1

    out = json.loads(capsys.readouterr().out)
    assert out["error"]["code"] == "INVALID_PATH"
