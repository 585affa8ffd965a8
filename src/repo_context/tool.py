"""JSON request/response wrapper exposing `analyze_repository` as a callable tool.

One JSON object is read from stdin and one `AnalysisResult` object is written
to stdout. A request that is not valid JSON, or not an object, is answered with
an `INVALID_REQUEST` failure instead of a traceback.
"""

from __future__ import annotations

import json
import sys
from typing import Any

from repo_context.analysis import AnalysisError, AnalysisRequest, AnalysisResult, analyze_repository
from repo_context.exceptions import ConfigurationError
from repo_context.settings import validated


def invalid_request(message: str) -> AnalysisResult:
    return AnalysisResult(success=False, error=AnalysisError(code="INVALID_REQUEST", message=message))


def handle_request(payload: str | dict[str, Any]) -> AnalysisResult:
    """Decode and run one tool request.

    Args:
        payload (str | dict[str, Any]): the raw JSON text or an already decoded object

    Returns:
        AnalysisResult: the analysis outcome or a request/configuration failure
    """
    if isinstance(payload, str):
        try:
            payload = json.loads(payload or "{}")
        except json.JSONDecodeError as e:
            return invalid_request(f"Malformed JSON request: {e}")
    if not isinstance(payload, dict):
        return invalid_request("Request must be a JSON object")
    try:
        request = validated(AnalysisRequest, **payload)
    except ConfigurationError as e:
        return AnalysisResult.failure(e)
    return analyze_repository(request)


def main() -> int:
    result = handle_request(sys.stdin.read())
    sys.stdout.write(json.dumps(result.model_dump(mode="json"), indent=2, ensure_ascii=False) + "\n")
    return 0 if result.success else 1


if __name__ == "__main__":
    raise SystemExit(main())
