"""Turn raw sandbox output into a result payload.

Sandboxed programs report success by printing a line that starts with
``RESULT:`` followed by their JSON result. Anything else is a failure and
only its first line is surfaced.
"""

import json

from executor.models import ExecutionOutcome, ResultPayload

RESULT_PREFIX = "RESULT:"
UNKNOWN_ERROR = "Unknown error"


def split_lines(output: str) -> list[str]:
    """Split on newlines only, dropping one trailing carriage return per line.

    Other separators such as form feed and U+2028 stay inside the line.
    """
    return [line.removesuffix("\r") for line in output.split("\n")]


def summarize_error(output: str) -> str:
    """Return the first output line with double quotes swapped for single quotes."""
    if not output:
        return UNKNOWN_ERROR
    return split_lines(output)[0].replace('"', "'")


def error_payload(message: str) -> str:
    """Build the canonical error payload as compact JSON text."""
    return json.dumps({"status": "error", "message": message}, separators=(",", ":"))


def decode_result(outcome: ExecutionOutcome) -> ResultPayload:
    """Map an execution outcome to its payload.

    The remainder of the first ``RESULT:`` line is returned verbatim; it is
    the sandboxed program's own output and is not validated here.
    """
    for line in split_lines(outcome.raw_output):
        if line.startswith(RESULT_PREFIX):
            return ResultPayload(body=line[len(RESULT_PREFIX) :], succeeded=True)
    return ResultPayload(body=error_payload(summarize_error(outcome.raw_output)), succeeded=False)
