"""Object-store key conventions.

Branch-scoped:        <repo>/<branch>/<YYYY>/<MM>/<commit>.tar.gz
Branch latest:        <repo>/<branch>/latest.tar.gz
Global per-commit:    <repo>/<ns>/<commit>.tar.gz
Global per-branch:    <repo>/<ns>/<branch>.tar.gz
Global per-PR:        <repo>/<ns>/pr-<number>.tar.gz
"""

from __future__ import annotations

from datetime import datetime

ARCHIVE_SUFFIX = ".tar.gz"
DEFAULT_GLOBAL_NAMESPACE = "_global_"


def month_path(when: datetime) -> str:
    """``YYYY/MM`` for a datetime."""
    return when.strftime("%Y/%m")


def trailing_months(now: datetime, count: int) -> list[str]:
    """``YYYY/MM`` for the current month and the ``count - 1`` before it."""
    year, month = now.year, now.month
    months: list[str] = []
    for _ in range(count):
        months.append(f"{year:04d}/{month:02d}")
        month -= 1
        if month == 0:
            year, month = year - 1, 12
    return months


def branch_key(repo: str, branch: str, month: str, commit: str) -> str:
    return f"{repo}/{branch}/{month}/{commit}{ARCHIVE_SUFFIX}"


def latest_key(repo: str, branch: str) -> str:
    return f"{repo}/{branch}/latest{ARCHIVE_SUFFIX}"


def global_commit_key(repo: str, commit: str, namespace: str = DEFAULT_GLOBAL_NAMESPACE) -> str:
    return f"{repo}/{namespace}/{commit}{ARCHIVE_SUFFIX}"


def global_branch_key(repo: str, branch: str, namespace: str = DEFAULT_GLOBAL_NAMESPACE) -> str:
    return f"{repo}/{namespace}/{branch}{ARCHIVE_SUFFIX}"


def global_pull_request_key(
    repo: str, pull_request: str, namespace: str = DEFAULT_GLOBAL_NAMESPACE
) -> str:
    return f"{repo}/{namespace}/pr-{pull_request}{ARCHIVE_SUFFIX}"
