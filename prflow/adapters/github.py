"""GitHub API adapter."""

import logging
from typing import Any, Dict, List

import requests

from prflow.adapters.base import MERGE_METHODS, GitPlatformAdapter, GitPlatformError
from prflow.models import CIRun, Milestone, PullRequest

PER_PAGE = 100


def _logins(items: Any) -> List[str]:
    return [u["login"] for u in (items or []) if isinstance(u, dict) and "login" in u]


def _pr_from_api(data: Dict[str, Any]) -> PullRequest:
    head = data.get("head") or {}
    base = data.get("base") or {}
    milestone = data.get("milestone") or {}
    labels = [lb["name"] for lb in (data.get("labels") or []) if isinstance(lb, dict) and "name" in lb]
    return PullRequest(
        number=data["number"],
        state=data.get("state", "open"),
        url=data.get("html_url") or "",
        title=data.get("title") or "",
        head_branch=head.get("ref", ""),
        base_branch=base.get("ref", ""),
        labels=labels,
        assignees=_logins(data.get("assignees")),
        reviewers=_logins(data.get("requested_reviewers")),
        milestone_title=milestone.get("title"),
        mergeable=data.get("mergeable"),
    )


def _milestone_from_api(data: Dict[str, Any]) -> Milestone:
    return Milestone(
        number=data["number"],
        title=data.get("title") or "",
        state=data.get("state", "open"),
        due_on=data.get("due_on"),
        description=data.get("description") or "",
    )


class GitHubAdapter(GitPlatformAdapter):
    """GitHub API implementation."""

    def __init__(
        self,
        token: str,
        api_url: str = "https://api.github.com",
        log: logging.Logger | None = None,
    ) -> None:
        self._api_url = api_url.rstrip("/")
        self._session = requests.Session()
        self._session.headers["Authorization"] = f"token {token}"
        self._session.headers["Accept"] = "application/vnd.github.v3+json"
        self._log = log or logging.getLogger("prflow.adapters.github")

    def _request(
        self,
        method: str,
        path: str,
        params: Dict[str, Any] | None = None,
        json: Dict[str, Any] | None = None,
    ) -> requests.Response:
        url = path if path.startswith("http") else f"{self._api_url}/{path.lstrip('/')}"
        self._log.debug("%s %s", method, url)
        try:
            resp = self._session.request(method, url, params=params, json=json, timeout=30)
        except requests.RequestException as e:
            raise GitPlatformError(f"{method} {url} failed: {e}") from e
        if resp.status_code >= 400:
            msg = resp.text or resp.reason or str(resp.status_code)
            try:
                payload = resp.json()
                msg = payload.get("message", msg)
                codes = [e.get("code", "") for e in payload.get("errors") or [] if isinstance(e, dict)]
                if codes:
                    msg = f"{msg} ({', '.join(c for c in codes if c)})"
            except Exception:
                pass
            raise GitPlatformError(f"{resp.status_code}: {msg}", status_code=resp.status_code)
        return resp

    def _get_paginated(self, path: str, params: Dict[str, Any] | None = None) -> List[Dict[str, Any]]:
        """GET every page of a list endpoint, following the Link header."""
        items: List[Dict[str, Any]] = []
        resp = self._request("GET", path, params={**(params or {}), "per_page": PER_PAGE})
        while True:
            items.extend(resp.json() or [])
            next_link = resp.links.get("next")
            if not next_link:
                return items
            resp = self._request("GET", next_link["url"])

    # Pull requests

    def find_pull_request(self, repo: str, head: str, base: str) -> PullRequest | None:
        owner = repo.split("/", 1)[0]
        resp = self._request(
            "GET",
            f"/repos/{repo}/pulls",
            params={"head": f"{owner}:{head}", "base": base, "state": "all", "per_page": 1},
        )
        data = resp.json() or []
        return _pr_from_api(data[0]) if data else None

    def get_pull_request(self, repo: str, pr_number: int) -> PullRequest:
        resp = self._request("GET", f"/repos/{repo}/pulls/{pr_number}")
        return _pr_from_api(resp.json())

    def create_pull_request(
        self,
        repo: str,
        title: str,
        body: str,
        head: str,
        base: str,
    ) -> PullRequest:
        resp = self._request(
            "POST",
            f"/repos/{repo}/pulls",
            json={"title": title, "body": body, "head": head, "base": base},
        )
        return _pr_from_api(resp.json())

    def update_pull_request(self, repo: str, pr_number: int, title: str, body: str) -> PullRequest:
        resp = self._request("PATCH", f"/repos/{repo}/pulls/{pr_number}", json={"title": title, "body": body})
        return _pr_from_api(resp.json())

    def reopen_pull_request(self, repo: str, pr_number: int) -> PullRequest:
        resp = self._request("PATCH", f"/repos/{repo}/pulls/{pr_number}", json={"state": "open"})
        return _pr_from_api(resp.json())

    def search_open_pull_requests(self, repo: str, query: str) -> List[int]:
        q = f'repo:{repo} is:pr is:open in:title "{query}"'
        resp = self._request("GET", "/search/issues", params={"q": q})
        return [item["number"] for item in (resp.json() or {}).get("items", [])]

    def merge_pull_request(
        self,
        repo: str,
        pr_number: int,
        method: str,
        commit_message: str = "",
        delete_branch: str | None = None,
    ) -> None:
        if method not in MERGE_METHODS:
            raise ValueError(f"Unknown merge method {method!r}; expected one of {MERGE_METHODS}")
        body: Dict[str, Any] = {"merge_method": method}
        if commit_message:
            body["commit_message"] = commit_message
        self._request("PUT", f"/repos/{repo}/pulls/{pr_number}/merge", json=body)
        if delete_branch:
            try:
                self._request("DELETE", f"/repos/{repo}/git/refs/heads/{delete_branch}")
            except GitPlatformError as e:
                self._log.warning("Merged PR #%s but failed to delete branch %s: %s", pr_number, delete_branch, e)

    # Labels, milestone, people on a PR

    def list_labels(self, repo: str) -> List[str]:
        return [lb["name"] for lb in self._get_paginated(f"/repos/{repo}/labels")]

    def create_label(self, repo: str, name: str, color: str, description: str = "") -> None:
        self._request(
            "POST",
            f"/repos/{repo}/labels",
            json={"name": name, "color": color.lstrip("#"), "description": description},
        )

    def add_label(self, repo: str, pr_number: int, label: str) -> None:
        self._request("POST", f"/repos/{repo}/issues/{pr_number}/labels", json={"labels": [label]})

    def get_pr_milestone_title(self, repo: str, pr_number: int) -> str | None:
        data = self._request("GET", f"/repos/{repo}/issues/{pr_number}").json()
        return (data.get("milestone") or {}).get("title")

    def set_pr_milestone(self, repo: str, pr_number: int, title: str) -> None:
        matches = [m for m in self.list_milestones(repo) if m.title == title]
        if not matches:
            raise GitPlatformError(f"Milestone not found: {title!r}", status_code=404)
        # Prefer an open milestone when titles collide across states
        matches.sort(key=lambda m: not m.is_open)
        self._request("PATCH", f"/repos/{repo}/issues/{pr_number}", json={"milestone": matches[0].number})

    def add_assignee(self, repo: str, pr_number: int, login: str) -> None:
        data = self._request(
            "POST",
            f"/repos/{repo}/issues/{pr_number}/assignees",
            json={"assignees": [login]},
        ).json()
        # GitHub silently drops users who cannot be assigned
        if login.lower() not in (a.lower() for a in _logins(data.get("assignees"))):
            raise GitPlatformError(f"User {login!r} could not be assigned")

    def request_reviewer(self, repo: str, pr_number: int, login: str) -> None:
        self._request(
            "POST",
            f"/repos/{repo}/pulls/{pr_number}/requested_reviewers",
            json={"reviewers": [login]},
        )

    # Milestones and issues

    def list_milestones(self, repo: str) -> List[Milestone]:
        data = self._get_paginated(f"/repos/{repo}/milestones", params={"state": "all"})
        return [_milestone_from_api(d) for d in data]

    def create_milestone(
        self,
        repo: str,
        title: str,
        description: str = "",
        due_on: str | None = None,
        state: str = "open",
    ) -> Milestone:
        body: Dict[str, Any] = {"title": title, "state": state}
        if description:
            body["description"] = description
        if due_on:
            body["due_on"] = due_on
        resp = self._request("POST", f"/repos/{repo}/milestones", json=body)
        return _milestone_from_api(resp.json())

    def update_milestone(self, repo: str, number: int, **fields: Any) -> Milestone:
        body = {k: v for k, v in fields.items() if v is not None}
        resp = self._request("PATCH", f"/repos/{repo}/milestones/{number}", json=body)
        return _milestone_from_api(resp.json())

    def list_milestone_issue_states(self, repo: str, milestone_number: int) -> List[str]:
        data = self._get_paginated(
            f"/repos/{repo}/issues",
            params={"milestone": milestone_number, "state": "all"},
        )
        return [d.get("state", "") for d in data]

    def create_comment(self, repo: str, issue_number: int, body: str) -> None:
        self._request("POST", f"/repos/{repo}/issues/{issue_number}/comments", json={"body": body})

    # CI

    def get_latest_workflow_run(self, repo: str, branch: str) -> CIRun | None:
        data = self._request(
            "GET",
            f"/repos/{repo}/actions/runs",
            params={"branch": branch, "per_page": 1},
        ).json()
        runs = data.get("workflow_runs") or []
        if not runs:
            return None
        return CIRun(status=runs[0].get("status") or "", conclusion=runs[0].get("conclusion"))

    def count_workflows(self, repo: str) -> int:
        data = self._request("GET", f"/repos/{repo}/actions/workflows").json()
        return int(data.get("total_count") or 0)
