"""
提交操作 - 基于 blob/tree/commit/ref 原语构造多文件提交

create_commit 的流程:
    读取分支head -> 上传blob -> 以旧tree为base创建新tree
    -> 创建commit -> 条件更新分支引用 -> 通知观察者
"""

import base64
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional, Protocol, Tuple

from github import InputGitTreeElement
from github.GithubException import GithubException, UnknownObjectException

from .accounts import AccountSession
from .errors import Conflict, InternalError, InvalidChange, InvalidParams, RefNotFound, remote_errors
from .files import read_source

logger = logging.getLogger(__name__)

REGULAR_FILE_MODE = "100644"
OPERATIONS = ("add", "modify", "delete")


class CommitObserver(Protocol):
    """提交成功后被通知的外部协作者"""

    def commit_created(self, repo: str, commit_sha: str) -> None:
        ...


@dataclass(frozen=True)
class Change:
    """一次提交中的单个文件变更"""

    path: str
    operation: str
    source_path: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Any) -> "Change":
        if not isinstance(data, dict):
            raise InvalidChange(f"Each change must be an object, got: {data!r}")

        path = data.get("path")
        operation = data.get("operation")
        if not path or not isinstance(path, str):
            raise InvalidChange("Each change requires a path")
        if operation not in OPERATIONS:
            raise InvalidChange(
                f"Invalid operation {operation!r} on {path}. Expected one of: {', '.join(OPERATIONS)}"
            )

        source_path = data.get("sourcePath")
        if operation != "delete" and not source_path:
            raise InvalidChange(f"sourcePath required for {operation} operation on {path}")
        if source_path is not None and not isinstance(source_path, str):
            raise InvalidChange(f"sourcePath must be a string path on {path}, got: {source_path!r}")
        return cls(path=path, operation=operation, source_path=source_path)


def _parse_timestamp(name: str, value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        raise InvalidParams(f"{name} must be an ISO 8601 timestamp, got: {value}")


def _git_author_summary(git_author) -> Optional[Dict[str, Any]]:
    if git_author is None:
        return None
    return {
        "name": git_author.name,
        "email": git_author.email,
        "date": git_author.date.isoformat() if git_author.date else None,
    }


class CommitOperator:
    """提交相关的工具操作"""

    def __init__(self, session: AccountSession, observer: Optional[CommitObserver] = None):
        self.session = session
        self.observer = observer

    def _open(self, owner: Optional[str]):
        effective_owner = self.session.resolve_owner(owner)
        client = self.session.client_for(owner)
        return effective_owner, client

    def _read_head(self, repository, branch: str, action: str) -> str:
        try:
            ref = repository.get_git_ref(f"heads/{branch}")
        except UnknownObjectException as e:
            raise RefNotFound(f"Failed to {action}: branch '{branch}' not found", status=404) from e
        return ref.object.sha

    def _advance_branch(self, repository, branch: str, expected_sha: str, new_sha: str) -> None:
        """只有当分支仍然指向 expected_sha 时才更新到 new_sha"""
        ref = repository.get_git_ref(f"heads/{branch}")
        if ref.object.sha != expected_sha:
            raise Conflict(
                f"Branch '{branch}' moved from {expected_sha} to {ref.object.sha} "
                f"while commit {new_sha} was being created; the branch was not updated"
            )
        try:
            ref.edit(new_sha, force=False)
        except GithubException as e:
            if e.status == 422:
                raise Conflict(
                    f"Branch '{branch}' was updated concurrently; commit {new_sha} is not a fast-forward",
                    status=422,
                ) from e
            raise

    def _post_commit(self, client, owner: str, repo: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        new_commit = client.post(f"/repos/{owner}/{repo}/git/commits", payload)
        if not isinstance(new_commit, dict) or not new_commit.get("sha"):
            logger.error("Invalid commit response: %r", new_commit)
            raise InternalError("Invalid commit response from GitHub")
        return new_commit

    def _prepare_uploads(self, changes: List[Change]) -> List[Tuple[str, bytes]]:
        uploads = []
        for change in changes:
            if change.operation == "delete":
                # 删除通过"不出现在新tree中"表达，但base_tree仍然保留该路径
                logger.warning(
                    "Delete of %s has no effect on the resulting tree (base tree entries are kept)",
                    change.path,
                )
                continue
            uploads.append((change.path, read_source(change.source_path)))
        return uploads

    def _notify(self, repository, repo: str, commit_sha: str) -> Optional[str]:
        """确认提交可读取后通知观察者；失败只返回警告"""
        try:
            repository.get_git_commit(commit_sha)
            if self.observer is not None:
                self.observer.commit_created(repo, commit_sha)
                logger.info("Notified commit observer for commit: %s", commit_sha)
        except Exception as e:  # pylint: disable=broad-exception-caught
            logger.warning("Post-commit notification failed for %s: %s", commit_sha, e)
            return f"Commit successful but post-commit notification failed: {e}"
        return None

    def create_commit(self, repo: str, branch: str, message: str, changes: List[Dict[str, Any]],
                      owner: Optional[str] = None, author: Optional[Dict[str, str]] = None,
                      sign: Optional[bool] = None) -> Dict[str, Any]:
        """用多个文件变更创建一个原子提交"""
        effective_owner, client = self._open(owner)
        if not isinstance(changes, list):
            raise InvalidParams("changes must be an array")
        logger.info("Creating commit: owner=%s repo=%s branch=%s changes=%d",
                    effective_owner, repo, branch, len(changes))

        # 在任何远程写入之前完成所有校验和本地读取
        parsed = [Change.from_dict(item) for item in changes]
        uploads = self._prepare_uploads(parsed)

        with remote_errors("create commit"):
            repository = client.get_repo(effective_owner, repo)
            head_sha = self._read_head(repository, branch, "create commit")
            head_commit = repository.get_git_commit(head_sha)

            entries = []
            for path, content in uploads:
                blob = repository.create_git_blob(base64.b64encode(content).decode("ascii"), "base64")
                entries.append(InputGitTreeElement(path=path, mode=REGULAR_FILE_MODE, type="blob", sha=blob.sha))

            base_tree = repository.get_git_tree(head_commit.tree.sha)
            tree = repository.create_git_tree(entries, base_tree)

            payload: Dict[str, Any] = {
                "message": message,
                "tree": tree.sha,
                "parents": [head_sha],
            }
            if author:
                payload["author"] = author
            if sign:
                payload["sign"] = True

            new_commit = self._post_commit(client, effective_owner, repo, payload)
            self._advance_branch(repository, branch, head_sha, new_commit["sha"])
            logger.info("Branch %s advanced to %s", branch, new_commit["sha"])

        warning = self._notify(repository, repo, new_commit["sha"])
        if warning:
            return {"commit": new_commit, "warning": warning}
        return new_commit

    def list_commits(self, repo: str, owner: Optional[str] = None, branch: Optional[str] = None,
                     author: Optional[str] = None, since: Optional[str] = None,
                     until: Optional[str] = None, path: Optional[str] = None) -> List[Dict[str, Any]]:
        """列出提交（第一页）"""
        effective_owner, client = self._open(owner)
        logger.info("Listing commits: owner=%s repo=%s branch=%s", effective_owner, repo, branch)

        kwargs: Dict[str, Any] = {}
        if branch:
            kwargs["sha"] = branch
        if author:
            kwargs["author"] = author
        if path:
            kwargs["path"] = path
        since_dt = _parse_timestamp("since", since)
        until_dt = _parse_timestamp("until", until)
        if since_dt:
            kwargs["since"] = since_dt
        if until_dt:
            kwargs["until"] = until_dt

        with remote_errors("list commits"):
            repository = client.get_repo(effective_owner, repo)
            commits = repository.get_commits(**kwargs).get_page(0)
            return [
                {
                    "sha": commit.sha,
                    "message": commit.commit.message,
                    "author": _git_author_summary(commit.commit.author),
                    "committer": _git_author_summary(commit.commit.committer),
                    "html_url": commit.html_url,
                }
                for commit in commits
            ]

    def get_commit(self, repo: str, commit_sha: str, owner: Optional[str] = None) -> Dict[str, Any]:
        """获取提交详情和变更的文件列表"""
        effective_owner, client = self._open(owner)
        logger.info("Getting commit: owner=%s repo=%s sha=%s", effective_owner, repo, commit_sha)

        with remote_errors("get commit"):
            repository = client.get_repo(effective_owner, repo)
            # 两个只读请求互不依赖，并行获取；每个线程各用一个 Requester
            files_repository = client.isolated_repo(effective_owner, repo)
            with ThreadPoolExecutor(max_workers=2) as pool:
                git_commit_future = pool.submit(repository.get_git_commit, commit_sha)
                commit_future = pool.submit(files_repository.get_commit, commit_sha)
                git_commit = git_commit_future.result()
                commit = commit_future.result()

            return {
                "commit": git_commit.raw_data,
                "files": [f.raw_data for f in commit.files],
            }

    def revert_commit(self, repo: str, commit_sha: str, message: str,
                      owner: Optional[str] = None, branch: str = "main") -> Dict[str, Any]:
        """在分支head之上创建一个提交，其tree为被撤销提交的父提交的tree"""
        effective_owner, client = self._open(owner)
        logger.info("Reverting commit: owner=%s repo=%s sha=%s branch=%s",
                    effective_owner, repo, commit_sha, branch)

        with remote_errors("revert commit"):
            repository = client.get_repo(effective_owner, repo)
            to_revert = repository.get_git_commit(commit_sha)
            if not to_revert.parents:
                raise InvalidParams(f"Commit {commit_sha} has no parent to revert to")
            parent = repository.get_git_commit(to_revert.parents[0].sha)

            head_sha = self._read_head(repository, branch, "revert commit")
            revert = self._post_commit(client, effective_owner, repo, {
                "message": message,
                "tree": parent.tree.sha,
                "parents": [head_sha],
            })
            self._advance_branch(repository, branch, head_sha, revert["sha"])
            logger.info("Branch %s advanced to %s", branch, revert["sha"])
            return revert
