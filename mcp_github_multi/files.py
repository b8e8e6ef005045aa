"""
文件和目录操作 - 单文件读写删除、目录拉取/同步、本地与远程比较

所有写入远程的内容都来自本地文件（sourcePath），不接受直接传入的文本内容。
"""

import logging
import os
from typing import Any, Dict, List, Optional

from github.GithubException import UnknownObjectException

from .accounts import AccountSession
from .errors import InvalidContent, InvalidParams, SourceUnavailable, remote_errors

logger = logging.getLogger(__name__)

DEFAULT_BRANCH = "main"


def read_source(source_path: str) -> bytes:
    """读取本地源文件的字节内容"""
    # open() 会把整数当作文件描述符并在读取后关闭它
    if not isinstance(source_path, str):
        raise InvalidParams(f"sourcePath must be a string path, got: {source_path!r}")
    try:
        with open(source_path, "rb") as f:
            return f.read()
    except OSError as e:
        raise SourceUnavailable(f"Cannot read source file {source_path}: {e.strerror or e}") from e


def write_local(output_path: str, content: bytes) -> None:
    parent = os.path.dirname(output_path)
    if parent:
        os.makedirs(parent, exist_ok=True)
    with open(output_path, "wb") as f:
        f.write(content)


def join_repo_path(directory: str, name: str) -> str:
    directory = directory.strip("/")
    return f"{directory}/{name}" if directory else name


def decoded_bytes(content_file, path: str) -> bytes:
    """返回远程文件的原始字节；目录或没有内联内容时报错"""
    if isinstance(content_file, list) or getattr(content_file, "type", "file") != "file":
        raise InvalidContent(f"Invalid file data received: {path} is not a file")
    # 超过1MB的文件 encoding 为 none，没有内联内容
    if content_file.encoding != "base64" or content_file.content is None:
        raise InvalidContent(f"Invalid file data received: {path} has no inline content")
    return content_file.decoded_content


def _commit_info(commit_obj, message: str) -> Dict[str, Any]:
    if not commit_obj:
        return {}
    return {"sha": commit_obj.sha, "url": commit_obj.html_url, "message": message}


def _content_info(content_obj) -> Dict[str, Any]:
    if not content_obj:
        return {}
    return {
        "name": content_obj.name,
        "path": content_obj.path,
        "sha": content_obj.sha,
        "url": content_obj.html_url,
    }


class FileOperator:
    """文件相关的工具操作"""

    def __init__(self, session: AccountSession):
        self.session = session

    def _repository(self, owner: Optional[str], repo: str):
        effective_owner = self.session.resolve_owner(owner)
        client = self.session.client_for(owner)
        return effective_owner, client.get_repo(effective_owner, repo)

    def get_file(self, repo: str, path: str, owner: Optional[str] = None,
                 branch: str = DEFAULT_BRANCH) -> str:
        """读取远程文件并返回解码后的文本"""
        logger.info("Getting file: owner=%s repo=%s path=%s branch=%s", owner, repo, path, branch)
        with remote_errors("get file"):
            _, repository = self._repository(owner, repo)
            content = decoded_bytes(repository.get_contents(path, ref=branch), path)
        return content.decode("utf-8", errors="replace")

    def pull_file(self, repo: str, path: str, output_path: str, owner: Optional[str] = None,
                  branch: str = DEFAULT_BRANCH) -> Dict[str, Any]:
        """把远程文件写入本地路径"""
        logger.info("Pulling file: owner=%s repo=%s path=%s -> %s", owner, repo, path, output_path)
        with remote_errors("pull file"):
            _, repository = self._repository(owner, repo)
            content = decoded_bytes(repository.get_contents(path, ref=branch), path)
            write_local(output_path, content)

        return {
            "success": True,
            "message": f"File pulled successfully to {output_path}",
        }

    def create_or_update_file(self, repo: str, path: str, message: str, source_path: str,
                              owner: Optional[str] = None, branch: str = DEFAULT_BRANCH,
                              sha: Optional[str] = None) -> Dict[str, Any]:
        """用本地文件的内容创建或更新远程文件"""
        content = read_source(source_path)

        with remote_errors("create/update file"):
            effective_owner, repository = self._repository(owner, repo)
            logger.info("Creating/updating file: owner=%s repo=%s path=%s branch=%s",
                        effective_owner, repo, path, branch)

            # 未提供sha时查找现有文件；404表示新建
            if not sha:
                try:
                    existing = repository.get_contents(path, ref=branch)
                except UnknownObjectException:
                    logger.info("File %s does not exist yet, creating new file", path)
                else:
                    if isinstance(existing, list):
                        raise InvalidContent(f"Cannot write file: {path} is a directory")
                    sha = existing.sha
                    logger.info("Found existing file %s, sha: %s", path, sha)

            if sha:
                result = repository.update_file(path, message, content, sha, branch=branch)
                action = "updated"
            else:
                result = repository.create_file(path, message, content, branch=branch)
                action = "created"

        return {
            "success": True,
            "owner": effective_owner,
            "repo": repo,
            "path": path,
            "branch": branch,
            "action": action,
            "commit": _commit_info(result.get("commit"), message),
            "content": _content_info(result.get("content")),
        }

    def push_file(self, repo: str, path: str, message: str, source_path: str,
                  owner: Optional[str] = None, branch: str = DEFAULT_BRANCH) -> Dict[str, Any]:
        """把本地文件推送到仓库"""
        logger.info("Pushing file: owner=%s repo=%s %s -> %s", owner, repo, source_path, path)
        return self.create_or_update_file(repo, path, message, source_path, owner=owner, branch=branch)

    def delete_file(self, repo: str, path: str, message: str, owner: Optional[str] = None,
                    branch: str = DEFAULT_BRANCH) -> Dict[str, Any]:
        """删除远程文件（先查询其sha）"""
        with remote_errors("delete file"):
            effective_owner, repository = self._repository(owner, repo)
            logger.info("Deleting file: owner=%s repo=%s path=%s branch=%s",
                        effective_owner, repo, path, branch)

            existing = repository.get_contents(path, ref=branch)
            if isinstance(existing, list) or not getattr(existing, "sha", None):
                raise InvalidContent(f"Invalid file data received: {path} has no file sha")

            result = repository.delete_file(path, message, existing.sha, branch=branch)

        return {
            "success": True,
            "owner": effective_owner,
            "repo": repo,
            "path": path,
            "branch": branch,
            "commit": _commit_info(result.get("commit"), message),
        }

    def _pull_directory(self, repository, path: str, output_path: str, branch: str,
                        recursive: bool) -> int:
        items = repository.get_contents(path, ref=branch)
        if not isinstance(items, list):
            raise InvalidParams(f"Path is not a directory: {path}")

        os.makedirs(output_path, exist_ok=True)

        processed_files = 0
        for item in items:
            item_path = os.path.join(output_path, item.name)
            if item.type == "file":
                file_content = repository.get_contents(item.path, ref=branch)
                if isinstance(file_content, list) or file_content.content is None:
                    continue
                write_local(item_path, file_content.decoded_content)
                processed_files += 1
            elif item.type == "dir" and recursive:
                processed_files += self._pull_directory(repository, item.path, item_path, branch, recursive)
        return processed_files

    def pull_directory(self, repo: str, path: str, output_path: str, owner: Optional[str] = None,
                       branch: str = DEFAULT_BRANCH, recursive: bool = True) -> Dict[str, Any]:
        """把远程目录（深度优先）镜像到本地"""
        logger.info("Pulling directory: owner=%s repo=%s path=%s -> %s recursive=%s",
                    owner, repo, path, output_path, recursive)
        with remote_errors("pull directory"):
            _, repository = self._repository(owner, repo)
            processed_files = self._pull_directory(repository, path, output_path, branch, recursive)

        return {
            "success": True,
            "message": f"Directory pulled successfully to {output_path}",
            "processedFiles": processed_files,
        }

    def sync_directory(self, repo: str, path: str, local_path: str, owner: Optional[str] = None,
                       branch: str = DEFAULT_BRANCH) -> Dict[str, Any]:
        """先拉取远程目录，再逐个推送本地顶层文件

        不是原子操作：第N个文件失败时前面的文件已经推送，后面的不再尝试。
        """
        logger.info("Syncing directory: owner=%s repo=%s path=%s <-> %s", owner, repo, path, local_path)
        self.pull_directory(repo, path, local_path, owner=owner, branch=branch)

        with remote_errors("sync directory"):
            names: List[str] = sorted(
                name for name in os.listdir(local_path)
                if os.path.isfile(os.path.join(local_path, name))
            )

        pushed: List[str] = []
        for name in names:
            self.push_file(
                repo,
                join_repo_path(path, name),
                f"Sync: Update {name}",
                os.path.join(local_path, name),
                owner=owner,
                branch=branch,
            )
            pushed.append(name)

        return {
            "success": True,
            "message": "Directory synced successfully",
            "processedFiles": len(pushed),
            "files": pushed,
        }

    def compare_files(self, repo: str, path: str, local_path: str, owner: Optional[str] = None,
                      branch: str = DEFAULT_BRANCH) -> Dict[str, Any]:
        """按字节比较本地文件和远程文件"""
        logger.info("Comparing files: owner=%s repo=%s path=%s local=%s", owner, repo, path, local_path)
        with remote_errors("compare files"):
            _, repository = self._repository(owner, repo)
            remote_file = repository.get_contents(path, ref=branch)
            remote_content = decoded_bytes(remote_file, path)
            local_content = read_source(local_path)

        if local_content == remote_content:
            return {"isDifferent": False, "message": "Files are identical"}

        return {
            "isDifferent": True,
            "message": "Files are different",
            "details": {
                "localSize": len(local_content),
                "remoteSize": len(remote_content),
                "remoteSha": remote_file.sha,
            },
        }
