"""
错误类型 - 所有工具错误都从 GitHubToolError 派生

服务器把这些异常统一渲染成带 isError 标记的文本结果。
"""

from contextlib import contextmanager
from typing import Iterator, Optional

import requests
from github.GithubException import GithubException


class GitHubToolError(Exception):
    """工具调用失败的基类"""

    code = "InternalError"

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status = status


class InvalidParams(GitHubToolError):
    code = "InvalidParams"


class InvalidOwner(InvalidParams):
    code = "InvalidOwner"


class NoOwnerSelected(InvalidParams):
    code = "NoOwnerSelected"


class UnknownOwner(InvalidParams):
    code = "UnknownOwner"


class InvalidChange(InvalidParams):
    code = "InvalidChange"


class InvalidContent(InvalidParams):
    code = "InvalidContent"


class InternalError(GitHubToolError):
    code = "InternalError"


class RefNotFound(InternalError):
    code = "RefNotFound"


class Conflict(GitHubToolError):
    code = "Conflict"


class SourceUnavailable(GitHubToolError):
    code = "SourceUnavailable"


class ConfigError(GitHubToolError):
    code = "ConfigError"


class MethodNotFound(GitHubToolError):
    code = "MethodNotFound"


def github_error_message(e: GithubException) -> str:
    """从 GithubException 中取出上游的错误信息"""
    error_msg = str(e) if str(e) else "Unknown error"
    if isinstance(getattr(e, "data", None), dict):
        error_msg = e.data.get("message", error_msg)
    elif getattr(e, "message", None):
        error_msg = e.message
    return error_msg


def request_error_message(e: requests.RequestException) -> str:
    """从 requests 异常中取出上游的错误信息"""
    response = getattr(e, "response", None)
    if response is not None:
        try:
            payload = response.json()
        except ValueError:
            payload = None
        if isinstance(payload, dict) and payload.get("message"):
            return payload["message"]
    return str(e) or type(e).__name__


@contextmanager
def remote_errors(action: str) -> Iterator[None]:
    """把远程服务和本地写入的失败统一包装成 InternalError

    已经是 GitHubToolError 的异常原样抛出。
    """
    try:
        yield
    except GitHubToolError:
        raise
    except GithubException as e:
        raise InternalError(f"Failed to {action}: {github_error_message(e)}", status=e.status) from e
    except requests.RequestException as e:
        status = e.response.status_code if e.response is not None else None
        raise InternalError(f"Failed to {action}: {request_error_message(e)}", status=status) from e
    except OSError as e:
        raise InternalError(f"Failed to {action}: {e}") from e
