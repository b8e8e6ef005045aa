#!/usr/bin/env python3
"""
MCP GitHub 多账号服务器 - 通过stdio上的JSON-RPC提供GitHub仓库操作工具
支持多个账号、文件读写、多文件提交、目录同步和仓库管理
"""

import json
import logging
import sys
from datetime import datetime
from typing import Any, Dict, Optional, TextIO

from . import __version__
from .accounts import AccountClient, AccountRegistry, AccountSession
from .commits import CommitOperator
from .config import ServerConfig, load_config_from_env
from .errors import ConfigError, GitHubToolError, InvalidParams, MethodNotFound
from .files import DEFAULT_BRANCH, FileOperator
from .projects import ProjectStore
from .repositories import RepositoryOperator
from .tools import TOOLS, TOOLS_BY_NAME

logger = logging.getLogger(__name__)

PROTOCOL_VERSION = "2024-11-05"


def create_response(data: Any, is_error: bool = False) -> Dict[str, Any]:
    """构造工具调用结果；字符串原样返回，其余序列化为JSON"""
    text = data if isinstance(data, str) else json.dumps(data, ensure_ascii=False, indent=2, default=str)
    return {
        "content": [
            {
                "type": "text",
                "text": text
            }
        ],
        "isError": is_error
    }


def error_response(error: GitHubToolError) -> Dict[str, Any]:
    payload = {
        "success": False,
        "error": error.message,
        "error_type": error.code
    }
    if error.status is not None:
        payload["status"] = error.status
    return create_response(payload, is_error=True)


def validate_required(name: str, arguments: Dict[str, Any]) -> None:
    schema = TOOLS_BY_NAME[name]["inputSchema"]
    for field in schema["required"]:
        if arguments.get(field) in (None, ""):
            raise InvalidParams(f"Missing required field: {field}")
    # 路径参数如果是整数，open()/listdir() 会把它当成文件描述符
    for field, prop in schema["properties"].items():
        value = arguments.get(field)
        if prop.get("type") == "string" and value is not None and not isinstance(value, str):
            raise InvalidParams(f"Field {field} must be a string, got: {value!r}")


class MCPGitHubServer:
    """GitHub 多账号 MCP服务器"""

    def __init__(self, config: Optional[ServerConfig] = None, client_factory=AccountClient):
        self.config = config or load_config_from_env()
        self.registry = AccountRegistry(self.config.accounts, client_factory)
        self.session = AccountSession(self.registry, self.config.default_owner)

        self.projects: Optional[ProjectStore] = None
        if self.config.projects_path:
            self.projects = ProjectStore(self.config.projects_path)
            self.projects.load()

        self.files = FileOperator(self.session)
        self.commits = CommitOperator(self.session, observer=self.projects)
        self.repositories = RepositoryOperator(self.session, self.files)

        logger.info("MCP GitHub multi-account server v%s initialized", __version__)
        logger.info("Accounts: %s", ", ".join(self.registry.list_accounts()))
        logger.info("Selected owner: %s", self.session.selected_owner or "none")

    def handle_initialize(self, params: Dict[str, Any]) -> Dict[str, Any]:
        """处理MCP初始化请求"""
        return {
            "protocolVersion": PROTOCOL_VERSION,
            "capabilities": {
                "tools": {
                    "listChanged": False
                }
            },
            "serverInfo": {
                "name": "github-multi",
                "version": __version__,
                "description": "多账号GitHub MCP服务器，提供文件、提交和仓库操作"
            }
        }

    def handle_tools_list(self) -> Dict[str, Any]:
        """处理工具列表请求"""
        return {"tools": TOOLS}

    def handle_tools_call(self, name: str, arguments: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        """处理工具调用请求；所有错误都转换为带 isError 的结果"""
        if not isinstance(arguments, dict):
            arguments = {}
        logger.info("Tool called: %s", name)

        try:
            if name not in TOOLS_BY_NAME:
                raise MethodNotFound(f"Unknown tool: {name}")
            if name == "create_or_update_file" and "content" in arguments:
                raise InvalidParams(
                    "Direct content upload is not allowed. Use push_file with sourcePath instead."
                )
            validate_required(name, arguments)
            return create_response(self._dispatch(name, arguments))
        except GitHubToolError as e:
            logger.error("Tool %s failed: %s", name, e.message)
            return error_response(e)
        except Exception as e:  # pylint: disable=broad-exception-caught
            logger.exception("Unexpected error in tool %s", name)
            return create_response({
                "success": False,
                "error": str(e) or f"Unknown error: {type(e).__name__}",
                "error_type": type(e).__name__
            }, is_error=True)

    def _dispatch(self, name: str, arguments: Dict[str, Any]) -> Any:
        owner = arguments.get("owner")
        branch = arguments.get("branch") or DEFAULT_BRANCH

        if name == "list_accounts":
            return {
                "accounts": self.session.list_accounts(),
                "selected": self.session.selected_owner
            }
        elif name == "select_account":
            selected = self.session.select_account(arguments.get("owner"))
            return {"success": True, "message": f"Selected account: {selected}", "selected": selected}
        elif name == "create_repository":
            return self.repositories.create_repository(
                arguments.get("name"),
                arguments.get("description"),
                owner=owner,
                private=arguments.get("private", True)
            )
        elif name == "clone_repository":
            return self.repositories.clone_repository(
                arguments.get("repo"),
                arguments.get("outputDir"),
                owner=owner,
                branch=branch
            )
        elif name == "rename_repository":
            return self.repositories.rename_repository(
                arguments.get("repo"),
                arguments.get("new_name"),
                owner=owner
            )
        elif name == "list_repositories":
            return self.repositories.list_repositories(
                owner=owner,
                repo_type=arguments.get("type", "all"),
                sort=arguments.get("sort", "updated"),
                direction=arguments.get("direction", "desc")
            )
        elif name == "pull_file":
            return self.files.pull_file(
                arguments.get("repo"),
                arguments.get("path"),
                arguments.get("outputPath"),
                owner=owner,
                branch=branch
            )
        elif name == "pull_directory":
            return self.files.pull_directory(
                arguments.get("repo"),
                arguments.get("path"),
                arguments.get("outputPath"),
                owner=owner,
                branch=branch,
                recursive=arguments.get("recursive", True)
            )
        elif name == "sync_directory":
            return self.files.sync_directory(
                arguments.get("repo"),
                arguments.get("path"),
                arguments.get("localPath"),
                owner=owner,
                branch=branch
            )
        elif name == "compare_files":
            return self.files.compare_files(
                arguments.get("repo"),
                arguments.get("path"),
                arguments.get("localPath"),
                owner=owner,
                branch=branch
            )
        elif name == "push_file":
            return self.files.push_file(
                arguments.get("repo"),
                arguments.get("path"),
                arguments.get("message"),
                arguments.get("sourcePath"),
                owner=owner,
                branch=branch
            )
        elif name == "create_or_update_file":
            return self.files.create_or_update_file(
                arguments.get("repo"),
                arguments.get("path"),
                arguments.get("message"),
                arguments.get("sourcePath"),
                owner=owner,
                branch=branch,
                sha=arguments.get("sha")
            )
        elif name == "get_file":
            return self.files.get_file(
                arguments.get("repo"),
                arguments.get("path"),
                owner=owner,
                branch=branch
            )
        elif name == "delete_file":
            return self.files.delete_file(
                arguments.get("repo"),
                arguments.get("path"),
                arguments.get("message"),
                owner=owner,
                branch=branch
            )
        elif name == "create_commit":
            return self.commits.create_commit(
                arguments.get("repo"),
                arguments.get("branch"),
                arguments.get("message"),
                arguments.get("changes"),
                owner=owner,
                author=arguments.get("author"),
                sign=arguments.get("sign")
            )
        elif name == "list_commits":
            return self.commits.list_commits(
                arguments.get("repo"),
                owner=owner,
                branch=arguments.get("branch"),
                author=arguments.get("author"),
                since=arguments.get("since"),
                until=arguments.get("until"),
                path=arguments.get("path")
            )
        elif name == "get_commit":
            return self.commits.get_commit(
                arguments.get("repo"),
                arguments.get("commit_sha"),
                owner=owner
            )
        elif name == "revert_commit":
            return self.commits.revert_commit(
                arguments.get("repo"),
                arguments.get("commit_sha"),
                arguments.get("message"),
                owner=owner,
                branch=branch
            )
        elif name == "get_help":
            return self.get_help()
        raise MethodNotFound(f"Unknown tool: {name}")

    def get_help(self) -> Dict[str, Any]:
        """获取帮助信息"""
        return {
            "success": True,
            "message": "GitHub 多账号 MCP服务器帮助",
            "data": {
                "server": "MCP GitHub multi-account",
                "version": __version__,
                "total_functions": len(TOOLS),
                "tools": [{"name": t["name"], "description": t["description"]} for t in TOOLS],
                "accounts": self.session.list_accounts(),
                "selected_owner": self.session.selected_owner,
                "environment_variables": {
                    "GITHUB_TOKEN_<id>": "账号的访问令牌（至少一个）",
                    "GITHUB_OWNER_<id>": "与同一id的令牌对应的owner",
                    "DEFAULT_OWNER": "启动时默认选择的owner（可选）",
                    "GITHUB_MCP_PROJECTS_PATH": "提交后需要更新的项目记录JSON文件（可选）",
                    "GITHUB_MCP_LOG_LEVEL": "日志级别（默认INFO）"
                },
                "usage_tips": [
                    "使用 list_accounts 查看已配置的账号",
                    "使用 select_account 选择账号，之后可以省略owner参数",
                    "使用 create_commit 一次提交多个本地文件",
                    "使用 pull_directory / sync_directory 在本地和远程之间同步目录",
                    "写入操作只接受本地文件路径（sourcePath），不接受直接传入的内容"
                ]
            },
            "timestamp": datetime.now().isoformat()
        }

    def handle_request(self, request: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """处理一条JSON-RPC请求；通知（没有id）不返回响应"""
        method = request.get("method")
        params = request.get("params") or {}
        request_id = request.get("id")
        is_notification = "id" not in request

        if method == "initialize":
            result = self.handle_initialize(params)
        elif method == "tools/list":
            result = self.handle_tools_list()
        elif method == "tools/call":
            result = self.handle_tools_call(params.get("name"), params.get("arguments", {}))
        elif method == "ping":
            result = {}
        elif is_notification:
            return None
        else:
            return {
                "jsonrpc": "2.0",
                "id": request_id,
                "error": {"code": -32601, "message": f"Unknown method: {method}"}
            }

        if is_notification:
            return None
        return {
            "jsonrpc": "2.0",
            "id": request_id,
            "result": result
        }

    def serve(self, stdin: TextIO = sys.stdin, stdout: TextIO = sys.stdout) -> None:
        """逐行读取stdin上的请求，把响应写到stdout"""
        for line in stdin:
            line = line.strip()
            if not line:
                continue

            request: Dict[str, Any] = {}
            try:
                request = json.loads(line)
                response = self.handle_request(request)
            except json.JSONDecodeError:
                logger.warning("Ignoring malformed request line")
                continue
            except Exception as e:  # pylint: disable=broad-exception-caught
                logger.exception("Request failed")
                response = {
                    "jsonrpc": "2.0",
                    "id": request.get("id") if isinstance(request, dict) else None,
                    "error": {"code": -32603, "message": str(e)}
                }

            if response is not None:
                stdout.write(json.dumps(response, ensure_ascii=False) + "\n")
                stdout.flush()


def configure_logging(level: str = "INFO") -> None:
    # stdout 用于协议输出，日志只写stderr
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stderr)],
    )


def main():
    """主函数 - MCP协议服务器"""
    try:
        config = load_config_from_env()
    except ConfigError as e:
        configure_logging()
        logger.error("Startup configuration error: %s", e.message)
        sys.exit(1)

    configure_logging(config.log_level)
    server = MCPGitHubServer(config)

    try:
        server.serve()
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
