"""
工具定义 - tools/list 返回的名称、描述和输入参数schema
"""

from typing import Any, Dict, List

OWNER = {
    "type": "string",
    "description": "仓库所有者（可选，已通过select_account选择账号时可省略）"
}
REPO = {
    "type": "string",
    "description": "仓库名称"
}
BRANCH = {
    "type": "string",
    "description": "分支名称（可选，默认为main）"
}


def _tool(name: str, description: str, properties: Dict[str, Any], required: List[str]) -> Dict[str, Any]:
    return {
        "name": name,
        "description": description,
        "inputSchema": {
            "type": "object",
            "properties": properties,
            "required": required
        }
    }


TOOLS: List[Dict[str, Any]] = [
    # 账号管理
    _tool(
        "list_accounts",
        "列出所有已配置的GitHub账号（owner）。",
        {},
        []
    ),
    _tool(
        "select_account",
        "选择后续调用默认使用的GitHub账号。之后省略owner参数的调用都使用该账号。",
        {"owner": {"type": "string", "description": "要选择的账号owner（不区分大小写）"}},
        ["owner"]
    ),

    # 仓库管理
    _tool(
        "create_repository",
        "为当前账号创建新仓库，自动初始化并写入默认README。",
        {
            "owner": OWNER,
            "name": {"type": "string", "description": "仓库名称"},
            "description": {"type": "string", "description": "仓库描述"},
            "private": {"type": "boolean", "description": "是否为私有仓库（默认true）"}
        },
        ["name", "description"]
    ),
    _tool(
        "clone_repository",
        "使用当前账号的凭据把仓库克隆到本地目录。",
        {
            "owner": OWNER,
            "repo": REPO,
            "branch": BRANCH,
            "outputDir": {"type": "string", "description": "本地目标目录"}
        },
        ["repo", "outputDir"]
    ),
    _tool(
        "rename_repository",
        "重命名仓库。",
        {
            "owner": OWNER,
            "repo": {"type": "string", "description": "当前仓库名称"},
            "new_name": {"type": "string", "description": "新的仓库名称"}
        },
        ["repo", "new_name"]
    ),
    _tool(
        "list_repositories",
        "列出当前账号可访问的仓库。",
        {
            "owner": OWNER,
            "type": {
                "type": "string",
                "enum": ["all", "owner", "public", "private", "member"],
                "description": "仓库类型（默认all）"
            },
            "sort": {
                "type": "string",
                "enum": ["created", "updated", "pushed", "full_name"],
                "description": "排序字段（默认updated）"
            },
            "direction": {
                "type": "string",
                "enum": ["asc", "desc"],
                "description": "排序方向（默认desc）"
            }
        },
        []
    ),

    # 文件操作
    _tool(
        "pull_file",
        "把仓库中的文件下载到本地路径。",
        {
            "owner": OWNER,
            "repo": REPO,
            "path": {"type": "string", "description": "仓库中的文件路径"},
            "outputPath": {"type": "string", "description": "保存文件的本地路径"},
            "branch": BRANCH
        },
        ["repo", "path", "outputPath"]
    ),
    _tool(
        "pull_directory",
        "把仓库中的整个目录下载到本地。",
        {
            "owner": OWNER,
            "repo": REPO,
            "path": {"type": "string", "description": "仓库中的目录路径"},
            "outputPath": {"type": "string", "description": "保存目录的本地路径"},
            "branch": BRANCH,
            "recursive": {"type": "boolean", "description": "是否递归拉取子目录（默认true）"}
        },
        ["repo", "path", "outputPath"]
    ),
    _tool(
        "sync_directory",
        "双向同步：先拉取远程目录，再逐个推送本地顶层文件（每个文件一次提交，非原子）。",
        {
            "owner": OWNER,
            "repo": REPO,
            "path": {"type": "string", "description": "仓库中的目录路径"},
            "localPath": {"type": "string", "description": "本地目录路径"},
            "branch": BRANCH
        },
        ["repo", "path", "localPath"]
    ),
    _tool(
        "compare_files",
        "按字节比较本地文件和远程文件。",
        {
            "owner": OWNER,
            "repo": REPO,
            "path": {"type": "string", "description": "仓库中的文件路径"},
            "localPath": {"type": "string", "description": "本地文件路径"},
            "branch": BRANCH
        },
        ["repo", "path", "localPath"]
    ),
    _tool(
        "push_file",
        "把本地已有的文件推送到仓库。",
        {
            "owner": OWNER,
            "repo": REPO,
            "path": {"type": "string", "description": "仓库中的目标路径"},
            "message": {"type": "string", "description": "提交消息"},
            "sourcePath": {"type": "string", "description": "要推送的本地文件路径"},
            "branch": BRANCH
        },
        ["repo", "path", "message", "sourcePath"]
    ),
    _tool(
        "create_or_update_file",
        "用本地文件的内容创建或更新仓库文件。不接受直接传入的content。",
        {
            "owner": OWNER,
            "repo": REPO,
            "path": {"type": "string", "description": "仓库中的文件路径"},
            "message": {"type": "string", "description": "提交消息"},
            "sourcePath": {"type": "string", "description": "读取内容的本地文件路径"},
            "branch": BRANCH,
            "sha": {"type": "string", "description": "文件的blob SHA（可选，未提供时自动查询）"}
        },
        ["repo", "path", "message", "sourcePath"]
    ),
    _tool(
        "get_file",
        "读取仓库文件的文本内容。",
        {
            "owner": OWNER,
            "repo": REPO,
            "path": {"type": "string", "description": "仓库中的文件路径"},
            "branch": BRANCH
        },
        ["repo", "path"]
    ),
    _tool(
        "delete_file",
        "删除仓库中的文件。",
        {
            "owner": OWNER,
            "repo": REPO,
            "path": {"type": "string", "description": "要删除的文件路径"},
            "message": {"type": "string", "description": "提交消息"},
            "branch": BRANCH
        },
        ["repo", "path", "message"]
    ),

    # 提交操作
    _tool(
        "create_commit",
        "用多个文件变更创建一个提交（blob/tree/commit），并在分支未被他人更新时推进分支。",
        {
            "owner": OWNER,
            "repo": REPO,
            "branch": {"type": "string", "description": "分支名称"},
            "message": {"type": "string", "description": "提交消息"},
            "changes": {
                "type": "array",
                "items": {
                    "type": "object",
                    "properties": {
                        "path": {"type": "string", "description": "仓库中的文件路径"},
                        "sourcePath": {
                            "type": "string",
                            "description": "读取内容的本地文件路径（add/modify时必需）"
                        },
                        "operation": {
                            "type": "string",
                            "enum": ["add", "modify", "delete"],
                            "description": "变更类型"
                        }
                    },
                    "required": ["path", "operation"]
                }
            },
            "author": {
                "type": "object",
                "properties": {
                    "name": {"type": "string", "description": "作者名称"},
                    "email": {"type": "string", "description": "作者邮箱"}
                }
            },
            "sign": {"type": "boolean", "description": "是否签名提交"}
        },
        ["repo", "branch", "message", "changes"]
    ),
    _tool(
        "list_commits",
        "列出仓库的提交。",
        {
            "owner": OWNER,
            "repo": REPO,
            "branch": {"type": "string", "description": "分支名称或SHA"},
            "author": {"type": "string", "description": "按作者过滤"},
            "since": {"type": "string", "description": "ISO 8601 时间，只返回此后的提交"},
            "until": {"type": "string", "description": "ISO 8601 时间，只返回此前的提交"},
            "path": {"type": "string", "description": "只返回包含该文件路径的提交"}
        },
        ["repo"]
    ),
    _tool(
        "get_commit",
        "获取提交详情及其变更的文件。",
        {
            "owner": OWNER,
            "repo": REPO,
            "commit_sha": {"type": "string", "description": "提交SHA"}
        },
        ["repo", "commit_sha"]
    ),
    _tool(
        "revert_commit",
        "撤销指定提交：在分支head上创建一个使用其父提交tree的新提交。",
        {
            "owner": OWNER,
            "repo": REPO,
            "commit_sha": {"type": "string", "description": "要撤销的提交SHA"},
            "message": {"type": "string", "description": "撤销提交的消息"},
            "branch": BRANCH
        },
        ["repo", "commit_sha", "message"]
    ),

    # 帮助
    _tool(
        "get_help",
        "获取服务器帮助信息和使用指南。",
        {},
        []
    ),
]

TOOLS_BY_NAME: Dict[str, Dict[str, Any]] = {tool["name"]: tool for tool in TOOLS}
