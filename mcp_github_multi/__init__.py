"""
MCP GitHub Multi - 多账号 GitHub MCP服务器

通过stdio上的MCP协议提供GitHub仓库操作工具，运行时可在多个已认证账号之间切换。

特性:
- 👥 多账号：按owner配置多个令牌，运行时用 select_account 切换
- 🌳 多文件提交：直接基于 blob/tree/commit/ref 构造一个原子提交
- 🔒 分支保护：分支在提交构造期间被他人更新时报告冲突而不是覆盖
- 📁 文件管理：读取、推送、删除、比较文件
- 🔄 目录同步：递归拉取目录，推送本地文件
- 📦 仓库管理：创建、克隆、重命名、列出仓库

作者: chre3
版本: 1.0.0
许可证: MIT
"""

__version__ = "1.0.0"
__author__ = "chre3"
__email__ = "chremata3@gmail.com"
__description__ = "多账号GitHub MCP服务器，提供文件、提交和仓库操作"

from .server import MCPGitHubServer

__all__ = ["MCPGitHubServer"]
