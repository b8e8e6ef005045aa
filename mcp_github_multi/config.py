"""
配置加载 - 从环境变量读取账号和服务器选项

账号以成对的环境变量提供:
    GITHUB_TOKEN_<id>=ghp_xxx
    GITHUB_OWNER_<id>=alice
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional, Tuple

from .errors import ConfigError

TOKEN_PREFIX = "GITHUB_TOKEN_"
OWNER_PREFIX = "GITHUB_OWNER_"


@dataclass(frozen=True)
class Account:
    """一个已配置的GitHub账号"""

    owner: str
    token: str = field(repr=False)


@dataclass(frozen=True)
class ServerConfig:
    """服务器启动配置"""

    accounts: Tuple[Account, ...]
    default_owner: Optional[str] = None
    projects_path: Optional[Path] = None
    log_level: str = "INFO"


def _account_sort_key(account_id: str):
    # 数字id按数值排序，其余按字符串排序
    if account_id.isdigit():
        return (0, int(account_id), "")
    return (1, 0, account_id)


def parse_accounts(environ: Mapping[str, str]) -> Tuple[Account, ...]:
    """解析 GITHUB_TOKEN_<id> / GITHUB_OWNER_<id> 环境变量对

    Raises:
        ConfigError: 没有任何账号，或者owner重复（不区分大小写）
    """
    ids = [key[len(TOKEN_PREFIX):] for key in environ if key.startswith(TOKEN_PREFIX)]

    accounts = []
    seen = {}
    for account_id in sorted(ids, key=_account_sort_key):
        token = environ.get(f"{TOKEN_PREFIX}{account_id}", "").strip()
        owner = environ.get(f"{OWNER_PREFIX}{account_id}", "").strip()
        if not token or not owner:
            continue

        key = owner.casefold()
        if key in seen:
            raise ConfigError(
                f"Duplicate GitHub owner configured: {owner} (already configured as {seen[key]})"
            )
        seen[key] = owner
        accounts.append(Account(owner=owner, token=token))

    if not accounts:
        raise ConfigError(
            "No GitHub accounts configured. Set GITHUB_TOKEN_<id> and GITHUB_OWNER_<id> environment variables."
        )
    return tuple(accounts)


def load_config_from_env(environ: Optional[Mapping[str, str]] = None) -> ServerConfig:
    """从环境变量加载配置"""
    if environ is None:
        environ = os.environ

    projects_path_raw = environ.get("GITHUB_MCP_PROJECTS_PATH")
    default_owner = environ.get("DEFAULT_OWNER") or None

    return ServerConfig(
        accounts=parse_accounts(environ),
        default_owner=default_owner.strip() if default_owner else None,
        projects_path=Path(projects_path_raw).expanduser() if projects_path_raw else None,
        log_level=environ.get("GITHUB_MCP_LOG_LEVEL", "INFO").upper(),
    )
