"""
多账号管理 - 每个配置的owner对应一个已认证的客户端

AccountRegistry 在启动时创建后不再变化；当前选中的账号保存在
AccountSession 里，由服务器持有并在每次调用时传入使用。
"""

import logging
from typing import Any, Callable, Dict, Iterable, List, Optional

import requests
from github import Auth, Github
from github.Repository import Repository

from .config import Account
from .errors import ConfigError, InvalidOwner, NoOwnerSelected, UnknownOwner

logger = logging.getLogger(__name__)

GITHUB_API_URL = "https://api.github.com"


def normalize_owner(owner: str) -> str:
    """owner统一按不区分大小写比较"""
    return owner.strip().casefold()


class AccountClient:
    """单个账号的GitHub客户端"""

    def __init__(self, account: Account, api_url: str = GITHUB_API_URL):
        self.owner = account.owner
        self.token = account.token
        self.api_url = api_url.rstrip("/")
        self.github = Github(auth=Auth.Token(account.token))

        # git data 接口的原始调用（PyGithub 不透传 sign 等字段）
        self._session = requests.Session()
        self._session.headers.update({
            "Authorization": f"Bearer {account.token}",
            "Accept": "application/vnd.github.v3+json",
        })

    def get_repo(self, owner: str, repo: str) -> Repository:
        return self.github.get_repo(f"{owner}/{repo}")

    def isolated_repo(self, owner: str, repo: str) -> Repository:
        """返回使用独立 Requester 的仓库对象，供其他线程使用

        PyGithub 的 Requester 在连接对象上保存每次请求的状态，不能跨线程共享。
        """
        github = Github(auth=Auth.Token(self.token), base_url=self.api_url)
        return github.get_repo(f"{owner}/{repo}", lazy=True)

    def post(self, path: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        """POST 到 GitHub REST API 并返回解析后的JSON"""
        response = self._session.post(f"{self.api_url}{path}", json=payload)
        response.raise_for_status()
        return response.json()


class AccountRegistry:
    """owner -> 客户端 的不可变映射"""

    def __init__(self, accounts: Iterable[Account],
                 client_factory: Callable[[Account], Any] = AccountClient):
        self._owners: List[str] = []
        self._canonical: Dict[str, str] = {}
        self._clients: Dict[str, Any] = {}

        for account in accounts:
            key = normalize_owner(account.owner)
            if key in self._clients:
                raise ConfigError(f"Duplicate GitHub owner configured: {account.owner}")
            self._clients[key] = client_factory(account)
            self._owners.append(account.owner)
            self._canonical[key] = account.owner
            logger.info("Initialized GitHub account for owner: %s", account.owner)

        if not self._owners:
            raise ConfigError("No GitHub accounts configured")

    def list_accounts(self) -> List[str]:
        return list(self._owners)

    def has_owner(self, owner: str) -> bool:
        return normalize_owner(owner) in self._clients

    def canonical_owner(self, owner: str) -> Optional[str]:
        """返回配置中的owner写法；未配置时返回None"""
        return self._canonical.get(normalize_owner(owner))

    def client_for_owner(self, owner: str):
        client = self._clients.get(normalize_owner(owner))
        if client is None:
            raise UnknownOwner(
                f"No GitHub token configured for owner: {owner}. "
                f"Available owners: {', '.join(self._owners)}"
            )
        return client


class AccountSession:
    """一次会话中的账号选择状态"""

    def __init__(self, registry: AccountRegistry, default_owner: Optional[str] = None):
        self.registry = registry
        self.selected_owner: Optional[str] = None

        if default_owner:
            if registry.has_owner(default_owner):
                self.selected_owner = registry.canonical_owner(default_owner)
                logger.info("Using default owner: %s", self.selected_owner)
            else:
                logger.warning("Default owner %s not found in configured accounts", default_owner)

    def list_accounts(self) -> List[str]:
        return self.registry.list_accounts()

    def select_account(self, owner: str) -> str:
        """选择当前账号；owner不存在时不修改当前选择"""
        canonical = self.registry.canonical_owner(owner) if owner else None
        if canonical is None:
            raise InvalidOwner(
                f"Invalid owner: {owner}. Available owners: {', '.join(self.list_accounts())}"
            )
        self.selected_owner = canonical
        logger.info("Selected account: %s", canonical)
        return canonical

    def resolve_owner(self, owner: Optional[str] = None) -> str:
        effective_owner = owner or self.selected_owner
        if not effective_owner:
            raise NoOwnerSelected(
                "No owner selected. Use list_accounts to see available accounts and "
                "select_account to choose one. "
                f"Available owners: {', '.join(self.list_accounts())}"
            )
        return effective_owner

    def client_for(self, owner: Optional[str] = None):
        return self.registry.client_for_owner(self.resolve_owner(owner))
