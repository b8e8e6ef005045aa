"""测试用的内存GitHub仓库和账号客户端"""

import base64
import hashlib
from datetime import datetime, timezone
from types import SimpleNamespace

import pytest
from github.GithubException import GithubException, UnknownObjectException

from mcp_github_multi.accounts import AccountRegistry, AccountSession
from mcp_github_multi.config import Account


def fake_sha(*parts) -> str:
    return hashlib.sha1(repr(parts).encode("utf-8")).hexdigest()


def not_found() -> UnknownObjectException:
    return UnknownObjectException(404, {"message": "Not Found"}, None)


def server_error(message: str = "Server Error", status: int = 500) -> GithubException:
    return GithubException(status, {"message": message}, None)


def content_file(path: str, data: bytes) -> SimpleNamespace:
    return SimpleNamespace(
        type="file",
        name=path.rsplit("/", 1)[-1],
        path=path,
        sha=fake_sha("blob", data),
        encoding="base64",
        content=base64.b64encode(data).decode("ascii"),
        decoded_content=data,
        html_url=f"https://github.com/x/y/blob/main/{path}",
    )


class FakeRef:
    def __init__(self, repository, name):
        self._repository = repository
        self._name = name
        self.object = SimpleNamespace(sha=repository.heads[name])

    def edit(self, sha, force=False):
        self._repository.ref_updates.append((self._name, sha, force))
        if self._repository.reject_ref_update:
            raise GithubException(422, {"message": "Update is not a fast forward"}, None)
        self._repository.heads[self._name] = sha


class FakeRepository:
    """足够模拟 git data 和 contents 接口的内存仓库"""

    def __init__(self, owner="alice", name="demo"):
        self.owner = owner
        self.name = name
        self.description = "demo repository"
        self.private = True
        self.default_branch = "main"
        self.updated_at = datetime(2024, 1, 1, tzinfo=timezone.utc)

        self.heads = {}
        self.commits = {}
        self.trees = {}
        self.blobs = {}
        self.files = {}

        self.writes = []
        self.ref_updates = []
        self.reject_ref_update = False
        self.ref_read_hook = None
        self.failures = {}
        self.commit_list = []
        self.commit_queries = []

    @property
    def full_name(self):
        return f"{self.owner}/{self.name}"

    @property
    def html_url(self):
        return f"https://github.com/{self.full_name}"

    @property
    def raw_data(self):
        return {"name": self.name, "full_name": self.full_name, "private": self.private}

    def _maybe_fail(self, method, path=None):
        error = self.failures.get((method, path))
        if error is not None:
            raise error

    # --- git data ---

    def store_tree(self, entries):
        sha = fake_sha("tree", sorted(entries.items()))
        self.trees[sha] = dict(entries)
        return sha

    def seed_commit(self, entries, parents=(), message="initial", branch="main"):
        tree_sha = self.store_tree(entries)
        sha = fake_sha("commit", message, tree_sha, tuple(parents))
        self.commits[sha] = {"tree": tree_sha, "parents": list(parents), "message": message}
        if branch:
            self.heads[branch] = sha
        return sha

    def tree_of(self, commit_sha):
        return self.trees[self.commits[commit_sha]["tree"]]

    def get_git_ref(self, ref):
        name = ref[len("heads/"):]
        if self.ref_read_hook is not None:
            self.ref_read_hook(self)
        if name not in self.heads:
            raise not_found()
        return FakeRef(self, name)

    def get_git_commit(self, sha):
        if sha not in self.commits:
            raise not_found()
        data = self.commits[sha]
        return SimpleNamespace(
            sha=sha,
            tree=SimpleNamespace(sha=data["tree"]),
            parents=[SimpleNamespace(sha=p) for p in data["parents"]],
            message=data["message"],
            raw_data={
                "sha": sha,
                "message": data["message"],
                "tree": {"sha": data["tree"]},
                "parents": [{"sha": p} for p in data["parents"]],
            },
        )

    def create_git_blob(self, content, encoding):
        self._maybe_fail("create_git_blob")
        data = base64.b64decode(content) if encoding == "base64" else content.encode("utf-8")
        sha = fake_sha("blob", data)
        self.blobs[sha] = data
        self.writes.append(("blob", sha))
        return SimpleNamespace(sha=sha)

    def get_git_tree(self, sha):
        if sha not in self.trees:
            raise not_found()
        return SimpleNamespace(sha=sha)

    def create_git_tree(self, tree, base_tree=None):
        entries = dict(self.trees[base_tree.sha]) if base_tree is not None else {}
        for element in tree:
            identity = element._identity
            entries[identity["path"]] = identity["sha"]
        sha = self.store_tree(entries)
        self.writes.append(("tree", sha))
        return SimpleNamespace(sha=sha)

    def create_commit_from_payload(self, payload):
        assert payload["tree"] in self.trees
        for parent in payload["parents"]:
            assert parent in self.commits
        sha = fake_sha("commit", payload["message"], payload["tree"], tuple(payload["parents"]))
        self.commits[sha] = {
            "tree": payload["tree"],
            "parents": list(payload["parents"]),
            "message": payload["message"],
        }
        self.writes.append(("commit", sha))
        return {
            "sha": sha,
            "message": payload["message"],
            "tree": {"sha": payload["tree"]},
            "parents": [{"sha": p} for p in payload["parents"]],
        }

    def get_commits(self, **kwargs):
        self.commit_queries.append(kwargs)
        return SimpleNamespace(get_page=lambda page: list(self.commit_list))

    def get_commit(self, sha):
        if sha not in self.commits:
            raise not_found()
        return SimpleNamespace(
            sha=sha,
            files=[SimpleNamespace(raw_data={"filename": path}) for path in sorted(self.tree_of(sha))],
        )

    # --- contents ---

    def get_contents(self, path, ref=None):
        path = path.strip("/")
        self._maybe_fail("get_contents", path)
        if path in self.files:
            return content_file(path, self.files[path])

        prefix = f"{path}/" if path else ""
        children = {}
        for file_path in sorted(self.files):
            if not file_path.startswith(prefix):
                continue
            rest = file_path[len(prefix):]
            if "/" in rest:
                name = rest.split("/", 1)[0]
                children.setdefault(name, SimpleNamespace(type="dir", name=name, path=prefix + name))
            else:
                children[rest] = SimpleNamespace(type="file", name=rest, path=file_path, content=None)
        if not children:
            raise not_found()
        return list(children.values())

    def _write_result(self, path, message):
        commit = SimpleNamespace(sha=fake_sha("commit", message, path), html_url=f"{self.html_url}/commit/x")
        content = content_file(path, self.files[path]) if path in self.files else None
        return {"commit": commit, "content": content}

    def create_file(self, path, message, content, branch=None):
        self._maybe_fail("create_file", path)
        self.files[path] = content
        self.writes.append(("create_file", path, branch))
        return self._write_result(path, message)

    def update_file(self, path, message, content, sha, branch=None):
        self._maybe_fail("update_file", path)
        assert sha == fake_sha("blob", self.files[path])
        self.files[path] = content
        self.writes.append(("update_file", path, branch))
        return self._write_result(path, message)

    def delete_file(self, path, message, sha, branch=None):
        assert sha == fake_sha("blob", self.files[path])
        del self.files[path]
        self.writes.append(("delete_file", path, branch))
        return self._write_result(path, message)

    def edit(self, name=None, **kwargs):
        if name:
            self.name = name


class FakeUser:
    def __init__(self, client):
        self._client = client
        self.created = []

    def create_repo(self, name, **kwargs):
        repository = FakeRepository(self._client.owner, name)
        repository.description = kwargs.get("description")
        repository.private = kwargs.get("private", False)
        self._client.repos[name] = repository
        self.created.append((name, kwargs))
        return repository

    def get_repos(self, **kwargs):
        self._client.repo_queries.append(kwargs)
        return SimpleNamespace(get_page=lambda page: list(self._client.repos.values()))


class FakeClient:
    """替代 AccountClient 的测试客户端"""

    def __init__(self, account):
        self.owner = account.owner
        self.token = account.token
        self.repos = {}
        self.requested = []
        self.posts = []
        self.repo_queries = []
        self.isolated = []
        self.user = FakeUser(self)
        self.github = SimpleNamespace(get_user=lambda: self.user)

    def add_repo(self, name="demo"):
        repository = FakeRepository(self.owner, name)
        self.repos[name] = repository
        return repository

    def get_repo(self, owner, repo):
        self.requested.append((owner, repo))
        if repo not in self.repos:
            raise not_found()
        return self.repos[repo]

    def isolated_repo(self, owner, repo):
        self.isolated.append((owner, repo))
        if repo not in self.repos:
            raise not_found()
        return self.repos[repo]

    def post(self, path, payload):
        self.posts.append((path, payload))
        repo = path.split("/")[3]
        return self.repos[repo].create_commit_from_payload(payload)


@pytest.fixture
def clients():
    return {}


@pytest.fixture
def client_factory(clients):
    def factory(account):
        client = FakeClient(account)
        clients[account.owner.casefold()] = client
        return client
    return factory


@pytest.fixture
def registry(client_factory):
    return AccountRegistry([Account("alice", "tok-alice"), Account("bob", "tok-bob")], client_factory)


@pytest.fixture
def session(registry):
    return AccountSession(registry, default_owner="alice")


@pytest.fixture
def alice(session, clients):
    return clients["alice"]


@pytest.fixture
def repo(alice):
    repository = alice.add_repo("demo")
    repository.seed_commit({"README.md": fake_sha("blob", b"readme"), "src/app.py": fake_sha("blob", b"app")})
    return repository
