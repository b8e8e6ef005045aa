"""
项目记录 - 提交成功后清空项目的待提交变更列表

文件格式:
    {"projects": [{"name": ..., "repository": {"owner": ..., "name": ...},
                   "changes": [...], "lastCommit": ...}]}
"""

import json
import logging
import os
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)


class ProjectStore:
    """保存在JSON文件中的项目列表，同时作为提交观察者"""

    def __init__(self, path: str):
        self.path = str(path)
        self.projects: Dict[str, Dict[str, Any]] = {}

    def load(self) -> None:
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            logger.info("No existing projects file found at %s", self.path)
            self.projects = {}
            return

        projects: List[Dict[str, Any]] = data.get("projects", [])
        self.projects = {p["name"]: p for p in projects}
        logger.info("Loaded %d projects from disk", len(self.projects))

    def save(self) -> None:
        parent = os.path.dirname(self.path)
        if parent:
            os.makedirs(parent, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump({"projects": list(self.projects.values())}, f, ensure_ascii=False, indent=2)
        logger.info("Saved %d projects to %s", len(self.projects), self.path)

    def find_by_repository(self, repo: str) -> Optional[Dict[str, Any]]:
        wanted = repo.casefold()
        for project in self.projects.values():
            name = (project.get("repository") or {}).get("name")
            if name and name.casefold() == wanted:
                return project
        return None

    def commit_created(self, repo: str, commit_sha: str) -> None:
        """清空匹配项目的变更并记录最新提交"""
        project = self.find_by_repository(repo)
        if project is None:
            logger.info("No project found with repository name %s", repo)
            return

        updated = dict(project, changes=[], lastCommit=commit_sha)
        self.projects[project["name"]] = updated
        self.save()
        logger.info("Cleared changes for project %s after commit %s", project["name"], commit_sha)
