"""Git revision of the analysed project, used as report metadata."""

import logging
from dataclasses import dataclass
from typing import Optional

import git

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RevisionInfo:
    """Branch and commit the project was analysed at."""
    commit: str
    branch: Optional[str]
    dirty: bool

    def to_dict(self):
        return {'commit': self.commit, 'branch': self.branch, 'dirty': self.dirty}


def describe_revision(path) -> Optional[RevisionInfo]:
    """Return the revision of the repository containing ``path``, if any."""
    try:
        repo = git.Repo(str(path), search_parent_directories=True)
    except (git.InvalidGitRepositoryError, git.NoSuchPathError):
        return None

    try:
        commit = repo.head.commit.hexsha
    except ValueError:
        # Repository without any commit yet
        logger.debug("Repository at %s has no commits", path)
        return None

    branch = None if repo.head.is_detached else repo.active_branch.name
    return RevisionInfo(commit=commit, branch=branch, dirty=repo.is_dirty(untracked_files=False))
