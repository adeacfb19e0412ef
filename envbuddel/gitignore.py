"""
Keep decrypted secrets and the keyfile out of git.
"""

import logging
import os.path
import pathlib
import typing

import git

from .utils import GitignoreError

log = logging.getLogger(__name__)


def find_git_directory(
        start: typing.Optional[pathlib.Path] = None) -> typing.Optional[pathlib.Path]:
    """Return the working tree of the git repository containing start, if any."""
    try:
        repo = git.Repo(start or pathlib.Path.cwd(), search_parent_directories=True)
    except (git.exc.InvalidGitRepositoryError, git.exc.NoSuchPathError):
        return None
    if repo.working_dir is None:
        return None
    return pathlib.Path(repo.working_dir)


def find_gitignore(start: pathlib.Path) -> pathlib.Path:
    """
    Search upward from start for a .gitignore file.

    The search stops at the root of the enclosing git working tree. When no
    file is found, returns the path one should be created at: the working tree
    root, or start itself outside of a repository.
    """
    start = start.resolve()
    top = find_git_directory(start)
    top = top.resolve() if top else None
    current = start

    while True:
        candidate = current / '.gitignore'
        if candidate.exists():
            log.debug(f".gitignore found: {candidate}")
            return candidate
        if current == top or current.parent == current:
            break
        current = current.parent

    return (top or start) / '.gitignore'


def add_entries(content: str, entries: typing.Iterable[str]) -> str:
    """Append entries that are not already present to .gitignore content."""
    lines = content.splitlines()
    existing = {line.strip() for line in lines}

    for entry in entries:
        if entry not in existing:
            lines.append(entry)
            existing.add(entry)

    return '\n'.join(lines) + '\n'


def ignore_paths(
        paths: typing.Sequence[pathlib.Path],
        start: typing.Optional[pathlib.Path] = None) -> pathlib.Path:
    """Add paths to the nearest .gitignore, returning the file that was written."""
    gitignore = find_gitignore(start or pathlib.Path.cwd())
    base = gitignore.parent

    entries: typing.List[str] = []
    for path in paths:
        relative = pathlib.Path(os.path.relpath(path.resolve(), base))
        if relative.parts and relative.parts[0] == '..':
            log.warning(f"Not adding {path} to {gitignore}: outside of {base}")
            continue
        entries.append(relative.as_posix())

    try:
        content = gitignore.read_text(encoding='utf-8') if gitignore.exists() else ''
        gitignore.write_text(add_entries(content, entries), encoding='utf-8')
    except OSError as error:
        raise GitignoreError(f"Failed to update {gitignore}: {error}") from error

    log.info(f"Added {', '.join(entries)} to {gitignore}")
    return gitignore


def unignored(
        paths: typing.Sequence[pathlib.Path],
        start: typing.Optional[pathlib.Path] = None) -> typing.List[pathlib.Path]:
    """Return the paths inside the current git working tree that git does not ignore."""
    top = find_git_directory(start)
    if top is None:
        log.debug("Not in a git repository, skipping .gitignore check")
        return []

    inside = [p for p in paths if top.resolve() in p.resolve().parents]
    if not inside:
        return []

    log.info("Checking secret files are ignored by git")
    try:
        ignored = set(git.Repo(top).ignored(*(str(p.resolve()) for p in inside)))
    except git.exc.GitError as error:
        raise GitignoreError(f"Failed to run git check-ignore: {error}") from error

    return [p for p in inside if str(p.resolve()) not in ignored]
