"""Issue reference grammar.

Accepted inputs, tried in this order (first match wins):

- worktree://open?owner=X&repo=Y&issue=42
- worktree://open?owner=X&repo=Y&linear_id=<uuid>
- worktree://open?url=<percent-encoded GitHub issue URL>
- https://github.com/owner/repo/issues/42
- owner/repo@<linear-uuid>
- owner/repo#42

Deep links may also carry ``editor=<name or command>``, returned separately as
DeepLinkOptions by parse_with_options.
"""

from typing import Any, TypeVar
from urllib.parse import parse_qsl, urlsplit

from pydantic import ValidationError

from worktree_io.errors import IssueRefParseError
from worktree_io.models import DeepLinkOptions, GitHubIssue, LinearIssue, is_uuid

DEEP_LINK_SCHEME = "worktree"

_DEEP_LINK_PREFIX = f"{DEEP_LINK_SCHEME}://"
_GITHUB_PREFIXES = ("https://github.com", "http://github.com", "https://www.github.com", "http://www.github.com")
_GITHUB_HOSTS = ("github.com", "www.github.com")
_U64_MAX = 2**64 - 1

IssueT = TypeVar("IssueT", GitHubIssue, LinearIssue)

_SUPPORTED_FORMATS = """\
Supported formats:
- https://github.com/owner/repo/issues/42
- worktree://open?owner=owner&repo=repo&issue=42
- worktree://open?owner=owner&repo=repo&linear_id=<uuid>
- owner/repo#42
- owner/repo@<linear-uuid>"""


def parse(text: str) -> GitHubIssue | LinearIssue:
    """Parse any supported issue reference into a GitHubIssue or LinearIssue.

    Raises IssueRefParseError when the input is malformed or matches no format.
    """
    issue, _ = parse_with_options(text)
    return issue


def parse_with_options(text: str) -> tuple[GitHubIssue | LinearIssue, DeepLinkOptions]:
    """Like parse, but also return options embedded in a worktree:// deep link.

    Non deep-link inputs always come back with empty DeepLinkOptions.
    """
    text = text.strip()

    if text.startswith(_DEEP_LINK_PREFIX):
        return _parse_deep_link(text)

    if text.startswith(_GITHUB_PREFIXES):
        return _parse_github_url(text), DeepLinkOptions()

    issue = _try_parse_shorthand(text)
    if issue is not None:
        return issue, DeepLinkOptions()

    raise IssueRefParseError(f"Could not parse issue reference: {text!r}\n{_SUPPORTED_FORMATS}", text=text)


def _parse_unsigned(value: str) -> int | None:
    if not (value.isascii() and value.isdigit()):
        return None
    number = int(value)
    return number if number <= _U64_MAX else None


def _build_issue(model: type[IssueT], text: str, label: str, **fields: Any) -> IssueT:
    """Construct model, reporting a rejected owner/repo as an IssueRefParseError.

    label is formatted with the offending field name, e.g. "'{}' query param".
    """
    try:
        return model(**fields)
    except ValidationError as exc:
        loc = exc.errors()[0]["loc"]
        field = str(loc[0]) if loc else "value"
        raise IssueRefParseError(f"Invalid {label.format(field)}: {fields.get(field)!r}", text=text) from exc


def _parse_deep_link(text: str) -> tuple[GitHubIssue | LinearIssue, DeepLinkOptions]:
    try:
        query = urlsplit(text).query
    except ValueError as exc:
        raise IssueRefParseError(f"Invalid URL: {text}", text=text) from exc

    owner: str | None = None
    repo: str | None = None
    number: int | None = None
    linear_id: str | None = None
    nested_url: str | None = None
    editor: str | None = None

    # parse_qsl percent-decodes values, including the nested url.
    for key, value in parse_qsl(query, keep_blank_values=True):
        match key:
            case "owner":
                owner = value
            case "repo":
                repo = value
            case "issue":
                number = _parse_unsigned(value)
                if number is None:
                    raise IssueRefParseError(f"Invalid issue number: {value}", text=text)
            case "linear_id":
                if not is_uuid(value):
                    raise IssueRefParseError(f"Invalid Linear issue UUID: {value}", text=text)
                linear_id = value
            case "url":
                nested_url = value
            case "editor":
                editor = value

    options = DeepLinkOptions(editor=editor)

    if nested_url is not None:
        return _parse_github_url(nested_url), options

    if not owner:
        raise IssueRefParseError("Missing 'owner' query param", text=text)
    if not repo:
        raise IssueRefParseError("Missing 'repo' query param", text=text)

    if linear_id is not None:
        return _build_issue(LinearIssue, text, "'{}' query param", owner=owner, repo=repo, id=linear_id), options

    if number is None:
        raise IssueRefParseError("Missing 'issue' query param", text=text)
    return _build_issue(GitHubIssue, text, "'{}' query param", owner=owner, repo=repo, number=number), options


def _parse_github_url(text: str) -> GitHubIssue:
    expected = f"Expected GitHub issue URL like https://github.com/owner/repo/issues/42, got: {text}"
    try:
        url = urlsplit(text)
    except ValueError as exc:
        raise IssueRefParseError(f"Invalid URL: {text}", text=text) from exc

    if url.scheme not in ("http", "https") or (url.hostname or "").lower() not in _GITHUB_HOSTS:
        raise IssueRefParseError(expected, text=text)

    # owner / repo / "issues" / number; anything after the number is ignored
    segments = [segment for segment in url.path.split("/") if segment]
    if len(segments) < 4 or segments[2] != "issues":
        raise IssueRefParseError(expected, text=text)

    number = _parse_unsigned(segments[3])
    if number is None:
        raise IssueRefParseError(f"Invalid issue number in URL: {segments[3]}", text=text)

    return _build_issue(GitHubIssue, text, "{} in URL", owner=segments[0], repo=segments[1], number=number)


def _split_owner_repo(repo_part: str, text: str) -> tuple[str, str] | None:
    if "/" not in repo_part:
        return None
    owner, _, repo = repo_part.partition("/")
    if not owner or not repo or "/" in repo:
        raise IssueRefParseError(f"Invalid shorthand format: {text}", text=text)
    return owner, repo


def _try_parse_shorthand(text: str) -> GitHubIssue | LinearIssue | None:
    """Return None when text is not shorthand at all; raise when it is but is malformed."""
    if "@" in text:
        repo_part, _, linear_id = text.rpartition("@")
        names = _split_owner_repo(repo_part, text)
        if names is None:
            return None
        if not is_uuid(linear_id):
            raise IssueRefParseError(f"Invalid Linear issue UUID in shorthand: {linear_id}", text=text)
        return _build_issue(LinearIssue, text, "{} in shorthand", owner=names[0], repo=names[1], id=linear_id)

    if "#" not in text:
        return None
    repo_part, _, num_str = text.partition("#")
    names = _split_owner_repo(repo_part, text)
    if names is None:
        return None

    number = _parse_unsigned(num_str)
    if number is None:
        raise IssueRefParseError(f"Invalid issue number in shorthand: {num_str}", text=text)
    return _build_issue(GitHubIssue, text, "{} in shorthand", owner=names[0], repo=names[1], number=number)
