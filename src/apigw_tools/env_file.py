"""Read, expand, and edit dotenv files.

Parsing handles:
  - blank lines and ``#`` comments
  - ``export KEY=VALUE`` prefix
  - single- and double-quoted values (quotes stripped, escapes decoded in double quotes)
  - inline comments after unquoted values
  - values with ``=`` in them (only first ``=`` splits)

File naming follows the get-dotenv convention. With the default tokens, a
directory holds ``.env`` (global/public), ``.env.local`` (global/private),
``.env.<env>`` (env/public) and ``.env.<env>.local`` (env/private).
"""

from __future__ import annotations

import os
import re
import tempfile
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from pathlib import Path

from apigw_tools.errors import SelectorError, ValidationError

DEFAULT_DOTENV_TOKEN = ".env"
DEFAULT_PRIVATE_TOKEN = "local"
DEFAULT_TEMPLATE_EXTENSION = "template"

SCOPES = ("global", "env")
PRIVACIES = ("public", "private")

_LINE_RE = re.compile(
    r"""
    ^\s*
    (export\s+)?        # optional export prefix
    ([A-Za-z_]\w*)      # key
    \s*=\s*             # separator
    (.*)                # raw value (parsed below)
    $
    """,
    re.VERBOSE,
)

_EXPAND_RE = re.compile(
    r"""
    (?P<escaped>\\\$)
    | \$\{(?P<braced>[A-Za-z_]\w*)(?::-?(?P<default>[^}]*))?\}
    | \$(?P<bare>[A-Za-z_]\w*)
    """,
    re.VERBOSE,
)


@dataclass(frozen=True)
class DotenvSelector:
    """Target file selector, written ``scope:privacy`` on the command line."""

    scope: str
    privacy: str


@dataclass(frozen=True)
class EditResult:
    """Outcome of :func:`edit_dotenv_file`."""

    path: Path
    created_from_template: bool = False


def parse_to_selector(raw: str) -> DotenvSelector:
    """Parse ``(global|env):(public|private)``, e.g. ``env:private``."""
    scope, sep, privacy = raw.strip().partition(":")
    scope = scope.strip().lower()
    privacy = privacy.strip().lower()
    if not sep or scope not in SCOPES or privacy not in PRIVACIES:
        raise SelectorError(
            f"Invalid selector {raw!r}. Expected (global|env):(public|private), e.g. env:private."
        )
    return DotenvSelector(scope=scope, privacy=privacy)


def parse_env_text(text: str) -> dict[str, str]:
    """Parse dotenv *text* and return an ordered dict of key-value pairs."""
    result: dict[str, str] = {}
    for line in text.splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue
        m = _LINE_RE.match(stripped)
        if m is None:
            continue
        result[m.group(2)] = _unquote(m.group(3).strip())
    return result


def parse_env_file(path: str | Path) -> dict[str, str]:
    """Read a .env file and return an ordered dict of key-value pairs."""
    return parse_env_text(Path(path).read_text())


def _unquote(raw: str) -> str:
    """Strip surrounding quotes and handle inline comments."""
    if len(raw) >= 2:
        if raw[0] == '"' and raw[-1] == '"':
            return _unescape(raw[1:-1])
        if raw[0] == "'" and raw[-1] == "'":
            return raw[1:-1]
    # Unquoted value: strip inline comment (but not inside the value if # follows a space)
    if " #" in raw:
        raw = raw[: raw.index(" #")].rstrip()
    return raw


_ESCAPES = {"n": "\n", "r": "\r"}


def _unescape(value: str) -> str:
    # ``\$`` is left in place; dotenv_expand turns it into a literal ``$``.
    return re.sub(
        r"\\([\\\"nr])",
        lambda m: _ESCAPES.get(m.group(1), m.group(1)),
        value,
    )


def format_env_value(value: str) -> str:
    """Format a value for .env: quote if needed.

    Values containing ``$`` are quoted with ``\\$`` escapes so that reading
    the file back through :func:`load_dotenv_cascade` does not expand them.
    """
    if not value:
        return '""'
    if any(c in value for c in ('\n', '\r', '"', " ", "=", "#", "'", "$")):
        escaped = (
            value.replace("\\", "\\\\")
            .replace('"', '\\"')
            .replace("\n", "\\n")
            .replace("\r", "\\r")
            .replace("$", "\\$")
        )
        return f'"{escaped}"'
    return value


def dotenv_expand(raw: str | None, env: Mapping[str, str | None]) -> str | None:
    """Expand ``$VAR``, ``${VAR}``, ``${VAR:-default}`` and ``${VAR:default}`` against *env*.

    Unknown variables expand to the default, or to an empty string. ``\\$``
    yields a literal ``$``. ``None`` is returned unchanged.
    """
    if raw is None:
        return None

    def _sub(m: re.Match[str]) -> str:
        if m.group("escaped"):
            return "$"
        name = m.group("braced") or m.group("bare")
        value = env.get(name)
        if value:
            return value
        return m.group("default") or ""

    return _EXPAND_RE.sub(_sub, raw)


def build_spawn_env(
    base: Mapping[str, str | None],
    overlay: Mapping[str, str | None] | None = None,
) -> dict[str, str]:
    """Merge *overlay* on top of *base*, dropping ``None`` values."""
    merged: dict[str, str] = {k: v for k, v in base.items() if v is not None}
    for key, value in (overlay or {}).items():
        if value is not None:
            merged[key] = value
    return merged


def dotenv_filename(
    scope: str,
    privacy: str,
    env: str | None = None,
    dotenv_token: str = DEFAULT_DOTENV_TOKEN,
    private_token: str = DEFAULT_PRIVATE_TOKEN,
) -> str:
    """Return the file name for a ``scope``/``privacy`` pair."""
    if scope == "env":
        if not env:
            raise ValidationError("env is required for env-scoped dotenv files")
        name = f"{dotenv_token}.{env}"
    else:
        name = dotenv_token
    if privacy == "private":
        name = f"{name}.{private_token}"
    return name


def load_dotenv_cascade(
    paths: Iterable[str | Path],
    *,
    env: str | None = None,
    dotenv_token: str = DEFAULT_DOTENV_TOKEN,
    private_token: str = DEFAULT_PRIVATE_TOKEN,
    base_env: Mapping[str, str] | None = None,
) -> dict[str, str]:
    """Load the dotenv files found under *paths* into one snapshot.

    For each path, in order: global public, global private, then (when *env*
    is set) env public and env private. Later files win. Each value is
    expanded against *base_env* (default ``os.environ``) plus the values
    loaded so far. Missing files are skipped.
    """
    selectors = [("global", "public"), ("global", "private")]
    if env:
        selectors += [("env", "public"), ("env", "private")]

    base = os.environ if base_env is None else base_env
    loaded: dict[str, str] = {}
    for directory in paths:
        for scope, privacy in selectors:
            candidate = Path(directory) / dotenv_filename(scope, privacy, env, dotenv_token, private_token)
            if not candidate.is_file():
                continue
            for key, value in parse_env_file(candidate).items():
                loaded[key] = dotenv_expand(value, build_spawn_env(base, loaded)) or ""
    return loaded


def _apply_updates(text: str, updates: Mapping[str, str]) -> str:
    """Rewrite assignments of updated keys in place and append the rest."""
    lines = text.splitlines()
    seen: set[str] = set()
    out: list[str] = []
    for line in lines:
        stripped = line.strip()
        m = _LINE_RE.match(stripped) if stripped and not stripped.startswith("#") else None
        if m is not None and m.group(2) in updates:
            key = m.group(2)
            indent = line[: len(line) - len(line.lstrip())]
            out.append(f"{indent}{m.group(1) or ''}{key}={format_env_value(updates[key])}")
            seen.add(key)
        else:
            out.append(line)
    for key, value in updates.items():
        if key not in seen:
            out.append(f"{key}={format_env_value(value)}")
    return "\n".join(out) + "\n"


def _atomic_write(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "w") as fh:
            fh.write(text)
        if path.exists():
            os.chmod(tmp, path.stat().st_mode & 0o777)
        os.replace(tmp, path)
    except BaseException:
        Path(tmp).unlink(missing_ok=True)
        raise


def edit_dotenv_file(
    updates: Mapping[str, str],
    *,
    paths: Iterable[str | Path],
    scope: str,
    privacy: str,
    env: str | None = None,
    dotenv_token: str = DEFAULT_DOTENV_TOKEN,
    private_token: str = DEFAULT_PRIVATE_TOKEN,
    template_extension: str = DEFAULT_TEMPLATE_EXTENSION,
) -> EditResult:
    """Set *updates* in the dotenv file selected by *scope*/*privacy*.

    *paths* is searched from last to first for an existing target file. If
    none exists, the first template found (``<target>.<template_extension>``)
    is used as the starting content, keeping its comments. With neither, a
    new file is created under the last path. The file is replaced atomically.
    """
    dirs = [Path(p) for p in paths] or [Path(".")]
    name = dotenv_filename(scope, privacy, env, dotenv_token, private_token)

    target: Path | None = None
    source_text = ""
    from_template = False
    for directory in reversed(dirs):
        candidate = directory / name
        if candidate.is_file():
            target = candidate
            source_text = candidate.read_text()
            break
    if target is None:
        for directory in reversed(dirs):
            template = directory / f"{name}.{template_extension}"
            if template.is_file():
                target = directory / name
                source_text = template.read_text()
                from_template = True
                break
    if target is None:
        target = dirs[-1] / name

    _atomic_write(target, _apply_updates(source_text, updates))
    return EditResult(path=target, created_from_template=from_template)
