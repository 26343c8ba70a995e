"""
Parser for the OCI CLI style config file (``~/.oci/config``).

Only used for local runs; deployed functions authenticate with a resource
principal instead.
"""

from __future__ import annotations

import re
from pathlib import Path

from audit_archiver.core.errors import ConfigError

_PROFILE_RE = re.compile(r"\[(.+)\]")
# Quoted values may not contain escaped quotes; '#' starts a trailing comment.
_ENTRY_RE = re.compile(r'(.+?)=\s*"?([^"#]*)')


def parse_oci_config(text: str) -> tuple[dict[str, dict[str, str]], str | None]:
    """Parse config text into ``({profile: {key: value}}, first_profile)``."""
    profiles: dict[str, dict[str, str]] = {}
    current: str | None = None
    first: str | None = None

    for raw_line in text.split("\n"):
        line = raw_line.strip()
        if not line or line.startswith("#") or line.startswith("!"):
            continue

        if line.startswith("["):
            match = _PROFILE_RE.match(line)
            if match is None or not match.group(1).strip():
                raise ConfigError(
                    f'Config file is malformed - profile name line: "{line}" is invalid!'
                )
            name = match.group(1).strip().lower()
            profiles[name] = {}
            if first is None:
                first = name
            current = name
            continue

        entry = _ENTRY_RE.match(line)
        if entry is None:
            raise ConfigError(f'Config file is malformed - line: "{line}" is invalid!')
        if current is None:
            current = "default"
            profiles.setdefault(current, {})
            first = first or current
        key, value = entry.group(1).strip(), entry.group(2).strip()
        if value:
            profiles[current][key] = value

    return profiles, first


def select_profile(
    profiles: dict[str, dict[str, str]],
    first: str | None,
    profile: str | None = None,
) -> dict[str, str]:
    """Pick the requested profile, else ``default``, else the first one."""
    if profile:
        selected = profiles.get(profile.lower())
        if selected is None:
            raise ConfigError(f'No profile "{profile}" in config file!')
        return selected
    if "default" in profiles:
        return profiles["default"]
    if first is None:
        raise ConfigError("Config file holds no profiles")
    return profiles[first]


def load_oci_config(path: str | Path, profile: str | None = None) -> dict[str, str]:
    """Read and parse the config file at ``path``."""
    config_path = Path(path).expanduser()
    try:
        text = config_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Could not read OCI config file {config_path}: {exc}") from exc
    profiles, first = parse_oci_config(text)
    return select_profile(profiles, first, profile)
