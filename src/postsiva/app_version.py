"""Version of the installed distribution, or of the source checkout."""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version as _dist_version

import tomllib

from postsiva.paths import get_repo_root


def get_app_version(package_name: str = "postsiva") -> str:
    try:
        return _dist_version(package_name)
    except PackageNotFoundError:
        pyproject = get_repo_root() / "pyproject.toml"
        if not pyproject.is_file():
            return "0.0.0"
        with pyproject.open("rb") as f:
            data = tomllib.load(f)
        return str(data.get("project", {}).get("version", "0.0.0"))
