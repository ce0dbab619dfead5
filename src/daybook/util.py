from pathlib import Path


def _repo_root() -> Path:
    module_path = Path(__file__).resolve()
    # util.py lives under src/daybook/, so the repository root is two levels up.
    return module_path.parents[2]


def str_to_bool(value: str | bool | int | None) -> bool:
    """Convert common truthy / falsy strings and values to `bool`."""

    truthy_values = {"true", "1", "yes", "y", "t", "on"}
    falsy_values = {"false", "0", "no", "n", "f", "off"}

    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return value != 0
    if not isinstance(value, str):
        raise ValueError(f"Cannot convert '{value}' to a boolean.")

    value = value.strip().lower()

    if value in truthy_values:
        return True
    if value in falsy_values:
        return False
    raise ValueError(f"Cannot convert '{value}' to a boolean.")


def resolve_data_path(
    configured_path: str,
    *,
    fallback_dir: str | Path,
    fallback_name: str | None = None,
) -> Path:
    """Resolve a data file path, falling back to the packaged copy.

    Looks in order at the absolute path, the current working directory, the
    repository root and finally ``fallback_dir``.
    """

    candidate = Path(configured_path)
    fallback_dir_path = Path(fallback_dir).resolve()
    repo_root = _repo_root()

    search_paths: list[Path] = []

    if candidate.is_absolute():
        search_paths.append(candidate)
    else:
        search_paths.extend(
            [
                Path.cwd() / candidate,
                repo_root / candidate,
            ]
        )

    resolved_fallback_name = fallback_name or candidate.name
    if resolved_fallback_name:
        search_paths.append(fallback_dir_path / resolved_fallback_name)

    tried: list[Path] = []
    seen: set[Path] = set()

    for path in search_paths:
        normalized = path.resolve()
        if normalized in seen:
            continue
        seen.add(normalized)
        tried.append(normalized)
        if normalized.exists():
            return normalized

    raise FileNotFoundError(
        f"Unable to locate '{configured_path}'. Checked: {', '.join(str(p) for p in tried)}"
    )
