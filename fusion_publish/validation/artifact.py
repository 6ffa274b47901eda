from __future__ import annotations

from pathlib import Path
from typing import Optional, Tuple

from ..infra.errors import NotFoundError, ValidationFailure


SUPPORTED_ARTIFACT_EXTENSIONS: Tuple[str, ...] = (".zip",)


def require_zip_extension(path: Path) -> None:
    ext = path.suffix.lower()
    if ext not in SUPPORTED_ARTIFACT_EXTENSIONS:
        raise ValidationFailure(
            f"Artifact file must be one of the following types: {', '.join(SUPPORTED_ARTIFACT_EXTENSIONS)} "
            f"(got {ext or 'no extension'!r})."
        )


def validate_artifact_path(artifact: str, working_dir: Optional[Path] = None) -> Path:
    """Resolve and validate the bundle path given to the action.

    Checks, in order: the input is set, the file exists, the extension is
    supported. Relative paths resolve against working_dir (default: cwd).

    Returns:
        The absolute artifact path.
    """
    if not str(artifact or "").strip():
        raise ValidationFailure("Input 'artifact' is required.")

    base = Path(working_dir) if working_dir is not None else Path.cwd()
    path = (base / str(artifact).strip()).resolve()
    if not path.is_file():
        raise NotFoundError(f"Artifact file does not exist at path: {path}")

    require_zip_extension(path)
    return path
