"""Read metadata out of a Fusion application bundle (zip) without extracting it."""

from __future__ import annotations

import json
import zipfile
from pathlib import Path
from typing import Any, Callable, Dict, Optional

import jsonschema

from ..infra.errors import MetadataError, NotFoundError
from ..infra.models import AppMetadata
from ..validation.artifact import require_zip_extension


METADATA_ENTRY = "metadata.json"
MANIFEST_ENTRY = "app-manifest.json"

METADATA_SCHEMA: Dict[str, Any] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "type": "object",
    "required": ["name"],
    "properties": {
        "name": {"type": "string", "minLength": 1},
        "version": {"type": "string"},
        "appKey": {"type": "string"},
        "description": {"type": "string"},
        "entry": {
            "type": "object",
            "properties": {"path": {"type": "string"}},
        },
    },
}

MANIFEST_SCHEMA: Dict[str, Any] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "type": "object",
    "required": ["appKey"],
    "properties": {"appKey": {"type": "string", "minLength": 1}},
}


def _find_entry(bundle: zipfile.ZipFile, name: str) -> Optional[str]:
    names = bundle.namelist()
    if name in names:
        return name
    # <folder>/<name>, one level deep.
    for n in names:
        folder, _, base = n.partition("/")
        if folder and base == name:
            return n
    return None


def read_json_entry(bundle: zipfile.ZipFile, name: str, label: str) -> Dict[str, Any]:
    """Parse the JSON entry `name`, at the archive root or under one top folder.

    Raises:
        NotFoundError: if no such entry exists.
        MetadataError: if the entry is not a JSON object.
    """
    entry = _find_entry(bundle, name)
    if entry is None:
        raise NotFoundError(f"{label} file not found in bundle")
    try:
        data = json.loads(bundle.read(entry).decode("utf-8"))
    except (UnicodeDecodeError, ValueError) as e:
        raise MetadataError(f"Failed to parse {label.lower()} file: {e}") from e
    if not isinstance(data, dict):
        raise MetadataError(f"Failed to parse {label.lower()} file: expected a JSON object")
    return data


def _check(data: Dict[str, Any], schema: Dict[str, Any], label: str) -> None:
    try:
        jsonschema.validate(instance=data, schema=schema)
    except jsonschema.ValidationError as e:
        raise MetadataError(f"Invalid {label.lower()} file: {e.message}") from e


def load_metadata(bundle: zipfile.ZipFile) -> Dict[str, Any]:
    data = read_json_entry(bundle, METADATA_ENTRY, "Metadata")
    _check(data, METADATA_SCHEMA, "Metadata")
    return data


def load_manifest(bundle: zipfile.ZipFile) -> Dict[str, Any]:
    data = read_json_entry(bundle, MANIFEST_ENTRY, "Manifest")
    _check(data, MANIFEST_SCHEMA, "Manifest")
    return data


def to_app_metadata(data: Dict[str, Any]) -> AppMetadata:
    entry = data.get("entry") or {}
    name = str(data.get("name") or "")
    return AppMetadata(
        name=name,
        key=str(data.get("appKey") or name),
        version=str(data.get("version") or ""),
        description=str(data.get("description") or ""),
        entry_path=str(entry.get("path") or "") if isinstance(entry, dict) else "",
        raw=dict(data),
    )


def _read_bundle(artifact_path: Path, loader: Callable[[zipfile.ZipFile], Dict[str, Any]]) -> Dict[str, Any]:
    path = Path(artifact_path)
    require_zip_extension(path)
    if not path.is_file():
        raise NotFoundError(f"Artifact not found: {path}")

    try:
        with zipfile.ZipFile(path) as bundle:
            return loader(bundle)
    except zipfile.BadZipFile as e:
        raise MetadataError(f"Artifact is not a readable zip archive: {path}: {e}") from e


def extract_metadata(artifact_path: Path) -> Dict[str, Any]:
    """Parsed metadata.json of a bundle zip."""
    return _read_bundle(artifact_path, load_metadata)


def extract_manifest(artifact_path: Path) -> Dict[str, Any]:
    """Parsed app-manifest.json of a bundle zip."""
    return _read_bundle(artifact_path, load_manifest)


def extract_app_metadata(artifact_path: Path) -> AppMetadata:
    """Load AppMetadata from a bundle zip.

    Raises:
        ValidationFailure: for a non-zip path.
        NotFoundError: if the file or metadata.json is missing.
        MetadataError: if metadata.json is malformed or the archive is corrupt.
    """
    return to_app_metadata(extract_metadata(artifact_path))
