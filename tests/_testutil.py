from __future__ import annotations

import json
import sys
import zipfile
from pathlib import Path
from typing import Any, Dict, Optional


def ensure_repo_on_path() -> Path:
    repo_root = Path(__file__).resolve().parents[1]
    if str(repo_root) not in sys.path:
        sys.path.insert(0, str(repo_root))
    return repo_root


def write_bundle(
    zip_path: Path,
    metadata: Optional[Any] = None,
    *,
    folder: str = "",
    raw_metadata: Optional[bytes] = None,
    manifest: Optional[Dict[str, Any]] = None,
) -> Path:
    """Write a bundle zip with metadata.json (and optionally app-manifest.json)."""
    prefix = f"{folder.strip('/')}/" if folder else ""
    zip_path.parent.mkdir(parents=True, exist_ok=True)
    with zipfile.ZipFile(zip_path, mode="w", compression=zipfile.ZIP_DEFLATED) as zf:
        zf.writestr(f"{prefix}index.js", "export default {};\n")
        if raw_metadata is not None:
            zf.writestr(f"{prefix}metadata.json", raw_metadata)
        elif metadata is not None:
            zf.writestr(f"{prefix}metadata.json", json.dumps(metadata))
        if manifest is not None:
            zf.writestr(f"{prefix}app-manifest.json", json.dumps(manifest))
    return zip_path


def read_outputs(path: Path) -> Dict[str, str]:
    """Parse a GITHUB_OUTPUT file, including heredoc-style multi-line values."""
    out: Dict[str, str] = {}
    if not path.exists():
        return out
    lines = path.read_text(encoding="utf-8").split("\n")
    i = 0
    while i < len(lines):
        line = lines[i]
        if "<<" in line and ("=" not in line or line.index("<<") < line.index("=")):
            name, delim = line.split("<<", 1)
            buf = []
            i += 1
            while lines[i] != delim:
                buf.append(lines[i])
                i += 1
            out[name] = "\n".join(buf)
        elif "=" in line:
            name, value = line.split("=", 1)
            out[name] = value
        i += 1
    return out
