from __future__ import annotations

import argparse
from typing import List, Optional

from .config import load_publish_config
from .github import actions
from .infra.errors import ValidationFailure
from .steps import STEPS, run_step


STEP_HELP = {
    "validate-artifact": "Check the bundle input exists and is a .zip",
    "validate-env": "Resolve env and tag (PR previews deploy to ci as pr-<n>)",
    "validate-is-token-or-azure": "Detect token or Service Principal authentication",
    "check-meta-comment": "Report whether the PR already has a deployment comment",
    "post-publish-metadata": "Emit app URLs and post the PR deployment comment",
    "validate-working-dir": "Check the working directory holds a Fusion app",
    "validate-config-and-manifest": "Check app.manifest.json and the optional config are valid JSON",
    "extract-manifest": "Print app-manifest.json from the bundle as JSON",
    "extract-metadata": "Print metadata.json from the bundle as JSON",
}


def cmd_step(args: argparse.Namespace) -> int:
    try:
        config = load_publish_config(args.config)
    except ValidationFailure as e:
        return actions.set_failed(e.reason)
    return run_step(args.step, config)


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="fusion-publish")
    p.add_argument("--config", default=None, help="Path to publish_config.yml (default: FUSION_PUBLISH_CONFIG or packaged)")
    sub = p.add_subparsers(dest="cmd", required=True)

    for name in STEPS:
        sp = sub.add_parser(name, help=STEP_HELP.get(name, ""))
        sp.set_defaults(func=cmd_step, step=name)

    return p


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    return int(args.func(args) or 0)


if __name__ == "__main__":
    raise SystemExit(main())
