from __future__ import annotations

import os
import tempfile
import unittest
from pathlib import Path
from unittest import mock

import yaml

from _testutil import ensure_repo_on_path


class TestPublishConfig(unittest.TestCase):
    def test_packaged_default_loads(self) -> None:
        ensure_repo_on_path()

        from fusion_publish.config import load_publish_config

        with mock.patch.dict(os.environ, {}, clear=False):
            os.environ.pop("FUSION_PUBLISH_CONFIG", None)
            cfg = load_publish_config()

        self.assertEqual(cfg.fallback_environment, "fprd")
        self.assertEqual(cfg.base_url_for("ci"), "https://fusion.ci.fusion-dev.net")
        self.assertEqual(cfg.base_url_for("fprd"), "https://fusion.equinor.com")
        self.assertEqual(cfg.base_url_for("unknown"), "https://fusion.equinor.com")
        self.assertEqual(cfg.resource_id_for("fprd"), "api://fusion.equinor.com/prod")
        self.assertEqual(cfg.resource_id_for("next"), "api://fusion.equinor.com/nonprod")
        self.assertIsNone(cfg.resource_id_for("staging"))
        self.assertEqual(cfg.comment_marker, "<!-- fusion-app-publish-meta -->")

    def test_path_precedence(self) -> None:
        ensure_repo_on_path()

        from fusion_publish.config.load_publish_config import DEFAULT_CONFIG_PATH, resolve_publish_config_path

        with tempfile.TemporaryDirectory() as td:
            env_path = Path(td) / "env.yml"
            cli_path = Path(td) / "cli.yml"
            with mock.patch.dict(os.environ, {"FUSION_PUBLISH_CONFIG": str(env_path)}):
                self.assertEqual(resolve_publish_config_path(str(cli_path)), cli_path.resolve())
                self.assertEqual(resolve_publish_config_path(None), env_path.resolve())
            with mock.patch.dict(os.environ, {"FUSION_PUBLISH_CONFIG": ""}):
                self.assertEqual(resolve_publish_config_path("  "), DEFAULT_CONFIG_PATH)

    def test_override_file_and_validation(self) -> None:
        ensure_repo_on_path()

        from fusion_publish.config import load_publish_config
        from fusion_publish.config.load_publish_config import DEFAULT_CONFIG_PATH
        from fusion_publish.infra.errors import ValidationFailure

        base = yaml.safe_load(DEFAULT_CONFIG_PATH.read_text(encoding="utf-8"))

        with tempfile.TemporaryDirectory() as td:
            good = dict(base)
            good["environments"] = dict(base["environments"])
            good["environments"]["ci"] = {"base_url": "https://ci.example.test/", "tier": "nonprod"}
            p = Path(td) / "good.yml"
            p.write_text(yaml.safe_dump(good), encoding="utf-8")
            cfg = load_publish_config(str(p))
            self.assertEqual(cfg.base_url_for("ci"), "https://ci.example.test")

            missing_env = dict(base)
            missing_env["environments"] = {k: v for k, v in base["environments"].items() if k != "tr"}
            p2 = Path(td) / "missing.yml"
            p2.write_text(yaml.safe_dump(missing_env), encoding="utf-8")
            with self.assertRaises(ValidationFailure) as ctx:
                load_publish_config(str(p2))
            self.assertIn("schema validation failed", ctx.exception.reason)

            extra_env = dict(base)
            extra_env["environments"] = dict(base["environments"])
            extra_env["environments"]["dev"] = {"base_url": "https://dev.example.test", "tier": "nonprod"}
            p3 = Path(td) / "extra.yml"
            p3.write_text(yaml.safe_dump(extra_env), encoding="utf-8")
            with self.assertRaises(ValidationFailure):
                load_publish_config(str(p3))

            bad_tier = dict(base)
            bad_tier["environments"] = dict(base["environments"])
            bad_tier["environments"]["fqa"] = {"base_url": "https://fqa.example.test", "tier": "staging"}
            p4 = Path(td) / "tier.yml"
            p4.write_text(yaml.safe_dump(bad_tier), encoding="utf-8")
            with self.assertRaises(ValidationFailure):
                load_publish_config(str(p4))

            with self.assertRaises(ValidationFailure):
                load_publish_config(str(Path(td) / "nope.yml"))

            broken = Path(td) / "broken.yml"
            broken.write_text("environments: [unclosed\n", encoding="utf-8")
            with self.assertRaises(ValidationFailure):
                load_publish_config(str(broken))


class TestAzureResourceId(unittest.TestCase):
    def setUp(self) -> None:
        ensure_repo_on_path()

        from fusion_publish.config import load_publish_config

        self.cfg = load_publish_config(None)

    def test_no_client_id_returns_input_unchanged(self) -> None:
        from fusion_publish.validation.credentials import detect_azure_resource_id

        self.assertEqual(detect_azure_resource_id("ci", "", "", self.cfg), ("", None))
        self.assertEqual(detect_azure_resource_id("ci", "api://x", " ", self.cfg), ("api://x", None))

    def test_supplied_value_strips_default_scope(self) -> None:
        from fusion_publish.validation.credentials import detect_azure_resource_id

        self.assertEqual(
            detect_azure_resource_id("fprd", " api://custom/app/.default ", "client", self.cfg),
            ("api://custom/app", None),
        )
        self.assertEqual(detect_azure_resource_id("", "5a842df8-guid", "client", self.cfg), ("5a842df8-guid", None))

    def test_default_by_environment_tier(self) -> None:
        from fusion_publish.validation.credentials import detect_azure_resource_id

        self.assertEqual(detect_azure_resource_id("fprd", "", "client", self.cfg), ("api://fusion.equinor.com/prod", None))
        self.assertEqual(detect_azure_resource_id("FPRD", "", "client", self.cfg), ("api://fusion.equinor.com/prod", None))
        for env in ("ci", "fqa", "tr", "next"):
            with self.subTest(env=env):
                rid, warn = detect_azure_resource_id(env, "", "client", self.cfg)
                self.assertEqual(rid, "api://fusion.equinor.com/nonprod")
                self.assertIsNone(warn)

    def test_unknown_environment_warns(self) -> None:
        from fusion_publish.validation.credentials import detect_azure_resource_id

        rid, warn = detect_azure_resource_id("staging", "", "client", self.cfg)
        self.assertEqual(rid, "api://fusion.equinor.com/nonprod")
        self.assertIn("Unrecognized environment 'staging'", warn)

    def test_no_environment_leaves_it_empty(self) -> None:
        from fusion_publish.validation.credentials import detect_azure_resource_id

        self.assertEqual(detect_azure_resource_id("", "", "client", self.cfg), ("", None))


if __name__ == "__main__":
    unittest.main()
