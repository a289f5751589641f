"""Tests for the Terraform CLI inspector: subprocess is mocked."""

import json
from unittest.mock import MagicMock, patch

import pytest

from tfmatrix.core.errors import AnalysisError, ConfigError
from tfmatrix.core.inspectors import (
    HclInspector,
    TerraformInspector,
    create_inspector,
)


def _completed(returncode=0, stdout="", stderr=""):
    return MagicMock(returncode=returncode, stdout=stdout, stderr=stderr)


@pytest.fixture
def root(tmp_path):
    (tmp_path / "main.tf").write_text("")
    return str(tmp_path)


class TestEnsureInitialized:
    def test_runs_init_without_backend(self, root):
        with patch("tfmatrix.core.terraform_runner.subprocess.run") as mock_run:
            mock_run.return_value = _completed()
            TerraformInspector().ensure_initialized(root)

        cmd = mock_run.call_args[0][0]
        assert cmd[:3] == ["terraform", f"-chdir={root}", "init"]
        assert "-backend=false" in cmd
        assert "-input=false" in cmd

    def test_skips_initialized_root(self, root, tmp_path):
        (tmp_path / ".terraform").mkdir()
        with patch("tfmatrix.core.terraform_runner.subprocess.run") as mock_run:
            TerraformInspector().ensure_initialized(root)
        mock_run.assert_not_called()

    def test_init_failure(self, root):
        with patch("tfmatrix.core.terraform_runner.subprocess.run") as mock_run:
            mock_run.return_value = _completed(1, stderr="Error: Failed to query available provider packages\n")
            with pytest.raises(AnalysisError) as exc_info:
                TerraformInspector().ensure_initialized(root)

        assert str(exc_info.value) == (
            "Initialization failed: Error: Failed to query available provider packages"
        )


class TestListModules:
    def test_parses_module_listing(self, root):
        listing = {"format_version": "1.0", "modules": [
            {"key": "network", "source": "../modules/network", "version": "", "dir": "../modules/network"},
            {"key": "dns", "source": "registry.terraform.io/acme/dns/aws", "version": "1.0.0",
             "dir": ".terraform/modules/dns"},
        ]}
        with patch("tfmatrix.core.terraform_runner.subprocess.run") as mock_run:
            mock_run.return_value = _completed(stdout=json.dumps(listing))
            modules = TerraformInspector().list_modules(root)

        assert mock_run.call_args[0][0][2:] == ["modules", "-json"]
        assert modules == [
            {"source": "../modules/network", "dir": "../modules/network"},
            {"source": "registry.terraform.io/acme/dns/aws", "dir": ".terraform/modules/dns"},
        ]

    def test_command_failure(self, root):
        with patch("tfmatrix.core.terraform_runner.subprocess.run") as mock_run:
            mock_run.return_value = _completed(1, stderr="unknown command")
            with pytest.raises(AnalysisError, match="terraform modules"):
                TerraformInspector().list_modules(root)

    def test_bad_json(self, root):
        with patch("tfmatrix.core.terraform_runner.subprocess.run") as mock_run:
            mock_run.return_value = _completed(stdout="not json")
            with pytest.raises(AnalysisError, match="JSON decode error"):
                TerraformInspector().list_modules(root)

    def test_malformed_listing(self, root):
        with patch("tfmatrix.core.terraform_runner.subprocess.run") as mock_run:
            mock_run.return_value = _completed(stdout='{"modules": "oops"}')
            with pytest.raises(AnalysisError):
                TerraformInspector().list_modules(root)


class TestListProviders:
    def test_parses_schema_keys(self, root):
        schema = {"format_version": "1.0", "provider_schemas": {
            "registry.terraform.io/hashicorp/google": {},
            "registry.terraform.io/hashicorp/aws": {},
        }}
        with patch("tfmatrix.core.terraform_runner.subprocess.run") as mock_run:
            mock_run.return_value = _completed(stdout=json.dumps(schema))
            providers = TerraformInspector().list_providers(root)

        assert mock_run.call_args[0][0][2:] == ["providers", "schema", "-json"]
        assert providers == [
            "registry.terraform.io/hashicorp/aws",
            "registry.terraform.io/hashicorp/google",
        ]

    def test_failure(self, root):
        with patch("tfmatrix.core.terraform_runner.subprocess.run") as mock_run:
            mock_run.return_value = _completed(1, stderr="no init")
            with pytest.raises(AnalysisError, match="providers schema"):
                TerraformInspector().list_providers(root)


class TestCreateInspector:
    def test_terraform(self):
        inspector = create_inspector("terraform", terraform_binary="tofu", timeout=10)
        assert isinstance(inspector, TerraformInspector)
        assert inspector.terraform_binary == "tofu"
        assert inspector.timeout == 10

    def test_hcl(self):
        assert isinstance(create_inspector("hcl"), HclInspector)

    def test_unknown(self):
        with pytest.raises(ConfigError, match="Unknown inspector"):
            create_inspector("pulumi")
