"""Tests for cluster.py module."""

import subprocess
from unittest.mock import MagicMock, patch

import click
import pytest
from kubernetes.config.config_exception import ConfigException

from webhook_cert_auto.cluster import Cluster
from webhook_cert_auto.exceptions import ClusterConnectionError


class TestClusterContextSelection:
    """Tests for context selection functionality."""

    def test_set_context_without_selection(self, mock_kube_contexts, mock_kube_config):
        """Test using current context without selection."""
        cluster = Cluster(select_context=False)

        assert cluster.context == "test-context"
        mock_kube_config.assert_called_once_with(context="test-context")

    def test_set_context_with_selection(self, mock_kube_config):
        """Test prompting user for context selection."""
        with (
            patch("kubernetes.config.list_kube_config_contexts") as mock_contexts,
            patch("questionary.select") as mock_select,
        ):
            mock_contexts.return_value = (
                [{"name": "context1"}, {"name": "context2"}, {"name": "context3"}],
                {"name": "context1"},
            )
            mock_select.return_value.ask.return_value = "context2"

            cluster = Cluster(select_context=True)

            assert cluster.context == "context2"
            mock_select.assert_called_once()

    def test_selection_cancelled(self, mock_kube_contexts, mock_kube_config):
        """Test cancelling the context prompt aborts."""
        with patch("questionary.select") as mock_select:
            mock_select.return_value.ask.return_value = None

            with pytest.raises(click.Abort):
                Cluster(select_context=True)

    def test_set_context_invalid_kubeconfig(self):
        """Test error when kubeconfig is invalid or missing."""
        with patch("kubernetes.config.list_kube_config_contexts") as mock_contexts:
            mock_contexts.side_effect = ConfigException("Invalid kube-config file. No configuration found.")

            with pytest.raises(ClusterConnectionError) as exc_info:
                Cluster(select_context=False)

            assert "Invalid or missing kubeconfig" in str(exc_info.value)

    def test_no_current_context(self, mock_kube_config):
        """Test error when the kubeconfig has no current context."""
        with patch("kubernetes.config.list_kube_config_contexts") as mock_contexts:
            mock_contexts.return_value = ([{"name": "context1"}], None)

            with pytest.raises(ClusterConnectionError) as exc_info:
                Cluster(select_context=False)

            assert "No current context" in str(exc_info.value)

    def test_load_kube_config_failure(self, mock_kube_contexts):
        """Test errors loading the selected context are connection errors."""
        with patch("kubernetes.config.load_kube_config") as mock_load:
            mock_load.side_effect = ConfigException("Invalid certificate data")

            with pytest.raises(ClusterConnectionError) as exc_info:
                Cluster(select_context=False)

            assert "test-context" in str(exc_info.value)


class TestClusterApi:
    """Tests for the API accessors."""

    def test_certificates_api(self, mock_kube_contexts, mock_kube_config):
        """Test the certificates.k8s.io/v1 client is returned."""
        cluster = Cluster(select_context=False)

        with patch("kubernetes.client.CertificatesV1Api") as mock_api:
            api = cluster.certificates_api()

        assert api is mock_api.return_value


class TestClusterCaBundle:
    """Tests for reading the CA bundle."""

    def test_ca_bundle_command(self, mock_kube_contexts, mock_kube_config):
        """Test the kubectl command targets the selected context."""
        cluster = Cluster(select_context=False, kubectl="/usr/local/bin/kubectl")

        cmd = cluster.ca_bundle_command()

        assert cmd[0] == "/usr/local/bin/kubectl"
        assert cmd[1:3] == ["config", "view"]
        assert "--raw" in cmd
        assert "--minify" in cmd
        assert "--flatten" in cmd
        assert "--context=test-context" in cmd
        assert cmd[-1] == "jsonpath={.clusters[0].cluster.certificate-authority-data}"

    def test_shell_command_is_pasteable(self, mock_kube_contexts, mock_kube_config):
        """Test the displayed command uses plain kubectl and quotes the jsonpath."""
        cluster = Cluster(select_context=False, kubectl="/usr/local/bin/kubectl")

        command = cluster.ca_bundle_shell_command()

        assert command.startswith("kubectl config view")
        assert "'jsonpath={.clusters[0].cluster.certificate-authority-data}'" in command

    def test_read_ca_bundle(self, mock_kube_contexts, mock_kube_config, mock_subprocess):
        """Test the CA data is returned stripped."""
        mock_subprocess.return_value = MagicMock(returncode=0, stdout="LS0tLS1CRUdJTg==\n", stderr="")
        cluster = Cluster(select_context=False)

        assert cluster.read_ca_bundle() == "LS0tLS1CRUdJTg=="

    def test_read_ca_bundle_empty(self, mock_kube_contexts, mock_kube_config, mock_subprocess):
        """Test a kubeconfig without embedded CA data yields None."""
        cluster = Cluster(select_context=False)

        assert cluster.read_ca_bundle() is None

    def test_read_ca_bundle_failure(self, mock_kube_contexts, mock_kube_config, mock_subprocess):
        """Test kubectl failures are not fatal."""
        mock_subprocess.side_effect = subprocess.CalledProcessError(1, ["kubectl"], stderr="error")
        cluster = Cluster(select_context=False)

        assert cluster.read_ca_bundle() is None

    def test_repr(self, mock_kube_contexts, mock_kube_config):
        """Test repr contains the context."""
        assert "test-context" in repr(Cluster(select_context=False))
