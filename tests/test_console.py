"""Tests for console.py module."""

from unittest.mock import patch

from rich.panel import Panel

from webhook_cert_auto import console


class TestConsoleOutput:
    """Tests for console output functions."""

    def test_info_message(self):
        """Test info message format."""
        with patch.object(console.console, "print") as mock_print:
            console.info("Test message")
            mock_print.assert_called_once()
            call_arg = mock_print.call_args[0][0]
            assert "ℹ" in call_arg
            assert "Test message" in call_arg

    def test_success_message(self):
        """Test success message format."""
        with patch.object(console.console, "print") as mock_print:
            console.success("Operation complete")
            call_arg = mock_print.call_args[0][0]
            assert "✓" in call_arg
            assert "Operation complete" in call_arg

    def test_warning_message(self):
        """Test warning message format."""
        with patch.object(console.console, "print") as mock_print:
            console.warning("Be careful")
            call_arg = mock_print.call_args[0][0]
            assert "⚠" in call_arg

    def test_error_message(self):
        """Test error message format."""
        with patch.object(console.console, "print") as mock_print:
            console.error("Something failed")
            call_arg = mock_print.call_args[0][0]
            assert "✗" in call_arg
            assert "Something failed" in call_arg

    def test_action_and_step(self):
        """Test action and step markers."""
        with patch.object(console.console, "print") as mock_print:
            console.action("Doing something")
            console.step("Sub-step here")
            assert "→" in mock_print.call_args_list[0][0][0]
            assert "•" in mock_print.call_args_list[1][0][0]

    def test_highlight_returns_markup(self):
        """Test highlight returns Rich markup."""
        assert console.highlight("important") == "[highlight]important[/highlight]"

    def test_newline(self):
        """Test newline prints empty line."""
        with patch.object(console.console, "print") as mock_print:
            console.newline()
            mock_print.assert_called_once_with()


class TestConsoleSpinner:
    """Tests for spinner context manager."""

    def test_spinner_context_manager(self):
        """Test spinner works as context manager."""
        with patch.object(console.console, "status") as mock_status:
            mock_status.return_value.__enter__ = lambda x: None
            mock_status.return_value.__exit__ = lambda x, *args: None
            with console.spinner("Loading..."):
                pass
            mock_status.assert_called_once()


class TestConsoleSummaryPanel:
    """Tests for summary panel."""

    def test_summary_panel(self):
        """Test summary panel renders."""
        with patch.object(console.console, "print") as mock_print:
            console.summary_panel("Test Summary", {"Key1": "Value1", "Key2": "Value2"})
            mock_print.assert_called_once()


class TestCaBundleInstructions:
    """Tests for the CA bundle instructions."""

    def test_instructions_name_webhook_documents(self):
        """Test both webhook documents are mentioned."""
        with patch.object(console.console, "print") as mock_print:
            console.ca_bundle_instructions("kubectl config view --raw")

        printed = " ".join(str(call.args[0]) for call in mock_print.call_args_list if call.args)
        assert "validating-webhook.yaml" in printed
        assert "mutating-webhook.yaml" in printed
        assert "CA_BUNDLE" in printed

    def test_instructions_without_bundle(self):
        """Test no bundle panel is printed when the CA data is unknown."""
        with patch.object(console.console, "print") as mock_print:
            console.ca_bundle_instructions("kubectl config view --raw")

        assert not any(call.args and isinstance(call.args[0], Panel) for call in mock_print.call_args_list)

    def test_instructions_with_bundle(self):
        """Test the CA data is shown when available."""
        with patch.object(console.console, "print") as mock_print:
            console.ca_bundle_instructions("kubectl config view --raw", "LS0tLS1CRUdJTg==")

        panels = [call.args[0] for call in mock_print.call_args_list if call.args and isinstance(call.args[0], Panel)]
        assert len(panels) == 1
        assert panels[0].renderable == "LS0tLS1CRUdJTg=="
