"""Tests for the macOS keychain secret provider."""

from cookiebridge.keystore.macos import MacKeychainSecretProvider
from cookiebridge.keystore.process import TIMEOUT_EXIT_CODE, CommandResult

EDGE_LABELS = (
    ("Microsoft Edge", "Microsoft Edge Safe Storage"),
    ("Microsoft Edge", "Microsoft Edge"),
)


class TestMacKeychainSecretProvider:
    """Tests for MacKeychainSecretProvider."""

    def test_reads_password(self, fake_runner) -> None:
        """Reads password."""
        runner = fake_runner([CommandResult(0, "hunter2\n", "")])
        provider = MacKeychainSecretProvider([("Chrome", "Chrome Safe Storage")], timeout=4, runner=runner)

        result = provider.obtain()

        assert result.value == b"hunter2"
        assert result.warnings == []
        assert runner.calls == [
            (["security", "find-generic-password", "-w", "-a", "Chrome", "-s", "Chrome Safe Storage"], 4)
        ]

    def test_falls_back_to_next_label(self, fake_runner) -> None:
        """Falls back to next label."""
        runner = fake_runner([CommandResult(44, "", "item not found"), CommandResult(0, "edge-pw", "")])

        result = MacKeychainSecretProvider(EDGE_LABELS, runner=runner).obtain()

        assert result.value == b"edge-pw"
        assert result.warnings == []
        assert len(runner.calls) == 2

    def test_reports_first_failure(self, fake_runner) -> None:
        """Reports first failure."""
        runner = fake_runner([CommandResult(44, "", "item not found"), CommandResult(TIMEOUT_EXIT_CODE, "", "")])

        result = MacKeychainSecretProvider(EDGE_LABELS, runner=runner).obtain()

        assert not result.ok
        assert result.warnings == [
            "Failed to read macOS Keychain (Microsoft Edge Safe Storage): item not found"
        ]

    def test_empty_password(self, fake_runner) -> None:
        """Empty password."""
        runner = fake_runner([CommandResult(0, "\n", "")])

        result = MacKeychainSecretProvider([("Chrome", "Chrome Safe Storage")], runner=runner).obtain()

        assert result.value == b""
        assert result.warnings == ["macOS Keychain returned an empty Chrome Safe Storage password."]

    def test_no_labels(self, fake_runner) -> None:
        """No labels."""
        runner = fake_runner()

        result = MacKeychainSecretProvider([], runner=runner).obtain()

        assert not result.ok
        assert runner.calls == []

    def test_repr_hides_secret(self, fake_runner) -> None:
        """Repr hides secret."""
        runner = fake_runner([CommandResult(0, "hunter2", "")])

        result = MacKeychainSecretProvider([("Chrome", "Chrome Safe Storage")], runner=runner).obtain()

        assert "hunter2" not in repr(result)
