"""
Tests for the adapter contract, registry, mock, brew, patch, shell and
filesystem adapters.
"""

import shutil
from pathlib import Path

import pytest

from ampp_setup.adapters.base import ExecutionContext
from ampp_setup.adapters.homebrew import BrewAdapter
from ampp_setup.adapters.mock import MockAdapter
from ampp_setup.adapters.patch import PatchAdapter, patch_file_path
from ampp_setup.adapters.registry import AdapterRegistry, create_default_registry
from ampp_setup.adapters.shell.command import ShellCommandAdapter
from ampp_setup.adapters.shell.filesystem import FilesystemAdapter
from ampp_setup.core.models.action import Action, Receipt

# ── Protocol Tests ───────────────────────────────────────────────────


class TestExecutionContext:
    def test_relative_path_resolves_against_prefix(self):
        ctx = ExecutionContext(action=Action(id="t", adapter="filesystem"), prefix="/opt/homebrew")
        assert ctx.resolve("etc/httpd/httpd.conf") == Path("/opt/homebrew/etc/httpd/httpd.conf")

    def test_absolute_path_untouched(self):
        ctx = ExecutionContext(action=Action(id="t", adapter="filesystem"), prefix="/opt/homebrew")
        assert ctx.resolve("/tmp/x") == Path("/tmp/x")

    def test_home_is_expanded(self):
        ctx = ExecutionContext(action=Action(id="t", adapter="filesystem"), prefix="/opt/homebrew")
        assert ctx.resolve("~/.zshrc") == Path.home() / ".zshrc"

    def test_no_prefix(self):
        ctx = ExecutionContext(action=Action(id="t", adapter="filesystem"))
        assert ctx.resolve("var/www") == Path("var/www")


# ── Mock Adapter Tests ───────────────────────────────────────────────


class TestMockAdapter:
    def test_default_success(self):
        mock = MockAdapter(adapter_name="test-mock")
        receipt = mock.execute(ExecutionContext(action=Action(id="op-1", adapter="test-mock")))
        assert receipt.ok
        assert mock.call_count == 1

    def test_custom_response(self):
        mock = MockAdapter()
        mock.set_response("op-1", Receipt.success(adapter="mock", action_id="op-1", output="custom"))
        receipt = mock.execute(ExecutionContext(action=Action(id="op-1", adapter="mock")))
        assert receipt.output == "custom"

    def test_set_failure_with_metadata(self):
        mock = MockAdapter()
        mock.set_failure("op-fail", error="Intentional failure", target="/x")
        receipt = mock.execute(ExecutionContext(action=Action(id="op-fail", adapter="mock")))
        assert receipt.failed
        assert "Intentional failure" in receipt.error
        assert receipt.metadata["target"] == "/x"

    def test_executed_ids_in_order(self):
        mock = MockAdapter()
        for i in range(3):
            mock.execute(ExecutionContext(action=Action(id=f"op-{i}", adapter="mock")))
        assert mock.executed_ids == ["op-0", "op-1", "op-2"]

    def test_reset(self):
        mock = MockAdapter()
        mock.set_failure("op-1")
        mock.execute(ExecutionContext(action=Action(id="op-1", adapter="mock")))
        mock.reset()
        assert mock.call_count == 0
        assert mock.execute(ExecutionContext(action=Action(id="op-1", adapter="mock"))).ok

    def test_is_available(self):
        assert MockAdapter(available=True).is_available()
        assert not MockAdapter(available=False).is_available()


# ── Registry Tests ──────────────────────────────────────────────────


class _ExplodingAdapter(MockAdapter):
    def execute(self, context):
        raise RuntimeError("boom")


class _NonValidatingAdapter(MockAdapter):
    def validate(self, context):
        return False, "not today"


class TestAdapterRegistry:
    def test_register_and_get(self):
        registry = AdapterRegistry()
        mock = MockAdapter(adapter_name="test")
        registry.register(mock)
        assert registry.get("test") is mock
        assert "test" in registry.list_adapters()

    def test_unregister(self):
        registry = AdapterRegistry()
        registry.register(MockAdapter(adapter_name="temp"))
        registry.unregister("temp")
        assert registry.get("temp") is None

    def test_adapter_status(self):
        registry = AdapterRegistry()
        registry.register(MockAdapter(adapter_name="up", available=True))
        registry.register(MockAdapter(adapter_name="down", available=False))
        status = registry.adapter_status()
        assert status["up"]["available"] is True
        assert status["down"]["available"] is False

    def test_missing_adapter_fails(self):
        receipt = AdapterRegistry().execute_action(Action(id="x", adapter="nope"))
        assert receipt.failed
        assert "No adapter registered" in receipt.error

    def test_dispatch_by_adapter_name(self):
        registry = AdapterRegistry(prefix="/opt/homebrew")
        mock = MockAdapter(adapter_name="brew")
        registry.register(mock)
        receipt = registry.execute_action(Action(id="a1", adapter="brew"))
        assert receipt.ok
        assert mock.call_log[0].prefix == "/opt/homebrew"

    def test_prefix_change_is_seen_by_later_actions(self):
        registry = AdapterRegistry()
        mock = MockAdapter(adapter_name="brew")
        registry.register(mock)
        registry.prefix = "/usr/local"
        registry.execute_action(Action(id="a1", adapter="brew"))
        assert mock.call_log[0].prefix == "/usr/local"

    def test_dry_run_skips_execution(self):
        registry = AdapterRegistry()
        mock = MockAdapter(adapter_name="brew")
        registry.register(mock)
        receipt = registry.execute_action(Action(id="a1", adapter="brew"), dry_run=True)
        assert receipt.status == "skipped"
        assert "[dry-run]" in receipt.output
        assert mock.call_count == 0

    def test_validation_failure(self):
        registry = AdapterRegistry()
        registry.register(_NonValidatingAdapter(adapter_name="brew"))
        receipt = registry.execute_action(Action(id="a1", adapter="brew"))
        assert receipt.failed
        assert "not today" in receipt.error

    def test_adapter_exception_becomes_receipt(self):
        registry = AdapterRegistry()
        registry.register(_ExplodingAdapter(adapter_name="brew"))
        receipt = registry.execute_action(Action(id="a1", adapter="brew"))
        assert receipt.failed
        assert "boom" in receipt.error

    def test_mock_mode_routes_everything(self):
        registry = AdapterRegistry()
        mock = MockAdapter()
        registry.set_mock_mode(True, mock)
        registry.execute_action(Action(id="a", adapter="brew"))
        registry.execute_action(Action(id="b", adapter="patch"))
        assert mock.executed_ids == ["a", "b"]

    def test_mock_mode_without_adapter(self):
        registry = AdapterRegistry(mock_mode=True)
        receipt = registry.execute_action(Action(id="a", adapter="brew"))
        assert receipt.ok
        assert receipt.metadata["mock"] is True

    def test_default_registry(self):
        registry = create_default_registry(prefix="/opt/homebrew")
        assert sorted(registry.list_adapters()) == ["brew", "filesystem", "patch", "shell"]
        assert registry.prefix == "/opt/homebrew"


# ── Brew Adapter Tests ──────────────────────────────────────────────


def _ctx(adapter: str, params: dict, *, prefix: str = "", dry_run: bool = False) -> ExecutionContext:
    return ExecutionContext(
        action=Action(id="test", adapter=adapter, params=params),
        prefix=prefix,
        dry_run=dry_run,
        params=params,
    )


class TestBrewAdapter:
    def test_build_command(self):
        brew = BrewAdapter()
        assert brew.build_command({"operation": "update"}) == ["brew", "update"]
        assert brew.build_command(
            {"operation": "uninstall", "formulae": ["php", "httpd"]}
        ) == ["brew", "uninstall", "--force", "php", "httpd"]
        assert brew.build_command(
            {"operation": "service_start", "formulae": ["httpd"]}
        ) == ["brew", "services", "start", "httpd"]

    def test_unknown_operation(self):
        valid, msg = BrewAdapter().validate(_ctx("brew", {"operation": "upgrade"}, dry_run=True))
        assert not valid
        assert "Unknown operation" in msg

    def test_install_needs_formulae(self):
        valid, msg = BrewAdapter().validate(_ctx("brew", {"operation": "install"}, dry_run=True))
        assert not valid
        assert "formula" in msg

    def test_dry_run_does_not_need_brew(self):
        adapter = BrewAdapter(brew="definitely-not-brew")
        valid, _ = adapter.validate(
            _ctx("brew", {"operation": "install", "formulae": ["httpd"]}, dry_run=True)
        )
        assert valid

    def test_missing_brew(self):
        adapter = BrewAdapter(brew="definitely-not-brew")
        valid, msg = adapter.validate(_ctx("brew", {"operation": "update"}))
        assert not valid
        assert "brew not found" in msg

    def test_execute_success(self, monkeypatch):
        calls = []

        def fake_run(cmd, **kwargs):
            calls.append((cmd, kwargs))
            return {"ok": True, "stdout": "done\n", "stderr": "", "return_code": 0}

        monkeypatch.setattr("ampp_setup.adapters.homebrew.run_subprocess", fake_run)
        receipt = BrewAdapter().execute(
            _ctx("brew", {"operation": "install", "formulae": ["httpd", "mariadb"]})
        )
        assert receipt.ok
        assert receipt.output == "done"
        assert calls[0][0] == ["brew", "install", "httpd", "mariadb"]
        assert calls[0][1]["stream"] is True

    def test_execute_failure(self, monkeypatch):
        monkeypatch.setattr(
            "ampp_setup.adapters.homebrew.run_subprocess",
            lambda cmd, **kw: {"ok": False, "error": "Error: No such formula", "stdout": "",
                               "return_code": 1},
        )
        receipt = BrewAdapter().execute(
            _ctx("brew", {"operation": "service_stop", "formulae": ["mysql"]})
        )
        assert receipt.failed
        assert receipt.error == "Error: No such formula"
        assert receipt.metadata["return_code"] == 1


# ── Shell Command Adapter Tests ─────────────────────────────────────


class TestShellCommandAdapter:
    def test_validate_missing_command(self):
        valid, msg = ShellCommandAdapter().validate(_ctx("shell", {}))
        assert not valid
        assert "command" in msg

    def test_validate_missing_executable(self):
        valid, msg = ShellCommandAdapter().validate(_ctx("shell", {"command": ["no-such-tool-xyz"]}))
        assert not valid
        assert "not found" in msg

    def test_run_list_command(self):
        receipt = ShellCommandAdapter().execute(_ctx("shell", {"command": ["echo", "hello"]}))
        assert receipt.ok
        assert receipt.output == "hello"

    def test_run_shell_string(self):
        receipt = ShellCommandAdapter().execute(_ctx("shell", {"command": "echo a && echo b"}))
        assert receipt.ok
        assert receipt.output.splitlines() == ["a", "b"]

    def test_non_zero_exit(self):
        receipt = ShellCommandAdapter().execute(_ctx("shell", {"command": "exit 3"}))
        assert receipt.failed
        assert receipt.metadata["return_code"] == 3
        assert "exit 3" in receipt.error

    def test_cwd_relative_to_prefix(self, prefix: Path):
        (prefix / "var").mkdir()
        receipt = ShellCommandAdapter().execute(
            _ctx("shell", {"command": ["pwd"], "cwd": "var"}, prefix=str(prefix))
        )
        assert receipt.ok
        assert Path(receipt.output).resolve() == (prefix / "var").resolve()


# ── Filesystem Adapter Tests ────────────────────────────────────────


class TestFilesystemAdapter:
    def test_validate_unknown_operation(self):
        valid, msg = FilesystemAdapter().validate(_ctx("filesystem", {"operation": "chmod", "path": "x"}))
        assert not valid
        assert "Unknown operation" in msg

    def test_validate_write_needs_content(self):
        valid, msg = FilesystemAdapter().validate(_ctx("filesystem", {"operation": "write", "path": "x"}))
        assert not valid
        assert "content" in msg

    def test_write_relative_to_prefix(self, prefix: Path):
        receipt = FilesystemAdapter().execute(_ctx(
            "filesystem",
            {"operation": "write", "path": "var/www/phpinfo.php", "content": "<?php phpinfo();"},
            prefix=str(prefix),
        ))
        assert receipt.ok
        assert (prefix / "var/www/phpinfo.php").read_text() == "<?php phpinfo();"

    def test_touch_and_mkdir(self, prefix: Path):
        fs = FilesystemAdapter()
        assert fs.execute(_ctx("filesystem", {"operation": "mkdir", "path": "var/www/mailtodisk"},
                               prefix=str(prefix))).ok
        assert fs.execute(_ctx("filesystem", {"operation": "touch", "path": "var/www/phpmyadmin"},
                               prefix=str(prefix))).ok
        assert (prefix / "var/www/mailtodisk").is_dir()
        assert (prefix / "var/www/phpmyadmin").is_file()

    def test_append_once(self, tmp_path: Path):
        rc = tmp_path / ".zshrc"
        rc.write_text("alias ll='ls -l'\n")
        params = {
            "operation": "append",
            "path": str(rc),
            "content": 'export PATH="/opt/homebrew/opt/php@8.4/bin:$PATH"\n',
            "unless_contains": "/opt/homebrew/opt/php@8.4/bin",
        }
        fs = FilesystemAdapter()
        first = fs.execute(_ctx("filesystem", params))
        second = fs.execute(_ctx("filesystem", params))

        assert first.metadata["appended"] is True
        assert second.metadata["appended"] is False
        assert rc.read_text().count("php@8.4/bin") == 1
        assert rc.read_text().startswith("alias ll")

    def test_append_creates_file(self, tmp_path: Path):
        target = tmp_path / ".zprofile"
        receipt = FilesystemAdapter().execute(
            _ctx("filesystem", {"operation": "append", "path": str(target), "content": "x\n"})
        )
        assert receipt.ok
        assert target.read_text() == "x\n"

    def test_remove_directory_file_and_missing(self, prefix: Path):
        (prefix / "var/www/cgi-bin").mkdir(parents=True)
        (prefix / "var/www/cgi-bin/test-cgi").write_text("#!/bin/sh\n")
        (prefix / "var/www/index.html").write_text("<h1>It works!</h1>")
        fs = FilesystemAdapter()

        r1 = fs.execute(_ctx("filesystem", {"operation": "remove", "path": "var/www/cgi-bin"},
                             prefix=str(prefix)))
        r2 = fs.execute(_ctx("filesystem", {"operation": "remove", "path": "var/www/index.html"},
                             prefix=str(prefix)))
        r3 = fs.execute(_ctx("filesystem", {"operation": "remove", "path": "var/mysql"},
                             prefix=str(prefix)))

        assert r1.ok and r1.metadata["removed"] is True
        assert r2.ok and r2.metadata["removed"] is True
        assert r3.ok and r3.metadata["removed"] is False
        assert not (prefix / "var/www/cgi-bin").exists()
        assert not (prefix / "var/www/index.html").exists()

    @pytest.mark.parametrize("operation", ["read", "exists"])
    def test_query_operations_rejected(self, operation, tmp_path: Path):
        ok, reason = FilesystemAdapter().validate(
            _ctx("filesystem", {"operation": operation, "path": str(tmp_path)})
        )
        assert not ok
        assert "Unknown operation" in reason


# ── Patch Adapter Tests ─────────────────────────────────────────────

ORIGINAL = "Listen 80\nDocumentRoot /var/www\nServerName example\n"
GOOD_DIFF = """\
--- httpd.conf
+++ httpd.conf
@@ -1,3 +1,3 @@
-Listen 80
+Listen 8080
 DocumentRoot /var/www
 ServerName example
"""
BAD_DIFF = """\
--- httpd.conf
+++ httpd.conf
@@ -1,3 +1,3 @@
-Listen 443
+Listen 8443
 DocumentRoot /srv/www
 ServerName other
"""

needs_patch = pytest.mark.skipif(shutil.which("patch") is None, reason="patch not installed")


def _patch_ctx(prefix: Path, tmp_path: Path, diff: str, backup: bool = False) -> ExecutionContext:
    return _ctx("patch", {
        "name": "httpd",
        "target": "etc/httpd/httpd.conf",
        "diff": diff,
        "patch_dir": str(tmp_path / "patches"),
        "backup": backup,
    }, prefix=str(prefix))


class TestPatchAdapter:
    @pytest.fixture
    def target(self, prefix: Path) -> Path:
        path = prefix / "etc/httpd/httpd.conf"
        path.parent.mkdir(parents=True)
        path.write_text(ORIGINAL)
        return path

    def test_patch_file_path(self):
        assert patch_file_path("/tmp", "php") == Path("/tmp/ieampp_php.patch")

    def test_validate_missing_params(self, prefix: Path):
        valid, msg = PatchAdapter().validate(_ctx("patch", {"name": "x"}, prefix=str(prefix)))
        assert not valid
        assert "target" in msg

    @needs_patch
    def test_validate_missing_target(self, prefix: Path, tmp_path: Path):
        valid, msg = PatchAdapter().validate(_patch_ctx(prefix, tmp_path, GOOD_DIFF))
        assert not valid
        assert "does not exist" in msg

    @needs_patch
    def test_dry_run_does_not_need_target(self, prefix: Path, tmp_path: Path):
        ctx = _patch_ctx(prefix, tmp_path, GOOD_DIFF).model_copy(update={"dry_run": True})
        valid, _ = PatchAdapter().validate(ctx)
        assert valid

    @needs_patch
    def test_apply(self, target: Path, prefix: Path, tmp_path: Path):
        receipt = PatchAdapter().execute(_patch_ctx(prefix, tmp_path, GOOD_DIFF))
        assert receipt.ok, receipt.error
        assert target.read_text().startswith("Listen 8080\n")
        assert (tmp_path / "patches" / "ieampp_httpd.patch").read_text() == GOOD_DIFF

    @needs_patch
    def test_backup(self, target: Path, prefix: Path, tmp_path: Path):
        receipt = PatchAdapter().execute(_patch_ctx(prefix, tmp_path, GOOD_DIFF, backup=True))
        assert receipt.ok
        backup = Path(receipt.metadata["backup"])
        assert backup.name.startswith("httpd.conf.bak.")
        assert backup.read_text() == ORIGINAL

    @needs_patch
    def test_rejected_hunk(self, target: Path, prefix: Path, tmp_path: Path):
        receipt = PatchAdapter().execute(_patch_ctx(prefix, tmp_path, BAD_DIFF))
        assert receipt.failed
        assert receipt.metadata["target"] == str(target)
        assert receipt.metadata["return_code"] != 0
        assert receipt.metadata["stdout"]
