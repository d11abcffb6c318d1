"""
Tests for the step runner — ordering, abort, tolerated failures, halt,
and idempotent re-runs.
"""

from geonode_devenv.core.engine.executor import (
    ProvisionReport,
    StepOutcome,
    generate_run_id,
    run_step,
    run_steps,
)
from geonode_devenv.core.engine.step import Step, StepContext
from geonode_devenv.core.services.provisioning_steps import build_steps
from geonode_devenv.core.use_cases.provision import run_provision

from tests.fakes import FakeAdapters, FakeHost


def _run(settings, host, adapters: FakeAdapters, **kwargs):
    return run_provision(
        settings=settings,
        host=host,
        registry=adapters.registry,
        sleep=lambda _s: None,
        **kwargs,
    )


def _docker_ready(host: FakeHost) -> FakeHost:
    host.commands |= {"docker"}
    host.succeeding |= {("docker", "compose", "version")}
    return host


# ── Report ──────────────────────────────────────────────────────────


class TestProvisionReport:
    def test_empty_is_ok(self):
        report = ProvisionReport()
        assert report.status == "ok"
        assert report.exit_code == 0
        assert report.stopped_at is None

    def test_counts(self):
        report = ProvisionReport(
            outcomes=[
                StepOutcome("a", "A", status="ok"),
                StepOutcome("b", "B", status="skipped"),
                StepOutcome("c", "C", status="warning", message="up failed"),
                StepOutcome("d", "D", status="failed", exit_code=2),
            ]
        )
        assert report.total == 4
        assert report.succeeded == 2
        assert report.skipped == 1
        assert report.failed == 1
        assert [o.step_id for o in report.warnings] == ["c"]
        assert report.status == "failed"
        assert report.exit_code == 2
        assert report.stopped_at == "d"

    def test_halted_exits_zero(self):
        report = ProvisionReport(outcomes=[StepOutcome("docker", "Docker", status="halted")])
        assert report.status == "halted"
        assert report.exit_code == 0
        assert report.stopped_at == "docker"

    def test_failed_without_code_exits_one(self):
        report = ProvisionReport(outcomes=[StepOutcome("x", "X", status="failed", exit_code=0)])
        assert report.exit_code == 1

    def test_run_id_format(self):
        run_id = generate_run_id()
        assert run_id.startswith("run-")
        assert len(run_id.split("-")) == 4


# ── Single Step ─────────────────────────────────────────────────────


class TestRunStep:
    def test_planner_exception_fails_step(self, step_context: StepContext):
        def broken(ctx, plan):
            raise RuntimeError("boom")

        outcome = run_step(Step("broken", "Broken", broken), step_context)
        assert outcome.failed
        assert "boom" in outcome.message

    def test_stops_at_first_failed_action(self, step_context: StepContext, adapters: FakeAdapters):
        def three(ctx, plan):
            for n in range(3):
                plan.add("shell", f"cmd {n}", command=f"echo {n}")

        adapters.fail("three:2", error="second failed", return_code=5)
        outcome = run_step(Step("three", "Three", three), step_context)
        assert outcome.failed
        assert outcome.exit_code == 5
        assert len(outcome.receipts) == 2
        assert [c.action.id for c in adapters.calls("three")] == ["three:1", "three:2"]

    def test_tolerated_failure_is_warning(self, step_context: StepContext, adapters: FakeAdapters):
        def one(ctx, plan):
            plan.add("docker", "up", operation="compose")

        adapters.fail("flaky", error="compose up failed")
        outcome = run_step(Step("flaky", "Flaky", one, tolerate_failure=True), step_context)
        assert outcome.status == "warning"
        assert outcome.message == "compose up failed"

    def test_readiness_polled_after_actions(self, step_context: StepContext, adapters: FakeAdapters):
        def wait(ctx, plan):
            plan.wait("docker", "Database", operation="exec", container="db", args=["pg_isready"])

        adapters.mocks["docker"].fail_times("wait:ready", 2)
        outcome = run_step(Step("wait", "Wait", wait), step_context)
        assert outcome.status == "ok"
        assert outcome.receipts[-1].metadata["attempts"] == 3


# ── Whole Sequence ──────────────────────────────────────────────────


class TestRunSequence:
    def test_fresh_host_halts_after_docker_install(self, settings, fresh_host, adapters):
        result = _run(settings, fresh_host, adapters)
        report = result.report

        assert result.exit_code == 0
        assert report.status == "halted"
        assert report.stopped_at == "docker"
        assert "log out and log back in" in report.outcomes[-1].message
        assert adapters.calls("docker-compose") == []
        assert adapters.calls("clone-geonode") == []
        assert result.hints == []

    def test_full_run_after_relogin(self, settings, fresh_host, adapters):
        result = _run(settings, _docker_ready(fresh_host), adapters)
        report = result.report

        assert result.exit_code == 0
        assert report.status == "ok"
        assert [o.step_id for o in report.outcomes] == [s.id for s in build_steps(settings)]
        assert [o.step_id for o in report.outcomes if o.status == "skipped"] == [
            "docker",
            "docker-compose",
        ]
        assert "sudo reboot" in result.hints

    def test_failure_stops_the_run(self, settings, fresh_host, adapters):
        adapters.fail("compose-build", error="build failed", return_code=17)
        result = _run(settings, _docker_ready(fresh_host), adapters)
        report = result.report

        assert report.status == "failed"
        assert report.stopped_at == "compose-build"
        assert result.exit_code == 17
        assert adapters.calls("compose-up") == []
        assert adapters.calls("cleanup") == []

    def test_compose_up_failure_continues(self, settings, fresh_host, adapters):
        adapters.fail("compose-up", error="port already allocated")
        result = _run(settings, _docker_ready(fresh_host), adapters)
        report = result.report

        assert result.exit_code == 0
        assert report.status == "ok"
        assert [o.step_id for o in report.warnings] == ["compose-up"]
        assert adapters.calls("wait-database")
        assert adapters.calls("cleanup")

    def test_missing_helper_exits_one(self, settings, adapters):
        host = _docker_ready(FakeHost())
        result = _run(settings, host, adapters)

        assert result.exit_code == 1
        assert result.report.stopped_at == "env-file"
        assert result.report.outcomes[-1].message == "Error: create-envfile.py not found."
        assert adapters.calls("env-passwords") == []

    def test_not_root_exits_one_before_any_change(self, settings, adapters):
        result = _run(settings, FakeHost(root=False), adapters)

        assert result.exit_code == 1
        assert result.report.stopped_at == "privileges"
        assert result.report.total == 1
        assert adapters.calls("install-dir") == []

    def test_rerun_repeats_no_install_or_clone(self, settings, provisioned_host, adapters):
        result = _run(settings, provisioned_host, adapters)
        skipped = {o.step_id for o in result.report.outcomes if o.status == "skipped"}

        assert result.exit_code == 0
        assert skipped == {
            "packages",
            "docker",
            "docker-compose",
            "clone-geonode",
            "env-file",
            "env-passwords",
            "clone-client",
            "editor",
        }
        for step_id in skipped:
            assert adapters.calls(step_id) == []

    def test_mock_mode_needs_no_root(self, settings):
        result = run_provision(
            settings=settings,
            host=_docker_ready(FakeHost(root=False)),
            mock_mode=True,
            sleep=lambda _s: None,
        )
        # env-file is blocked: the helper script is not on this fake host
        assert result.report.outcomes[0].status == "ok"
        assert result.report.stopped_at == "env-file"

    def test_dry_run_dispatches_nothing(self, settings, fresh_host, adapters):
        result = _run(settings, _docker_ready(fresh_host), adapters, dry_run=True)

        assert result.exit_code == 0
        assert all(m.call_count == 0 for m in adapters.mocks.values())
        receipts = [r for o in result.report.outcomes for r in o.receipts]
        assert receipts
        assert all(r.skipped for r in receipts)

    def test_skip_flags(self, settings, fresh_host, adapters):
        result = _run(
            settings,
            _docker_ready(fresh_host),
            adapters,
            include_client=False,
            include_editor=False,
        )
        ids = [o.step_id for o in result.report.outcomes]
        assert "compile-client" not in ids
        assert "editor" not in ids
        assert not any(str(settings.client_path) in h for h in result.hints)

    def test_callbacks(self, settings, fresh_host, adapters):
        started: list[str] = []
        ended: list[str] = []
        run_steps(
            build_steps(settings)[:3],
            StepContext(settings=settings, host=fresh_host, registry=adapters.registry),
            on_step_start=lambda s: started.append(s.id),
            on_step_end=lambda o: ended.append(o.status),
        )
        assert started == ["privileges", "install-dir", "apt-update"]
        assert ended == ["ok", "ok", "ok"]

    def test_poll_timeout_fails_run(self, settings, fresh_host, adapters):
        now = [0.0]

        def sleep(seconds: float) -> None:
            now[0] += seconds

        settings.poll.timeout = 10
        adapters.mocks["docker"].fail_times("wait-database:ready", 1000)
        ctx = StepContext(
            settings=settings,
            host=_docker_ready(fresh_host),
            registry=adapters.registry,
            sleep=sleep,
            clock=lambda: now[0],
        )
        report = run_steps(build_steps(settings), ctx)

        assert report.stopped_at == "wait-database"
        assert "not ready after 10s" in report.outcomes[-1].message
        assert adapters.calls("database-users") == []


class TestInstallDirCreated:
    def test_real_filesystem_step(self, settings, fresh_host):
        from geonode_devenv.adapters.registry import default_registry

        ctx = StepContext(settings=settings, host=fresh_host, registry=default_registry())
        report = run_steps(build_steps(settings)[:2], ctx)
        assert report.status == "ok"
        assert settings.install_path.is_dir()
