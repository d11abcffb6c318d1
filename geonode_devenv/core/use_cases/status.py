"""
Status use case — the last recorded provisioning run.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from geonode_devenv.core.config.loader import ConfigError, load_settings
from geonode_devenv.core.models.state import SetupState
from geonode_devenv.core.persistence.audit import AuditEntry, AuditWriter
from geonode_devenv.core.persistence.state_file import default_state_path, load_state


@dataclass
class StatusResult:
    install_dir: Path | None = None
    state: SetupState | None = None
    history: list[AuditEntry] = field(default_factory=list)
    error: str | None = None

    @property
    def has_run(self) -> bool:
        return bool(self.state and self.state.last_run.run_id)

    def to_dict(self) -> dict:
        if self.error:
            return {"error": self.error}
        result: dict = {"install_dir": str(self.install_dir), "has_run": self.has_run}
        if self.state and self.has_run:
            result["last_run"] = self.state.last_run.model_dump(mode="json")
            result["steps"] = {
                name: {"status": s.last_status, "at": s.last_run_at, "message": s.message}
                for name, s in self.state.steps.items()
            }
        result["history"] = [e.model_dump(mode="json") for e in self.history]
        return result


def get_status(config_path: Path | None = None, history: int = 5) -> StatusResult:
    """Load the run state and the most recent audit entries."""
    result = StatusResult()
    try:
        settings = load_settings(config_path)
    except ConfigError as e:
        result.error = str(e)
        return result

    install_dir = settings.install_path
    result.install_dir = install_dir
    result.state = load_state(default_state_path(install_dir))
    result.history = AuditWriter(install_dir=install_dir).read_recent(history)
    return result
