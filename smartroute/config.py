"""Configuration management for SmartRoute."""

import os
from dataclasses import dataclass, asdict, fields
from pathlib import Path
from typing import Any, Dict, Optional
import logging

import yaml
from dotenv import load_dotenv


ENV_PREFIX = "SMARTROUTE_"


@dataclass
class RoutingConstants:
    """Scoring and routing constants used across the engine."""

    # Admission
    admission_min_success_rate: float = 0.5
    admission_max_execution_time: float = 30.0  # seconds
    min_availability_score: float = 0.3

    # Overall score
    success_weight: float = 0.4
    speed_weight: float = 0.3
    reliability_weight: float = 0.3
    slow_execution_time: float = 10.0  # seconds
    reliability_executions: int = 100

    # Availability under system load
    availability_penalty: float = 0.2
    availability_floor: float = 0.1
    availability_recovery: float = 0.1
    availability_ceiling: float = 1.0
    cpu_load_ceiling: float = 0.8
    memory_ceiling_bytes: int = 500 * 1024 * 1024

    # History and suggestions
    max_history_size: int = 1000
    context_history_window: int = 10
    max_suggestions: int = 5

    # Pattern mining and optimization hints
    temporal_pattern_min_count: int = 2
    workspace_pattern_min_count: int = 3
    unused_tools_window: int = 50
    unused_tools_threshold: int = 3
    low_success_rate: float = 0.7
    low_success_min_executions: int = 5

    # Intelligent recommendations
    target_success_rate: float = 0.8
    target_execution_time: float = 5.0  # seconds
    working_hours_start: int = 9
    working_hours_end: int = 17
    frequent_tool_min_count: int = 3
    most_used_tools_limit: int = 5

    def updated(self, overrides: Dict[str, Any]) -> "RoutingConstants":
        """Return a copy with known keys replaced, coerced to the field type."""
        values = asdict(self)
        for f in fields(self):
            if f.name in overrides and overrides[f.name] is not None:
                values[f.name] = type(values[f.name])(overrides[f.name])
        return RoutingConstants(**values)


class Config:
    """Configuration manager for SmartRoute."""

    def __init__(self, config_path: Optional[Path] = None):
        """Initialize configuration with environment variables and config files."""
        self.logger = logging.getLogger("smartroute.config")

        # Load environment variables from .env file if it exists
        load_dotenv()

        self.config_path = config_path or Path.home() / ".smartrouterc"
        self.user_config = self._load_user_config()

        self.log_level = os.getenv(f"{ENV_PREFIX}LOG_LEVEL", self.user_config.get("log_level", "WARNING"))
        self.register_builtin_tools = bool(self.user_config.get("register_builtin_tools", True))
        self.routing = self._build_routing_constants()

    def _load_user_config(self) -> Dict:
        """Load user configuration from ~/.smartrouterc if it exists."""
        if self.config_path.exists():
            try:
                with open(self.config_path, 'r') as f:
                    return yaml.safe_load(f) or {}
            except (OSError, yaml.YAMLError) as e:
                self.logger.warning(f"Ignoring unreadable config {self.config_path}: {e}")
                return {}
        return {}

    def _build_routing_constants(self) -> RoutingConstants:
        """Defaults, then the `routing:` mapping, then SMARTROUTE_* variables."""
        overrides: Dict[str, Any] = dict(self.user_config.get("routing", {}) or {})

        for f in fields(RoutingConstants):
            env_value = os.getenv(f"{ENV_PREFIX}{f.name.upper()}")
            if env_value is not None:
                overrides[f.name] = env_value

        try:
            return RoutingConstants().updated(overrides)
        except (TypeError, ValueError) as e:
            self.logger.warning(f"Invalid routing override, using defaults: {e}")
            return RoutingConstants()

    def get_routing_value(self, name: str) -> Any:
        """Get a single routing constant by name."""
        return getattr(self.routing, name)

    def save_routing(self) -> None:
        """Persist the current routing constants into the config file."""
        self.user_config["routing"] = asdict(self.routing)
        self._save_user_config()

    def _save_user_config(self) -> None:
        """Save user configuration to file."""
        with open(self.config_path, 'w') as f:
            yaml.dump(self.user_config, f, default_flow_style=False)

    def create_default_config(self) -> None:
        """Create a default .smartrouterc file for the user."""
        default_config = {
            "log_level": "WARNING",
            "register_builtin_tools": True,
            "routing": asdict(RoutingConstants()),
        }

        with open(self.config_path, 'w') as f:
            yaml.dump(default_config, f, default_flow_style=False)
