"""
Configuration management for the UI rendering benchmark.
Loads settings from environment variables and .env file.
"""

import os
import shlex
from pathlib import Path
from typing import Dict, Any, List, Optional
from dotenv import load_dotenv

# Paths resolve against the directory the benchmark is launched from
WORK_DIR = Path.cwd()
load_dotenv(WORK_DIR / ".env")


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


def _env_command(name: str, default: str) -> List[str]:
    """Read an argv-form command from the environment (shell-split)."""
    return shlex.split(os.getenv(name, default))


class Config:
    """Central configuration management."""

    # ==========================================================================
    # Benchmark Settings
    # ==========================================================================
    ITERATIONS: int = int(os.getenv("ITERATIONS", "5"))
    MAX_ATTEMPTS: int = int(os.getenv("MAX_ATTEMPTS", "3"))
    RETRY_PAUSE: float = float(os.getenv("RETRY_PAUSE", "0.5"))
    COOLDOWN: float = float(os.getenv("COOLDOWN", "0.3"))

    # Timeouts (milliseconds, matching the browser automation API)
    SERVER_TIMEOUT_MS: int = int(os.getenv("SERVER_TIMEOUT_MS", "180000"))
    NAVIGATION_TIMEOUT_MS: int = int(os.getenv("NAVIGATION_TIMEOUT_MS", "120000"))
    API_TIMEOUT_MS: int = int(os.getenv("API_TIMEOUT_MS", "60000"))
    PROBE_INTERVAL: float = float(os.getenv("PROBE_INTERVAL", "0.5"))

    # Fixed test parameters
    BULK_ROWS: int = int(os.getenv("BULK_ROWS", "10000"))
    BULK_UPDATES: int = int(os.getenv("BULK_UPDATES", "1000"))
    CHURN_COMPONENTS: int = int(os.getenv("CHURN_COMPONENTS", "1000"))
    CHURN_CYCLES: int = int(os.getenv("CHURN_CYCLES", "100"))

    # Browser
    ROW_SELECTOR: str = os.getenv("ROW_SELECTOR", "table tbody")
    HEADLESS: bool = _env_bool("HEADLESS", "true")
    SERVER_HOST: str = os.getenv("SERVER_HOST", "localhost")

    # Output directories
    OUTPUT_DIR: Path = WORK_DIR / os.getenv("OUTPUT_DIR", "out")
    PLOTS_DIR: Path = OUTPUT_DIR / "plots"

    # Directory holding the benchmarked UI projects
    BENCH_ROOT: Path = Path(os.getenv("BENCH_ROOT", str(WORK_DIR.parent)))

    # ==========================================================================
    # Target Configurations
    # ==========================================================================

    @classmethod
    def get_react_config(cls) -> Dict[str, Any]:
        """Get React (Vite preview) configuration."""
        return {
            "working_directory": cls.BENCH_ROOT / os.getenv("REACT_DIR", "react-bench"),
            "port": int(os.getenv("REACT_PORT", "4173")),
            "build_command": _env_command("REACT_BUILD_COMMAND", "npm run build"),
            "start_command": _env_command("REACT_START_COMMAND", "npm run preview"),
        }

    @classmethod
    def get_vue_config(cls) -> Dict[str, Any]:
        """Get Vue (Vite preview) configuration."""
        return {
            "working_directory": cls.BENCH_ROOT / os.getenv("VUE_DIR", "vue-bench"),
            "port": int(os.getenv("VUE_PORT", "4173")),
            "build_command": _env_command("VUE_BUILD_COMMAND", "npm run build"),
            "start_command": _env_command("VUE_START_COMMAND", "npm run preview"),
        }

    @classmethod
    def get_angular_config(cls) -> Dict[str, Any]:
        """Get Angular (ng serve, production configuration) configuration."""
        return {
            "working_directory": cls.BENCH_ROOT / os.getenv("ANGULAR_DIR", "angular-bench"),
            "port": int(os.getenv("ANGULAR_PORT", "4200")),
            "build_command": _env_command("ANGULAR_BUILD_COMMAND", "npm run build"),
            "start_command": _env_command(
                "ANGULAR_START_COMMAND",
                "npm start -- --configuration=production",
            ),
        }

    @classmethod
    def get_target_config(cls, target_name: str) -> Optional[Dict[str, Any]]:
        """Get configuration for a specific target by name."""
        config_methods = {
            "react": cls.get_react_config,
            "vue": cls.get_vue_config,
            "angular": cls.get_angular_config,
        }

        method = config_methods.get(target_name.lower())
        if method:
            return method()
        return None

    @classmethod
    def ensure_directories(cls, output_dir: Optional[Path] = None) -> Path:
        """Create output directories if they don't exist."""
        base = Path(output_dir) if output_dir else cls.OUTPUT_DIR
        base.mkdir(parents=True, exist_ok=True)
        (base / "plots").mkdir(parents=True, exist_ok=True)
        return base


# Names of the configured targets, in benchmark order
TARGET_NAMES = ["react", "vue", "angular"]
