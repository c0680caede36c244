"""
Environment variable management with .env file support.

Reads the ``COMMANDANT_*`` variables consumed by ``CommanderConfig.from_env``
and substitutes ``${VAR}`` references inside YAML configuration files.
"""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

# ${VAR}, ${VAR:-default}, ${VAR:?error}
_BRACED = re.compile(r"\$\{([^}:]+)(?::([?-])([^}]*))?\}")
_BARE = re.compile(r"\$([A-Z_][A-Z0-9_]*)")

_TRUE = ("true", "1", "yes", "on")
_FALSE = ("false", "0", "no", "off")


class EnvManager:
    """
    Manages environment variables for Commandant hosts.

    Example:
        >>> env = EnvManager()
        >>> env.load()  # Loads .env if exists
        >>> strict = env.get_bool("COMMANDANT_STRICT")
    """

    def __init__(self, project_root: Path | str | None = None, auto_load: bool = True):
        """
        Initialize the environment manager.

        Args:
            project_root: Directory searched for the .env file
            auto_load: Automatically load .env file if found
        """
        self.project_root = Path(project_root) if project_root else Path.cwd()
        self._loaded = False

        if auto_load:
            self.load()

    @property
    def loaded(self) -> bool:
        return self._loaded

    def load(self, env_file: str | Path | None = None, override: bool = False) -> bool:
        """
        Load environment variables from a .env file.

        Returns:
            True if the file existed and was loaded
        """
        path = Path(env_file) if env_file is not None else self.project_root / ".env"
        if not path.exists():
            return False

        load_dotenv(path, override=override)
        self._loaded = True
        return True

    def get(self, key: str, default: str | None = None, required: bool = False) -> str | None:
        """
        Get an environment variable value.

        Raises:
            ValueError: If required=True and the variable is unset with no default
        """
        value = os.environ.get(key, default)

        if required and value is None:
            msg = f"Required environment variable not set: {key}"
            raise ValueError(msg)

        return value

    def get_bool(self, key: str, default: bool = False) -> bool:
        """Get environment variable as boolean."""
        value = (self.get(key) or "").strip().lower()
        if value in _TRUE:
            return True
        if value in _FALSE:
            return False
        return default

    def get_int(self, key: str, default: int = 0) -> int:
        """Get environment variable as integer."""
        try:
            return int(self.get(key, str(default)))
        except (ValueError, TypeError):
            return default

    def substitute(self, text: str) -> str:
        """
        Substitute ``${VAR}``, ``${VAR:-default}``, ``${VAR:?error}`` and
        ``$VAR`` references in text.

        Example:
            >>> os.environ["LOG_LEVEL"] = "DEBUG"
            >>> env.substitute("level=${LOG_LEVEL}")
            'level=DEBUG'
        """

        def replace(match: re.Match) -> str:
            name, operator, operand = match.group(1), match.group(2), match.group(3)
            value = os.environ.get(name)

            if operator == "-":
                return value if value is not None else operand
            if operator == "?":
                if value is None:
                    raise ValueError(operand or f"Required variable not set: {name}")
                return value
            return value if value is not None else match.group(0)

        text = _BRACED.sub(replace, text)
        return _BARE.sub(lambda m: os.environ.get(m.group(1), m.group(0)), text)

    def substitute_dict(self, data: dict[str, Any]) -> dict[str, Any]:
        """Recursively substitute environment variables in dictionary values."""
        return {key: self._substitute_value(value) for key, value in data.items()}

    def _substitute_value(self, value: Any) -> Any:
        if isinstance(value, str):
            return self.substitute(value)
        if isinstance(value, dict):
            return self.substitute_dict(value)
        if isinstance(value, list):
            return [self._substitute_value(item) for item in value]
        return value


# Global instance
_global_env: EnvManager | None = None


def get_env() -> EnvManager:
    """Get the global environment manager instance."""
    global _global_env
    if _global_env is None:
        _global_env = EnvManager(auto_load=False)
    return _global_env
