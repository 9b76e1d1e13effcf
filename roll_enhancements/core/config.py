"""
Environment configuration for Roll Enhancements.

Server, storage, logging and session values, plus the defaults for the
runtime roll settings (autoCheck, autoDamage, autoOther, rollMode,
showRollDialogModifier). A .env file is read when present.
"""

import os
from pathlib import Path
from typing import Any, Dict, Optional
import logging

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

ROLL_MODES = ('publicroll', 'gmroll', 'blindroll', 'selfroll')
MODIFIER_KEYS = ('shiftKey', 'altKey', 'ctrlKey', 'metaKey')


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ('true', '1', 'yes')


class Config:
    """
    Values read from the environment (and .env) at construction.

    The roll settings here are only *defaults*: the live values are kept
    in the settings table and edited through ``SettingsStore``.

    Example:
        config = Config()
        print(config.db_path)      # rolls.db
        print(config.auto_damage)  # True
    """

    def __init__(self, env_file: Optional[str] = None):
        """
        Args:
            env_file: .env file to load (default: .env in the working directory, if any)
        """
        env_path = Path(env_file) if env_file else Path.cwd() / ".env"
        if env_path.exists():
            load_dotenv(env_path)
            logger.info(f"Loaded configuration from {env_path}")
        else:
            logger.debug(f"No {env_path}, using the environment only")

        # === Server Settings ===
        self.host = os.getenv('HOST', '127.0.0.1')
        self.port = int(os.getenv('PORT', '5000'))
        self.debug = _env_bool('DEBUG', 'False')

        # === Logging ===
        self.log_level = os.getenv('LOG_LEVEL', 'INFO').upper()
        self.log_file = os.getenv('LOG_FILE', None)

        # === Storage ===
        self.db_path = os.getenv('ROLL_DB', 'rolls.db')

        # === Dice ===
        seed = os.getenv('ROLL_SEED')
        self.seed = int(seed) if seed else None

        # === Roll setting defaults ===
        self.auto_check = _env_bool('AUTO_CHECK', 'True')
        self.auto_damage = _env_bool('AUTO_DAMAGE', 'True')
        self.auto_other = _env_bool('AUTO_OTHER', 'False')
        self.roll_mode = os.getenv('ROLL_MODE', 'publicroll')
        self.show_roll_dialog_modifier = os.getenv('SHOW_ROLL_DIALOG_MODIFIER', 'shiftKey')

        # === Session ===
        self.user_id = os.getenv('ROLL_USER', 'gamemaster')
        self.gm_user_ids = [u for u in os.getenv('GM_USERS', 'gamemaster').split(',') if u]

    def setting_defaults(self) -> Dict[str, Any]:
        """Default values for every runtime setting, keyed by setting name."""
        return {
            'autoCheck': self.auto_check,
            'autoDamage': self.auto_damage,
            'autoOther': self.auto_other,
            'rollMode': self.roll_mode,
            'showRollDialogModifier': self.show_roll_dialog_modifier,
        }

    def validate(self) -> bool:
        """
        Validate configuration and log warnings for bad values.

        Returns:
            True if config is valid, False if a value cannot be used
        """
        valid = True

        if self.roll_mode not in ROLL_MODES:
            logger.error(f"Invalid ROLL_MODE: {self.roll_mode}. Must be one of {', '.join(ROLL_MODES)}")
            valid = False

        if self.show_roll_dialog_modifier not in MODIFIER_KEYS:
            logger.error(
                f"Invalid SHOW_ROLL_DIALOG_MODIFIER: {self.show_roll_dialog_modifier}. "
                f"Must be one of {', '.join(MODIFIER_KEYS)}"
            )
            valid = False

        if not self.gm_user_ids:
            logger.warning("GM_USERS is empty. gmroll and blindroll messages will have no recipients.")

        return valid

    def __repr__(self) -> str:
        return (
            f"Config("
            f"db_path={self.db_path}, "
            f"host={self.host}, "
            f"port={self.port}, "
            f"roll_mode={self.roll_mode}, "
            f"debug={self.debug})"
        )


_config: Optional[Config] = None


def get_config() -> Config:
    """Process-wide Config, built and validated on first use."""
    global _config
    if _config is None:
        _config = Config()
        _config.validate()
    return _config


__all__ = ['Config', 'get_config', 'ROLL_MODES', 'MODIFIER_KEYS']
