import os
import json
import logging
from pathlib import Path
from typing import Any, Optional

CONFIG_ENV_VAR = 'VORTEX_CONFIG_FILE'


class Config:
    """Configuration manager for the Vortex memory server with JSON-based configuration."""

    def __init__(self, config_path: Optional[str] = None):
        # Set up paths relative to project root
        self.project_root = Path(__file__).parent.parent.parent.parent

        if config_path:
            self.config_path = str(config_path)
        elif os.environ.get(CONFIG_ENV_VAR):
            self.config_path = os.environ[CONFIG_ENV_VAR]
        else:
            # Default to single config.json file
            self.config_path = str(self.project_root / "config.json")

        self._config = self._merge_configs(self._get_default_config(), self._load_config())
        self._setup_logging()

    def _load_config(self) -> dict:
        """Read the JSON overlay; an unusable file means built-in defaults only."""
        try:
            with open(self.config_path, 'r', encoding='utf-8') as f:
                overlay = json.load(f)
        except FileNotFoundError:
            logging.warning(f"No configuration file at {self.config_path}, using defaults")
            return {}
        except (OSError, json.JSONDecodeError) as e:
            logging.error(f"Failed to load configuration from {self.config_path}: {e}")
            return {}

        if not isinstance(overlay, dict):
            logging.error(f"Configuration in {self.config_path} is not a JSON object, using defaults")
            return {}

        logging.info(f"Configuration loaded from {self.config_path}")
        return overlay

    def _get_default_config(self) -> dict:
        """Fallback default configuration"""
        return {
            "server": {
                "host": "127.0.0.1",
                "port": 3000,
                "title": "Vortex Memory Server",
                "version": "1.0.0"
            },
            "storage": {
                "path": "vortex_memorias.json"
            },
            "deduplication": {
                "similarity_threshold": 0.70,
                "upsert_threshold": 0.68,
                "run_on_insert": False
            },
            "retrieval": {
                "similarity_threshold": 0.50,
                "reference_sections": ["acta_nacimiento", "creador"]
            },
            "answering": {
                "base_url": "https://api.deepseek.com",
                "model": "deepseek-chat",
                "api_key_env": "DEEPSEEK_API_KEY",
                "timeout": 30.0
            },
            "voice": {
                "question_slots": ["pregunta", "consulta", "query"],
                "welcome": "Hola, soy Vortex. ¿Qué quieres saber?"
            },
            "logging": {
                "level": "INFO",
                "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
                "file": "logs/vortex_server.log"
            }
        }

    def _setup_logging(self):
        """Setup logging based on configuration"""
        log_config = self._config.get('logging', {})
        log_file = log_config.get('file')

        handlers = [logging.StreamHandler()]
        if log_file:
            # Ensure log directory exists
            log_path = Path(log_file)
            log_path.parent.mkdir(parents=True, exist_ok=True)
            handlers.append(logging.FileHandler(log_file, encoding='utf-8'))

        logging.basicConfig(
            level=getattr(logging, str(log_config.get('level', 'INFO')).upper(), logging.INFO),
            format=log_config.get('format', '%(asctime)s - %(name)s - %(levelname)s - %(message)s'),
            handlers=handlers
        )

    def _merge_configs(self, base: dict, overlay: dict) -> dict:
        """Deep merge two configuration dictionaries"""
        result = base.copy()
        for key, value in overlay.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._merge_configs(result[key], value)
            else:
                result[key] = value
        return result

    def get(self, *keys, default=None) -> Any:
        """Get nested configuration value using dot notation"""
        value = self._config
        for key in keys:
            if isinstance(value, dict) and key in value:
                value = value[key]
            else:
                return default
        return value

    def get_server_config(self) -> dict:
        """Get server configuration"""
        return self.get('server', default={})

    def get_storage_config(self) -> dict:
        """Get storage configuration"""
        return self.get('storage', default={})

    def get_deduplication_config(self) -> dict:
        """Get deduplication configuration"""
        return self.get('deduplication', default={})

    def get_retrieval_config(self) -> dict:
        """Get retrieval configuration"""
        return self.get('retrieval', default={})

    def get_answering_config(self) -> dict:
        """Get answering service configuration"""
        return self.get('answering', default={})

    def get_voice_config(self) -> dict:
        """Get voice assistant configuration"""
        return self.get('voice', default={})
