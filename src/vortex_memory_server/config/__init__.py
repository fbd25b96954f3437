from .manager import Config, CONFIG_ENV_VAR

__all__ = ['Config', 'CONFIG_ENV_VAR']
