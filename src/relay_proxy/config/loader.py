"""relay_proxy.config.loader

Chargement de la configuration TOML.

Note d'architecture:
- Le package `config/` est consommé par les couches routing/proxy/api.
- Il ne dépend que de `core/` afin d'éviter les imports circulaires.
"""
import logging
import os
import re
import tomllib
from pathlib import Path
from typing import Any, Dict, Optional

from ..core.constants import CONFIG_ENV_VAR
from ..core.exceptions import ConfigurationError
from .settings import Settings

logger = logging.getLogger(__name__)

# Cache de configuration, associé au fichier dont il provient
_config_cache: Optional[Dict[str, Any]] = None
_config_cache_path: Optional[Path] = None

_ENV_VAR_PATTERN = re.compile(r"\$\{([^}]+)\}")


def _expand_env_vars(obj: Any) -> Any:
    """
    Récursivement étend les variables d'environnement ${VAR} dans la config.

    Une variable absente de l'environnement est laissée telle quelle.
    """
    if isinstance(obj, str):
        def replace_env_var(match):
            return os.environ.get(match.group(1), match.group(0))
        return _ENV_VAR_PATTERN.sub(replace_env_var, obj)
    elif isinstance(obj, dict):
        return {k: _expand_env_vars(v) for k, v in obj.items()}
    elif isinstance(obj, list):
        return [_expand_env_vars(item) for item in obj]
    return obj


def _clear_config_cache():
    """Vide le cache de configuration."""
    global _config_cache, _config_cache_path
    _config_cache = None
    _config_cache_path = None


def default_config_path() -> str:
    """
    Chemin par défaut du fichier de configuration.

    Priorité: variable RELAY_PROXY_CONFIG, sinon config.toml à la racine projet.
    """
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        return env_path
    # Structure: project/src/relay_proxy/config/loader.py
    current_file = os.path.abspath(__file__)
    project_dir = os.path.dirname(os.path.dirname(os.path.dirname(os.path.dirname(current_file))))
    return os.path.join(project_dir, "config.toml")


def load_config(config_path: str = None) -> Dict[str, Any]:
    """
    Charge la configuration depuis le fichier TOML.

    Sans chemin, le cache courant est renvoyé s'il existe; un chemin différent
    de celui du cache provoque une relecture.

    Args:
        config_path: Chemin vers le fichier config (optionnel)

    Returns:
        Dictionnaire de configuration

    Raises:
        ConfigurationError: Si le fichier n'existe pas ou est invalide
    """
    global _config_cache, _config_cache_path

    if _config_cache is not None:
        if config_path is None or Path(config_path).resolve() == _config_cache_path:
            return _config_cache

    if config_path is None:
        config_path = default_config_path()

    path = Path(config_path)
    if not path.exists():
        raise ConfigurationError(
            message=f"Fichier de configuration non trouvé: {config_path}",
            config_key="config_path"
        )

    try:
        with open(path, "rb") as f:
            raw_config = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigurationError(
            message=f"Fichier de configuration invalide: {e}",
            config_key="config_path"
        ) from e

    _config_cache = _expand_env_vars(raw_config)
    _config_cache_path = path.resolve()
    logger.info("[CONFIG] Configuration chargée depuis %s", path)
    return _config_cache


def reload_config(config_path: str = None) -> Dict[str, Any]:
    """
    Recharge la configuration depuis le fichier.

    Returns:
        Nouvelle configuration chargée
    """
    _clear_config_cache()
    return load_config(config_path)


def get_config() -> Dict[str, Any]:
    """Retourne la configuration en cache (la charge si besoin)."""
    if _config_cache is None:
        return load_config()
    return _config_cache


def load_settings(config_path: str = None) -> Settings:
    """
    Construit les Settings; sans fichier de configuration, valeurs par défaut.

    Un fichier présent mais invalide lève toujours ConfigurationError.
    """
    if config_path is None:
        config_path = default_config_path()

    if not Path(config_path).exists():
        logger.warning(
            "[CONFIG] Fichier %s absent - configuration par défaut utilisée", config_path
        )
        return Settings()
    return Settings.from_config(load_config(config_path))
