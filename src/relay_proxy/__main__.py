"""
Point d'entrée pour `python -m relay_proxy`.
"""
import argparse
import logging
import os

import uvicorn

from .core.constants import CONFIG_ENV_VAR


def main():
    """Fonction principale."""
    parser = argparse.ArgumentParser(description="Relay Proxy")
    parser.add_argument("--host", help="Host (défaut: server.host)")
    parser.add_argument("--port", type=int, help="Port (défaut: server.port)")
    parser.add_argument("--config", help=f"Fichier TOML (défaut: ${CONFIG_ENV_VAR} ou config.toml)")
    parser.add_argument("--log-level", help="Niveau de log (défaut: server.log_level)")
    parser.add_argument("--reload", action="store_true", help="Activer le reload auto")

    args = parser.parse_args()

    # La factory relit la config via la variable d'environnement (reload inclus)
    if args.config:
        os.environ[CONFIG_ENV_VAR] = os.path.abspath(args.config)

    from .config.loader import load_settings
    server = load_settings().server

    host = args.host or server.host
    port = args.port or server.port
    log_level = (args.log_level or server.log_level).lower()

    logging.basicConfig(
        level=getattr(logging, log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )
    logging.getLogger(__name__).info("Démarrage du Relay Proxy sur %s:%s", host, port)

    uvicorn.run(
        "relay_proxy.main:create_app",
        factory=True,
        host=host,
        port=port,
        reload=args.reload,
        log_level=log_level
    )


if __name__ == "__main__":
    main()
