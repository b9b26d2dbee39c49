"""Engress - Entry point for the API server."""

import argparse
from pathlib import Path

import uvicorn

from engress.config.settings import create_example_env_file, load_config, setup_logging


def main():
    parser = argparse.ArgumentParser(description="Engress Topic Tracking Server")
    parser.add_argument("--host", default="0.0.0.0", help="Host to bind")
    parser.add_argument("--port", type=int, default=8000, help="Port to bind")
    parser.add_argument("--config", type=str, default=".env", help="Config file path")
    parser.add_argument("--create-config", action="store_true", help="Create example config file")

    args = parser.parse_args()

    if args.create_config:
        create_example_env_file()
        print("Example configuration file created at .env.example")
        print("Please copy it to .env and fill in your API keys.")
        return

    try:
        config = load_config(Path(args.config))
    except ValueError as e:
        print(f"Configuration error: {e}")
        print("Run with --create-config to create an example configuration file.")
        return

    setup_logging(config.log_level)

    from engress.api.server import create_app
    uvicorn.run(create_app(config), host=args.host, port=args.port)


if __name__ == "__main__":
    main()
