
import uvicorn

from core.initialization import initialize_components, load_configuration
from utils.logger import setup_logger
from web.app import create_app


def build_app(env_path: str = "config.env"):
    """
    Load the environment configuration, wire the dashboard components and
    return the FastAPI application together with the parsed config.

    The named logger is created before anything else so console and
    `logs/dashboard.log` handlers are attached before the first fetch.
    """
    config = load_configuration(env_path)
    logger = setup_logger("Dashboard", to_console=True)
    components = initialize_components(config, overrides={"logger": logger})
    app = create_app(components["dashboard"], client=components["client"])
    return app, config


def main():
    try:
        app, config = build_app()
    except (ValueError, TypeError) as e:
        print(f"❌ Dashboard configuration error: {e}")
        raise SystemExit(1)
    uvicorn.run(app, host=config["HOST"], port=config["PORT"], log_level="info")


if __name__ == "__main__":
    main()
