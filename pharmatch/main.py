"""
PharMatch Main Entry Point

Initializes logging, configuration and the database, then hands over to
the command line interface.
"""

import sys


def main() -> int:
    """
    Main entry point for PharMatch.

    Returns:
        Exit code (0 for success, non-zero for errors)
    """
    try:
        # Initialize logging first
        from pharmatch.utils.logger import log, setup_logging

        setup_logging()
        log.info("Starting PharMatch...")

        # Load configuration
        from pharmatch.utils.config import get_settings

        settings = get_settings()
        log.info(f"Environment: {settings.environment}")
        log.info(f"Debug mode: {settings.debug}")

        # Initialize database connection
        log.info("Initializing database connection...")
        from pharmatch.data.database import get_database_manager

        db_manager = get_database_manager()
        if db_manager.check_connection():
            log.info("Database connection established")
        else:
            log.warning(
                "Could not connect to MongoDB. "
                "Matching commands will fail. Run 'pharmatch init-db' once it is up."
            )

        from pharmatch.cli import app

        exit_code = app(standalone_mode=False)
        return exit_code if isinstance(exit_code, int) else 0

    except KeyboardInterrupt:
        print("\nInterrupted by user.")
        return 130
    except Exception as e:
        print(f"Fatal error: {e}")
        import traceback

        traceback.print_exc()
        return 1


if __name__ == "__main__":
    sys.exit(main())
