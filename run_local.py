"""
Local development runner
Checks the configuration and starts the FastAPI server
"""

import sys
from pathlib import Path

# Add project root to path
PROJECT_ROOT = Path(__file__).parent
sys.path.insert(0, str(PROJECT_ROOT))

from currencyverse.config.settings import settings
from currencyverse.utils.logger import get_logger

logger = get_logger(__name__)


def main():
    """Print the local configuration and start the server"""
    try:
        print("=" * 60)
        print(f"🚀 Starting {settings.app_name} - Local Development")
        print("=" * 60)

        print("\n📊 Storage:")
        if settings.use_memory_db:
            print("   In-memory mode (USE_MEMORY_DB=true); data is lost on restart")
            print("   Demo accounts: admin@currencyverse.com / admin123, demo@currencyverse.com / demo123")
        else:
            print(f"   Database: {settings.database_url or 'SQLite file under data/'}")
            print(f"   Up to {settings.db_max_retries} connection attempts, "
                  f"memory fallback {'on' if settings.db_memory_fallback else 'off'}")

        if settings.secret_key == "change-me-in-production":
            print("\n⚠️  WARNING: SECRET_KEY not set in .env; using the development default")

        print("\n🌐 Server:")
        print(f"   Host: {settings.api_host}:{settings.api_port}")
        print(f"   Environment: {settings.environment}")
        print(f"   Docs: http://localhost:{settings.api_port}/docs")
        print(f"   Health: http://localhost:{settings.api_port}{settings.api_prefix}/health")
        print("=" * 60 + "\n")

        import uvicorn
        uvicorn.run(
            "currencyverse.main:app",
            host=settings.api_host,
            port=settings.api_port,
            reload=True,  # Enable auto-reload for development
            log_level=settings.log_level.lower()
        )

    except KeyboardInterrupt:
        print("\n\n👋 Shutting down gracefully...")
    except Exception as e:
        logger.error(f"Failed to start server: {e}")
        print(f"\n❌ Error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
