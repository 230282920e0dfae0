#!/usr/bin/env python3
"""
Production server runner for the sqlcloak API.

Reload is always off. Each worker process keeps its own mapping cache
and loads the catalog on startup.
"""

import sys
from pathlib import Path

# Add the src directory to the Python path
project_root = Path(__file__).parent.parent
src_path = project_root / "src"
sys.path.insert(0, str(src_path))

from dotenv import load_dotenv

env_file = project_root / ".env"
if env_file.exists():
    load_dotenv(env_file)
    print(f"✓ Loaded environment variables from {env_file}")
else:
    print(f"⚠ No .env file found at {env_file}")
    print("  Ensure MAPPING_STORE__CATALOG_SOURCE is set by your deployment system")

if __name__ == "__main__":
    import uvicorn
    from sqlcloak.config import get_settings

    settings = get_settings()
    server_config = settings.server

    production_config = {
        "app": server_config.app_module,
        "host": server_config.host,
        "port": server_config.port,
        "workers": server_config.workers,
        "reload": False,
        "log_config": None,  # Use our structured logging
        "access_log": False,  # Requests are logged by middleware
        "server_header": False,
    }

    print("🚀 Starting sqlcloak production server...")
    print(f"🌐 Listening: {server_config.host}:{server_config.port}")
    print(f"👥 Workers: {production_config['workers']}")
    print(f"📚 Catalog: {settings.mapping_store.catalog_source}")
    print()

    uvicorn.run(**production_config)
