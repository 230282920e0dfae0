#!/usr/bin/env python3
"""
Development server runner for the sqlcloak API.

Starts uvicorn with hot reloading on src/, after loading .env from the
project root.
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
    print(f"⚠ No .env file found at {env_file}, using defaults")
    print("  The catalog is read from ./encryption_tables.json")

if __name__ == "__main__":
    import uvicorn
    from sqlcloak.config import get_settings

    settings = get_settings()
    server_config = settings.server
    base_url = f"http://{server_config.host}:{server_config.port}"

    print("🚀 Starting sqlcloak development server...")
    print(f"📚 Catalog: {settings.mapping_store.catalog_source}")
    print(f"📊 API Documentation: {base_url}/docs")
    print(f"🔍 Health Check: {base_url}/health")
    print()

    uvicorn.run(
        server_config.app_module,
        host=server_config.host,
        port=server_config.port,
        reload=server_config.reload,
        reload_dirs=[str(src_path)],
        log_config=None,  # Use our structured logging
        access_log=False  # Requests are logged by middleware
    )
