#!/usr/bin/env python3
"""
Vortex Memory Server Startup Script

This script starts the memory server using configuration from config.json
(or the file named by VORTEX_CONFIG_FILE).
"""

import sys
import uvicorn
from pathlib import Path

# Add src directory to path for imports
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

from vortex_memory_server.config import Config


def main():
    """Start the memory server with configuration"""
    config = Config()
    server_config = config.get_server_config()

    host = server_config.get('host', '127.0.0.1')
    port = server_config.get('port', 3000)

    print("Starting Vortex Memory Server")
    print(f"Configuration loaded from: {config.config_path}")
    print(f"Memory snapshot: {config.get('storage', 'path')}")
    print(f"Answering model: {config.get('answering', 'model')}")
    print(f"Server starting on: http://{host}:{port}")
    print(f"Logs will be written to: {config.get('logging', 'file', default='stderr only')}")
    print("=" * 60)

    uvicorn.run(
        "vortex_memory_server.main:get_app",
        factory=True,
        host=host,
        port=port,
        reload=True,  # Enable auto-reload for development
        log_level=str(config.get('logging', 'level', default='info')).lower()
    )


if __name__ == "__main__":
    main()
