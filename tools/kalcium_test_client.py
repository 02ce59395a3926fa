#!/usr/bin/env python3
"""
Standalone Kalcium test client script.

Runs the end-to-end scenario from a source checkout without installing the
package. Variables from a local .env file are loaded first.
"""

import asyncio
import os
import sys
from pathlib import Path

# Add the parent directory to Python path so we can import the package
sys.path.insert(0, str(Path(__file__).parent.parent))


def load_env_file(env_file='.env'):
    """Load environment variables from .env file if it exists."""
    env_path = Path(env_file)
    if env_path.exists():
        with open(env_path, 'r') as f:
            for line in f:
                line = line.strip()
                if line and not line.startswith('#') and '=' in line:
                    key, value = line.split('=', 1)
                    # Remove quotes if present
                    value = value.strip().strip('"\'')
                    os.environ.setdefault(key.strip(), value)
        print(f"Loaded environment variables from {env_file}")
    else:
        print(f"No {env_file} file found - using command line args or environment variables")


load_env_file()

print(f"KALC_SERVER_URL: {os.getenv('KALC_SERVER_URL', 'NOT SET')}")
print(f"KALC_USERNAME: {os.getenv('KALC_USERNAME', 'NOT SET')}")
print(f"KALC_PASSWORD: {'***' if os.getenv('KALC_PASSWORD') else 'NOT SET'}")
print(f"SSL_VERIFY: {os.getenv('SSL_VERIFY', 'NOT SET')}")

try:
    from kalcium_client.main import run_cli
except ImportError as e:
    print(f"Error importing modules: {e}")
    print("Install the requirements with 'pip install -r requirements.txt' "
          "and run this from the project root directory.")
    sys.exit(1)


if __name__ == "__main__":
    sys.exit(asyncio.run(run_cli()))
