#!/usr/bin/env python3
"""
CLI script to run the LLM bot content proxy from a source checkout.

Usage:
    # Serve with settings from config.enc.yaml or environment variables
    ORGANIZATION_ID=acme ORIGIN_URL=http://127.0.0.1:8000 python scripts/run_proxy.py

    # Validate configuration only
    python scripts/run_proxy.py --check-config
"""

import sys
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from llm_bot_proxy.cli import main

if __name__ == "__main__":
    sys.exit(main())
