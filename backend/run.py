#!/usr/bin/env python3
# backend/run.py
"""
Local development server.

Creates the tables, seeds an empty catalog, and serves the API with reload.
"""
import logging
import os
from pathlib import Path
import sys

import uvicorn

backend_dir = Path(__file__).parent
sys.path.insert(0, str(backend_dir))
os.chdir(backend_dir)

logger = logging.getLogger(__name__)


def main() -> None:
    from servicebay.commands.seed import main as seed_main

    seed_main([])
    port = int(os.getenv("PORT", "8000"))
    logger.info(f"Starting servicebay on http://localhost:{port} (docs at /docs)")
    uvicorn.run("servicebay.main:app", host="0.0.0.0", port=port, reload=True, log_level="info")


if __name__ == "__main__":
    main()
