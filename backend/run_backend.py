#!/usr/bin/env python3
# backend/run_backend.py
"""
Development server runner
For local development only
"""
import os
from pathlib import Path
import sys

# Add backend to path
backend_dir = Path(__file__).parent
sys.path.insert(0, str(backend_dir))
os.chdir(backend_dir)

os.environ.setdefault("ENVIRONMENT", "development")

import uvicorn

if __name__ == "__main__":
    print(f"🧖 Starting PNW Sauna API (ENVIRONMENT={os.environ['ENVIRONMENT']})…")
    print("🌐 Access at: http://localhost:8000")
    print("📚 API Docs: http://localhost:8000/docs")

    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=int(os.getenv("PORT", "8000")),
        reload=True,
        reload_delay=0.5,  # Small delay to batch rapid file changes
        log_level="info",
        timeout_graceful_shutdown=5,
    )
