#!/usr/bin/env python3
"""
Development server runner for the VidShare web API.
"""

import os

import uvicorn
from dotenv import load_dotenv

if __name__ == "__main__":
    load_dotenv()

    port = int(os.getenv("PORT", "8000"))
    print("🚀 Starting VidShare Web Server...")
    print(f"❤️  Health check: http://localhost:{port}/health")
    print(f"🔧 API docs (DEBUG only): http://localhost:{port}/api/docs")
    print("\n" + "="*50)

    uvicorn.run(
        "server.web.app.main:create_app",
        factory=True,
        host="0.0.0.0",
        port=port,
        log_level="info",
    )
