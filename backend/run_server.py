"""
Run the Bias Radar backend server.
"""
import logging
import os
import sys

# Set working directory and path
backend_dir = os.path.dirname(os.path.abspath(__file__))
os.chdir(backend_dir)
sys.path.insert(0, backend_dir)

# Load environment
from dotenv import load_dotenv
load_dotenv(os.path.join(backend_dir, ".env"))

# Run uvicorn
import uvicorn

if __name__ == "__main__":
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logger = logging.getLogger("run_server")

    host = os.getenv("HOST", "0.0.0.0")
    port = int(os.getenv("PORT", "8000"))

    logger.info("Starting Bias Radar Backend Server...")
    logger.info(f"Working directory: {backend_dir}")
    logger.info(f"API Docs: http://localhost:{port}/docs")

    uvicorn.run(
        "radar.main:app",
        host=host,
        port=port,
        reload=os.getenv("RELOAD", "true").lower() == "true",
        log_level="info",
    )
