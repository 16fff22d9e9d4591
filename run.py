import logging
import uvicorn
import os
import sys

if __name__ == "__main__":
    # Ensure usage of the current directory for imports
    sys.path.append(os.path.dirname(os.path.abspath(__file__)))
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    print("🚀 Starting Formic...")
    uvicorn.run(
        "formic.main:app",
        host=os.getenv("FORMIC_HOST", "0.0.0.0"),
        port=int(os.getenv("FORMIC_PORT", "8000")),
        reload=os.getenv("FORMIC_DEBUG", "False") == "True",
    )
