#!/usr/bin/env python
"""
Run the API locally.

Run: python run_api.py

Then open browser: http://localhost:8000/docs
"""
import logging
import sys
sys.path.insert(0, ".")

import uvicorn

if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO,
                        format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    uvicorn.run(
        "boatdesk.api.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level="info"
    )
