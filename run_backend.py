#!/usr/bin/env python
"""Script to run the Taskpad API server."""
import os

import uvicorn

if __name__ == "__main__":
    uvicorn.run(
        "taskpad.main:build_app",
        factory=True,
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "5174")),
        reload=os.getenv("APP_ENV", "development") == "development",
    )
