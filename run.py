#!/usr/bin/env python3
"""
Run script for the CallScope analysis backend
"""
import uvicorn

from callscope.config.settings import settings
from callscope.main import app

if __name__ == "__main__":
    uvicorn.run(app, host=settings.host, port=settings.port, reload=settings.debug)
