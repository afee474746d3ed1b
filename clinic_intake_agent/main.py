"""
Main application entry point for the clinic intake agent.
"""

import uvicorn
from .api.app import create_app

# Create the FastAPI application
app = create_app()

if __name__ == "__main__":
    uvicorn.run(
        "clinic_intake_agent.main:app",
        host="0.0.0.0",
        port=8001,
        reload=True
    )
