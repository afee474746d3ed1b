"""
Entry point for running the application as a module.
"""

import uvicorn

if __name__ == "__main__":
    uvicorn.run("clinic_intake_agent.main:app", host="0.0.0.0", port=8001)
