"""
Tabwise API - FastAPI backend for browsing pattern detection
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from dotenv import find_dotenv, load_dotenv

from tabwise import __version__

from .routes import pattern_detections, research_sessions

# Load local .env so TABWISE_* settings apply in API mode.
load_dotenv(find_dotenv(usecwd=True), override=False)

app = FastAPI(
    title="Tabwise API",
    description="Hoarder tab, serial opener and research session detection",
    version=__version__,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy", "version": __version__}


app.include_router(pattern_detections.router, prefix="/api", tags=["Pattern Detections"])
app.include_router(research_sessions.router, prefix="/api", tags=["Research Sessions"])


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
