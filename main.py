from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import logging

import config
from routes.ranking import router as ranking_router
from routes.student_progress import router as student_progress_router

logging.basicConfig(level=config.LOG_LEVEL)
logger = logging.getLogger(__name__)

app = FastAPI(title="LMS Progress & Ranking Service")
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# API routers
app.include_router(ranking_router, prefix="/ranking", tags=["ranking"])
app.include_router(student_progress_router, prefix="/student-progress", tags=["student-progress"])

logger.info(f"Serving progress data from {config.DATA_DIR}")


@app.get("/health")
def health_check():
    return {"status": "ok"}
